"""Tests for the SAUR API client."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any
from unittest.mock import patch

from aiohttp import ClientError
from homeassistant.util import dt as dt_util
import pytest

from custom_components.saur_water.api import (
    SaurApiClient,
    SaurAuthError,
    SaurRequestError,
    SaurSession,
    SaurSessionExpiredError,
    SaurUnauthorizedError,
)

_NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)

_AUTH_PAYLOAD = {
    "token": {"access_token": "abc123", "expires_in": "3600"},
    "defaultSectionId": 424242,
}


class _FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, reason: str = "OK") -> None:
        self.status = status
        self.reason = reason
        self._payload = payload

    async def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def __aenter__(self) -> "_FakeResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class _FakeSession:
    def __init__(self, *responses: _FakeResponse | Exception) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, Any, dict[str, Any]]] = []

    def request(self, method: str, url: Any, **kwargs: Any) -> _FakeResponse:
        self.calls.append((method, url, kwargs))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _authenticated_client(session: _FakeSession) -> SaurApiClient:
    client = SaurApiClient(session)  # type: ignore[arg-type]
    client._auth = SaurSession(  # type: ignore[attr-defined]
        access_token="abc123",
        section_id="424242",
        expires_at=dt_util.utcnow() + timedelta(hours=1),
    )
    return client


def test_consumption_url_uses_unpadded_date_parts() -> None:
    url = SaurApiClient._consumption_url("424242", date(2024, 3, 5))

    assert str(url) == (
        "https://apib2c.azure.saurclient.fr/deli/section_subscription/424242"
        "/consumptions/weekly?year=2024&month=3&day=5"
    )


@pytest.mark.asyncio
async def test_authenticate_sends_fixed_login_fields() -> None:
    session = _FakeSession(_FakeResponse(payload=_AUTH_PAYLOAD))
    client = SaurApiClient(session)  # type: ignore[arg-type]

    with patch.object(dt_util, "utcnow", return_value=_NOW):
        result = await client.async_authenticate("user@example.com", "hunter2")

    method, url, kwargs = session.calls[0]
    assert method == "post"
    assert str(url) == "https://apib2c.azure.saurclient.fr/admin/auth"
    assert kwargs["json"] == {
        "username": "user@example.com",
        "password": "hunter2",
        "client_id": "frontjs-client",
        "grant_type": "password",
        "scope": "api-scope",
        "isRecaptchaV3": True,
        "captchaToken": True,
    }
    assert result.access_token == "abc123"
    assert result.section_id == "424242"
    assert result.expires_at == _NOW + timedelta(seconds=3600)
    assert client.get_section_id() == "424242"


@pytest.mark.asyncio
async def test_session_expires_after_expires_in() -> None:
    client = SaurApiClient(_FakeSession(_FakeResponse(payload=_AUTH_PAYLOAD)))  # type: ignore[arg-type]

    with patch.object(dt_util, "utcnow", return_value=_NOW):
        await client.async_authenticate("user@example.com", "hunter2")
        assert client.is_session_valid()

    with patch.object(dt_util, "utcnow", return_value=_NOW + timedelta(seconds=3600)):
        assert not client.is_session_valid()


def test_session_invalid_before_authentication() -> None:
    client = SaurApiClient(_FakeSession())  # type: ignore[arg-type]

    assert not client.is_session_valid()
    assert client.get_section_id() is None


@pytest.mark.asyncio
async def test_authenticate_rejected_raises_auth_error() -> None:
    client = SaurApiClient(
        _FakeSession(_FakeResponse(status=400, reason="Bad Request"))  # type: ignore[arg-type]
    )

    with pytest.raises(SaurAuthError) as err:
        await client.async_authenticate("user@example.com", "wrong")

    assert err.value.status == 400
    assert client.session is None


@pytest.mark.asyncio
async def test_authenticate_network_failure_has_no_status() -> None:
    client = SaurApiClient(_FakeSession(ClientError("boom")))  # type: ignore[arg-type]

    with pytest.raises(SaurAuthError) as err:
        await client.async_authenticate("user@example.com", "hunter2")

    assert err.value.status is None


@pytest.mark.asyncio
async def test_authenticate_malformed_payload_raises_auth_error() -> None:
    client = SaurApiClient(
        _FakeSession(_FakeResponse(payload={"token": {}}))  # type: ignore[arg-type]
    )

    with pytest.raises(SaurAuthError):
        await client.async_authenticate("user@example.com", "hunter2")


@pytest.mark.asyncio
async def test_get_consumption_with_expired_session_skips_network() -> None:
    session = _FakeSession()
    client = SaurApiClient(session)  # type: ignore[arg-type]
    client._auth = SaurSession(  # type: ignore[attr-defined]
        access_token="abc123",
        section_id="424242",
        expires_at=dt_util.utcnow() - timedelta(seconds=1),
    )

    with pytest.raises(SaurSessionExpiredError):
        await client.async_get_consumption("424242", date(2024, 3, 10))

    assert session.calls == []


@pytest.mark.asyncio
async def test_get_consumption_maps_first_entry() -> None:
    session = _FakeSession(
        _FakeResponse(
            payload={
                "consumptions": [
                    {
                        "value": -3.2,
                        "startDate": "2024-03-09T00:00:00+00:00",
                        "endDate": "2024-03-10T00:00:00+00:00",
                    },
                    {"value": 9.9},
                ]
            }
        )
    )
    client = _authenticated_client(session)

    reading = await client.async_get_consumption("424242", date(2024, 3, 10))

    assert reading is not None
    assert reading.value == pytest.approx(3.2)
    assert reading.period_start == datetime(2024, 3, 9, tzinfo=timezone.utc)
    assert reading.period_end == datetime(2024, 3, 10, tzinfo=timezone.utc)
    method, url, kwargs = session.calls[0]
    assert method == "get"
    assert url.query["day"] == "10"
    assert kwargs["headers"] == {"Authorization": "Bearer abc123"}


@pytest.mark.asyncio
async def test_get_consumption_without_entries_returns_none() -> None:
    client = _authenticated_client(_FakeSession(_FakeResponse(payload={"consumptions": []})))

    assert await client.async_get_consumption("424242", date(2024, 3, 10)) is None


@pytest.mark.asyncio
async def test_get_consumption_missing_list_returns_none() -> None:
    client = _authenticated_client(_FakeSession(_FakeResponse(payload={})))

    assert await client.async_get_consumption("424242", date(2024, 3, 10)) is None


@pytest.mark.asyncio
async def test_get_consumption_unauthorized() -> None:
    client = _authenticated_client(
        _FakeSession(_FakeResponse(status=401, reason="Unauthorized"))
    )

    with pytest.raises(SaurUnauthorizedError) as err:
        await client.async_get_consumption("424242", date(2024, 3, 10))

    assert err.value.status == 401


@pytest.mark.asyncio
async def test_get_consumption_server_error() -> None:
    client = _authenticated_client(
        _FakeSession(_FakeResponse(status=503, reason="Service Unavailable"))
    )

    with pytest.raises(SaurRequestError) as err:
        await client.async_get_consumption("424242", date(2024, 3, 10))

    assert err.value.status == 503
    assert "503 Service Unavailable" in str(err.value)


@pytest.mark.asyncio
async def test_authenticate_timeout_raises_auth_error() -> None:
    client = SaurApiClient(_FakeSession(asyncio.TimeoutError()))  # type: ignore[arg-type]

    with pytest.raises(SaurAuthError) as err:
        await client.async_authenticate("user@example.com", "hunter2")

    assert err.value.status is None
    assert client.session is None


@pytest.mark.asyncio
async def test_get_consumption_timeout_raises_request_error() -> None:
    client = _authenticated_client(_FakeSession(asyncio.TimeoutError()))

    with pytest.raises(SaurRequestError) as err:
        await client.async_get_consumption("424242", date(2024, 3, 10))

    assert err.value.status is None


@pytest.mark.asyncio
async def test_get_consumption_malformed_body_raises_request_error() -> None:
    client = _authenticated_client(
        _FakeSession(_FakeResponse(payload=ValueError("Expecting value")))
    )

    with pytest.raises(SaurRequestError):
        await client.async_get_consumption("424242", date(2024, 3, 10))
