"""SAUR API client helpers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Final, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.util import dt as dt_util
from yarl import URL

from .const import (
    API_BASE_URL,
    AUTH_CLIENT_ID,
    AUTH_ENDPOINT,
    AUTH_GRANT_TYPE,
    AUTH_SCOPE,
    CONSUMPTION_ENDPOINT,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final = ClientTimeout(total=30)


class SaurApiError(Exception):
    """Base error for the SAUR API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class SaurAuthError(SaurApiError):
    """Raised when the login request is rejected or cannot be completed."""


class SaurSessionExpiredError(SaurApiError):
    """Raised when a request needs a session but the token has expired."""


class SaurUnauthorizedError(SaurApiError):
    """Raised when the API answers a data request with HTTP 401."""


class SaurRequestError(SaurApiError):
    """Raised when a data request fails for any other reason."""


@dataclass(frozen=True, slots=True)
class SaurSession:
    """Bearer token bound to one account and its known expiry."""

    access_token: str
    section_id: str
    expires_at: datetime

    def is_valid(self, now: datetime | None = None) -> bool:
        """Return True while the token lifetime has not elapsed."""

        if now is None:
            now = dt_util.utcnow()
        return now < self.expires_at


@dataclass(frozen=True, slots=True)
class ConsumptionReading:
    """One day of metered consumption."""

    value: float
    period_start: Optional[datetime]
    period_end: Optional[datetime]


class SaurApiClient:
    """Asynchronous API client for the SAUR customer portal."""

    def __init__(self, session: ClientSession) -> None:
        self._session = session
        self._auth: SaurSession | None = None

    @classmethod
    def for_hass(cls, hass: HomeAssistant) -> "SaurApiClient":
        """Factory helper to build a client using Home Assistant's shared session."""

        return cls(async_get_clientsession(hass))

    @property
    def session(self) -> SaurSession | None:
        """Return the current session, if any."""

        return self._auth

    @property
    def section_id(self) -> str | None:
        """Return the section bound to the current session."""

        return self._auth.section_id if self._auth else None

    def get_section_id(self) -> str | None:
        return self.section_id

    def is_session_valid(self) -> bool:
        return self._auth is not None and self._auth.is_valid()

    async def async_authenticate(self, email: str, password: str) -> SaurSession:
        """Log in and replace the current session."""

        body = {
            "username": email,
            "password": password,
            "client_id": AUTH_CLIENT_ID,
            "grant_type": AUTH_GRANT_TYPE,
            "scope": AUTH_SCOPE,
            "isRecaptchaV3": True,
            "captchaToken": True,
        }

        try:
            payload = await self._request("post", URL(API_BASE_URL + AUTH_ENDPOINT), json=body)
        except SaurApiError as err:
            raise SaurAuthError(f"Authentication failed: {err}", err.status) from err

        try:
            token = payload["token"]
            expires_in = int(token["expires_in"])
            session = SaurSession(
                access_token=token["access_token"],
                section_id=str(payload["defaultSectionId"]),
                expires_at=dt_util.utcnow() + timedelta(seconds=expires_in),
            )
        except (KeyError, TypeError, ValueError) as err:
            raise SaurAuthError("Unexpected authentication payload") from err

        self._auth = session
        _LOGGER.debug("Authenticated, token expires at %s", session.expires_at)
        return session

    async def async_get_consumption(
        self, section_id: str, day: date
    ) -> ConsumptionReading | None:
        """Fetch the consumption reading for one day, or None when there is none."""

        if self._auth is None or not self._auth.is_valid():
            raise SaurSessionExpiredError("Token expired, re-authentication required")

        headers = {"Authorization": f"Bearer {self._auth.access_token}"}
        payload = await self._request(
            "get", self._consumption_url(section_id, day), headers=headers
        )

        if not isinstance(payload, dict):
            return None
        consumptions = payload.get("consumptions") or []
        if not consumptions or not isinstance(consumptions[0], dict):
            return None

        item = consumptions[0]
        return ConsumptionReading(
            value=abs(_coerce_float(item.get("value")) or 0.0),
            period_start=_parse_period(item.get("startDate")),
            period_end=_parse_period(item.get("endDate")),
        )

    async def _request(self, method: str, url: URL, **kwargs: Any) -> Any:
        """Execute an HTTP request to the SAUR API."""

        try:
            async with self._session.request(
                method,
                url,
                timeout=DEFAULT_TIMEOUT,
                **kwargs,
            ) as response:
                if response.status == 401:
                    raise SaurUnauthorizedError("Unauthorized, token may have expired", 401)
                if response.status >= 400:
                    raise SaurRequestError(
                        f"API request failed: {response.status} {response.reason}",
                        response.status,
                    )
                return await response.json()
        except asyncio.TimeoutError as err:
            raise SaurRequestError(
                f"Timeout after {DEFAULT_TIMEOUT.total:.0f}s talking to SAUR API"
            ) from err
        except ClientError as err:
            raise SaurRequestError("Error communicating with SAUR API") from err
        except ValueError as err:
            raise SaurRequestError("Malformed response from SAUR API") from err

    @staticmethod
    def _consumption_url(section_id: str, day: date) -> URL:
        """Build the weekly consumptions URL for a section and day."""

        return (
            URL(API_BASE_URL + CONSUMPTION_ENDPOINT)
            / str(section_id)
            / "consumptions"
            / "weekly"
        ).with_query(year=day.year, month=day.month, day=day.day)


def _coerce_float(value: Any) -> Optional[float]:
    """Convert API numeric value to float when possible."""

    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_period(value: Any) -> Optional[datetime]:
    """Parse period bounds that may be full timestamps or plain dates."""

    if not isinstance(value, str) or not value:
        return None

    parsed = dt_util.parse_datetime(value)
    if parsed is None:
        parsed_date = dt_util.parse_date(value)
        if parsed_date is None:
            return None
        parsed = datetime.combine(parsed_date, time.min)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_util.DEFAULT_TIME_ZONE)
    return dt_util.as_utc(parsed)
