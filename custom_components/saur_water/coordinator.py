"""Data coordinator for SAUR water consumption."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .api import (
    ConsumptionReading,
    SaurApiClient,
    SaurApiError,
    SaurUnauthorizedError,
)
from .const import (
    CONF_EMAIL,
    CONF_PASSWORD,
    DEFAULT_UPDATE_INTERVAL,
    FALLBACK_DAYS,
    REASON_AUTH_FAILED,
)

_LOGGER = logging.getLogger(__name__)


class DeviceState(StrEnum):
    """Lifecycle of a metered section as seen by Home Assistant."""

    UNINITIALIZED = "uninitialized"
    AUTHENTICATING = "authenticating"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True)
class ConsumptionData:
    """Latest published consumption figure."""

    section_id: str
    value: float
    period_start: datetime | None
    period_end: datetime | None
    fetched_at: datetime


class SaurWaterDataUpdateCoordinator(DataUpdateCoordinator[ConsumptionData | None]):
    """Coordinator that periodically looks up the latest consumption reading."""

    def __init__(
        self,
        hass: HomeAssistant,
        *,
        entry: ConfigEntry,
        api: SaurApiClient,
        section_id: str,
    ) -> None:
        super().__init__(
            hass,
            _LOGGER,
            name="SAUR water",
            update_interval=DEFAULT_UPDATE_INTERVAL,
        )
        self._api = api
        self._entry = entry
        self._section_id = section_id
        self._lock = asyncio.Lock()
        self._torn_down = False
        self.state = DeviceState.UNINITIALIZED
        self.unavailable_reason: str | None = None

    @property
    def api(self) -> SaurApiClient:
        return self._api

    @property
    def section_id(self) -> str:
        return self._section_id

    @property
    def device_available(self) -> bool:
        return self.state is DeviceState.AVAILABLE

    async def async_initialize(self, email: str, password: str) -> bool:
        """Authenticate and run the first refresh.

        An authentication failure leaves the device unavailable and disables
        periodic refreshes until the credentials are changed.
        """

        async with self._lock:
            self.state = DeviceState.AUTHENTICATING
            try:
                await self._api.async_authenticate(email, password)
            except SaurApiError as err:
                _LOGGER.error("Authentication failed: %s", err)
                self._set_unavailable(REASON_AUTH_FAILED)
                self.update_interval = None
                return False

            self._set_available()

        await self.async_refresh()
        _LOGGER.debug("Section %s initialized", self._section_id)
        return True

    async def async_update_credentials(self, email: str, password: str) -> None:
        """Re-authenticate with new credentials and refresh immediately.

        Raises SaurAuthError when the new credentials are rejected.
        """

        async with self._lock:
            try:
                await self._api.async_authenticate(email, password)
            except SaurApiError as err:
                _LOGGER.error("Re-authentication failed: %s", err)
                self._set_unavailable(REASON_AUTH_FAILED)
                raise

            self.hass.config_entries.async_update_entry(
                self._entry,
                data={
                    **self._entry.data,
                    CONF_EMAIL: email,
                    CONF_PASSWORD: password,
                },
            )

        await self.async_refresh()
        self._set_available()

    async def async_teardown(self) -> None:
        """Stop periodic refreshes. Safe to call more than once."""

        if self._torn_down:
            return
        self._torn_down = True
        await self.async_shutdown()
        _LOGGER.debug("Stopped polling section %s", self._section_id)

    async def _async_update_data(self) -> ConsumptionData | None:
        """Look up the most recent reading, keeping the previous one on failure."""

        if self._lock.locked():
            _LOGGER.debug("Refresh already in progress, skipping")
            return self.data

        async with self._lock:
            try:
                reading = await async_find_latest_reading(
                    self._api, self._section_id, dt_util.now().date()
                )
            except SaurApiError as err:
                if isinstance(err, SaurUnauthorizedError) or err.status == 401:
                    _LOGGER.error("SAUR rejected the session: %s", err)
                    self._set_unavailable(REASON_AUTH_FAILED)
                else:
                    _LOGGER.warning("Failed to update consumption: %s", err)
                return self.data

        if reading is None:
            _LOGGER.debug(
                "No consumption data available for the last %s days", FALLBACK_DAYS
            )
            return self.data

        self._set_available()
        _LOGGER.debug("Consumption updated: %s m³", reading.value)
        return ConsumptionData(
            section_id=self._section_id,
            value=abs(reading.value),
            period_start=reading.period_start,
            period_end=reading.period_end,
            fetched_at=dt_util.utcnow(),
        )

    def _set_available(self) -> None:
        self.state = DeviceState.AVAILABLE
        self.unavailable_reason = None

    def _set_unavailable(self, reason: str) -> None:
        self.state = DeviceState.UNAVAILABLE
        self.unavailable_reason = reason


def candidate_dates(today: date, days: int = FALLBACK_DAYS) -> list[date]:
    """Return the days to probe, newest first."""

    return [today - timedelta(days=offset) for offset in range(days)]


async def async_find_latest_reading(
    api: SaurApiClient, section_id: str, today: date
) -> ConsumptionReading | None:
    """Probe today and the previous days one at a time until a reading turns up."""

    for day in candidate_dates(today):
        reading = await api.async_get_consumption(section_id, day)
        if reading is not None:
            return reading
    return None
