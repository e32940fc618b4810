"""Diagnostics support for SAUR water integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CONF_EMAIL, CONF_PASSWORD, DOMAIN
from .coordinator import ConsumptionData, SaurWaterDataUpdateCoordinator

TO_REDACT = {CONF_EMAIL, CONF_PASSWORD}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""

    coordinator: SaurWaterDataUpdateCoordinator = hass.data[DOMAIN][entry.entry_id]
    data: ConsumptionData | None = coordinator.data
    session = coordinator.api.session

    return {
        "entry": async_redact_data(dict(entry.data), TO_REDACT),
        "state": str(coordinator.state),
        "unavailable_reason": coordinator.unavailable_reason,
        "session_valid": coordinator.api.is_session_valid(),
        "session_expires_at": session.expires_at.isoformat() if session else None,
        "value": data.value if data else None,
        "period_start": data.period_start.isoformat()
        if data and data.period_start
        else None,
        "period_end": data.period_end.isoformat() if data and data.period_end else None,
        "fetched_at": data.fetched_at.isoformat() if data else None,
    }
