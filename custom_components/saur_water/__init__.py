"""SAUR water consumption integration."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.typing import ConfigType

from .api import SaurApiClient
from .const import (
    CONF_EMAIL,
    CONF_PASSWORD,
    CONF_SECTION_ID,
    DOMAIN,
    PLATFORMS,
)
from .coordinator import SaurWaterDataUpdateCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up via configuration.yaml is not supported."""

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up SAUR water from a config entry."""

    hass.data.setdefault(DOMAIN, {})

    section_id = str(entry.data[CONF_SECTION_ID])

    api_client = SaurApiClient.for_hass(hass)
    coordinator = SaurWaterDataUpdateCoordinator(
        hass,
        entry=entry,
        api=api_client,
        section_id=section_id,
    )

    if not await coordinator.async_initialize(
        entry.data[CONF_EMAIL], entry.data[CONF_PASSWORD]
    ):
        _LOGGER.warning(
            "Section %s could not be authenticated, sensors stay unavailable",
            section_id,
        )

    hass.data[DOMAIN][entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload an integration entry."""

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        coordinator: SaurWaterDataUpdateCoordinator | None = hass.data[DOMAIN].pop(
            entry.entry_id, None
        )
        if coordinator is not None:
            await coordinator.async_teardown()
    return unload_ok
