"""Config flow for the SAUR water integration."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult

from .api import SaurApiClient, SaurAuthError
from .const import (
    CONF_EMAIL,
    CONF_PASSWORD,
    CONF_SECTION_ID,
    DOMAIN,
    REASON_AUTH_FAILED,
)
from .coordinator import SaurWaterDataUpdateCoordinator

_LOGGER = logging.getLogger(__name__)


def _credentials_schema(email: str | None = None) -> vol.Schema:
    return vol.Schema(
        {
            vol.Required(CONF_EMAIL, default=email or vol.UNDEFINED): str,
            vol.Required(CONF_PASSWORD): str,
        }
    )


class SaurWaterConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for SAUR water."""

    VERSION = 1

    async def async_step_user(
        self, user_input: Mapping[str, Any] | None = None
    ) -> FlowResult:
        """Handle the login step."""

        errors: dict[str, str] = {}

        if user_input is None:
            return self.async_show_form(step_id="user", data_schema=_credentials_schema())

        email = user_input[CONF_EMAIL].strip()
        password = user_input[CONF_PASSWORD]
        client = SaurApiClient.for_hass(self.hass)

        try:
            session = await client.async_authenticate(email, password)
        except SaurAuthError as err:
            _LOGGER.debug("Login failed: %s", err)
            errors["base"] = "cannot_connect" if err.status is None else "invalid_auth"
        else:
            if not session.section_id:
                errors["base"] = "no_section"

        if errors:
            return self.async_show_form(
                step_id="user",
                data_schema=_credentials_schema(email),
                errors=errors,
            )

        await self.async_set_unique_id(session.section_id)
        self._abort_if_unique_id_configured()

        return self.async_create_entry(
            title=email,
            data={
                CONF_EMAIL: email,
                CONF_PASSWORD: password,
                CONF_SECTION_ID: session.section_id,
            },
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> SaurWaterOptionsFlow:
        """Get the options flow for this handler."""
        return SaurWaterOptionsFlow()


class SaurWaterOptionsFlow(config_entries.OptionsFlow):
    """Let the user change the account credentials."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        errors: dict[str, str] = {}
        current_email = self.config_entry.data.get(CONF_EMAIL)

        if user_input is not None:
            coordinator: SaurWaterDataUpdateCoordinator | None = self.hass.data.get(
                DOMAIN, {}
            ).get(self.config_entry.entry_id)
            if coordinator is None:
                errors["base"] = "not_loaded"
            else:
                try:
                    await coordinator.async_update_credentials(
                        user_input[CONF_EMAIL].strip(), user_input[CONF_PASSWORD]
                    )
                except SaurAuthError:
                    errors["base"] = REASON_AUTH_FAILED
                else:
                    return self.async_create_entry(title="", data={})
            current_email = user_input[CONF_EMAIL]

        return self.async_show_form(
            step_id="init",
            data_schema=_credentials_schema(current_email),
            errors=errors,
        )
