"""Constants for the SAUR water integration."""

from __future__ import annotations

from datetime import timedelta

from homeassistant.const import Platform

DOMAIN = "saur_water"
PLATFORMS: list[Platform] = [Platform.SENSOR]
DEFAULT_UPDATE_INTERVAL = timedelta(minutes=15)
FALLBACK_DAYS = 8
CONF_EMAIL = "email"
CONF_PASSWORD = "password"
CONF_SECTION_ID = "section_id"

API_BASE_URL = "https://apib2c.azure.saurclient.fr"
AUTH_ENDPOINT = "/admin/auth"
CONSUMPTION_ENDPOINT = "/deli/section_subscription"

# Fixed values the provider expects verbatim on login.
AUTH_CLIENT_ID = "frontjs-client"
AUTH_GRANT_TYPE = "password"
AUTH_SCOPE = "api-scope"

REASON_AUTH_FAILED = "auth_failed"

SENSOR_KEY_MEASURE = "measure_water"
SENSOR_KEY_METER = "meter_water"
