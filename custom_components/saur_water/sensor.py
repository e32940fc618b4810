"""Sensor platform for SAUR water consumption."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import UnitOfVolume
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, SENSOR_KEY_MEASURE, SENSOR_KEY_METER
from .coordinator import ConsumptionData, SaurWaterDataUpdateCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up SAUR water sensors based on a config entry."""

    coordinator: SaurWaterDataUpdateCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities(
        [
            SaurWaterMeasureSensor(coordinator),
            SaurWaterMeterSensor(coordinator),
        ]
    )


class SaurWaterBaseSensor(CoordinatorEntity[SaurWaterDataUpdateCoordinator], SensorEntity):
    """Base entity shared behaviour."""

    _attr_has_entity_name = True
    _attr_native_unit_of_measurement = UnitOfVolume.CUBIC_METERS
    _key: str

    def __init__(self, coordinator: SaurWaterDataUpdateCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{coordinator.section_id}_{self._key}"

    @property
    def device_info(self) -> DeviceInfo:
        return DeviceInfo(
            identifiers={(DOMAIN, self.coordinator.section_id)},
            name="SAUR water meter",
            manufacturer="SAUR",
        )

    @property
    def available(self) -> bool:
        return super().available and self.coordinator.device_available

    @property
    def native_value(self) -> float | None:
        data: ConsumptionData | None = self.coordinator.data
        return data.value if data else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data: ConsumptionData | None = self.coordinator.data
        if not data:
            return {}
        return {
            "section_id": data.section_id,
            "period_start": data.period_start.isoformat() if data.period_start else None,
            "period_end": data.period_end.isoformat() if data.period_end else None,
        }


class SaurWaterMeasureSensor(SaurWaterBaseSensor):
    """Latest daily consumption."""

    _key = SENSOR_KEY_MEASURE
    _attr_name = "Water consumption"
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:water"


class SaurWaterMeterSensor(SaurWaterBaseSensor):
    """Consumption for the reported period, reset at the start of each period."""

    _key = SENSOR_KEY_METER
    _attr_name = "Water meter"
    _attr_device_class = SensorDeviceClass.WATER
    _attr_state_class = SensorStateClass.TOTAL

    @property
    def last_reset(self) -> datetime | None:
        data: ConsumptionData | None = self.coordinator.data
        return data.period_start if data else None
