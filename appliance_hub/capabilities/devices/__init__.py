"""
Device implementations for the capability system.

Import implementations here to make them available.
"""

from .base import ApplianceDevice
from .mock import (
    MockChildLock,
    MockClimateSensor,
    MockConsumption,
    MockConsumptionConfig,
    MockDiffuser,
    MockDnd,
    MockElectricity,
    MockGarage,
    MockLight,
    MockOverTemp,
    MockPresence,
    MockPresenceConfig,
    MockRollerShutter,
    MockScreen,
    MockSpray,
    MockTempUnit,
    MockThermostat,
    MockTimer,
    MockToggle,
    build_climate_sensor,
    build_diffuser,
    build_garage_opener,
    build_humidifier,
    build_light_bulb,
    build_power_strip,
    build_presence_sensor,
    build_roller_shutter,
    build_smart_plug,
    build_thermostat,
    build_wall_thermostat,
    register_test_devices,
)

__all__ = [
    "ApplianceDevice",
    # Mock features
    "MockToggle",
    "MockLight",
    "MockElectricity",
    "MockConsumption",
    "MockThermostat",
    "MockGarage",
    "MockRollerShutter",
    "MockSpray",
    "MockDiffuser",
    "MockPresence",
    "MockTimer",
    "MockChildLock",
    "MockScreen",
    "MockTempUnit",
    "MockDnd",
    "MockOverTemp",
    "MockClimateSensor",
    "MockConsumptionConfig",
    "MockPresenceConfig",
    # Mock devices
    "build_smart_plug",
    "build_power_strip",
    "build_light_bulb",
    "build_thermostat",
    "build_wall_thermostat",
    "build_climate_sensor",
    "build_garage_opener",
    "build_roller_shutter",
    "build_diffuser",
    "build_humidifier",
    "build_presence_sensor",
    "register_test_devices",
]
