"""
Mock device implementations for testing.

These devices simulate real appliances without requiring a transport.
Each mock feature keeps a simulated device-side state per channel;
control calls change it and write the result to the device cache, the
way a device's acknowledgement would, and refresh() copies it into the
cache the way a fetch response would.
"""

import logging
from dataclasses import replace
from typing import Any, Optional

from .. import namespaces as ns
from .. import protocols as keys
from ..protocols import ConnectionMode
from ..state_cache import FeatureCache
from ..states import (
    ChildLockState,
    ConsumptionConfig,
    ConsumptionReading,
    DiffuserSprayMode,
    DiffuserState,
    DigestState,
    DndState,
    ElectricityReading,
    GarageDoorState,
    LightState,
    OverTempConfig,
    OverTempType,
    PresenceConfigState,
    PresenceReading,
    RollerShutterState,
    RollerShutterStatus,
    ScreenBrightnessState,
    SensitivityLevel,
    SprayMode,
    SprayState,
    TempHumidityReading,
    TempUnit,
    TempUnitState,
    ThermostatMode,
    ThermostatState,
    ToggleState,
    WorkMode,
)
from .base import ApplianceDevice

logger = logging.getLogger("appliance_hub.capabilities.devices.mock")


class MockFeature:
    """Simulated device-side state for one feature."""

    key = ""

    def __init__(self, cache: FeatureCache, initial: Optional[dict[int, Any]] = None):
        self._cache = cache
        self._state: dict[int, Any] = dict(initial or {})
        self.refresh_count = 0

    def state(self, channel: int = 0) -> Any:
        return self._state.get(channel)

    async def refresh(self, channel: int = 0) -> None:
        self.refresh_count += 1
        if channel not in self._state:
            raise LookupError(f"{self.key} has no channel {channel}")
        self._cache.set(self.key, channel, replace(self._state[channel]))

    def _store(self, channel: int, value: Any) -> None:
        self._state[channel] = value
        self._cache.set(self.key, channel, replace(value))


class MockToggle(MockFeature):
    key = keys.TOGGLE

    async def set(self, *, on: bool, channel: int = 0) -> dict[str, Any]:
        self._store(channel, ToggleState(is_on=on))
        logger.info("[MOCK] toggle channel %d turned %s", channel, "ON" if on else "OFF")
        return {"channel": channel, "on": on}


class MockLight(MockFeature):
    key = keys.LIGHT

    async def set(
        self,
        *,
        channel: int = 0,
        on: Optional[bool] = None,
        rgb: Optional[tuple[int, int, int]] = None,
        luminance: Optional[int] = None,
        temperature: Optional[int] = None,
        gradual: Optional[bool] = None,
    ) -> dict[str, Any]:
        state = self._state.get(channel, LightState())
        changes: dict[str, Any] = {}
        if on is not None:
            changes["is_on"] = on
        if rgb is not None:
            changes["rgb"] = tuple(rgb)
        if luminance is not None:
            changes["luminance"] = int(luminance)
            changes.setdefault("is_on", True)
        if temperature is not None:
            changes["temperature"] = int(temperature)
        state = replace(state, **changes)
        self._store(channel, state)
        logger.info("[MOCK] light channel %d set to %s", channel, state)
        return {"channel": channel, "on": state.is_on, "luminance": state.luminance}


class MockElectricity(MockFeature):
    key = keys.ELECTRICITY


class MockConsumption(MockFeature):
    key = keys.CONSUMPTION


class MockThermostat(MockFeature):
    key = keys.THERMOSTAT

    async def set(
        self,
        *,
        channel: int = 0,
        mode: Optional[int] = None,
        onoff: Optional[int] = None,
        heat_temperature: Optional[float] = None,
        cool_temperature: Optional[float] = None,
        eco_temperature: Optional[float] = None,
        manual_temperature: Optional[float] = None,
        partial_update: bool = False,
    ) -> dict[str, Any]:
        state = self._state.get(channel, ThermostatState())
        if mode is not None:
            state = replace(state, mode=ThermostatMode(mode))
        if onoff is not None:
            state = replace(state, is_on=bool(onoff))

        targets = {
            ThermostatMode.HEAT: heat_temperature,
            ThermostatMode.COOL: cool_temperature,
            ThermostatMode.ECONOMY: eco_temperature,
            ThermostatMode.MANUAL: manual_temperature,
        }
        target = targets.get(state.mode)
        if target is not None:
            state = replace(state, target_temperature=float(target))

        self._store(channel, state)
        logger.info("[MOCK] thermostat channel %d set to %s", channel, state)
        return {"channel": channel, "mode": state.mode, "target": state.target_temperature}


class MockGarage(MockFeature):
    key = keys.GARAGE

    async def set(self, *, onoff: int, channel: int = 0) -> dict[str, Any]:
        self._store(channel, GarageDoorState(is_open=bool(onoff)))
        logger.info("[MOCK] garage door %d %s", channel, "opening" if onoff else "closing")
        return {"channel": channel, "open": bool(onoff)}


class MockRollerShutter(MockFeature):
    key = keys.ROLLER_SHUTTER

    async def set_position(self, *, position: int, channel: int = 0) -> dict[str, Any]:
        state = self._state.get(channel, RollerShutterState())
        if position == -1:
            state = replace(state, status=RollerShutterStatus.IDLE)
        else:
            state = RollerShutterState(position=int(position), status=RollerShutterStatus.IDLE)
        self._store(channel, state)
        return {"channel": channel, "position": state.position}


class MockSpray(MockFeature):
    key = keys.SPRAY

    async def set(self, *, mode: int, channel: int = 0) -> dict[str, Any]:
        self._store(channel, SprayState(mode=SprayMode(mode)))
        return {"channel": channel, "mode": mode}


class MockDiffuser(MockFeature):
    key = keys.DIFFUSER

    async def set_light(
        self,
        *,
        channel: int = 0,
        on: Optional[bool] = None,
        rgb: Optional[tuple[int, int, int]] = None,
        luminance: Optional[int] = None,
    ) -> dict[str, Any]:
        state = self._state.get(channel, DiffuserState())
        if on is not None:
            state = replace(state, light_on=on)
        if luminance is not None:
            state = replace(state, luminance=int(luminance))
        self._store(channel, state)
        return {"channel": channel, "on": state.light_on}

    async def set_spray(self, *, mode: int, channel: int = 0) -> dict[str, Any]:
        state = self._state.get(channel, DiffuserState())
        self._store(channel, replace(state, spray_mode=DiffuserSprayMode(mode)))
        return {"channel": channel, "mode": mode}


class MockPresence(MockFeature):
    key = keys.PRESENCE

    def __init__(self, cache: FeatureCache, initial: Optional[dict[int, Any]] = None):
        super().__init__(cache, initial)
        self.config: dict[str, Any] = {}
        self.studying = False

    async def set_config(self, *, config_data: dict[str, Any], channel: int = 0) -> dict[str, Any]:
        self.config.update(config_data)
        return {"channel": channel, "config": dict(self.config)}

    async def set_study(self, *, status: int, channel: int = 0, value: Optional[int] = None) -> dict[str, Any]:
        self.studying = bool(status)
        return {"channel": channel, "studying": self.studying}


class MockTimer(MockFeature):
    key = keys.TIMER

    def __init__(self, cache: FeatureCache):
        super().__init__(cache, {0: DigestState(count=0)})
        self.timers: dict[str, dict[str, Any]] = {}

    async def set(
        self,
        *,
        onoff: int,
        type: int,
        time: int,
        channel: int = 0,
        id: Optional[str] = None,
    ) -> dict[str, Any]:
        timer_id = id or f"timer-{len(self.timers) + 1}"
        self.timers[timer_id] = {"channel": channel, "onoff": onoff, "type": type, "time": time}
        self._store(0, DigestState(count=len(self.timers)))
        return {"id": timer_id}

    async def delete(self, *, timer_id: str, channel: int = 0) -> dict[str, Any]:
        if timer_id not in self.timers:
            raise KeyError(f"Unknown timer: {timer_id}")
        del self.timers[timer_id]
        self._store(0, DigestState(count=len(self.timers)))
        return {"id": timer_id}


class MockChildLock(MockFeature):
    key = keys.CHILD_LOCK

    async def set(self, *, lock: int, channel: int = 0) -> dict[str, Any]:
        self._store(channel, ChildLockState(locked=bool(lock)))
        return {"channel": channel, "locked": bool(lock)}


class MockScreen(MockFeature):
    key = keys.SCREEN

    async def set_brightness(self, *, brightness: int, channel: int = 0) -> dict[str, Any]:
        state = self._state.get(channel, ScreenBrightnessState())
        self._store(channel, replace(state, active=float(brightness)))
        return {"channel": channel, "brightness": brightness}


class MockTempUnit(MockFeature):
    key = keys.TEMP_UNIT

    async def set(self, *, unit: int, channel: int = 0) -> dict[str, Any]:
        # Control schema is 0=Celsius, 1=Fahrenheit
        state = TempUnitState(unit=TempUnit.FAHRENHEIT if unit else TempUnit.CELSIUS)
        self._store(channel, state)
        return {"channel": channel, "unit": state.unit}


class MockDnd(MockFeature):
    key = keys.DND

    async def set(self, *, mode: int) -> dict[str, Any]:
        self._store(0, DndState(enabled=bool(mode)))
        logger.info("[MOCK] do not disturb %s", "enabled" if mode else "disabled")
        return {"mode": mode}


class MockOverTemp(MockFeature):
    key = keys.CONFIG

    async def set_over_temp(self, *, enable: bool) -> dict[str, Any]:
        state = self._state.get(0, OverTempConfig())
        self._store(0, replace(state, enabled=enable))
        return {"enable": enable}


class MockClimateSensor(MockFeature):
    """Temperature/humidity readings, status only."""
    key = keys.SENSOR


class MockConsumptionConfig(MockFeature):
    key = keys.CONSUMPTION_CONFIG


class MockPresenceConfig(MockFeature):
    key = keys.PRESENCE_CONFIG


# --- Device builders ---


def build_smart_plug(
    uuid: str,
    name: str,
    connection: ConnectionMode = ConnectionMode.PUSH,
    wattage: float = 0.0,
) -> ApplianceDevice:
    """Single-outlet plug with power metering, timers and child lock."""
    cache = FeatureCache()
    return ApplianceDevice(
        uuid,
        name,
        abilities=(
            ns.TOGGLEX,
            ns.ELECTRICITY,
            ns.CONSUMPTIONX,
            ns.CONSUMPTION_CONFIG,
            ns.TIMERX,
            ns.DIGEST_TIMERX,
            ns.PHYSICAL_LOCK,
        ),
        connection=connection,
        cache=cache,
        device_type="plug",
        features={
            keys.TOGGLE: MockToggle(cache, {0: ToggleState(is_on=True)}),
            keys.ELECTRICITY: MockElectricity(
                cache, {0: ElectricityReading(wattage=wattage, voltage=230.0, amperage=wattage / 230.0)}
            ),
            keys.CONSUMPTION: MockConsumption(cache, {0: ConsumptionReading(energy_wh=1250.0)}),
            keys.CONSUMPTION_CONFIG: MockConsumptionConfig(
                cache, {0: ConsumptionConfig(voltage_ratio=188, electricity_ratio=102, max_current=16.0)}
            ),
            keys.TIMER: MockTimer(cache),
            keys.CHILD_LOCK: MockChildLock(cache, {0: ChildLockState(locked=False)}),
        },
    )


def build_power_strip(uuid: str, name: str, outlets: int = 4) -> ApplianceDevice:
    """Multi-outlet strip, one toggle channel per outlet."""
    cache = FeatureCache()
    channels = tuple(range(outlets))
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.TOGGLEX,),
        channels=channels,
        connection=ConnectionMode.PUSH,
        cache=cache,
        device_type="strip",
        features={
            keys.TOGGLE: MockToggle(cache, {c: ToggleState(is_on=False) for c in channels}),
        },
    )


def build_light_bulb(uuid: str, name: str) -> ApplianceDevice:
    """Dimmable colour bulb."""
    cache = FeatureCache()
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.LIGHT, ns.TOGGLEX),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="bulb",
        features={
            keys.LIGHT: MockLight(cache, {0: LightState(is_on=False, luminance=80)}),
            keys.TOGGLE: MockToggle(cache, {0: ToggleState(is_on=False)}),
        },
    )


def build_thermostat(uuid: str, name: str) -> ApplianceDevice:
    """Thermostat valve in heating mode."""
    cache = FeatureCache()
    state = ThermostatState(
        is_on=True,
        mode=ThermostatMode.HEAT,
        current_temperature=19.5,
        target_temperature=21.0,
    )
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.THERMOSTAT_MODE,),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="thermostat",
        features={keys.THERMOSTAT: MockThermostat(cache, {0: state})},
    )


def build_wall_thermostat(uuid: str, name: str) -> ApplianceDevice:
    """Wall thermostat with an external sensor, a screen and over-temperature protection."""
    cache = FeatureCache()
    state = ThermostatState(
        is_on=True,
        mode=ThermostatMode.ECONOMY,
        current_temperature=20.8,
        target_temperature=18.0,
        window_open=False,
        external_temperature=22.45,
        humidity=41.25,
    )
    return ApplianceDevice(
        uuid,
        name,
        abilities=(
            ns.THERMOSTAT_MODE,
            ns.THERMOSTAT_WINDOW_OPENED,
            ns.THERMOSTAT_OVERHEAT,
            ns.THERMOSTAT_CALIBRATION,
            ns.SCREEN_BRIGHTNESS,
            ns.TEMP_UNIT,
            ns.DND_MODE,
            ns.OVER_TEMP,
        ),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="thermostat",
        features={
            keys.THERMOSTAT: MockThermostat(cache, {0: state}),
            keys.SCREEN: MockScreen(cache, {0: ScreenBrightnessState(active=80.0, standby=10.0)}),
            keys.TEMP_UNIT: MockTempUnit(cache, {0: TempUnitState(unit=TempUnit.CELSIUS)}),
            keys.DND: MockDnd(cache, {0: DndState(enabled=False)}),
            keys.CONFIG: MockOverTemp(
                cache, {0: OverTempConfig(enabled=True, type=OverTempType.EARLY_WARNING)}
            ),
        },
    )


def build_climate_sensor(uuid: str, name: str) -> ApplianceDevice:
    cache = FeatureCache()
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.SENSOR_LATESTX,),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="sensor",
        features={
            keys.SENSOR: MockClimateSensor(cache, {0: TempHumidityReading(temperature=23.15, humidity=48.0)}),
        },
    )


def build_garage_opener(uuid: str, name: str) -> ApplianceDevice:
    cache = FeatureCache()
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.GARAGE_DOOR_STATE,),
        connection=ConnectionMode.PUSH,
        cache=cache,
        device_type="garage",
        features={keys.GARAGE: MockGarage(cache, {0: GarageDoorState(is_open=False)})},
    )


def build_roller_shutter(uuid: str, name: str) -> ApplianceDevice:
    cache = FeatureCache()
    state = RollerShutterState(position=100, status=RollerShutterStatus.IDLE)
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.ROLLER_SHUTTER_POSITION, ns.ROLLER_SHUTTER_STATE),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="shutter",
        features={keys.ROLLER_SHUTTER: MockRollerShutter(cache, {0: state})},
    )


def build_diffuser(uuid: str, name: str) -> ApplianceDevice:
    cache = FeatureCache()
    state = DiffuserState(light_on=True, luminance=40, spray_mode=DiffuserSprayMode.OFF)
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.DIFFUSER_LIGHT, ns.DIFFUSER_SPRAY),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="diffuser",
        features={keys.DIFFUSER: MockDiffuser(cache, {0: state})},
    )


def build_humidifier(uuid: str, name: str) -> ApplianceDevice:
    cache = FeatureCache()
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.SPRAY,),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="humidifier",
        features={keys.SPRAY: MockSpray(cache, {0: SprayState(mode=SprayMode.OFF)})},
    )


def build_presence_sensor(uuid: str, name: str) -> ApplianceDevice:
    cache = FeatureCache()
    reading = PresenceReading(is_present=True, distance=1.234, light_lux=120)
    config = PresenceConfigState(
        work_mode=WorkMode.BIOLOGICAL_DETECTION_ONLY,
        test_mode=False,
        sensitivity=SensitivityLevel.BALANCE,
        distance=3.5,
        no_body_time=30,
    )
    return ApplianceDevice(
        uuid,
        name,
        abilities=(ns.SENSOR_LATESTX, ns.PRESENCE_CONFIG, ns.PRESENCE_STUDY),
        connection=ConnectionMode.POLL,
        cache=cache,
        device_type="sensor",
        features={
            keys.PRESENCE: MockPresence(cache, {0: reading}),
            keys.PRESENCE_CONFIG: MockPresenceConfig(cache, {0: config}),
        },
    )


def register_test_devices() -> list[str]:
    """
    Register mock devices for testing.

    Returns list of registered device IDs.
    """
    from ..device_registry import device_registry

    devices = [
        build_smart_plug("desk_plug", "Desk Plug", wattage=42.5),
        build_power_strip("office_strip", "Office Strip"),
        build_light_bulb("living_room_bulb", "Living Room Bulb"),
        build_thermostat("bedroom_thermostat", "Bedroom Thermostat"),
        build_wall_thermostat("hall_thermostat", "Hall Thermostat"),
        build_climate_sensor("attic_sensor", "Attic Sensor"),
        build_garage_opener("garage_door", "Garage Door"),
        build_roller_shutter("kitchen_shutter", "Kitchen Shutter"),
        build_diffuser("bathroom_diffuser", "Bathroom Diffuser"),
        build_humidifier("nursery_humidifier", "Nursery Humidifier"),
        build_presence_sensor("hallway_sensor", "Hallway Sensor"),
    ]

    registered = []
    for device in devices:
        device_registry.register(device)
        registered.append(device.uuid)

    logger.info("Registered %d test devices", len(registered))
    return registered
