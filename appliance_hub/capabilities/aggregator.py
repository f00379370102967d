"""
Device status aggregation.

Builds a display snapshot of everything a device reports. For each
exposed status feature the feature cache decides whether the cached
value can be trusted; the rest are fetched concurrently and the snapshot
is rendered from the cache once every fetch has settled. A failing
feature only loses its own fields.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..config import AggregatorConfig, settings
from . import namespaces as ns
from . import protocols as keys
from .exceptions import DeviceContractError
from .formatting import format_enabled, format_enum, format_measure, format_on_off, format_percent
from .protocols import ConnectionMode, Device, Refreshable
from .states import (
    DiffuserSprayMode,
    OverTempType,
    RollerShutterStatus,
    SensitivityLevel,
    SprayMode,
    TempUnit,
    ThermostatMode,
    WorkMode,
)

logger = logging.getLogger("appliance_hub.capabilities.aggregator")

Fields = list[tuple[str, str]]
Renderer = Callable[[Device, dict[int, Any]], Fields]


@dataclass
class Snapshot:
    """Formatted status of one device at one point in time."""
    device_id: str
    fields: dict[str, str] = field(default_factory=dict)
    taken_at: datetime = field(default_factory=datetime.now)

    @property
    def has_any_reading(self) -> bool:
        return bool(self.fields)

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "fields": dict(self.fields),
            "has_any_reading": self.has_any_reading,
            "taken_at": self.taken_at.isoformat(),
        }


@dataclass(frozen=True)
class StatusFeature:
    """
    A feature that contributes fields to the status snapshot.

    namespaces lists what a fetch of this feature reads. A feature
    reading any namespace that must not be requested automatically is
    never fetched; values pushed into the cache still render.
    """
    key: str
    render: Renderer
    multi_channel: bool = False
    namespaces: frozenset[str] = frozenset()


# --- Renderers ---
#
# Each receives the cached values of one feature keyed by channel (only
# channels holding a value) and returns (label, text) pairs in display order.


def _render_light(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    if state is None:
        return []
    fields = [("Light State", format_on_off(state.is_on))]
    if state.luminance is not None:
        fields.append(("Brightness", format_percent(state.luminance)))
    return fields


def _render_electricity(device: Device, values: dict[int, Any]) -> Fields:
    reading = values.get(0)
    if reading is None:
        return []
    fields = []
    if reading.wattage is not None:
        fields.append(("Power", format_measure("wattage", reading.wattage)))
    if reading.voltage is not None:
        fields.append(("Voltage", format_measure("voltage", reading.voltage)))
    if reading.amperage is not None:
        fields.append(("Current", format_measure("amperage", reading.amperage)))
    return fields


def _render_thermostat(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    if state is None:
        return []
    fields = []
    if state.mode is not None:
        fields.append(("Mode", format_enum(ThermostatMode, state.mode)))
    if state.current_temperature is not None:
        fields.append(("Temperature", format_measure("temperature", state.current_temperature)))
    if state.target_temperature is not None:
        fields.append(("Target Temperature", format_measure("temperature", state.target_temperature)))
    if state.warning:
        fields.append(("Warning", "Active"))
    if state.window_open is not None:
        fields.append(("Window Opened", "Open" if state.window_open else "Closed"))
    if state.external_temperature is not None:
        fields.append(("External Sensor", format_measure("temperature", state.external_temperature)))
    if state.overheat_warning:
        fields.append(("Overheat Warning", "Active"))
    if state.humidity is not None:
        fields.append(("Sensor Humidity", format_measure("humidity", state.humidity)))
    if state.frost_warning:
        fields.append(("Frost Warning", "Active"))
    return fields


def _render_sensor(device: Device, values: dict[int, Any]) -> Fields:
    reading = values.get(0)
    if reading is None:
        return []
    fields = []
    if reading.temperature is not None:
        fields.append(("Ambient Temperature", format_measure("temperature", reading.temperature)))
    if reading.humidity is not None:
        fields.append(("Humidity", format_measure("humidity", reading.humidity)))
    return fields


def _render_consumption(device: Device, values: dict[int, Any]) -> Fields:
    reading = values.get(0)
    if reading is None:
        return []
    if reading.energy_wh is None:
        return [("Consumption", "N/A")]
    return [("Consumption", format_measure("energy", reading.energy_wh / 1000))]


def _render_consumption_config(device: Device, values: dict[int, Any]) -> Fields:
    config = values.get(0)
    if config is None:
        return []
    parts = []
    if config.voltage_ratio is not None:
        parts.append(f"voltageRatio: {config.voltage_ratio}")
    if config.electricity_ratio is not None:
        parts.append(f"electricityRatio: {config.electricity_ratio}")
    if config.max_current is not None:
        parts.append(f"maxCurrent: {format_measure('current', config.max_current)}")
    return [("Consumption Config", ", ".join(parts))] if parts else []


def _render_presence(device: Device, values: dict[int, Any]) -> Fields:
    reading = values.get(0)
    if reading is None:
        return []
    fields = [("Presence", "Present" if reading.is_present else "Absent")]
    if reading.distance is not None:
        fields.append(("Distance", format_measure("distance", reading.distance)))
    if reading.detected_at is not None:
        fields.append(("Last Detection", reading.detected_at.strftime("%Y-%m-%d %H:%M:%S")))
    if reading.light_lux is not None:
        fields.append(("Light", f"{reading.light_lux} lx"))
    return fields


def _render_garage(device: Device, values: dict[int, Any]) -> Fields:
    single = len(values) == 1 and 0 in values
    return [
        ("Garage Door" if single else f"Garage Door {channel}", "Open" if state.is_open else "Closed")
        for channel, state in sorted(values.items())
    ]


def _render_roller_shutter(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    if state is None:
        return []
    fields = []
    if state.position is not None:
        fields.append(("Position", format_percent(state.position)))
    if state.status != RollerShutterStatus.UNKNOWN:
        fields.append(("Shutter", format_enum(RollerShutterStatus, state.status)))
    return fields


def _render_diffuser(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    if state is None:
        return []
    fields = []
    if state.light_on is not None:
        fields.append(("Diffuser Light", format_on_off(state.light_on)))
    if state.luminance is not None:
        fields.append(("Diffuser Brightness", format_percent(state.luminance)))
    if state.spray_mode is not None:
        fields.append(("Diffuser Spray", format_enum(DiffuserSprayMode, state.spray_mode)))
    return fields


def _render_spray(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    if state is None:
        return []
    return [("Spray Mode", format_enum(SprayMode, state.mode))]


def _render_timer(device: Device, values: dict[int, Any]) -> Fields:
    digest = values.get(0)
    return [("Timers", f"{digest.count} active")] if digest is not None else []


def _render_trigger(device: Device, values: dict[int, Any]) -> Fields:
    digest = values.get(0)
    return [("Triggers", f"{digest.count} active")] if digest is not None else []


def _render_toggle(device: Device, values: dict[int, Any]) -> Fields:
    # With a power reading shown, "Power" would be ambiguous
    base = "State" if device.cache.has_value(keys.ELECTRICITY, 0) else "Power"
    device_channels = list(device.channels or ())
    if device_channels:
        single = len(device_channels) == 1
    else:
        single = list(values) == [0]
    return [
        (base if single else f"Socket {channel} {base}", format_on_off(state.is_on))
        for channel, state in sorted(values.items())
    ]


def _render_child_lock(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    return [("Child Lock", format_on_off(state.locked))] if state is not None else []


def _render_screen(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    if state is None:
        return []
    fields = []
    if state.active is not None:
        fields.append(("Screen Brightness (active)", format_measure("brightness", state.active)))
    if state.standby is not None:
        fields.append(("Screen Brightness (sleep)", format_measure("brightness", state.standby)))
    return fields


def _render_temp_unit(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    return [("Temperature Unit", format_enum(TempUnit, state.unit))] if state is not None else []


def _render_dnd(device: Device, values: dict[int, Any]) -> Fields:
    state = values.get(0)
    return [("Do Not Disturb", format_enabled(state.enabled))] if state is not None else []


def _render_over_temp(device: Device, values: dict[int, Any]) -> Fields:
    config = values.get(0)
    if config is None:
        return []
    fields = [("Over-temperature Protection", format_enabled(config.enabled))]
    if config.type is not None:
        fields.append(("Over-temperature Type", format_enum(OverTempType, config.type)))
    return fields


def _render_presence_config(device: Device, values: dict[int, Any]) -> Fields:
    config = values.get(0)
    if config is None:
        return []
    fields = []
    if config.work_mode is not None:
        fields.append(("Work Mode", format_enum(WorkMode, config.work_mode)))
    if config.test_mode is not None:
        fields.append(("Test Mode", format_enabled(config.test_mode)))
    if config.sensitivity is not None:
        fields.append(("Sensitivity", format_enum(SensitivityLevel, config.sensitivity)))
    if config.distance is not None:
        fields.append(("Distance Threshold", format_measure("distance", config.distance)))
    if config.no_body_time is not None:
        fields.append(("No Body Time", f"{config.no_body_time} s"))
    return fields


def _feature(key: str, render: Renderer, *namespaces: str, multi_channel: bool = False) -> StatusFeature:
    return StatusFeature(key, render, multi_channel=multi_channel, namespaces=frozenset(namespaces))


# Display order of the snapshot: readings first, toggle last among them
# so its label can depend on whether an electricity reading made it in,
# then configuration.
STATUS_FEATURES: tuple[StatusFeature, ...] = (
    _feature(keys.LIGHT, _render_light, ns.LIGHT),
    _feature(keys.ELECTRICITY, _render_electricity, ns.ELECTRICITY),
    _feature(
        keys.THERMOSTAT, _render_thermostat,
        ns.THERMOSTAT_MODE, ns.THERMOSTAT_MODE_B, ns.THERMOSTAT_WINDOW_OPENED,
        ns.THERMOSTAT_OVERHEAT, ns.THERMOSTAT_CALIBRATION, ns.THERMOSTAT_FROST,
    ),
    _feature(keys.SENSOR, _render_sensor, ns.SENSOR_LATESTX),
    _feature(keys.CONSUMPTION, _render_consumption, ns.CONSUMPTIONX, ns.CONSUMPTION),
    _feature(keys.CONSUMPTION_CONFIG, _render_consumption_config, ns.CONSUMPTION_CONFIG),
    _feature(keys.PRESENCE, _render_presence, ns.SENSOR_LATESTX),
    _feature(keys.GARAGE, _render_garage, ns.GARAGE_DOOR_STATE, multi_channel=True),
    _feature(keys.ROLLER_SHUTTER, _render_roller_shutter, ns.ROLLER_SHUTTER_POSITION, ns.ROLLER_SHUTTER_STATE),
    _feature(keys.DIFFUSER, _render_diffuser, ns.DIFFUSER_LIGHT, ns.DIFFUSER_SPRAY),
    _feature(keys.SPRAY, _render_spray, ns.SPRAY),
    _feature(keys.TIMER, _render_timer, ns.DIGEST_TIMERX),
    _feature(keys.TRIGGER, _render_trigger, ns.DIGEST_TRIGGERX),
    _feature(keys.TOGGLE, _render_toggle, ns.TOGGLEX, ns.TOGGLE, multi_channel=True),
    # Configuration
    _feature(keys.CHILD_LOCK, _render_child_lock, ns.PHYSICAL_LOCK),
    _feature(keys.SCREEN, _render_screen, ns.SCREEN_BRIGHTNESS),
    _feature(keys.TEMP_UNIT, _render_temp_unit, ns.TEMP_UNIT),
    _feature(keys.DND, _render_dnd, ns.DND_MODE),
    _feature(keys.CONFIG, _render_over_temp, ns.OVER_TEMP),
    _feature(keys.PRESENCE_CONFIG, _render_presence_config, ns.PRESENCE_CONFIG),
)


class StateAggregator:
    """
    Produces status snapshots for connected devices.

    Fetches for a single aggregate call run concurrently. They are
    shielded from the caller: if the caller stops waiting, in-flight
    fetches still complete and update the cache.
    """

    def __init__(
        self,
        config: Optional[AggregatorConfig] = None,
        features: Sequence[StatusFeature] = STATUS_FEATURES,
    ):
        self.config = config or settings.aggregator
        self.features = tuple(features)
        self._inflight: set[asyncio.Task] = set()

    async def aggregate(self, device: Device) -> tuple[Snapshot, bool]:
        """
        Aggregate the current status of a device.

        Returns:
            (snapshot, has_any_reading). A disconnected device yields an
            empty snapshot and False without issuing any fetch.

        Raises:
            DeviceContractError: if device is None
        """
        if device is None:
            raise DeviceContractError("status aggregation")

        snapshot = Snapshot(device_id=device.uuid)
        if not device.connected:
            logger.debug("Device %s not connected, skipping status", device.uuid)
            return snapshot, False

        connection = self._connection_mode(device)
        if connection == ConnectionMode.PUSH and self.config.push_settle_seconds > 0:
            # Give pending push notifications a moment to land in the cache
            await asyncio.sleep(self.config.push_settle_seconds)

        exposed = []
        pending = []
        for spec in self.features:
            try:
                feature = device.feature(spec.key)
                if feature is None:
                    continue
                channels = self._channels_to_fetch(device, spec, feature, connection)
            except Exception as e:
                logger.debug("Skipping %s for %s: %s", spec.key, device.uuid, e, exc_info=True)
                continue
            exposed.append(spec)
            pending.extend((spec.key, channel, feature) for channel in channels)

        if pending:
            await self._fetch_all(device, pending)

        for spec in exposed:
            snapshot.fields.update(self._render(device, spec))

        logger.debug(
            "Snapshot for %s: %d fields (%d fetched)",
            device.uuid,
            len(snapshot.fields),
            len(pending),
        )
        return snapshot, snapshot.has_any_reading

    @property
    def inflight(self) -> int:
        """Number of fetches still running."""
        return len(self._inflight)

    def _channels_to_fetch(
        self,
        device: Device,
        spec: StatusFeature,
        feature: Any,
        connection: ConnectionMode,
    ) -> list[int]:
        if not isinstance(feature, Refreshable):
            return []
        blocked = sorted(n for n in spec.namespaces if not ns.is_readable(n))
        if blocked:
            logger.debug("Not fetching %s for %s, reads %s", spec.key, device.uuid, ", ".join(blocked))
            return []
        poll_only = spec.key in self.config.poll_only_features
        return [
            channel
            for channel in self._channels(device, spec)
            if device.cache.needs_fetch(spec.key, channel, connection, poll_only=poll_only)
        ]

    async def _fetch_all(self, device: Device, pending: list[tuple[str, int, Any]]) -> None:
        tasks = []
        for key, channel, feature in pending:
            task = asyncio.create_task(
                self._fetch_one(device, key, channel, feature),
                name=f"refresh:{device.uuid}:{key}:{channel}",
            )
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)

        await asyncio.gather(*(asyncio.shield(t) for t in tasks), return_exceptions=True)

    async def _fetch_one(self, device: Device, key: str, channel: int, feature: Refreshable) -> None:
        try:
            await feature.refresh(channel)
        except Exception as e:
            logger.debug("Fetch of %s[%d] failed for %s: %s", key, channel, device.uuid, e, exc_info=True)
            device.cache.record_failure(key, channel, e)

    def _channels(self, device: Device, spec: StatusFeature) -> list[int]:
        if not spec.multi_channel:
            return [0]
        return list(device.channels or ()) or [0]

    def _render(self, device: Device, spec: StatusFeature) -> Fields:
        try:
            channels = set(self._channels(device, spec))
            if spec.multi_channel:
                channels.update(device.cache.channels(spec.key))
            values = {
                channel: device.cache.value(spec.key, channel)
                for channel in sorted(channels)
                if device.cache.has_value(spec.key, channel)
            }
            if not values:
                return []
            return spec.render(device, values)
        except Exception as e:
            logger.debug("Could not format %s for %s: %s", spec.key, device.uuid, e, exc_info=True)
            return []

    @staticmethod
    def _connection_mode(device: Device) -> ConnectionMode:
        try:
            return ConnectionMode(device.connection)
        except Exception as e:
            logger.debug("Connection mode of %s unavailable: %s", device.uuid, e)
            return ConnectionMode.UNKNOWN


# Global aggregator instance
state_aggregator = StateAggregator()
