"""
Tests for status aggregation.

Covers:
1. Disconnected devices
2. Fetch-or-reuse decisions
3. Failure isolation
4. Field formatting and labels
5. Namespaces never read automatically
6. Shielded in-flight fetches
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from appliance_hub.capabilities import namespaces as ns
from appliance_hub.capabilities.aggregator import StateAggregator, StatusFeature
from appliance_hub.capabilities.devices import (
    ApplianceDevice,
    MockElectricity,
    MockLight,
    MockOverTemp,
    MockThermostat,
    MockToggle,
    build_climate_sensor,
    build_power_strip,
    build_presence_sensor,
    build_smart_plug,
    build_thermostat,
    build_wall_thermostat,
)
from appliance_hub.capabilities.exceptions import DeviceContractError
from appliance_hub.capabilities.protocols import ConnectionMode
from appliance_hub.capabilities.state_cache import FeatureCache
from appliance_hub.capabilities.states import (
    ElectricityReading,
    LightState,
    OverTempConfig,
    PresenceReading,
    ThermostatMode,
    ThermostatState,
    ToggleState,
)
from appliance_hub.config import AggregatorConfig


class FailingFeature:
    """Refreshable feature whose fetch always fails."""

    def __init__(self):
        self.refresh = AsyncMock(side_effect=TimeoutError("device did not answer"))


def three_feature_device(connection=ConnectionMode.POLL, failing="thermostat"):
    cache = FeatureCache()
    features = {
        "light": MockLight(cache, {0: LightState(is_on=True, luminance=55)}),
        "electricity": MockElectricity(cache, {0: ElectricityReading(wattage=12.345, voltage=229.96, amperage=0.0537)}),
        "thermostat": MockThermostat(cache, {0: ThermostatState(current_temperature=20.25)}),
    }
    features[failing] = FailingFeature()
    return ApplianceDevice(
        "dev-3",
        "Three Feature Device",
        connection=connection,
        cache=cache,
        features=features,
    )


@pytest.fixture
def aggregator():
    return StateAggregator(config=AggregatorConfig())


# ---------------------------------------------------------------------------
# 1. Disconnected devices
# ---------------------------------------------------------------------------


class TestDisconnected:
    """A disconnected device never triggers a fetch."""

    @pytest.mark.asyncio
    async def test_empty_snapshot_without_fetches(self, aggregator):
        device = build_smart_plug("plug-1", "Plug", connection=ConnectionMode.POLL)
        device.disconnect()

        snapshot, has_reading = await aggregator.aggregate(device)

        assert snapshot.fields == {}
        assert has_reading is False
        assert device.feature("toggle").refresh_count == 0
        assert device.feature("electricity").refresh_count == 0

    @pytest.mark.asyncio
    async def test_none_device_raises(self, aggregator):
        with pytest.raises(DeviceContractError):
            await aggregator.aggregate(None)


# ---------------------------------------------------------------------------
# 2. Fetch-or-reuse decisions
# ---------------------------------------------------------------------------


class TestFetchPolicy:
    """The feature cache decides per slot whether to fetch."""

    @pytest.mark.asyncio
    async def test_push_connected_cached_slot_is_reused(self, aggregator):
        device = build_smart_plug("plug-1", "Plug", connection=ConnectionMode.PUSH)
        device.cache.update_from_push("electricity", 0, ElectricityReading(wattage=99.0))
        device.cache.update_from_push("toggle", 0, ToggleState(is_on=False))

        snapshot, _ = await aggregator.aggregate(device)

        assert device.feature("electricity").refresh_count == 0
        assert device.feature("toggle").refresh_count == 0
        assert snapshot.fields["Power"] == "99.00 W"
        assert snapshot.fields["State"] == "Off"

    @pytest.mark.asyncio
    async def test_empty_slot_fetched_on_push_connection(self, aggregator):
        device = build_smart_plug("plug-1", "Plug", connection=ConnectionMode.PUSH)

        await aggregator.aggregate(device)

        assert device.feature("toggle").refresh_count == 1
        assert device.feature("electricity").refresh_count == 1

    @pytest.mark.asyncio
    async def test_poll_connection_always_fetches(self, aggregator):
        device = build_thermostat("thermo-1", "Thermostat")
        device.cache.set("thermostat", 0, ThermostatState(current_temperature=5.0))

        snapshot, _ = await aggregator.aggregate(device)

        assert device.feature("thermostat").refresh_count == 1
        assert snapshot.fields["Temperature"] == "19.5°C"

    @pytest.mark.asyncio
    async def test_unknown_connection_fetches(self, aggregator):
        device = build_smart_plug("plug-1", "Plug", connection=ConnectionMode.UNKNOWN)
        device.cache.set("toggle", 0, ToggleState(is_on=False))

        await aggregator.aggregate(device)

        assert device.feature("toggle").refresh_count == 1

    @pytest.mark.asyncio
    async def test_poll_only_feature_fetched_despite_push(self):
        aggregator = StateAggregator(config=AggregatorConfig(poll_only_features=["electricity"]))
        device = build_smart_plug("plug-1", "Plug", connection=ConnectionMode.PUSH)
        device.cache.update_from_push("electricity", 0, ElectricityReading(wattage=1.0))
        device.cache.update_from_push("toggle", 0, ToggleState(is_on=True))

        await aggregator.aggregate(device)

        assert device.feature("electricity").refresh_count == 1
        assert device.feature("toggle").refresh_count == 0

    @pytest.mark.asyncio
    async def test_each_channel_decided_independently(self, aggregator):
        device = build_power_strip("strip-1", "Strip", outlets=3)
        toggle = device.feature("toggle")
        toggle.refresh = AsyncMock(wraps=toggle.refresh)
        device.cache.update_from_push("toggle", 1, ToggleState(is_on=True))

        await aggregator.aggregate(device)

        fetched = sorted(call.args[0] for call in toggle.refresh.await_args_list)
        assert fetched == [0, 2]


# ---------------------------------------------------------------------------
# 3. Failure isolation
# ---------------------------------------------------------------------------


class TestFailureIsolation:
    """One failing fetch only loses that feature's fields."""

    @pytest.mark.asyncio
    async def test_one_of_three_failing(self, aggregator):
        device = three_feature_device(failing="thermostat")

        snapshot, has_reading = await aggregator.aggregate(device)

        assert has_reading is True
        assert snapshot.fields["Light State"] == "On"
        assert snapshot.fields["Power"] == "12.35 W"
        assert "Temperature" not in snapshot.fields

    @pytest.mark.asyncio
    async def test_failure_recorded_on_slot(self, aggregator):
        device = three_feature_device(failing="light")

        await aggregator.aggregate(device)

        slot = device.cache.get("light", 0)
        assert slot.failure_count == 1
        assert slot.last_error == "device did not answer"
        assert device.cache.get("electricity", 0).last_error is None

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_value(self, aggregator):
        device = three_feature_device(failing="light")
        device.cache.set("light", 0, LightState(is_on=False))

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields["Light State"] == "Off"

    @pytest.mark.asyncio
    async def test_all_failing_reports_no_reading(self, aggregator):
        device = ApplianceDevice(
            "dev-x",
            "Broken",
            connection=ConnectionMode.POLL,
            features={"light": FailingFeature(), "toggle": FailingFeature()},
        )

        snapshot, has_reading = await aggregator.aggregate(device)

        assert snapshot.fields == {}
        assert has_reading is False

    @pytest.mark.asyncio
    async def test_formatter_error_drops_only_that_feature(self, aggregator):
        device = three_feature_device(failing="thermostat")
        device.cache.set("thermostat", 0, "not a thermostat state")
        device.feature("thermostat").refresh = AsyncMock(return_value=None)

        snapshot, has_reading = await aggregator.aggregate(device)

        assert has_reading is True
        assert "Power" in snapshot.fields
        assert "Temperature" not in snapshot.fields

    @pytest.mark.asyncio
    async def test_channel_discovery_error_skips_only_that_feature(self, aggregator):
        class GlitchyStrip(ApplianceDevice):
            @property
            def channels(self):
                raise RuntimeError("transport glitch")

        cache = FeatureCache()
        device = GlitchyStrip(
            "strip-g",
            "Glitchy Strip",
            connection=ConnectionMode.POLL,
            cache=cache,
            features={
                "toggle": MockToggle(cache, {0: ToggleState(is_on=True)}),
                "light": MockLight(cache, {0: LightState(is_on=True)}),
            },
        )

        snapshot, has_reading = await aggregator.aggregate(device)

        assert has_reading is True
        assert snapshot.fields == {"Light State": "On"}

    @pytest.mark.asyncio
    async def test_feature_lookup_error_skips_only_that_feature(self, aggregator):
        class FlakyDevice(ApplianceDevice):
            def feature(self, key):
                if key == "thermostat":
                    raise RuntimeError("transport glitch")
                return super().feature(key)

        cache = FeatureCache()
        device = FlakyDevice(
            "dev-f",
            "Flaky",
            connection=ConnectionMode.POLL,
            cache=cache,
            features={
                "electricity": MockElectricity(cache, {0: ElectricityReading(wattage=5.0)}),
                "thermostat": MockThermostat(cache, {0: ThermostatState(current_temperature=20.0)}),
            },
        )

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {"Power": "5.00 W"}

    @pytest.mark.asyncio
    async def test_fetch_policy_error_skips_only_that_feature(self, aggregator):
        device = three_feature_device(failing="thermostat")
        real_needs_fetch = device.cache.needs_fetch

        def needs_fetch(feature, channel, connection, poll_only=False):
            if feature == "light":
                raise RuntimeError("transport glitch")
            return real_needs_fetch(feature, channel, connection, poll_only=poll_only)

        device.cache.needs_fetch = needs_fetch

        snapshot, _ = await aggregator.aggregate(device)

        assert "Light State" not in snapshot.fields
        assert snapshot.fields["Power"] == "12.35 W"


# ---------------------------------------------------------------------------
# 4. Formatting and labels
# ---------------------------------------------------------------------------


class TestFormatting:
    """Display fields, precision and labels."""

    @pytest.mark.asyncio
    async def test_electricity_precision(self, aggregator):
        device = three_feature_device(failing="thermostat")

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields["Power"] == "12.35 W"
        assert snapshot.fields["Voltage"] == "230.0 V"
        assert snapshot.fields["Current"] == "0.054 A"

    @pytest.mark.asyncio
    async def test_smart_plug_fields_in_order(self, aggregator):
        device = build_smart_plug("plug-1", "Plug", connection=ConnectionMode.POLL, wattage=23.0)

        snapshot, _ = await aggregator.aggregate(device)

        assert list(snapshot.fields) == [
            "Power",
            "Voltage",
            "Current",
            "Consumption",
            "Consumption Config",
            "Timers",
            "State",
            "Child Lock",
        ]
        assert snapshot.fields["Consumption"] == "1.25 kWh"
        assert snapshot.fields["Consumption Config"] == (
            "voltageRatio: 188, electricityRatio: 102, maxCurrent: 16.0 A"
        )
        assert snapshot.fields["Child Lock"] == "Off"
        assert snapshot.fields["Timers"] == "0 active"
        assert snapshot.fields["State"] == "On"

    @pytest.mark.asyncio
    async def test_toggle_labelled_power_without_metering(self, aggregator):
        cache = FeatureCache()
        device = ApplianceDevice(
            "sw-1",
            "Switch",
            connection=ConnectionMode.POLL,
            cache=cache,
            features={"toggle": MockToggle(cache, {0: ToggleState(is_on=True)})},
        )

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {"Power": "On"}

    @pytest.mark.asyncio
    async def test_multi_channel_toggle_labels(self, aggregator):
        device = build_power_strip("strip-1", "Strip", outlets=2)
        await device.feature("toggle").set(on=True, channel=1)

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {"Socket 0 Power": "Off", "Socket 1 Power": "On"}

    @pytest.mark.asyncio
    async def test_thermostat_fields(self, aggregator):
        device = build_thermostat("thermo-1", "Thermostat")

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {
            "Mode": "Heat",
            "Temperature": "19.5°C",
            "Target Temperature": "21.0°C",
        }

    @pytest.mark.asyncio
    async def test_presence_fields(self, aggregator):
        device = build_presence_sensor("sensor-1", "Sensor")

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {
            "Presence": "Present",
            "Distance": "1.23 m",
            "Light": "120 lx",
            "Work Mode": "Biological Detection Only",
            "Test Mode": "Disabled",
            "Sensitivity": "Balance",
            "Distance Threshold": "3.50 m",
            "No Body Time": "30 s",
        }

    @pytest.mark.asyncio
    async def test_electricity_without_wattage_keeps_other_fields(self, aggregator):
        cache = FeatureCache()
        device = ApplianceDevice(
            "meter-1",
            "Meter",
            connection=ConnectionMode.POLL,
            cache=cache,
            features={
                "electricity": MockElectricity(
                    cache, {0: ElectricityReading(wattage=None, voltage=231.04, amperage=0.1)}
                ),
                "toggle": MockToggle(cache, {0: ToggleState(is_on=True)}),
            },
        )

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {"Voltage": "231.0 V", "Current": "0.100 A", "State": "On"}

    @pytest.mark.asyncio
    async def test_wall_thermostat_readings_and_configuration(self, aggregator):
        device = build_wall_thermostat("thermo-2", "Wall Thermostat")

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {
            "Mode": "Economy",
            "Temperature": "20.8°C",
            "Target Temperature": "18.0°C",
            "Window Opened": "Closed",
            "External Sensor": "22.5°C",
            "Sensor Humidity": "41.3%",
            "Screen Brightness (active)": "80.0%",
            "Screen Brightness (sleep)": "10.0%",
            "Temperature Unit": "Celsius",
            "Do Not Disturb": "Disabled",
            "Over-temperature Protection": "Enabled",
            "Over-temperature Type": "Early Warning",
        }

    @pytest.mark.asyncio
    async def test_thermostat_alerts(self, aggregator):
        device = build_thermostat("thermo-1", "Thermostat")
        device.feature("thermostat")._state[0] = ThermostatState(
            window_open=True,
            overheat_warning=True,
            frost_warning=True,
        )

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {
            "Window Opened": "Open",
            "Overheat Warning": "Active",
            "Frost Warning": "Active",
        }

    @pytest.mark.asyncio
    async def test_configuration_follows_control_changes(self, aggregator):
        device = build_wall_thermostat("thermo-2", "Wall Thermostat")
        await device.feature("dnd").set(mode=1)
        await device.feature("tempUnit").set(unit=1)

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields["Do Not Disturb"] == "Enabled"
        assert snapshot.fields["Temperature Unit"] == "Fahrenheit"

    @pytest.mark.asyncio
    async def test_climate_sensor_fields(self, aggregator):
        device = build_climate_sensor("sensor-2", "Attic")

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields == {"Ambient Temperature": "23.2°C", "Humidity": "48.0%"}

    @pytest.mark.asyncio
    async def test_presence_last_detection(self, aggregator):
        device = build_presence_sensor("sensor-1", "Sensor")
        device.feature("presence")._state[0] = PresenceReading(
            is_present=False,
            detected_at=datetime(2026, 3, 1, 8, 30, 5),
        )

        snapshot, _ = await aggregator.aggregate(device)

        assert snapshot.fields["Presence"] == "Absent"
        assert snapshot.fields["Last Detection"] == "2026-03-01 08:30:05"

    @pytest.mark.asyncio
    async def test_snapshot_dict(self, aggregator):
        device = build_thermostat("thermo-1", "Thermostat")
        device.feature("thermostat")._state[0] = ThermostatState(mode=ThermostatMode.AUTO, warning=True)

        snapshot, _ = await aggregator.aggregate(device)
        data = snapshot.to_dict()

        assert data["device_id"] == "thermo-1"
        assert data["has_any_reading"] is True
        assert data["fields"] == {"Mode": "Auto", "Warning": "Active"}


# ---------------------------------------------------------------------------
# 5. Namespaces never read automatically
# ---------------------------------------------------------------------------


class TestUnreadableNamespaces:
    """Features reading dangerous or push-only namespaces are never fetched."""

    @pytest.mark.parametrize(
        "namespace",
        [ns.CONTROL_UPGRADE, ns.HUB_BIND, "Appliance.System.Clock", "Appliance.Encrypt.ECDHE"],
    )
    def test_is_readable_rejects(self, namespace):
        assert ns.is_readable(namespace) is False

    def test_is_readable_accepts_status_namespaces(self):
        assert ns.is_readable(ns.ELECTRICITY) is True
        assert ns.is_readable(ns.OVER_TEMP) is True

    @pytest.mark.asyncio
    async def test_dangerous_namespace_not_fetched(self):
        cache = FeatureCache()
        feature = MockOverTemp(cache, {0: OverTempConfig(enabled=True)})
        device = ApplianceDevice(
            "plug-u",
            "Plug",
            abilities={ns.CONTROL_UPGRADE},
            connection=ConnectionMode.POLL,
            cache=cache,
            features={"config": feature},
        )
        firmware = StatusFeature(
            "config",
            lambda device, values: [("Firmware", "pending")],
            namespaces=frozenset({ns.CONTROL_UPGRADE}),
        )
        aggregator = StateAggregator(config=AggregatorConfig(), features=[firmware])

        snapshot, has_reading = await aggregator.aggregate(device)

        assert feature.refresh_count == 0
        assert has_reading is False

        # A value that arrived without a request still renders
        cache.update_from_push("config", 0, OverTempConfig(enabled=True))
        snapshot, _ = await aggregator.aggregate(device)

        assert feature.refresh_count == 0
        assert snapshot.fields == {"Firmware": "pending"}


# ---------------------------------------------------------------------------
# 6. Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    """Fetches run concurrently and survive an abandoned caller."""

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self, aggregator):
        started = asyncio.Event()
        release = asyncio.Event()
        running = 0
        peak = 0

        async def slow_refresh(channel=0):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            started.set()
            await release.wait()
            running -= 1

        device = three_feature_device(failing="thermostat")
        for key in ("light", "electricity", "thermostat"):
            device.feature(key).refresh = slow_refresh

        task = asyncio.create_task(aggregator.aggregate(device))
        await started.wait()
        await asyncio.sleep(0)
        release.set()
        await task

        assert peak == 3

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_fetch(self, aggregator):
        release = asyncio.Event()
        cache = FeatureCache()

        async def slow_refresh(channel=0):
            await release.wait()
            cache.set("light", channel, LightState(is_on=True))

        light = MockLight(cache)
        light.refresh = slow_refresh
        device = ApplianceDevice(
            "bulb-1",
            "Bulb",
            connection=ConnectionMode.POLL,
            cache=cache,
            features={"light": light},
        )

        task = asyncio.create_task(aggregator.aggregate(device))
        await asyncio.sleep(0.01)
        assert aggregator.inflight == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        release.set()
        for _ in range(10):
            if aggregator.inflight == 0:
                break
            await asyncio.sleep(0.01)

        assert aggregator.inflight == 0
        assert cache.value("light", 0).is_on is True

    @pytest.mark.asyncio
    async def test_push_settle_delay(self):
        aggregator = StateAggregator(config=AggregatorConfig(push_settle_seconds=0.05))
        device = build_smart_plug("plug-1", "Plug", connection=ConnectionMode.PUSH)

        async def late_push():
            await asyncio.sleep(0.01)
            device.cache.update_from_push("toggle", 0, ToggleState(is_on=False))

        pusher = asyncio.create_task(late_push())
        snapshot, _ = await aggregator.aggregate(device)
        await pusher

        assert device.feature("toggle").refresh_count == 0
        assert snapshot.fields["State"] == "Off"
