"""
Tests for operation parameter validation.
"""

import pytest

from appliance_hub.capabilities.exceptions import InvalidParameterError
from appliance_hub.capabilities.params import to_snake_case, validate_params
from appliance_hub.capabilities.registry import (
    OperationDescriptor,
    ParamSpec,
    ParamType,
    operation_registry,
)


def op(name):
    return operation_registry.lookup(name)


class TestValidateParams:
    """Defaults, required fields and type coercion."""

    def test_defaults_applied(self):
        assert validate_params(op("toggle.set"), {"on": True}) == {"channel": 0, "on": True}

    def test_missing_required(self):
        with pytest.raises(InvalidParameterError) as exc:
            validate_params(op("toggle.set"), {})

        assert exc.value.param == "on"

    def test_unknown_parameter_rejected(self):
        with pytest.raises(InvalidParameterError) as exc:
            validate_params(op("toggle.set"), {"on": True, "brightness": 3})

        assert exc.value.param == "brightness"

    def test_optional_params_omitted(self):
        result = validate_params(op("light.set"), {"luminance": 40})

        assert result == {"channel": 0, "luminance": 40}

    @pytest.mark.parametrize("raw,expected", [("true", True), ("off", False), (1, True), (False, False)])
    def test_boolean_coercion(self, raw, expected):
        assert validate_params(op("toggle.set"), {"on": raw})["on"] is expected

    def test_boolean_rejects_garbage(self):
        with pytest.raises(InvalidParameterError):
            validate_params(op("toggle.set"), {"on": "maybe"})

    def test_number_from_string(self):
        result = validate_params(op("screen.setBrightness"), {"brightness": "75"})

        assert result["brightness"] == 75

    @pytest.mark.parametrize("value", [-1, 101, "abc", True])
    def test_number_bounds_and_type(self, value):
        with pytest.raises(InvalidParameterError):
            validate_params(op("screen.setBrightness"), {"brightness": value})

    @pytest.mark.parametrize("value", ["nan", "inf", "-Infinity", float("nan"), float("inf")])
    def test_number_rejects_non_finite(self, value):
        with pytest.raises(InvalidParameterError) as exc:
            validate_params(op("screen.setBrightness"), {"brightness": value})

        assert exc.value.reason == "must be a finite number"

    def test_unbounded_number_rejects_nan(self):
        with pytest.raises(InvalidParameterError) as exc:
            validate_params(op("timer.set"), {"onoff": 1, "type": 1, "time": "nan"})

        assert exc.value.param == "time"

    def test_enum_by_value_or_name(self):
        assert validate_params(op("spray.set"), {"mode": 2})["mode"] == 2
        assert validate_params(op("spray.set"), {"mode": "continuous"})["mode"] == 1
        assert validate_params(op("spray.set"), {"mode": "0"})["mode"] == 0

    def test_enum_rejects_unknown(self):
        with pytest.raises(InvalidParameterError):
            validate_params(op("spray.set"), {"mode": 7})

    @pytest.mark.parametrize("raw", ["255,0,10", " 255, 0 ,10", [255, 0, 10], (255, "0", 10)])
    def test_rgb_forms(self, raw):
        assert validate_params(op("light.set"), {"rgb": raw})["rgb"] == (255, 0, 10)

    @pytest.mark.parametrize("raw", ["255,0", "256,0,0", "a,b,c", 42])
    def test_rgb_rejected(self, raw):
        with pytest.raises(InvalidParameterError):
            validate_params(op("light.set"), {"rgb": raw})

    def test_object_must_be_mapping(self):
        with pytest.raises(InvalidParameterError):
            validate_params(op("trigger.set"), {"triggerx": "rule"})

    def test_object_properties_validated(self):
        descriptor = OperationDescriptor(
            name="presence.setConfig",
            label="Config",
            category="Configuration",
            params=(
                ParamSpec(
                    "configData",
                    ParamType.OBJECT,
                    required=True,
                    properties=(
                        ParamSpec("sensitivity", ParamType.NUMBER, required=True, min=1, max=3),
                        ParamSpec("mode", ParamType.STRING, default="auto"),
                    ),
                ),
            ),
        )

        result = validate_params(descriptor, {"configData": {"sensitivity": "2", "extra": 1}})
        assert result == {"configData": {"sensitivity": 2, "mode": "auto", "extra": 1}}

        with pytest.raises(InvalidParameterError) as exc:
            validate_params(descriptor, {"configData": {"sensitivity": 9}})
        assert exc.value.param == "configData.sensitivity"


class TestSnakeCase:

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("set", "set"),
            ("setLedMode", "set_led_mode"),
            ("heatTemperature", "heat_temperature"),
            ("triggerx", "triggerx"),
        ],
    )
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected
