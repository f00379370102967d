"""
Static registry of control operations.

Every operation is named "feature.action" and carries the ability
namespaces that enable it (any one is enough), the typed capability
interface a feature object must implement to perform it, a parameter
schema and a display category.

The table is built once at import and is read-only afterwards.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from . import namespaces as ns
from .protocols import (
    ChildLockCapability,
    ConfigCapability,
    DiffuserLightCapability,
    DiffuserSprayCapability,
    DndCapability,
    GarageCapability,
    LightCapability,
    PresenceConfigCapability,
    PresenceStudyCapability,
    RollerShutterCapability,
    ScreenCapability,
    SprayCapability,
    SystemCapability,
    TempUnitCapability,
    ThermostatCapability,
    TimerDeleteCapability,
    TimerSetCapability,
    ToggleCapability,
    TriggerDeleteCapability,
    TriggerSetCapability,
)

logger = logging.getLogger("appliance_hub.capabilities.registry")

OPERATION_SEPARATOR = "."
DEFAULT_CATEGORY = "Other"


class ParamType(str, Enum):
    """Closed set of parameter types a consumer must handle."""
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ENUM = "enum"
    RGB = "rgb"
    OBJECT = "object"


@dataclass(frozen=True)
class Choice:
    """One selectable value of an enum or boolean parameter."""
    name: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class ParamSpec:
    """Schema for one operation parameter."""
    name: str
    type: ParamType
    label: str = ""
    required: bool = False
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    choices: tuple[Choice, ...] = ()
    properties: tuple["ParamSpec", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "label": self.label or self.name,
            "required": self.required,
        }
        if self.default is not None:
            data["default"] = self.default
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        if self.choices:
            data["choices"] = [c.to_dict() for c in self.choices]
        if self.properties:
            data["properties"] = [p.to_dict() for p in self.properties]
        return data


@dataclass(frozen=True)
class OperationDescriptor:
    """Metadata for one control operation."""
    name: str
    label: str
    category: str
    description: str = ""
    required_namespaces: frozenset[str] = frozenset()
    params: tuple[ParamSpec, ...] = ()
    capability: Optional[type] = field(default=None, compare=False)

    @property
    def feature(self) -> str:
        return split_operation_name(self.name)[0]

    @property
    def action(self) -> str:
        return split_operation_name(self.name)[1]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "category": self.category or DEFAULT_CATEGORY,
            "description": self.description,
            "params": [p.to_dict() for p in self.params],
        }


def split_operation_name(name: str) -> tuple[str, str]:
    """
    Split "feature.action" at the first separator.

    Returns ("", "") for names without a separator or with an empty half.
    """
    feature, sep, action = name.partition(OPERATION_SEPARATOR)
    if not sep or not feature or not action:
        return "", ""
    return feature, action


class OperationName(str, Enum):
    """Every operation the registry knows, in "feature.action" form."""
    TOGGLE_SET = "toggle.set"
    LIGHT_SET = "light.set"
    DIFFUSER_SET_LIGHT = "diffuser.setLight"
    THERMOSTAT_SET = "thermostat.set"
    SPRAY_SET = "spray.set"
    DIFFUSER_SET_SPRAY = "diffuser.setSpray"
    GARAGE_SET = "garage.set"
    ROLLER_SHUTTER_SET_POSITION = "rollerShutter.setPosition"
    TIMER_SET = "timer.set"
    TIMER_DELETE = "timer.delete"
    TRIGGER_SET = "trigger.set"
    TRIGGER_DELETE = "trigger.delete"
    CHILD_LOCK_SET = "childLock.set"
    SYSTEM_SET_LED_MODE = "system.setLedMode"
    SCREEN_SET_BRIGHTNESS = "screen.setBrightness"
    TEMP_UNIT_SET = "tempUnit.set"
    DND_SET = "dnd.set"
    CONFIG_SET_OVER_TEMP = "config.setOverTemp"
    PRESENCE_SET_CONFIG = "presence.setConfig"
    PRESENCE_SET_STUDY = "presence.setStudy"


# --- Schema helpers ---


def _channel() -> ParamSpec:
    return ParamSpec("channel", ParamType.NUMBER, "Channel", default=0)


def _spray_modes() -> tuple[Choice, ...]:
    return (
        Choice("Off", 0),
        Choice("Continuous", 1),
        Choice("Intermittent", 2),
    )


_ON_OFF = (Choice("On", True), Choice("Off", False))

_THERMOSTAT_MODES = (
    Choice("Heat", 0),
    Choice("Cool", 1),
    Choice("Economy", 2),
    Choice("Auto", 3),
    Choice("Manual", 4),
)


def _op(
    name: OperationName,
    label: str,
    category: str,
    description: str,
    required: tuple[str, ...],
    capability: type,
    *params: ParamSpec,
) -> OperationDescriptor:
    return OperationDescriptor(
        name=name.value,
        label=label,
        category=category,
        description=description,
        required_namespaces=frozenset(required),
        params=tuple(params),
        capability=capability,
    )


_OPERATIONS: tuple[OperationDescriptor, ...] = (
    # Power Control
    _op(
        OperationName.TOGGLE_SET, "Toggle (On/Off)", "Power Control",
        "Turn device channel on or off",
        (ns.TOGGLEX, ns.TOGGLE), ToggleCapability,
        _channel(),
        ParamSpec("on", ParamType.BOOLEAN, "State", required=True, choices=_ON_OFF),
    ),
    # Light Control
    _op(
        OperationName.LIGHT_SET, "Light Control", "Light Control",
        "Set light color, brightness, temperature, and on/off state",
        (ns.LIGHT,), LightCapability,
        _channel(),
        ParamSpec("on", ParamType.BOOLEAN, "Turn On/Off"),
        ParamSpec("rgb", ParamType.RGB, "RGB Color (r,g,b)"),
        ParamSpec("luminance", ParamType.NUMBER, "Brightness (0-100)", min=0, max=100),
        ParamSpec("temperature", ParamType.NUMBER, "Temperature (0-100)", min=0, max=100),
        ParamSpec("gradual", ParamType.BOOLEAN, "Transition Type"),
    ),
    _op(
        OperationName.DIFFUSER_SET_LIGHT, "Diffuser Light", "Light Control",
        "Control diffuser light settings",
        (ns.DIFFUSER_LIGHT,), DiffuserLightCapability,
        _channel(),
        ParamSpec("on", ParamType.BOOLEAN, "State"),
        ParamSpec("rgb", ParamType.RGB, "RGB Color (r,g,b)"),
        ParamSpec("luminance", ParamType.NUMBER, "Brightness (0-100)", min=0, max=100),
    ),
    # Climate Control
    _op(
        OperationName.THERMOSTAT_SET, "Thermostat Control", "Climate Control",
        "Set thermostat mode, temperature, and on/off state",
        (ns.THERMOSTAT_MODE, ns.THERMOSTAT_MODE_B), ThermostatCapability,
        _channel(),
        ParamSpec("mode", ParamType.ENUM, "Mode", choices=_THERMOSTAT_MODES),
        ParamSpec("onoff", ParamType.NUMBER, "On/Off (0=off, 1=on)", min=0, max=1),
        ParamSpec("heatTemperature", ParamType.NUMBER, "Heat Temperature (°C)"),
        ParamSpec("coolTemperature", ParamType.NUMBER, "Cool Temperature (°C)"),
        ParamSpec("ecoTemperature", ParamType.NUMBER, "Eco Temperature (°C)"),
        ParamSpec("manualTemperature", ParamType.NUMBER, "Manual Temperature (°C)"),
        ParamSpec("partialUpdate", ParamType.BOOLEAN, "Partial Update", default=False),
    ),
    _op(
        OperationName.SPRAY_SET, "Spray/Humidifier", "Climate Control",
        "Control spray/humidifier mode",
        (ns.SPRAY,), SprayCapability,
        _channel(),
        ParamSpec("mode", ParamType.ENUM, "Spray Mode", required=True, choices=_spray_modes()),
    ),
    _op(
        OperationName.DIFFUSER_SET_SPRAY, "Diffuser Spray", "Climate Control",
        "Control diffuser spray mode",
        (ns.DIFFUSER_SPRAY,), DiffuserSprayCapability,
        _channel(),
        ParamSpec("mode", ParamType.ENUM, "Spray Mode", required=True, choices=_spray_modes()),
    ),
    # Cover Control
    _op(
        OperationName.GARAGE_SET, "Garage Door", "Cover Control",
        "Open or close garage door",
        (ns.GARAGE_DOOR_STATE,), GarageCapability,
        _channel(),
        ParamSpec("onoff", ParamType.NUMBER, "Action (0=close, 1=open)", required=True, min=0, max=1),
    ),
    _op(
        OperationName.ROLLER_SHUTTER_SET_POSITION, "Roller Shutter Position", "Cover Control",
        "Set roller shutter position (0-100, -1 to stop)",
        (ns.ROLLER_SHUTTER_POSITION, ns.ROLLER_SHUTTER_STATE), RollerShutterCapability,
        _channel(),
        ParamSpec("position", ParamType.NUMBER, "Position (0-100, -1=stop)", required=True, min=-1, max=100),
    ),
    # Automation
    _op(
        OperationName.TIMER_SET, "Timer Control", "Automation",
        "Create or update a timer",
        (ns.TIMERX,), TimerSetCapability,
        _channel(),
        ParamSpec("id", ParamType.STRING, "Timer ID (for updates)"),
        ParamSpec("onoff", ParamType.NUMBER, "Action (0=off, 1=on)", required=True, min=0, max=1),
        ParamSpec("type", ParamType.NUMBER, "Timer Type", required=True),
        ParamSpec("time", ParamType.NUMBER, "Time Value", required=True),
    ),
    _op(
        OperationName.TIMER_DELETE, "Delete Timer", "Automation",
        "Delete a timer",
        (ns.TIMERX,), TimerDeleteCapability,
        ParamSpec("timerId", ParamType.STRING, "Timer ID", required=True),
        _channel(),
    ),
    _op(
        OperationName.TRIGGER_SET, "Trigger Control", "Automation",
        "Create or update a trigger",
        (ns.TRIGGERX,), TriggerSetCapability,
        _channel(),
        ParamSpec("triggerx", ParamType.OBJECT, "Trigger Configuration", required=True),
    ),
    _op(
        OperationName.TRIGGER_DELETE, "Delete Trigger", "Automation",
        "Delete a trigger",
        (ns.TRIGGERX,), TriggerDeleteCapability,
        ParamSpec("triggerId", ParamType.STRING, "Trigger ID", required=True),
        _channel(),
    ),
    # Configuration
    _op(
        OperationName.CHILD_LOCK_SET, "Child Lock", "Configuration",
        "Enable or disable child lock",
        (ns.PHYSICAL_LOCK,), ChildLockCapability,
        _channel(),
        ParamSpec("lock", ParamType.NUMBER, "Lock (0=unlock, 1=lock)", required=True, min=0, max=1),
    ),
    _op(
        OperationName.SYSTEM_SET_LED_MODE, "LED Indicator Mode", "Configuration",
        "Control LED indicator mode",
        (ns.LED_MODE,), SystemCapability,
        ParamSpec("ledModeData", ParamType.OBJECT, "LED Mode Configuration", required=True),
    ),
    _op(
        OperationName.SCREEN_SET_BRIGHTNESS, "Screen Brightness", "Configuration",
        "Set device screen brightness",
        (ns.SCREEN_BRIGHTNESS,), ScreenCapability,
        _channel(),
        ParamSpec("brightness", ParamType.NUMBER, "Brightness (0-100)", required=True, min=0, max=100),
    ),
    _op(
        OperationName.TEMP_UNIT_SET, "Temperature Unit", "Configuration",
        "Set temperature unit (Celsius/Fahrenheit)",
        (ns.TEMP_UNIT,), TempUnitCapability,
        _channel(),
        ParamSpec("unit", ParamType.NUMBER, "Unit (0=Celsius, 1=Fahrenheit)", required=True, min=0, max=1),
    ),
    _op(
        OperationName.DND_SET, "Do Not Disturb Mode", "Configuration",
        "Enable or disable Do Not Disturb mode",
        (ns.DND_MODE,), DndCapability,
        ParamSpec("mode", ParamType.NUMBER, "DND Mode (0=disabled, 1=enabled)", required=True, min=0, max=1),
    ),
    _op(
        OperationName.CONFIG_SET_OVER_TEMP, "Over-Temperature Protection", "Configuration",
        "Enable or disable over-temperature protection",
        (ns.OVER_TEMP,), ConfigCapability,
        ParamSpec("enable", ParamType.BOOLEAN, "Over-Temperature Protection", required=True, choices=_ON_OFF),
    ),
    _op(
        OperationName.PRESENCE_SET_CONFIG, "Presence Sensor Configuration", "Configuration",
        "Configure presence sensor settings",
        (ns.PRESENCE_CONFIG,), PresenceConfigCapability,
        _channel(),
        ParamSpec("configData", ParamType.OBJECT, "Configuration Object", required=True),
    ),
    _op(
        OperationName.PRESENCE_SET_STUDY, "Presence Sensor Study/Calibration", "Configuration",
        "Start or stop presence sensor study/calibration mode",
        (ns.PRESENCE_STUDY,), PresenceStudyCapability,
        _channel(),
        ParamSpec("value", ParamType.NUMBER, "Study Mode Value"),
        ParamSpec("status", ParamType.NUMBER, "Status (0=stop, 1=start)", required=True, min=0, max=1),
    ),
)


class OperationRegistry:
    """
    Read-only lookup table of operation descriptors.

    Entry order carries no meaning; consumers sort what they display.
    """

    def __init__(self, descriptors: Mapping[str, OperationDescriptor]):
        self._entries: Mapping[str, OperationDescriptor] = MappingProxyType(dict(descriptors))

    @classmethod
    def from_descriptors(cls, descriptors: tuple[OperationDescriptor, ...]) -> "OperationRegistry":
        table: dict[str, OperationDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in table:
                raise ValueError(f"Duplicate operation: {descriptor.name}")
            table[descriptor.name] = descriptor
        return cls(table)

    def lookup(self, name: str) -> Optional[OperationDescriptor]:
        """Get a descriptor by "feature.action" name."""
        if isinstance(name, OperationName):
            name = name.value
        return self._entries.get(name)

    def all_entries(self) -> list[tuple[str, OperationDescriptor]]:
        """Return every (name, descriptor) pair."""
        return list(self._entries.items())

    def by_category(self) -> dict[str, list[OperationDescriptor]]:
        """Group descriptors by display category, sorted by name within each."""
        categories: dict[str, list[OperationDescriptor]] = {}
        for descriptor in self._entries.values():
            categories.setdefault(descriptor.category or DEFAULT_CATEGORY, []).append(descriptor)
        return {
            category: sorted(items, key=lambda d: d.name)
            for category, items in sorted(categories.items())
        }

    def __contains__(self, name: object) -> bool:
        if isinstance(name, OperationName):
            name = name.value
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# Global registry instance
operation_registry = OperationRegistry.from_descriptors(_OPERATIONS)
logger.debug("Operation registry loaded with %d operations", len(operation_registry))
