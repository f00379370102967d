"""
Per-feature state values held in the feature cache.

Values are already converted to display units (watts, volts, degrees
Celsius, metres) by the transport before they land here.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional


class ThermostatMode(IntEnum):
    """Thermostat working modes."""
    HEAT = 0
    COOL = 1
    ECONOMY = 2
    AUTO = 3
    MANUAL = 4


class SprayMode(IntEnum):
    """Humidifier spray modes."""
    OFF = 0
    CONTINUOUS = 1
    INTERMITTENT = 2


class DiffuserSprayMode(IntEnum):
    """Diffuser spray modes (note OFF is 2 on diffusers)."""
    LIGHT = 0
    STRONG = 1
    OFF = 2


class RollerShutterStatus(IntEnum):
    """Roller shutter motor status."""
    UNKNOWN = -1
    IDLE = 0
    OPENING = 1
    CLOSING = 2


class TempUnit(IntEnum):
    """Display unit reported by Appliance.Control.TempUnit."""
    CELSIUS = 1
    FAHRENHEIT = 2


class OverTempType(IntEnum):
    """What the over-temperature protection does when it trips."""
    EARLY_WARNING = 1
    EARLY_WARNING_AND_SHUTDOWN = 2


class WorkMode(IntEnum):
    """Presence sensor work modes."""
    UNKNOWN = 0
    BIOLOGICAL_DETECTION_ONLY = 1
    SECURITY = 2


class SensitivityLevel(IntEnum):
    """Presence sensor sensitivity levels."""
    ANTI_INTERFERENCE = 1
    BALANCE = 2
    RESPONSIVE = 3


@dataclass
class ToggleState:
    """On/off state of one power channel."""
    is_on: bool = False


@dataclass
class LightState:
    """State for dimmable/colour lights."""
    is_on: bool = False
    luminance: Optional[int] = None  # 0-100
    rgb: Optional[tuple[int, int, int]] = None
    temperature: Optional[int] = None  # 0-100


@dataclass
class ThermostatState:
    """State for thermostats and thermostat valves."""
    is_on: bool = False
    mode: Optional[ThermostatMode] = None
    current_temperature: Optional[float] = None  # Celsius
    target_temperature: Optional[float] = None  # Celsius
    warning: bool = False
    # Auxiliary thermostat namespaces (WindowOpened, Overheat, Calibration, Frost)
    window_open: Optional[bool] = None
    external_temperature: Optional[float] = None  # Celsius
    overheat_warning: bool = False
    humidity: Optional[float] = None  # percent
    frost_warning: bool = False


@dataclass
class ElectricityReading:
    """Instant power metrics for one channel."""
    wattage: Optional[float] = None
    voltage: Optional[float] = None
    amperage: Optional[float] = None


@dataclass
class ConsumptionReading:
    """Most recent daily energy total, in watt-hours."""
    energy_wh: Optional[float] = None
    date: Optional[str] = None


@dataclass
class PresenceReading:
    """Latest presence sensor readings."""
    is_present: bool = False
    distance: Optional[float] = None  # metres
    light_lux: Optional[int] = None
    detected_at: Optional[datetime] = None


@dataclass
class GarageDoorState:
    """Open/closed state of one garage door channel."""
    is_open: bool = False


@dataclass
class RollerShutterState:
    """Position and motor status of a roller shutter."""
    position: Optional[int] = None  # 0-100
    status: RollerShutterStatus = RollerShutterStatus.UNKNOWN


@dataclass
class DiffuserState:
    """Combined light and spray state of an aroma diffuser."""
    light_on: Optional[bool] = None
    luminance: Optional[int] = None
    spray_mode: Optional[DiffuserSprayMode] = None


@dataclass
class SprayState:
    """Humidifier spray state."""
    mode: SprayMode = SprayMode.OFF


@dataclass
class DigestState:
    """Count of scheduled timers or triggers reported by a digest."""
    count: int = 0


@dataclass
class TempHumidityReading:
    """Latest ambient readings of a temperature/humidity sensor."""
    temperature: Optional[float] = None  # Celsius
    humidity: Optional[float] = None  # percent


@dataclass
class ConsumptionConfig:
    """Metering calibration of a power plug."""
    voltage_ratio: Optional[int] = None
    electricity_ratio: Optional[int] = None
    max_current: Optional[float] = None  # amps


@dataclass
class ChildLockState:
    locked: bool = False


@dataclass
class ScreenBrightnessState:
    """Display brightness while in use and while idle, in percent."""
    active: Optional[float] = None
    standby: Optional[float] = None


@dataclass
class TempUnitState:
    unit: TempUnit = TempUnit.CELSIUS


@dataclass
class DndState:
    enabled: bool = False


@dataclass
class OverTempConfig:
    """Over-temperature protection settings (Appliance.Config.OverTemp)."""
    enabled: bool = False
    type: Optional[OverTempType] = None


@dataclass
class PresenceConfigState:
    """Detection settings of a presence sensor."""
    work_mode: Optional[WorkMode] = None
    test_mode: Optional[bool] = None
    sensitivity: Optional[SensitivityLevel] = None
    distance: Optional[float] = None  # metres
    no_body_time: Optional[int] = None  # seconds
