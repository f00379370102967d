"""
Protocol definitions for the capability/device system.

A device exposes one optional capability object per feature it supports.
Each control capability is a typed interface declaring one action;
whether a device can perform an action is decided by which of these
interfaces its feature objects implement.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from .state_cache import FeatureCache


AbilitySet = frozenset[str]


class ConnectionMode(str, Enum):
    """How the transport currently reaches a device."""
    PUSH = "push"  # real-time channel, device notifies state changes
    POLL = "poll"  # request/response only
    UNKNOWN = "unknown"


# Feature keys as they appear in "feature.action" operation names
TOGGLE = "toggle"
LIGHT = "light"
THERMOSTAT = "thermostat"
ELECTRICITY = "electricity"
CONSUMPTION = "consumption"
PRESENCE = "presence"
GARAGE = "garage"
ROLLER_SHUTTER = "rollerShutter"
DIFFUSER = "diffuser"
SPRAY = "spray"
TIMER = "timer"
TRIGGER = "trigger"
CHILD_LOCK = "childLock"
SYSTEM = "system"
SCREEN = "screen"
TEMP_UNIT = "tempUnit"
DND = "dnd"
CONFIG = "config"
# Status-only features, no control operations
SENSOR = "sensor"
CONSUMPTION_CONFIG = "consumptionConfig"
PRESENCE_CONFIG = "presenceConfig"

FEATURE_KEYS: tuple[str, ...] = (
    TOGGLE, LIGHT, THERMOSTAT, ELECTRICITY, CONSUMPTION, PRESENCE, GARAGE,
    ROLLER_SHUTTER, DIFFUSER, SPRAY, TIMER, TRIGGER, CHILD_LOCK, SYSTEM,
    SCREEN, TEMP_UNIT, DND, CONFIG, SENSOR, CONSUMPTION_CONFIG, PRESENCE_CONFIG,
)


@dataclass
class ActionResult:
    """Result of executing an operation on a device."""
    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "error": self.error,
        }


@runtime_checkable
class Refreshable(Protocol):
    """A feature whose state can be fetched from the device."""

    async def refresh(self, channel: int = 0) -> None:
        """
        Fetch current state for a channel.

        Implementations store the result in the device's feature cache
        and raise on transport failure. Nothing is returned.
        """
        ...


class Device(Protocol):
    """
    Protocol for a connected appliance.

    The transport owns connection handling; the capability layer only
    reads these members.
    """

    @property
    def uuid(self) -> str:
        ...

    @property
    def name(self) -> str:
        ...

    @property
    def connected(self) -> bool:
        ...

    @property
    def connection(self) -> ConnectionMode:
        ...

    @property
    def abilities(self) -> AbilitySet:
        """Namespaces advertised at capability discovery."""
        ...

    @property
    def channels(self) -> Sequence[int]:
        ...

    @property
    def cache(self) -> "FeatureCache":
        """Last known per-feature, per-channel state."""
        ...

    def feature(self, key: str) -> Optional[Any]:
        """Return the capability object for a feature key, or None."""
        ...


# --- Control capabilities ---
#
# One single-method interface per feature.action pair. Keyword arguments mirror
# the parameter schema of the matching registry entry in snake_case.


@runtime_checkable
class ToggleCapability(Protocol):
    async def set(self, *, on: bool, channel: int = 0) -> Any:
        ...


@runtime_checkable
class LightCapability(Protocol):
    async def set(
        self,
        *,
        channel: int = 0,
        on: Optional[bool] = None,
        rgb: Optional[tuple[int, int, int]] = None,
        luminance: Optional[int] = None,
        temperature: Optional[int] = None,
        gradual: Optional[bool] = None,
    ) -> Any:
        ...


@runtime_checkable
class DiffuserLightCapability(Protocol):
    async def set_light(
        self,
        *,
        channel: int = 0,
        on: Optional[bool] = None,
        rgb: Optional[tuple[int, int, int]] = None,
        luminance: Optional[int] = None,
    ) -> Any:
        ...


@runtime_checkable
class DiffuserSprayCapability(Protocol):
    async def set_spray(self, *, mode: int, channel: int = 0) -> Any:
        ...


@runtime_checkable
class ThermostatCapability(Protocol):
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
    ) -> Any:
        ...


@runtime_checkable
class SprayCapability(Protocol):
    async def set(self, *, mode: int, channel: int = 0) -> Any:
        ...


@runtime_checkable
class GarageCapability(Protocol):
    async def set(self, *, onoff: int, channel: int = 0) -> Any:
        ...


@runtime_checkable
class RollerShutterCapability(Protocol):
    async def set_position(self, *, position: int, channel: int = 0) -> Any:
        ...


@runtime_checkable
class TimerSetCapability(Protocol):
    async def set(
        self,
        *,
        onoff: int,
        type: int,
        time: int,
        channel: int = 0,
        id: Optional[str] = None,
    ) -> Any:
        ...


@runtime_checkable
class TimerDeleteCapability(Protocol):
    async def delete(self, *, timer_id: str, channel: int = 0) -> Any:
        ...


@runtime_checkable
class TriggerSetCapability(Protocol):
    async def set(self, *, triggerx: dict[str, Any], channel: int = 0) -> Any:
        ...


@runtime_checkable
class TriggerDeleteCapability(Protocol):
    async def delete(self, *, trigger_id: str, channel: int = 0) -> Any:
        ...


@runtime_checkable
class ChildLockCapability(Protocol):
    async def set(self, *, lock: int, channel: int = 0) -> Any:
        ...


@runtime_checkable
class SystemCapability(Protocol):
    async def set_led_mode(self, *, led_mode_data: dict[str, Any]) -> Any:
        ...


@runtime_checkable
class ScreenCapability(Protocol):
    async def set_brightness(self, *, brightness: int, channel: int = 0) -> Any:
        ...


@runtime_checkable
class TempUnitCapability(Protocol):
    async def set(self, *, unit: int, channel: int = 0) -> Any:
        ...


@runtime_checkable
class DndCapability(Protocol):
    async def set(self, *, mode: int) -> Any:
        ...


@runtime_checkable
class ConfigCapability(Protocol):
    async def set_over_temp(self, *, enable: bool) -> Any:
        ...


@runtime_checkable
class PresenceConfigCapability(Protocol):
    async def set_config(self, *, config_data: dict[str, Any], channel: int = 0) -> Any:
        ...


@runtime_checkable
class PresenceStudyCapability(Protocol):
    async def set_study(
        self,
        *,
        status: int,
        channel: int = 0,
        value: Optional[int] = None,
    ) -> Any:
        ...
