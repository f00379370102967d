"""
Concrete device container.

Transports build an ApplianceDevice per connected appliance and attach
one feature object per supported feature key.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..protocols import FEATURE_KEYS, AbilitySet, ConnectionMode
from ..state_cache import FeatureCache

logger = logging.getLogger("appliance_hub.capabilities.devices.base")


class ApplianceDevice:
    """
    A connected appliance and its feature objects.

    The ability set is fixed for the lifetime of a connection; a
    reconnect replaces it wholesale.
    """

    def __init__(
        self,
        uuid: str,
        name: str,
        abilities: Iterable[str] = (),
        channels: Sequence[int] = (0,),
        connection: ConnectionMode = ConnectionMode.UNKNOWN,
        connected: bool = True,
        features: Optional[Mapping[str, Any]] = None,
        cache: Optional[FeatureCache] = None,
        device_type: str = "",
    ):
        self._uuid = uuid
        self._name = name
        self._abilities: AbilitySet = frozenset(abilities)
        self._channels = tuple(channels)
        self._connection = connection
        self._connected = connected
        self._cache = cache or FeatureCache()
        self._features: dict[str, Any] = {}
        self.device_type = device_type
        for key, feature in (features or {}).items():
            self.attach(key, feature)

    @property
    def uuid(self) -> str:
        return self._uuid

    @property
    def name(self) -> str:
        return self._name

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def connection(self) -> ConnectionMode:
        return self._connection

    @property
    def abilities(self) -> AbilitySet:
        return self._abilities

    @property
    def channels(self) -> tuple[int, ...]:
        return self._channels

    @property
    def cache(self) -> FeatureCache:
        return self._cache

    def feature(self, key: str) -> Optional[Any]:
        return self._features.get(key)

    def attach(self, key: str, feature: Any) -> None:
        """Attach the feature object for a feature key."""
        if key not in FEATURE_KEYS:
            raise ValueError(f"Unknown feature key: {key}")
        self._features[key] = feature

    def connect(self, abilities: Iterable[str], connection: ConnectionMode) -> None:
        """Mark the device connected with a freshly discovered ability set."""
        self._abilities = frozenset(abilities)
        self._connection = connection
        self._connected = True
        logger.info("%s connected via %s (%d abilities)", self._uuid, connection.value, len(self._abilities))

    def disconnect(self) -> None:
        """Mark the device disconnected and forget cached state."""
        self._connected = False
        self._connection = ConnectionMode.UNKNOWN
        self._cache.clear()
        logger.info("%s disconnected", self._uuid)

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "name": self.name,
            "type": self.device_type,
            "connected": self.connected,
            "connection": self.connection.value,
            "channels": list(self.channels),
            "features": sorted(self._features),
            "abilities": sorted(self.abilities),
        }
