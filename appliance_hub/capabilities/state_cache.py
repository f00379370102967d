"""
Per-device feature state cache.

Holds the last observed value for every (feature, channel) slot of one
device. Slots are written by fetch completions and by push notifications
from the transport, and read synchronously by the status aggregator.
Each write replaces a whole immutable FeatureState, so slots never need
a shared lock.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Optional

from .protocols import ConnectionMode

logger = logging.getLogger("appliance_hub.capabilities.state_cache")

SOURCE_RESPONSE = "response"
SOURCE_PUSH = "push"

SlotKey = tuple[str, int]


@dataclass(frozen=True)
class FeatureState:
    """Cached state of one (feature, channel) slot."""

    feature: str
    channel: int
    value: Any = None
    source: Optional[str] = None
    updated_at: Optional[datetime] = None
    last_error: Optional[str] = None
    failure_count: int = 0
    cached_at: datetime = field(default_factory=datetime.now)

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "feature": self.feature,
            "channel": self.channel,
            "has_value": self.has_value,
            "source": self.source,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "last_error": self.last_error,
            "failure_count": self.failure_count,
        }


class FeatureCache:
    """
    Cache of last-known feature state for a single device.

    Features:
    - O(1) lookups by (feature, channel)
    - Failure bookkeeping that never discards a good value
    - Change listeners for reactive updates
    """

    def __init__(self) -> None:
        self._slots: dict[SlotKey, FeatureState] = {}
        self._listeners: list[Callable[[FeatureState], None]] = []

    def get(self, feature: str, channel: int = 0) -> Optional[FeatureState]:
        """Get the slot for a feature channel, None if never written."""
        return self._slots.get((feature, channel))

    def value(self, feature: str, channel: int = 0) -> Any:
        """Get the cached value for a feature channel, None if empty."""
        slot = self._slots.get((feature, channel))
        return slot.value if slot is not None else None

    def has_value(self, feature: str, channel: int = 0) -> bool:
        slot = self._slots.get((feature, channel))
        return slot is not None and slot.has_value

    def channels(self, feature: str) -> list[int]:
        """Channels of a feature that currently hold a value, ascending."""
        return sorted(
            channel
            for (name, channel), slot in list(self._slots.items())
            if name == feature and slot.has_value
        )

    def set(
        self,
        feature: str,
        channel: int,
        value: Any,
        source: str = SOURCE_RESPONSE,
    ) -> FeatureState:
        """Store a freshly observed value for a feature channel."""
        now = datetime.now()
        state = FeatureState(
            feature=feature,
            channel=channel,
            value=value,
            source=source,
            updated_at=now,
            cached_at=now,
        )
        self._slots[(feature, channel)] = state
        logger.debug("Cache updated: %s[%d] from %s", feature, channel, source)
        self._notify(state)
        return state

    def update_from_push(self, feature: str, channel: int, value: Any) -> FeatureState:
        """Store a value delivered by a device push notification."""
        return self.set(feature, channel, value, source=SOURCE_PUSH)

    def record_failure(self, feature: str, channel: int, error: Any) -> FeatureState:
        """
        Record a failed fetch for a slot.

        Any previously cached value is kept; only the error fields change.
        """
        current = self._slots.get((feature, channel))
        message = str(error) or type(error).__name__
        if current is None:
            state = FeatureState(
                feature=feature,
                channel=channel,
                last_error=message,
                failure_count=1,
            )
        else:
            state = replace(
                current,
                last_error=message,
                failure_count=current.failure_count + 1,
            )
        self._slots[(feature, channel)] = state
        return state

    def invalidate(self, feature: str, channel: Optional[int] = None) -> None:
        """Drop cached slots for a feature (all channels when channel is None)."""
        for key in list(self._slots):
            if key[0] == feature and (channel is None or key[1] == channel):
                del self._slots[key]

    def needs_fetch(
        self,
        feature: str,
        channel: int,
        connection: ConnectionMode,
        poll_only: bool = False,
    ) -> bool:
        return needs_fetch(self.get(feature, channel), connection, poll_only=poll_only)

    def add_listener(self, callback: Callable[[FeatureState], None]) -> None:
        """Add listener for state changes."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[FeatureState], None]) -> None:
        """Remove state change listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def clear(self) -> None:
        """Clear all cached slots."""
        self._slots.clear()
        logger.debug("Feature cache cleared")

    @property
    def size(self) -> int:
        """Number of cached slots."""
        return len(self._slots)

    def _notify(self, state: FeatureState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning("State listener error for %s[%d]: %s", state.feature, state.channel, e)


def needs_fetch(
    slot: Optional[FeatureState],
    connection: ConnectionMode,
    poll_only: bool = False,
) -> bool:
    """
    Decide whether a slot must be fetched before it is read.

    - empty slot: fetch
    - push connection with a cached value: reuse, pushes keep it current
    - anything else (poll-only connection, unknown connectivity): fetch

    poll_only marks features the transport never pushes; those are always
    fetched.
    """
    if slot is None or not slot.has_value:
        return True
    if poll_only:
        return True
    return connection != ConnectionMode.PUSH
