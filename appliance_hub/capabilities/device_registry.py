"""
Process-wide table of the appliances the hub knows about.

Devices are keyed by uuid. The transport layer registers a device once
its abilities are discovered; the API and the action dispatcher look
devices up here.
"""

import logging
from typing import Optional

from .exceptions import DeviceContractError
from .protocols import Device

logger = logging.getLogger("appliance_hub.capabilities.device_registry")


class DeviceRegistry:
    """Singleton uuid -> device table, in registration order."""

    _instance: Optional["DeviceRegistry"] = None

    def __new__(cls) -> "DeviceRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._by_uuid = {}
        return cls._instance

    @classmethod
    def get_instance(cls) -> "DeviceRegistry":
        return cls()

    @classmethod
    def reset(cls) -> None:
        """Forget every device (test isolation)."""
        if cls._instance is not None:
            cls._instance._by_uuid.clear()

    def register(self, device: Device) -> None:
        """
        Add a device, replacing any earlier device with the same uuid.

        Raises:
            DeviceContractError: if device is None or has no uuid
        """
        if device is None or not device.uuid:
            raise DeviceContractError("device registration")
        previous = self._by_uuid.get(device.uuid)
        if previous is not None and previous is not device:
            logger.warning("Replacing device %s (%s)", device.uuid, previous.name)
        self._by_uuid[device.uuid] = device
        logger.info("Registered device: %s (%s)", device.uuid, device.name)

    def get(self, device_id: str) -> Optional[Device]:
        return self._by_uuid.get(device_id)

    def list_all(self, connected: Optional[bool] = None) -> list[Device]:
        """Registered devices, optionally only those whose connected flag matches."""
        devices = list(self._by_uuid.values())
        if connected is None:
            return devices
        return [d for d in devices if bool(d.connected) == connected]

    def clear(self) -> None:
        count = len(self._by_uuid)
        self._by_uuid.clear()
        logger.info("Cleared %d devices", count)


# Global registry instance
device_registry = DeviceRegistry.get_instance()
