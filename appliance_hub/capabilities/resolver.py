"""
Capability resolution.

Intersects the static operation registry with a device's advertised
ability namespaces and the capability objects it actually exposes,
yielding the operations that are valid for that device instance.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ..config import ResolverConfig, settings
from .exceptions import DeviceContractError
from .params import to_snake_case
from .protocols import Device
from .registry import (
    DEFAULT_CATEGORY,
    OperationDescriptor,
    OperationRegistry,
    ParamSpec,
    operation_registry,
    split_operation_name,
)

logger = logging.getLogger("appliance_hub.capabilities.resolver")


@dataclass(frozen=True)
class AvailableOperation:
    """An operation resolved as valid for one device."""
    name: str
    label: str
    category: str
    description: str = ""
    params: tuple[ParamSpec, ...] = ()
    descriptor: Optional[OperationDescriptor] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_descriptor(cls, descriptor: OperationDescriptor) -> "AvailableOperation":
        return cls(
            name=descriptor.name,
            label=descriptor.label,
            category=descriptor.category or DEFAULT_CATEGORY,
            description=descriptor.description,
            params=descriptor.params,
            descriptor=descriptor,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "category": self.category,
            "description": self.description,
            "params": [p.to_dict() for p in self.params],
        }


class CapabilityResolver:
    """
    Computes the operations a device can perform.

    An operation is available only when:
    - its namespace requirement intersects the device's ability set
    - the device exposes a feature object for the operation's feature
    - that object implements the capability interface declaring the action
      and the action attribute on it is callable

    Resolution is synchronous and reads only immutable inputs, so the
    same device always resolves to the same list.
    """

    def __init__(
        self,
        registry: Optional[OperationRegistry] = None,
        config: Optional[ResolverConfig] = None,
        extensions: Sequence[OperationDescriptor] = (),
    ):
        self.registry = registry or operation_registry
        self.config = config or settings.resolver
        self.extensions = tuple(extensions)

    def resolve(self, device: Device) -> list[AvailableOperation]:
        """
        Resolve the available operations for a device.

        Returns a fresh list sorted by (category, name). Devices that
        resolve nothing get an empty list.

        Raises:
            DeviceContractError: if device is None
        """
        if device is None:
            raise DeviceContractError("capability resolution")

        abilities = frozenset(device.abilities or ())
        resolved = [
            AvailableOperation.from_descriptor(descriptor)
            for _, descriptor in self.registry.all_entries()
            if self._namespaces_satisfied(descriptor, abilities)
            and self._feature_implements(device, descriptor)
        ]

        if self.config.allow_extensions:
            resolved.extend(self._resolve_extensions(device, abilities))

        resolved.sort(key=lambda op: (op.category, op.name))
        logger.debug(
            "Resolved %d operations for %s (%d abilities)",
            len(resolved),
            device.uuid,
            len(abilities),
        )
        return resolved

    def _namespaces_satisfied(self, descriptor: OperationDescriptor, abilities: frozenset[str]) -> bool:
        if not descriptor.required_namespaces:
            return self.config.allow_unscoped
        return not descriptor.required_namespaces.isdisjoint(abilities)

    def _feature_implements(self, device: Device, descriptor: OperationDescriptor) -> bool:
        feature_key, action = split_operation_name(descriptor.name)
        if not feature_key:
            return False

        feature = device.feature(feature_key)
        if feature is None:
            return False

        # runtime_checkable only checks the member exists, not that it is callable
        if descriptor.capability is not None and not isinstance(feature, descriptor.capability):
            return False
        return callable(getattr(feature, to_snake_case(action), None))

    def _resolve_extensions(self, device: Device, abilities: frozenset[str]) -> list[AvailableOperation]:
        resolved = []
        for descriptor in self.extensions:
            if descriptor.name in self.registry:
                logger.debug("Ignoring extension %s: name taken by registry", descriptor.name)
                continue
            if not split_operation_name(descriptor.name)[0]:
                continue
            if self._namespaces_satisfied(descriptor, abilities) and self._feature_implements(device, descriptor):
                resolved.append(AvailableOperation.from_descriptor(descriptor))
        return resolved


# Global resolver instance
capability_resolver = CapabilityResolver()
