"""
Capability system for connected appliances.

This module provides:
- Protocol definitions for devices and their feature capabilities
- The static operation registry and per-device capability resolution
- Feature state caching and status aggregation
- Action dispatch framework for executing operations
"""

from .actions import ActionDispatcher, ActionRequest, action_dispatcher
from .aggregator import Snapshot, StateAggregator, StatusFeature, state_aggregator
from .device_registry import DeviceRegistry, device_registry
from .exceptions import CapabilityError, DeviceContractError, InvalidParameterError
from .params import validate_params
from .protocols import ActionResult, ConnectionMode, Device, Refreshable
from .registry import (
    OperationDescriptor,
    OperationName,
    OperationRegistry,
    ParamSpec,
    ParamType,
    operation_registry,
)
from .resolver import AvailableOperation, CapabilityResolver, capability_resolver
from .state_cache import FeatureCache, FeatureState, needs_fetch

__all__ = [
    # Protocols
    "Device",
    "Refreshable",
    "ConnectionMode",
    "ActionResult",
    # Errors
    "CapabilityError",
    "DeviceContractError",
    "InvalidParameterError",
    # Operation registry
    "OperationDescriptor",
    "OperationName",
    "OperationRegistry",
    "ParamSpec",
    "ParamType",
    "operation_registry",
    "validate_params",
    # Resolution
    "AvailableOperation",
    "CapabilityResolver",
    "capability_resolver",
    # State
    "FeatureCache",
    "FeatureState",
    "needs_fetch",
    "Snapshot",
    "StateAggregator",
    "StatusFeature",
    "state_aggregator",
    # Devices
    "DeviceRegistry",
    "device_registry",
    # Actions
    "ActionDispatcher",
    "ActionRequest",
    "action_dispatcher",
]
