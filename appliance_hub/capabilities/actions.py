"""
Action dispatch framework for device operations.

Runs a resolved "feature.action" operation against a device after
checking that the device can perform it and that the parameters match
the operation's schema.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel

from .device_registry import DeviceRegistry
from .exceptions import DeviceContractError, InvalidParameterError
from .params import to_snake_case, validate_params
from .protocols import ActionResult, Device
from .resolver import CapabilityResolver, capability_resolver

logger = logging.getLogger("appliance_hub.capabilities.actions")


class ActionRequest(BaseModel):
    """Request to execute an operation on a registered device."""
    device_id: str
    operation: str
    params: dict[str, Any] = {}


class ActionDispatcher:
    """
    Dispatches operations to device feature objects.

    Never raises for device or parameter problems; every failure comes
    back as an ActionResult with an error code.
    """

    def __init__(
        self,
        registry: Optional[DeviceRegistry] = None,
        resolver: Optional[CapabilityResolver] = None,
    ):
        self.registry = registry or DeviceRegistry.get_instance()
        self.resolver = resolver or capability_resolver

    async def dispatch_request(self, request: ActionRequest) -> ActionResult:
        """Look the device up by id and dispatch the request to it."""
        device = self.registry.get(request.device_id)
        if not device:
            logger.warning("Device not found: %s", request.device_id)
            return ActionResult(
                success=False,
                message=f"Device not found: {request.device_id}",
                error="DEVICE_NOT_FOUND",
            )
        return await self.dispatch(device, request.operation, request.params)

    async def dispatch(
        self,
        device: Device,
        name: str,
        params: Optional[dict[str, Any]] = None,
    ) -> ActionResult:
        """
        Execute an operation on a device.

        Args:
            device: Target device
            name: Operation name in "feature.action" form
            params: Raw parameters keyed by schema name

        Returns:
            ActionResult carrying the feature method's return value

        Raises:
            DeviceContractError: if device is None
        """
        if device is None:
            raise DeviceContractError("action dispatch")

        if not device.connected:
            logger.warning("Device %s is not connected", device.uuid)
            return ActionResult(
                success=False,
                message=f"Device {device.name} is not connected",
                error="DEVICE_NOT_CONNECTED",
            )

        available = {op.name: op for op in self.resolver.resolve(device)}
        operation = available.get(name)
        if operation is None:
            logger.warning("Operation '%s' not available on %s", name, device.uuid)
            return ActionResult(
                success=False,
                message=f"Operation '{name}' is not available on {device.name}",
                error="OPERATION_NOT_AVAILABLE",
            )

        try:
            validated = validate_params(operation.descriptor, params)
        except InvalidParameterError as e:
            logger.warning("Rejected %s on %s: %s", name, device.uuid, e)
            return ActionResult(
                success=False,
                message=str(e),
                data={"param": e.param},
                error="INVALID_PARAMS",
            )

        feature = device.feature(operation.descriptor.feature)
        method = getattr(feature, to_snake_case(operation.descriptor.action))
        kwargs = {to_snake_case(key): value for key, value in validated.items()}

        logger.info("Dispatching %s.%s(%s)", device.uuid, name, kwargs)

        try:
            result = await method(**kwargs)
        except Exception as e:
            logger.exception("Error executing %s on %s", name, device.uuid)
            return ActionResult(
                success=False,
                message=f"Error executing {name}: {e}",
                error="EXECUTION_ERROR",
            )

        if result is None:
            data: dict[str, Any] = {}
        elif isinstance(result, dict):
            data = result
        else:
            data = {"result": result}

        return ActionResult(
            success=True,
            message=f"{operation.label} executed on {device.name}",
            data=data,
        )


# Global dispatcher instance
action_dispatcher = ActionDispatcher()
