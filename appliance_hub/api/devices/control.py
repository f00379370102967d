"""
Device status and control endpoints.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...capabilities import (
    ActionRequest,
    Device,
    action_dispatcher,
    capability_resolver,
    device_registry,
    state_aggregator,
)

logger = logging.getLogger("appliance_hub.api.devices")

router = APIRouter()


# --- Request/Response Models ---


class DeviceInfo(BaseModel):
    """Device information response."""
    uuid: str
    name: str
    type: str = ""
    connected: bool
    connection: str
    channels: list[int]
    abilities: list[str] = []


class OperationInfo(BaseModel):
    """An operation the device can currently perform."""
    name: str
    label: str
    category: str
    description: str = ""
    params: list[dict[str, Any]] = []


class StatusResponse(BaseModel):
    """Formatted status snapshot."""
    device_id: str
    fields: dict[str, str]
    has_any_reading: bool
    taken_at: str


class OperationRequestBody(BaseModel):
    """Parameters for an operation, keyed by schema name."""
    params: dict[str, Any] = {}


class ActionResponse(BaseModel):
    """Response from an operation execution."""
    success: bool
    message: str
    data: dict[str, Any] = {}
    error: Optional[str] = None


# --- Helpers ---


def _get_device(device_id: str) -> Device:
    device = device_registry.get(device_id)
    if not device:
        raise HTTPException(404, f"Device not found: {device_id}")
    return device


def _device_info(device: Device) -> DeviceInfo:
    return DeviceInfo(
        uuid=device.uuid,
        name=device.name,
        type=getattr(device, "device_type", ""),
        connected=device.connected,
        connection=device.connection.value,
        channels=list(device.channels),
        abilities=sorted(device.abilities),
    )


# --- Endpoints ---


@router.get("/", response_model=list[DeviceInfo])
async def list_devices(connected: Optional[bool] = None):
    """
    List all registered devices.

    Optionally only connected (or only disconnected) devices.
    """
    return [_device_info(d) for d in device_registry.list_all(connected=connected)]


@router.get("/{device_id}", response_model=DeviceInfo)
async def get_device(device_id: str):
    """Get details of a specific device."""
    return _device_info(_get_device(device_id))


@router.get("/{device_id}/operations", response_model=list[OperationInfo])
async def list_device_operations(device_id: str):
    """List the operations this device can perform, sorted by category and name."""
    device = _get_device(device_id)
    return [OperationInfo(**op.to_dict()) for op in capability_resolver.resolve(device)]


@router.get("/{device_id}/status", response_model=StatusResponse)
async def get_device_status(device_id: str):
    """Get a formatted status snapshot of a device."""
    device = _get_device(device_id)
    snapshot, _ = await state_aggregator.aggregate(device)
    return StatusResponse(**snapshot.to_dict())


@router.post("/{device_id}/operations/{operation}", response_model=ActionResponse)
async def execute_operation(device_id: str, operation: str, body: Optional[OperationRequestBody] = None):
    """Execute an operation such as "toggle.set" on a device."""
    _get_device(device_id)
    request = ActionRequest(
        device_id=device_id,
        operation=operation,
        params=body.params if body else {},
    )

    result = await action_dispatcher.dispatch_request(request)

    if not result.success:
        raise HTTPException(400, detail=result.message)

    return ActionResponse(
        success=result.success,
        message=result.message,
        data=result.data,
        error=result.error,
    )
