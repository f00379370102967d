"""
Health check endpoints.
"""

from fastapi import APIRouter

from ..capabilities import device_registry, operation_registry

router = APIRouter(tags=["Health"])


@router.get("/ping")
async def ping():
    """Simple endpoint to verify server is running."""
    return {"status": "ok", "message": "pong"}


@router.get("/health")
async def health():
    """Health check with registry sizes."""
    devices = device_registry.list_all()
    return {
        "status": "ok",
        "devices": len(devices),
        "connected": sum(1 for d in devices if d.connected),
        "operations": len(operation_registry),
    }
