"""
Appliance Hub - device status and control server

The main FastAPI application entry point.
"""

# Load .env file FIRST, before any other imports
from pathlib import Path
from dotenv import load_dotenv
_env_root = Path(__file__).parent.parent
load_dotenv(_env_root / ".env")

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router as api_router
from .capabilities import device_registry
from .config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("appliance_hub.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Handles startup (device registration) and shutdown (cleanup).
    """
    # --- Startup ---
    logger.info("Appliance Hub starting up...")

    # Register simulated devices for development
    if settings.load_mock_devices:
        from .capabilities.devices import register_test_devices
        device_ids = register_test_devices()
        logger.info("Registered test devices: %s", device_ids)

    yield  # Application runs here

    # --- Shutdown ---
    logger.info("Appliance Hub shutting down...")
    device_registry.clear()
    logger.info("Appliance Hub shutdown complete")


# Create the FastAPI application
app = FastAPI(
    title="Appliance Hub",
    description="Status aggregation and capability-driven control for smart appliances.",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# Include API routers with /api/v1 prefix
app.include_router(api_router, prefix="/api/v1")


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
