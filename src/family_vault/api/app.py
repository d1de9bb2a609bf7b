"""Family vault delegation API application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..__version__ import __version__
from ..config.settings import get_settings
from ..features.delegations.routers import delegation_router
from .factory import VaultServices, build_services

logger = logging.getLogger(__name__)


def create_app(services: Optional[VaultServices] = None) -> FastAPI:
    """Create the delegation API.

    Args:
        services: Prebuilt services; built from settings on startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        vault = services or build_services()
        app.state.services = vault
        await vault.start()
        try:
            yield
        finally:
            await vault.stop()

    settings = get_settings()
    app = FastAPI(
        title="Family Vault Delegations",
        version=__version__,
        description="Delegation requests, permission grants and access checks for family vaults",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.include_router(delegation_router)

    @app.get("/health", tags=["System"])
    async def health():
        vault = getattr(app.state, "services", None)
        database_ok = True
        if vault is not None and vault.database is not None:
            database_ok = await vault.database.health_check()
        return {
            "status": "healthy" if database_ok else "degraded",
            "version": __version__,
            "event_bus_running": bool(vault and vault.events.is_running),
        }

    return app
