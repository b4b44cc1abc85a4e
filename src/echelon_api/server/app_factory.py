from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from echelon_core import __version__
from echelon_core.advisory import AdvisoryGateway
from echelon_core.config import Settings, get_settings
from echelon_core.logging import configure_logging

from echelon_api.api.errors import add_exception_handlers
from echelon_api.api.routes import advisory as advisory_routes
from echelon_api.api.routes import simulation as sim_routes
from echelon_api.core.lifespan import lifespan
from echelon_api.core.simulation_store import SimulationStore

logger = logging.getLogger("echelon_api")


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[AdvisoryGateway] = None,
    store: Optional[SimulationStore] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    ``gateway`` and ``store`` replace the settings-built defaults (tests inject
    fakes here); an injected gateway is not closed on shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.api.title,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.gateway_override = gateway
    app.state.store_override = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_exception_handlers(app)
    app.include_router(sim_routes.router)
    app.include_router(advisory_routes.router)

    @app.get("/health", tags=["Health"])
    async def health(request: Request):
        started = getattr(request.app.state, "start_time", None)
        return {
            "status": "ok",
            "version": __version__,
            "environment": settings.environment,
            "uptime_seconds": round(time.time() - started, 1) if started else 0.0,
        }

    return app
