from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from echelon_core.advisory import AdvisoryGateway, set_advisory_gateway

from .simulation_runner import SimulationManager
from .simulation_store import InMemorySimulationStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the process-wide advisory gateway and the simulation manager.

    ``create_app`` may pre-seed ``app.state.gateway_override`` and
    ``app.state.store_override``; otherwise both are built from settings.
    """
    logger.info("Starting Echelon API…")
    settings = app.state.settings

    gateway = getattr(app.state, "gateway_override", None)
    owns_gateway = gateway is None
    if gateway is None:
        gateway = AdvisoryGateway.from_settings(settings)
    store = getattr(app.state, "store_override", None)
    if store is None:
        store = InMemorySimulationStore()

    set_advisory_gateway(gateway)
    app.state.gateway = gateway
    app.state.simulation_manager = SimulationManager(store, gateway, settings)
    app.state.start_time = time.time()
    logger.info(
        "Advisory gateway ready (provider=%s, model=%s, rpm=%.0f)",
        settings.advisory.provider,
        settings.advisory.model,
        settings.advisory.requests_per_minute,
    )

    try:
        yield
    finally:
        await app.state.simulation_manager.shutdown()
        if owns_gateway:
            await gateway.aclose()
        set_advisory_gateway(None)
        logger.info("Echelon API stopped")
