from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request

from echelon_core.config import Settings
from echelon_core.errors import SimulationValidationError
from echelon_core.simulation import SimulationParams

from echelon_api.api.dependencies import get_app_settings, get_simulation_manager
from echelon_api.api.errors import INVALID_BODY_MESSAGE
from echelon_api.core.simulation_runner import SimulationManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/simulation", tags=["Simulation"])


@router.post(
    "/create",
    description="Validate the parameters and start a background simulation. Returns its id for polling.",
)
async def create_simulation(
    request: Request,
    manager: SimulationManager = Depends(get_simulation_manager),
    settings: Settings = Depends(get_app_settings),
):
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SimulationValidationError(INVALID_BODY_MESSAGE) from e

    params = SimulationParams.from_payload(body, settings.simulation)
    record = manager.create_simulation(params)
    return {"success": True, "data": {"simulationId": record.id}}


@router.get("", description="List simulations, newest first (summary fields only).")
async def list_simulations(manager: SimulationManager = Depends(get_simulation_manager)):
    return {"success": True, "data": [record.to_summary() for record in manager.list_simulations()]}


@router.get("/{simulation_id}", description="Poll one simulation record.")
async def get_simulation(
    simulation_id: str, manager: SimulationManager = Depends(get_simulation_manager)
):
    record = manager.get_simulation(simulation_id)
    return {"success": True, "data": record.to_wire()}
