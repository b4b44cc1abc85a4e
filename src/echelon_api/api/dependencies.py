"""
Centralized dependency wiring for FastAPI.
The shared SimulationManager and AdvisoryGateway are created by the lifespan and kept on ``app.state``.
"""

from fastapi import Request

from echelon_core.advisory import AdvisoryGateway
from echelon_core.config import Settings

from echelon_api.core.simulation_runner import SimulationManager


def get_simulation_manager(request: Request) -> SimulationManager:
    return request.app.state.simulation_manager


def get_gateway(request: Request) -> AdvisoryGateway:
    return request.app.state.gateway


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
