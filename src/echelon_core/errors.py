"""
Core exception hierarchy for Echelon.

The HTTP layer maps these to error envelopes in ``echelon_api.api.errors``.
"""

from __future__ import annotations


class EchelonError(Exception):
    """Base class for all Echelon errors."""


class SimulationHorizonError(EchelonError):
    """Raised when a tick is requested past the simulation horizon."""

    def __init__(self, tick: int, max_ticks: int):
        super().__init__(f"Cannot advance market at tick {tick}: horizon is {max_ticks}")
        self.tick = tick
        self.max_ticks = max_ticks


class SimulationValidationError(EchelonError):
    """Job creation input was rejected; no job is created."""


class SimulationNotFoundError(EchelonError):
    def __init__(self, simulation_id: str):
        super().__init__("Simulation not found")
        self.simulation_id = simulation_id


class SimulationStateError(EchelonError):
    """Illegal job status transition."""

    def __init__(self, current, requested):
        super().__init__(f"Illegal simulation transition {current} -> {requested}")
        self.current = current
        self.requested = requested
