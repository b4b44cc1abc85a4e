"""
Simulation record storage.

The orchestrator only talks to :class:`SimulationStore`; the in-memory
implementation is the one shipped. Records live for the lifetime of the
process and are never deleted.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from echelon_core.errors import SimulationNotFoundError

from echelon_api.models.simulation import SimulationRecord

logger = logging.getLogger(__name__)


class SimulationStore(ABC):
    @abstractmethod
    def create(self, record: SimulationRecord) -> SimulationRecord:
        """Insert a new record; ids must be unique."""

    @abstractmethod
    def get(self, simulation_id: str) -> Optional[SimulationRecord]:
        ...

    @abstractmethod
    def update(self, simulation_id: str, **changes: Any) -> SimulationRecord:
        """Apply ``changes`` atomically and return the updated record."""

    @abstractmethod
    def list(self) -> List[SimulationRecord]:
        ...


class InMemorySimulationStore(SimulationStore):
    def __init__(self) -> None:
        self._records: Dict[str, SimulationRecord] = {}

    def create(self, record: SimulationRecord) -> SimulationRecord:
        if record.id in self._records:
            raise ValueError(f"Simulation {record.id} already exists")
        self._records[record.id] = record
        return record

    def get(self, simulation_id: str) -> Optional[SimulationRecord]:
        return self._records.get(simulation_id)

    def update(self, simulation_id: str, **changes: Any) -> SimulationRecord:
        current = self._records.get(simulation_id)
        if current is None:
            raise SimulationNotFoundError(simulation_id)
        # Readers only ever see the old or the new record, never a half-applied update.
        updated = current.model_copy(update=changes)
        self._records[simulation_id] = updated
        return updated

    def list(self) -> List[SimulationRecord]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)
