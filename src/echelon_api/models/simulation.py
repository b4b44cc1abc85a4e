from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SimulationStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (SimulationStatus.COMPLETED, SimulationStatus.FAILED)


ALLOWED_TRANSITIONS: Mapping[SimulationStatus, FrozenSet[SimulationStatus]] = {
    SimulationStatus.PENDING: frozenset({SimulationStatus.RUNNING}),
    SimulationStatus.RUNNING: frozenset({SimulationStatus.COMPLETED, SimulationStatus.FAILED}),
    SimulationStatus.COMPLETED: frozenset(),
    SimulationStatus.FAILED: frozenset(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SimulationRecord(BaseModel):
    """Job-level envelope polled by clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    status: SimulationStatus = SimulationStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    idea: str
    region: str
    population: float
    sentiment: float
    duration: int
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    market_state: Optional[Dict[str, Any]] = None
    agents: List[Dict[str, Any]] = Field(default_factory=list)
    events: List[Dict[str, Any]] = Field(default_factory=list)
    report: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_summary(self) -> Dict[str, Any]:
        """Listing view without the heavy market payloads."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            include={"id", "status", "progress", "idea", "region", "duration", "created_at", "completed_at", "error"},
        )
