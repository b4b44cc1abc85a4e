"""
Simulation job orchestration for the Echelon API.

Each accepted request becomes a :class:`SimulationRecord` in the store and a
managed ``asyncio.Task`` (kept in a :class:`SimulationJob`) that runs the
engine to completion. Status moves only along
PENDING -> RUNNING -> {COMPLETED, FAILED}; progress never decreases and only
reaches 100 together with COMPLETED.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from echelon_core.advisory import AdvisoryGateway
from echelon_core.config import Settings, get_settings
from echelon_core.errors import SimulationNotFoundError, SimulationStateError
from echelon_core.simulation import SimulationEngine, SimulationParams

from echelon_api.core.simulation_store import SimulationStore
from echelon_api.models.simulation import (
    ALLOWED_TRANSITIONS,
    SimulationRecord,
    SimulationStatus,
    utcnow,
)

logger = logging.getLogger(__name__)

__all__ = ["SimulationJob", "SimulationManager", "SimulationParams"]

RUNNING_PROGRESS_CAP = 99


@dataclass
class SimulationJob:
    """Handle on one background simulation task."""

    simulation_id: str
    params: SimulationParams
    task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()


class SimulationManager:
    def __init__(
        self,
        store: SimulationStore,
        gateway: AdvisoryGateway,
        settings: Optional[Settings] = None,
        *,
        engine_factory: Callable[..., Any] = SimulationEngine,
    ):
        self.store = store
        self.gateway = gateway
        self.settings = settings or get_settings()
        self._engine_factory = engine_factory
        self._jobs: Dict[str, SimulationJob] = {}

    # Public API ----------------------------------------------------------------

    def create_simulation(self, params: SimulationParams) -> SimulationRecord:
        """Store a PENDING record and start its task. Must be called on the running loop."""
        record = SimulationRecord(
            id=uuid.uuid4().hex,
            idea=params.idea,
            region=params.region,
            population=params.population,
            sentiment=params.sentiment,
            duration=params.duration,
        )
        self.store.create(record)

        job = SimulationJob(simulation_id=record.id, params=params)
        job.task = asyncio.get_running_loop().create_task(
            self._run(job), name=f"simulation-{record.id}"
        )
        self._jobs[record.id] = job
        logger.info(
            "Simulation %s created (region=%s, months=%d, population=%.0f)",
            record.id,
            params.region,
            params.duration,
            params.population,
        )
        return record

    def get_simulation(self, simulation_id: str) -> SimulationRecord:
        record = self.store.get(simulation_id)
        if record is None:
            raise SimulationNotFoundError(simulation_id)
        return record

    def list_simulations(self) -> List[SimulationRecord]:
        return sorted(self.store.list(), key=lambda r: r.created_at, reverse=True)

    def get_job(self, simulation_id: str) -> Optional[SimulationJob]:
        return self._jobs.get(simulation_id)

    async def wait_for(self, simulation_id: str, timeout: Optional[float] = None) -> SimulationRecord:
        """Await the job's task and return the final record."""
        job = self._jobs.get(simulation_id)
        if job is None:
            raise SimulationNotFoundError(simulation_id)
        if job.task is not None and not job.task.done():
            await asyncio.wait_for(asyncio.shield(job.task), timeout)
        return self.get_simulation(simulation_id)

    async def shutdown(self) -> None:
        """Cancel unfinished jobs. Application teardown only; there is no per-job cancel."""
        pending = [job.task for job in self._jobs.values() if job.task is not None and not job.task.done()]
        if not pending:
            return
        logger.info("Cancelling %d running simulation(s)", len(pending))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    # State machine -------------------------------------------------------------

    def _transition(self, simulation_id: str, target: SimulationStatus, **changes: Any) -> SimulationRecord:
        current = self.get_simulation(simulation_id)
        if target not in ALLOWED_TRANSITIONS[current.status]:
            raise SimulationStateError(current.status.value, target.value)
        return self.store.update(simulation_id, status=target, **changes)

    def _report_progress(self, simulation_id: str, value: float) -> None:
        record = self.store.get(simulation_id)
        if record is None or record.status is not SimulationStatus.RUNNING:
            return
        progress = min(int(value), RUNNING_PROGRESS_CAP)
        if progress > record.progress:
            self.store.update(simulation_id, progress=progress)

    def _fail(self, simulation_id: str, message: str) -> None:
        record = self.store.get(simulation_id)
        if record is None or record.status is not SimulationStatus.RUNNING:
            logger.warning("Simulation %s not marked failed from status %s", simulation_id, record and record.status.value)
            return
        self._transition(
            simulation_id,
            SimulationStatus.FAILED,
            error=message,
            progress=min(record.progress, RUNNING_PROGRESS_CAP),
        )

    async def _run(self, job: SimulationJob) -> None:
        simulation_id = job.simulation_id
        try:
            self._transition(simulation_id, SimulationStatus.RUNNING)
            engine = self._engine_factory(job.params, self.gateway, settings=self.settings)
            result = await engine.run(on_progress=lambda value: self._report_progress(simulation_id, value))
            payload = result.to_dict()
            self._transition(
                simulation_id,
                SimulationStatus.COMPLETED,
                progress=100,
                market_state=payload["marketState"],
                agents=payload["agents"],
                events=payload["events"],
                report=payload["report"],
                completed_at=utcnow(),
            )
            logger.info("Simulation %s completed", simulation_id)
        except asyncio.CancelledError:
            self._fail(simulation_id, "Simulation cancelled at shutdown")
            raise
        except Exception as e:
            logger.exception("Simulation %s failed", simulation_id)
            self._fail(simulation_id, str(e) or e.__class__.__name__)
