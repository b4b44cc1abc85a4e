import asyncio

import pytest

from echelon_api.core.simulation_runner import SimulationManager
from echelon_api.core.simulation_store import InMemorySimulationStore
from echelon_api.models.simulation import SimulationRecord, SimulationStatus
from echelon_core.config import Settings
from echelon_core.errors import SimulationNotFoundError, SimulationStateError, SimulationValidationError
from echelon_core.simulation import SimulationParams, fallback_report

from tests.fakes import SAMPLE_AGENTS, SAMPLE_REPORT, failing_client, make_gateway, routed_client


class RecordingStore(InMemorySimulationStore):
    """Keeps every (status, progress) pair a reader could have observed."""

    def __init__(self):
        super().__init__()
        self.observed = []

    def create(self, record):
        created = super().create(record)
        self.observed.append((created.status, created.progress))
        return created

    def update(self, simulation_id, **changes):
        updated = super().update(simulation_id, **changes)
        self.observed.append((updated.status, updated.progress))
        return updated


def _params(**overrides):
    values = dict(idea="Coffee kiosk", region="Lisbon", duration=7, seed=1)
    values.update(overrides)
    return SimulationParams(**values)


def _manager(client=None, store=None, **kwargs):
    client = client or routed_client(agents=SAMPLE_AGENTS, report=SAMPLE_REPORT)
    return SimulationManager(store if store is not None else InMemorySimulationStore(), make_gateway(client), Settings(), **kwargs)


# Input validation --------------------------------------------------------------


def test_payload_defaults():
    params = SimulationParams.from_payload({"idea": "  Bakery ", "region": "Porto"})

    assert params == SimulationParams(idea="Bakery", region="Porto", population=20_000, sentiment=0.65, duration=24)


def test_payload_values_are_clamped_not_rejected():
    params = SimulationParams.from_payload(
        {"idea": "Bakery", "region": "Porto", "population": -5, "sentiment": 3, "duration": 500}
    )

    assert params.population == 1000
    assert params.sentiment == 1.0
    assert params.duration == 60


def test_payload_lenient_number_coercion():
    params = SimulationParams.from_payload(
        {
            "idea": "Bakery",
            "region": "Porto",
            "population": "45000",
            "sentiment": float("nan"),
            "duration": "12.9",
            "seed": True,
        }
    )

    assert params.population == 45_000
    assert params.sentiment == 0.65
    assert params.duration == 12
    assert params.seed is None

    flagged = SimulationParams.from_payload({"idea": "Bakery", "region": "Porto", "population": True, "seed": 9})
    assert flagged.population == 20_000
    assert flagged.seed == 9


def test_payload_oversized_integers_receive_defaults():
    huge = 10**400
    params = SimulationParams.from_payload(
        {"idea": "Bakery", "region": "Porto", "population": huge, "sentiment": -huge, "duration": huge}
    )

    assert params.population == 20_000
    assert params.sentiment == 0.65
    assert params.duration == 24


def test_payload_text_is_capped():
    params = SimulationParams.from_payload({"idea": "x" * 5000, "region": "Porto"})
    assert len(params.idea) == Settings().simulation.idea_max_length


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"region": "Porto"}, "Idea is required."),
        ({"idea": "   ", "region": "Porto"}, "Idea is required."),
        ({"idea": 42, "region": "Porto"}, "Idea is required."),
        ({"idea": "Bakery"}, "Region is required."),
        (["idea", "region"], "Invalid request body."),
        (None, "Invalid request body."),
    ],
)
def test_payload_rejections(payload, message):
    with pytest.raises(SimulationValidationError, match=message):
        SimulationParams.from_payload(payload)


# Orchestration -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_job_runs_to_completion():
    manager = _manager()

    record = manager.create_simulation(_params())
    assert record.status is SimulationStatus.PENDING
    assert record.progress == 0

    final = await manager.wait_for(record.id, timeout=5)

    assert final.status is SimulationStatus.COMPLETED
    assert final.progress == 100
    assert final.completed_at is not None
    assert final.report["verdict"] == "Go"
    assert final.market_state["tick"] == 7
    assert [a["id"] for a in final.agents] == ["user", "chain", "agent-3"]
    assert final.error is None


@pytest.mark.asyncio
async def test_progress_is_monotone_and_100_only_when_completed():
    store = RecordingStore()
    manager = _manager(store=store)

    record = manager.create_simulation(_params(duration=12))
    await manager.wait_for(record.id, timeout=5)

    progress = [p for _, p in store.observed]
    assert progress == sorted(progress)
    assert [s for s, _ in store.observed][:2] == [SimulationStatus.PENDING, SimulationStatus.RUNNING]
    assert all((p == 100) == (s is SimulationStatus.COMPLETED) for s, p in store.observed)
    assert store.observed[-1] == (SimulationStatus.COMPLETED, 100)


@pytest.mark.asyncio
async def test_advisory_outage_still_completes_with_fallback_report():
    manager = _manager(client=failing_client())

    record = manager.create_simulation(_params())
    final = await manager.wait_for(record.id, timeout=5)

    assert final.status is SimulationStatus.COMPLETED
    assert final.report == fallback_report().to_wire()
    assert [a["name"] for a in final.agents][0] == "Market Leader Inc"


class ExplodingEngine:
    def __init__(self, params, gateway, *, settings=None):
        pass

    async def run(self, on_progress=None):
        on_progress(40)
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_engine_exception_marks_job_failed():
    manager = _manager(engine_factory=ExplodingEngine)

    record = manager.create_simulation(_params())
    final = await manager.wait_for(record.id, timeout=5)

    assert final.status is SimulationStatus.FAILED
    assert final.progress == 40
    assert final.error == "boom"
    assert final.completed_at is None


class BlockedEngine:
    started = None

    def __init__(self, params, gateway, *, settings=None):
        pass

    async def run(self, on_progress=None):
        on_progress(150)
        BlockedEngine.started.set()
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_shutdown_cancels_running_jobs():
    BlockedEngine.started = asyncio.Event()
    manager = _manager(engine_factory=BlockedEngine)

    record = manager.create_simulation(_params())
    await asyncio.wait_for(BlockedEngine.started.wait(), timeout=5)
    assert manager.get_simulation(record.id).progress == 99

    await manager.shutdown()

    final = manager.get_simulation(record.id)
    assert final.status is SimulationStatus.FAILED
    assert final.error == "Simulation cancelled at shutdown"
    assert final.progress == 99
    assert manager.get_job(record.id).done


def test_terminal_records_reject_further_transitions():
    store = InMemorySimulationStore()
    store.create(
        SimulationRecord(
            id="done",
            status=SimulationStatus.COMPLETED,
            progress=100,
            idea="Bakery",
            region="Porto",
            population=20_000,
            sentiment=0.65,
            duration=6,
        )
    )
    manager = _manager(store=store)

    with pytest.raises(SimulationStateError):
        manager._transition("done", SimulationStatus.RUNNING)
    assert store.get("done").status is SimulationStatus.COMPLETED


@pytest.mark.asyncio
async def test_unknown_simulation():
    manager = _manager()
    with pytest.raises(SimulationNotFoundError):
        manager.get_simulation("missing")
    with pytest.raises(SimulationNotFoundError):
        await manager.wait_for("missing")


@pytest.mark.asyncio
async def test_listing_is_newest_first():
    manager = _manager()
    first = manager.create_simulation(_params(idea="First"))
    await asyncio.sleep(0.001)
    second = manager.create_simulation(_params(idea="Second"))

    assert [r.id for r in manager.list_simulations()] == [second.id, first.id]

    await manager.wait_for(first.id, timeout=5)
    await manager.wait_for(second.id, timeout=5)
