import httpx
import pytest

from echelon_core.config import Settings
from echelon_core.simulation import SimulationEngine, SimulationParams, fallback_agents, fallback_report
from llm_interface import LLMConfig
from llm_interface.gemini_client import GeminiClient

from tests.fakes import SAMPLE_AGENTS, SAMPLE_REPORT, failing_client, make_gateway, routed_client

CHECKPOINT = {
    "updates": [
        {"agentId": "chain", "pricingChange": 0.05, "qualityAdjustment": -0.02, "newStrategy": "Loyalty cards"},
    ],
    "marketEvent": {"title": "New metro line", "description": "Footfall rises", "impact": "positive"},
}


def _engine(client, duration=12, seed=7, **params):
    return SimulationEngine(
        SimulationParams(idea="Coffee kiosk", region="Lisbon", duration=duration, seed=seed, **params),
        make_gateway(client),
        settings=Settings(),
    )


def _checkpoint_prompts(client):
    return [p for p in client.prompts if "strategic AI advisor" in p]


@pytest.mark.asyncio
@pytest.mark.parametrize("duration, expected", [(6, 0), (12, 1), (13, 2)])
async def test_checkpoints_every_six_months(duration, expected):
    client = routed_client(agents=SAMPLE_AGENTS, checkpoint=CHECKPOINT, report=SAMPLE_REPORT)

    result = await _engine(client, duration=duration).run()

    assert len(_checkpoint_prompts(client)) == expected
    assert result.checkpoints_run == expected
    assert result.state.tick == duration


@pytest.mark.asyncio
async def test_progress_sequence():
    seen = []
    client = routed_client(agents=SAMPLE_AGENTS, report=SAMPLE_REPORT)

    await _engine(client, duration=6).run(on_progress=seen.append)

    assert seen == [5, 10, 10, 23, 36, 50, 63, 76, 90, 100]


@pytest.mark.asyncio
async def test_async_progress_callback_is_awaited():
    seen = []

    async def record(value):
        seen.append(value)

    await _engine(routed_client(), duration=2).run(on_progress=record)

    assert seen[0] == 5 and seen[-1] == 100


@pytest.mark.asyncio
async def test_checkpoint_event_is_tagged_with_its_month():
    client = routed_client(agents=SAMPLE_AGENTS, checkpoint=CHECKPOINT, report=SAMPLE_REPORT)

    result = await _engine(client, duration=12).run()

    assert [(e.tick, e.title) for e in result.state.events] == [(6, "New metro line")]
    chain = result.state.agent_by_id()["chain"]
    assert chain.current_pricing == pytest.approx(5.5 * 1.05)
    assert chain.base_pricing == 5.5
    assert chain.strategy_style == "Loyalty cards"


@pytest.mark.asyncio
async def test_unavailable_advisory_still_completes_with_fallbacks():
    result = await _engine(failing_client(), duration=8).run()

    assert result.used_fallback_agents
    assert [a.id for a in result.state.agents] == [a.id for a in fallback_agents()]
    assert result.report == fallback_report()
    assert result.state.events == ()
    assert sum(a.market_share for a in result.state.agents) == pytest.approx(1.0)
    assert all(len(a.history) == 8 for a in result.state.agents)


@pytest.mark.asyncio
async def test_seeded_runs_are_reproducible():
    first = await _engine(routed_client(agents=SAMPLE_AGENTS, report=SAMPLE_REPORT), seed=42).run()
    second = await _engine(routed_client(agents=SAMPLE_AGENTS, report=SAMPLE_REPORT), seed=42).run()

    assert first.state == second.state


@pytest.mark.asyncio
async def test_result_payload_uses_wire_names():
    result = await _engine(routed_client(agents=SAMPLE_AGENTS, report=SAMPLE_REPORT), duration=3).run()

    payload = result.to_dict()

    assert set(payload) >= {"marketState", "agents", "events", "report"}
    assert payload["report"]["feasibilityScore"] == 6.5
    assert payload["marketState"]["tick"] == 3
    assert payload["agents"][0]["id"] == "user"
    assert len(payload["agents"][0]["history"]) == 3


@pytest.mark.asyncio
async def test_malformed_gemini_envelope_uses_fallbacks(monkeypatch):
    monkeypatch.setenv("ECHELON_TEST_GEMINI_KEY", "k")
    config = LLMConfig(provider="gemini", model="m", api_key_env="ECHELON_TEST_GEMINI_KEY")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[{"candidates": []}]))
    client = GeminiClient(config, http_client=httpx.AsyncClient(transport=transport))

    result = await _engine(client, duration=7).run()
    await client.aclose()

    assert result.used_fallback_agents
    assert result.report == fallback_report()
    assert result.state.tick == 7
