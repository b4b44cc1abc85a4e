import json

import pytest

from echelon_core.models import create_agent, initialize_market_state
from echelon_core.simulation import ReportSynthesizer, fallback_report

from tests.fakes import SAMPLE_REPORT, ScriptedClient, failing_client, make_gateway


def _final_state():
    agents = [
        create_agent(id="user", name="Corner Roasters", role="startup", quality=0.8),
        create_agent(id="chain", name="Big Bean Chain", role="incumbent", quality=0.7, brand_power=0.9),
    ]
    return initialize_market_state(agents, region="Lisbon", population_scale=30_000, market_sentiment=0.7, max_ticks=12)


@pytest.mark.asyncio
async def test_report_is_parsed_from_advisory_answer():
    client = ScriptedClient([json.dumps(SAMPLE_REPORT)])

    report = await ReportSynthesizer(make_gateway(client)).synthesize(_final_state())

    assert report.feasibility_score == 6.5
    assert report.verdict == "Go"
    assert report.success_drivers[0].factor == "Location"
    assert report.swot.threats == ["Chains"]
    assert report.head_to_head is None
    prompt = client.prompts[0]
    assert "Corner Roasters" in prompt
    assert "Pricing Strategy" in prompt


@pytest.mark.asyncio
async def test_report_values_are_clamped_into_range():
    answer = dict(
        SAMPLE_REPORT,
        feasibilityScore=14,
        comparison=[{"attribute": "Brand Presence", "user": 0, "leader": 12}],
        successDrivers=[{"factor": "Hype", "score": 150}],
    )
    client = ScriptedClient([json.dumps(answer)])

    report = await ReportSynthesizer(make_gateway(client)).synthesize(_final_state())

    assert report.feasibility_score == 10
    assert (report.comparison[0].user, report.comparison[0].leader) == (1, 10)
    assert report.success_drivers[0].score == 100


@pytest.mark.asyncio
async def test_report_falls_back_when_advisory_fails():
    report = await ReportSynthesizer(make_gateway(failing_client())).synthesize(_final_state())
    assert report == fallback_report()


@pytest.mark.asyncio
async def test_report_missing_required_fields_falls_back():
    client = ScriptedClient([json.dumps({"summary": "Looks fine"})])
    report = await ReportSynthesizer(make_gateway(client)).synthesize(_final_state())
    assert report.verdict == "Review"
    assert report.feasibility_score == 7
