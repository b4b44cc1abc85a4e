import pytest

from echelon_core.advisory.schemas import AgentGenerationResponse, StrategyCheckpointResponse
from llm_interface import ResponseParseError, extract_json, parse_structured


@pytest.mark.parametrize(
    "text, expected",
    [
        ('{"a": 1}', {"a": 1}),
        ('```json\n{"a": 1}\n```', {"a": 1}),
        ('Here you go: {"a": [1, 2]} hope it helps', {"a": [1, 2]}),
        ("[1, 2]", [1, 2]),
    ],
)
def test_extract_json_variants(text, expected):
    assert extract_json(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "no json here", '{"a": '])
def test_extract_json_failures(text):
    with pytest.raises(ResponseParseError):
        extract_json(text)


def test_bare_agent_list_is_wrapped():
    parsed = parse_structured('[{"name": "Solo"}]', AgentGenerationResponse)
    assert [a.name for a in parsed.agents] == ["Solo"]
    assert parsed.market_context is None


def test_strategy_deltas_are_clamped():
    parsed = parse_structured(
        '{"updates": [{"agentId": "a", "pricingChange": 0.9, "qualityAdjustment": -4}]}',
        StrategyCheckpointResponse,
    )
    update = parsed.updates[0]
    assert update.pricing_change == 0.1
    assert update.quality_adjustment == -0.1


def test_schema_mismatch_raises_parse_error():
    with pytest.raises(ResponseParseError, match="AgentGenerationResponse"):
        parse_structured('{"agents": [{"role": "startup"}]}', AgentGenerationResponse)


def test_null_strategy_fields_mean_no_change():
    parsed = parse_structured(
        '{"updates": ['
        '{"agentId": "a", "pricingChange": null, "qualityAdjustment": null, "newStrategy": null},'
        '{"agentId": "b", "pricingChange": 0.05, "qualityAdjustment": 0.02}'
        "]}",
        StrategyCheckpointResponse,
    )

    first, second = parsed.updates
    assert (first.pricing_change, first.quality_adjustment, first.new_strategy) == (0.0, 0.0, "")
    assert second.pricing_change == 0.05
