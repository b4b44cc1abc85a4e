"""
Response contracts for the three advisory requests.

Each request has a pydantic model used to validate the returned JSON and a
Gemini ``responseSchema`` dict sent with the request so the service emits
structured output. Field names on the wire are camelCase.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DELTA_LIMIT = 0.1


def _bounded(value: float, low: float, high: float) -> float:
    if not math.isfinite(value):
        return low
    return max(low, min(high, value))


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Agent generation
# ---------------------------------------------------------------------------


class GeneratedAgent(_WireModel):
    name: str = Field(min_length=1)
    id: Optional[str] = None
    role: str = "competitor"
    archetype: str = "Value Specialist"
    description: str = ""
    strategy_style: str = ""
    base_pricing: Optional[float] = None
    quality: Optional[float] = None
    brand_power: Optional[float] = None
    budget: Optional[float] = None


class MarketContext(_WireModel):
    visits_per_month: Optional[float] = None
    sentiment: Optional[float] = None
    description: str = ""


class AgentGenerationResponse(_WireModel):
    agents: List[GeneratedAgent] = Field(min_length=1)
    market_context: Optional[MarketContext] = None

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_list(cls, data: Any) -> Any:
        # The service sometimes answers with just the agent array.
        if isinstance(data, list):
            return {"agents": data}
        return data


# ---------------------------------------------------------------------------
# Strategy checkpoint
# ---------------------------------------------------------------------------


class StrategyUpdate(_WireModel):
    agent_id: str
    pricing_change: float = 0.0
    quality_adjustment: float = 0.0
    new_strategy: str = ""
    reasoning: str = ""

    @field_validator("pricing_change", "quality_adjustment", mode="before")
    @classmethod
    def _null_delta(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("new_strategy", "reasoning", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("pricing_change", "quality_adjustment")
    @classmethod
    def _clamp_delta(cls, value: float) -> float:
        if not math.isfinite(value):
            return 0.0
        return max(-DELTA_LIMIT, min(DELTA_LIMIT, value))


class MarketEventPayload(_WireModel):
    title: str = Field(min_length=1)
    description: str = ""
    impact: str = "neutral"


class StrategyCheckpointResponse(_WireModel):
    updates: List[StrategyUpdate] = Field(default_factory=list)
    market_event: Optional[MarketEventPayload] = None

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_list(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"updates": data}
        return data


# ---------------------------------------------------------------------------
# Feasibility report
# ---------------------------------------------------------------------------


class ComparisonItem(_WireModel):
    attribute: str
    user: float
    leader: float

    @field_validator("user", "leader")
    @classmethod
    def _clamp_rating(cls, value: float) -> float:
        return _bounded(value, 1.0, 10.0)


class SuccessDriver(_WireModel):
    factor: str
    score: float

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return _bounded(value, 0.0, 100.0)


class Swot(_WireModel):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    threats: List[str] = Field(default_factory=list)


class HeadToHead(_WireModel):
    user_revenue: str = ""
    leader_revenue: str = ""
    user_market_share: str = ""
    leader_market_share: str = ""
    price_competitive: str = ""
    quality_competitive: str = ""


class PositioningPoint(_WireModel):
    name: str
    quality: float
    price: float
    is_user: bool = False


class FeasibilityReport(_WireModel):
    feasibility_score: float
    verdict: str
    summary: str
    recommendation: str
    comparison: List[ComparisonItem] = Field(default_factory=list)
    success_drivers: List[SuccessDriver] = Field(default_factory=list)
    swot: Swot = Field(default_factory=Swot)
    positioning_map: List[PositioningPoint] = Field(default_factory=list)
    head_to_head: Optional[HeadToHead] = None

    @field_validator("feasibility_score")
    @classmethod
    def _clamp_feasibility(cls, value: float) -> float:
        return _bounded(value, 0.0, 10.0)


# ---------------------------------------------------------------------------
# Gemini responseSchema payloads
# ---------------------------------------------------------------------------

_STRING = {"type": "STRING"}
_NUMBER = {"type": "NUMBER"}
_STRING_LIST = {"type": "ARRAY", "items": _STRING}


def _object(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "OBJECT", "properties": properties}
    if required:
        schema["required"] = required
    return schema


AGENT_GENERATION_SCHEMA: Dict[str, Any] = _object(
    {
        "agents": {
            "type": "ARRAY",
            "items": _object(
                {
                    "id": _STRING,
                    "name": _STRING,
                    "role": _STRING,
                    "archetype": _STRING,
                    "description": _STRING,
                    "strategyStyle": _STRING,
                    "basePricing": _NUMBER,
                    "quality": _NUMBER,
                    "brandPower": _NUMBER,
                    "budget": _NUMBER,
                },
                required=["name", "role", "archetype", "basePricing", "quality", "brandPower"],
            ),
        },
        "marketContext": _object(
            {"visitsPerMonth": _NUMBER, "sentiment": _NUMBER, "description": _STRING}
        ),
    },
    required=["agents"],
)

STRATEGY_CHECKPOINT_SCHEMA: Dict[str, Any] = _object(
    {
        "updates": {
            "type": "ARRAY",
            "items": _object(
                {
                    "agentId": _STRING,
                    "pricingChange": _NUMBER,
                    "qualityAdjustment": _NUMBER,
                    "newStrategy": _STRING,
                    "reasoning": _STRING,
                },
                required=["agentId", "pricingChange", "qualityAdjustment"],
            ),
        },
        "marketEvent": _object(
            {"title": _STRING, "description": _STRING, "impact": _STRING}
        ),
    },
    required=["updates"],
)

FEASIBILITY_REPORT_SCHEMA: Dict[str, Any] = _object(
    {
        "feasibilityScore": _NUMBER,
        "verdict": _STRING,
        "summary": _STRING,
        "comparison": {
            "type": "ARRAY",
            "items": _object({"attribute": _STRING, "user": _NUMBER, "leader": _NUMBER}),
        },
        "positioningMap": {
            "type": "ARRAY",
            "items": _object(
                {"name": _STRING, "quality": _NUMBER, "price": _NUMBER, "isUser": {"type": "BOOLEAN"}}
            ),
        },
        "successDrivers": {
            "type": "ARRAY",
            "items": _object({"factor": _STRING, "score": _NUMBER}),
        },
        "headToHead": _object(
            {
                "userRevenue": _STRING,
                "leaderRevenue": _STRING,
                "userMarketShare": _STRING,
                "leaderMarketShare": _STRING,
                "priceCompetitive": _STRING,
                "qualityCompetitive": _STRING,
            }
        ),
        "swot": _object(
            {
                "strengths": _STRING_LIST,
                "weaknesses": _STRING_LIST,
                "opportunities": _STRING_LIST,
                "threats": _STRING_LIST,
            }
        ),
        "recommendation": _STRING,
    },
    required=["feasibilityScore", "verdict", "summary", "recommendation"],
)
