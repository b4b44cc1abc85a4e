"""Deterministic substitutes used when the advisory service cannot help."""

from __future__ import annotations

from typing import List

from echelon_core.advisory.schemas import FeasibilityReport, SuccessDriver, Swot
from echelon_core.models import Agent, AgentArchetype, AgentRole, create_agent

_FALLBACK_AGENTS = (
    {
        "id": "agent-1",
        "name": "Market Leader Inc",
        "role": AgentRole.INCUMBENT,
        "archetype": AgentArchetype.PREMIUM_LEADER,
        "description": "Established market leader with strong brand",
        "strategy_style": "Premium positioning with high quality",
        "base_pricing": 100,
        "quality": 0.9,
        "brand_power": 0.9,
        "budget": 1_000_000,
    },
    {
        "id": "agent-2",
        "name": "Budget Solutions Co",
        "role": AgentRole.COMPETITOR,
        "archetype": AgentArchetype.BUDGET_PROVIDER,
        "description": "Low-cost provider targeting price-sensitive customers",
        "strategy_style": "Cost leadership and volume",
        "base_pricing": 50,
        "quality": 0.6,
        "brand_power": 0.5,
        "budget": 500_000,
    },
    {
        "id": "agent-3",
        "name": "Innovation Labs",
        "role": AgentRole.DISRUPTOR,
        "archetype": AgentArchetype.HIGH_END_BOUTIQUE,
        "description": "Innovative disruptor with unique value proposition",
        "strategy_style": "Differentiation through innovation",
        "base_pricing": 120,
        "quality": 0.95,
        "brand_power": 0.7,
        "budget": 750_000,
    },
    {
        "id": "agent-4",
        "name": "Value Experts",
        "role": AgentRole.COMPETITOR,
        "archetype": AgentArchetype.VALUE_SPECIALIST,
        "description": "Balanced approach offering good value",
        "strategy_style": "Value optimization",
        "base_pricing": 75,
        "quality": 0.75,
        "brand_power": 0.65,
        "budget": 600_000,
    },
)


def fallback_agents() -> List[Agent]:
    """The fixed four-agent market: one incumbent, one disruptor, two competitors."""
    share = 1.0 / len(_FALLBACK_AGENTS)
    return [create_agent(initial_share=share, **fields) for fields in _FALLBACK_AGENTS]


def fallback_report() -> FeasibilityReport:
    return FeasibilityReport(
        feasibility_score=7,
        verdict="Review",
        summary="Simulation completed. Strategic data is being processed.",
        comparison=[],
        success_drivers=[SuccessDriver(factor="Observation", score=70)],
        swot=Swot(strengths=["Operational"]),
        recommendation="Continue market monitoring.",
    )
