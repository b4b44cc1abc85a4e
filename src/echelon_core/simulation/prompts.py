"""Prompt builders for the three advisory requests."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from echelon_core.models import Agent, MarketState

COMPARISON_ATTRIBUTES = (
    "Pricing Strategy",
    "Quality Standard",
    "Brand Presence",
    "Customer Loyalty",
    "Competitive Agility",
)


def build_agent_generation_prompt(idea: str, region: str, population: float) -> str:
    return f"""You are a market analyst. Generate 4-5 realistic agents for this business idea:

**Idea**: {idea}
**Region**: {region}
**Market Size**: {int(population)} people

Include exactly one agent with role "startup" representing the user's proposed business,
plus diverse competitors with different strategies (e.g., budget provider, premium leader, disruptor).

Return ONLY valid JSON:
{{
  "agents": [
    {{
      "id": "unique-id",
      "name": "Company Name",
      "role": "startup|competitor|incumbent|disruptor",
      "archetype": "Budget Provider|Premium Leader|Value Specialist|High-End Boutique|Rapid Expansionist",
      "description": "Brief description",
      "strategyStyle": "Their strategic approach",
      "basePricing": number (realistic price point),
      "quality": number (0.1 to 1.0),
      "brandPower": number (0.0 to 1.0),
      "budget": number (realistic budget)
    }}
  ],
  "marketContext": {{
    "visitsPerMonth": number (purchases per person per month),
    "sentiment": number (0 to 1),
    "description": "One sentence on the local market"
  }}
}}"""


def summarize_agents(state: MarketState) -> List[Dict[str, Any]]:
    return [
        {
            "id": agent.id,
            "name": agent.name,
            "marketShare": f"{agent.market_share * 100:.1f}%",
            "revenue": f"{agent.revenue:.0f}",
            "pricing": round(agent.current_pricing, 2),
            "quality": round(agent.quality, 3),
        }
        for agent in state.agents
    ]


def build_checkpoint_prompt(state: MarketState) -> str:
    summary = json.dumps(summarize_agents(state), indent=2)
    return f"""You are a strategic AI advisor. Analyze this market simulation for {state.region} and suggest strategy updates for each agent.

**Current State** (Month {state.tick}):
{summary}

Return ONLY valid JSON with strategic adjustments and, optionally, one market event:
{{
  "updates": [
    {{
      "agentId": "agent id or name",
      "pricingChange": number (-0.1 to 0.1, e.g., -0.05 = 5% price cut),
      "qualityAdjustment": number (-0.1 to 0.1),
      "newStrategy": "Updated strategy description",
      "reasoning": "Why this change makes sense"
    }}
  ],
  "marketEvent": {{
    "title": "Short headline",
    "description": "What happened",
    "impact": "positive|negative|neutral"
  }}
}}"""


def _describe(agent: Optional[Agent]) -> Dict[str, Any]:
    if agent is None:
        return {}
    return {
        "name": agent.name,
        "role": agent.role.value,
        "archetype": agent.archetype.value,
        "marketShare": f"{agent.market_share * 100:.1f}%",
        "revenue": f"{agent.revenue:.0f}",
        "profit": f"{agent.profit:.0f}",
        "pricing": round(agent.current_pricing, 2),
        "quality": round(agent.quality, 3),
        "brandPower": round(agent.brand_power, 3),
        "strategy": agent.strategy_style,
    }


def build_report_prompt(state: MarketState) -> str:
    user = state.startup_agent()
    leader = state.leader()
    standings = json.dumps(summarize_agents(state), indent=2)
    events = json.dumps([event.to_dict() for event in state.events], indent=2)
    attributes = ", ".join(COMPARISON_ATTRIBUTES)
    return f"""You are a venture analyst. Write the final feasibility report for a {state.max_ticks}-month market simulation in {state.region}.

**User's venture**: {json.dumps(_describe(user))}
**Market leader**: {json.dumps(_describe(leader))}

**Final standings**:
{standings}

**Market events**:
{events}

Return ONLY valid JSON with:
- feasibilityScore: number 0-10
- verdict: short verdict (e.g., "Go", "Pivot", "Review")
- summary: 2-3 sentences
- comparison: one entry per attribute ({attributes}) with "user" and "leader" ratings from 1 to 10
- successDrivers: list of {{"factor", "score" 0-100}}
- swot: {{"strengths", "weaknesses", "opportunities", "threats"}} string lists
- headToHead: {{"userRevenue", "leaderRevenue", "userMarketShare", "leaderMarketShare", "priceCompetitive", "qualityCompetitive"}}
- positioningMap: list of {{"name", "quality", "price", "isUser"}} for every agent
- recommendation: one actionable recommendation"""
