"""Initial agent set for a simulation, generated by the advisory service."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Set

from echelon_core.advisory import PRIORITY_AGENT_GENERATION, AdvisoryGateway
from echelon_core.advisory.schemas import (
    AGENT_GENERATION_SCHEMA,
    AgentGenerationResponse,
    GeneratedAgent,
)
from echelon_core.models import Agent, AgentRole, create_agent

from .fallback import fallback_agents
from .prompts import build_agent_generation_prompt

logger = logging.getLogger(__name__)

DEFAULT_VISITS_PER_MONTH = 2.5
STARTUP_AGENT_ID = "user"


@dataclass
class GeneratedMarket:
    agents: List[Agent]
    visits_per_month: float
    description: str = ""
    used_fallback: bool = False


def _assign_ids(generated: List[GeneratedAgent]) -> List[str]:
    """Keep provided ids when usable; otherwise ``user`` for the first startup, else ``agent-{n}``."""
    taken: Set[str] = set()
    ids: List[str] = []
    startup_named = False
    for index, item in enumerate(generated, start=1):
        candidate = (item.id or "").strip()
        if not candidate or candidate in taken:
            if not startup_named and AgentRole.parse(item.role) is AgentRole.STARTUP and STARTUP_AGENT_ID not in taken:
                candidate = STARTUP_AGENT_ID
                startup_named = True
            else:
                candidate = f"agent-{index}"
                suffix = index
                while candidate in taken:
                    suffix += 1
                    candidate = f"agent-{suffix}"
        taken.add(candidate)
        ids.append(candidate)
    return ids


class AgentGenerator:
    def __init__(self, gateway: AdvisoryGateway, *, default_visits_per_month: float = DEFAULT_VISITS_PER_MONTH):
        self.gateway = gateway
        self.default_visits_per_month = default_visits_per_month

    def _fallback(self, reason: str) -> GeneratedMarket:
        logger.warning("Using fallback agents: %s", reason)
        return GeneratedMarket(
            agents=fallback_agents(),
            visits_per_month=self.default_visits_per_month,
            used_fallback=True,
        )

    async def generate(self, idea: str, region: str, population: float) -> GeneratedMarket:
        result = await self.gateway.call(
            build_agent_generation_prompt(idea, region, population),
            priority=PRIORITY_AGENT_GENERATION,
            response_schema=AGENT_GENERATION_SCHEMA,
            response_model=AgentGenerationResponse,
        )
        if not result.ok:
            return self._fallback(result.message)

        response: AgentGenerationResponse = result.parsed
        share = 1.0 / len(response.agents)
        agents = [
            create_agent(
                id=agent_id,
                name=item.name.strip(),
                role=item.role,
                archetype=item.archetype,
                base_pricing=item.base_pricing,
                quality=item.quality,
                brand_power=item.brand_power,
                budget=item.budget,
                initial_share=share,
                description=item.description,
                strategy_style=item.strategy_style,
            )
            for agent_id, item in zip(_assign_ids(response.agents), response.agents)
        ]

        visits = self.default_visits_per_month
        description = ""
        context = response.market_context
        if context is not None:
            description = context.description
            if context.visits_per_month is not None and math.isfinite(context.visits_per_month) and context.visits_per_month > 0:
                visits = context.visits_per_month

        logger.info("Generated %d agents for %s", len(agents), region)
        return GeneratedMarket(agents=agents, visits_per_month=visits, description=description)
