"""Aggregate market state for one simulation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from .agent import Agent, AgentRole, clamp


class EventImpact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, value: Any) -> "EventImpact":
        if isinstance(value, EventImpact):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NEUTRAL


@dataclass(frozen=True)
class MarketEvent:
    tick: int
    title: str
    description: str
    impact: EventImpact = EventImpact.NEUTRAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "title": self.title,
            "description": self.description,
            "impact": self.impact.value,
        }


@dataclass(frozen=True)
class MarketState:
    """
    The simulated regional market at one point in time.

    Attributes:
        region: Human readable region name.
        population_scale: Addressable population.
        visits_per_month: Transactions per person per month.
        market_sentiment: Demand multiplier in [0, 1].
        volatility: Informational volatility figure (not used by the tick math).
        tick: Current month index, 0-based.
        max_ticks: Simulation horizon in months.
        agents: Order-stable agents; use :meth:`agent_by_id` for keyed access.
        events: Append-only, tick-ordered market events.
    """

    region: str
    population_scale: float
    visits_per_month: float
    market_sentiment: float
    max_ticks: int
    agents: Tuple[Agent, ...]
    volatility: float = 0.05
    tick: int = 0
    events: Tuple[MarketEvent, ...] = field(default_factory=tuple)

    @property
    def is_finished(self) -> bool:
        return self.tick >= self.max_ticks

    def agent_by_id(self) -> Dict[str, Agent]:
        return {agent.id: agent for agent in self.agents}

    def total_share(self) -> float:
        return sum(agent.market_share for agent in self.agents)

    def startup_agent(self) -> Optional[Agent]:
        """The user's venture, if the agent set has one."""
        for agent in self.agents:
            if agent.role is AgentRole.STARTUP:
                return agent
        return None

    def leader(self) -> Optional[Agent]:
        if not self.agents:
            return None
        return max(self.agents, key=lambda a: a.market_share)

    def with_event(self, event: MarketEvent) -> "MarketState":
        return replace(self, events=self.events + (event,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region": self.region,
            "populationScale": self.population_scale,
            "visitsPerMonth": self.visits_per_month,
            "marketSentiment": self.market_sentiment,
            "volatility": self.volatility,
            "tick": self.tick,
            "maxTicks": self.max_ticks,
            "agents": [agent.to_dict() for agent in self.agents],
            "events": [event.to_dict() for event in self.events],
        }


def initialize_market_state(
    agents: Iterable[Agent],
    *,
    region: str,
    population_scale: float,
    market_sentiment: float,
    max_ticks: int,
    visits_per_month: float = 2.5,
    volatility: float = 0.05,
) -> MarketState:
    """Build the tick-0 market. Shares are reset to exactly 1/N so they sum to 1."""
    agent_list = list(agents)
    if not agent_list:
        raise ValueError("A market needs at least one agent")
    if max_ticks < 0:
        raise ValueError("max_ticks must be >= 0")

    share = 1.0 / len(agent_list)
    return MarketState(
        region=region,
        population_scale=float(population_scale),
        visits_per_month=float(visits_per_month),
        market_sentiment=clamp(float(market_sentiment), 0.0, 1.0),
        volatility=float(volatility),
        tick=0,
        max_ticks=int(max_ticks),
        agents=tuple(replace(agent, market_share=share) for agent in agent_list),
        events=(),
    )
