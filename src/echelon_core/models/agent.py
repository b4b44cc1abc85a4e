"""Simulated business agents.

An :class:`Agent` is one business in the regional market: the user's proposed
venture (role ``startup``) or one of the generated competitors. Agents are
immutable values; the tick processor and strategy adapter produce new agents
with ``dataclasses.replace`` instead of mutating in place.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

DEFAULT_BASE_PRICING = 10.0

QUALITY_MIN = 0.1
QUALITY_MAX = 1.0
BRAND_POWER_MIN = 0.0
BRAND_POWER_MAX = 1.0


class AgentRole(str, Enum):
    STARTUP = "startup"
    COMPETITOR = "competitor"
    INCUMBENT = "incumbent"
    DISRUPTOR = "disruptor"

    @classmethod
    def parse(cls, value: Any) -> "AgentRole":
        """Lenient parse; anything unrecognised is treated as a plain competitor."""
        if isinstance(value, AgentRole):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.COMPETITOR


class AgentArchetype(str, Enum):
    BUDGET_PROVIDER = "Budget Provider"
    PREMIUM_LEADER = "Premium Leader"
    VALUE_SPECIALIST = "Value Specialist"
    HIGH_END_BOUTIQUE = "High-End Boutique"
    RAPID_EXPANSIONIST = "Rapid Expansionist"

    @classmethod
    def parse(cls, value: Any) -> "AgentArchetype":
        if isinstance(value, AgentArchetype):
            return value
        wanted = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return cls.VALUE_SPECIALIST


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class HistoryEntry:
    """Snapshot of one agent at the end of a completed tick."""

    tick: int
    share: float
    revenue: float
    pricing: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "share": self.share,
            "revenue": self.revenue,
            "pricing": self.pricing,
        }


@dataclass(frozen=True)
class Agent:
    id: str
    name: str
    role: AgentRole
    archetype: AgentArchetype
    base_pricing: float
    current_pricing: float
    quality: float
    brand_power: float
    budget: float
    market_share: float
    description: str = ""
    strategy_style: str = ""
    reasoning: str = ""
    revenue: float = 0.0
    profit: float = 0.0
    growth_rate: float = 0.0
    history: Tuple[HistoryEntry, ...] = field(default_factory=tuple)

    @property
    def last_history(self) -> Optional[HistoryEntry]:
        return self.history[-1] if self.history else None

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys, as polled by clients)."""
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "archetype": self.archetype.value,
            "description": self.description,
            "strategyStyle": self.strategy_style,
            "basePricing": self.base_pricing,
            "currentPricing": self.current_pricing,
            "quality": self.quality,
            "brandPower": self.brand_power,
            "budget": self.budget,
            "marketShare": self.market_share,
            "revenue": self.revenue,
            "profit": self.profit,
            "growthRate": self.growth_rate,
            "reasoning": self.reasoning,
            "history": [entry.to_dict() for entry in self.history],
        }


def _finite_or(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def create_agent(
    *,
    id: str,
    name: str,
    role: Any = AgentRole.COMPETITOR,
    archetype: Any = AgentArchetype.VALUE_SPECIALIST,
    base_pricing: Any = DEFAULT_BASE_PRICING,
    quality: Any = 0.5,
    brand_power: Any = 0.5,
    budget: Any = 0.0,
    initial_share: float = 1.0,
    description: str = "",
    strategy_style: str = "",
    reasoning: str = "",
) -> Agent:
    """
    Build a fresh agent at the start of a simulation.

    ``quality`` is clamped into [0.1, 1] and ``brand_power`` into [0, 1]; a
    missing, non-finite or non-positive ``base_pricing`` falls back to
    :data:`DEFAULT_BASE_PRICING`. The current price starts at the base price and
    all simulation outputs start at zero with an empty history.
    """
    price = _finite_or(base_pricing, DEFAULT_BASE_PRICING)
    if price <= 0:
        price = DEFAULT_BASE_PRICING

    return Agent(
        id=str(id),
        name=str(name),
        role=AgentRole.parse(role),
        archetype=AgentArchetype.parse(archetype),
        base_pricing=price,
        current_pricing=price,
        quality=clamp(_finite_or(quality, 0.5), QUALITY_MIN, QUALITY_MAX),
        brand_power=clamp(_finite_or(brand_power, 0.5), BRAND_POWER_MIN, BRAND_POWER_MAX),
        budget=max(0.0, _finite_or(budget, 0.0)),
        market_share=clamp(float(initial_share), 0.0, 1.0),
        description=description or "",
        strategy_style=strategy_style or "",
        reasoning=reasoning or "",
    )
