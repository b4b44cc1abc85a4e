from .agent import (
    DEFAULT_BASE_PRICING,
    Agent,
    AgentArchetype,
    AgentRole,
    HistoryEntry,
    clamp,
    create_agent,
)
from .market import EventImpact, MarketEvent, MarketState, initialize_market_state

__all__ = [
    "DEFAULT_BASE_PRICING",
    "Agent",
    "AgentArchetype",
    "AgentRole",
    "EventImpact",
    "HistoryEntry",
    "MarketEvent",
    "MarketState",
    "clamp",
    "create_agent",
    "initialize_market_state",
]
