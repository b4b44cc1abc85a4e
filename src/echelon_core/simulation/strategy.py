"""
Strategy intervention at checkpoints.

Every ``checkpoint_interval`` months the advisory service is shown the current
standings and may nudge each agent's price and quality, rewrite its strategy
text and add one market event. A failed or unusable answer skips the
checkpoint; the simulation continues unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from echelon_core.advisory import PRIORITY_CHECKPOINT, AdvisoryGateway
from echelon_core.advisory.schemas import (
    STRATEGY_CHECKPOINT_SCHEMA,
    MarketEventPayload,
    StrategyCheckpointResponse,
    StrategyUpdate,
)
from echelon_core.models import Agent, EventImpact, MarketEvent, MarketState, clamp
from echelon_core.models.agent import QUALITY_MAX, QUALITY_MIN

from .prompts import build_checkpoint_prompt

logger = logging.getLogger(__name__)


def is_checkpoint(tick: int, interval: int = 6) -> bool:
    return tick > 0 and tick % interval == 0


def _find_update(agent: Agent, updates: Iterable[StrategyUpdate]) -> Optional[StrategyUpdate]:
    # First match on id or name wins.
    for update in updates:
        if update.agent_id == agent.id or update.agent_id == agent.name:
            return update
    return None


def _non_blank(value: Optional[str], current: str) -> str:
    if value is not None and value.strip():
        return value
    return current


def apply_strategy_updates(
    state: MarketState,
    updates: Iterable[StrategyUpdate],
    market_event: Optional[MarketEventPayload] = None,
    tick: Optional[int] = None,
) -> MarketState:
    """
    Merge advisory deltas into the market.

    Agents without a matching update are left as they are. Prices compound
    (``current_pricing *= 1 + pricing_change``); quality stays within
    [0.1, 1]; the base price is never touched. The optional event is appended
    tagged with ``tick`` (defaults to the state's tick).
    """
    updates = list(updates)
    agents = []
    for agent in state.agents:
        update = _find_update(agent, updates)
        if update is None:
            agents.append(agent)
            continue
        agents.append(
            replace(
                agent,
                current_pricing=agent.current_pricing * (1.0 + update.pricing_change),
                quality=clamp(agent.quality + update.quality_adjustment, QUALITY_MIN, QUALITY_MAX),
                strategy_style=_non_blank(update.new_strategy, agent.strategy_style),
                reasoning=_non_blank(update.reasoning, agent.reasoning),
            )
        )

    next_state = replace(state, agents=tuple(agents))
    if market_event is not None:
        next_state = next_state.with_event(
            MarketEvent(
                tick=state.tick if tick is None else tick,
                title=market_event.title,
                description=market_event.description,
                impact=EventImpact.parse(market_event.impact),
            )
        )
    return next_state


class StrategyInterventionAdapter:
    def __init__(self, gateway: AdvisoryGateway):
        self.gateway = gateway

    async def intervene(self, state: MarketState, tick: int) -> MarketState:
        """Run one checkpoint; returns ``state`` unchanged when the advisory call fails."""
        result = await self.gateway.call(
            build_checkpoint_prompt(state),
            priority=PRIORITY_CHECKPOINT,
            response_schema=STRATEGY_CHECKPOINT_SCHEMA,
            response_model=StrategyCheckpointResponse,
        )
        if not result.ok:
            logger.warning("Skipping strategy checkpoint at month %d: %s", tick, result.message)
            return state

        response: StrategyCheckpointResponse = result.parsed
        logger.info(
            "Checkpoint at month %d: %d update(s)%s",
            tick,
            len(response.updates),
            ", with market event" if response.market_event else "",
        )
        return apply_strategy_updates(state, response.updates, response.market_event, tick)
