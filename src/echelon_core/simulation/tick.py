"""
Deterministic tick processor.

One call advances the market by one simulated month. The function is pure: the
only randomness is a single ``rng.uniform(-0.05, 0.05)`` draw per agent (in
agent order) from the injected ``random.Random``, so a seeded generator
reproduces a run exactly.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import List

from echelon_core.errors import SimulationHorizonError
from echelon_core.models import Agent, HistoryEntry, MarketState

SHARE_INERTIA = 0.85
PROFIT_MARGIN = 0.25
MONTHLY_VARIANCE = 0.05

MIN_PRICE = 0.1
MIN_PRICE_RATIO_DIVISOR = 0.5
MIN_UTILITY = 0.01


def agent_utility(agent: Agent) -> float:
    """Attractiveness of an agent: quality and brand, discounted by relative price."""
    price_ratio = max(MIN_PRICE, agent.current_pricing) / max(MIN_PRICE, agent.base_pricing)
    return max(MIN_UTILITY, (agent.quality * 1.5 + agent.brand_power) / max(MIN_PRICE_RATIO_DIVISOR, price_ratio))


def target_shares(agents) -> List[float]:
    utilities = [agent_utility(agent) for agent in agents]
    total = sum(utilities)
    return [u / total for u in utilities]


def run_simulation_tick(
    state: MarketState,
    rng: random.Random,
    *,
    share_inertia: float = SHARE_INERTIA,
    profit_margin: float = PROFIT_MARGIN,
) -> MarketState:
    """
    Advance ``state`` by one month and return the new state.

    Shares blend the previous share with the utility-derived target
    (``inertia * share + (1 - inertia) * target``), which keeps their sum at 1.
    Revenue and profit accumulate; ``growth_rate`` compares cumulative revenue
    with the previous history entry.

    Raises:
        SimulationHorizonError: if the market is already at its horizon.
    """
    if state.tick >= state.max_ticks:
        raise SimulationHorizonError(state.tick, state.max_ticks)

    targets = target_shares(state.agents)
    demand = state.population_scale * state.market_sentiment * state.visits_per_month

    next_agents = []
    for agent, target in zip(state.agents, targets):
        actual_share = agent.market_share * share_inertia + target * (1.0 - share_inertia)
        monthly_variance = 1.0 + rng.uniform(-MONTHLY_VARIANCE, MONTHLY_VARIANCE)

        transactions = demand * actual_share * monthly_variance
        revenue_this_month = transactions * agent.current_pricing
        profit_this_month = revenue_this_month * profit_margin

        new_revenue = agent.revenue + revenue_this_month
        previous = agent.last_history
        if previous is not None and previous.revenue > 0:
            growth_rate = (new_revenue - previous.revenue) / previous.revenue
        else:
            growth_rate = 0.0

        entry = HistoryEntry(
            tick=state.tick,
            share=actual_share,
            revenue=new_revenue,
            pricing=agent.current_pricing,
        )
        next_agents.append(
            replace(
                agent,
                market_share=actual_share,
                revenue=new_revenue,
                profit=agent.profit + profit_this_month,
                growth_rate=growth_rate,
                history=agent.history + (entry,),
            )
        )

    return replace(state, tick=state.tick + 1, agents=tuple(next_agents))
