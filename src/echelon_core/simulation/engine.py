"""
Simulation engine: runs one job from agent generation to the final report.

    engine = SimulationEngine(params, gateway)
    result = await engine.run(on_progress=lambda p: print(p))

Progress is reported as 5 (before agent generation), 10 (market initialised),
``10 + floor(tick / max_ticks * 80)`` after each month, 90 (report phase) and
100 (done). The month loop is strictly sequential; checkpoints run inside it.
"""

from __future__ import annotations

import inspect
import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from echelon_core.advisory import AdvisoryGateway
from echelon_core.advisory.schemas import FeasibilityReport
from echelon_core.config import Settings, get_settings
from echelon_core.models import MarketState, initialize_market_state

from .agent_generation import AgentGenerator
from .params import SimulationParams
from .report import ReportSynthesizer
from .strategy import StrategyInterventionAdapter, is_checkpoint
from .tick import run_simulation_tick

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], Any]


@dataclass
class SimulationResult:
    state: MarketState
    report: FeasibilityReport
    used_fallback_agents: bool = False
    market_description: str = ""
    checkpoints_run: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "marketState": self.state.to_dict(),
            "agents": [agent.to_dict() for agent in self.state.agents],
            "events": [event.to_dict() for event in self.state.events],
            "report": self.report.to_wire(),
            "usedFallbackAgents": self.used_fallback_agents,
            "marketDescription": self.market_description,
        }


class SimulationEngine:
    def __init__(
        self,
        params: SimulationParams,
        gateway: AdvisoryGateway,
        *,
        rng: Optional[random.Random] = None,
        settings: Optional[Settings] = None,
    ):
        self.params = params
        self.gateway = gateway
        self.rng = rng or random.Random(params.seed)
        self.settings = settings or get_settings()

    async def _emit(self, on_progress: Optional[ProgressCallback], value: int) -> None:
        if on_progress is None:
            return
        outcome = on_progress(value)
        if inspect.isawaitable(outcome):
            await outcome

    async def run(self, on_progress: Optional[ProgressCallback] = None) -> SimulationResult:
        sim = self.settings.simulation
        params = self.params

        await self._emit(on_progress, 5)
        market = await AgentGenerator(
            self.gateway, default_visits_per_month=sim.visits_per_month_default
        ).generate(params.idea, params.region, params.population)

        state = initialize_market_state(
            market.agents,
            region=params.region,
            population_scale=params.population,
            market_sentiment=params.sentiment,
            max_ticks=params.duration,
            visits_per_month=market.visits_per_month,
            volatility=sim.volatility,
        )
        await self._emit(on_progress, 10)

        adapter = StrategyInterventionAdapter(self.gateway)
        checkpoints = 0
        total = state.max_ticks
        for tick in range(total):
            state = run_simulation_tick(
                state,
                self.rng,
                share_inertia=sim.share_inertia,
                profit_margin=sim.profit_margin,
            )
            if is_checkpoint(tick, sim.checkpoint_interval):
                state = await adapter.intervene(state, tick)
                checkpoints += 1
            await self._emit(on_progress, 10 + math.floor(tick / total * 80))

        await self._emit(on_progress, 90)
        report = await ReportSynthesizer(self.gateway).synthesize(state)
        await self._emit(on_progress, 100)

        logger.info(
            "Simulation finished: %d months, %d agents, %d checkpoints, score %.1f",
            total,
            len(state.agents),
            checkpoints,
            report.feasibility_score,
        )
        return SimulationResult(
            state=state,
            report=report,
            used_fallback_agents=market.used_fallback,
            market_description=market.description,
            checkpoints_run=checkpoints,
        )
