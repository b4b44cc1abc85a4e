from .agent_generation import AgentGenerator, GeneratedMarket
from .engine import SimulationEngine, SimulationResult
from .fallback import fallback_agents, fallback_report
from .params import SimulationParams
from .report import ReportSynthesizer
from .strategy import StrategyInterventionAdapter, apply_strategy_updates, is_checkpoint
from .tick import run_simulation_tick

__all__ = [
    "AgentGenerator",
    "GeneratedMarket",
    "ReportSynthesizer",
    "SimulationEngine",
    "SimulationParams",
    "SimulationResult",
    "StrategyInterventionAdapter",
    "apply_strategy_updates",
    "fallback_agents",
    "fallback_report",
    "is_checkpoint",
    "run_simulation_tick",
]
