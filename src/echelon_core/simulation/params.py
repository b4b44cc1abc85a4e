"""Validated job-creation parameters."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from echelon_core.config import SimulationSettings
from echelon_core.errors import SimulationValidationError
from echelon_core.models import clamp


def _number(value: Any, default: float) -> float:
    """Lenient numeric coercion: numbers and numeric strings; anything else is ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def _required_text(raw: Mapping[str, Any], key: str, max_length: int, message: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise SimulationValidationError(message)
    return value.strip()[:max_length]


@dataclass(frozen=True)
class SimulationParams:
    idea: str
    region: str
    population: float = 20_000
    sentiment: float = 0.65
    duration: int = 24
    seed: Optional[int] = None

    @classmethod
    def from_payload(cls, raw: Any, settings: Optional[SimulationSettings] = None) -> "SimulationParams":
        """
        Validate a job-creation body.

        ``idea`` and ``region`` are required non-blank strings (trimmed and
        length-capped). Everything else is clamped into range or defaulted,
        never rejected.

        Raises:
            SimulationValidationError: body is not an object, or idea/region is missing.
        """
        bounds = settings or SimulationSettings()
        if not isinstance(raw, Mapping):
            raise SimulationValidationError("Invalid request body.")

        idea = _required_text(raw, "idea", bounds.idea_max_length, "Idea is required.")
        region = _required_text(raw, "region", bounds.region_max_length, "Region is required.")

        population = clamp(
            _number(raw.get("population"), bounds.population_default),
            bounds.population_min,
            bounds.population_max,
        )
        sentiment = clamp(_number(raw.get("sentiment"), bounds.sentiment_default), 0.0, 1.0)
        duration = int(
            clamp(
                _number(raw.get("duration"), bounds.duration_default),
                bounds.duration_min,
                bounds.duration_max,
            )
        )

        seed_value = raw.get("seed")
        seed = None
        if isinstance(seed_value, int) and not isinstance(seed_value, bool):
            seed = seed_value

        return cls(
            idea=idea,
            region=region,
            population=population,
            sentiment=sentiment,
            duration=duration,
            seed=seed,
        )
