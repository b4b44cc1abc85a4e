"""
Centralized configuration for Echelon using pydantic-settings.

Precedence (highest first):
    1. Explicit keyword arguments to ``Settings(...)``
    2. Environment variables (``ECHELON_`` prefix, ``__`` for nested sections,
       e.g. ``ECHELON_ADVISORY__REQUESTS_PER_MINUTE=12``)
    3. ``.env`` file
    4. YAML overlay named by ``ECHELON_CONFIG_PATH``
    5. Defaults below

Usage:
    from echelon_core.config import get_settings

    settings = get_settings()           # cached
    get_settings.cache_clear()          # tests
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional, Tuple, Type

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_PATH_ENV = "ECHELON_CONFIG_PATH"


class ApiSettings(BaseModel):
    title: str = "Echelon Market Simulation API"
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class SimulationSettings(BaseModel):
    """Input bounds/defaults for job creation and fixed model constants."""

    idea_max_length: int = 2000
    region_max_length: int = 120

    population_min: float = 1000
    population_max: float = 5_000_000
    population_default: float = 20_000

    sentiment_default: float = 0.65

    duration_min: int = 1
    duration_max: int = 60
    duration_default: int = 24

    checkpoint_interval: int = Field(default=6, ge=1)
    visits_per_month_default: float = Field(default=2.5, gt=0)
    volatility: float = 0.05
    share_inertia: float = Field(default=0.85, ge=0.0, le=1.0)
    profit_margin: float = Field(default=0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "SimulationSettings":
        if self.population_min > self.population_max:
            raise ValueError("population_min must be <= population_max")
        if self.duration_min > self.duration_max:
            raise ValueError("duration_min must be <= duration_max")
        return self


class AdvisorySettings(BaseModel):
    """External advisory service and the resilience policies wrapped around it."""

    provider: str = "gemini"
    model: str = "gemini-2.0-flash"
    api_key_env: str = "GEMINI_API_KEY"
    # None selects the provider default endpoint.
    base_url: Optional[str] = None
    timeout_seconds: Optional[float] = 60.0
    temperature: float = 0.7

    requests_per_minute: float = Field(default=10.0, gt=0)
    min_interval_seconds: float = Field(default=0.5, ge=0)

    max_attempts: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=2.0, ge=0)
    backoff_jitter_seconds: float = Field(default=1.0, ge=0)

    circuit_failure_threshold: int = Field(default=5, ge=1)
    circuit_cooldown_seconds: float = Field(default=60.0, ge=0)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    destination: str = "stdout"  # stdout | stderr | file
    filename: Optional[str] = None
    format: str = "%(asctime)s %(levelname)s %(name)s - %(message)s"


class Settings(BaseSettings):
    """Root settings aggregator."""

    environment: str = "development"
    api: ApiSettings = Field(default_factory=ApiSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    advisory: AdvisorySettings = Field(default_factory=AdvisorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="ECHELON_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in ("production", "prod", "staging")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        sources: Tuple[PydanticBaseSettingsSource, ...] = (
            init_settings,
            env_settings,
            dotenv_settings,
        )
        overlay = os.getenv(CONFIG_PATH_ENV)
        if overlay:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=overlay),)
        return sources + (file_secret_settings,)


@lru_cache
def get_settings() -> Settings:
    return Settings()
