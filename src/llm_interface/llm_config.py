"""
Configuration for the advisory LLM client.

This module defines the `LLMConfig` dataclass, which is used to specify the
provider, model and transport parameters of the advisory collaborator.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

SUPPORTED_PROVIDERS = ("gemini", "openrouter")


@dataclass
class LLMConfig:
    """
    Configuration for an LLM provider and model.
    """

    provider: str  # "gemini" or "openrouter"
    model: str  # e.g., "gemini-2.0-flash", "google/gemini-2.0-flash-001"
    api_key_env: Optional[str] = None  # Environment variable name for API key
    base_url: Optional[str] = None
    temperature: float = 0.7
    # If None, the client disables network timeouts (not recommended).
    timeout: Optional[float] = 60

    def __post_init__(self) -> None:
        """
        Validate configuration values early to surface misconfiguration fast.
        """
        if not isinstance(self.provider, str) or not self.provider.strip():
            raise ValueError("provider must be a non-empty string")
        self.provider = self.provider.strip().lower()
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown provider '{self.provider}'. Use one of: {', '.join(SUPPORTED_PROVIDERS)}"
            )
        if not isinstance(self.model, str) or not self.model.strip():
            raise ValueError("model must be a non-empty string")
        if not (0.0 <= float(self.temperature) <= 2.0):
            raise ValueError("temperature must be within [0.0, 2.0]")
        if self.timeout is not None and float(self.timeout) <= 0:
            raise ValueError("timeout must be > 0 when set")

        if self.base_url:
            parsed = urlparse(self.base_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"Invalid base_url: {self.base_url}")

        # Credentials are resolved lazily: a missing key is not a config error,
        # the client reports it on every call so the simulation falls back.

    def resolve_api_key(self) -> Optional[str]:
        if not self.api_key_env:
            return None
        value = (os.getenv(self.api_key_env) or "").strip()
        # Sanitize accidental quotes from .env files
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1].strip()
        return value or None

    @classmethod
    def from_settings(cls, advisory_settings) -> "LLMConfig":
        return cls(
            provider=advisory_settings.provider,
            model=advisory_settings.model,
            api_key_env=advisory_settings.api_key_env,
            base_url=advisory_settings.base_url,
            temperature=advisory_settings.temperature,
            timeout=advisory_settings.timeout_seconds,
        )
