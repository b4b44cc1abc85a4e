"""Provider selection for the advisory client."""

from __future__ import annotations

from llm_interface.contract import BaseAdvisoryClient
from llm_interface.gemini_client import GeminiClient
from llm_interface.llm_config import LLMConfig
from llm_interface.openrouter_client import OpenRouterClient


def create_advisory_client(config: LLMConfig) -> BaseAdvisoryClient:
    """Factory: create the advisory client for the configured provider."""
    if config.provider == "gemini":
        return GeminiClient(config)
    if config.provider == "openrouter":
        return OpenRouterClient(config)
    raise ValueError(f"Unknown advisory provider: {config.provider}")
