"""Advisory (LLM) client layer: contract, providers, structured response parsing."""

from .contract import AdvisoryClientError, BaseAdvisoryClient
from .factory import create_advisory_client
from .llm_config import LLMConfig
from .response_parser import ResponseParseError, extract_json, parse_structured

__all__ = [
    "AdvisoryClientError",
    "BaseAdvisoryClient",
    "LLMConfig",
    "ResponseParseError",
    "create_advisory_client",
    "extract_json",
    "parse_structured",
]
