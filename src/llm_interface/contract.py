"""
Contract every advisory collaborator client implements.

Clients return the raw model text and signal every failure as
:class:`AdvisoryClientError`; retry, rate limiting and circuit breaking are the
gateway's job, not the client's.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class AdvisoryClientError(Exception):
    """Failure talking to the advisory service.

    ``status_code`` carries the HTTP status when one was received; ``None``
    means a network-level failure or a malformed envelope.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        original_exception: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.original_exception = original_exception

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_client_error(self) -> bool:
        """4xx other than 429: the request itself is wrong, retrying will not help."""
        return self.status_code is not None and 400 <= self.status_code < 500 and self.status_code != 429


class BaseAdvisoryClient(ABC):
    def __init__(self, model_name: str, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.model_name = model_name
        self.api_key = api_key
        self.base_url = base_url

    @abstractmethod
    async def generate(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None) -> str:
        """Send one prompt and return the model's text output."""

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to close."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
