"""
Advisory gateway: the single, process-wide entry point to the advisory service.

Every call passes through three policies, in order:

1. the circuit breaker (fail fast while the service is considered down),
2. the shared token bucket (one token per attempt, priority ordered),
3. retry with exponential backoff and jitter for rate-limited and transient
   failures.

Outcomes are returned as :mod:`echelon_core.advisory.results` variants. Only
programming errors (anything that is not an ``AdvisoryClientError``) escape.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel

from llm_interface import (
    AdvisoryClientError,
    BaseAdvisoryClient,
    LLMConfig,
    ResponseParseError,
    create_advisory_client,
    parse_structured,
)

from .circuit_breaker import CircuitBreaker
from .rate_limiter import TokenBucketRateLimiter
from .results import (
    AdvisoryOk,
    AdvisoryResult,
    RateLimited,
    SchemaError,
    ServiceUnavailable,
    TransportError,
)

logger = logging.getLogger(__name__)

# Jobs close to completion drain first.
PRIORITY_REPORT = 3
PRIORITY_AGENT_GENERATION = 2
PRIORITY_CHECKPOINT = 1


class AdvisoryGateway:
    def __init__(
        self,
        client: BaseAdvisoryClient,
        *,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        max_attempts: int = 3,
        backoff_base_seconds: float = 2.0,
        backoff_jitter_seconds: float = 1.0,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.client = client
        self.rate_limiter = rate_limiter or TokenBucketRateLimiter()
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self.max_attempts = max_attempts
        self.backoff_base_seconds = backoff_base_seconds
        self.backoff_jitter_seconds = backoff_jitter_seconds
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._calls = 0
        self._failures = 0

    @classmethod
    def from_settings(cls, settings, client: Optional[BaseAdvisoryClient] = None) -> "AdvisoryGateway":
        """Build the gateway, limiter and breaker from ``Settings.advisory``."""
        advisory = settings.advisory
        if client is None:
            client = create_advisory_client(LLMConfig.from_settings(advisory))
        return cls(
            client,
            rate_limiter=TokenBucketRateLimiter(
                advisory.requests_per_minute,
                min_interval_seconds=advisory.min_interval_seconds,
            ),
            circuit_breaker=CircuitBreaker(
                advisory.circuit_failure_threshold,
                advisory.circuit_cooldown_seconds,
            ),
            max_attempts=advisory.max_attempts,
            backoff_base_seconds=advisory.backoff_base_seconds,
            backoff_jitter_seconds=advisory.backoff_jitter_seconds,
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (``attempt`` is 0-based)."""
        jitter = self._rng.uniform(0, self.backoff_jitter_seconds) if self.backoff_jitter_seconds > 0 else 0.0
        return self.backoff_base_seconds * (2 ** attempt) + jitter

    async def call(
        self,
        prompt: str,
        *,
        priority: int = 0,
        response_schema: Optional[Dict[str, Any]] = None,
        response_model: Optional[Type[BaseModel]] = None,
    ) -> AdvisoryResult:
        """
        Issue one logical advisory request.

        Args:
            prompt: Full prompt text.
            priority: Rate limiter priority; higher is served first.
            response_schema: Structured-output schema forwarded to the client.
            response_model: When given, the text is decoded and validated and
                ``AdvisoryOk.parsed`` holds the model instance.
        """
        self._calls += 1
        if not self.circuit_breaker.allow_request():
            retry_after = self.circuit_breaker.retry_after()
            logger.warning("Advisory circuit open; failing fast (retry after %.1fs)", retry_after)
            self._failures += 1
            return ServiceUnavailable("Advisory service unavailable (circuit open)", retry_after)

        last_error: Optional[AdvisoryClientError] = None
        try:
            for attempt in range(self.max_attempts):
                await self.rate_limiter.acquire(priority)
                try:
                    text = await self.client.generate(prompt, response_schema)
                except AdvisoryClientError as e:
                    last_error = e
                    if e.is_client_error:
                        logger.warning("Advisory request rejected (status %s): %s", e.status_code, e)
                        break
                    if attempt + 1 < self.max_attempts:
                        delay = self.backoff_delay(attempt)
                        logger.warning(
                            "Advisory call failed (attempt %d/%d, status %s); retrying in %.1fs",
                            attempt + 1,
                            self.max_attempts,
                            e.status_code,
                            delay,
                        )
                        await self._sleep(delay)
                    continue

                self.circuit_breaker.record_success()
                return self._parse(text, response_model)
        except asyncio.CancelledError:
            self.circuit_breaker.release_trial()
            raise
        except Exception:
            self.circuit_breaker.record_failure()
            raise

        self.circuit_breaker.record_failure()
        self._failures += 1
        assert last_error is not None
        if last_error.is_rate_limited:
            logger.warning("Advisory call rate limited after %d attempts", self.max_attempts)
            return RateLimited(str(last_error), attempts=self.max_attempts)
        return TransportError(str(last_error), last_error.status_code)

    def _parse(self, text: str, response_model: Optional[Type[BaseModel]]) -> AdvisoryResult:
        if response_model is None:
            return AdvisoryOk(text)
        try:
            parsed = parse_structured(text, response_model)
        except ResponseParseError as e:
            logger.warning("Advisory response rejected: %s", e)
            self._failures += 1
            return SchemaError(str(e), raw_text=text)
        return AdvisoryOk(text, parsed)

    def status(self) -> Dict[str, Any]:
        return {
            "provider_model": self.client.model_name,
            "calls": self._calls,
            "failures": self._failures,
            "rate_limiter": self.rate_limiter.snapshot(),
            "circuit_breaker": self.circuit_breaker.snapshot(),
        }

    async def aclose(self) -> None:
        await self.client.aclose()


_gateway: Optional[AdvisoryGateway] = None


def get_advisory_gateway() -> AdvisoryGateway:
    """Process-wide gateway, built from settings on first use."""
    global _gateway
    if _gateway is None:
        from echelon_core.config import get_settings

        _gateway = AdvisoryGateway.from_settings(get_settings())
    return _gateway


def set_advisory_gateway(gateway: Optional[AdvisoryGateway]) -> None:
    """Install (or clear, with ``None``) the process-wide gateway."""
    global _gateway
    _gateway = gateway
