from .circuit_breaker import CircuitBreaker, CircuitState
from .gateway import (
    PRIORITY_AGENT_GENERATION,
    PRIORITY_CHECKPOINT,
    PRIORITY_REPORT,
    AdvisoryGateway,
    get_advisory_gateway,
    set_advisory_gateway,
)
from .rate_limiter import TokenBucketRateLimiter
from .results import (
    AdvisoryOk,
    AdvisoryResult,
    RateLimited,
    SchemaError,
    ServiceUnavailable,
    TransportError,
)

__all__ = [
    "PRIORITY_AGENT_GENERATION",
    "PRIORITY_CHECKPOINT",
    "PRIORITY_REPORT",
    "AdvisoryGateway",
    "AdvisoryOk",
    "AdvisoryResult",
    "CircuitBreaker",
    "CircuitState",
    "RateLimited",
    "SchemaError",
    "ServiceUnavailable",
    "TokenBucketRateLimiter",
    "TransportError",
    "get_advisory_gateway",
    "set_advisory_gateway",
]
