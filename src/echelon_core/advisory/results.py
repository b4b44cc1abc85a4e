"""Tagged outcomes of one advisory gateway call.

Callers branch on the concrete type (or on ``result.ok``) instead of catching
exceptions, which keeps every fallback path explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union


@dataclass(frozen=True)
class AdvisoryOk:
    text: str
    parsed: Any = None

    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class SchemaError:
    """The service answered but the content did not match the requested schema."""

    message: str
    raw_text: str = ""

    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class TransportError:
    message: str
    status_code: Optional[int] = None

    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class RateLimited:
    message: str
    attempts: int = 0

    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class ServiceUnavailable:
    """Refused locally because the circuit is open."""

    message: str
    retry_after: float = 0.0

    ok: ClassVar[bool] = False


AdvisoryResult = Union[AdvisoryOk, SchemaError, TransportError, RateLimited, ServiceUnavailable]
