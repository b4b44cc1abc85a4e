"""Structured response parsing for advisory model outputs."""

import json
import logging
import re
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


class ResponseParseError(ValueError):
    """Model output could not be decoded or did not match the expected schema."""


def extract_json(text: str) -> Any:
    """
    Decode the JSON value carried by a model response.

    Accepts plain JSON, JSON wrapped in a Markdown code fence, or JSON embedded
    in surrounding prose (the outermost ``{...}`` or ``[...]`` span is used).
    """
    if text is None:
        raise ResponseParseError("Empty response")
    candidate = text.strip()
    fenced = _FENCE_RE.match(candidate)
    if fenced:
        candidate = fenced.group(1)
    if not candidate:
        raise ResponseParseError("Empty response")

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    starts = [i for i in (candidate.find("{"), candidate.find("[")) if i != -1]
    if not starts:
        raise ResponseParseError("No JSON value found in response")
    start = min(starts)
    closer = "}" if candidate[start] == "{" else "]"
    end = candidate.rfind(closer)
    if end <= start:
        raise ResponseParseError("Unterminated JSON value in response")
    try:
        return json.loads(candidate[start : end + 1])
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"JSON parse error: {e}") from e


def parse_structured(text: str, model: Type[ModelT]) -> ModelT:
    """Decode ``text`` and validate it against ``model``."""
    data = extract_json(text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.debug("Advisory response failed %s validation: %s", model.__name__, e)
        raise ResponseParseError(
            f"Response does not match {model.__name__}: {e.error_count()} validation error(s)"
        ) from e
