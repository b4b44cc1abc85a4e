"""
HTTP error rendering.

Every failure leaves the API as ``{"success": false, "error": {"message": ...}}``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from echelon_core.errors import (
    EchelonError,
    SimulationNotFoundError,
    SimulationStateError,
    SimulationValidationError,
)

logger = logging.getLogger(__name__)

__all__ = [
    "SimulationNotFoundError",
    "SimulationStateError",
    "SimulationValidationError",
    "add_exception_handlers",
    "error_envelope",
]

INVALID_BODY_MESSAGE = "Invalid request body."


def error_envelope(message: str) -> Dict[str, Any]:
    return {"success": False, "error": {"message": message}}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_envelope(message))


async def _validation_handler(request: Request, exc: SimulationValidationError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error_response(status.HTTP_400_BAD_REQUEST, INVALID_BODY_MESSAGE)


async def _not_found_handler(request: Request, exc: SimulationNotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc))


async def _state_handler(request: Request, exc: SimulationStateError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc))


async def _echelon_handler(request: Request, exc: EchelonError) -> JSONResponse:
    logger.error("Unhandled Echelon error on %s: %s", request.url.path, exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SimulationValidationError, _validation_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(SimulationNotFoundError, _not_found_handler)
    app.add_exception_handler(SimulationStateError, _state_handler)
    app.add_exception_handler(EchelonError, _echelon_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
