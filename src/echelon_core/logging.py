"""
Unified logging bootstrap for Echelon.

Usage:
    from echelon_core.config import get_settings
    from echelon_core.logging import configure_logging

    configure_logging(get_settings())  # idempotent

- Supports JSON (python-json-logger) and plain formats
- Supports stdout/stderr/file destinations
- Respects configured log level across root and key library loggers
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

_configured = False

NOISY_LIBRARIES = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "httpx",
    "httpcore",
    "asyncio",
)


def _level_from_str(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _make_handler(destination: str, filename: Optional[str]) -> logging.Handler:
    if destination == "stdout":
        return logging.StreamHandler(stream=sys.stdout)
    if destination == "stderr":
        return logging.StreamHandler(stream=sys.stderr)
    path = Path(filename or "echelon.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def _make_formatter(json_enabled: bool, fmt: str) -> logging.Formatter:
    if json_enabled:
        return JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(process)d %(threadName)s"
        )
    return logging.Formatter(fmt)


def configure_logging(settings=None, *, force: bool = False) -> None:
    """
    Configure root logging according to ``settings.logging``. Safe to call multiple times.

    Params:
      - settings: echelon_core.config.Settings (lazily loaded if None)
      - force: reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    if settings is None:
        from echelon_core.config import get_settings  # lazy import to avoid cycles

        settings = get_settings()

    lvl = _level_from_str(settings.logging.level)
    handler = _make_handler(settings.logging.destination, settings.logging.filename)
    handler.setFormatter(_make_formatter(settings.logging.json_format, settings.logging.format))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(lvl)
    root.addHandler(handler)

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(max(lvl, logging.INFO))

    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Mirror of logging.getLogger that makes sure base configuration exists."""
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
