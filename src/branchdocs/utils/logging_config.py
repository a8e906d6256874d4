"""Logging setup shared by the library and the BFF server."""

from __future__ import annotations

import logging
import sys

from branchdocs.config import BRANCHDOCS_LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_ROOT_LOGGER = "branchdocs"


def configure_logging(level: str | int | None = None) -> None:
    """Install a single stderr handler on the root logger.

    Uvicorn is started with ``log_config=None`` so its ``uvicorn.*`` loggers
    propagate here as well.

    Args:
        level: Log level name or number. Defaults to ``BRANCHDOCS_LOG_LEVEL``.
    """
    root = logging.getLogger()
    resolved = level if level is not None else BRANCHDOCS_LOG_LEVEL
    root.setLevel(resolved)
    if any(getattr(handler, "_branchdocs", False) for handler in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._branchdocs = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, namespaced under ``branchdocs`` when needed."""
    if name == "__main__" or name.startswith((_ROOT_LOGGER, "server")):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")
