"""Logging helpers. The library never installs handlers on import."""
from __future__ import annotations

import logging
import os

ENV_LEVEL = "TABLEFSM_LOG_LEVEL"
LOGGER_NAME = "tablefsm"


def resolve_level(value: int | str | None = None) -> int:
    """Turn an int, a level name or number string, or ``$TABLEFSM_LOG_LEVEL`` into a level.

    Defaults to INFO.
    """
    if isinstance(value, int):
        return value
    for candidate in (value, os.environ.get(ENV_LEVEL)):
        if isinstance(candidate, str):
            candidate = candidate.strip()
            if candidate.isdigit():
                return int(candidate)
            level = logging.getLevelName(candidate.upper())
            if isinstance(level, int):
                return level
    return logging.INFO


def configure_logging(level: int | str | None = None) -> None:
    """Set up root logging once, then set the ``tablefsm`` logger level."""
    resolved = resolve_level(level)
    root = logging.getLogger()
    if not root.hasHandlers():
        logging.basicConfig(
            level=resolved,
            format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
    logging.getLogger(LOGGER_NAME).setLevel(resolved)


def get_logger(name: str | None = None) -> logging.Logger:
    if not name:
        return logging.getLogger(LOGGER_NAME)
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
