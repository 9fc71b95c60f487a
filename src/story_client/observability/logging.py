"""Shared logging utilities for the story client.

Every module takes its logger from `get_logger` so that output has one format
and the level of the whole package can be changed at runtime (the CLI's
`--verbose` flag switches it to DEBUG).

Usage example:
    from story_client.observability.logging import get_logger

    logger = get_logger("story_client.resources.ratings")
    logger.info("Loaded %s ratings for %s", count, story_id)
"""

from __future__ import annotations

import logging
import time

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_ROOT_NAME = "story_client"

_level = logging.INFO


def _owned(name: str) -> bool:
    return name == _ROOT_NAME or name.startswith(_ROOT_NAME + ".")


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a single UTC-stamped stream handler.

    Args:
        name: Logger name (use a stable module-qualified name).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(_level if _owned(name) else logging.INFO)
        logger.propagate = False
    return logger


def set_log_level(level: int) -> None:
    """Apply `level` to every story_client logger, existing and future."""
    global _level
    _level = level
    for name, logger in logging.root.manager.loggerDict.items():
        if _owned(name) and isinstance(logger, logging.Logger):
            logger.setLevel(level)
