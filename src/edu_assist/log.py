"""Logging setup shared by the API and scripts."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install one stream handler on the package logger.

    Safe to call repeatedly; later calls only adjust the level.
    """

    logger = logging.getLogger("edu_assist")
    logger.setLevel(level if isinstance(level, int) else level.upper())
    if not any(getattr(handler, "_edu_assist", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._edu_assist = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
