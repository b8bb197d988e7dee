"""Logging setup for pr-risk."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "pr_risk"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_MARKER = "_pr_risk_handler"


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Calling it again replaces the previous handler so the current
    ``sys.stderr`` is always the target.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger

