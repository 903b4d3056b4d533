"""Logging configuration helpers for the quiz ranking service."""

from __future__ import annotations

import logging
from logging import Logger

from quizrank.config import LOG_LEVEL


def configure_logging() -> Logger:
    """Configure basic logging for the service and return its root logger."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("quizrank")
