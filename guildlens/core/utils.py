"""Shared utility helpers."""

from __future__ import annotations

import logging
import math
import sys
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 away from the floor, unlike ``round()``'s banker's rounding."""
    return math.floor(value + 0.5)


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging for the application."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if json_format:
        fmt = (
            '{"time":"%(asctime)s","level":"%(levelname)s",'
            '"logger":"%(name)s","message":"%(message)s"}'
        )
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"

    logging.basicConfig(
        level=numeric_level,
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    # Silence noisy third-party loggers
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
