"""Shared enumerations with explicit orderings."""

from __future__ import annotations

from enum import Enum


class Trend(str, Enum):
    """Direction of activity between two comparable periods."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"

    def __str__(self) -> str:
        return self.value


class AlertType(str, Enum):
    ACTIVITY = "activity"
    CHANNEL = "channel"
    ACTIVATION = "activation"

    def __str__(self) -> str:
        return self.value


class AlertLevel(str, Enum):
    """Alert severity. ``rank`` gives the sort order (most severe first)."""

    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        return _ALERT_RANKS[self]

    def __str__(self) -> str:
        return self.value


_ALERT_RANKS: dict[AlertLevel, int] = {
    AlertLevel.CRITICAL: 0,
    AlertLevel.WARNING: 1,
    AlertLevel.INFO: 2,
}


class HealthBand(str, Enum):
    """Score buckets used for interpretation text."""

    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def from_score(cls, score: int) -> HealthBand:
        if score >= 80:
            return cls.EXCELLENT
        if score >= 60:
            return cls.GOOD
        if score >= 40:
            return cls.WARNING
        return cls.CRITICAL

    def __str__(self) -> str:
        return self.value
