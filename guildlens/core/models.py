"""Value objects passed between the data source and the analytics components.

Everything here is computed on demand; nothing is persisted by the
analytics layer itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from guildlens.core.types import AlertLevel, AlertType, HealthBand, Trend


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Inclusive ``[start, end]`` range of instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"TimeWindow start {self.start.isoformat()} is after end "
                f"{self.end.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True, slots=True)
class PeriodComparison:
    """A window and the equally long window immediately before it."""

    current: TimeWindow
    previous: TimeWindow


# ---------------------------------------------------------------------------
# Raw activity (shapes returned by the data source)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MessageRecord:
    """A single recorded message; maps 1:1 to the DB table."""

    guild_id: str
    channel_id: str
    author_id: str
    created_at: datetime
    length: int = 0

    def __post_init__(self) -> None:
        # Ensure timezone-aware UTC timestamp
        if self.created_at.tzinfo is None:
            object.__setattr__(
                self, "created_at", self.created_at.replace(tzinfo=timezone.utc)
            )
        elif self.created_at.utcoffset():
            object.__setattr__(
                self, "created_at", self.created_at.astimezone(timezone.utc)
            )


@dataclass(frozen=True, slots=True)
class ChannelActivity:
    channel_id: str
    count: int


@dataclass(frozen=True, slots=True)
class HourlyCount:
    hour: int
    count: int


@dataclass(frozen=True, slots=True)
class DailyCount:
    date: date
    count: int


@dataclass(frozen=True, slots=True)
class ActivityMetrics:
    """Aggregates for one window."""

    message_count: int
    active_author_count: int
    daily_counts: list[DailyCount] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TrendResult:
    trend: Trend
    percentage: float


@dataclass(frozen=True, slots=True)
class PeriodActivity:
    window: TimeWindow
    messages: int
    authors: int


@dataclass(frozen=True, slots=True)
class ActivityComparison:
    current: PeriodActivity
    previous: PeriodActivity
    result: TrendResult

    @property
    def trend(self) -> Trend:
        return self.result.trend

    @property
    def percentage(self) -> float:
        return self.result.percentage


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HealthComponents:
    activity: int
    engagement: int
    trend: int
    consistency: int


@dataclass(frozen=True, slots=True)
class HealthScore:
    """Composite 0-100 score plus the raw figures it was derived from."""

    score: int
    components: HealthComponents
    interpretation: str
    band: HealthBand
    messages_last_7_days: int
    messages_last_30_days: int
    active_users_last_7_days: int
    avg_messages_per_day: float
    trend: Trend
    trend_percentage: float


@dataclass(frozen=True, slots=True)
class QuickSummary:
    messages_last_7_days: int
    active_users_last_7_days: int
    avg_messages_per_day: float


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TimeSlot:
    slot_start: int
    label: str
    count: int


@dataclass(frozen=True, slots=True)
class InsightsBundle:
    top_channels: list[ChannelActivity]
    peak_slots: list[TimeSlot]
    new_authors: int
    total_messages: int
    total_authors: int
    window: TimeWindow
    days: int

    @property
    def has_data(self) -> bool:
        return bool(self.top_channels)


# ---------------------------------------------------------------------------
# Alerts & recommendations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Alert:
    type: AlertType
    level: AlertLevel
    title: str
    description: str
    channel_id: str | None = None


@dataclass(frozen=True, slots=True)
class QuietChannel:
    """A channel that was active last period and has mostly gone silent."""

    channel_id: str
    previous_count: int
    current_count: int
    drop_percentage: float


@dataclass(frozen=True, slots=True)
class Recommendation:
    id: str
    priority: int
    title: str
    description: str
    example: str
    target_channel: str | None = None


@dataclass(frozen=True, slots=True)
class MetricsBundle:
    """Everything a recommendation template may inspect."""

    health: HealthScore
    insights: InsightsBundle
    alerts: list[Alert] = field(default_factory=list)
    quiet_channels: list[QuietChannel] = field(default_factory=list)
