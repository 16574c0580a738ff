"""Calendar-window arithmetic used by every analytics query.

All windows are computed in UTC. Two calls on the same calendar day return
the same windows; calls on either side of midnight do not.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from guildlens.core.models import PeriodComparison, TimeWindow
from guildlens.core.utils import utcnow

_ONE_INSTANT = timedelta(microseconds=1)


def _as_utc(moment: datetime | None) -> datetime:
    if moment is None:
        return utcnow()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)


def days_ago(days: int, now: datetime | None = None) -> datetime:
    return _as_utc(now) - timedelta(days=days)


def _check_days(days: int) -> None:
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")


def date_range(days: int, now: datetime | None = None) -> TimeWindow:
    """Window covering the last *days* calendar days, today included."""
    _check_days(days)
    now = _as_utc(now)
    return TimeWindow(
        start=start_of_day(now - timedelta(days=days - 1)),
        end=end_of_day(now),
    )


def comparison_periods(days: int, now: datetime | None = None) -> PeriodComparison:
    """Current *days*-day window and the same-length window right before it.

    ``previous.end`` is one microsecond before ``current.start``, so the two
    windows neither overlap nor leave a gap.
    """
    current = date_range(days, now)
    previous = TimeWindow(
        start=start_of_day(current.start - timedelta(days=days)),
        end=current.start - _ONE_INSTANT,
    )
    return PeriodComparison(current=current, previous=previous)


# ---------------------------------------------------------------------------
# Hour-of-day slots
# ---------------------------------------------------------------------------


def _check_slot_size(slot_size: int) -> None:
    if slot_size < 1 or 24 % slot_size:
        raise ValueError(f"slot_size must divide 24, got {slot_size}")


def time_slot(hour: int, slot_size: int = 3) -> int:
    """Starting hour of the slot containing *hour*."""
    _check_slot_size(slot_size)
    return (hour // slot_size) * slot_size


def time_slot_label(start_hour: int, slot_size: int = 3) -> str:
    """``"09h-12h"`` style label; the end hour wraps at 24."""
    end_hour = (start_hour + slot_size) % 24
    return f"{start_hour:02d}h-{end_hour:02d}h"


def all_time_slots(slot_size: int = 3) -> list[tuple[int, str]]:
    _check_slot_size(slot_size)
    return [
        (hour, time_slot_label(hour, slot_size))
        for hour in range(0, 24, slot_size)
    ]
