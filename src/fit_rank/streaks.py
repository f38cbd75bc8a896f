"""Streak tracking for fit-rank.

An active day is a local calendar day with at least one workout. The current
streak survives one empty day (today, before the user has trained) and breaks
on the second.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo

from fit_rank.models import WorkoutRecord

SATURDAY = 5

# Upper bound (exclusive) of each streak band -> message
STREAK_MESSAGES: list[tuple[int, str]] = [
    (1, "Start your streak!"),
    (2, "Great start!"),
    (3, "Keep it going!"),
    (7, "On fire!"),
    (14, "Unstoppable!"),
    (30, "Amazing streak!"),
    (50, "Legendary!"),
]
TOP_STREAK_MESSAGE = "GOAT Status!"


@dataclass
class StreakInfo:
    current_streak: int
    longest_streak: int
    last_active_date: str | None  # YYYY-MM-DD
    is_active_today: bool


def as_local(instant: datetime, tz: tzinfo | None = None) -> datetime:
    """Return an aware datetime in ``tz`` (process-local zone when None).

    Naive datetimes are taken to be wall-clock time in that zone already.
    """
    if instant.tzinfo is None:
        return instant.replace(tzinfo=tz) if tz is not None else instant.astimezone()
    return instant.astimezone(tz)


def local_day(instant: datetime, tz: tzinfo | None = None) -> date:
    """Project an instant onto its local calendar day."""
    if instant.tzinfo is None:
        return instant.date()
    return instant.astimezone(tz).date()


def as_of_day(as_of: date | datetime, tz: tzinfo | None = None) -> date:
    if isinstance(as_of, datetime):
        return local_day(as_of, tz)
    return as_of


def active_days(
    history: Iterable[WorkoutRecord],
    as_of: date | datetime | None = None,
    tz: tzinfo | None = None,
) -> set[date]:
    """Distinct local days with at least one timestamped workout.

    Records without a timestamp are skipped. When ``as_of`` is given, days
    after it are dropped.
    """
    days = {local_day(r.occurred_at, tz) for r in history if r.occurred_at is not None}
    if as_of is not None:
        cutoff = as_of_day(as_of, tz)
        days = {d for d in days if d <= cutoff}
    return days


def weekend_days(
    history: Iterable[WorkoutRecord],
    as_of: date | datetime | None = None,
    tz: tzinfo | None = None,
) -> int:
    """Number of distinct Saturdays and Sundays with a workout."""
    return sum(1 for d in active_days(history, as_of, tz) if d.weekday() >= SATURDAY)


def streak_from_days(days: set[date], today: date) -> int:
    """Current streak from a set of active days, allowing a one-day grace period."""
    past = {d for d in days if d <= today}
    if not past:
        return 0

    most_recent = max(past)
    gap = (today - most_recent).days
    if gap > 1:
        return 0

    cursor = today if gap == 0 else most_recent
    streak = 0
    while cursor in past:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_from_days(days: set[date], today: date) -> int:
    """Longest run of consecutive active days between the first active day and today."""
    past = {d for d in days if d <= today}
    if not past:
        return 0

    longest = 0
    run = 0
    cursor = min(past)
    while cursor <= today:
        if cursor in past:
            run += 1
            longest = max(longest, run)
        else:
            run = 0
        cursor += timedelta(days=1)
    return longest


def current_streak(
    history: Iterable[WorkoutRecord], as_of: date | datetime, tz: tzinfo | None = None
) -> int:
    """Consecutive active days ending today, or yesterday if today is still empty."""
    return streak_from_days(active_days(history, tz=tz), as_of_day(as_of, tz))


def longest_streak(
    history: Iterable[WorkoutRecord], as_of: date | datetime, tz: tzinfo | None = None
) -> int:
    """Longest run of consecutive active days up to ``as_of``."""
    return longest_from_days(active_days(history, tz=tz), as_of_day(as_of, tz))


def calculate_streak(
    history: Iterable[WorkoutRecord],
    as_of: date | datetime | None = None,
    tz: tzinfo | None = None,
) -> StreakInfo:
    """Summarise a user's streak state as of a given day (default: today)."""
    today = as_of_day(as_of if as_of is not None else datetime.now(tz=timezone.utc), tz)
    days = active_days(history, today, tz)
    if not days:
        return StreakInfo(
            current_streak=0,
            longest_streak=0,
            last_active_date=None,
            is_active_today=False,
        )

    return StreakInfo(
        current_streak=streak_from_days(days, today),
        longest_streak=longest_from_days(days, today),
        last_active_date=max(days).isoformat(),
        is_active_today=today in days,
    )


def streak_message(streak: int) -> str:
    for upper, message in STREAK_MESSAGES:
        if streak < upper:
            return message
    return TOP_STREAK_MESSAGE
