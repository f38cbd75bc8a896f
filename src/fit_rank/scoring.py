"""Workout scoring engine for fit-rank.

Pure functions that convert a workout into ranking points. Multipliers are
whole percentages and the final product is floored, so identical inputs give
identical integers on every platform.

Score = floor(minutes * type% * intensity% * streak% * recent%)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo

from fit_rank.models import WorkoutRecord
from fit_rank.streaks import as_local

PERCENT = 100

# Workout type keyword -> multiplier (%). First match wins.
TYPE_MULTIPLIERS: list[tuple[str, int]] = [
    ("cardio", 120),
    ("conditioning", 120),
    ("skating", 115),
    ("speed", 115),
    ("agility", 115),
    ("weight training", 110),
    ("weights", 110),
    ("strength", 110),
    ("stick handling", 105),
    ("shooting", 105),
    ("skills", 105),
    ("recovery", 90),
    ("flexibility", 90),
    ("stretching", 90),
]
DEFAULT_TYPE_MULTIPLIER = 100
AI_GENERATED_MULTIPLIER = 110

# Intensity bonus
INTENSITY_BASELINE = 5
INTENSITY_BONUS_PER_POINT = 10
MAX_INTENSITY = 10

# Consistency bonus
STREAK_BONUS_PER_DAY = 5
MAX_STREAK_BONUS_DAYS = 30

# Recent activity bonus
RECENT_WINDOW = timedelta(days=3)
RECENT_MULTIPLIER = 120

WEEK = timedelta(days=7)


@dataclass
class ScoreBreakdown:
    """Multipliers applied to a single workout."""

    minutes: int
    type_multiplier: int
    intensity_multiplier: int
    streak_multiplier: int
    recent_multiplier: int
    score: int


@dataclass
class MemberScore:
    member_id: str
    total_score: int
    workout_count: int
    average_score: float
    total_minutes: int
    streak: int
    weekly_score: int


def type_multiplier(record: WorkoutRecord) -> int:
    """Return the workout-type multiplier (%). AI-generated workouts use a fixed rate."""
    if record.is_ai_generated:
        return AI_GENERATED_MULTIPLIER
    workout_type = record.type.lower()
    for keyword, multiplier in TYPE_MULTIPLIERS:
        if keyword in workout_type:
            return multiplier
    return DEFAULT_TYPE_MULTIPLIER


def intensity_multiplier(intensity: int | None) -> int:
    """+10% per intensity point above 5, capped at intensity 10."""
    if intensity is None or intensity <= INTENSITY_BASELINE:
        return PERCENT
    points = min(intensity, MAX_INTENSITY) - INTENSITY_BASELINE
    return PERCENT + points * INTENSITY_BONUS_PER_POINT


def streak_multiplier(streak_days: int) -> int:
    """+5% per streak day, counting at most MAX_STREAK_BONUS_DAYS days."""
    days = min(max(0, streak_days), MAX_STREAK_BONUS_DAYS)
    return PERCENT + days * STREAK_BONUS_PER_DAY


def _is_recent(
    record: WorkoutRecord, as_of: datetime | None, tz: tzinfo | None = None
) -> bool:
    if as_of is None or record.occurred_at is None:
        return False
    occurred = as_local(record.occurred_at, tz)
    now = as_local(as_of, tz)
    return now - RECENT_WINDOW < occurred <= now


def score_breakdown(
    record: WorkoutRecord,
    streak_at_time: int = 0,
    as_of: datetime | None = None,
    tz: tzinfo | None = None,
) -> ScoreBreakdown:
    """Score one workout and report every factor that went into it.

    The recent-activity bonus only applies when ``as_of`` is given.
    """
    minutes = record.minutes
    type_pct = type_multiplier(record)
    intensity_pct = intensity_multiplier(record.intensity)
    streak_pct = streak_multiplier(streak_at_time)
    recent_pct = RECENT_MULTIPLIER if _is_recent(record, as_of, tz) else PERCENT

    numerator = minutes * type_pct * intensity_pct * streak_pct * recent_pct
    score = numerator // PERCENT**4

    return ScoreBreakdown(
        minutes=minutes,
        type_multiplier=type_pct,
        intensity_multiplier=intensity_pct,
        streak_multiplier=streak_pct,
        recent_multiplier=recent_pct,
        score=score,
    )


def score(
    record: WorkoutRecord,
    streak_at_time: int = 0,
    as_of: datetime | None = None,
    tz: tzinfo | None = None,
) -> int:
    """Points for a single workout. Always >= 0; a workout with no duration scores 0."""
    return score_breakdown(record, streak_at_time, as_of, tz).score


def total_score(
    records: list[WorkoutRecord],
    streak_at_time: int,
    as_of: datetime | None = None,
    tz: tzinfo | None = None,
) -> int:
    """Sum of workout scores, all scored with the same streak context."""
    return sum(score(r, streak_at_time, as_of, tz) for r in records)


def is_this_week(record: WorkoutRecord, as_of: datetime, tz: tzinfo | None = None) -> bool:
    """True when the workout falls within the 7 days leading up to ``as_of``."""
    if record.occurred_at is None:
        return False
    occurred = as_local(record.occurred_at, tz)
    now = as_local(as_of, tz)
    return now - WEEK < occurred <= now


def summarize_member(
    member_id: str,
    records: list[WorkoutRecord],
    streak: int,
    as_of: datetime,
    tz: tzinfo | None = None,
) -> MemberScore:
    """Per-member score summary for display alongside the leaderboard."""
    counted = [r for r in records if r.counts_toward_totals]
    if not counted:
        return MemberScore(
            member_id=member_id,
            total_score=0,
            workout_count=0,
            average_score=0.0,
            total_minutes=0,
            streak=streak,
            weekly_score=0,
        )

    scores = [score(r, streak, as_of, tz) for r in counted]
    weekly = sum(s for r, s in zip(counted, scores) if is_this_week(r, as_of, tz))
    total = sum(scores)
    return MemberScore(
        member_id=member_id,
        total_score=total,
        workout_count=len(counted),
        average_score=round(total / len(counted), 2),
        total_minutes=sum(r.minutes for r in counted),
        streak=streak,
        weekly_score=weekly,
    )
