"""Badge definitions and evaluation for fit-rank.

The catalog is compiled in and validated at import time. ``evaluate`` is a
pure function: it only reports which badges are newly earned. Persisting them
is the caller's job (see ``fit_rank.achievements``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum

from fit_rank.models import WorkoutRecord
from fit_rank.streaks import current_streak, longest_streak, weekend_days

logger = logging.getLogger(__name__)

CATALOG_VERSION = 1


class CatalogError(ValueError):
    """The compiled-in badge catalog is inconsistent."""


class BadgeKind(str, Enum):
    STREAK = "streak"
    TOTAL_WORKOUTS = "totalWorkouts"
    TOTAL_MINUTES = "totalMinutes"
    FIRST_WORKOUT = "firstWorkout"
    TEAM_JOIN = "teamJoin"
    WEEKEND_WORKOUTS = "weekendWorkouts"


# Kinds whose requirement is ignored
FLAG_KINDS: frozenset[BadgeKind] = frozenset({BadgeKind.FIRST_WORKOUT, BadgeKind.TEAM_JOIN})


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    kind: BadgeKind
    requirement: int
    icon: str = ""
    color: str = ""


@dataclass(frozen=True)
class UserStats:
    total_workouts: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    weekend_workouts: int = 0
    has_team: bool = False
    longest_streak: int = 0


@dataclass
class BadgeStatus:
    definition: BadgeDefinition
    current: int
    progress: float  # 0.0 to 1.0
    earned: bool


def _streak_badge(badge_id: str, name: str, days: int, icon: str, color: str) -> BadgeDefinition:
    return BadgeDefinition(badge_id, name, f"{days}-day workout streak", BadgeKind.STREAK, days, icon, color)


BADGES: list[BadgeDefinition] = [
    _streak_badge("streak_3", "Hot Start", 3, "\U0001f525", "#FF6B35"),
    _streak_badge("streak_7", "Week Warrior", 7, "\U0001f4aa", "#FF8500"),
    _streak_badge("streak_14", "Two Week Terror", 14, "⚡", "#FFB700"),
    _streak_badge("streak_30", "Monthly Machine", 30, "\U0001f3c6", "#FFD700"),
    _streak_badge("streak_50", "Unstoppable", 50, "\U0001f48e", "#00C9FF"),
    _streak_badge("streak_100", "Century Club", 100, "\U0001f451", "#9D4EDD"),
    BadgeDefinition(
        id="workouts_10",
        name="Getting Started",
        description="10 total workouts",
        kind=BadgeKind.TOTAL_WORKOUTS,
        requirement=10,
        icon="\U0001f949",
        color="#CD7F32",
    ),
    BadgeDefinition(
        id="workouts_25",
        name="Committed",
        description="25 total workouts",
        kind=BadgeKind.TOTAL_WORKOUTS,
        requirement=25,
        icon="\U0001f948",
        color="#C0C0C0",
    ),
    BadgeDefinition(
        id="workouts_50",
        name="Dedicated",
        description="50 total workouts",
        kind=BadgeKind.TOTAL_WORKOUTS,
        requirement=50,
        icon="\U0001f947",
        color="#FFD700",
    ),
    BadgeDefinition(
        id="workouts_100",
        name="Elite Athlete",
        description="100 total workouts",
        kind=BadgeKind.TOTAL_WORKOUTS,
        requirement=100,
        icon="\U0001f3c5",
        color="#FF6B35",
    ),
    BadgeDefinition(
        id="workouts_250",
        name="Workout Legend",
        description="250 total workouts",
        kind=BadgeKind.TOTAL_WORKOUTS,
        requirement=250,
        icon="\U0001f3c6",
        color="#9D4EDD",
    ),
    BadgeDefinition(
        id="minutes_500",
        name="Time Keeper",
        description="500 total minutes",
        kind=BadgeKind.TOTAL_MINUTES,
        requirement=500,
        icon="⏰",
        color="#4ECDC4",
    ),
    BadgeDefinition(
        id="minutes_1000",
        name="Endurance Fighter",
        description="1000 total minutes",
        kind=BadgeKind.TOTAL_MINUTES,
        requirement=1000,
        icon="⏱️",
        color="#45B7D1",
    ),
    BadgeDefinition(
        id="minutes_2500",
        name="Marathon Master",
        description="2500 total minutes",
        kind=BadgeKind.TOTAL_MINUTES,
        requirement=2500,
        icon="⏳",
        color="#FF6B9D",
    ),
    BadgeDefinition(
        id="first_workout",
        name="First Step",
        description="Completed first workout",
        kind=BadgeKind.FIRST_WORKOUT,
        requirement=1,
        icon="\U0001f680",
        color="#4ECDC4",
    ),
    BadgeDefinition(
        id="team_player",
        name="Team Player",
        description="Joined a team",
        kind=BadgeKind.TEAM_JOIN,
        requirement=1,
        icon="\U0001f91d",
        color="#45B7D1",
    ),
    BadgeDefinition(
        id="weekend_warrior",
        name="Weekend Warrior",
        description="Workout on 5 weekend days",
        kind=BadgeKind.WEEKEND_WORKOUTS,
        requirement=5,
        icon="\U0001f31f",
        color="#FF8A65",
    ),
]


# Each rule maps stats to the value compared against the requirement.
_MEASURES: dict[BadgeKind, Callable[[UserStats], int]] = {
    BadgeKind.STREAK: lambda s: s.current_streak,
    BadgeKind.TOTAL_WORKOUTS: lambda s: s.total_workouts,
    BadgeKind.TOTAL_MINUTES: lambda s: s.total_minutes,
    BadgeKind.FIRST_WORKOUT: lambda s: 1 if s.total_workouts >= 1 else 0,
    BadgeKind.TEAM_JOIN: lambda s: 1 if s.has_team else 0,
    BadgeKind.WEEKEND_WORKOUTS: lambda s: s.weekend_workouts,
}


def validate_catalog(catalog: Iterable[BadgeDefinition]) -> None:
    """Raise CatalogError if the catalog cannot be evaluated safely."""
    seen: set[str] = set()
    for badge in catalog:
        if not badge.id:
            raise CatalogError("Badge with empty id")
        if badge.id in seen:
            raise CatalogError(f"Duplicate badge id: {badge.id}")
        seen.add(badge.id)
        if not isinstance(badge.kind, BadgeKind) or badge.kind not in _MEASURES:
            raise CatalogError(f"Badge {badge.id} has unknown kind {badge.kind!r}")
        if badge.kind not in FLAG_KINDS and badge.requirement <= 0:
            raise CatalogError(f"Badge {badge.id} needs a positive requirement")


validate_catalog(BADGES)

BADGES_BY_ID: dict[str, BadgeDefinition] = {b.id: b for b in BADGES}


def _target(badge: BadgeDefinition) -> int:
    return 1 if badge.kind in FLAG_KINDS else badge.requirement


def is_earned(badge: BadgeDefinition, stats: UserStats) -> bool:
    return _MEASURES[badge.kind](stats) >= _target(badge)


def evaluate(
    stats: UserStats,
    already_earned: Iterable[str],
    catalog: list[BadgeDefinition] | None = None,
) -> set[str]:
    """Return the ids of badges earned by ``stats`` that are not in ``already_earned``."""
    earned = set(already_earned)
    newly: set[str] = set()
    for badge in catalog if catalog is not None else BADGES:
        if badge.id in earned:
            continue
        if is_earned(badge, stats):
            newly.add(badge.id)
    if newly:
        logger.debug("Newly earned badges: %s", sorted(newly))
    return newly


def ordered_badge_ids(badge_ids: Iterable[str]) -> list[str]:
    """Order badge ids by catalog position, unknown ids last."""
    position = {b.id: i for i, b in enumerate(BADGES)}
    return sorted(set(badge_ids), key=lambda bid: (position.get(bid, len(position)), bid))


def build_user_stats(
    history: list[WorkoutRecord],
    as_of: date | datetime,
    has_team: bool,
    tz: tzinfo | None = None,
) -> UserStats:
    """Aggregate a user's workout history into the stats badges are checked against."""
    counted = [r for r in history if r.counts_toward_totals]
    return UserStats(
        total_workouts=len(counted),
        total_minutes=sum(r.minutes for r in counted),
        current_streak=current_streak(history, as_of, tz),
        weekend_workouts=weekend_days(history, as_of, tz),
        has_team=has_team,
        longest_streak=longest_streak(history, as_of, tz),
    )


def badge_progress(stats: UserStats, already_earned: Iterable[str]) -> list[BadgeStatus]:
    """Progress towards every catalog badge. Earned badges always report 1.0."""
    earned = set(already_earned)
    statuses: list[BadgeStatus] = []
    for badge in BADGES:
        current = _MEASURES[badge.kind](stats)
        target = _target(badge)
        progress = min(current / target, 1.0) if target > 0 else 0.0
        done = badge.id in earned or progress >= 1.0
        statuses.append(
            BadgeStatus(
                definition=badge,
                current=current,
                progress=1.0 if done else progress,
                earned=done,
            )
        )
    return statuses


def closest_badges(statuses: list[BadgeStatus], n: int = 3) -> list[BadgeStatus]:
    """Return the N unearned badges with the highest progress."""
    pending = [s for s in statuses if not s.earned]
    pending.sort(key=lambda s: s.progress, reverse=True)
    return pending[:n]
