"""Core data types for fit-rank.

Plain dataclasses with tolerant ``from_dict`` constructors for documents coming
out of the record store. Nothing here performs I/O.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


class Role(str, Enum):
    COACH = "coach"
    PLAYER = "player"
    GROUP_MEMBER = "group_member"


PARTICIPANT_ROLES: frozenset[Role] = frozenset({Role.PLAYER, Role.GROUP_MEMBER})


class RankingMode(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class RankingMetric(str, Enum):
    TOTAL_WORKOUTS = "totalWorkouts"
    THIS_WEEK_WORKOUTS = "thisWeekWorkouts"
    TOTAL_MINUTES = "totalMinutes"
    RULE_BASED_SCORE = "ruleBasedScore"


def parse_instant(value: object) -> datetime | None:
    """Parse an occurredAt value. Returns None for anything unparseable.

    Accepts datetime objects, ISO-8601 strings (a trailing ``Z`` is allowed)
    and epoch seconds.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value:
        raw = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None
    return None


def _parse_duration(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number)


@dataclass(frozen=True)
class WorkoutRecord:
    """One logged workout. Immutable once created."""

    id: str
    user_id: str
    occurred_at: datetime | None
    duration_minutes: int | None
    type: str = ""
    team_id: str | None = None
    intensity: int | None = None
    is_ai_generated: bool = False

    @property
    def minutes(self) -> int:
        """Duration clamped to a non-negative integer (missing counts as 0)."""
        return max(0, self.duration_minutes or 0)

    @property
    def has_timestamp(self) -> bool:
        return self.occurred_at is not None

    @property
    def counts_toward_totals(self) -> bool:
        """A record without a timestamp still counts if it carries a duration."""
        return self.occurred_at is not None or self.duration_minutes is not None

    @classmethod
    def from_dict(cls, data: dict) -> WorkoutRecord:
        occurred_at = parse_instant(data.get("occurredAt", data.get("occurred_at")))
        if occurred_at is None:
            logger.debug("Workout %s has no usable timestamp", data.get("id"))
        duration = _parse_duration(data.get("durationMinutes", data.get("duration_minutes")))
        intensity = _parse_duration(data.get("intensity"))
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data.get("userId", data.get("user_id", ""))),
            occurred_at=occurred_at,
            duration_minutes=duration,
            type=str(data.get("type") or ""),
            team_id=data.get("teamId", data.get("team_id")),
            intensity=intensity,
            is_ai_generated=bool(data.get("isAIGenerated", data.get("is_ai_generated", False))),
        )


@dataclass(frozen=True)
class Member:
    id: str
    display_name: str
    role: Role = Role.PLAYER
    team_id: str | None = None

    @property
    def is_participant(self) -> bool:
        return self.role in PARTICIPANT_ROLES

    @classmethod
    def from_dict(cls, data: dict) -> Member:
        try:
            role = Role(data.get("role", Role.PLAYER.value))
        except ValueError:
            logger.warning("Unknown role %r for member %s; treating as coach", data.get("role"), data.get("id"))
            role = Role.COACH
        member_id = str(data.get("id", ""))
        return cls(
            id=member_id,
            display_name=data.get("name") or data.get("display_name") or member_id,
            role=role,
            team_id=data.get("teamId", data.get("team_id")),
        )


def _normalize_order(raw: object) -> list[str]:
    """Turn a stored manualOrder into a de-duplicated list of ids."""
    if not isinstance(raw, (list, tuple)):
        if raw:
            logger.warning("manualOrder is not a list (%r); ignoring it", type(raw).__name__)
        return []
    seen: set[str] = set()
    order: list[str] = []
    for item in raw:
        member_id = str(item)
        if member_id not in seen:
            seen.add(member_id)
            order.append(member_id)
    return order


@dataclass
class TeamRankingConfig:
    """Per-team ranking settings, owned by the coach."""

    mode: RankingMode = RankingMode.AUTOMATIC
    automatic_metric: RankingMetric = RankingMetric.TOTAL_MINUTES
    manual_order: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict | None) -> TeamRankingConfig:
        """Build a config from a stored team document, applying defaults."""
        if not data:
            return cls()
        raw_mode = data.get("rankingMode", data.get("mode"))
        raw_metric = data.get("automaticRankingBy", data.get("automatic_metric"))
        mode = RankingMode.AUTOMATIC
        if raw_mode:
            try:
                mode = RankingMode(raw_mode)
            except ValueError:
                logger.warning("Unknown ranking mode %r; using automatic", raw_mode)
        metric = RankingMetric.TOTAL_MINUTES
        if raw_metric:
            try:
                metric = RankingMetric(raw_metric)
            except ValueError:
                logger.warning("Unknown ranking metric %r; using totalMinutes", raw_metric)
        manual = data.get("manualRankings", data.get("manual_order"))
        return cls(mode=mode, automatic_metric=metric, manual_order=_normalize_order(manual))

    def to_dict(self) -> dict:
        return {
            "rankingMode": self.mode.value,
            "automaticRankingBy": self.automatic_metric.value,
            "manualRankings": list(self.manual_order),
        }


@dataclass
class UserAchievementState:
    """Badges a user has earned. Grows monotonically."""

    user_id: str
    earned_badge_ids: list[str] = field(default_factory=list)
    last_evaluated_at: datetime | None = None
    version: int = 0

    @property
    def earned(self) -> set[str]:
        return set(self.earned_badge_ids)


@dataclass(frozen=True)
class LeaderboardEntry:
    member_id: str
    display_name: str
    metric_value: int
    rank: int
