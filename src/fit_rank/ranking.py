"""Team leaderboard composition for fit-rank.

Pure functions. ``compose_leaderboard`` is the single dispatch point for the
automatic and manual ranking modes; both produce 1-based contiguous ranks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, tzinfo

from fit_rank.models import (
    LeaderboardEntry,
    Member,
    RankingMetric,
    RankingMode,
    TeamRankingConfig,
    WorkoutRecord,
)
from fit_rank.scoring import MemberScore, is_this_week, summarize_member, total_score
from fit_rank.streaks import current_streak

logger = logging.getLogger(__name__)

MetricFn = Callable[[list[WorkoutRecord], datetime, tzinfo | None], int]


def _total_workouts(records: list[WorkoutRecord], as_of: datetime, tz: tzinfo | None) -> int:
    return sum(1 for r in records if r.counts_toward_totals)


def _this_week_workouts(records: list[WorkoutRecord], as_of: datetime, tz: tzinfo | None) -> int:
    return sum(1 for r in records if is_this_week(r, as_of, tz))


def _total_minutes(records: list[WorkoutRecord], as_of: datetime, tz: tzinfo | None) -> int:
    return sum(r.minutes for r in records if r.counts_toward_totals)


def _rule_based_score(records: list[WorkoutRecord], as_of: datetime, tz: tzinfo | None) -> int:
    streak = current_streak(records, as_of, tz)
    return total_score(records, streak, as_of, tz)


METRICS: dict[RankingMetric, MetricFn] = {
    RankingMetric.TOTAL_WORKOUTS: _total_workouts,
    RankingMetric.THIS_WEEK_WORKOUTS: _this_week_workouts,
    RankingMetric.TOTAL_MINUTES: _total_minutes,
    RankingMetric.RULE_BASED_SCORE: _rule_based_score,
}


def metric_value(
    metric: RankingMetric,
    records: list[WorkoutRecord],
    as_of: datetime,
    tz: tzinfo | None = None,
) -> int:
    return METRICS[metric](records, as_of, tz)


def participants(members: Iterable[Member]) -> list[Member]:
    """Members who can be ranked (players and group members, never coaches)."""
    return [m for m in members if m.is_participant]


def group_workouts_by_member(records: Iterable[WorkoutRecord]) -> dict[str, list[WorkoutRecord]]:
    """Split a team-level history into per-user lists, preserving input order."""
    grouped: dict[str, list[WorkoutRecord]] = {}
    for record in records:
        grouped.setdefault(record.user_id, []).append(record)
    return grouped


def _assign_ranks(ordered: list[tuple[Member, int]]) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            member_id=member.id,
            display_name=member.display_name,
            metric_value=value,
            rank=i + 1,
        )
        for i, (member, value) in enumerate(ordered)
    ]


def rank_automatic(
    members: list[Member],
    workouts_by_member: dict[str, list[WorkoutRecord]],
    metric: RankingMetric,
    as_of: datetime,
    tz: tzinfo | None = None,
) -> list[LeaderboardEntry]:
    """Sort by metric descending. Tie-break: member id ascending."""
    scored = [
        (m, metric_value(metric, workouts_by_member.get(m.id, []), as_of, tz))
        for m in members
    ]
    scored.sort(key=lambda pair: (-pair[1], pair[0].id))
    return _assign_ranks(scored)


def rank_manual(
    members: list[Member],
    workouts_by_member: dict[str, list[WorkoutRecord]],
    manual_order: list[str],
    as_of: datetime,
    tz: tzinfo | None = None,
) -> list[LeaderboardEntry]:
    """Order by the coach's list; unlisted members follow in input order.

    Ids in ``manual_order`` with no matching member are skipped. The metric
    shown is total workouts and does not affect order.
    """
    position: dict[str, int] = {}
    for i, member_id in enumerate(manual_order):
        position.setdefault(member_id, i)

    present = {m.id for m in members}
    stale = [mid for mid in position if mid not in present]
    if stale:
        logger.debug("Skipping %d stale id(s) in manual order", len(stale))

    unlisted = len(position)
    ordered = sorted(members, key=lambda m: position.get(m.id, unlisted))
    return _assign_ranks(
        [
            (m, _total_workouts(workouts_by_member.get(m.id, []), as_of, tz))
            for m in ordered
        ]
    )


def compose_leaderboard(
    members: Iterable[Member],
    workouts_by_member: dict[str, list[WorkoutRecord]],
    config: TeamRankingConfig,
    as_of: datetime,
    tz: tzinfo | None = None,
) -> list[LeaderboardEntry]:
    """Rank a team's participants according to its ranking config."""
    eligible = participants(members)
    if config.mode is RankingMode.MANUAL:
        return rank_manual(eligible, workouts_by_member, config.manual_order, as_of, tz)
    return rank_automatic(eligible, workouts_by_member, config.automatic_metric, as_of, tz)


def remove_from_manual_order(manual_order: list[str], member_id: str) -> list[str]:
    """Return a copy of ``manual_order`` without ``member_id``."""
    return [mid for mid in manual_order if mid != member_id]


def summarize_team(
    members: Iterable[Member],
    workouts_by_member: dict[str, list[WorkoutRecord]],
    as_of: datetime,
    tz: tzinfo | None = None,
) -> dict[str, MemberScore]:
    """Score summaries for every participant, keyed by member id."""
    summaries: dict[str, MemberScore] = {}
    for member in participants(members):
        records = workouts_by_member.get(member.id, [])
        streak = current_streak(records, as_of, tz)
        summaries[member.id] = summarize_member(member.id, records, streak, as_of, tz)
    return summaries
