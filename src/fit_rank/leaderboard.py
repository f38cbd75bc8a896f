"""Team leaderboard loading for fit-rank.

Fetches members, workouts and ranking config from the store and hands them to
``fit_rank.ranking``. Store failures degrade to empty data rather than errors.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone, tzinfo

from fit_rank.db import Database
from fit_rank.models import LeaderboardEntry, Member, RankingMetric, RankingMode, TeamRankingConfig
from fit_rank.ranking import (
    compose_leaderboard,
    group_workouts_by_member,
    remove_from_manual_order,
    summarize_team,
)
from fit_rank.scoring import MemberScore

logger = logging.getLogger(__name__)


def load_team_leaderboard(
    store: Database,
    team_id: str,
    as_of: datetime | None = None,
    tz: tzinfo | None = None,
) -> tuple[TeamRankingConfig, list[LeaderboardEntry]]:
    """Return the team's ranking config and its freshly computed leaderboard."""
    now = as_of or datetime.now(tz=timezone.utc)

    try:
        members = store.get_team_members(team_id)
    except sqlite3.Error:
        logger.warning("Could not load members for team %s", team_id, exc_info=True)
        return TeamRankingConfig(), []

    try:
        workouts = group_workouts_by_member(store.get_team_workouts(team_id))
    except sqlite3.Error:
        logger.warning("Could not load workouts for team %s; ranking with none", team_id, exc_info=True)
        workouts = {}

    try:
        config = store.get_ranking_config(team_id)
    except sqlite3.Error:
        logger.warning("Could not load ranking config for team %s; using defaults", team_id, exc_info=True)
        config = TeamRankingConfig()

    return config, compose_leaderboard(members, workouts, config, now, tz)


def set_ranking_mode(
    store: Database, team_id: str, mode: RankingMode, metric: RankingMetric | None = None
) -> TeamRankingConfig:
    """Switch a team between automatic and manual ranking (coach action)."""
    config = store.get_ranking_config(team_id)
    config.mode = mode
    if metric is not None:
        config.automatic_metric = metric
    store.set_ranking_config(team_id, config)
    return config


def set_manual_order(store: Database, team_id: str, member_ids: list[str]) -> TeamRankingConfig:
    """Save a coach-defined order and switch the team to manual ranking.

    Raises ValueError if an id does not belong to a participant of the team.
    """
    participants = {m.id for m in store.get_team_members(team_id) if m.is_participant}
    unknown = [mid for mid in member_ids if mid not in participants]
    if unknown:
        raise ValueError(f"Not a participant of team {team_id}: {', '.join(unknown)}")
    config = TeamRankingConfig.from_dict({
        "mode": RankingMode.MANUAL.value,
        "automatic_metric": store.get_ranking_config(team_id).automatic_metric.value,
        "manual_order": member_ids,
    })
    store.set_ranking_config(team_id, config)
    return config


def remove_member(store: Database, team_id: str, member: Member) -> None:
    """Detach a member from a team and drop them from its manual order."""
    store.upsert_member(Member(id=member.id, display_name=member.display_name, role=member.role))
    config = store.get_ranking_config(team_id)
    if member.id in config.manual_order:
        config.manual_order = remove_from_manual_order(config.manual_order, member.id)
        store.set_ranking_config(team_id, config)


def load_score_summaries(
    store: Database,
    team_id: str,
    as_of: datetime | None = None,
    tz: tzinfo | None = None,
) -> dict[str, MemberScore]:
    """Per-member score breakdown shown beside ruleBasedScore leaderboards."""
    now = as_of or datetime.now(tz=timezone.utc)
    try:
        members = store.get_team_members(team_id)
        workouts = group_workouts_by_member(store.get_team_workouts(team_id))
    except sqlite3.Error:
        logger.warning("Could not load score summaries for team %s", team_id, exc_info=True)
        return {}
    return summarize_team(members, workouts, now, tz)
