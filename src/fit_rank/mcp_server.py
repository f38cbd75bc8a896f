"""MCP server for fit-rank.

Exposes streaks, badges and team leaderboards as MCP tools.
Run via: python3 -m fit_rank.mcp_server
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(name="fit-rank")


def _get_db():
    from fit_rank.config import get_db_path
    from fit_rank.db import Database
    return Database(db_path=get_db_path())


@mcp.tool()
def get_streak(user_id: str) -> dict[str, Any]:
    """Get a member's current and longest workout streak."""
    from fit_rank.config import get_timezone
    from fit_rank.streaks import calculate_streak, streak_message

    db = _get_db()
    try:
        info = calculate_streak(db.get_user_workouts(user_id), tz=get_timezone())
        return {
            "user_id": user_id,
            "current_streak": info.current_streak,
            "longest_streak": info.longest_streak,
            "last_active_date": info.last_active_date,
            "is_active_today": info.is_active_today,
            "message": streak_message(info.current_streak),
        }
    finally:
        db.close()


@mcp.tool()
def get_badges(user_id: str) -> dict[str, Any]:
    """Check for newly earned badges, then list every badge with progress."""
    from fit_rank.achievements import check_and_award_badges
    from fit_rank.badges import CATALOG_VERSION, badge_progress, build_user_stats, closest_badges
    from fit_rank.config import get_timezone

    tz = get_timezone()
    now = datetime.now(tz=timezone.utc)
    db = _get_db()
    try:
        new_badges = check_and_award_badges(db, user_id, as_of=now, tz=tz)
        member = db.get_member(user_id)
        stats = build_user_stats(
            db.get_user_workouts(user_id), now, has_team=bool(member and member.team_id), tz=tz
        )
        earned = db.get_achievement_state(user_id).earned
        statuses = badge_progress(stats, earned)
        result = [
            {
                "id": s.definition.id, "name": s.definition.name,
                "description": s.definition.description, "icon": s.definition.icon,
                "progress_pct": int(s.progress * 100), "earned": s.earned,
            }
            for s in statuses
        ]
        return {
            "badges": result,
            "earned_count": sum(1 for b in result if b["earned"]),
            "total_count": len(result),
            "new_badges": [b.id for b in new_badges],
            "closest": [
                {"id": s.definition.id, "name": s.definition.name, "progress_pct": int(s.progress * 100)}
                for s in closest_badges(statuses)
            ],
            "catalog_version": CATALOG_VERSION,
        }
    finally:
        db.close()


@mcp.tool()
def get_leaderboard(team_id: str = "") -> dict[str, Any]:
    """Get the ranked leaderboard for a team.

    team_id: team to rank. If empty, uses the configured default team.
    """
    from fit_rank.config import get_default_team, get_timezone
    from fit_rank.leaderboard import load_score_summaries, load_team_leaderboard
    from fit_rank.models import RankingMetric, RankingMode

    team = team_id or get_default_team()
    if not team:
        return {"error": "No team given and no default_team configured."}

    tz = get_timezone()
    db = _get_db()
    try:
        config, entries = load_team_leaderboard(db, team, tz=tz)
        summaries = {}
        if config.mode is RankingMode.AUTOMATIC and config.automatic_metric is RankingMetric.RULE_BASED_SCORE:
            summaries = load_score_summaries(db, team, tz=tz)
    finally:
        db.close()

    rows = []
    for e in entries:
        row = {"member_id": e.member_id, "name": e.display_name,
               "metric_value": e.metric_value, "rank": e.rank}
        summary = summaries.get(e.member_id)
        if summary is not None:
            row["weekly_score"] = summary.weekly_score
            row["average_score"] = summary.average_score
            row["streak"] = summary.streak
        rows.append(row)

    return {
        "team_id": team,
        "mode": config.mode.value,
        "metric": config.automatic_metric.value,
        "entries": rows,
        "count": len(entries),
    }


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
