"""CLI commands for fit-rank."""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path

from rich.logging import RichHandler

from fit_rank.achievements import check_and_award_badges
from fit_rank.badges import BadgeStatus, badge_progress, build_user_stats, closest_badges
from fit_rank.config import (
    CONFIG_KEYS,
    config_path,
    get_db_path,
    get_default_team,
    get_log_level,
    get_timezone,
    load_config,
    set_value,
)
from fit_rank.db import Database
from fit_rank.display import (
    console,
    print_badges,
    print_config,
    print_error,
    print_leaderboard,
    print_logged_workout,
    print_ranking_config,
    print_streak,
)
from fit_rank.leaderboard import (
    load_score_summaries,
    load_team_leaderboard,
    remove_member,
    set_manual_order,
    set_ranking_mode,
)
from fit_rank.models import Member, RankingMetric, RankingMode, Role, WorkoutRecord, parse_instant
from fit_rank.streaks import calculate_streak, streak_message

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fit-rank",
        description="Streaks, badges and team leaderboards for logged workouts",
    )
    parser.add_argument("--db", default=None, help="Path to the SQLite database")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    subparsers = parser.add_subparsers(dest="command")

    log_p = subparsers.add_parser("log", help="Log a workout")
    log_p.add_argument("--user", "-u", required=True)
    log_p.add_argument("--minutes", "-m", type=int, required=True)
    log_p.add_argument("--type", "-t", default="")
    log_p.add_argument("--intensity", type=int, default=None)
    log_p.add_argument("--ai", action="store_true", help="Workout was AI-generated")
    log_p.add_argument("--at", default=None, help="ISO timestamp (default: now)")
    log_p.add_argument("--team", default=None, help="Override the member's team")

    streak_p = subparsers.add_parser("streak", help="Show current and longest streak")
    streak_p.add_argument("--user", "-u", required=True)

    badges_p = subparsers.add_parser("badges", help="Check and list badges")
    badges_p.add_argument("--user", "-u", required=True)

    lb_p = subparsers.add_parser("leaderboard", help="Show team leaderboard")
    lb_p.add_argument("--team", default=None)
    lb_p.add_argument("--user", "-u", default=None, help="Highlight this member")

    member_p = subparsers.add_parser("member", help="Manage team members")
    member_sub = member_p.add_subparsers(dest="member_command")
    add_p = member_sub.add_parser("add", help="Add or update a member")
    add_p.add_argument("--id", required=True)
    add_p.add_argument("--name", required=True)
    add_p.add_argument("--role", choices=[r.value for r in Role], default=Role.PLAYER.value)
    add_p.add_argument("--team", default=None)
    rm_p = member_sub.add_parser("remove", help="Remove a member from their team")
    rm_p.add_argument("--id", required=True)

    ranking_p = subparsers.add_parser("ranking", help="Coach ranking settings")
    ranking_sub = ranking_p.add_subparsers(dest="ranking_command")
    show_p = ranking_sub.add_parser("show", help="Show ranking settings")
    show_p.add_argument("--team", default=None)
    mode_p = ranking_sub.add_parser("mode", help="Switch ranking mode")
    mode_p.add_argument("mode", choices=[m.value for m in RankingMode])
    mode_p.add_argument("--metric", choices=[m.value for m in RankingMetric], default=None)
    mode_p.add_argument("--team", default=None)
    order_p = ranking_sub.add_parser("order", help="Set manual order (best first)")
    order_p.add_argument("member_ids", nargs="+")
    order_p.add_argument("--team", default=None)

    delete_p = subparsers.add_parser("delete", help="Delete a logged workout")
    delete_p.add_argument("--id", required=True, help="Workout id (shown by `log`)")

    config_p = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Show the config file")
    set_p = config_sub.add_parser("set", help="Set a config value")
    set_p.add_argument("key", choices=CONFIG_KEYS)
    set_p.add_argument("value")
    return parser


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else get_log_level()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _resolve_team(db: Database, team: str | None, user_id: str | None = None) -> str:
    if team:
        return team
    if user_id:
        member = db.get_member(user_id)
        if member and member.team_id:
            return member.team_id
    default = get_default_team()
    if default:
        return default
    raise ValueError("No team given. Pass --team or set default_team in the config file.")


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    command = args.command
    if command is None:
        parser.print_help()
        return 0

    if command == "config":
        try:
            if args.config_command == "set":
                do_config_set(args.key, args.value)
            else:
                do_config_show()
        except ValueError as exc:
            print_error(str(exc))
            return 1
        return 0

    db_path = Path(args.db) if args.db else get_db_path()
    db = Database(db_path=db_path)
    tz = get_timezone()

    try:
        if command == "log":
            do_log(
                db,
                user_id=args.user,
                minutes=args.minutes,
                workout_type=args.type,
                intensity=args.intensity,
                is_ai_generated=args.ai,
                occurred_at=args.at,
                team_id=args.team,
                tz=tz,
            )
        elif command == "streak":
            do_streak(db, user_id=args.user, tz=tz)
        elif command == "badges":
            do_badges(db, user_id=args.user, tz=tz)
        elif command == "delete":
            do_delete(db, args.id)
        elif command == "leaderboard":
            do_leaderboard(db, team_id=_resolve_team(db, args.team, args.user), your_id=args.user, tz=tz)
        elif command == "member":
            if args.member_command == "add":
                do_member_add(db, args.id, args.name, Role(args.role), args.team)
            elif args.member_command == "remove":
                do_member_remove(db, args.id)
            else:
                raise ValueError("Usage: fit-rank member add|remove ...")
        elif command == "ranking":
            rk_cmd = getattr(args, "ranking_command", None)
            team_id = _resolve_team(db, getattr(args, "team", None))
            if rk_cmd == "mode":
                metric = RankingMetric(args.metric) if args.metric else None
                do_ranking_mode(db, team_id, RankingMode(args.mode), metric)
            elif rk_cmd == "order":
                do_ranking_order(db, team_id, args.member_ids)
            else:
                do_ranking_show(db, team_id)
    except ValueError as exc:
        print_error(str(exc))
        return 1
    finally:
        db.close()
    return 0


def do_log(
    db: Database,
    user_id: str,
    minutes: int,
    workout_type: str = "",
    intensity: int | None = None,
    is_ai_generated: bool = False,
    occurred_at: str | None = None,
    team_id: str | None = None,
    tz: tzinfo | None = None,
) -> dict:
    """Store a workout, then check for new badges.

    Returns a dict describing what was logged (useful for testing).
    """
    if minutes < 0:
        raise ValueError("Duration cannot be negative")
    if occurred_at:
        when = parse_instant(occurred_at)
        if when is None:
            raise ValueError(f"Unrecognised timestamp: {occurred_at}")
    else:
        when = datetime.now(tz=timezone.utc)

    if team_id is None:
        member = db.get_member(user_id)
        team_id = member.team_id if member else None

    record = WorkoutRecord(
        id=uuid.uuid4().hex,
        user_id=user_id,
        team_id=team_id,
        occurred_at=when,
        duration_minutes=minutes,
        type=workout_type,
        intensity=intensity,
        is_ai_generated=is_ai_generated,
    )
    db.add_workout(record)
    logger.debug("Stored workout %s for %s", record.id, user_id)

    new_badges = check_and_award_badges(db, user_id, tz=tz)
    result = {
        "id": record.id,
        "user_id": user_id,
        "team_id": team_id,
        "type": workout_type,
        "duration_minutes": minutes,
        "new_badges": [b.name for b in new_badges],
    }
    print_logged_workout(result)
    return result


def do_streak(db: Database, user_id: str, today: date | None = None, tz: tzinfo | None = None) -> dict:
    info = calculate_streak(db.get_user_workouts(user_id), today, tz)
    member = db.get_member(user_id)
    result = {
        "name": member.display_name if member else user_id,
        "current_streak": info.current_streak,
        "longest_streak": info.longest_streak,
        "last_active_date": info.last_active_date,
        "is_active_today": info.is_active_today,
        "message": streak_message(info.current_streak),
    }
    print_streak(result)
    return result


def do_badges(db: Database, user_id: str, as_of: datetime | None = None, tz: tzinfo | None = None) -> dict:
    """Award any pending badges and list progress for the whole catalog."""
    now = as_of or datetime.now(tz=timezone.utc)
    new_badges = check_and_award_badges(db, user_id, as_of=now, tz=tz)
    member = db.get_member(user_id)
    stats = build_user_stats(
        db.get_user_workouts(user_id), now, has_team=bool(member and member.team_id), tz=tz
    )
    earned = db.get_achievement_state(user_id).earned
    statuses = badge_progress(stats, earned)
    badges = [_badge_row(s) for s in statuses]
    closest = [_badge_row(s) for s in closest_badges(statuses)]
    print_badges(badges, [b.name for b in new_badges], closest)
    return {
        "badges": badges,
        "earned_count": sum(1 for b in badges if b["earned"]),
        "new_badges": [b.id for b in new_badges],
        "closest": closest,
    }


def _badge_row(status: BadgeStatus) -> dict:
    return {
        "id": status.definition.id,
        "name": status.definition.name,
        "description": status.definition.description,
        "icon": status.definition.icon,
        "progress": status.progress,
        "earned": status.earned,
        "current": status.current,
        "target": status.definition.requirement,
    }


def do_leaderboard(
    db: Database, team_id: str, your_id: str | None = None, as_of: datetime | None = None, tz: tzinfo | None = None
) -> dict:
    config, entries = load_team_leaderboard(db, team_id, as_of=as_of, tz=tz)
    rows = [
        {
            "member_id": e.member_id,
            "display_name": e.display_name,
            "metric_value": e.metric_value,
            "rank": e.rank,
        }
        for e in entries
    ]
    if config.mode is RankingMode.AUTOMATIC and config.automatic_metric is RankingMetric.RULE_BASED_SCORE:
        summaries = load_score_summaries(db, team_id, as_of=as_of, tz=tz)
        for row in rows:
            summary = summaries.get(row["member_id"])
            if summary is not None:
                row["weekly_score"] = summary.weekly_score
                row["average_score"] = summary.average_score
                row["streak"] = summary.streak
    print_leaderboard(rows, config.mode.value, config.automatic_metric.value, your_id)
    return {"team_id": team_id, "mode": config.mode.value, "entries": rows}


def do_delete(db: Database, workout_id: str) -> None:
    """Delete a workout. Badges already earned are kept."""
    if not db.delete_workout(workout_id):
        raise ValueError(f"No workout with id {workout_id}")
    console.print(f"Deleted workout {workout_id}")


def do_config_show() -> dict:
    data = load_config()
    print_config(data, config_path())
    return data


def do_config_set(key: str, value: str) -> dict:
    set_value(key, value)
    return do_config_show()


def do_member_add(
    db: Database, member_id: str, name: str, role: Role = Role.PLAYER, team_id: str | None = None
) -> Member:
    member = Member(id=member_id, display_name=name, role=role, team_id=team_id)
    db.upsert_member(member)
    console.print(f"Saved {role.value} [bold]{name}[/] ({member_id})")
    return member


def do_member_remove(db: Database, member_id: str) -> None:
    member = db.get_member(member_id)
    if member is None or not member.team_id:
        raise ValueError(f"{member_id} is not on a team")
    remove_member(db, member.team_id, member)
    console.print(f"Removed {member.display_name} from team {member.team_id}")


def do_ranking_show(db: Database, team_id: str) -> dict:
    data = db.get_ranking_config(team_id).to_dict()
    print_ranking_config(data)
    return data


def do_ranking_mode(
    db: Database, team_id: str, mode: RankingMode, metric: RankingMetric | None = None
) -> dict:
    data = set_ranking_mode(db, team_id, mode, metric).to_dict()
    print_ranking_config(data)
    return data


def do_ranking_order(db: Database, team_id: str, member_ids: list[str]) -> dict:
    data = set_manual_order(db, team_id, member_ids).to_dict()
    print_ranking_config(data)
    return data


if __name__ == "__main__":
    sys.exit(main())
