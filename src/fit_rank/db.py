"""SQLite record store for fit-rank."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from fit_rank.models import (
    Member,
    TeamRankingConfig,
    UserAchievementState,
    WorkoutRecord,
    parse_instant,
)

DEFAULT_DB_PATH = Path.home() / ".fit-rank" / "data.db"


class Database:
    """SQLite database manager with WAL mode."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS workouts (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                team_id TEXT,
                occurred_at TEXT,
                duration_minutes INTEGER,
                type TEXT DEFAULT '',
                intensity INTEGER,
                is_ai_generated BOOLEAN DEFAULT 0
            );

            CREATE INDEX IF NOT EXISTS idx_workouts_user ON workouts (user_id);
            CREATE INDEX IF NOT EXISTS idx_workouts_team ON workouts (team_id);

            CREATE TABLE IF NOT EXISTS members (
                id TEXT PRIMARY KEY,
                display_name TEXT NOT NULL,
                role TEXT NOT NULL DEFAULT 'player',
                team_id TEXT
            );

            CREATE TABLE IF NOT EXISTS team_ranking (
                team_id TEXT PRIMARY KEY,
                mode TEXT,
                automatic_metric TEXT,
                manual_order TEXT DEFAULT '[]'
            );

            CREATE TABLE IF NOT EXISTS achievement_state (
                user_id TEXT PRIMARY KEY,
                earned_badge_ids TEXT NOT NULL DEFAULT '[]',
                last_evaluated_at TEXT,
                version INTEGER NOT NULL DEFAULT 0
            );
        """)
        self.conn.commit()

    # ── Workouts ──────────────────────────────────────────────────────────

    def add_workout(self, record: WorkoutRecord) -> None:
        """Insert a workout. Records are never updated once written."""
        self.conn.execute(
            "INSERT INTO workouts "
            "(id, user_id, team_id, occurred_at, duration_minutes, type, intensity, is_ai_generated) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.user_id,
                record.team_id,
                record.occurred_at.isoformat() if record.occurred_at else None,
                record.duration_minutes,
                record.type,
                record.intensity,
                record.is_ai_generated,
            ),
        )
        self.conn.commit()

    def delete_workout(self, workout_id: str) -> bool:
        """Delete a workout. Returns True if a row was removed."""
        cursor = self.conn.execute("DELETE FROM workouts WHERE id = ?", (workout_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_workout(row: sqlite3.Row) -> WorkoutRecord:
        return WorkoutRecord(
            id=row["id"],
            user_id=row["user_id"],
            team_id=row["team_id"],
            occurred_at=parse_instant(row["occurred_at"]),
            duration_minutes=row["duration_minutes"],
            type=row["type"] or "",
            intensity=row["intensity"],
            is_ai_generated=bool(row["is_ai_generated"]),
        )

    def get_user_workouts(self, user_id: str) -> list[WorkoutRecord]:
        """All workouts for a user, oldest first."""
        rows = self.conn.execute(
            "SELECT * FROM workouts WHERE user_id = ? ORDER BY occurred_at, id", (user_id,)
        ).fetchall()
        return [self._row_to_workout(row) for row in rows]

    def get_team_workouts(self, team_id: str) -> list[WorkoutRecord]:
        """All workouts logged against a team, oldest first."""
        rows = self.conn.execute(
            "SELECT * FROM workouts WHERE team_id = ? ORDER BY occurred_at, id", (team_id,)
        ).fetchall()
        return [self._row_to_workout(row) for row in rows]

    # ── Members ───────────────────────────────────────────────────────────

    def upsert_member(self, member: Member) -> None:
        self.conn.execute(
            "INSERT INTO members (id, display_name, role, team_id) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET display_name = excluded.display_name, "
            "role = excluded.role, team_id = excluded.team_id",
            (member.id, member.display_name, member.role.value, member.team_id),
        )
        self.conn.commit()

    def get_member(self, member_id: str) -> Member | None:
        row = self.conn.execute("SELECT * FROM members WHERE id = ?", (member_id,)).fetchone()
        if row is None:
            return None
        return Member.from_dict(dict(row))

    def get_team_members(self, team_id: str) -> list[Member]:
        """Members of a team in join order."""
        rows = self.conn.execute(
            "SELECT * FROM members WHERE team_id = ? ORDER BY rowid", (team_id,)
        ).fetchall()
        return [Member.from_dict(dict(row)) for row in rows]

    # ── Team ranking config ───────────────────────────────────────────────

    def get_ranking_config(self, team_id: str) -> TeamRankingConfig:
        """Return the team's ranking config, or the defaults if none is stored."""
        row = self.conn.execute(
            "SELECT * FROM team_ranking WHERE team_id = ?", (team_id,)
        ).fetchone()
        if row is None:
            return TeamRankingConfig()
        try:
            manual_order = json.loads(row["manual_order"] or "[]")
        except json.JSONDecodeError:
            manual_order = []
        return TeamRankingConfig.from_dict({
            "mode": row["mode"],
            "automatic_metric": row["automatic_metric"],
            "manual_order": manual_order,
        })

    def set_ranking_config(self, team_id: str, config: TeamRankingConfig) -> None:
        self.conn.execute(
            "INSERT INTO team_ranking (team_id, mode, automatic_metric, manual_order) "
            "VALUES (?, ?, ?, ?) "
            "ON CONFLICT(team_id) DO UPDATE SET mode = excluded.mode, "
            "automatic_metric = excluded.automatic_metric, manual_order = excluded.manual_order",
            (
                team_id,
                config.mode.value,
                config.automatic_metric.value,
                json.dumps(list(config.manual_order)),
            ),
        )
        self.conn.commit()

    # ── Achievement state ─────────────────────────────────────────────────

    def get_achievement_state(self, user_id: str) -> UserAchievementState:
        """Return the user's earned badges. Users with none get version 0."""
        row = self.conn.execute(
            "SELECT * FROM achievement_state WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return UserAchievementState(user_id=user_id)
        return UserAchievementState(
            user_id=user_id,
            earned_badge_ids=json.loads(row["earned_badge_ids"]),
            last_evaluated_at=parse_instant(row["last_evaluated_at"]),
            version=row["version"],
        )

    def compare_and_set_badges(
        self,
        user_id: str,
        expected_version: int,
        badge_ids: list[str],
        evaluated_at: datetime,
    ) -> bool:
        """Write ``badge_ids`` only if the stored version still equals ``expected_version``.

        Returns False when another writer got there first.
        """
        payload = json.dumps(badge_ids)
        stamp = evaluated_at.isoformat()
        if expected_version == 0:
            cursor = self.conn.execute(
                "INSERT INTO achievement_state (user_id, earned_badge_ids, last_evaluated_at, version) "
                "VALUES (?, ?, ?, 1) ON CONFLICT(user_id) DO NOTHING",
                (user_id, payload, stamp),
            )
        else:
            cursor = self.conn.execute(
                "UPDATE achievement_state SET earned_badge_ids = ?, last_evaluated_at = ?, "
                "version = version + 1 WHERE user_id = ? AND version = ?",
                (payload, stamp, user_id, expected_version),
            )
        self.conn.commit()
        return cursor.rowcount == 1

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
