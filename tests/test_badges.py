"""Tests for the badge catalog and evaluator."""

from datetime import date, datetime, timedelta, timezone

import pytest

from fit_rank.badges import (
    BADGES,
    BADGES_BY_ID,
    BadgeDefinition,
    BadgeKind,
    CatalogError,
    UserStats,
    badge_progress,
    build_user_stats,
    closest_badges,
    evaluate,
    ordered_badge_ids,
    validate_catalog,
)
from fit_rank.models import WorkoutRecord

UTC = timezone.utc
TODAY = date(2026, 1, 7)


def _workout(day: date, minutes: int | None = 30, wid: str = "") -> WorkoutRecord:
    return WorkoutRecord(
        id=wid or f"w-{day.isoformat()}",
        user_id="u1",
        occurred_at=datetime(day.year, day.month, day.day, 12, tzinfo=UTC),
        duration_minutes=minutes,
    )


class TestCatalog:
    def test_catalog_has_seventeen_badges(self):
        assert len(BADGES) == 17

    def test_ids_are_unique(self):
        assert len(BADGES_BY_ID) == len(BADGES)

    def test_every_kind_is_used(self):
        assert {b.kind for b in BADGES} == set(BadgeKind)

    def test_shipped_catalog_is_valid(self):
        validate_catalog(BADGES)

    def test_duplicate_id_rejected(self):
        dup = [BADGES[0], BADGES[0]]
        with pytest.raises(CatalogError, match="Duplicate"):
            validate_catalog(dup)

    def test_unknown_kind_rejected(self):
        bad = BadgeDefinition("odd", "Odd", "", "moon_phase", 1)  # type: ignore[arg-type]
        with pytest.raises(CatalogError, match="unknown kind"):
            validate_catalog([bad])

    def test_zero_threshold_rejected(self):
        bad = BadgeDefinition("zero", "Zero", "", BadgeKind.TOTAL_MINUTES, 0)
        with pytest.raises(CatalogError, match="positive"):
            validate_catalog([bad])

    def test_flag_kind_ignores_requirement(self):
        ok = BadgeDefinition("joined", "Joined", "", BadgeKind.TEAM_JOIN, 0)
        validate_catalog([ok])

    def test_catalog_error_is_value_error(self):
        assert issubclass(CatalogError, ValueError)


class TestEvaluate:
    def test_scenario_mixed_stats(self):
        stats = UserStats(
            total_workouts=10,
            total_minutes=300,
            current_streak=3,
            weekend_workouts=0,
            has_team=True,
        )
        result = evaluate(stats, set())
        assert {"streak_3", "workouts_10", "first_workout", "team_player"} <= result
        assert "minutes_500" not in result
        assert "streak_7" not in result
        assert "weekend_warrior" not in result

    def test_no_activity_earns_nothing(self):
        assert evaluate(UserStats(), set()) == set()

    def test_team_only(self):
        assert evaluate(UserStats(has_team=True), set()) == {"team_player"}

    def test_first_workout_at_one(self):
        assert "first_workout" in evaluate(UserStats(total_workouts=1), set())

    def test_thresholds_inclusive(self):
        stats = UserStats(total_minutes=500, weekend_workouts=5, current_streak=7, total_workouts=25)
        result = evaluate(stats, set())
        assert {"minutes_500", "weekend_warrior", "streak_7", "workouts_25"} <= result
        assert "minutes_1000" not in result

    def test_streak_badge_uses_current_streak(self):
        stats = UserStats(total_workouts=40, current_streak=0, longest_streak=30)
        assert not any(bid.startswith("streak_") for bid in evaluate(stats, set()))

    def test_already_earned_skipped(self):
        stats = UserStats(total_workouts=10, has_team=True)
        result = evaluate(stats, {"workouts_10", "team_player"})
        assert result == {"first_workout"}

    def test_idempotent(self):
        stats = UserStats(total_workouts=60, total_minutes=1200, current_streak=15, weekend_workouts=6, has_team=True)
        first = evaluate(stats, set())
        second = evaluate(stats, first)
        assert second == set()

    def test_same_inputs_same_output(self):
        stats = UserStats(total_workouts=12, total_minutes=600, current_streak=4)
        assert evaluate(stats, {"first_workout"}) == evaluate(stats, {"first_workout"})

    def test_does_not_mutate_already_earned(self):
        earned = {"first_workout"}
        evaluate(UserStats(total_workouts=10), earned)
        assert earned == {"first_workout"}

    def test_unknown_earned_ids_tolerated(self):
        assert evaluate(UserStats(total_workouts=1), {"retired_badge"}) == {"first_workout"}

    def test_custom_catalog(self):
        only = [BADGES_BY_ID["minutes_500"]]
        assert evaluate(UserStats(total_minutes=900, total_workouts=5), set(), catalog=only) == {"minutes_500"}


class TestBuildUserStats:
    def test_aggregates_history(self):
        history = [
            _workout(TODAY, 40),
            _workout(TODAY - timedelta(days=1), 20),
            _workout(date(2026, 1, 3), 50),  # Saturday
        ]
        stats = build_user_stats(history, TODAY, has_team=True, tz=UTC)
        assert stats.total_workouts == 3
        assert stats.total_minutes == 110
        assert stats.current_streak == 2
        assert stats.longest_streak == 2
        assert stats.weekend_workouts == 1
        assert stats.has_team is True

    def test_negative_duration_clamped(self):
        stats = build_user_stats([_workout(TODAY, -30), _workout(TODAY, 20, "b")], TODAY, False, UTC)
        assert stats.total_minutes == 20
        assert stats.total_workouts == 2

    def test_untimed_record_counts_toward_totals(self):
        untimed = WorkoutRecord(id="x", user_id="u1", occurred_at=None, duration_minutes=45)
        stats = build_user_stats([untimed], TODAY, False, UTC)
        assert stats.total_workouts == 1
        assert stats.total_minutes == 45
        assert stats.current_streak == 0

    def test_record_without_timestamp_or_duration_ignored(self):
        empty = WorkoutRecord(id="x", user_id="u1", occurred_at=None, duration_minutes=None)
        stats = build_user_stats([empty], TODAY, False, UTC)
        assert stats.total_workouts == 0

    def test_empty_history(self):
        assert build_user_stats([], TODAY, False, UTC) == UserStats()

    def test_adding_workout_never_decreases_totals(self):
        history = [_workout(TODAY - timedelta(days=2), 30)]
        before = build_user_stats(history, TODAY, False, UTC)
        after = build_user_stats(history + [_workout(TODAY, 0, "new")], TODAY, False, UTC)
        assert after.total_workouts >= before.total_workouts
        assert after.total_minutes >= before.total_minutes
        assert after.longest_streak >= before.longest_streak


class TestBadgeProgress:
    def test_half_way(self):
        statuses = badge_progress(UserStats(total_minutes=250), set())
        minutes = next(s for s in statuses if s.definition.id == "minutes_500")
        assert minutes.progress == 0.5
        assert minutes.current == 250
        assert minutes.earned is False

    def test_earned_badge_reports_full(self):
        statuses = badge_progress(UserStats(), {"streak_3"})
        streak = next(s for s in statuses if s.definition.id == "streak_3")
        assert streak.earned is True
        assert streak.progress == 1.0

    def test_closest_badges(self):
        statuses = badge_progress(UserStats(total_workouts=9, total_minutes=100), {"first_workout"})
        closest = closest_badges(statuses, n=1)
        assert closest[0].definition.id == "workouts_10"

    def test_closest_excludes_earned(self):
        statuses = badge_progress(UserStats(total_workouts=10), set())
        assert all(not s.earned for s in closest_badges(statuses, n=5))


class TestOrderedBadgeIds:
    def test_catalog_order(self):
        assert ordered_badge_ids({"team_player", "streak_3", "workouts_10"}) == [
            "streak_3",
            "workouts_10",
            "team_player",
        ]

    def test_unknown_ids_last(self):
        assert ordered_badge_ids({"zzz", "first_workout"}) == ["first_workout", "zzz"]
