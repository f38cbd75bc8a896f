"""Tests for the workout scoring engine."""

from datetime import datetime, timedelta, timezone

from fit_rank.models import WorkoutRecord
from fit_rank.scoring import (
    AI_GENERATED_MULTIPLIER,
    DEFAULT_TYPE_MULTIPLIER,
    intensity_multiplier,
    is_this_week,
    score,
    score_breakdown,
    streak_multiplier,
    summarize_member,
    total_score,
    type_multiplier,
)

UTC = timezone.utc
WHEN = datetime(2026, 1, 7, 12, 0, tzinfo=UTC)


def _workout(
    minutes: int | None = 60,
    workout_type: str = "",
    intensity: int | None = None,
    ai: bool = False,
    when: datetime | None = WHEN,
    wid: str = "w1",
) -> WorkoutRecord:
    return WorkoutRecord(
        id=wid,
        user_id="u1",
        occurred_at=when,
        duration_minutes=minutes,
        type=workout_type,
        intensity=intensity,
        is_ai_generated=ai,
    )


class TestTypeMultiplier:
    def test_cardio(self):
        assert type_multiplier(_workout(workout_type="Cardio")) == 120

    def test_keyword_inside_longer_name(self):
        assert type_multiplier(_workout(workout_type="Morning strength session")) == 110

    def test_recovery_is_discounted(self):
        assert type_multiplier(_workout(workout_type="recovery")) == 90

    def test_unknown_type(self):
        assert type_multiplier(_workout(workout_type="yoga")) == DEFAULT_TYPE_MULTIPLIER

    def test_ai_generated_overrides_type(self):
        assert type_multiplier(_workout(workout_type="recovery", ai=True)) == AI_GENERATED_MULTIPLIER


class TestMultipliers:
    def test_intensity_at_or_below_baseline(self):
        assert intensity_multiplier(None) == 100
        assert intensity_multiplier(3) == 100
        assert intensity_multiplier(5) == 100

    def test_intensity_above_baseline(self):
        assert intensity_multiplier(7) == 120

    def test_intensity_capped(self):
        assert intensity_multiplier(15) == intensity_multiplier(10) == 150

    def test_streak_zero(self):
        assert streak_multiplier(0) == 100

    def test_streak_negative_treated_as_zero(self):
        assert streak_multiplier(-4) == 100

    def test_streak_bonus(self):
        assert streak_multiplier(3) == 115

    def test_streak_capped(self):
        assert streak_multiplier(100) == streak_multiplier(30) == 250


class TestScore:
    def test_plain_workout(self):
        assert score(_workout(60)) == 60

    def test_cardio(self):
        # 30 * 1.2
        assert score(_workout(30, "cardio")) == 36

    def test_floors_fraction(self):
        # 45 * 1.1 = 49.5
        assert score(_workout(45, "strength")) == 49

    def test_streak_bonus(self):
        # 60 * 1.15
        assert score(_workout(60), streak_at_time=3) == 69

    def test_recent_bonus_requires_as_of(self):
        assert score(_workout(60)) == 60
        assert score(_workout(60), as_of=WHEN + timedelta(days=1)) == 72

    def test_old_workout_no_recent_bonus(self):
        assert score(_workout(60), as_of=WHEN + timedelta(days=4)) == 60

    def test_future_workout_no_recent_bonus(self):
        assert score(_workout(60), as_of=WHEN - timedelta(hours=1)) == 60

    def test_all_factors(self):
        # 30 * 1.2 * 1.3 * 1.1 * 1.2 = 61.776
        record = _workout(30, "cardio", intensity=8)
        assert score(record, streak_at_time=2, as_of=WHEN + timedelta(hours=2)) == 61

    def test_no_duration_scores_zero(self):
        assert score(_workout(None, "cardio"), streak_at_time=10) == 0

    def test_negative_duration_scores_zero(self):
        assert score(_workout(-20)) == 0

    def test_missing_timestamp_still_scored(self):
        assert score(_workout(60, when=None), as_of=WHEN) == 60

    def test_deterministic(self):
        record = _workout(37, "skating drills", intensity=9)
        results = {score(record, 4, WHEN) for _ in range(5)}
        assert len(results) == 1

    def test_non_decreasing_in_duration(self):
        previous = -1
        for minutes in range(0, 200):
            current = score(_workout(minutes, "recovery", intensity=6), streak_at_time=1)
            assert current >= previous
            previous = current

    def test_streak_never_lowers_score(self):
        for minutes in (0, 1, 7, 33, 90):
            record = _workout(minutes, "shooting")
            base = score(record, streak_at_time=0)
            for streak in (1, 5, 30, 60):
                assert score(record, streak_at_time=streak) >= base


class TestScoreBreakdown:
    def test_reports_each_factor(self):
        result = score_breakdown(_workout(30, "cardio", intensity=8), streak_at_time=2)
        assert result.minutes == 30
        assert result.type_multiplier == 120
        assert result.intensity_multiplier == 130
        assert result.streak_multiplier == 110
        assert result.recent_multiplier == 100
        assert result.score == 51


class TestTotals:
    def test_total_score_sums(self):
        records = [_workout(60, wid="a"), _workout(30, "cardio", wid="b")]
        assert total_score(records, streak_at_time=0) == 96

    def test_is_this_week(self):
        assert is_this_week(_workout(when=WHEN - timedelta(days=6)), WHEN)
        assert not is_this_week(_workout(when=WHEN - timedelta(days=8)), WHEN)
        assert not is_this_week(_workout(when=None), WHEN)

    def test_summarize_member(self):
        as_of = WHEN + timedelta(days=10)
        records = [
            _workout(60, when=as_of - timedelta(days=2), wid="recent"),
            _workout(40, when=as_of - timedelta(days=20), wid="old"),
        ]
        summary = summarize_member("u1", records, streak=0, as_of=as_of)
        # recent: 60 * 1.2 = 72, old: 40
        assert summary.total_score == 112
        assert summary.workout_count == 2
        assert summary.average_score == 56.0
        assert summary.total_minutes == 100
        assert summary.weekly_score == 72

    def test_summarize_member_empty(self):
        summary = summarize_member("u1", [], streak=0, as_of=WHEN)
        assert summary.total_score == 0
        assert summary.average_score == 0.0
