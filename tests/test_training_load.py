"""
Tests for the Training Load Calculator.

Tests cover:
- Workout load from duration, type and pace
- CTL/ATL/TSB series and snapshot
- TSB zones
- Per-workout TSB annotation
- Rolled-up training volume
"""

import math
from datetime import timedelta

import pytest

from services.training_load import (
    ATL_DECAY,
    CTL_DECAY,
    TSBZone,
    annotate_workout_tsb,
    calculate_fitness_state,
    calculate_load_history,
    calculate_workout_load,
    get_tsb_zone,
    summarize_training_volume,
)
from tests.prediction_helpers import AS_OF, make_workout


def _timed(workout_id, ago, minutes, workout_type="easy", distance_miles=5.0):
    """Five-mile workout lasting the given minutes."""
    return make_workout(workout_id, ago=ago, distance_miles=distance_miles, pace_seconds=minutes * 60 / distance_miles,
                        workout_type=workout_type)


class TestWorkoutLoad:

    def test_easy_half_hour(self):
        assert calculate_workout_load(30, "easy") == 18

    def test_long_duration_bonus(self):
        # 90 * 0.6 * 1.15
        assert calculate_workout_load(90, "easy") == 62

    def test_pace_scaling(self):
        assert calculate_workout_load(30, "easy", distance_miles=6, avg_pace_seconds=300) == 25

    def test_pace_outside_band_ignored(self):
        assert calculate_workout_load(30, "easy", distance_miles=2, avg_pace_seconds=1000) == 18

    def test_unknown_type_uses_other(self):
        assert calculate_workout_load(100, "yoga") == calculate_workout_load(100, "other")

    def test_intensity_ordering(self):
        loads = [calculate_workout_load(45, t) for t in ("recovery", "easy", "tempo", "interval", "race")]
        assert loads == sorted(loads)

    def test_zero_duration(self):
        assert calculate_workout_load(0, "race") == 0


class TestFitnessState:

    def test_empty_history(self):
        state = calculate_fitness_state([], AS_OF)
        assert (state.ctl, state.atl, state.tsb) == (0.0, 0.0, 0.0)

    def test_history_zero_filled(self):
        workouts = [_timed(1, ago=10, minutes=100), _timed(2, ago=0, minutes=100)]
        history = calculate_load_history(workouts, AS_OF)

        assert len(history) == 11
        assert history[0].date == AS_OF - timedelta(days=10)
        assert history[-1].date == AS_OF
        assert sum(1 for day in history if day.load == 0) == 9

    def test_single_day(self):
        history = calculate_load_history([_timed(1, ago=0, minutes=100)], AS_OF)
        load = history[0].load

        assert history[0].ctl == pytest.approx(round(load * CTL_DECAY, 1))
        assert history[0].atl == pytest.approx(round(load * ATL_DECAY, 1))
        assert history[0].tsb < 0

    def test_steady_training_converges(self):
        workouts = [_timed(i, ago=i, minutes=100) for i in range(100)]
        load = calculate_workout_load(100, "easy", 5.0, 1200)

        state = calculate_fitness_state(workouts, AS_OF)

        assert state.ctl == pytest.approx(load * (1 - math.exp(-100 / 42)), abs=0.1)
        assert state.atl == pytest.approx(load, abs=0.1)
        assert state.tsb < 0

    def test_rest_after_block_turns_positive(self):
        workouts = [_timed(i, ago=i + 10, minutes=100) for i in range(60)]
        state = calculate_fitness_state(workouts, AS_OF)
        assert state.tsb > 0

    def test_future_workouts_ignored(self):
        workouts = [_timed(1, ago=5, minutes=60), _timed(2, ago=-2, minutes=200)]
        history = calculate_load_history(workouts, AS_OF)
        assert history[-1].date == AS_OF
        assert len(history) == 6


class TestTSBZones:

    @pytest.mark.parametrize("tsb,zone", [
        (25, TSBZone.FRESH),
        (20, TSBZone.RACE_READY),
        (6, TSBZone.RACE_READY),
        (5, TSBZone.TRAINING),
        (-9, TSBZone.TRAINING),
        (-10, TSBZone.FATIGUED),
        (-24, TSBZone.FATIGUED),
        (-25, TSBZone.OVERREACHED),
        (-60, TSBZone.OVERREACHED),
    ])
    def test_zone_boundaries(self, tsb, zone):
        assert get_tsb_zone(tsb) == zone


class TestAnnotateTsb:

    def test_first_day_enters_at_zero(self):
        workouts = [_timed(1, ago=2, minutes=100), _timed(2, ago=0, minutes=100)]

        annotated = annotate_workout_tsb(workouts, AS_OF)

        assert annotated[0].tsb == 0.0
        assert annotated[1].tsb < 0
        history = calculate_load_history(workouts, AS_OF)
        assert annotated[1].tsb == history[-2].tsb

    def test_existing_tsb_kept(self):
        workouts = [make_workout(1, ago=1, tsb=-12.0)]
        assert annotate_workout_tsb(workouts, AS_OF)[0].tsb == -12.0

    def test_inputs_not_mutated(self):
        workouts = [_timed(1, ago=0, minutes=60)]
        annotate_workout_tsb(workouts, AS_OF)
        assert workouts[0].tsb is None


class TestTrainingVolume:

    @pytest.fixture
    def block(self):
        """Six weeks of three 5 mi runs (middle one tempo) plus a 12 mi long run."""
        workouts = []
        for week in range(6):
            for offset in (1, 3, 5):
                workout_type = "tempo" if offset == 3 else "easy"
                workouts.append(make_workout(len(workouts) + 1, ago=offset + 7 * week, distance_miles=5,
                                             workout_type=workout_type))
        workouts.append(make_workout(100, ago=6, distance_miles=12, workout_type="long"))
        return workouts

    def test_summary(self, block):
        volume = summarize_training_volume(block, AS_OF)

        assert volume.avg_weekly_miles_4_weeks == 18.0
        assert volume.longest_recent_run_miles == 12
        assert volume.weeks_consecutive_training == 6
        assert volume.quality_sessions_per_week == 1.0

    def test_gap_breaks_streak(self, block):
        without_week_two = [w for w in block if not 14 <= (AS_OF - w.date).days < 21]
        assert summarize_training_volume(without_week_two, AS_OF).weeks_consecutive_training == 2

    def test_no_workouts(self):
        volume = summarize_training_volume([], AS_OF)

        assert volume.avg_weekly_miles_4_weeks == 0
        assert volume.longest_recent_run_miles == 0
        assert volume.weeks_consecutive_training == 0
