"""
Tests for request payload validation.
"""

from datetime import date

import pytest

from core.exceptions import InvalidPredictionInput, PredictionEngineError
from services.race_prediction import generate_predictions, parse_prediction_input
from services.race_prediction.constants import RACE_VDOT
from tests.prediction_helpers import AS_OF


@pytest.fixture
def camel_payload():
    return {
        "physiology": {"restingHr": 50, "maxHr": 190, "age": 35},
        "workouts": [
            {
                "id": 7,
                "date": "2024-05-30",
                "distanceMiles": 6,
                "durationMinutes": 54,
                "avgPaceSeconds": 540,
                "avgHr": 148,
                "workoutType": "easy",
                "weatherTempF": 60,
            }
        ],
        "races": [
            {"date": "2024-06-01", "distanceMeters": 10000, "timeSeconds": 2400, "effortLevel": "all_out"}
        ],
        "bestEfforts": [
            {"date": "2024-05-20", "distanceMeters": 5000, "timeSeconds": 1200, "source": "workout_segment",
             "workoutId": 3}
        ],
        "fitnessState": {"ctl": 45, "atl": 40, "tsb": 5},
        "trainingVolume": {
            "avgWeeklyMiles4Weeks": 40,
            "longestRecentRunMiles": 14,
            "weeksConsecutiveTraining": 16,
            "qualitySessionsPerWeek": 2,
        },
        "savedVdot": 45,
        "hrCalibration": {"raceVdot": 50, "raceAvgHr": 175, "raceDurationMin": 40},
    }


class TestParsePayload:

    def test_camel_case(self, camel_payload):
        engine_input = parse_prediction_input(camel_payload)

        assert engine_input.physiology.resting_hr == 50
        assert engine_input.physiology.max_hr == 190
        workout = engine_input.workouts[0]
        assert workout.id == 7
        assert workout.date == date(2024, 5, 30)
        assert workout.avg_hr == 148
        assert workout.weather_temp_f == 60
        assert engine_input.races[0].effort_level == "all_out"
        assert engine_input.races[0].source == "race"
        assert engine_input.best_efforts[0].source == "workout_segment"
        assert engine_input.best_efforts[0].workout_id == 3
        assert engine_input.training_volume.avg_weekly_miles_4_weeks == 40
        assert engine_input.fitness_state.tsb == 5
        assert engine_input.saved_vdot == 45
        assert engine_input.hr_calibration.race_avg_hr == 175

    def test_snake_case(self):
        engine_input = parse_prediction_input({
            "physiology": {"resting_hr": 55, "max_hr": 185},
            "races": [{"date": "2024-06-01", "distance_meters": 5000, "time_seconds": 1200}],
            "training_volume": {"avg_weekly_miles_4_weeks": 30},
            "saved_vdot": 41,
        })

        assert engine_input.physiology.resting_hr == 55
        assert engine_input.races[0].distance_meters == 5000
        assert engine_input.training_volume.avg_weekly_miles_4_weeks == 30
        assert engine_input.saved_vdot == 41

    def test_empty_payload_uses_defaults(self):
        engine_input = parse_prediction_input({})

        assert engine_input.workouts == ()
        assert engine_input.physiology.resting_hr == 60
        assert engine_input.physiology.max_hr == 190
        assert engine_input.fitness_state.ctl == 0
        assert engine_input.hr_calibration is None

    def test_unknown_keys_ignored(self):
        engine_input = parse_prediction_input({"athleteId": "abc", "saved_vdot": 40})
        assert engine_input.saved_vdot == 40

    def test_inverted_hr_accepted(self):
        """Shape is valid; the engine degrades by skipping HR signals."""
        engine_input = parse_prediction_input({"physiology": {"restingHr": 190, "maxHr": 50}})
        assert engine_input.physiology.hr_range < 0

    def test_parsed_input_runs(self, camel_payload):
        result = generate_predictions(parse_prediction_input(camel_payload), as_of=AS_OF)

        assert result.get_signal(RACE_VDOT) is not None
        assert result.form_adjustment_pct == -0.5
        assert len(result.predictions) == 4


class TestInvalidPayload:

    def test_missing_required_field(self, camel_payload):
        del camel_payload["workouts"][0]["date"]

        with pytest.raises(InvalidPredictionInput) as exc_info:
            parse_prediction_input(camel_payload)

        error = exc_info.value
        assert error.error_code == "VALIDATION_ERROR_WORKOUTS"
        assert error.errors[0]["loc"] == ["workouts", 0, "date"]
        assert "1 error(s)" in error.detail

    def test_unknown_source(self, camel_payload):
        camel_payload["races"][0]["source"] = "strava"

        with pytest.raises(InvalidPredictionInput) as exc_info:
            parse_prediction_input(camel_payload)

        assert exc_info.value.error_code == "VALIDATION_ERROR_RACES"

    def test_bad_date(self):
        with pytest.raises(InvalidPredictionInput):
            parse_prediction_input({"races": [{"date": "yesterday", "distanceMeters": 5000, "timeSeconds": 1200}]})

    def test_negative_distance(self):
        with pytest.raises(InvalidPredictionInput):
            parse_prediction_input({"bestEfforts": [{"date": "2024-06-01", "distanceMeters": -1, "timeSeconds": 60}]})

    def test_is_engine_error(self):
        with pytest.raises(PredictionEngineError):
            parse_prediction_input({"physiology": {"restingHr": 0}})

    def test_generic_error_code_without_field(self):
        error = InvalidPredictionInput(detail="bad")
        assert error.error_code == "VALIDATION_ERROR"
        assert error.errors == []
        assert str(error) == "bad"
