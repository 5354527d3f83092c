"""
Tests for per-distance prediction composition.
"""

import pytest

from services.race_prediction.composer import (
    compose_distance_prediction,
    compose_predictions,
    range_base_pct,
    readiness_penalty,
)
from services.race_prediction.constants import PREDICTION_DISTANCES
from services.race_prediction.models import FormAdjustment
from services.vdot_calculator import predict_race_time
from tests.prediction_helpers import make_volume

FIVE_K, TEN_K, HALF, MARATHON = PREDICTION_DISTANCES

NORMAL_FORM = FormAdjustment(pct_adjustment=0.0, description="Form: normal training load", reasons=[])
FATIGUED_FORM = FormAdjustment(pct_adjustment=1.5, description="Form: fatigued (+1.5%)", reasons=["fatigued"])
LOW_VOLUME = make_volume(weekly=20, longest=8, weeks=4)


class TestRangeAndPenalty:

    @pytest.mark.parametrize("meters,expected", [
        (5000, 0.025),
        (9999, 0.025),
        (10000, 0.035),
        (21097, 0.05),
        (42195, 0.05),
    ])
    def test_range_base(self, meters, expected):
        assert range_base_pct(meters) == expected

    @pytest.mark.parametrize("readiness,expected", [(1.0, 0.0), (0.7, 0.0), (0.5, 0.05), (0.0, 0.175)])
    def test_penalty(self, readiness, expected):
        assert readiness_penalty(readiness) == pytest.approx(expected)


class TestComposeDistance:

    def test_no_adjustments(self):
        prediction = compose_distance_prediction(FIVE_K, 50.0, 1.0, NORMAL_FORM, make_volume())
        base = predict_race_time(50.0, 5000)

        assert prediction.distance == "5K"
        assert prediction.predicted_seconds == base
        assert prediction.pace_per_mile == round(base / 3.107)
        assert prediction.readiness == 1.0
        assert prediction.adjustment_reasons == []
        assert prediction.range.fast == round(base * 0.975)
        assert prediction.range.slow == round(base * 1.025)

    def test_disagreement_widens_range(self):
        agreed = compose_distance_prediction(TEN_K, 50.0, 1.0, NORMAL_FORM, make_volume())
        split = compose_distance_prediction(TEN_K, 50.0, 0.5, NORMAL_FORM, make_volume())

        assert split.predicted_seconds == agreed.predicted_seconds
        assert split.range.fast < agreed.range.fast
        assert split.range.slow > agreed.range.slow
        assert split.range.slow == round(split.predicted_seconds * (1 + 0.035 * 1.5))

    def test_form_slows_prediction(self):
        prediction = compose_distance_prediction(FIVE_K, 50.0, 1.0, FATIGUED_FORM, make_volume())
        base = predict_race_time(50.0, 5000)

        assert prediction.predicted_seconds == round(base * 1.015)
        assert prediction.adjustment_reasons == ["Form: fatigued (+1.5%)"]

    def test_readiness_penalty_applied(self):
        prediction = compose_distance_prediction(MARATHON, 50.0, 1.0, NORMAL_FORM, LOW_VOLUME)
        base = predict_race_time(50.0, 42195)
        adjusted = round(base * 1.085)

        assert prediction.readiness == pytest.approx(0.36)
        assert prediction.predicted_seconds == adjusted
        assert prediction.range.fast == round(adjusted * 0.95)
        assert prediction.range.slow == round(adjusted * (1 + 0.05 + 0.085))
        assert prediction.adjustment_reasons == [
            "Endurance readiness 36%: training volume/long run needed for Marathon"
        ]

    def test_penalty_and_form_both_listed(self):
        prediction = compose_distance_prediction(MARATHON, 50.0, 1.0, FATIGUED_FORM, LOW_VOLUME)

        assert len(prediction.adjustment_reasons) == 2
        assert prediction.adjustment_reasons[0].startswith("Endurance readiness")
        assert prediction.adjustment_reasons[1] == FATIGUED_FORM.description

    def test_range_brackets_prediction(self):
        for distance in PREDICTION_DISTANCES:
            prediction = compose_distance_prediction(distance, 45.0, 0.3, FATIGUED_FORM, LOW_VOLUME)
            assert prediction.range.fast <= prediction.predicted_seconds <= prediction.range.slow


class TestComposePredictions:

    def test_all_four_distances_in_order(self):
        predictions = compose_predictions(50.0, 1.0, NORMAL_FORM, make_volume())

        assert [p.distance for p in predictions] == ["5K", "10K", "Half Marathon", "Marathon"]
        times = [p.predicted_seconds for p in predictions]
        assert times == sorted(times)

    def test_pace_slows_with_distance(self):
        predictions = compose_predictions(50.0, 1.0, NORMAL_FORM, make_volume())
        paces = [p.pace_per_mile for p in predictions]
        assert paces == sorted(paces)

    def test_to_dict_formats_times(self):
        prediction = compose_predictions(50.0, 1.0, NORMAL_FORM, make_volume())[0]
        data = prediction.to_dict()

        assert data["distance"] == "5K"
        assert data["predicted_time_formatted"].count(":") == 1
        assert set(data["readiness_factors"]) == {"volume", "long_run", "consistency"}
        assert data["range"]["fast"] < data["range"]["slow"]
