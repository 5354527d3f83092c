"""
Distance prediction composer.

Turns the blended VDOT into a time for each benchmark distance, then applies
form and, for undertrained distances, a readiness penalty. The penalty only
ever slows a prediction and only ever widens the slow side of its range.
"""

import logging
from typing import List, Optional

from services.race_prediction.constants import (
    PREDICTION_DISTANCES,
    RANGE_PCT_LONG,
    RANGE_PCT_MID,
    RANGE_PCT_SHORT,
    READINESS_PENALTY_RATE,
    READINESS_PENALTY_THRESHOLD,
    BenchmarkDistance,
)
from services.race_prediction.models import (
    DistancePrediction,
    FormAdjustment,
    TimeRange,
    TrainingVolume,
)
from services.race_prediction.readiness import calculate_readiness
from services.vdot_calculator import predict_race_time

logger = logging.getLogger(__name__)


def range_base_pct(meters: float) -> float:
    if meters >= 21097:
        return RANGE_PCT_LONG
    if meters >= 10000:
        return RANGE_PCT_MID
    return RANGE_PCT_SHORT


def readiness_penalty(readiness: float) -> float:
    """Fraction of time added when readiness is under 0.7."""
    if readiness >= READINESS_PENALTY_THRESHOLD:
        return 0.0
    return (READINESS_PENALTY_THRESHOLD - readiness) * READINESS_PENALTY_RATE


def compose_distance_prediction(
    distance: BenchmarkDistance,
    vdot: float,
    agreement_score: float,
    form: FormAdjustment,
    volume: TrainingVolume,
) -> Optional[DistancePrediction]:
    base_seconds = predict_race_time(vdot, distance.meters)
    if base_seconds is None:
        logger.warning("No base time for %s at VDOT %.1f", distance.name, vdot)
        return None

    readiness = calculate_readiness(distance.name, volume)
    penalty = readiness_penalty(readiness.score)

    reasons: List[str] = []
    if penalty > 0:
        reasons.append(
            f"Endurance readiness {readiness.score * 100:.0f}%: "
            f"training volume/long run needed for {distance.name}"
        )
    if form.pct_adjustment != 0:
        reasons.append(form.description)

    total_pct = (form.pct_adjustment + penalty * 100) / 100
    adjusted = round(base_seconds * (1 + total_pct))

    uncertainty = range_base_pct(distance.meters) * (2 - agreement_score)

    return DistancePrediction(
        distance=distance.name,
        meters=distance.meters,
        miles=distance.miles,
        predicted_seconds=adjusted,
        pace_per_mile=round(adjusted / distance.miles),
        range=TimeRange(
            fast=round(adjusted * (1 - uncertainty)),
            slow=round(adjusted * (1 + uncertainty + penalty)),
        ),
        readiness=readiness.score,
        readiness_factors=readiness.factors,
        adjustment_reasons=reasons,
    )


def compose_predictions(
    vdot: float,
    agreement_score: float,
    form: FormAdjustment,
    volume: TrainingVolume,
) -> List[DistancePrediction]:
    """One prediction per benchmark distance, shortest first."""
    predictions = []
    for distance in PREDICTION_DISTANCES:
        prediction = compose_distance_prediction(distance, vdot, agreement_score, form, volume)
        if prediction is not None:
            predictions.append(prediction)
    return predictions
