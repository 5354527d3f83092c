"""
Endurance readiness and form.

Readiness asks whether recent training supports racing a given distance at
full fitness. Form turns the current CTL/TSB snapshot into a small time
adjustment (positive = slower).
"""

from typing import List

from services.race_prediction.constants import (
    CONSISTENCY_FULL_WEEKS,
    DISTANCE_REQUIREMENTS,
    PREDICTION_DISTANCES,
    READINESS_CONSISTENCY_WEIGHT,
    READINESS_LONG_RUN_WEIGHT,
    READINESS_VOLUME_WEIGHT,
)
from services.race_prediction.models import (
    FitnessState,
    FormAdjustment,
    ReadinessFactors,
    ReadinessScore,
    TrainingVolume,
)
from services.race_prediction.physiology import clamp


def _race_miles(distance_name: str) -> float:
    for distance in PREDICTION_DISTANCES:
        if distance.name == distance_name:
            return distance.miles
    return 10.0


def calculate_readiness(distance_name: str, volume: TrainingVolume) -> ReadinessScore:
    """
    Weighted readiness for one benchmark distance.

    volume      = avg weekly miles / (multiple * race miles)
    long_run    = longest recent run / required long run
    consistency = consecutive weeks / 12

    Each factor is clamped to [0, 1]. Unknown distances are fully ready.
    """
    requirement = DISTANCE_REQUIREMENTS.get(distance_name)
    if requirement is None:
        return ReadinessScore(score=1.0, factors=ReadinessFactors(volume=1.0, long_run=1.0, consistency=1.0))

    required_weekly = requirement.weekly_miles_multiple * _race_miles(distance_name)
    volume_score = clamp(volume.avg_weekly_miles_4_weeks / required_weekly, 0.0, 1.0)
    long_run_score = clamp(volume.longest_recent_run_miles / requirement.long_run_miles, 0.0, 1.0)
    consistency_score = clamp(volume.weeks_consecutive_training / CONSISTENCY_FULL_WEEKS, 0.0, 1.0)

    score = (
        READINESS_VOLUME_WEIGHT * volume_score
        + READINESS_LONG_RUN_WEIGHT * long_run_score
        + READINESS_CONSISTENCY_WEIGHT * consistency_score
    )

    return ReadinessScore(
        score=round(score, 2),
        factors=ReadinessFactors(
            volume=round(volume_score, 2),
            long_run=round(long_run_score, 2),
            consistency=round(consistency_score, 2),
        ),
    )


def calculate_form_adjustment(fitness_state: FitnessState) -> FormAdjustment:
    """
    Percent time adjustment from TSB band plus a thin-base penalty.

    TSB  5..25   -> -0.5% (fresh)
    TSB  > 25    -> +0.5% (detrained edge)
    TSB -25..-10 -> +1.5% (fatigued)
    TSB  < -25   -> +3.0% (overreached)
    CTL  < 20    -> +1.0% on top
    """
    tsb = fitness_state.tsb
    adjustment = 0.0
    reasons: List[str] = []

    if 5 <= tsb <= 25:
        adjustment -= 0.5
        reasons.append("tapered/fresh")
    elif tsb > 25:
        adjustment += 0.5
        reasons.append("very rested (may have lost sharpness)")
    elif -25 <= tsb < -10:
        adjustment += 1.5
        reasons.append("fatigued")
    elif tsb < -25:
        adjustment += 3.0
        reasons.append("significantly overreached")

    if fitness_state.ctl < 20:
        adjustment += 1.0
        reasons.append("thin fitness base")

    if reasons:
        sign = "+" if adjustment > 0 else ""
        description = f"Form: {', '.join(reasons)} ({sign}{adjustment:.1f}%)"
    else:
        description = "Form: normal training load"

    return FormAdjustment(pct_adjustment=adjustment, description=description, reasons=reasons)
