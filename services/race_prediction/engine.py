"""
Multi-signal race prediction engine.

Pure computation: all data arrives in a PredictionEngineInput and nothing is
read or written elsewhere. Runs every extractor, falls back to the saved VDOT
when no absolute signal qualifies, blends, and composes per-distance
predictions adjusted for readiness and form.

Usage:
    from core.logging import setup_logging
    from services.race_prediction import generate_predictions

    setup_logging()  # once per process, in the host application

    result = generate_predictions(engine_input)
    result.vdot, result.confidence, result.predictions
"""

import logging
from datetime import date
from typing import List, Optional

from services.race_prediction.blending import blend_signals, split_signals
from services.race_prediction.composer import compose_predictions
from services.race_prediction.constants import (
    RECENT_DATA_MIN_WORKOUTS,
    RECENT_DATA_WINDOW_DAYS,
    SAVED_VDOT,
    SAVED_VDOT_CONFIDENCE,
    SIGNAL_WEIGHTS,
    VDOT_MAX,
    VDOT_MIN,
    PredictionConfidence,
)
from services.race_prediction.hr_signals import (
    extract_ef_trend_signal,
    extract_effective_vo2max_signal,
)
from services.race_prediction.models import (
    DataQuality,
    MultiSignalPrediction,
    PredictionEngineInput,
    SignalContribution,
)
from services.race_prediction.physiology import days_between
from services.race_prediction.readiness import calculate_form_adjustment
from services.race_prediction.signals import (
    extract_best_effort_signal,
    extract_critical_speed_signal,
    extract_race_vdot_signal,
    extract_training_pace_signal,
)

logger = logging.getLogger(__name__)


def extract_signals(engine_input: PredictionEngineInput, as_of: date) -> List[SignalContribution]:
    """Run all six extractors; order is fixed so output is reproducible."""
    candidates = [
        extract_race_vdot_signal(engine_input.races, as_of),
        extract_best_effort_signal(engine_input.best_efforts, as_of),
        extract_effective_vo2max_signal(
            engine_input.workouts,
            engine_input.physiology,
            as_of,
            hr_calibration=engine_input.hr_calibration,
        ),
        extract_ef_trend_signal(engine_input.workouts, engine_input.physiology, as_of),
        extract_critical_speed_signal(engine_input.races, engine_input.best_efforts, as_of),
        extract_training_pace_signal(engine_input.workouts, as_of),
    ]
    return [s for s in candidates if s is not None]


def saved_vdot_signal(saved_vdot: Optional[float]) -> Optional[SignalContribution]:
    """Profile VDOT as a last-resort absolute signal; ignored outside 15-85."""
    if saved_vdot is None or not VDOT_MIN <= saved_vdot <= VDOT_MAX:
        return None
    return SignalContribution(
        name=SAVED_VDOT,
        estimated_vdot=saved_vdot,
        weight=SIGNAL_WEIGHTS[SAVED_VDOT],
        confidence=SAVED_VDOT_CONFIDENCE,
        description="From your profile settings (no recent training data)",
        data_points=1,
        recency_days=None,
    )


def determine_confidence(signals_used: int, agreement_score: float, has_recent_data: bool) -> PredictionConfidence:
    if signals_used >= 3 and agreement_score >= 0.6 and has_recent_data:
        return PredictionConfidence.HIGH
    if signals_used >= 2 and agreement_score >= 0.4:
        return PredictionConfidence.MEDIUM
    return PredictionConfidence.LOW


def assess_data_quality(
    engine_input: PredictionEngineInput,
    signals: List[SignalContribution],
    as_of: date,
) -> DataQuality:
    absolute, _ = split_signals(signals)
    recent = [
        w for w in engine_input.workouts
        if days_between(w.date, as_of) <= RECENT_DATA_WINDOW_DAYS
    ]
    return DataQuality(
        has_hr=any(w.avg_hr is not None and w.avg_hr > 0 for w in engine_input.workouts),
        has_races=len(engine_input.races) > 0,
        has_recent_data=len(recent) >= RECENT_DATA_MIN_WORKOUTS,
        workouts_used=len(engine_input.workouts),
        signals_used=len(absolute),
    )


def generate_predictions(
    engine_input: PredictionEngineInput,
    as_of: Optional[date] = None,
) -> MultiSignalPrediction:
    """
    Blend every available fitness signal and predict 5K through marathon.

    Args:
        engine_input: Everything the engine needs, assembled by the caller
        as_of: Evaluation date; defaults to today

    Returns:
        MultiSignalPrediction. Sparse or odd input widens the uncertainty;
        it never raises.
    """
    as_of = as_of or date.today()

    signals = extract_signals(engine_input, as_of)

    absolute, _ = split_signals(signals)
    if not absolute:
        fallback = saved_vdot_signal(engine_input.saved_vdot)
        if fallback is not None:
            logger.debug("No absolute signals; falling back to saved VDOT %.1f", fallback.estimated_vdot)
            signals.append(fallback)

    blend = blend_signals(signals)
    form = calculate_form_adjustment(engine_input.fitness_state)
    predictions = compose_predictions(blend.vdot, blend.agreement_score, form, engine_input.training_volume)

    data_quality = assess_data_quality(engine_input, signals, as_of)
    confidence = determine_confidence(data_quality.signals_used, blend.agreement_score, data_quality.has_recent_data)

    logger.info(
        "Race prediction: VDOT %.1f (%s confidence, %d signals, agreement %.2f)",
        blend.vdot,
        confidence.value,
        data_quality.signals_used,
        blend.agreement_score,
        extra={"extra_fields": {
            "vdot": blend.vdot,
            "confidence": confidence.value,
            "signals": [s.name for s in signals],
            "as_of": as_of.isoformat(),
        }},
    )

    return MultiSignalPrediction(
        vdot=blend.vdot,
        vdot_range=blend.range,
        confidence=confidence,
        signals=signals,
        predictions=predictions,
        data_quality=data_quality,
        agreement_score=blend.agreement_score,
        agreement_details=blend.agreement_details,
        form_adjustment_pct=form.pct_adjustment,
        form_description=form.description,
    )
