"""
Heart-rate based signal extractors.

Effective VO2max: from steady-state runs, the pace gives the oxygen cost
(Daniels) and the relative heart rate gives the fraction of VO2max being used
(Swain-Londeree), so VO2max = VO2 / %VO2max. This works with no race at all.

Efficiency Factor trend: velocity per heartbeat on easy runs over the last
90 days. A rising EF means the same effort buys more speed. It is a MODIFIER:
its estimate is a VDOT delta applied on top of the blend.

Both extractors require a usable HR range (max - resting > 20 bpm).
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from services.race_prediction.constants import (
    EF_MAX_ADJUSTMENT,
    EF_MIN_ADJUSTMENT,
    EF_MIN_DISTANCE_MI,
    EF_MIN_DURATION_MIN,
    EF_MIN_RUNS,
    EF_PCT_PER_STEP,
    EF_TREND,
    EF_TREND_TYPES,
    EF_VDOT_PER_STEP,
    EF_WINDOW_DAYS,
    EFFECTIVE_VO2MAX,
    FATIGUE_CORRECTION_CAP,
    FATIGUE_CORRECTION_PER_TSB,
    FRESHNESS_MAX_BOOST,
    FRESHNESS_TSB_FLOOR,
    HR_CALIBRATION_CONFIDENCE_BOOST,
    HRR_RELIABLE_MAX,
    HRR_RELIABLE_MIN,
    METERS_PER_MILE,
    MIN_HR_RANGE,
    SIGNAL_HALF_LIFE_DAYS,
    SIGNAL_WEIGHTS,
    STEADY_STATE_TYPES,
    SignalKind,
    VO2MAX_MIN_DISTANCE_MI,
    VO2MAX_MIN_DURATION_MIN,
    VO2MAX_RECENT_MIN_POINTS,
    VO2MAX_RECENT_WINDOW_DAYS,
)
from services.race_prediction.models import (
    HrCalibration,
    SignalContribution,
    UserPhysiology,
    WorkoutSignalInput,
)
from services.race_prediction.physiology import (
    clamp,
    clamp_vdot,
    days_between,
    exponential_decay,
    hr_reserve_pct,
    linear_regression,
    pct_vo2max_from_hrr,
    vo2_from_velocity,
    weighted_mean,
)
from services.vdot_calculator import elevation_pace_correction, get_weather_pace_adjustment

logger = logging.getLogger(__name__)


@dataclass
class _Vo2maxPoint:
    value: float
    weight: float
    date: date
    days_ago: int
    workout_id: int


def _has_hr(workout: WorkoutSignalInput) -> bool:
    return workout.avg_hr is not None and workout.avg_hr > 0


def _raw_velocity(workout: WorkoutSignalInput) -> float:
    """Moving velocity in m/min."""
    return workout.distance_miles * METERS_PER_MILE / workout.duration_minutes


def _corrected_velocity(workout: WorkoutSignalInput) -> float:
    """
    Velocity (m/min) as if the run were on flat ground in ideal weather.

    Weather and elevation penalties (sec/mi) are summed and taken off the
    average pace. Falls back to raw velocity if the corrected pace is not
    positive.
    """
    penalty = 0
    if workout.weather_temp_f is not None and workout.weather_humidity_pct is not None:
        penalty += max(0, get_weather_pace_adjustment(workout.weather_temp_f, workout.weather_humidity_pct))
    if workout.elevation_gain_ft is not None and workout.elevation_gain_ft > 0:
        penalty += elevation_pace_correction(workout.elevation_gain_ft, workout.distance_miles)

    if penalty > 0 and workout.avg_pace_seconds > 0:
        corrected_pace = workout.avg_pace_seconds - penalty
        if corrected_pace > 0:
            return METERS_PER_MILE / (corrected_pace / 60)
    return _raw_velocity(workout)


def _fatigue_correction(tsb: Optional[float]) -> float:
    """
    VDOT points to add back when fatigued.

    Negative TSB elevates HR beyond what fitness explains, which understates
    VO2max. Linear from 0 at TSB 0 to the cap at TSB -30.
    """
    if tsb is None or tsb >= 0:
        return 0.0
    return min(FATIGUE_CORRECTION_CAP, abs(tsb) * FATIGUE_CORRECTION_PER_TSB)


def _freshness_weight(tsb: Optional[float]) -> float:
    """1.0 to 1.15: runs done fresh give a cleaner HR-to-fitness reading."""
    if tsb is None:
        return 1.0
    boost = ((tsb - FRESHNESS_TSB_FLOOR) / -FRESHNESS_TSB_FLOOR) * FRESHNESS_MAX_BOOST
    return 1.0 + clamp(boost, 0.0, FRESHNESS_MAX_BOOST)


def _calibration_factor(physiology: UserPhysiology, calibration: Optional[HrCalibration]) -> float:
    """
    Individual HR-VO2 correction from a race with known VDOT and HR.

    The expected %VO2max for the race HR is computed, but the factor is kept
    neutral; only the confidence boost is applied for now.
    """
    if calibration is None:
        return 1.0
    race_hrr = hr_reserve_pct(calibration.race_avg_hr, physiology.resting_hr, physiology.max_hr)
    if race_hrr is None or not 0.3 < race_hrr < 1.0:
        return 1.0
    expected_pct_vo2 = 1.4854 * race_hrr - 0.3702
    # TODO: derive the factor from race_vdot and expected_pct_vo2 once validated against lab data
    logger.debug("HR calibration: race %%HRR %.2f -> expected %%VO2max %.2f", race_hrr, expected_pct_vo2)
    return 1.0


def _trend_note(points: List[_Vo2maxPoint]) -> str:
    if len(points) < 5:
        return ""
    ordered = sorted(points, key=lambda p: p.date)
    half = len(ordered) // 2
    first_avg = sum(p.value for p in ordered[:half]) / half
    second_avg = sum(p.value for p in ordered[half:]) / (len(ordered) - half)
    diff = second_avg - first_avg
    if diff > 0.5:
        return f", improving {diff:.1f} pts"
    if diff < -0.5:
        return f", declining {abs(diff):.1f} pts"
    return ""


# =============================================================================
# SIGNAL 3: EFFECTIVE VO2MAX (HR)
# =============================================================================

def extract_effective_vo2max_signal(
    workouts: Sequence[WorkoutSignalInput],
    physiology: UserPhysiology,
    as_of: date,
    hr_calibration: Optional[HrCalibration] = None,
) -> Optional[SignalContribution]:
    """
    Effective VO2max from steady-state runs with HR.

    Each run contributes VO2(corrected velocity) / %VO2max(%HRR), plus a
    fatigue correction when TSB was negative. Runs are weighted by recency
    (60d half-life) and freshness. If at least 3 points fall in the last 30
    days only those are averaged; otherwise the full history is.
    """
    if physiology.hr_range <= MIN_HR_RANGE:
        logger.debug("Effective VO2max skipped: HR range %.0f bpm too narrow", physiology.hr_range)
        return None

    calibration_factor = _calibration_factor(physiology, hr_calibration)

    points: List[_Vo2maxPoint] = []
    for w in workouts:
        if (
            w.workout_type not in STEADY_STATE_TYPES
            or not _has_hr(w)
            or w.distance_miles <= VO2MAX_MIN_DISTANCE_MI
            or w.duration_minutes < VO2MAX_MIN_DURATION_MIN
        ):
            continue

        hrr = hr_reserve_pct(w.avg_hr, physiology.resting_hr, physiology.max_hr)
        if hrr is None or hrr < HRR_RELIABLE_MIN or hrr > HRR_RELIABLE_MAX:
            continue
        pct_vo2max = pct_vo2max_from_hrr(hrr)
        if pct_vo2max is None:
            continue

        effective = vo2_from_velocity(_corrected_velocity(w)) / pct_vo2max * calibration_factor
        effective += _fatigue_correction(w.tsb)

        days_ago = days_between(w.date, as_of)
        weight = exponential_decay(days_ago, SIGNAL_HALF_LIFE_DAYS[EFFECTIVE_VO2MAX]) * _freshness_weight(w.tsb)
        points.append(_Vo2maxPoint(clamp_vdot(effective), weight, w.date, days_ago, w.id))

    if not points:
        logger.debug("Effective VO2max skipped: no steady-state runs in the reliable HR band")
        return None

    # Two passes: recent subset if it is large enough, otherwise everything
    recent = [p for p in points if p.days_ago <= VO2MAX_RECENT_WINDOW_DAYS]
    used = recent if len(recent) >= VO2MAX_RECENT_MIN_POINTS else points

    average = weighted_mean([(p.value, p.weight) for p in used])
    if average is None:
        return None
    estimated = clamp_vdot(average)

    recency_days = min(p.days_ago for p in points)
    count = len(points)

    if count >= 10:
        confidence = 0.75
    elif count >= 5:
        confidence = 0.6
    elif count >= 3:
        confidence = 0.5
    else:
        confidence = 0.4
    if recency_days > 30:
        confidence *= 0.9
    if recency_days > 60:
        confidence *= 0.8
    if hr_calibration is not None:
        confidence = min(1.0, confidence + HR_CALIBRATION_CONFIDENCE_BOOST)

    logger.debug("Effective VO2max: VDOT %.1f from %d runs (%d used)", estimated, count, len(used))
    return SignalContribution(
        name=EFFECTIVE_VO2MAX,
        estimated_vdot=estimated,
        weight=SIGNAL_WEIGHTS[EFFECTIVE_VO2MAX],
        confidence=confidence,
        description=f"From {count} easy/steady runs with HR{_trend_note(points)} (fatigue-adjusted)",
        data_points=count,
        recency_days=recency_days,
        key_dates=[p.date for p in points[-5:]],
        key_workout_ids=[p.workout_id for p in points[-5:]],
    )


# =============================================================================
# SIGNAL 4: EFFICIENCY FACTOR TREND (MODIFIER)
# =============================================================================

def extract_ef_trend_signal(
    workouts: Sequence[WorkoutSignalInput],
    physiology: UserPhysiology,
    as_of: date,
) -> Optional[SignalContribution]:
    """
    EF (velocity / HR) regressed over the last 90 days.

    pct_change = slope * 90 / mean EF, and every +3% is worth +1.5 VDOT,
    clamped to +/-3. Trends smaller than 0.1 VDOT are dropped.
    Confidence is 0.2 + 0.8 * R².
    """
    if physiology.hr_range <= MIN_HR_RANGE:
        logger.debug("EF trend skipped: HR range %.0f bpm too narrow", physiology.hr_range)
        return None

    runs = []
    for w in workouts:
        if (
            w.workout_type not in EF_TREND_TYPES
            or not _has_hr(w)
            or w.distance_miles <= EF_MIN_DISTANCE_MI
            or w.duration_minutes < EF_MIN_DURATION_MIN
        ):
            continue
        days_ago = days_between(w.date, as_of)
        if days_ago > EF_WINDOW_DAYS:
            continue
        runs.append((days_ago, _raw_velocity(w) / w.avg_hr, w.id))

    if len(runs) < EF_MIN_RUNS:
        logger.debug("EF trend skipped: %d qualifying runs", len(runs))
        return None

    # oldest first; x runs 0 (90 days ago) .. 90 (today)
    runs.sort(key=lambda r: r[0], reverse=True)
    xs = [EF_WINDOW_DAYS - days_ago for days_ago, _, _ in runs]
    ys = [ef for _, ef, _ in runs]

    fit = linear_regression(xs, ys)
    if fit is None:
        return None
    slope, _, r_squared = fit

    avg_ef = sum(ys) / len(ys)
    pct_change = slope * EF_WINDOW_DAYS / avg_ef
    adjustment = clamp(
        (pct_change / EF_PCT_PER_STEP) * EF_VDOT_PER_STEP,
        -EF_MAX_ADJUSTMENT,
        EF_MAX_ADJUSTMENT,
    )
    if abs(adjustment) < EF_MIN_ADJUSTMENT:
        logger.debug("EF trend skipped: negligible adjustment %.2f", adjustment)
        return None

    direction = "improving" if adjustment > 0 else "declining"
    count = len(runs)

    logger.debug("EF trend: %s %.1f%%, adjustment %+.2f VDOT", direction, pct_change * 100, adjustment)
    return SignalContribution(
        name=EF_TREND,
        estimated_vdot=adjustment,
        weight=SIGNAL_WEIGHTS[EF_TREND],
        confidence=0.2 + 0.8 * r_squared,
        description=(
            f"EF {direction} {abs(pct_change * 100):.1f}% over 90d "
            f"({count} runs, R²={r_squared:.2f})"
        ),
        data_points=count,
        recency_days=runs[-1][0],
        kind=SignalKind.MODIFIER,
        key_workout_ids=[workout_id for _, _, workout_id in runs[-3:]],
    )
