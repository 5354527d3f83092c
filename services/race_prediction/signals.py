"""
Performance-based signal extractors.

Each extractor filters its slice of history, converts every qualifying item to
a VDOT, recency-weights the items and returns a SignalContribution, or None
when nothing qualifies. None means "signal unused"; an extractor never returns
a zero estimate and never raises.

Signals:
- Race VDOT: official race results, effort-weighted
- Best Effort VDOT: fast segments detected in training, derated 3%
- Critical Speed: distance/time regression across distance buckets
- Training Pace Inference: pace of easy/tempo/threshold runs
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from services.race_prediction.constants import (
    BEST_EFFORT_DERATE,
    BEST_EFFORT_VDOT,
    CRITICAL_SPEED,
    CRITICAL_SPEED_BUCKETS,
    CRITICAL_SPEED_MAX_DISTANCE_M,
    CRITICAL_SPEED_MAX_MPS,
    CRITICAL_SPEED_MIN_BUCKETS,
    CRITICAL_SPEED_PCT_VO2MAX,
    DEFAULT_EFFORT_WEIGHT,
    EASY_PACE_TYPES,
    EFFORT_LEVEL_WEIGHTS,
    METERS_PER_MILE,
    MIN_RACE_DISTANCE_M,
    PACE_TYPE_PCT_VO2MAX,
    RACE_VDOT,
    SIGNAL_HALF_LIFE_DAYS,
    SIGNAL_WEIGHTS,
    TRAINING_PACE,
    TRAINING_PACE_MIN_DISTANCE_MI,
    TRAINING_PACE_MIN_DURATION_MIN,
    TRAINING_PACE_WINDOW_DAYS,
    VDOT_MAX,
    VDOT_MIN,
)
from services.race_prediction.models import (
    BestEffortInput,
    SignalContribution,
    WorkoutSignalInput,
)
from services.race_prediction.physiology import (
    clamp_vdot,
    days_between,
    exponential_decay,
    linear_regression,
    vo2_from_velocity,
)
from services.vdot_calculator import (
    calculate_adjusted_vdot,
    calculate_vdot_from_race_time,
    estimate_vdot_from_easy_pace,
)

logger = logging.getLogger(__name__)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _most_recent(items: Sequence, as_of: date) -> int:
    latest = max(item.date for item in items)
    return days_between(latest, as_of)


# =============================================================================
# SIGNAL 1: RACE VDOT
# =============================================================================

def extract_race_vdot_signal(
    races: Sequence[BestEffortInput],
    as_of: date,
) -> Optional[SignalContribution]:
    """
    Race VDOT, weighted by recency (180d half-life) and effort level.

    Uses elapsed time. Races with weather or elevation data are scored on the
    condition-corrected VDOT.
    """
    valid = [r for r in races if r.distance_meters >= MIN_RACE_DISTANCE_M and r.time_seconds > 0]
    if not valid:
        logger.debug("Race signal skipped: no qualifying races")
        return None

    weighted_sum = 0.0
    total_weight = 0.0
    key_dates: List[date] = []

    for race in valid:
        vdot = calculate_adjusted_vdot(
            race.distance_meters,
            race.time_seconds,
            weather_temp_f=race.weather_temp_f,
            weather_humidity_pct=race.weather_humidity_pct,
            elevation_gain_ft=race.elevation_gain_ft,
        )
        if vdot is None:
            continue
        vdot = clamp_vdot(vdot)

        recency = exponential_decay(days_between(race.date, as_of), SIGNAL_HALF_LIFE_DAYS[RACE_VDOT])
        effort_weight = EFFORT_LEVEL_WEIGHTS.get(race.effort_level, DEFAULT_EFFORT_WEIGHT)
        w = recency * effort_weight

        weighted_sum += vdot * w
        total_weight += w
        key_dates.append(race.date)

    if total_weight <= 0:
        return None

    estimated = clamp_vdot(weighted_sum / total_weight)
    recency_days = _most_recent(valid, as_of)
    count = len(valid)

    if count >= 3:
        confidence = 0.9
    elif count >= 2:
        confidence = 0.8
    else:
        confidence = 0.7
    if recency_days > 120:
        confidence *= 0.8
    if recency_days > 240:
        confidence *= 0.7
    if any(r.effort_level == "all_out" for r in valid):
        confidence = min(1.0, confidence + 0.1)

    logger.debug("Race signal: VDOT %.1f from %d races", estimated, count)
    return SignalContribution(
        name=RACE_VDOT,
        estimated_vdot=estimated,
        weight=SIGNAL_WEIGHTS[RACE_VDOT],
        confidence=confidence,
        description=f"From {_plural(count, 'race')}, most recent {recency_days}d ago",
        data_points=count,
        recency_days=recency_days,
        key_dates=key_dates,
    )


# =============================================================================
# SIGNAL 2: BEST EFFORT VDOT
# =============================================================================

def extract_best_effort_signal(
    best_efforts: Sequence[BestEffortInput],
    as_of: date,
) -> Optional[SignalContribution]:
    """Best efforts of a mile or longer, 120d half-life, derated 3% from race capacity."""
    valid = [e for e in best_efforts if e.distance_meters >= METERS_PER_MILE and e.time_seconds > 0]
    if not valid:
        logger.debug("Best effort signal skipped: no efforts of a mile or longer")
        return None

    weighted_sum = 0.0
    total_weight = 0.0
    key_dates: List[date] = []
    key_workout_ids: List[int] = []

    for effort in valid:
        vdot = calculate_vdot_from_race_time(effort.distance_meters, effort.time_seconds)
        if vdot is None:
            continue
        derated = clamp_vdot(vdot) * BEST_EFFORT_DERATE
        w = exponential_decay(days_between(effort.date, as_of), SIGNAL_HALF_LIFE_DAYS[BEST_EFFORT_VDOT])

        weighted_sum += derated * w
        total_weight += w
        key_dates.append(effort.date)
        if effort.workout_id:
            key_workout_ids.append(effort.workout_id)

    if total_weight <= 0:
        return None

    estimated = clamp_vdot(weighted_sum / total_weight)
    recency_days = _most_recent(valid, as_of)
    count = len(valid)

    if count >= 5:
        confidence = 0.7
    elif count >= 3:
        confidence = 0.6
    elif count >= 2:
        confidence = 0.5
    else:
        confidence = 0.4
    if recency_days > 90:
        confidence *= 0.85

    logger.debug("Best effort signal: VDOT %.1f from %d efforts", estimated, count)
    return SignalContribution(
        name=BEST_EFFORT_VDOT,
        estimated_vdot=estimated,
        weight=SIGNAL_WEIGHTS[BEST_EFFORT_VDOT],
        confidence=confidence,
        description=f"From {_plural(count, 'training effort')} (derated 3% from race)",
        data_points=count,
        recency_days=recency_days,
        key_dates=key_dates[:5],
        key_workout_ids=key_workout_ids[:5],
    )


# =============================================================================
# SIGNAL 5: CRITICAL SPEED
# =============================================================================

def _distance_bucket(distance_meters: float) -> str:
    for upper, name in CRITICAL_SPEED_BUCKETS:
        if distance_meters < upper:
            return name
    return CRITICAL_SPEED_BUCKETS[-1][1]


def extract_critical_speed_signal(
    races: Sequence[BestEffortInput],
    best_efforts: Sequence[BestEffortInput],
    as_of: date,
) -> Optional[SignalContribution]:
    """
    Critical speed from the best effort in each distance bucket.

    Fits distance = CS * time + D' over the bucket bests. The slope (m/s) sits
    near threshold, taken as 88% of VO2max.
    """
    pool = [
        e for e in list(races) + list(best_efforts)
        if METERS_PER_MILE <= e.distance_meters <= CRITICAL_SPEED_MAX_DISTANCE_M and e.time_seconds > 0
    ]

    # bucket -> (vdot, effort); best is the highest VDOT, not the fastest time
    buckets: Dict[str, Tuple[float, BestEffortInput]] = {}
    for effort in pool:
        name = _distance_bucket(effort.distance_meters)
        vdot = calculate_vdot_from_race_time(effort.distance_meters, effort.time_seconds) or 0.0
        existing = buckets.get(name)
        if existing is None or vdot > existing[0]:
            buckets[name] = (vdot, effort)

    if len(buckets) < CRITICAL_SPEED_MIN_BUCKETS:
        logger.debug("Critical speed skipped: %d distance buckets", len(buckets))
        return None

    points = [effort for _, effort in buckets.values()]
    fit = linear_regression(
        [p.time_seconds for p in points],
        [p.distance_meters for p in points],
    )
    if fit is None:
        return None

    critical_speed = fit[0]
    if critical_speed <= 0 or critical_speed > CRITICAL_SPEED_MAX_MPS:
        logger.debug("Critical speed skipped: implausible slope %.2f m/s", critical_speed)
        return None

    estimated = clamp_vdot(vo2_from_velocity(critical_speed * 60) / CRITICAL_SPEED_PCT_VO2MAX)
    count = len(points)
    if count >= 5:
        confidence = 0.8
    elif count >= 4:
        confidence = 0.7
    else:
        confidence = 0.55

    cs_pace = METERS_PER_MILE / critical_speed
    logger.debug("Critical speed: %.2f m/s -> VDOT %.1f", critical_speed, estimated)
    return SignalContribution(
        name=CRITICAL_SPEED,
        estimated_vdot=estimated,
        weight=SIGNAL_WEIGHTS[CRITICAL_SPEED],
        confidence=confidence,
        description=f"From {count} efforts across different distances (CS = {cs_pace:.0f} sec/mi)",
        data_points=count,
        recency_days=None,
        key_dates=[p.date for p in points],
    )


# =============================================================================
# SIGNAL 6: TRAINING PACE INFERENCE
# =============================================================================

def _pace_vdot(workout: WorkoutSignalInput) -> Optional[float]:
    if workout.workout_type in EASY_PACE_TYPES:
        return estimate_vdot_from_easy_pace(workout.avg_pace_seconds)
    pct = PACE_TYPE_PCT_VO2MAX.get(workout.workout_type)
    if pct is None:
        return None
    velocity = METERS_PER_MILE / (workout.avg_pace_seconds / 60)
    return vo2_from_velocity(velocity) / pct


def extract_training_pace_signal(
    workouts: Sequence[WorkoutSignalInput],
    as_of: date,
) -> Optional[SignalContribution]:
    """Low-weight fallback: VDOT implied by the pace of typed training runs."""
    estimates: List[Tuple[float, float, WorkoutSignalInput]] = []

    for w in workouts:
        if (
            w.distance_miles <= TRAINING_PACE_MIN_DISTANCE_MI
            or w.duration_minutes < TRAINING_PACE_MIN_DURATION_MIN
            or w.avg_pace_seconds <= 0
        ):
            continue
        days_ago = days_between(w.date, as_of)
        if days_ago > TRAINING_PACE_WINDOW_DAYS:
            continue

        vdot = _pace_vdot(w)
        if vdot is None or vdot < VDOT_MIN or vdot > VDOT_MAX:
            continue
        recency = exponential_decay(days_ago, SIGNAL_HALF_LIFE_DAYS[TRAINING_PACE])
        estimates.append((clamp_vdot(vdot), recency, w))

    if not estimates:
        logger.debug("Training pace signal skipped: no typed runs in window")
        return None

    total_weight = sum(weight for _, weight, _ in estimates)
    estimated = clamp_vdot(sum(v * weight for v, weight, _ in estimates) / total_weight)
    count = len(estimates)

    if count >= 10:
        confidence = 0.5
    elif count >= 5:
        confidence = 0.4
    else:
        confidence = 0.3

    types: List[str] = []
    for _, _, w in estimates:
        if w.workout_type not in types:
            types.append(w.workout_type)

    logger.debug("Training pace signal: VDOT %.1f from %d runs", estimated, count)
    return SignalContribution(
        name=TRAINING_PACE,
        estimated_vdot=estimated,
        weight=SIGNAL_WEIGHTS[TRAINING_PACE],
        confidence=confidence,
        description=f"From {count} {'/'.join(types)} runs (last 90d)",
        data_points=count,
        recency_days=None,
        key_workout_ids=[w.id for _, _, w in estimates[-3:]],
    )
