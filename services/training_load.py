"""
Training Load Calculator

Builds the two rolled-up inputs the race prediction engine needs from raw
workout history:
- Workout load (duration x intensity, pace-tempered)
- ATL (Acute Training Load) - fatigue (7-day time constant)
- CTL (Chronic Training Load) - fitness (42-day time constant)
- TSB (Training Stress Balance) - form (CTL - ATL)
- Training volume: weekly miles, long run, consistency, quality sessions

Design Philosophy:
- Use data we have (duration, type, pace) rather than requiring power or HR
- Rest days count: the daily series is zero-filled
- Pure functions over caller-supplied workouts, no database access
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence
import logging
import math

from services.race_prediction.models import FitnessState, TrainingVolume, WorkoutSignalInput

logger = logging.getLogger(__name__)


# Relative intensity per workout type
INTENSITY_FACTORS: Dict[str, float] = {
    "recovery": 0.5,
    "easy": 0.6,
    "long": 0.65,
    "steady": 0.75,
    "tempo": 0.85,
    "interval": 1.0,
    "race": 1.1,
    "cross_train": 0.4,
    "other": 0.6,
}

ATL_DECAY_DAYS = 7   # Acute (fatigue) - short term
CTL_DECAY_DAYS = 42  # Chronic (fitness) - long term
ATL_DECAY = 1 - math.exp(-1 / ATL_DECAY_DAYS)
CTL_DECAY = 1 - math.exp(-1 / CTL_DECAY_DAYS)

EASY_BENCHMARK_PACE = 600  # 10:00/mi
MEANINGFUL_PACE_RANGE = (240, 900)

VOLUME_WINDOW_DAYS = 28
MAX_CONSECUTIVE_WEEKS = 52
QUALITY_TYPES: FrozenSet[str] = frozenset({"tempo", "threshold", "interval", "race", "marathon"})


class TSBZone(str, Enum):
    """Population TSB bands."""
    FRESH = "fresh"
    RACE_READY = "race_ready"
    TRAINING = "training"
    FATIGUED = "fatigued"
    OVERREACHED = "overreached"


@dataclass
class DailyLoad:
    """Daily training load with the running CTL/ATL/TSB after that day."""
    date: date
    load: float
    ctl: float
    atl: float
    tsb: float


# =========================================================================
# WORKOUT LOAD
# =========================================================================

def calculate_workout_load(
    duration_minutes: float,
    workout_type: str,
    distance_miles: Optional[float] = None,
    avg_pace_seconds: Optional[float] = None,
) -> int:
    """
    Load for one workout: duration x intensity.

    Efforts over an hour earn 0.5% per extra minute. When a meaningful pace
    (4:00-15:00/mi) is known, load scales by sqrt(10:00 / pace).
    """
    if duration_minutes <= 0:
        return 0

    intensity = INTENSITY_FACTORS.get(workout_type, INTENSITY_FACTORS["other"])
    load = duration_minutes * intensity

    if duration_minutes > 60:
        load *= 1 + (duration_minutes - 60) * 0.005

    if avg_pace_seconds and distance_miles and distance_miles > 0:
        low, high = MEANINGFUL_PACE_RANGE
        if low <= avg_pace_seconds <= high:
            load *= math.sqrt(EASY_BENCHMARK_PACE / avg_pace_seconds)

    return round(load)


# =========================================================================
# CTL / ATL / TSB
# =========================================================================

def calculate_load_history(
    workouts: Sequence[WorkoutSignalInput],
    as_of: Optional[date] = None,
) -> List[DailyLoad]:
    """
    Zero-filled daily series from the first workout through as_of.

    Workouts dated after as_of are ignored.
    """
    as_of = as_of or date.today()

    daily: Dict[date, float] = {}
    for w in workouts:
        if w.date > as_of:
            continue
        load = calculate_workout_load(w.duration_minutes, w.workout_type, w.distance_miles, w.avg_pace_seconds)
        daily[w.date] = daily.get(w.date, 0) + load

    if not daily:
        return []

    history: List[DailyLoad] = []
    ctl = 0.0
    atl = 0.0
    current = min(daily)
    while current <= as_of:
        load = daily.get(current, 0)
        ctl = ctl + CTL_DECAY * (load - ctl)
        atl = atl + ATL_DECAY * (load - atl)
        history.append(DailyLoad(
            date=current,
            load=load,
            ctl=round(ctl, 1),
            atl=round(atl, 1),
            tsb=round(ctl - atl, 1),
        ))
        current += timedelta(days=1)

    return history


def calculate_fitness_state(
    workouts: Sequence[WorkoutSignalInput],
    as_of: Optional[date] = None,
) -> FitnessState:
    """Current CTL/ATL/TSB snapshot; all zero with no history."""
    history = calculate_load_history(workouts, as_of)
    if not history:
        return FitnessState(ctl=0.0, atl=0.0, tsb=0.0)
    last = history[-1]
    logger.debug("Fitness state: CTL %.1f ATL %.1f TSB %.1f", last.ctl, last.atl, last.tsb)
    return FitnessState(ctl=last.ctl, atl=last.atl, tsb=last.tsb)


def annotate_workout_tsb(
    workouts: Sequence[WorkoutSignalInput],
    as_of: Optional[date] = None,
) -> List[WorkoutSignalInput]:
    """
    Copies of the workouts with tsb set to the balance going into that day.

    Workouts that already carry a tsb are left as they are.
    """
    history = calculate_load_history(workouts, as_of)
    # TSB entering a day is the value after the previous day
    entering: Dict[date, float] = {}
    previous_tsb = 0.0
    for day in history:
        entering[day.date] = previous_tsb
        previous_tsb = day.tsb

    annotated = []
    for w in workouts:
        if w.tsb is None and w.date in entering:
            annotated.append(replace(w, tsb=entering[w.date]))
        else:
            annotated.append(w)
    return annotated


def get_tsb_zone(tsb: float) -> TSBZone:
    if tsb > 20:
        return TSBZone.FRESH
    elif tsb > 5:
        return TSBZone.RACE_READY
    elif tsb > -10:
        return TSBZone.TRAINING
    elif tsb > -25:
        return TSBZone.FATIGUED
    else:
        return TSBZone.OVERREACHED


# =========================================================================
# TRAINING VOLUME
# =========================================================================

def _consecutive_weeks(workouts: Sequence[WorkoutSignalInput], as_of: date) -> int:
    """Seven-day blocks ending at as_of, counted back until one has no run."""
    weeks_with_runs = set()
    for w in workouts:
        days_ago = (as_of - w.date).days
        if 0 <= days_ago < MAX_CONSECUTIVE_WEEKS * 7 and w.distance_miles > 0:
            weeks_with_runs.add(days_ago // 7)

    count = 0
    while count in weeks_with_runs:
        count += 1
    return count


def summarize_training_volume(
    workouts: Sequence[WorkoutSignalInput],
    as_of: Optional[date] = None,
) -> TrainingVolume:
    """
    Rolled-up volume over the last 28 days.

    avg weekly miles = total / 4; quality sessions are tempo, threshold,
    interval, race and marathon runs, per week over the same window.
    """
    as_of = as_of or date.today()
    window_start = as_of - timedelta(days=VOLUME_WINDOW_DAYS)
    recent = [w for w in workouts if window_start <= w.date <= as_of]

    total_miles = sum(w.distance_miles for w in recent)
    longest = max((w.distance_miles for w in recent), default=0.0)
    quality = sum(1 for w in recent if w.workout_type in QUALITY_TYPES)
    weeks = VOLUME_WINDOW_DAYS / 7

    return TrainingVolume(
        avg_weekly_miles_4_weeks=round(total_miles / weeks, 1),
        longest_recent_run_miles=round(longest, 1),
        weeks_consecutive_training=_consecutive_weeks(workouts, as_of),
        quality_sessions_per_week=round(quality / weeks, 1),
    )
