"""
Constants for race prediction.

Fixed physiological tables and signal priors. These never change at runtime;
tunable fallbacks live in core.config.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple


METERS_PER_MILE = 1609.34

VDOT_MIN = 15.0
VDOT_MAX = 85.0


class SignalKind(str, Enum):
    """Whether a contribution is an absolute VDOT or a delta applied on top."""
    ABSOLUTE = "absolute"
    MODIFIER = "modifier"


class PredictionConfidence(str, Enum):
    """Qualitative confidence tier of the blended estimate."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EffortSource(str, Enum):
    """Where a best-effort record came from."""
    RACE = "race"
    TIME_TRIAL = "time_trial"
    WORKOUT_SEGMENT = "workout_segment"


# Signal names as shown to athletes
RACE_VDOT = "Race VDOT"
BEST_EFFORT_VDOT = "Best Effort VDOT"
EFFECTIVE_VO2MAX = "Effective VO2max (HR)"
EF_TREND = "Efficiency Factor Trend"
CRITICAL_SPEED = "Critical Speed"
TRAINING_PACE = "Training Pace Inference"
SAVED_VDOT = "Saved VDOT"

# Blend weight priors (before confidence)
SIGNAL_WEIGHTS: Dict[str, float] = {
    RACE_VDOT: 1.0,
    BEST_EFFORT_VDOT: 0.65,
    EFFECTIVE_VO2MAX: 0.5,
    EF_TREND: 0.35,
    CRITICAL_SPEED: 0.6,
    TRAINING_PACE: 0.25,
    SAVED_VDOT: 0.3,
}

# Recency half-lives (days); weight halves every half-life
SIGNAL_HALF_LIFE_DAYS: Dict[str, float] = {
    RACE_VDOT: 180,
    BEST_EFFORT_VDOT: 120,
    EFFECTIVE_VO2MAX: 60,
    TRAINING_PACE: 60,
}

# Race effort multipliers; anything else (moderate, unset) gets the default
EFFORT_LEVEL_WEIGHTS: Dict[str, float] = {
    "all_out": 1.0,
    "hard": 0.85,
}
DEFAULT_EFFORT_WEIGHT = 0.7

MIN_RACE_DISTANCE_M = 1000
BEST_EFFORT_DERATE = 0.97  # training efforts run ~3% under race capacity
SAVED_VDOT_CONFIDENCE = 0.3

# HR-based signals
MIN_HR_RANGE = 20
STEADY_STATE_TYPES: FrozenSet[str] = frozenset({
    "easy", "steady", "long", "tempo", "threshold", "recovery", "marathon",
})
HRR_RELIABLE_MIN = 0.50
HRR_RELIABLE_MAX = 0.92
VO2MAX_MIN_DURATION_MIN = 15
VO2MAX_MIN_DISTANCE_MI = 0.5
VO2MAX_RECENT_WINDOW_DAYS = 30
VO2MAX_RECENT_MIN_POINTS = 3
FATIGUE_CORRECTION_PER_TSB = 0.1
FATIGUE_CORRECTION_CAP = 3.0
FRESHNESS_MAX_BOOST = 0.15
FRESHNESS_TSB_FLOOR = -20.0
HR_CALIBRATION_CONFIDENCE_BOOST = 0.15

# Efficiency factor trend (modifier)
EF_TREND_TYPES: FrozenSet[str] = frozenset({"easy", "steady", "long", "recovery"})
EF_WINDOW_DAYS = 90
EF_MIN_RUNS = 5
EF_MIN_DISTANCE_MI = 1.0
EF_MIN_DURATION_MIN = 20
EF_PCT_PER_STEP = 0.03      # +3% EF ...
EF_VDOT_PER_STEP = 1.5      # ... is worth +1.5 VDOT
EF_MAX_ADJUSTMENT = 3.0
EF_MIN_ADJUSTMENT = 0.1
MODIFIER_BLEND_FACTOR = 0.35
MODIFIER_MIN_CONFIDENCE = 0.3

# Critical speed: (upper bound in meters, bucket name), checked in order
CRITICAL_SPEED_BUCKETS: List[Tuple[float, str]] = [
    (2000, "1mi"),
    (4000, "3K"),
    (7000, "5K"),
    (12000, "10K"),
    (float("inf"), "15K"),
]
CRITICAL_SPEED_MAX_DISTANCE_M = 15000
CRITICAL_SPEED_MIN_BUCKETS = 3
CRITICAL_SPEED_MAX_MPS = 10.0
CRITICAL_SPEED_PCT_VO2MAX = 0.88

# Training pace inference: %VO2max anchors for non-easy types
TRAINING_PACE_WINDOW_DAYS = 90
TRAINING_PACE_MIN_DURATION_MIN = 10
TRAINING_PACE_MIN_DISTANCE_MI = 0.5
EASY_PACE_TYPES: FrozenSet[str] = frozenset({"easy", "recovery"})
PACE_TYPE_PCT_VO2MAX: Dict[str, float] = {
    "tempo": 0.86,
    "threshold": 0.88,
}

# Data quality
RECENT_DATA_WINDOW_DAYS = 30
RECENT_DATA_MIN_WORKOUTS = 3


@dataclass(frozen=True)
class BenchmarkDistance:
    name: str
    meters: float
    miles: float


PREDICTION_DISTANCES: Tuple[BenchmarkDistance, ...] = (
    BenchmarkDistance("5K", 5000, 3.107),
    BenchmarkDistance("10K", 10000, 6.214),
    BenchmarkDistance("Half Marathon", 21097, 13.109),
    BenchmarkDistance("Marathon", 42195, 26.219),
)


@dataclass(frozen=True)
class DistanceRequirement:
    """Training needed to race a distance at full fitness."""
    weekly_miles_multiple: float  # weekly miles as a multiple of race miles
    long_run_miles: float


DISTANCE_REQUIREMENTS: Dict[str, DistanceRequirement] = {
    "5K": DistanceRequirement(weekly_miles_multiple=2, long_run_miles=5),
    "10K": DistanceRequirement(weekly_miles_multiple=2, long_run_miles=8),
    "Half Marathon": DistanceRequirement(weekly_miles_multiple=2.5, long_run_miles=10),
    "Marathon": DistanceRequirement(weekly_miles_multiple=3, long_run_miles=16),
}

# Readiness
READINESS_VOLUME_WEIGHT = 0.40
READINESS_LONG_RUN_WEIGHT = 0.35
READINESS_CONSISTENCY_WEIGHT = 0.25
CONSISTENCY_FULL_WEEKS = 12
READINESS_PENALTY_THRESHOLD = 0.7
READINESS_PENALTY_RATE = 0.25

# Prediction range half-width as a fraction of time, before agreement scaling
RANGE_PCT_LONG = 0.05     # half marathon and up
RANGE_PCT_MID = 0.035     # 10K and up
RANGE_PCT_SHORT = 0.025
