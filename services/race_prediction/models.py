"""
Data structures for the race prediction engine.

Inputs are frozen snapshots supplied by the caller; outputs are plain
dataclasses with to_dict() for API serialization. Nothing here is persisted.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from services.race_prediction.constants import PredictionConfidence, SignalKind
from services.vdot_calculator import format_pace, format_time


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class UserPhysiology:
    """Heart-rate anchors for the athlete."""
    resting_hr: float = 60
    max_hr: float = 190
    age: Optional[int] = None
    gender: Optional[str] = None

    @property
    def hr_range(self) -> float:
        return self.max_hr - self.resting_hr


@dataclass(frozen=True)
class WorkoutSignalInput:
    """One completed run, already classified and weather-annotated."""
    id: int
    date: date
    distance_miles: float
    duration_minutes: float          # moving time
    avg_pace_seconds: float          # moving pace, sec/mi
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None
    elevation_gain_ft: Optional[float] = None
    weather_temp_f: Optional[float] = None
    weather_humidity_pct: Optional[float] = None
    workout_type: str = "easy"
    tsb: Optional[float] = None      # training stress balance on this date


@dataclass(frozen=True)
class BestEffortInput:
    """A race result or a fast segment detected inside a training run."""
    date: date
    distance_meters: float
    time_seconds: float              # elapsed time
    source: str = "race"             # race | time_trial | workout_segment
    effort_level: Optional[str] = None
    workout_id: Optional[int] = None
    weather_temp_f: Optional[float] = None
    weather_humidity_pct: Optional[float] = None
    elevation_gain_ft: Optional[float] = None


@dataclass(frozen=True)
class FitnessState:
    """Current CTL/ATL/TSB snapshot."""
    ctl: float
    atl: float
    tsb: float


@dataclass(frozen=True)
class TrainingVolume:
    avg_weekly_miles_4_weeks: float
    longest_recent_run_miles: float
    weeks_consecutive_training: int
    quality_sessions_per_week: float


@dataclass(frozen=True)
class HrCalibration:
    """HR observed during a race whose VDOT is known."""
    race_vdot: float
    race_avg_hr: float
    race_duration_min: float


@dataclass(frozen=True)
class PredictionEngineInput:
    physiology: UserPhysiology
    workouts: Sequence[WorkoutSignalInput]
    races: Sequence[BestEffortInput]
    best_efforts: Sequence[BestEffortInput]
    fitness_state: FitnessState
    training_volume: TrainingVolume
    saved_vdot: Optional[float] = None
    hr_calibration: Optional[HrCalibration] = None


# =============================================================================
# OUTPUTS
# =============================================================================

@dataclass
class SignalContribution:
    """
    What one extractor says about fitness.

    For ABSOLUTE signals estimated_vdot is a VDOT. For the MODIFIER signal
    (efficiency factor trend) it is a VDOT delta and must never be averaged
    with the absolute estimates.
    """
    name: str
    estimated_vdot: float
    weight: float
    confidence: float
    description: str
    data_points: int
    recency_days: Optional[int]
    kind: SignalKind = SignalKind.ABSOLUTE
    key_dates: List[date] = field(default_factory=list)
    key_workout_ids: List[int] = field(default_factory=list)

    @property
    def is_modifier(self) -> bool:
        return self.kind == SignalKind.MODIFIER

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "estimated_vdot": round(self.estimated_vdot, 2),
            "weight": self.weight,
            "confidence": round(self.confidence, 2),
            "description": self.description,
            "data_points": self.data_points,
            "recency_days": self.recency_days,
            "key_dates": [d.isoformat() for d in self.key_dates],
            "key_workout_ids": list(self.key_workout_ids),
        }


@dataclass
class VdotRange:
    low: float
    high: float


@dataclass
class BlendResult:
    """Signal blender output."""
    vdot: float
    range: VdotRange
    agreement_score: float
    agreement_details: str


@dataclass
class ReadinessFactors:
    volume: float
    long_run: float
    consistency: float


@dataclass
class ReadinessScore:
    score: float
    factors: ReadinessFactors


@dataclass
class FormAdjustment:
    pct_adjustment: float            # percent of time, positive = slower
    description: str
    reasons: List[str] = field(default_factory=list)


@dataclass
class TimeRange:
    fast: int
    slow: int


@dataclass
class DistancePrediction:
    distance: str
    meters: float
    miles: float
    predicted_seconds: int
    pace_per_mile: int
    range: TimeRange
    readiness: float
    readiness_factors: ReadinessFactors
    adjustment_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "distance": self.distance,
            "meters": self.meters,
            "miles": self.miles,
            "predicted_seconds": self.predicted_seconds,
            "predicted_time_formatted": format_time(self.predicted_seconds),
            "pace_per_mile": self.pace_per_mile,
            "pace_formatted": format_pace(self.pace_per_mile),
            "range": {"fast": self.range.fast, "slow": self.range.slow},
            "readiness": self.readiness,
            "readiness_factors": {
                "volume": self.readiness_factors.volume,
                "long_run": self.readiness_factors.long_run,
                "consistency": self.readiness_factors.consistency,
            },
            "adjustment_reasons": list(self.adjustment_reasons),
        }


@dataclass
class DataQuality:
    has_hr: bool
    has_races: bool
    has_recent_data: bool
    workouts_used: int
    signals_used: int


@dataclass
class MultiSignalPrediction:
    """The single value returned by generate_predictions."""
    vdot: float
    vdot_range: VdotRange
    confidence: PredictionConfidence
    signals: List[SignalContribution]
    predictions: List[DistancePrediction]
    data_quality: DataQuality
    agreement_score: float
    agreement_details: str
    form_adjustment_pct: float
    form_description: str

    def get_signal(self, name: str) -> Optional[SignalContribution]:
        for signal in self.signals:
            if signal.name == name:
                return signal
        return None

    def get_prediction(self, distance: str) -> Optional[DistancePrediction]:
        for prediction in self.predictions:
            if prediction.distance == distance:
                return prediction
        return None

    def to_dict(self) -> Dict:
        return {
            "vdot": self.vdot,
            "vdot_range": {"low": self.vdot_range.low, "high": self.vdot_range.high},
            "confidence": self.confidence.value,
            "signals": [s.to_dict() for s in self.signals],
            "predictions": [p.to_dict() for p in self.predictions],
            "data_quality": {
                "has_hr": self.data_quality.has_hr,
                "has_races": self.data_quality.has_races,
                "has_recent_data": self.data_quality.has_recent_data,
                "workouts_used": self.data_quality.workouts_used,
                "signals_used": self.data_quality.signals_used,
            },
            "agreement_score": self.agreement_score,
            "agreement_details": self.agreement_details,
            "form_adjustment_pct": self.form_adjustment_pct,
            "form_description": self.form_description,
        }
