"""
Request schemas for the prediction engine.

Validates an untyped payload (JSON-decoded dict, camelCase or snake_case keys)
and converts it into a PredictionEngineInput. Only shape is checked here:
physiologically odd values such as max_hr <= resting_hr are accepted and left
to the engine, which degrades instead of failing.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from core.exceptions import InvalidPredictionInput
from services.race_prediction.constants import EffortSource
from services.race_prediction.models import (
    BestEffortInput,
    FitnessState,
    HrCalibration,
    PredictionEngineInput,
    TrainingVolume,
    UserPhysiology,
    WorkoutSignalInput,
)


class _InputModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# =============================================================================
# SCHEMA
# =============================================================================

class UserPhysiologySchema(_InputModel):
    resting_hr: float = Field(default=60, gt=0)
    max_hr: float = Field(default=190, gt=0)
    age: Optional[int] = Field(default=None, ge=0)
    gender: Optional[str] = None


class WorkoutSchema(_InputModel):
    id: int
    date: date
    distance_miles: float = Field(ge=0)
    duration_minutes: float = Field(ge=0)
    avg_pace_seconds: float = Field(ge=0)
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None
    elevation_gain_ft: Optional[float] = None
    weather_temp_f: Optional[float] = None
    weather_humidity_pct: Optional[float] = Field(default=None, ge=0, le=100)
    workout_type: str = "easy"
    tsb: Optional[float] = None


class BestEffortSchema(_InputModel):
    date: date
    distance_meters: float = Field(ge=0)
    time_seconds: float = Field(ge=0)
    source: EffortSource = EffortSource.RACE
    effort_level: Optional[str] = None
    workout_id: Optional[int] = None
    weather_temp_f: Optional[float] = None
    weather_humidity_pct: Optional[float] = Field(default=None, ge=0, le=100)
    elevation_gain_ft: Optional[float] = None


class FitnessStateSchema(_InputModel):
    ctl: float = 0.0
    atl: float = 0.0
    tsb: float = 0.0


class TrainingVolumeSchema(_InputModel):
    avg_weekly_miles_4_weeks: float = Field(default=0.0, ge=0, alias="avgWeeklyMiles4Weeks")
    longest_recent_run_miles: float = Field(default=0.0, ge=0)
    weeks_consecutive_training: int = Field(default=0, ge=0)
    quality_sessions_per_week: float = Field(default=0.0, ge=0)


class HrCalibrationSchema(_InputModel):
    race_vdot: float
    race_avg_hr: float = Field(gt=0)
    race_duration_min: float = Field(gt=0)


class PredictionRequest(_InputModel):
    """Full engine payload."""
    physiology: UserPhysiologySchema = Field(default_factory=UserPhysiologySchema)
    workouts: List[WorkoutSchema] = Field(default_factory=list)
    races: List[BestEffortSchema] = Field(default_factory=list)
    best_efforts: List[BestEffortSchema] = Field(default_factory=list)
    fitness_state: FitnessStateSchema = Field(default_factory=FitnessStateSchema)
    training_volume: TrainingVolumeSchema = Field(default_factory=TrainingVolumeSchema)
    saved_vdot: Optional[float] = None
    hr_calibration: Optional[HrCalibrationSchema] = None

    def to_engine_input(self) -> PredictionEngineInput:
        return PredictionEngineInput(
            physiology=UserPhysiology(**self.physiology.model_dump()),
            workouts=tuple(WorkoutSignalInput(**w.model_dump()) for w in self.workouts),
            races=tuple(_best_effort(e) for e in self.races),
            best_efforts=tuple(_best_effort(e) for e in self.best_efforts),
            fitness_state=FitnessState(**self.fitness_state.model_dump()),
            training_volume=TrainingVolume(**self.training_volume.model_dump()),
            saved_vdot=self.saved_vdot,
            hr_calibration=HrCalibration(**self.hr_calibration.model_dump()) if self.hr_calibration else None,
        )


def _best_effort(schema: BestEffortSchema) -> BestEffortInput:
    data = schema.model_dump()
    data["source"] = schema.source.value
    return BestEffortInput(**data)


def parse_prediction_input(payload: Dict[str, Any]) -> PredictionEngineInput:
    """
    Validate a raw payload and build the engine input.

    Raises:
        InvalidPredictionInput: If the payload does not match the schema
    """
    try:
        request = PredictionRequest.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in e.errors()
        ]
        first_field = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else None
        raise InvalidPredictionInput(
            detail=f"Invalid prediction input: {len(errors)} error(s)",
            errors=errors,
            field=first_field,
        ) from e
    return request.to_engine_input()
