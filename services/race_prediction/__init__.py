# Multi-Signal Race Prediction
#
# Estimates a runner's VDOT from up to six independent signals and predicts
# 5K through marathon times without requiring a recent race.
#
# Architecture:
# - Signal extractors (races, best efforts, HR physiology, EF trend,
#   critical speed, training pace), each returning a contribution or None
# - Blender weighting by prior x confidence, with an agreement score
# - Readiness and form adjustments applied per distance
# - Pure and synchronous: no I/O, no state between calls

from .constants import PredictionConfidence, SignalKind, EffortSource, PREDICTION_DISTANCES
from .models import (
    UserPhysiology,
    WorkoutSignalInput,
    BestEffortInput,
    FitnessState,
    TrainingVolume,
    HrCalibration,
    PredictionEngineInput,
    SignalContribution,
    DistancePrediction,
    MultiSignalPrediction,
)
from .blending import blend_signals
from .readiness import calculate_readiness, calculate_form_adjustment
from .engine import generate_predictions
from .schemas import PredictionRequest, parse_prediction_input

__all__ = [
    # Entry points
    'generate_predictions',
    'parse_prediction_input',
    'PredictionRequest',

    # Components
    'blend_signals',
    'calculate_readiness',
    'calculate_form_adjustment',

    # Inputs
    'UserPhysiology',
    'WorkoutSignalInput',
    'BestEffortInput',
    'FitnessState',
    'TrainingVolume',
    'HrCalibration',
    'PredictionEngineInput',

    # Outputs
    'SignalContribution',
    'DistancePrediction',
    'MultiSignalPrediction',

    # Constants
    'PredictionConfidence',
    'SignalKind',
    'EffortSource',
    'PREDICTION_DISTANCES',
]
