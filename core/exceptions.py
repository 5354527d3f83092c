"""
Custom exception classes.

The prediction engine itself never raises; these are used at the input
boundary where untyped payloads are turned into engine inputs.
"""
from typing import Any, Dict, List, Optional


class PredictionEngineError(Exception):
    """Base exception with consistent structure."""

    def __init__(self, detail: str, error_code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.error_code = error_code


class InvalidPredictionInput(PredictionEngineError):
    """Payload failed shape validation."""

    def __init__(self, detail: str, errors: Optional[List[Dict[str, Any]]] = None, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(detail=detail, error_code=error_code)
        self.errors = errors or []
