"""
Centralized configuration management with validation.

Environment variables (and an optional .env file) are read once at import.
Only runtime knobs live here: log output and the no-data VDOT fallback.
Physiological tables are constants in services.race_prediction.constants.
"""
import logging

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
VALID_LOG_FORMATS = {"json", "text"}


class Settings(BaseSettings):
    """Prediction service settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Blend result when there is no absolute signal and no usable saved VDOT
    PREDICTION_DEFAULT_VDOT: float = Field(default=40.0, ge=15.0, le=85.0)
    PREDICTION_DEFAULT_VDOT_SPREAD: float = Field(default=5.0, ge=0.0)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        upper_value = value.upper()
        if upper_value not in VALID_LOG_LEVELS:
            logger.warning("Invalid LOG_LEVEL %r, defaulting to INFO", value)
            return "INFO"
        return upper_value

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, value: str) -> str:
        lower_value = value.lower()
        if lower_value not in VALID_LOG_FORMATS:
            logger.warning("Invalid LOG_FORMAT %r, defaulting to json", value)
            return "json"
        return lower_value

    @property
    def use_json_logs(self) -> bool:
        return self.LOG_FORMAT == "json" or self.ENVIRONMENT == "production"


settings = Settings()
