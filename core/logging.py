"""
Structured logging for the prediction services.

One stdout handler on the root logger. JSON lines in production or when
LOG_FORMAT=json, plain text otherwise. Callers attach structured context with
``extra={"extra_fields": {...}}``; the JSON formatter merges it into the line.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.config import settings

ENGINE_LOGGER = "services.race_prediction"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_data.update(extra_fields)

        return json.dumps(log_data, default=str)


def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Overrides settings.LOG_LEVEL
        json_format: Overrides the LOG_FORMAT / ENVIRONMENT choice

    Returns:
        The root logger
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    use_json = settings.use_json_logs if json_format is None else json_format

    formatter = JSONFormatter() if use_json else logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Per-signal DEBUG lines stay off unless DEBUG is set
    if not settings.DEBUG:
        logging.getLogger(ENGINE_LOGGER).setLevel(max(log_level, logging.INFO))

    return root_logger
