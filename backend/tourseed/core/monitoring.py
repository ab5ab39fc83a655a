"""
Logging setup and run timing.
Structured (JSON) or plain-text logging, selected by settings.log_format.
"""

import time
from typing import Callable, Any
from functools import wraps
import logging
import logging.config
import json
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


# ============================================================================
# STRUCTURED LOGGING
# ============================================================================

class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log output."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        duration_ms = getattr(record, "duration_ms", None)
        if duration_ms is not None:
            log_data["duration_ms"] = duration_ms
        tour = getattr(record, "tour", None)
        if tour is not None:
            log_data["tour"] = tour
        return json.dumps(log_data)


def build_logging_config(log_level: str = "INFO", log_format: str = "text",
                         stream: str = "ext://sys.stdout") -> dict:
    """dictConfig for the tourseed, uvicorn and sqlalchemy loggers."""
    formatter = "json" if log_format == "json" else "detailed"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": {
            "default": {
                "formatter": formatter,
                "class": "logging.StreamHandler",
                "stream": stream,
            },
        },
        "loggers": {
            "tourseed": {"handlers": ["default"], "level": log_level.upper()},
            "uvicorn": {"handlers": ["default"], "level": "INFO"},
            "sqlalchemy": {"handlers": ["default"], "level": "WARNING"},
        },
    }


def configure_logging(log_level: str = "INFO", log_format: str = "text",
                      stream: str = "ext://sys.stdout") -> None:
    logging.config.dictConfig(build_logging_config(log_level, log_format, stream))


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

def track_performance(operation_name: str):
    """Decorator to log operation timings."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                logger.info(
                    f"{operation_name} completed in {elapsed:.0f}ms",
                    extra={"duration_ms": round(elapsed)},
                )
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                logger.error(f"{operation_name} failed after {elapsed:.0f}ms: {e}")
                raise

        return wrapper

    return decorator
