"""
Logging Configuration

One console handler shared by the gateway, uvicorn and the AWS/HTTP client libraries.
"""

import logging.config
from typing import Any

from converse_gateway.config import get_settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers and the level they are held at
_LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.error": "INFO",
    "uvicorn.access": "INFO",
    # botocore logs request signing details at DEBUG
    "botocore": "WARNING",
    "boto3": "WARNING",
    "urllib3": "WARNING",
    # httpx logs every request line at INFO
    "httpx": "WARNING",
}


def _console_logger(level: str) -> dict[str, Any]:
    return {"handlers": ["console"], "level": level, "propagate": False}


def build_logging_config(log_level: str) -> dict[str, Any]:
    """dictConfig schema for the given gateway log level"""
    loggers = {name: _console_logger(level) for name, level in _LIBRARY_LEVELS.items()}
    loggers["converse_gateway"] = _console_logger(log_level)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["console"], "level": log_level},
        "loggers": loggers,
    }


def setup_logging() -> None:
    """
    Configure global log format

    LOG_LEVEL wins when set; otherwise DEBUG=true selects DEBUG and anything else INFO.
    """
    settings = get_settings()
    log_level = settings.LOG_LEVEL or ("DEBUG" if settings.DEBUG else "INFO")
    logging.config.dictConfig(build_logging_config(log_level.upper()))
