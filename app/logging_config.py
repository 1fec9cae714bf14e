import logging.config
import sys
from typing import Optional

from app.config import settings

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,

    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            "json_ensure_ascii": False,
        },
        "console": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },

    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": sys.stdout,
        },
    },

    "loggers": {
        "app": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "sqlalchemy.engine": {
            "level": "WARNING",
        },
    },

    "root": {
        "handlers": ["default"],
        "level": "WARNING",
    },
}


def build_logging_config(level: Optional[str] = None, fmt: Optional[str] = None) -> dict:
    """Logging config for the given level and output format (json | console)."""
    level = (level or settings.LOG_LEVEL).upper()
    fmt = fmt or settings.LOG_FORMAT

    config = {
        **LOGGING_CONFIG,
        "handlers": {
            "default": {**LOGGING_CONFIG["handlers"]["default"], "formatter": fmt},
        },
        "loggers": {
            **LOGGING_CONFIG["loggers"],
            "app": {**LOGGING_CONFIG["loggers"]["app"], "level": level},
        },
    }
    if fmt not in config["formatters"]:
        raise ValueError(f"Unknown log format: {fmt}")
    return config


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    logging.config.dictConfig(build_logging_config(level, fmt))
