"""Central logging configuration for Fitflex Coach."""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from fitflex.config import get_settings

LOG_FILE_NAME = "fitflex.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Chatty client libraries stay at WARNING unless the app itself runs at DEBUG.
QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "anthropic")

_configured = False


def build_logging_config(log_dir: Path, level: str) -> dict:
    """dictConfig payload: short console lines, detailed rotating log file."""

    library_level = level if level == "DEBUG" else "WARNING"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%H:%M:%S",
            },
            "file": {
                "format": "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": level,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_dir / LOG_FILE_NAME),
                "maxBytes": LOG_FILE_MAX_BYTES,
                "backupCount": LOG_FILE_BACKUPS,
                "encoding": "utf-8",
                "formatter": "file",
                "level": level,
            },
        },
        "loggers": {name: {"level": library_level} for name in QUIET_LOGGERS},
        "root": {
            "level": level,
            "handlers": ["console", "file"],
        },
    }


def configure_logging() -> None:
    """Configure application logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir, level = settings.log_dir, settings.log_level
    except ValidationError:
        # Scripts may start before the Strava credentials are exported.
        log_dir, level = Path("logs"), "INFO"
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level))
    _configured = True
