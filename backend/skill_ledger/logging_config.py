import logging
from logging.config import dictConfig
from typing import Any, Dict, Optional

from .config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
TELEMETRY_FORMAT = "%(asctime)s %(message)s"
TELEMETRY_LOGGER = "skill_ledger.telemetry"


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """Service logs go to the root handler; ledger events get their own bare stream."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "ledger": {"format": LOG_FORMAT},
            "telemetry": {"format": TELEMETRY_FORMAT},
        },
        "handlers": {
            "ledger": {"class": "logging.StreamHandler", "formatter": "ledger"},
            "telemetry": {"class": "logging.StreamHandler", "formatter": "telemetry"},
        },
        "loggers": {
            TELEMETRY_LOGGER: {
                "handlers": ["telemetry"],
                "level": settings.telemetry_log_level.upper(),
                "propagate": False,
            },
            "sqlalchemy.engine": {"level": "DEBUG" if settings.debug_sql else "WARNING"},
        },
        "root": {"handlers": ["ledger"], "level": settings.log_level.upper()},
    }


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    dictConfig(build_logging_config(settings))
    logging.getLogger(__name__).debug("Logging configured at %s", settings.log_level.upper())
