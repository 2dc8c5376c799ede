"""
Logging setup for the API and scripts.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are installed here, once, by whoever owns the process.
"""
import logging
import logging.config
from typing import Optional

from .settings import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def build_logging_config(level: str) -> dict:
    """Return a dictConfig mapping with a single console handler."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": LOG_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "viomar_pricing": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
        },
    }


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the ``viomar_pricing`` logger tree."""
    level = (level or get_settings().log_level).upper()
    logging.config.dictConfig(build_logging_config(level))
    logging.getLogger(__name__).debug("Logging configured at %s", level)
