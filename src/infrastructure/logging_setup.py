"""Logging configuration.

Modules log through ``logging.getLogger(__name__)``; this applies one console
handler at the level from settings (``LINK_PLANNER_LOG_LEVEL``).
"""

from __future__ import annotations

import logging.config
from typing import Any

from infrastructure.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_logging_config(level: str) -> dict[str, Any]:
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            }
        },
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(level: str | None = None) -> None:
    """Configure the Python logging system; ``level`` overrides settings."""
    logging.config.dictConfig(build_logging_config(level or get_settings().log_level))
