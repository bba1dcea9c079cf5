from __future__ import annotations

import logging
from logging.config import dictConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    resolved = (level or "INFO").strip().upper()
    if resolved not in logging.getLevelNamesMapping():
        resolved = "INFO"
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "app": {"handlers": ["console"], "level": resolved, "propagate": False},
            },
        }
    )
