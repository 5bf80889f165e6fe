"""Central logging configuration for coursesync.

Applies a root stdout handler so all module loggers emit INFO-level logs
without requiring per-module setup. The ``coursesync`` level can be raised to
DEBUG to see per-gesture state transitions. Avoids duplicate handlers when
called more than once.
"""
from __future__ import annotations
import logging
import os
from logging.config import dictConfig

_DICT_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "coursesync": {"level": "INFO"},
        "httpx": {"level": "WARNING"},
    },
}


def configure_logging(level: str | None = None) -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output.
    ``level`` (or ``COURSESYNC_LOG_LEVEL``) overrides the ``coursesync`` logger level.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    config = {**_DICT_CONFIG, "loggers": {k: dict(v) for k, v in _DICT_CONFIG["loggers"].items()}}
    override = level or os.environ.get("COURSESYNC_LOG_LEVEL")
    if override:
        config["loggers"]["coursesync"]["level"] = override.upper()
    dictConfig(config)
