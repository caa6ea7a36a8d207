"""Configuración de logging por consola."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from glicemia_tool.config import log_level


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for CLI runs."""
    resolved = (level or log_level()).upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S%z",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "level": resolved,
                    "stream": "ext://sys.stderr",
                }
            },
            "root": {"handlers": ["console"], "level": resolved},
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", resolved)
