"""Configuración de la app: valores por defecto y variables de entorno."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dateutil import tz

from glicemia_tool.messages import DEFAULT_LOCALE

DEFAULT_MAX_GLUCOSE_MG_DL = 1000

LOCAL_TZ = tz.tzlocal()


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    locale: str = DEFAULT_LOCALE
    max_glucose_mg_dl: int = DEFAULT_MAX_GLUCOSE_MG_DL
    export_dir: str = ""


def default_db_path() -> Path:
    """Store path from GLICEMIA_DB, else ~/.glicemia_tool/glicemia.sqlite3."""
    raw = os.environ.get("GLICEMIA_DB", "").strip()
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".glicemia_tool" / "glicemia.sqlite3"


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()
