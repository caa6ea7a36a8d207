"""Persistencia SQLite para configuracion, lecturas y alimentos."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import pandas as pd

from glicemia_tool.config import DEFAULT_MAX_GLUCOSE_MG_DL, AppConfig
from glicemia_tool.messages import CATALOGS, DEFAULT_LOCALE
from glicemia_tool.model import FoodItem, GlucoseReading, MealType

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS glucose_readings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    glucose_mg_dl INTEGER NOT NULL,
    measured_at TEXT NOT NULL,
    meal_type TEXT NOT NULL DEFAULT 'fasting',
    insulin_applied INTEGER NOT NULL DEFAULT 0,
    insulin_units INTEGER,
    notes TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS meal_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    reading_id INTEGER NOT NULL,
    position INTEGER NOT NULL,
    name TEXT NOT NULL,
    is_custom INTEGER NOT NULL DEFAULT 0,
    high_glycemic INTEGER NOT NULL DEFAULT 0,
    category TEXT NOT NULL,
    FOREIGN KEY(reading_id) REFERENCES glucose_readings(id)
);

CREATE INDEX IF NOT EXISTS idx_glucose_readings_measured_at
ON glucose_readings(measured_at);
"""

READING_COLUMNS: list[str] = [
    "id",
    "datetime",
    "date",
    "glucose_mg_dl",
    "meal_type",
    "insulin_applied",
    "insulin_units",
    "notes",
    "food_items",
]


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            self._migrate(conn)
            conn.commit()

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Apply lightweight schema migrations."""
        cols = {
            row["name"] for row in conn.execute("PRAGMA table_info(glucose_readings)")
        }
        if "meal_type" not in cols:
            logger.info("Adding meal_type column to glucose_readings")
            conn.execute(
                "ALTER TABLE glucose_readings "
                f"ADD COLUMN meal_type TEXT NOT NULL DEFAULT '{MealType.FASTING.value}'"
            )

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        locale = values.get("locale") or DEFAULT_LOCALE
        if locale not in CATALOGS:
            logger.warning(
                "Unknown locale %r in app_config, using %s", locale, DEFAULT_LOCALE
            )
            locale = DEFAULT_LOCALE
        return AppConfig(
            locale=locale,
            max_glucose_mg_dl=_parse_int(
                values.get("max_glucose_mg_dl"), DEFAULT_MAX_GLUCOSE_MG_DL
            ),
            export_dir=values.get("export_dir", ""),
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {key: str(value) for key, value in asdict(config).items()}
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def add_reading(self, reading: GlucoseReading) -> int:
        """Guarda una lectura con sus alimentos. Devuelve el id."""
        created_at = datetime.now().isoformat(timespec="seconds")
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO glucose_readings(
                    glucose_mg_dl, measured_at, meal_type, insulin_applied,
                    insulin_units, notes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    reading.glucose_mg_dl,
                    _wall_clock(reading.measured_at).isoformat(timespec="minutes"),
                    reading.meal_type.value,
                    int(reading.insulin_applied),
                    reading.insulin_units,
                    reading.notes,
                    created_at,
                ),
            )
            reading_id = int(cur.lastrowid)
            if reading.food_items:
                conn.executemany(
                    """
                    INSERT INTO meal_items(
                        reading_id, position, name, is_custom,
                        high_glycemic, category
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            reading_id,
                            pos,
                            item.name,
                            int(item.is_custom),
                            int(item.high_glycemic),
                            item.category,
                        )
                        for pos, item in enumerate(reading.food_items)
                    ],
                )
            conn.commit()
        return reading_id

    def get_reading(self, reading_id: int) -> GlucoseReading | None:
        """Carga una lectura por id."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM glucose_readings WHERE id = ?", (reading_id,)
            ).fetchone()
            if row is None:
                return None
            foods = _load_foods(conn, [reading_id])
        return _row_to_reading(row, foods.get(reading_id, ()))

    def list_readings(
        self,
        *,
        since: datetime | None = None,
        limit: int | None = None,
        newest_first: bool = True,
    ) -> list[GlucoseReading]:
        """Lecturas ordenadas por horario de medicion."""
        sql = "SELECT * FROM glucose_readings"
        params: list[object] = []
        if since is not None:
            sql += " WHERE measured_at >= ?"
            params.append(_wall_clock(since).isoformat(timespec="minutes"))
        sql += " ORDER BY measured_at " + ("DESC" if newest_first else "ASC")
        sql += ", id " + ("DESC" if newest_first else "ASC")
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(sql, tuple(params)).fetchall()
            foods = _load_foods(conn, [int(row["id"]) for row in rows])
        return [_row_to_reading(row, foods.get(int(row["id"]), ())) for row in rows]

    def latest_reading(self) -> GlucoseReading | None:
        """Lectura mas reciente o None."""
        readings = self.list_readings(limit=1)
        return readings[0] if readings else None

    def readings_dataframe(self, since: datetime | None = None) -> pd.DataFrame:
        """Historial como DataFrame, ascendente por fecha/hora."""
        readings = self.list_readings(since=since, newest_first=False)
        return readings_to_frame(readings)


def readings_to_frame(readings: list[GlucoseReading]) -> pd.DataFrame:
    """Convert readings to a DataFrame sorted by measurement time."""
    rows = [
        {
            "id": r.id,
            "datetime": _wall_clock(r.measured_at),
            "date": r.measured_at.date(),
            "glucose_mg_dl": r.glucose_mg_dl,
            "meal_type": r.meal_type.value,
            "insulin_applied": r.insulin_applied,
            "insulin_units": r.insulin_units,
            "notes": r.notes,
            "food_items": r.food_items,
        }
        for r in readings
    ]
    df = pd.DataFrame(rows, columns=READING_COLUMNS)
    if df.empty:
        return df
    df["insulin_units"] = df["insulin_units"].astype("Int64")
    return df.sort_values("datetime", kind="stable").reset_index(drop=True)


def _wall_clock(dt: datetime) -> datetime:
    # Se guarda la hora local tal cual, sin zona: es la hora que clasifica.
    return dt.replace(tzinfo=None)


def _parse_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _load_foods(
    conn: sqlite3.Connection, reading_ids: list[int]
) -> dict[int, tuple[FoodItem, ...]]:
    if not reading_ids:
        return {}
    placeholders = ",".join("?" for _ in reading_ids)
    rows = conn.execute(
        f"""
        SELECT reading_id, name, is_custom, high_glycemic, category
        FROM meal_items
        WHERE reading_id IN ({placeholders})
        ORDER BY reading_id, position
        """,
        tuple(reading_ids),
    ).fetchall()
    out: dict[int, list[FoodItem]] = {}
    for row in rows:
        out.setdefault(int(row["reading_id"]), []).append(
            FoodItem(
                name=row["name"],
                is_custom=bool(row["is_custom"]),
                high_glycemic=bool(row["high_glycemic"]),
                category=row["category"],
            )
        )
    return {key: tuple(items) for key, items in out.items()}


def _row_to_reading(
    row: sqlite3.Row, foods: tuple[FoodItem, ...]
) -> GlucoseReading:
    units = row["insulin_units"]
    return GlucoseReading(
        id=int(row["id"]),
        glucose_mg_dl=int(row["glucose_mg_dl"]),
        measured_at=_wall_clock(datetime.fromisoformat(row["measured_at"])),
        meal_type=MealType(row["meal_type"]),
        insulin_applied=bool(row["insulin_applied"]),
        insulin_units=None if units is None else int(units),
        notes=row["notes"],
        food_items=foods,
    )
