from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from glicemia_tool.config import AppConfig
from glicemia_tool.model import FoodItem, GlucoseReading, MealType
from glicemia_tool.storage import READING_COLUMNS, SQLiteStore, readings_to_frame


def _reading(value: int, at: datetime, **kwargs: object) -> GlucoseReading:
    return GlucoseReading(glucose_mg_dl=value, measured_at=at, **kwargs)  # type: ignore[arg-type]


def test_store_config_roundtrip_and_defaults(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_config() == AppConfig()

    store.save_config(AppConfig(locale="es", max_glucose_mg_dl=800, export_dir="/out"))
    loaded = store.load_config()
    assert loaded.locale == "es"
    assert loaded.max_glucose_mg_dl == 800
    assert loaded.export_dir == "/out"


def test_store_reading_with_foods(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "nested" / "app.sqlite3")
    foods = (
        FoodItem("Pão francês", high_glycemic=True, category="Café da manhã"),
        FoodItem("Bolo", is_custom=True),
    )
    reading_id = store.add_reading(
        _reading(
            180,
            datetime(2024, 3, 10, 12, 30),
            meal_type=MealType.POST_LUNCH,
            insulin_applied=True,
            insulin_units=2,
            notes="almoço pesado",
            food_items=foods,
        )
    )
    assert reading_id > 0

    loaded = store.get_reading(reading_id)
    assert loaded is not None
    assert loaded.id == reading_id
    assert loaded.glucose_mg_dl == 180
    assert loaded.measured_at == datetime(2024, 3, 10, 12, 30)
    assert loaded.meal_type is MealType.POST_LUNCH
    assert loaded.insulin_applied is True
    assert loaded.insulin_units == 2
    assert loaded.notes == "almoço pesado"
    assert loaded.food_items == foods


def test_get_missing_reading(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.get_reading(42) is None
    assert store.latest_reading() is None


def test_list_readings_order_since_and_limit(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    for day, value in [(3, 110), (1, 90), (2, 200)]:
        store.add_reading(_reading(value, datetime(2024, 3, day, 8, 0)))

    newest = store.list_readings()
    assert [r.glucose_mg_dl for r in newest] == [110, 200, 90]
    oldest = store.list_readings(newest_first=False)
    assert [r.glucose_mg_dl for r in oldest] == [90, 200, 110]
    assert [r.glucose_mg_dl for r in store.list_readings(limit=1)] == [110]
    since = store.list_readings(since=datetime(2024, 3, 2, 0, 0))
    assert [r.glucose_mg_dl for r in since] == [110, 200]
    latest = store.latest_reading()
    assert latest is not None and latest.glucose_mg_dl == 110


def test_readings_dataframe(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert list(store.readings_dataframe().columns) == READING_COLUMNS

    store.add_reading(_reading(150, datetime(2024, 3, 10, 20, 0), insulin_units=None))
    store.add_reading(
        _reading(
            95,
            datetime(2024, 3, 10, 7, 0),
            insulin_applied=True,
            insulin_units=1,
        )
    )
    df = store.readings_dataframe()
    assert list(df["glucose_mg_dl"]) == [95, 150]
    assert df.iloc[0]["insulin_units"] == 1
    assert pd.isna(df.iloc[1]["insulin_units"])
    assert df.iloc[0]["meal_type"] == "fasting"


def test_readings_to_frame_empty() -> None:
    df = readings_to_frame([])
    assert df.empty
    assert list(df.columns) == READING_COLUMNS


def test_migration_adds_meal_type_to_legacy_db(tmp_path: Path) -> None:
    db = tmp_path / "legacy.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute(
        """
        CREATE TABLE glucose_readings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            glucose_mg_dl INTEGER NOT NULL,
            measured_at TEXT NOT NULL,
            insulin_applied INTEGER NOT NULL DEFAULT 0,
            insulin_units INTEGER,
            notes TEXT,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        "INSERT INTO glucose_readings(glucose_mg_dl, measured_at, created_at) "
        "VALUES (120, '2024-03-10T08:00', '2024-03-10T08:01:00')"
    )
    conn.commit()
    conn.close()

    store = SQLiteStore(db)
    legacy = store.list_readings()
    assert len(legacy) == 1
    assert legacy[0].meal_type is MealType.FASTING


def test_aware_reading_is_stored_as_wall_clock(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    store.add_reading(_reading(120, datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)))
    store.add_reading(_reading(90, datetime(2024, 3, 10, 8, 0)))

    loaded = store.list_readings(newest_first=False)
    assert [r.measured_at for r in loaded] == [
        datetime(2024, 3, 10, 8, 0),
        datetime(2024, 3, 10, 12, 0),
    ]
    df = store.readings_dataframe()
    assert list(df["glucose_mg_dl"]) == [90, 120]
    since = datetime(2024, 3, 10, 10, 0, tzinfo=timezone.utc)
    assert [r.glucose_mg_dl for r in store.list_readings(since=since)] == [120]


def test_offset_rows_from_older_versions_load_naive(tmp_path: Path) -> None:
    db = tmp_path / "app.sqlite3"
    store = SQLiteStore(db)
    store.add_reading(_reading(90, datetime(2024, 3, 10, 8, 0)))
    conn = sqlite3.connect(db)
    conn.execute(
        "INSERT INTO glucose_readings(glucose_mg_dl, measured_at, created_at) "
        "VALUES (130, '2024-03-10T12:00+00:00', '2024-03-10T12:01:00')"
    )
    conn.commit()
    conn.close()

    df = store.readings_dataframe()
    assert list(df["glucose_mg_dl"]) == [90, 130]
    assert all(r.measured_at.tzinfo is None for r in store.list_readings())


def test_readings_dataframe_keeps_food_items(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    foods = (FoodItem("Tapioca", high_glycemic=True, category="Café da manhã"),)
    store.add_reading(_reading(140, datetime(2024, 3, 10, 9, 0), food_items=foods))
    store.add_reading(_reading(100, datetime(2024, 3, 10, 10, 0)))
    df = store.readings_dataframe()
    assert df.iloc[0]["food_items"] == foods
    assert df.iloc[1]["food_items"] == ()


def test_unknown_locale_in_config_falls_back(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    store.save_config(AppConfig(locale="fr"))
    assert store.load_config().locale == "pt_BR"
