from __future__ import annotations

from datetime import datetime

import pytest

from glicemia_tool.errors import InvalidReadingError, InvalidTimestampError
from glicemia_tool.ingest import (
    IngestionService,
    build_food_items,
    confirm_reading,
    parse_glucose_input,
    parse_insulin_units,
    prepare_reading,
)
from glicemia_tool.model import AlertSeverity, FoodItem, GlucoseReading, MealType
from glicemia_tool.policy import MEAL_TAG_WINDOW


class _MemoryStore:
    def __init__(self) -> None:
        self.saved: list[GlucoseReading] = []

    def add_reading(self, reading: GlucoseReading) -> int:
        self.saved.append(reading)
        return len(self.saved)


@pytest.mark.parametrize(("raw", "value"), [("120", 120), (" 70 ", 70), ("0", 0), (251, 251)])
def test_parse_glucose_input_valid(raw: str | int, value: int) -> None:
    assert parse_glucose_input(raw) == value


@pytest.mark.parametrize("raw", ["", "  ", "abc", "12.5", "1e3", "NaN", "12 mg"])
def test_parse_glucose_input_rejects_non_integers(raw: str) -> None:
    with pytest.raises(InvalidReadingError, match="valid glucose"):
        parse_glucose_input(raw)


def test_parse_glucose_input_rejects_bool() -> None:
    with pytest.raises(InvalidReadingError):
        parse_glucose_input(True)  # type: ignore[arg-type]


def test_parse_glucose_input_rejects_negative() -> None:
    with pytest.raises(InvalidReadingError, match="negative"):
        parse_glucose_input("-5")


def test_parse_glucose_input_ceiling() -> None:
    assert parse_glucose_input("1000") == 1000
    with pytest.raises(InvalidReadingError, match="above 1000"):
        parse_glucose_input("1001")
    assert parse_glucose_input("1500", max_mg_dl=2000) == 1500


def test_parse_insulin_units() -> None:
    assert parse_insulin_units(None) is None
    assert parse_insulin_units("  ") is None
    assert parse_insulin_units("3") == 3
    assert parse_insulin_units(0) == 0
    with pytest.raises(InvalidReadingError, match="negative"):
        parse_insulin_units(-1)
    with pytest.raises(InvalidReadingError):
        parse_insulin_units("dos")


def test_build_food_items_keeps_order_and_drops_blanks() -> None:
    bread = FoodItem("Pão francês", high_glycemic=True, category="Café da manhã")
    items = build_food_items([bread], ["  Bolo de milho ", "", "   "])
    assert items == (bread, FoodItem("Bolo de milho", is_custom=True))
    assert items[1].category == "Personalizado"
    assert items[1].high_glycemic is False


def test_prepare_reading_attaches_advisory() -> None:
    draft = prepare_reading("200", "2024-03-10T13:00", "post_lunch", notes="  ")
    assert draft.glucose_mg_dl == 200
    assert draft.measured_at == datetime(2024, 3, 10, 13, 0)
    assert draft.meal_type is MealType.POST_LUNCH
    assert draft.advisory.severity is AlertSeverity.WARNING
    assert draft.suggested_units == 2
    assert draft.notes is None


def test_prepare_reading_accepts_dashed_meal_names() -> None:
    draft = prepare_reading("100", "2024-03-10T08:00", "pre-lunch", window=MEAL_TAG_WINDOW)
    assert draft.meal_type is MealType.PRE_LUNCH
    assert draft.suggested_units == 1


def test_prepare_reading_high_glycemic_warning() -> None:
    tapioca = FoodItem("Tapioca", high_glycemic=True, category="Café da manhã")
    ovo = FoodItem("Ovo cozido", category="Proteínas")
    mixed = prepare_reading("100", "2024-03-10T08:00", selected_foods=[tapioca, ovo])
    plain = prepare_reading("100", "2024-03-10T08:00", selected_foods=[ovo])
    assert mixed.high_glycemic_warning
    assert not plain.high_glycemic_warning


def test_prepare_reading_rejects_bad_input() -> None:
    with pytest.raises(InvalidReadingError):
        prepare_reading("", "2024-03-10T08:00")
    with pytest.raises(InvalidTimestampError):
        prepare_reading("100", "10/03/2024")
    with pytest.raises(InvalidReadingError, match="Unknown meal type"):
        prepare_reading("100", "2024-03-10T08:00", "brunch")


def test_confirm_uses_suggestion_when_units_blank() -> None:
    draft = prepare_reading("300", "2024-03-10T12:00")
    reading = confirm_reading(draft, insulin_applied=True, insulin_units="")
    assert reading.insulin_applied is True
    assert reading.insulin_units == 3


def test_confirm_user_edit_overrides_suggestion() -> None:
    draft = prepare_reading("300", "2024-03-10T12:00")
    reading = confirm_reading(draft, insulin_applied=True, insulin_units="1")
    assert reading.insulin_units == 1


def test_confirm_without_application_stores_no_units() -> None:
    draft = prepare_reading("300", "2024-03-10T12:00")
    reading = confirm_reading(draft, insulin_applied=False, insulin_units=" ")
    assert reading.insulin_applied is False
    assert reading.insulin_units is None


def test_confirm_rejects_units_without_application() -> None:
    draft = prepare_reading("300", "2024-03-10T12:00")
    with pytest.raises(InvalidReadingError, match="not marked as applied"):
        confirm_reading(draft, insulin_applied=False, insulin_units="4")


def test_confirm_hypo_with_insulin_requires_units() -> None:
    draft = prepare_reading("60", "2024-03-10T12:00")
    assert draft.suggested_units is None
    with pytest.raises(InvalidReadingError, match="insulin units"):
        confirm_reading(draft, insulin_applied=True)


def test_ingestion_service_persists_confirmed_reading() -> None:
    store = _MemoryStore()
    service = IngestionService(store)
    draft = prepare_reading(
        "150", "2024-03-10T09:00", "fasting", notes=" ok ", custom_foods=["Café"]
    )
    reading_id = service.submit(draft, insulin_applied=True)
    assert reading_id == 1
    saved = store.saved[0]
    assert saved.glucose_mg_dl == 150
    assert saved.insulin_units == 1
    assert saved.notes == "ok"
    assert saved.food_items == (FoodItem("Café", is_custom=True),)


def test_ingestion_service_does_not_save_on_invalid_units() -> None:
    store = _MemoryStore()
    draft = prepare_reading("150", "2024-03-10T09:00")
    with pytest.raises(InvalidReadingError):
        IngestionService(store).submit(draft, insulin_applied=True, insulin_units="-2")
    assert store.saved == []
