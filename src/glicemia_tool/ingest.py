"""Alta de lecturas: validación, sugerencia de insulina y confirmación."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from glicemia_tool.classifier import MiddayWindow, classify, parse_measured_at
from glicemia_tool.config import DEFAULT_MAX_GLUCOSE_MG_DL
from glicemia_tool.errors import InvalidReadingError
from glicemia_tool.messages import Catalog
from glicemia_tool.model import AlertResult, FoodItem, GlucoseReading, MealType
from glicemia_tool.policy import CLOCK_WINDOW

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?\d+")


class ReadingStore(Protocol):
    """Row-based datastore that persists confirmed readings."""

    def add_reading(self, reading: GlucoseReading) -> int: ...


@dataclass(frozen=True)
class ReadingDraft:
    """A validated entry awaiting the user's confirmation.

    ``advisory`` is transient: it is shown, never stored.
    """

    glucose_mg_dl: int
    measured_at: datetime
    meal_type: MealType
    advisory: AlertResult
    notes: str | None = None
    food_items: tuple[FoodItem, ...] = field(default_factory=tuple)

    @property
    def suggested_units(self) -> int | None:
        """Pre-fill value for the insulin-units field."""
        return self.advisory.insulin_units

    @property
    def high_glycemic_warning(self) -> bool:
        return any(item.high_glycemic for item in self.food_items)


def parse_glucose_input(
    raw: str | int, *, max_mg_dl: int = DEFAULT_MAX_GLUCOSE_MG_DL
) -> int:
    """Parse a typed glucose value.

    Args:
        raw: Text from the form field, or an int.
        max_mg_dl: Highest value accepted as a real measurement.

    Returns:
        Glucose in mg/dL.

    Raises:
        InvalidReadingError: If the value is empty, not an integer, negative
            or above ``max_mg_dl``.
    """
    if isinstance(raw, bool):
        raise InvalidReadingError(f"Enter a valid glucose value: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not _INTEGER_RE.fullmatch(text):
            raise InvalidReadingError(f"Enter a valid glucose value: {raw!r}")
        value = int(text, 10)
    if value < 0:
        raise InvalidReadingError(f"Glucose cannot be negative: {value}")
    if value > max_mg_dl:
        raise InvalidReadingError(f"Glucose above {max_mg_dl} mg/dL: {value}")
    return value


def parse_insulin_units(raw: str | int | None) -> int | None:
    """Parse the user-edited units field; blank means no value."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidReadingError(f"Enter valid insulin units: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = raw.strip()
        if not text:
            return None
        if not _INTEGER_RE.fullmatch(text):
            raise InvalidReadingError(f"Enter valid insulin units: {raw!r}")
        value = int(text, 10)
    if value < 0:
        raise InvalidReadingError(f"Insulin units cannot be negative: {value}")
    return value


def build_food_items(
    selected: Iterable[FoodItem] = (), custom: Iterable[str] = ()
) -> tuple[FoodItem, ...]:
    """Catalog picks first, then custom names (stripped, blanks dropped)."""
    items = list(selected)
    items.extend(FoodItem.custom(name) for name in custom if name.strip())
    return tuple(items)


def prepare_reading(
    raw_value: str | int,
    raw_measured_at: datetime | str,
    meal_type: MealType | str = MealType.FASTING,
    *,
    notes: str | None = None,
    selected_foods: Iterable[FoodItem] = (),
    custom_foods: Iterable[str] = (),
    window: MiddayWindow = CLOCK_WINDOW,
    catalog: Catalog | None = None,
    max_mg_dl: int = DEFAULT_MAX_GLUCOSE_MG_DL,
) -> ReadingDraft:
    """Validate the form input and attach the advisory.

    Raises:
        InvalidReadingError: On a bad glucose value or meal type.
        InvalidTimestampError: On a bad measurement time.
    """
    value = parse_glucose_input(raw_value, max_mg_dl=max_mg_dl)
    measured_at = parse_measured_at(raw_measured_at)
    try:
        meal = MealType.parse(meal_type)
    except ValueError as exc:
        raise InvalidReadingError(str(exc)) from exc

    advisory = classify(
        value, measured_at, meal_type=meal, window=window, catalog=catalog
    )
    note = notes.strip() if notes else None
    return ReadingDraft(
        glucose_mg_dl=value,
        measured_at=measured_at,
        meal_type=meal,
        advisory=advisory,
        notes=note or None,
        food_items=build_food_items(selected_foods, custom_foods),
    )


def confirm_reading(
    draft: ReadingDraft,
    *,
    insulin_applied: bool,
    insulin_units: str | int | None = None,
) -> GlucoseReading:
    """Turn a draft into a reading after explicit user confirmation.

    When insulin was applied and the user left the units blank, the
    suggestion is used. Units typed without marking insulin as applied are
    rejected.

    Raises:
        InvalidReadingError: If the units are invalid, given without
            ``insulin_applied``, or insulin was applied with no units given
            and no suggestion available.
    """
    units = parse_insulin_units(insulin_units)
    if not insulin_applied and units is not None:
        raise InvalidReadingError(
            f"Insulin units given ({units}) but insulin not marked as applied"
        )
    if insulin_applied:
        if units is None:
            units = draft.suggested_units
        if units is None:
            raise InvalidReadingError("Enter the insulin units applied")
    return GlucoseReading(
        glucose_mg_dl=draft.glucose_mg_dl,
        measured_at=draft.measured_at,
        meal_type=draft.meal_type,
        insulin_applied=insulin_applied,
        insulin_units=units,
        notes=draft.notes,
        food_items=draft.food_items,
    )


class IngestionService:
    """Confirms drafts and hands them to the datastore."""

    def __init__(self, store: ReadingStore) -> None:
        self._store = store

    def submit(
        self,
        draft: ReadingDraft,
        *,
        insulin_applied: bool,
        insulin_units: str | int | None = None,
    ) -> int:
        """Confirm and persist; returns the new reading id."""
        reading = confirm_reading(
            draft, insulin_applied=insulin_applied, insulin_units=insulin_units
        )
        reading_id = self._store.add_reading(reading)
        logger.info(
            "Saved reading %s: %s mg/dL (%s), suggested=%s applied=%s",
            reading_id,
            reading.glucose_mg_dl,
            draft.advisory.severity.value,
            draft.suggested_units,
            reading.insulin_units,
        )
        return reading_id
