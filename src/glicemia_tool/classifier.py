"""Clasificación de riesgo por glucemia y sugerencia de unidades de insulina."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from glicemia_tool.errors import InvalidTimestampError
from glicemia_tool.messages import Catalog, get_catalog
from glicemia_tool.model import AlertResult, MealType
from glicemia_tool.policy import CLOCK_WINDOW, DOSAGE_TABLE, band_index, units_for

# Formato de <input type="datetime-local">; con o sin segundos.
_TIMESTAMP_FORMATS: tuple[str, ...] = ("%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S")


class MiddayWindow(Protocol):
    """Decides whether a measurement belongs to the lunch dosing context."""

    name: str

    def is_midday(
        self, measured_at: datetime, meal_type: MealType | None = None
    ) -> bool: ...


def parse_measured_at(raw: datetime | str) -> datetime:
    """Parse a local ``YYYY-MM-DDTHH:mm`` timestamp.

    Args:
        raw: A datetime (returned as is) or the string from a date-time field.

    Returns:
        Local wall-clock datetime. No timezone normalization is applied.

    Raises:
        InvalidTimestampError: If the string does not match the format.
    """
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str):
        raise InvalidTimestampError(f"Invalid measurement time: {raw!r}")
    text = raw.strip()
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise InvalidTimestampError(f"Invalid measurement time: {raw!r}")


def classify(
    glucose_level: int,
    measured_at: datetime | str,
    *,
    meal_type: MealType | None = None,
    window: MiddayWindow = CLOCK_WINDOW,
    catalog: Catalog | None = None,
) -> AlertResult:
    """Classify a glucose measurement and suggest insulin units.

    Pure and deterministic: same inputs, same result. Hypoglycemia never
    carries insulin units; every other band does (possibly zero).

    Args:
        glucose_level: Glucose in mg/dL.
        measured_at: Local measurement time, datetime or ``YYYY-MM-DDTHH:mm``.
        meal_type: Meal tag, only read by tag-based windows.
        window: Midday policy; the wall-clock rule by default.
        catalog: Message catalog; pt_BR by default.

    Returns:
        The advisory for this measurement.
    """
    when = parse_measured_at(measured_at)
    text = catalog or get_catalog()

    idx = band_index(glucose_level)
    band = DOSAGE_TABLE[idx]
    midday = window.is_midday(when, meal_type)
    units = units_for(idx, midday)
    return AlertResult(
        severity=band.severity,
        message=text.bands[band.name].message,
        recommendation=text.recommendation(band.name, midday, units),
        insulin_units=units,
    )
