"""Tabla de dosis por franja de glucemia y ventanas de mediodía."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from glicemia_tool.model import AlertSeverity, MealType

MIDDAY_FIRST_HOUR = 11
MIDDAY_LAST_HOUR = 14


@dataclass(frozen=True)
class Band:
    """Closed glucose range [lower, upper] in mg/dL; None means open."""

    name: str
    lower: int | None
    upper: int | None
    severity: AlertSeverity
    units_midday: int | None
    units_other: int | None


DOSAGE_TABLE: tuple[Band, ...] = (
    Band("hypoglycemia", None, 69, AlertSeverity.DANGER, None, None),
    Band("normal", 70, 139, AlertSeverity.SUCCESS, 1, 0),
    Band("elevated", 140, 250, AlertSeverity.WARNING, 2, 1),
    Band("severe", 251, None, AlertSeverity.DANGER, 3, 2),
)


def _check_table(bands: Sequence[Band]) -> None:
    """Bands must be ordered, contiguous and cover every integer."""
    if not bands:
        raise ValueError("Dosage table is empty")
    if bands[0].lower is not None or bands[-1].upper is not None:
        raise ValueError("Dosage table must be open at both ends")
    for prev, nxt in zip(bands, bands[1:]):
        if prev.upper is None or nxt.lower != prev.upper + 1:
            raise ValueError(f"Bands {prev.name} and {nxt.name} are not contiguous")
    for band in bands:
        if (band.units_midday is None) != (band.units_other is None):
            raise ValueError(f"Band {band.name} mixes dosed and undosed units")


_check_table(DOSAGE_TABLE)


def band_index(glucose_mg_dl: int) -> int:
    """Return the index in DOSAGE_TABLE of the band holding the value."""
    # Tabla ordenada: la primera franja cuyo techo no se supera.
    for idx, band in enumerate(DOSAGE_TABLE):
        if band.upper is None or glucose_mg_dl <= band.upper:
            return idx
    raise AssertionError(f"No band for {glucose_mg_dl}")


def units_for(index: int, midday: bool) -> int | None:
    """Insulin units prescribed by band ``index`` for the time context."""
    band = DOSAGE_TABLE[index]
    return band.units_midday if midday else band.units_other


class ClockWindow:
    """Midday by local wall-clock hour, 11:00 to 14:59."""

    name = "clock"

    def __init__(
        self, first_hour: int = MIDDAY_FIRST_HOUR, last_hour: int = MIDDAY_LAST_HOUR
    ) -> None:
        self.first_hour = first_hour
        self.last_hour = last_hour

    def is_midday(
        self, measured_at: datetime, meal_type: MealType | None = None
    ) -> bool:
        return self.first_hour <= measured_at.hour <= self.last_hour


class MealTagWindow:
    """Midday when the reading is tagged pre- or post-lunch; the clock is ignored."""

    name = "meal_tag"
    LUNCH_TAGS = frozenset({MealType.PRE_LUNCH, MealType.POST_LUNCH})

    def is_midday(
        self, measured_at: datetime, meal_type: MealType | None = None
    ) -> bool:
        return meal_type in self.LUNCH_TAGS


CLOCK_WINDOW = ClockWindow()
MEAL_TAG_WINDOW = MealTagWindow()
