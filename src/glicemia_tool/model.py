"""Modelos tipados para lecturas de glucemia, comidas y alertas."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

CUSTOM_FOOD_CATEGORY = "Personalizado"


class AlertSeverity(Enum):
    """Clinical urgency of an advisory (danger > warning > success)."""

    DANGER = "danger"
    WARNING = "warning"
    SUCCESS = "success"


class MealType(Enum):
    """Meal context tag attached to a reading."""

    FASTING = "fasting"
    PRE_BREAKFAST = "pre_breakfast"
    POST_BREAKFAST = "post_breakfast"
    PRE_LUNCH = "pre_lunch"
    POST_LUNCH = "post_lunch"
    PRE_DINNER = "pre_dinner"
    POST_DINNER = "post_dinner"
    BEDTIME = "bedtime"

    @classmethod
    def parse(cls, raw: str | MealType) -> MealType:
        """Accept an enum member or its value ("pre-lunch" also works)."""
        if isinstance(raw, MealType):
            return raw
        key = str(raw).strip().lower().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown meal type: {raw!r}") from None


@dataclass(frozen=True)
class AlertResult:
    """Advisory produced for one measurement.

    ``insulin_units`` is None only for the hypoglycemia branch.
    """

    severity: AlertSeverity
    message: str
    recommendation: str | None = None
    insulin_units: int | None = None


@dataclass(frozen=True)
class FoodItem:
    """One food eaten with the measurement."""

    name: str
    is_custom: bool = False
    high_glycemic: bool = False
    category: str = CUSTOM_FOOD_CATEGORY

    @classmethod
    def custom(cls, name: str) -> FoodItem:
        return cls(name=name.strip(), is_custom=True)


@dataclass(frozen=True)
class GlucoseReading:
    """One persisted glucose measurement event."""

    glucose_mg_dl: int
    measured_at: datetime
    meal_type: MealType = MealType.FASTING
    insulin_applied: bool = False
    insulin_units: int | None = None
    notes: str | None = None
    food_items: tuple[FoodItem, ...] = field(default_factory=tuple)
    id: int | None = None
