"""Historial: alerta recalculada por lectura y estadísticas del período."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pandas as pd

from glicemia_tool.classifier import MiddayWindow, classify
from glicemia_tool.messages import Catalog
from glicemia_tool.model import MealType
from glicemia_tool.policy import CLOCK_WINDOW

IN_RANGE_LOW = 70
IN_RANGE_HIGH = 180
VERY_LOW = 54
VERY_HIGH = 250
CHECK_INTERVAL_HOURS = 6

PERIODS: dict[str, timedelta] = {
    "24h": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

ADVICE_COLUMNS: list[str] = ["severity", "message", "suggested_units"]


@dataclass(frozen=True)
class MealTypeStats:
    count: int
    avg: int


@dataclass(frozen=True)
class GlucoseStats:
    """Summary numbers for a period of readings."""

    average: int = 0
    min: int = 0
    max: int = 0
    in_range: int = 0
    total: int = 0
    by_meal_type: dict[str, MealTypeStats] = field(default_factory=dict)
    distribution: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(
            ("very_low", "low", "normal", "high", "very_high"), 0
        )
    )


def advise_history(
    df: pd.DataFrame,
    *,
    window: MiddayWindow = CLOCK_WINDOW,
    catalog: Catalog | None = None,
) -> pd.DataFrame:
    """Re-run the classifier on each stored reading.

    Alerts are never read back from storage; they are recomputed from the
    stored value and measurement time.

    Args:
        df: Readings frame (datetime, glucose_mg_dl, meal_type, ...).
        window: Midday policy.
        catalog: Message catalog.

    Returns:
        Copy of ``df`` with severity, message and suggested_units columns.
    """
    out = df.copy()
    if out.empty:
        for col in ADVICE_COLUMNS:
            out[col] = pd.Series(dtype="object")
        return out

    alerts = [
        classify(
            int(row.glucose_mg_dl),
            pd.Timestamp(row.datetime).to_pydatetime(),
            meal_type=MealType(row.meal_type) if "meal_type" in out.columns else None,
            window=window,
            catalog=catalog,
        )
        for row in out.itertuples(index=False)
    ]
    out["severity"] = [a.severity.value for a in alerts]
    out["message"] = [a.message for a in alerts]
    out["suggested_units"] = pd.array([a.insulin_units for a in alerts], dtype="Int64")
    return out


def _distribution_bucket(value: float) -> str:
    if value < VERY_LOW:
        return "very_low"
    if value < IN_RANGE_LOW:
        return "low"
    if value <= IN_RANGE_HIGH:
        return "normal"
    if value <= VERY_HIGH:
        return "high"
    return "very_high"


def _round_half_up(value: float) -> int:
    # Redondeo .5 hacia arriba, no bancario.
    return math.floor(value + 0.5)


def glucose_stats(df: pd.DataFrame) -> GlucoseStats:
    """Aggregate glucose for a period (avg/min/max/in range/distribution)."""
    if df.empty:
        return GlucoseStats()

    values = df["glucose_mg_dl"].astype(float)
    in_range = int(values.between(IN_RANGE_LOW, IN_RANGE_HIGH).sum())

    buckets = values.map(_distribution_bucket).value_counts()
    distribution = GlucoseStats().distribution
    distribution.update({str(k): int(v) for k, v in buckets.items()})

    by_meal: dict[str, MealTypeStats] = {}
    if "meal_type" in df.columns:
        grouped = df.groupby("meal_type", sort=True)["glucose_mg_dl"].agg(
            ["count", "mean"]
        )
        for meal, row in grouped.iterrows():
            by_meal[str(meal)] = MealTypeStats(
                count=int(row["count"]), avg=_round_half_up(float(row["mean"]))
            )

    return GlucoseStats(
        average=_round_half_up(float(values.mean())),
        min=int(values.min()),
        max=int(values.max()),
        in_range=in_range,
        total=int(len(values)),
        by_meal_type=by_meal,
        distribution=distribution,
    )


def period_start(period: str, now: datetime) -> datetime:
    """Start of a dashboard period ("24h", "7d" or "30d").

    Raises:
        ValueError: If the period is unknown.
    """
    try:
        return now - PERIODS[period]
    except KeyError:
        raise ValueError(f"Unknown period: {period!r}") from None


def needs_check(
    last_measured_at: datetime | None,
    now: datetime,
    hours: int = CHECK_INTERVAL_HOURS,
) -> bool:
    """True when more than ``hours`` passed since the last measurement."""
    if last_measured_at is None:
        return False
    elapsed = abs((now - last_measured_at).total_seconds()) / 3600
    return elapsed > hours
