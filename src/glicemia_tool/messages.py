"""Textos de alertas y etiquetas por idioma.

Los umbrales y las unidades viven en ``policy``; aquí solo hay redacción.
Las recomendaciones son plantillas con ``{units}`` y ``{unit_word}``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from glicemia_tool.model import AlertSeverity, FoodItem, MealType

DEFAULT_LOCALE = "pt_BR"


@dataclass(frozen=True)
class BandText:
    """Headline plus recommendation templates for one band."""

    message: str
    midday: str
    other: str


@dataclass(frozen=True)
class Catalog:
    """All presentation text for one locale."""

    locale: str
    bands: Mapping[str, BandText]
    unit_singular: str
    unit_plural: str
    meal_labels: Mapping[MealType, str]
    severity_labels: Mapping[AlertSeverity, str]
    column_labels: Mapping[str, str]
    high_glycemic_tag: str
    high_glycemic_warning: str

    def unit_word(self, units: int) -> str:
        return self.unit_singular if units == 1 else self.unit_plural

    def recommendation(self, band_name: str, midday: bool, units: int | None) -> str:
        text = self.bands[band_name]
        template = text.midday if midday else text.other
        return template.format(
            units=units, unit_word=self.unit_word(units if units is not None else 0)
        )

    def meal_label(self, meal_type: MealType) -> str:
        return self.meal_labels[meal_type]

    def food_list(self, items: Iterable[FoodItem]) -> str:
        """Comma-separated food names, high-glycemic ones tagged."""
        names = []
        for item in items:
            tag = f" ({self.high_glycemic_tag})" if item.high_glycemic else ""
            names.append(item.name + tag)
        return ", ".join(names)


_PT_MEALS = MappingProxyType(
    {
        MealType.FASTING: "Ao acordar",
        MealType.PRE_BREAKFAST: "Pré café",
        MealType.POST_BREAKFAST: "Pós café",
        MealType.PRE_LUNCH: "Pré almoço",
        MealType.POST_LUNCH: "Pós almoço",
        MealType.PRE_DINNER: "Pré jantar",
        MealType.POST_DINNER: "Pós jantar",
        MealType.BEDTIME: "Antes de dormir",
    }
)

_PT_SEVERITY = MappingProxyType(
    {
        AlertSeverity.DANGER: "Perigo",
        AlertSeverity.WARNING: "Atenção",
        AlertSeverity.SUCCESS: "Normal",
    }
)

_PT_COLUMNS = MappingProxyType(
    {
        "weekday": "Dia",
        "datetime": "Data / Hora",
        "glucose_mg_dl": "Glicemia (mg/dL)",
        "meal_type": "Refeição",
        "food_items": "Alimentos",
        "severity": "Alerta",
        "suggested_units": "Sugestão\n(UI)",
        "insulin_units": "Aplicado\n(UI)",
        "notes": "Observações",
    }
)

_PT_HIGH_GI_WARNING = (
    "Atenção: Alguns alimentos selecionados têm alto índice glicêmico. "
    "Monitore sua glicemia após a refeição."
)

_PT_HYPO = BandText(
    message="Glicemia muito baixa!",
    midday=(
        "Ingerir imediatamente um carboidrato de rápida absorção "
        "(como suco, mel ou balas). Reavaliar em 15 minutos."
    ),
    other=(
        "Ingerir imediatamente um carboidrato de rápida absorção "
        "(como suco, mel ou balas). Reavaliar em 15 minutos."
    ),
)

PT_BR = Catalog(
    locale="pt_BR",
    bands=MappingProxyType(
        {
            "hypoglycemia": _PT_HYPO,
            "normal": BandText(
                message="Glicemia dentro do esperado",
                midday="Aplique {units} {unit_word} de insulina para a refeição.",
                other="Não é necessário aplicar insulina.",
            ),
            "elevated": BandText(
                message="Glicemia alta",
                midday="Aplique {units} {unit_word} de insulina rápida.",
                other="Aplique {units} {unit_word} de insulina rápida.",
            ),
            "severe": BandText(
                message="Glicemia muito alta!",
                midday=(
                    "Aplique {units} {unit_word} de insulina rápida "
                    "e monitore após a refeição."
                ),
                other=(
                    "Aplique {units} {unit_word} de insulina rápida "
                    "e monitore após 2 horas."
                ),
            ),
        }
    ),
    unit_singular="unidade",
    unit_plural="unidades",
    meal_labels=_PT_MEALS,
    severity_labels=_PT_SEVERITY,
    column_labels=_PT_COLUMNS,
    high_glycemic_tag="Alto IG",
    high_glycemic_warning=_PT_HIGH_GI_WARNING,
)

# Redacción neutra: no cita unidades, las deja al equipo médico.
_GENERIC = "Aplique insulina conforme orientação médica."

PT_BR_GENERIC = Catalog(
    locale="pt_BR_generic",
    bands=MappingProxyType(
        {
            "hypoglycemia": _PT_HYPO,
            "normal": BandText(
                message="Glicemia dentro do esperado", midday=_GENERIC, other=_GENERIC
            ),
            "elevated": BandText(
                message="Glicemia alta", midday=_GENERIC, other=_GENERIC
            ),
            "severe": BandText(
                message="Glicemia muito alta!", midday=_GENERIC, other=_GENERIC
            ),
        }
    ),
    unit_singular="unidade",
    unit_plural="unidades",
    meal_labels=_PT_MEALS,
    severity_labels=_PT_SEVERITY,
    column_labels=_PT_COLUMNS,
    high_glycemic_tag="Alto IG",
    high_glycemic_warning=_PT_HIGH_GI_WARNING,
)

_ES_HYPO = (
    "Ingerir de inmediato un carbohidrato de absorción rápida "
    "(jugo, miel o caramelos). Volver a medir en 15 minutos."
)

ES = Catalog(
    locale="es",
    bands=MappingProxyType(
        {
            "hypoglycemia": BandText(
                message="¡Glucemia muy baja!", midday=_ES_HYPO, other=_ES_HYPO
            ),
            "normal": BandText(
                message="Glucemia dentro de lo esperado",
                midday="Aplicar {units} {unit_word} de insulina para la comida.",
                other="No es necesario aplicar insulina.",
            ),
            "elevated": BandText(
                message="Glucemia alta",
                midday="Aplicar {units} {unit_word} de insulina rápida.",
                other="Aplicar {units} {unit_word} de insulina rápida.",
            ),
            "severe": BandText(
                message="¡Glucemia muy alta!",
                midday=(
                    "Aplicar {units} {unit_word} de insulina rápida "
                    "y controlar después de la comida."
                ),
                other=(
                    "Aplicar {units} {unit_word} de insulina rápida "
                    "y controlar a las 2 horas."
                ),
            ),
        }
    ),
    unit_singular="unidad",
    unit_plural="unidades",
    meal_labels=MappingProxyType(
        {
            MealType.FASTING: "Ayuno",
            MealType.PRE_BREAKFAST: "Antes del desayuno",
            MealType.POST_BREAKFAST: "Después del desayuno",
            MealType.PRE_LUNCH: "Antes del almuerzo",
            MealType.POST_LUNCH: "Después del almuerzo",
            MealType.PRE_DINNER: "Antes de la cena",
            MealType.POST_DINNER: "Después de la cena",
            MealType.BEDTIME: "Antes de dormir",
        }
    ),
    severity_labels=MappingProxyType(
        {
            AlertSeverity.DANGER: "Peligro",
            AlertSeverity.WARNING: "Atención",
            AlertSeverity.SUCCESS: "Normal",
        }
    ),
    column_labels=MappingProxyType(
        {
            "weekday": "Día",
            "datetime": "Fecha / Hora",
            "glucose_mg_dl": "Glucemia (mg/dL)",
            "meal_type": "Comida",
            "food_items": "Alimentos",
            "severity": "Alerta",
            "suggested_units": "Sugerido\n(UI)",
            "insulin_units": "Aplicado\n(UI)",
            "notes": "Observaciones",
        }
    ),
    high_glycemic_tag="IG alto",
    high_glycemic_warning=(
        "Atención: algunos alimentos elegidos tienen índice glucémico alto. "
        "Controle su glucemia después de la comida."
    ),
)

_EN_HYPO = (
    "Take a fast-acting carbohydrate right away (juice, honey or candy). "
    "Re-check in 15 minutes."
)

EN = Catalog(
    locale="en",
    bands=MappingProxyType(
        {
            "hypoglycemia": BandText(
                message="Glucose very low!", midday=_EN_HYPO, other=_EN_HYPO
            ),
            "normal": BandText(
                message="Glucose in range",
                midday="Apply {units} {unit_word} of insulin for the meal.",
                other="No insulin needed.",
            ),
            "elevated": BandText(
                message="Glucose high",
                midday="Apply {units} {unit_word} of rapid insulin.",
                other="Apply {units} {unit_word} of rapid insulin.",
            ),
            "severe": BandText(
                message="Glucose very high!",
                midday=(
                    "Apply {units} {unit_word} of rapid insulin"
                    " and re-check after the meal."
                ),
                other=(
                    "Apply {units} {unit_word} of rapid insulin"
                    " and re-check in 2 hours."
                ),
            ),
        }
    ),
    unit_singular="unit",
    unit_plural="units",
    meal_labels=MappingProxyType(
        {
            MealType.FASTING: "On waking",
            MealType.PRE_BREAKFAST: "Before breakfast",
            MealType.POST_BREAKFAST: "After breakfast",
            MealType.PRE_LUNCH: "Before lunch",
            MealType.POST_LUNCH: "After lunch",
            MealType.PRE_DINNER: "Before dinner",
            MealType.POST_DINNER: "After dinner",
            MealType.BEDTIME: "Bedtime",
        }
    ),
    severity_labels=MappingProxyType(
        {
            AlertSeverity.DANGER: "Danger",
            AlertSeverity.WARNING: "Warning",
            AlertSeverity.SUCCESS: "OK",
        }
    ),
    column_labels=MappingProxyType(
        {
            "weekday": "Day",
            "datetime": "Date / Time",
            "glucose_mg_dl": "Glucose (mg/dL)",
            "meal_type": "Meal",
            "food_items": "Foods",
            "severity": "Alert",
            "suggested_units": "Suggested\n(U)",
            "insulin_units": "Applied\n(U)",
            "notes": "Notes",
        }
    ),
    high_glycemic_tag="High GI",
    high_glycemic_warning=(
        "Warning: some selected foods have a high glycemic index. "
        "Check your glucose after the meal."
    ),
)

CATALOGS: Mapping[str, Catalog] = MappingProxyType(
    {c.locale: c for c in (PT_BR, PT_BR_GENERIC, ES, EN)}
)


def get_catalog(locale: str | None = None) -> Catalog:
    """Return the catalog for ``locale`` (default pt_BR).

    Raises:
        KeyError: If the locale is unknown.
    """
    key = locale or DEFAULT_LOCALE
    try:
        return CATALOGS[key]
    except KeyError:
        raise KeyError(f"Unknown locale: {key!r}") from None
