"""CLI para registrar glicemias y consultar la alerta de insulina."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from glicemia_tool.classifier import MiddayWindow, classify
from glicemia_tool.config import LOCAL_TZ, AppConfig, default_db_path
from glicemia_tool.errors import GlicemiaError
from glicemia_tool.excel_writer import ExcelLayout, write_history_xlsx
from glicemia_tool.history import PERIODS, glucose_stats, needs_check, period_start
from glicemia_tool.ingest import IngestionService, prepare_reading
from glicemia_tool.logging_config import configure_logging
from glicemia_tool.messages import CATALOGS, Catalog, get_catalog
from glicemia_tool.model import AlertResult, FoodItem, MealType
from glicemia_tool.policy import CLOCK_WINDOW, MEAL_TAG_WINDOW
from glicemia_tool.storage import SQLiteStore

logger = logging.getLogger(__name__)

_MEAL_CHOICES = [m.value for m in MealType]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        prog="glicemia-tool",
        description="Registro de glicemia con sugerencia de insulina.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Archivo SQLite (default: $GLICEMIA_DB o ~/.glicemia_tool).",
    )
    parser.add_argument("--locale", default=None, choices=sorted(CATALOGS))
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    p_classify = sub.add_parser("classify", help="Mostrar la alerta sin guardar.")
    p_classify.add_argument("value", help="Glucemia en mg/dL.")
    p_classify.add_argument(
        "--at", default=None, help="YYYY-MM-DDTHH:mm (default: ahora)."
    )
    p_classify.add_argument(
        "--meal", default=MealType.FASTING.value, choices=_MEAL_CHOICES
    )
    p_classify.add_argument(
        "--by-meal-tag",
        action="store_true",
        help="Mediodía según la comida (pre/pós almoço) y no según la hora.",
    )

    p_add = sub.add_parser("add", help="Registrar una lectura.")
    p_add.add_argument("value", help="Glucemia en mg/dL.")
    p_add.add_argument("--at", default=None, help="YYYY-MM-DDTHH:mm (default: ahora).")
    p_add.add_argument("--meal", default=MealType.FASTING.value, choices=_MEAL_CHOICES)
    p_add.add_argument("--by-meal-tag", action="store_true")
    p_add.add_argument(
        "--applied",
        action="store_true",
        help="Confirma que se aplicó insulina (usa la sugerencia si falta --units).",
    )
    p_add.add_argument("--units", default=None, help="Unidades aplicadas.")
    p_add.add_argument("--note", default=None)
    p_add.add_argument(
        "--custom-food", action="append", default=[], help="Alimento (repetible)."
    )
    p_add.add_argument(
        "--high-gi-food",
        action="append",
        default=[],
        help="Alimento de alto índice glucémico (repetible).",
    )

    p_hist = sub.add_parser("history", help="Últimas lecturas con su alerta.")
    p_hist.add_argument("--limit", type=int, default=10)

    p_stats = sub.add_parser("stats", help="Estadísticas del período.")
    p_stats.add_argument("--period", default="7d", choices=list(PERIODS))

    p_export = sub.add_parser("export", help="Exportar historial a Excel.")
    p_export.add_argument("--out", default=None, help="Ruta del .xlsx.")

    return parser.parse_args(argv)


def _now() -> datetime:
    return datetime.now(tz=LOCAL_TZ).replace(tzinfo=None, second=0, microsecond=0)


def _high_gi_food(name: str) -> FoodItem:
    return replace(FoodItem.custom(name), high_glycemic=True)


def _window(by_meal_tag: bool) -> MiddayWindow:
    return MEAL_TAG_WINDOW if by_meal_tag else CLOCK_WINDOW


def _format_alert(alert: AlertResult, catalog: Catalog) -> str:
    label = catalog.severity_labels[alert.severity]
    lines = [f"[{label}] {alert.message}"]
    if alert.recommendation:
        lines.append(alert.recommendation)
    if alert.insulin_units is not None:
        lines.append(f"{alert.insulin_units} {catalog.unit_word(alert.insulin_units)}")
    return "\n".join(lines)


def _cmd_classify(ns: argparse.Namespace, catalog: Catalog) -> int:
    draft = prepare_reading(
        ns.value,
        ns.at or _now(),
        ns.meal,
        window=_window(ns.by_meal_tag),
        catalog=catalog,
    )
    print(_format_alert(draft.advisory, catalog))
    return 0


def _cmd_add(
    ns: argparse.Namespace, store: SQLiteStore, config: AppConfig, catalog: Catalog
) -> int:
    draft = prepare_reading(
        ns.value,
        ns.at or _now(),
        ns.meal,
        notes=ns.note,
        selected_foods=[_high_gi_food(n) for n in ns.high_gi_food if n.strip()],
        custom_foods=ns.custom_food,
        window=_window(ns.by_meal_tag),
        catalog=catalog,
        max_mg_dl=config.max_glucose_mg_dl,
    )
    print(_format_alert(draft.advisory, catalog))
    if draft.high_glycemic_warning:
        print(catalog.high_glycemic_warning)
    reading_id = IngestionService(store).submit(
        draft, insulin_applied=ns.applied, insulin_units=ns.units
    )
    print(f"OK: lectura {reading_id} guardada.")
    return 0


def _cmd_history(ns: argparse.Namespace, store: SQLiteStore, catalog: Catalog) -> int:
    readings = list(reversed(store.list_readings(limit=ns.limit)))
    if not readings:
        print("Sin lecturas.")
        return 0
    for reading in readings:
        alert = classify(
            reading.glucose_mg_dl,
            reading.measured_at,
            meal_type=reading.meal_type,
            catalog=catalog,
        )
        applied = "-" if reading.insulin_units is None else str(reading.insulin_units)
        suggested = "-" if alert.insulin_units is None else str(alert.insulin_units)
        print(
            f"{reading.measured_at.strftime('%d/%m/%Y %H:%M')}  "
            f"{reading.glucose_mg_dl:>4} mg/dL  "
            f"{catalog.meal_label(reading.meal_type):<18} "
            f"{catalog.severity_labels[alert.severity]:<8} "
            f"sug={suggested} apl={applied}"
        )
        if reading.food_items:
            print(f"    {catalog.food_list(reading.food_items)}")
    return 0


def _cmd_stats(ns: argparse.Namespace, store: SQLiteStore, catalog: Catalog) -> int:
    now = _now()
    df = store.readings_dataframe(since=period_start(ns.period, now))
    stats = glucose_stats(df)
    print(f"Período: {ns.period}  lecturas: {stats.total}")
    print(f"Media: {stats.average} mg/dL  min: {stats.min}  max: {stats.max}")
    print(f"En rango (70-180): {stats.in_range}/{stats.total}")
    buckets = ", ".join(f"{k}={v}" for k, v in stats.distribution.items())
    print(f"Distribución: {buckets}")
    for meal, meal_stats in stats.by_meal_type.items():
        label = catalog.meal_label(MealType(meal))
        print(f"  {label}: n={meal_stats.count} media={meal_stats.avg}")
    latest = store.latest_reading()
    if needs_check(latest.measured_at if latest else None, now):
        print("Hace más de 6 horas de la última medición.")
    return 0


def _cmd_export(
    ns: argparse.Namespace, store: SQLiteStore, config: AppConfig, catalog: Catalog
) -> int:
    df = store.readings_dataframe()
    if df.empty:
        print("No hay datos para exportar.")
        return 0
    if ns.out:
        out_path = Path(ns.out).expanduser()
    else:
        out_dir = (
            Path(config.export_dir).expanduser()
            if config.export_dir
            else Path.cwd() / "salidas"
        )
        ts = datetime.now(tz=LOCAL_TZ).strftime("%Y-%m-%d_%H-%M-%S")
        out_path = out_dir / f"glicemia_historico_{ts}.xlsx"
    write_history_xlsx(df, out_path, ExcelLayout(), catalog=catalog)
    print(f"OK: Output: {out_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 2 on invalid input).
    """
    ns = parse_args(argv)
    configure_logging(ns.log_level)

    if ns.command == "classify":
        catalog = get_catalog(ns.locale)
        try:
            return _cmd_classify(ns, catalog)
        except GlicemiaError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2

    store = SQLiteStore(Path(ns.db).expanduser() if ns.db else default_db_path())
    config = store.load_config()
    catalog = get_catalog(ns.locale or config.locale)
    logger.debug("Using store %s, locale %s", ns.db, catalog.locale)

    try:
        if ns.command == "add":
            return _cmd_add(ns, store, config, catalog)
        if ns.command == "history":
            return _cmd_history(ns, store, catalog)
        if ns.command == "stats":
            return _cmd_stats(ns, store, catalog)
        if ns.command == "export":
            return _cmd_export(ns, store, config, catalog)
    except GlicemiaError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    raise AssertionError(f"Unhandled command {ns.command}")
