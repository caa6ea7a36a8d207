"""Generación de Excel del historial para entrega médica."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from glicemia_tool.history import advise_history
from glicemia_tool.messages import Catalog, get_catalog
from glicemia_tool.model import AlertSeverity, MealType

_DIA_SEMANA: tuple[str, ...] = ("seg", "ter", "qua", "qui", "sex", "sáb", "dom")

_EXPORT_COLUMNS: list[str] = [
    "datetime",
    "glucose_mg_dl",
    "meal_type",
    "food_items",
    "severity",
    "suggested_units",
    "insulin_units",
    "notes",
]

# Rojo / amarillo / verde según severidad.
_SEVERITY_FILL: dict[str, str] = {
    AlertSeverity.DANGER.value: "F8CBAD",
    AlertSeverity.WARNING.value: "FFE699",
    AlertSeverity.SUCCESS.value: "C6EFCE",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the history sheet."""

    sheet_name: str = "Histórico de glicemia"


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta de 3 letras."""
    if i is None or (isinstance(i, float) and pd.isna(i)):
        return ""
    if isinstance(i, int | float):
        idx = int(i)
        return _DIA_SEMANA[idx] if 0 <= idx < 7 else ""
    return ""


def _add_weekday_column(export_df: pd.DataFrame) -> pd.DataFrame:
    """Añade columna weekday (Dia) a partir de datetime."""
    if "datetime" not in export_df.columns or export_df.empty:
        return export_df
    weekday_series = pd.to_datetime(export_df["datetime"], errors="coerce").dt.weekday
    export_df = export_df.copy()
    export_df["weekday"] = weekday_series.map(_weekday_label)
    cols = ["weekday"] + [c for c in export_df.columns if c != "weekday"]
    return export_df[cols]


def _localize_labels(export_df: pd.DataFrame, catalog: Catalog) -> pd.DataFrame:
    """Reemplaza códigos de comida y severidad por etiquetas del idioma."""
    export_df = export_df.copy()
    if "meal_type" in export_df.columns:
        export_df["meal_type"] = export_df["meal_type"].map(
            lambda v: catalog.meal_label(MealType(v)) if isinstance(v, str) else ""
        )
    if "food_items" in export_df.columns:
        export_df["food_items"] = export_df["food_items"].map(
            lambda v: catalog.food_list(v) if isinstance(v, tuple | list) else ""
        )
    if "severity" in export_df.columns:
        export_df["severity_code"] = export_df["severity"]
        export_df["severity"] = export_df["severity"].map(
            lambda v: catalog.severity_labels[AlertSeverity(v)]
            if isinstance(v, str)
            else ""
        )
    return export_df


def write_history_xlsx(
    df: pd.DataFrame,
    out_path: Path,
    layout: ExcelLayout,
    *,
    catalog: Catalog | None = None,
) -> None:
    """Write a formatted Excel file of the reading history.

    The alert columns are recomputed from each stored reading.

    Args:
        df: Readings frame (see ``storage.readings_to_frame``).
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
        catalog: Labels language; pt_BR by default.
    """
    text = catalog or get_catalog()
    out_path.parent.mkdir(parents=True, exist_ok=True)

    export_df = advise_history(df, catalog=text)
    export_df = export_df[[c for c in _EXPORT_COLUMNS if c in export_df.columns]].copy()
    if "datetime" in export_df.columns:
        stamps = pd.to_datetime(export_df["datetime"], errors="coerce")
        if stamps.dt.tz is not None:
            stamps = stamps.dt.tz_localize(None)
        export_df["datetime"] = stamps
    export_df = _add_weekday_column(export_df)
    export_df = _localize_labels(export_df, text)
    severity_codes = None
    if "severity_code" in export_df.columns:
        severity_codes = export_df.pop("severity_code")
    export_df = export_df.rename(columns=dict(text.column_labels))

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws, text.column_labels)
        if severity_codes is not None:
            _fill_severity(ws, list(severity_codes), text.column_labels)


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Aplica alineación y borde a las filas de datos."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _column_positions(ws: Any, labels: Mapping[str, str]) -> dict[str, int]:
    """Devuelve mapa clave de columna -> índice (1-based) según cabecera."""
    col_index = _get_header_col_index(ws)
    return {
        key: col_index[label] for key, label in labels.items() if label in col_index
    }


def _apply_column_widths(ws: Any, columns: dict[str, int]) -> None:
    """Establece anchos de columna para evitar ###."""
    widths = [
        ("weekday", 6),
        ("datetime", 18),
        ("glucose_mg_dl", 14),
        ("meal_type", 16),
        ("food_items", 28),
        ("severity", 10),
        ("suggested_units", 10),
        ("insulin_units", 10),
        ("notes", 30),
    ]
    for key, width in widths:
        idx = columns.get(key)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, columns: dict[str, int]) -> None:
    """Aplica formatos numéricos por columna."""
    fmt_map: dict[str, str] = {
        "datetime": "dd/mm/yyyy hh:mm",
        "glucose_mg_dl": "0",
        "suggested_units": "0",
        "insulin_units": "0",
    }
    for row in ws.iter_rows(min_row=2):
        for key, fmt in fmt_map.items():
            idx = columns.get(key)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _fill_severity(
    ws: Any, codes: list[object], labels: Mapping[str, str] | None = None
) -> None:
    """Pinta la celda de alerta según la severidad de cada fila."""
    labels = labels if labels is not None else get_catalog().column_labels
    idx = _column_positions(ws, labels).get("severity")
    if idx is None:
        return
    for offset, code in enumerate(codes):
        color = _SEVERITY_FILL.get(str(code))
        if color is None:
            continue
        ws.cell(row=offset + 2, column=idx).fill = PatternFill(
            start_color=color, end_color=color, fill_type="solid"
        )


def _format_sheet(ws: Any, labels: Mapping[str, str] | None = None) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
        labels: Column key -> header text; pt_BR headers by default.
    """
    labels = labels if labels is not None else get_catalog().column_labels
    _style_header_row(ws)
    _style_body_rows(ws)
    columns = _column_positions(ws, labels)
    _apply_column_widths(ws, columns)
    _apply_number_formats(ws, columns)
