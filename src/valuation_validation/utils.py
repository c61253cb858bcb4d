# src/valuation_validation/utils.py
from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional, Tuple

from .config import DEFAULT_VALIDATION_CONFIG, ValidationConfig
from .models import Cell, CellKind

DMY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def is_blank(cell: Cell) -> bool:
    if cell.kind == CellKind.EMPTY:
        return True
    return cell.kind == CellKind.TEXT and str(cell.value).strip() == ""


def coerce_number(cell: Cell) -> Optional[float]:
    """
    Permissive numeric conversion: numbers, booleans and numeric-looking text.
    Returns None when the cell has no finite numeric reading.
    """
    if cell.kind == CellKind.NUMBER:
        x = float(cell.value)
    elif cell.kind == CellKind.BOOLEAN:
        x = 1.0 if cell.value else 0.0
    elif cell.kind == CellKind.TEXT:
        s = str(cell.value).strip()
        # float() also takes digit separators like "1_000"; spreadsheets do not
        if not s or "_" in s:
            return None
        try:
            x = float(s)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(x):
        return None
    return x


def serial_to_datetime(serial: float, cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG) -> Optional[datetime]:
    try:
        return cfg.excel_epoch + timedelta(days=float(serial))
    except (OverflowError, ValueError):
        return None


def date_parts(cell: Cell, cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG) -> Optional[Tuple[int, int, int]]:
    """
    (day, month, year) for the three accepted encodings:
    native date, 'DD/MM/YYYY' text, spreadsheet serial day count.
    """
    if cell.kind == CellKind.DATE:
        d = cell.value
        return d.day, d.month, d.year

    if cell.kind == CellKind.TEXT:
        m = DMY_RE.match(str(cell.value).strip())
        if not m:
            return None
        return int(m.group(1)), int(m.group(2)), int(m.group(3))

    if cell.kind == CellKind.NUMBER:
        x = float(cell.value)
        if not math.isfinite(x):
            return None
        dt = serial_to_datetime(x, cfg)
        if dt is None:
            return None
        return dt.day, dt.month, dt.year

    return None


def fmt_num(x: Any) -> str:
    """Whole floats without '.0'; everything else via str()."""
    if isinstance(x, bool):
        return "TRUE" if x else "FALSE"
    if isinstance(x, float) and math.isfinite(x) and x.is_integer():
        return str(int(x))
    return str(x)


def format_date(d: date) -> str:
    return d.strftime("%d/%m/%Y")


def format_cell_value(cell: Cell) -> str:
    """Display text for a cell as typed; only native dates render as DD/MM/YYYY."""
    if cell.kind == CellKind.EMPTY:
        return ""
    if cell.kind == CellKind.DATE:
        return format_date(cell.value)
    return fmt_num(cell.value)
