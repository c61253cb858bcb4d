# src/valuation_validation/correction.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

from .config import DEFAULT_CORRECTION_CONFIG, CorrectionConfig
from .models import EMPTY_CELL, Cell, CellKind, Sheet, ValidationError, Workbook
from .utils import format_cell_value

log = logging.getLogger(__name__)

CellRef = Tuple[int, int, int]  # (sheet_index, row_index, col_index), 0-based


@dataclass(frozen=True)
class CorrectedWorkbook:
    workbook: Workbook
    marked: FrozenSet[CellRef]


def marker_text(old_text: str, message: str, marker: str = DEFAULT_CORRECTION_CONFIG.marker) -> str:
    """'<old> ⚠ <message>', or '⚠ <message>' for an empty cell."""
    if old_text:
        return f"{old_text} {marker} {message}"
    return f"{marker} {message}"


def apply_corrections(
    workbook: Workbook,
    errors: Iterable[ValidationError],
    cfg: Optional[CorrectionConfig] = None,
) -> CorrectedWorkbook:
    """
    Clone the workbook and append a marker + message to every offending cell.
    Several errors on the same cell are appended in order. The input is not
    touched; errors pointing at sheets that do not exist are skipped.
    """
    cfg = cfg or DEFAULT_CORRECTION_CONFIG

    sheets: List[List[List[Cell]]] = [[list(r) for r in s.rows] for s in workbook.sheets]
    marked: Set[CellRef] = set()

    for err in errors:
        if not 0 <= err.sheet_index < len(sheets):
            log.debug("Skipping error for missing sheet %s: %s", err.sheet_index, err.message)
            continue
        if err.row_index < 0 or err.col_index < 0:
            continue

        rows = sheets[err.sheet_index]
        while len(rows) <= err.row_index:
            rows.append([])
        row = rows[err.row_index]
        while len(row) <= err.col_index:
            row.append(EMPTY_CELL)

        old_text = format_cell_value(row[err.col_index])
        row[err.col_index] = Cell(CellKind.TEXT, marker_text(old_text, err.message, cfg.marker))
        marked.add((err.sheet_index, err.row_index, err.col_index))

    new_wb = Workbook(
        sheets=tuple(Sheet(tuple(tuple(r) for r in rows)) for rows in sheets),
        sheet_names=workbook.sheet_names,
    )
    return CorrectedWorkbook(workbook=new_wb, marked=frozenset(marked))
