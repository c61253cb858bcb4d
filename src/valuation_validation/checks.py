# src/valuation_validation/checks.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import DEFAULT_VALIDATION_CONFIG, ValidationConfig
from .models import (
    Cell,
    EmptyFieldInfo,
    ErrorKind,
    SheetRole,
    ValidationError,
    Workbook,
)
from .schema import (
    ALLOWED_PURPOSE_IDS,
    ALLOWED_VALUE_PREMISE_IDS,
    FINAL_VALUE_HEADER,
    PURPOSE_HEADER,
    REPORT_VALUE_HEADER,
    VALUE_PREMISE_HEADER,
    ColumnRules,
    RuleId,
    find_column,
    resolve_column_rules,
)
from .utils import coerce_number, date_parts, fmt_num, is_blank

log = logging.getLogger(__name__)

Layout = Sequence[Tuple[int, SheetRole]]

EMPTY_FIELD_MESSAGE = "Empty field - please fill this field"
NOT_INTEGER_MESSAGE = "Final value must be an integer"
INVALID_PURPOSE_MESSAGE = "Invalid purpose ID - Allowed: " + ", ".join(str(x) for x in ALLOWED_PURPOSE_IDS)
INVALID_PREMISE_MESSAGE = "Invalid value premise - Allowed: " + ", ".join(str(x) for x in ALLOWED_VALUE_PREMISE_IDS)
REPORT_VALUE_MISMATCH_MESSAGE = "Report value does not equal sum of asset final values"


# =============================================================================
# Field validators (one cell, one rule)
# =============================================================================

def validate_date(cell: Cell, cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG) -> bool:
    """
    Lenient calendar check: day 1-31, month 1-12, year within the configured
    range. 31/02 passes on purpose (no per-month day count).
    """
    parts = date_parts(cell, cfg)
    if parts is None:
        return False
    day, month, year = parts
    if month < 1 or month > 12:
        return False
    if day < 1 or day > 31:
        return False
    if year < cfg.min_year or year > cfg.max_year:
        return False
    return True


def check_not_empty(cell: Cell, header: str, cfg: ValidationConfig) -> Optional[str]:
    return EMPTY_FIELD_MESSAGE if is_blank(cell) else None


def check_integer(cell: Cell, header: str, cfg: ValidationConfig) -> Optional[str]:
    x = coerce_number(cell)
    if x is None or not x.is_integer():
        return NOT_INTEGER_MESSAGE
    return None


def check_purpose_id(cell: Cell, header: str, cfg: ValidationConfig) -> Optional[str]:
    x = coerce_number(cell)
    if x is None or x not in ALLOWED_PURPOSE_IDS:
        return INVALID_PURPOSE_MESSAGE
    return None


def check_value_premise_id(cell: Cell, header: str, cfg: ValidationConfig) -> Optional[str]:
    x = coerce_number(cell)
    if x is None or x not in ALLOWED_VALUE_PREMISE_IDS:
        return INVALID_PREMISE_MESSAGE
    return None


def check_date(cell: Cell, header: str, cfg: ValidationConfig) -> Optional[str]:
    if validate_date(cell, cfg):
        return None
    return f"Invalid date in {header} field - must be in DD/MM/YYYY format"


FIELD_CHECKS: Dict[RuleId, Tuple[ErrorKind, Callable[[Cell, str, ValidationConfig], Optional[str]]]] = {
    RuleId.NOT_EMPTY: (ErrorKind.EMPTY_FIELD, check_not_empty),
    RuleId.INTEGER: (ErrorKind.NOT_INTEGER, check_integer),
    RuleId.PURPOSE_ID: (ErrorKind.INVALID_PURPOSE_ID, check_purpose_id),
    RuleId.VALUE_PREMISE_ID: (ErrorKind.INVALID_VALUE_PREMISE_ID, check_value_premise_id),
    RuleId.DATE: (ErrorKind.INVALID_DATE, check_date),
}


def check_cell(
    cell: Cell,
    column: ColumnRules,
    cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> List[Tuple[ErrorKind, str]]:
    """All rule failures for one cell. An empty cell reports only the empty rule."""
    if is_blank(cell):
        return [(ErrorKind.EMPTY_FIELD, EMPTY_FIELD_MESSAGE)]

    failures: List[Tuple[ErrorKind, str]] = []
    for rule in column.rules:
        if rule == RuleId.NOT_EMPTY:
            continue
        kind, fn = FIELD_CHECKS[rule]
        msg = fn(cell, column.header, cfg)
        if msg is not None:
            failures.append((kind, msg))
    return failures


# =============================================================================
# Traversal shared by the orchestrator and the summary scanners
# =============================================================================

@dataclass(frozen=True)
class CheckedCell:
    sheet_index: int
    role: SheetRole
    row_index: int
    column: ColumnRules
    cell: Cell


def iter_checked_cells(workbook: Workbook, layout: Layout) -> Iterator[CheckedCell]:
    """
    Report sheet: row 1 only, across the header row width.
    Asset sheets: every data row, across the widest row of the sheet.
    """
    for sheet_idx, role in layout:
        sheet = workbook.sheet(sheet_idx)
        if sheet is None or len(sheet.rows) < 2:
            continue

        if role == SheetRole.REPORT:
            width = sheet.header_width
            row_range = range(1, 2)
        else:
            width = sheet.width
            row_range = range(1, len(sheet.rows))

        columns = resolve_column_rules(sheet, width)
        for i in row_range:
            for col in columns:
                yield CheckedCell(sheet_idx, role, i, col, sheet.cell(i, col.col_index))


# =============================================================================
# Aggregate (cross-sheet) rule
# =============================================================================

def final_value_sum(workbook: Workbook, layout: Layout) -> float:
    """Sum of numeric final_value cells over every asset sheet; others skipped."""
    total = 0.0
    for sheet_idx, role in layout:
        if role == SheetRole.REPORT:
            continue
        sheet = workbook.sheet(sheet_idx)
        col = find_column(sheet, FINAL_VALUE_HEADER)
        if col is None:
            continue
        for i in range(1, len(sheet.rows)):
            x = coerce_number(sheet.cell(i, col))
            if x is not None:
                total += x
    return total


def check_report_value(
    workbook: Workbook,
    layout: Layout,
    cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> Tuple[bool, Optional[ValidationError]]:
    """
    Report `value` must equal the sum of asset final values.

    Vacuously valid when there is no report data row, no `value` column, or
    the report value is empty / non-numeric (the cell rules flag those).
    """
    report_idx = next((idx for idx, role in layout if role == SheetRole.REPORT), None)
    if report_idx is None:
        return True, None

    report = workbook.sheet(report_idx)
    if report is None or report.data_row_count < 1:
        return True, None

    col = find_column(report, REPORT_VALUE_HEADER)
    if col is None:
        return True, None

    reported = coerce_number(report.cell(1, col))
    if reported is None:
        return True, None

    assets_sum = final_value_sum(workbook, layout)
    if math.isclose(reported, assets_sum, rel_tol=0.0, abs_tol=cfg.report_value_tolerance):
        return True, None

    log.info("Report value %s != assets sum %s", fmt_num(reported), fmt_num(assets_sum))
    return False, ValidationError(
        sheet_index=report_idx,
        row_index=1,
        col_index=col,
        message=(
            f"{REPORT_VALUE_MISMATCH_MESSAGE} "
            f"(report value {fmt_num(reported)}, assets sum {fmt_num(assets_sum)})"
        ),
        kind=ErrorKind.REPORT_VALUE_MISMATCH,
        column_name=report.raw_header(col) or REPORT_VALUE_HEADER,
    )


# =============================================================================
# Summary flag scanners (independent re-scan of the workbook)
# =============================================================================

def scan_empty_fields(workbook: Workbook, layout: Layout) -> List[EmptyFieldInfo]:
    out: List[EmptyFieldInfo] = []
    for cc in iter_checked_cells(workbook, layout):
        if is_blank(cc.cell):
            sheet = workbook.sheet(cc.sheet_index)
            name = sheet.raw_header(cc.column.col_index) or f"Column {cc.column.col_index + 1}"
            out.append(EmptyFieldInfo(cc.sheet_index, cc.row_index, cc.column.col_index, name))
    return out


def _any_failure(
    workbook: Workbook,
    layout: Layout,
    header: str,
    fn: Callable[[Cell, str, ValidationConfig], Optional[str]],
    cfg: ValidationConfig,
) -> bool:
    for cc in iter_checked_cells(workbook, layout):
        if cc.column.header != header or is_blank(cc.cell):
            continue
        if fn(cc.cell, header, cfg) is not None:
            return True
    return False


def has_fraction_in_final_value(
    workbook: Workbook, layout: Layout, cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG
) -> bool:
    return _any_failure(workbook, layout, FINAL_VALUE_HEADER, check_integer, cfg)


def has_invalid_purpose_id(
    workbook: Workbook, layout: Layout, cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG
) -> bool:
    return _any_failure(workbook, layout, PURPOSE_HEADER, check_purpose_id, cfg)


def has_invalid_value_premise_id(
    workbook: Workbook, layout: Layout, cfg: ValidationConfig = DEFAULT_VALIDATION_CONFIG
) -> bool:
    return _any_failure(workbook, layout, VALUE_PREMISE_HEADER, check_value_premise_id, cfg)
