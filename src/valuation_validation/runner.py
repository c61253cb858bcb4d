# src/valuation_validation/runner.py
from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional

import pandas as pd

from .checks import (
    Layout,
    check_cell,
    check_report_value,
    has_fraction_in_final_value,
    has_invalid_purpose_id,
    has_invalid_value_premise_id,
    iter_checked_cells,
    scan_empty_fields,
)
from .config import DEFAULT_VALIDATION_CONFIG, ValidationConfig
from .models import (
    ErrorKind,
    ValidationError,
    ValidationMode,
    ValidationOutcome,
    ValidationResults,
    Workbook,
)
from .schema import IDENTIFIER_MODE_LAYOUT, REPORT_MODE_LAYOUT, missing_headers

log = logging.getLogger(__name__)

IDENTIFIER_SHEET_COUNT_MESSAGE = "ID Excel test requires exactly 2 sheets"

ERROR_COLUMNS = ["sheet_index", "row_index", "col_index", "message", "kind", "column_name"]


def _check_type(workbook: Workbook) -> None:
    if not isinstance(workbook, Workbook):
        raise ValueError(f"Expected a Workbook, got {type(workbook).__name__}")


def _header_errors(workbook: Workbook, layout: Layout) -> List[ValidationError]:
    errors: List[ValidationError] = []
    for sheet_idx, role in layout:
        missing = missing_headers(workbook.sheet(sheet_idx), role)
        if missing:
            errors.append(
                ValidationError(
                    sheet_index=sheet_idx,
                    row_index=0,
                    col_index=0,
                    message=f"Missing required headers: {', '.join(missing)}",
                    kind=ErrorKind.MISSING_HEADERS,
                )
            )
    return errors


def _cell_errors(workbook: Workbook, layout: Layout, cfg: ValidationConfig) -> List[ValidationError]:
    errors: List[ValidationError] = []
    for cc in iter_checked_cells(workbook, layout):
        for kind, message in check_cell(cc.cell, cc.column, cfg):
            errors.append(
                ValidationError(
                    sheet_index=cc.sheet_index,
                    row_index=cc.row_index,
                    col_index=cc.column.col_index,
                    message=message,
                    kind=kind,
                    column_name=workbook.sheet(cc.sheet_index).raw_header(cc.column.col_index) or None,
                )
            )
    return errors


def _log_sheet_kpis(errors: List[ValidationError], layout: Layout) -> None:
    per_sheet = Counter(e.sheet_index for e in errors)
    for sheet_idx, role in layout:
        log.info("sheet %s (%s): %s errors", sheet_idx, role.name.lower(), per_sheet.get(sheet_idx, 0))


def _run_layout(
    workbook: Workbook,
    layout: Layout,
    mode: ValidationMode,
    cfg: ValidationConfig,
    with_aggregate: bool,
) -> ValidationOutcome:
    errors: List[ValidationError] = []

    # ---- Header presence ----
    header_errors = _header_errors(workbook, layout)
    errors.extend(header_errors)

    # ---- Per-cell rules ----
    errors.extend(_cell_errors(workbook, layout, cfg))

    # ---- Aggregate rule ----
    report_ok = True
    if with_aggregate:
        report_ok, agg_error = check_report_value(workbook, layout, cfg)
        if agg_error is not None:
            errors.append(agg_error)

    results = ValidationResults(
        has_empty_fields=len(scan_empty_fields(workbook, layout)) > 0,
        has_fraction_in_final_value=has_fraction_in_final_value(workbook, layout, cfg),
        has_invalid_purpose_id=has_invalid_purpose_id(workbook, layout, cfg),
        has_invalid_value_premise_id=has_invalid_value_premise_id(workbook, layout, cfg),
        has_missing_required_headers=len(header_errors) > 0,
        is_report_value_valid=report_ok,
        total_errors=len(errors),
    )

    _log_sheet_kpis(errors, layout)
    return ValidationOutcome(mode=mode, errors=errors, results=results)


def validate_workbook(
    workbook: Workbook,
    cfg: Optional[ValidationConfig] = None,
) -> ValidationOutcome:
    """
    Full report validation: report sheet + market assets + cost assets.

    Missing sheets count as sheets with every required header missing;
    sheets past the third are not validated.
    """
    _check_type(workbook)
    cfg = cfg or DEFAULT_VALIDATION_CONFIG

    if len(workbook) > len(REPORT_MODE_LAYOUT):
        log.warning(
            "Workbook has %s sheets; only the first %s are validated.",
            len(workbook), len(REPORT_MODE_LAYOUT),
        )

    return _run_layout(workbook, REPORT_MODE_LAYOUT, ValidationMode.REPORT, cfg, with_aggregate=True)


def validate_identifier_workbook(
    workbook: Workbook,
    cfg: Optional[ValidationConfig] = None,
) -> ValidationOutcome:
    """
    Identifier mode: exactly two asset sheets, no report sheet and no
    aggregate rule. Any other sheet count is a single structural error.
    """
    _check_type(workbook)
    cfg = cfg or DEFAULT_VALIDATION_CONFIG

    if len(workbook) != len(IDENTIFIER_MODE_LAYOUT):
        log.info("Identifier mode needs %s sheets, got %s", len(IDENTIFIER_MODE_LAYOUT), len(workbook))
        errors = [
            ValidationError(
                sheet_index=0,
                row_index=0,
                col_index=0,
                message=IDENTIFIER_SHEET_COUNT_MESSAGE,
                kind=ErrorKind.STRUCTURE,
            )
        ]
        results = ValidationResults(
            has_missing_required_headers=True,
            is_report_value_valid=True,
            total_errors=len(errors),
        )
        return ValidationOutcome(mode=ValidationMode.IDENTIFIER, errors=errors, results=results)

    return _run_layout(workbook, IDENTIFIER_MODE_LAYOUT, ValidationMode.IDENTIFIER, cfg, with_aggregate=False)


def validate(
    workbook: Workbook,
    mode: ValidationMode | str = ValidationMode.REPORT,
    cfg: Optional[ValidationConfig] = None,
) -> ValidationOutcome:
    try:
        mode = ValidationMode(mode)
    except ValueError:
        raise ValueError(f"Unknown validation mode: {mode!r}") from None

    if mode == ValidationMode.IDENTIFIER:
        return validate_identifier_workbook(workbook, cfg)
    return validate_workbook(workbook, cfg)


def errors_to_frame(errors: List[ValidationError]) -> pd.DataFrame:
    records = [e.to_record() for e in errors]
    out = pd.DataFrame.from_records(records)

    # guarantee base columns even if empty
    for c in ERROR_COLUMNS:
        if c not in out.columns:
            out[c] = ""
    return out[ERROR_COLUMNS]
