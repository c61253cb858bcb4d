# src/valuation_validation/report.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from openpyxl.utils import get_column_letter

from .config import DEFAULT_CORRECTION_CONFIG, CorrectionConfig
from .models import ValidationOutcome, ValidationResults, Workbook
from .runner import errors_to_frame
from .utils import format_cell_value

# --- SUMMARY FLAGS (label, what passing means) ---
FLAG_DETAILS: Dict[str, tuple] = {
    "has_empty_fields": ("Empty Fields", "All required fields are filled"),
    "has_fraction_in_final_value": ("Fractions", "Final values are integers"),
    "has_invalid_purpose_id": ("Purpose IDs", "Valid purpose IDs"),
    "has_invalid_value_premise_id": ("Value Premise", "Valid value premises"),
    "has_missing_required_headers": ("Required Headers", "All headers present"),
    "is_report_value_valid": ("Value Match", "Report value matches assets sum"),
}

# flags where True means "passed"
INVERTED_FLAGS = {"is_report_value_valid"}

SUMMARY_COLS = ["check", "description", "status"]

EXPORT_COLS = [
    "sheet",
    "excel_cell",
    "row",
    "column",
    "column_name",
    "value",
    "kind",
    "message",
]


def build_summary_table(results: ValidationResults) -> pd.DataFrame:
    """One row per summary flag, plus a total-errors line."""
    rec = results.to_record()
    rows = []
    for key, (label, description) in FLAG_DETAILS.items():
        flag = bool(rec[key])
        failed = (not flag) if key in INVERTED_FLAGS else flag
        rows.append({
            "check": label,
            "description": description,
            "status": "Fail" if failed else "Pass",
        })
    rows.append({
        "check": "Total Errors",
        "description": "Number of cells / sheets needing a fix",
        "status": str(results.total_errors),
    })
    return pd.DataFrame(rows, columns=SUMMARY_COLS)


def build_summary_rows(results: ValidationResults) -> List[dict]:
    return build_summary_table(results).to_dict(orient="records")


def format_errors_for_export(
    outcome: ValidationOutcome,
    workbook: Workbook,
    cfg: Optional[CorrectionConfig] = None,
) -> pd.DataFrame:
    """
    Error list with spreadsheet coordinates. `excel_cell` points at the
    corrected output workbook (Sheet1!B2 style, 1-based).
    """
    cfg = cfg or DEFAULT_CORRECTION_CONFIG

    if not outcome.errors:
        return pd.DataFrame(columns=EXPORT_COLS)

    df = errors_to_frame(outcome.errors)

    def _cell_ref(rec: pd.Series) -> str:
        sheet = cfg.sheet_name_template.format(n=int(rec["sheet_index"]) + 1)
        return f"{sheet}!{get_column_letter(int(rec['col_index']) + 1)}{int(rec['row_index']) + 1}"

    def _value(rec: pd.Series) -> str:
        sheet = workbook.sheet(int(rec["sheet_index"]))
        if sheet is None:
            return ""
        r, c = int(rec["row_index"]), int(rec["col_index"])
        return format_cell_value(sheet.cell(r, c))

    df["sheet"] = df["sheet_index"].astype(int) + 1
    df["excel_cell"] = df.apply(_cell_ref, axis=1)
    df["row"] = df["row_index"].astype(int) + 1
    df["column"] = df["col_index"].apply(lambda c: get_column_letter(int(c) + 1))
    df["column_name"] = df["column_name"].fillna("")
    df["value"] = df.apply(_value, axis=1)

    return df[EXPORT_COLS]


def build_executive_summary(outcome: ValidationOutcome) -> pd.DataFrame:
    """Error counts per sheet and kind."""
    if not outcome.errors:
        return pd.DataFrame(columns=["sheet", "kind", "count"])

    df = errors_to_frame(outcome.errors)
    df["sheet"] = df["sheet_index"].astype(int) + 1
    counts = (
        df.groupby(["sheet", "kind"])
          .size()
          .reset_index(name="count")
          .sort_values(["sheet", "count"], ascending=[True, False], kind="mergesort")
          .reset_index(drop=True)
    )
    return counts


def write_validation_report(
    outcome: ValidationOutcome,
    workbook: Workbook,
    output_path: Union[str, Path],
) -> Path:
    output_path = Path(output_path)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        build_summary_table(outcome.results).to_excel(writer, sheet_name="Summary", index=False)
        build_executive_summary(outcome).to_excel(writer, sheet_name="Counts", index=False)
        format_errors_for_export(outcome, workbook).to_excel(writer, sheet_name="Errors", index=False)
    return output_path
