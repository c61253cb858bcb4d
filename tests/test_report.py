import pandas as pd

from valuation_validation.models import ValidationResults
from valuation_validation.report import (
    EXPORT_COLS,
    build_executive_summary,
    build_summary_rows,
    build_summary_table,
    format_errors_for_export,
    write_validation_report,
)
from valuation_validation.runner import validate_workbook


class TestSummaryTable:

    def test_all_pass(self):
        df = build_summary_table(ValidationResults())
        assert list(df.columns) == ["check", "description", "status"]
        flags = df[df["check"] != "Total Errors"]
        assert set(flags["status"]) == {"Pass"}
        assert df.iloc[-1]["status"] == "0"

    def test_value_match_is_inverted(self):
        df = build_summary_table(ValidationResults(is_report_value_valid=False, total_errors=1))
        row = df[df["check"] == "Value Match"].iloc[0]
        assert row["status"] == "Fail"

    def test_rows_are_records(self):
        rows = build_summary_rows(ValidationResults(has_empty_fields=True, total_errors=2))
        assert rows[0] == {"check": "Empty Fields", "description": "All required fields are filled", "status": "Fail"}


class TestErrorExport:

    def test_no_errors(self, valid_workbook):
        df = format_errors_for_export(validate_workbook(valid_workbook), valid_workbook)
        assert df.empty
        assert list(df.columns) == EXPORT_COLS

    def test_cell_references(self, make_workbook):
        wb = make_workbook(market_rows=[["Land", 1, 0.5]], report={"valued_at": 44927, "purpose_id": 4})
        outcome = validate_workbook(wb)
        df = format_errors_for_export(outcome, wb)

        purpose = df[df["kind"] == "invalid_purpose_id"].iloc[0]
        assert purpose["excel_cell"] == "Sheet1!B2"
        assert purpose["value"] == "4"
        assert purpose["column_name"] == "purpose_id"

        fraction = df[df["kind"] == "not_integer"].iloc[0]
        assert fraction["excel_cell"] == "Sheet2!C2"
        assert fraction["sheet"] == 2
        assert fraction["row"] == 2
        assert fraction["column"] == "C"
        assert fraction["value"] == "0.5"

    def test_counts_per_sheet(self, make_workbook):
        wb = make_workbook(market_rows=[["Land", None, 0.5], ["Lot", None, 1]])
        counts = build_executive_summary(validate_workbook(wb))
        empty_row = counts[(counts["sheet"] == 2) & (counts["kind"] == "empty_field")].iloc[0]
        assert empty_row["count"] == 2

    def test_write_report(self, tmp_path, make_workbook):
        wb = make_workbook(market_rows=[["Land", None, 600]])
        path = write_validation_report(validate_workbook(wb), wb, tmp_path / "report.xlsx")
        sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
        assert list(sheets) == ["Summary", "Counts", "Errors"]
        assert len(sheets["Errors"]) == 1
