"""
Tests for the field validators, the report value rule and the flag scanners.
"""
from datetime import date

import pytest

from valuation_validation.checks import (
    EMPTY_FIELD_MESSAGE,
    check_cell,
    check_report_value,
    final_value_sum,
    has_fraction_in_final_value,
    has_invalid_purpose_id,
    scan_empty_fields,
    validate_date,
)
from valuation_validation.models import Cell, ErrorKind, Sheet, Workbook
from valuation_validation.schema import REPORT_MODE_LAYOUT, resolve_column_rules
from valuation_validation.utils import coerce_number


def _column(header):
    return resolve_column_rules(Sheet.from_rows([[header]]), 1)[0]


class TestValidateDate:

    def test_serial_number(self):
        # 44927 -> 01/01/2023
        assert validate_date(Cell.from_raw(44927)) is True

    def test_month_out_of_range(self):
        assert validate_date(Cell.from_raw("31/13/2024")) is False

    def test_lenient_day_count(self):
        assert validate_date(Cell.from_raw("31/02/2024")) is True

    def test_native_date(self):
        assert validate_date(Cell.from_raw(date(2020, 5, 17))) is True

    def test_year_bounds(self):
        assert validate_date(Cell.from_raw("01/01/1899")) is False
        assert validate_date(Cell.from_raw("01/01/2101")) is False
        assert validate_date(Cell.from_raw(0)) is False  # 30/12/1899

    @pytest.mark.parametrize("raw", ["2024-01-01", "1/2", "abc", "00/01/2024", True, 1e12])
    def test_rejected(self, raw):
        assert validate_date(Cell.from_raw(raw)) is False


class TestCoerceNumber:

    def test_permissive(self):
        assert coerce_number(Cell.from_raw(" 12 ")) == 12.0
        assert coerce_number(Cell.from_raw(True)) == 1.0
        assert coerce_number(Cell.from_raw(7)) == 7.0

    def test_failures(self):
        assert coerce_number(Cell.from_raw("12a")) is None
        assert coerce_number(Cell.from_raw("inf")) is None
        assert coerce_number(Cell.from_raw(None)) is None
        assert coerce_number(Cell.from_raw(date(2024, 1, 1))) is None

    def test_digit_separators_rejected(self):
        assert coerce_number(Cell.from_raw("1_000")) is None
        assert coerce_number(Cell.from_raw("1_0.5")) is None


class TestCheckCell:

    def test_empty_short_circuits(self):
        for raw in (None, "", "   "):
            failures = check_cell(Cell.from_raw(raw), _column("purpose_id"))
            assert failures == [(ErrorKind.EMPTY_FIELD, EMPTY_FIELD_MESSAGE)]

    def test_final_value_integer(self):
        col = _column("final_value")
        assert check_cell(Cell.from_raw(100), col) == []
        assert check_cell(Cell.from_raw("100"), col) == []
        assert check_cell(Cell.from_raw(100.0), col) == []
        assert [k for k, _ in check_cell(Cell.from_raw(10.5), col)] == [ErrorKind.NOT_INTEGER]
        assert [k for k, _ in check_cell(Cell.from_raw("lots"), col)] == [ErrorKind.NOT_INTEGER]
        assert [k for k, _ in check_cell(Cell.from_raw("1_000"), col)] == [ErrorKind.NOT_INTEGER]

    def test_purpose_and_premise_sets(self):
        purpose = _column("purpose_id")
        premise = _column("value_premise_id")
        assert check_cell(Cell.from_raw(14), purpose) == []
        assert check_cell(Cell.from_raw("12"), purpose) == []
        assert [k for k, _ in check_cell(Cell.from_raw(3), purpose)] == [ErrorKind.INVALID_PURPOSE_ID]
        assert check_cell(Cell.from_raw(5), premise) == []
        assert [k for k, _ in check_cell(Cell.from_raw(6), premise)] == [ErrorKind.INVALID_VALUE_PREMISE_ID]

    def test_date_message_names_header(self):
        failures = check_cell(Cell.from_raw("2024/01/01"), _column("Valued_At"))
        assert failures[0][0] == ErrorKind.INVALID_DATE
        assert "valued_at" in failures[0][1]
        assert "DD/MM/YYYY" in failures[0][1]

    def test_unknown_header_only_checks_empty(self):
        assert check_cell(Cell.from_raw(3.7), _column("notes")) == []


class TestReportValue:

    def test_sum_skips_non_numeric(self, make_workbook):
        wb = make_workbook(market_rows=[["a", 1, 500], ["b", 1, None], ["c", 1, "x"]], cost_rows=[["d", 2, "500"]])
        assert final_value_sum(wb, REPORT_MODE_LAYOUT) == 1000

    def test_match(self, valid_workbook):
        assert check_report_value(valid_workbook, REPORT_MODE_LAYOUT) == (True, None)

    def test_mismatch_located_at_value_cell(self, make_workbook):
        wb = make_workbook(cost_rows=[["Building", 2, 300]])
        ok, err = check_report_value(wb, REPORT_MODE_LAYOUT)
        assert ok is False
        assert (err.sheet_index, err.row_index, err.col_index) == (0, 1, 9)
        assert err.kind == ErrorKind.REPORT_VALUE_MISMATCH
        assert "does not equal" in err.message

    def test_vacuous_without_value_header(self):
        wb = Workbook.from_rows([
            [["title"], ["x"]],
            [["final_value"], [5]],
            [["final_value"], [5]],
        ])
        assert check_report_value(wb, REPORT_MODE_LAYOUT) == (True, None)

    def test_vacuous_without_report_sheet(self):
        assert check_report_value(Workbook(), REPORT_MODE_LAYOUT) == (True, None)

    def test_vacuous_with_non_numeric_report_value(self, make_workbook):
        wb = make_workbook(report={"value": "n/a"})
        assert check_report_value(wb, REPORT_MODE_LAYOUT) == (True, None)


class TestScanners:

    def test_scan_empty_fields_reports_column_names(self, make_workbook):
        wb = make_workbook(market_rows=[["Land", None, 600], ["Lot"]])
        found = scan_empty_fields(wb, REPORT_MODE_LAYOUT)
        assert [(f.sheet_index, f.row_index, f.col_index) for f in found] == [(1, 1, 1), (1, 2, 1), (1, 2, 2)]
        assert found[0].column_name == "asset_usage_id"

    def test_blank_header_column_name_fallback(self):
        wb = Workbook.from_rows([[], [["asset_name"], ["x", None, "y"]], []])
        found = scan_empty_fields(wb, REPORT_MODE_LAYOUT)
        assert found[0].column_name == "Column 2"

    def test_report_sheet_only_row_one(self, make_workbook):
        sheets_wb = make_workbook(report={"purpose_id": 1})
        rows = [list(r) for r in sheets_wb.to_values()[0]]
        rows.append([None] * len(rows[0]))
        wb = Workbook.from_rows([rows] + sheets_wb.to_values()[1:])
        assert scan_empty_fields(wb, REPORT_MODE_LAYOUT) == []

    def test_flags(self, make_workbook):
        assert has_fraction_in_final_value(make_workbook(), REPORT_MODE_LAYOUT) is False
        assert has_fraction_in_final_value(make_workbook(market_rows=[["a", 1, 0.5]]), REPORT_MODE_LAYOUT) is True
        assert has_invalid_purpose_id(make_workbook(report={"purpose_id": 3}), REPORT_MODE_LAYOUT) is True
