from __future__ import annotations

import io
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from openpyxl import Workbook as XlsxWorkbook

from valuation_validation.models import Workbook

REPORT_HEADERS = [
    "title", "purpose_id", "value_premise_id", "report_type", "valued_at",
    "submitted_at", "inspection_date", "assumptions", "special_assumptions",
    "value", "client_name", "owner_name", "telephone", "email", "region", "city",
]
ASSET_HEADERS = ["asset_name", "asset_usage_id", "final_value"]


def valid_report_values() -> Dict[str, Any]:
    return {
        "title": "Villa valuation",
        "purpose_id": 1,
        "value_premise_id": 2,
        "report_type": "Detailed",
        "valued_at": "01/01/2024",
        "submitted_at": datetime(2024, 1, 2),
        "inspection_date": 45292,  # 01/01/2024 as a spreadsheet serial
        "assumptions": "None",
        "special_assumptions": "None",
        "value": 1000,
        "client_name": "Acme",
        "owner_name": "Owner",
        "telephone": "0500000000",
        "email": "owner@example.com",
        "region": "Riyadh",
        "city": "Riyadh",
    }


def build_sheets(
    report: Optional[Dict[str, Any]] = None,
    market_rows: Optional[List[List[Any]]] = None,
    cost_rows: Optional[List[List[Any]]] = None,
    asset_headers: Optional[List[str]] = None,
) -> List[List[List[Any]]]:
    values = valid_report_values()
    values.update(report or {})
    headers = asset_headers or ASSET_HEADERS
    market = market_rows if market_rows is not None else [["Land", 1, 600]]
    cost = cost_rows if cost_rows is not None else [["Building", 2, 400]]
    return [
        [list(values.keys()), list(values.values())],
        [list(headers)] + [list(r) for r in market],
        [list(headers)] + [list(r) for r in cost],
    ]


@pytest.fixture
def make_workbook():
    def _make(**kwargs) -> Workbook:
        return Workbook.from_rows(build_sheets(**kwargs))
    return _make


@pytest.fixture
def valid_workbook(make_workbook) -> Workbook:
    return make_workbook()


def to_xlsx_bytes(sheets: List[List[List[Any]]]) -> bytes:
    wb = XlsxWorkbook()
    wb.remove(wb.active)
    for n, rows in enumerate(sheets, start=1):
        ws = wb.create_sheet(title=f"S{n}")
        for r in rows:
            ws.append(r)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def xlsx_bytes():
    return to_xlsx_bytes
