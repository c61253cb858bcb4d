# src/valuation_validation/schema.py
"""
Static rule tables for the three sheet roles.

Rules are selected by canonical header name, never by column position, so
reordered or extra columns are tolerated.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .models import Sheet, SheetRole, normalize_header


class RuleId(str, Enum):
    NOT_EMPTY = "not_empty"
    INTEGER = "integer"
    PURPOSE_ID = "purpose_id"
    VALUE_PREMISE_ID = "value_premise_id"
    DATE = "date"


REQUIRED_HEADERS: Dict[SheetRole, Tuple[str, ...]] = {
    SheetRole.REPORT: (
        "title", "purpose_id", "value_premise_id", "report_type", "valued_at",
        "submitted_at", "inspection_date", "assumptions", "special_assumptions",
        "value", "client_name", "owner_name", "telephone", "email", "region", "city",
    ),
    SheetRole.MARKET_ASSETS: ("asset_name", "asset_usage_id", "final_value"),
    SheetRole.COST_ASSETS: ("asset_name", "asset_usage_id", "final_value"),
}

# (physical sheet index, role) per validation mode
REPORT_MODE_LAYOUT: Tuple[Tuple[int, SheetRole], ...] = (
    (0, SheetRole.REPORT),
    (1, SheetRole.MARKET_ASSETS),
    (2, SheetRole.COST_ASSETS),
)
IDENTIFIER_MODE_LAYOUT: Tuple[Tuple[int, SheetRole], ...] = (
    (0, SheetRole.MARKET_ASSETS),
    (1, SheetRole.COST_ASSETS),
)

ALLOWED_PURPOSE_IDS: Tuple[int, ...] = (1, 2, 5, 6, 8, 9, 10, 12, 14)
ALLOWED_VALUE_PREMISE_IDS: Tuple[int, ...] = (1, 2, 3, 4, 5)

FINAL_VALUE_HEADER = "final_value"
REPORT_VALUE_HEADER = "value"
PURPOSE_HEADER = "purpose_id"
VALUE_PREMISE_HEADER = "value_premise_id"
DATE_HEADERS: FrozenSet[str] = frozenset({"valued_at", "submitted_at", "inspection_date"})

# canonical header -> rules beyond the implicit NOT_EMPTY
HEADER_RULES: Dict[str, Tuple[RuleId, ...]] = {
    FINAL_VALUE_HEADER: (RuleId.INTEGER,),
    PURPOSE_HEADER: (RuleId.PURPOSE_ID,),
    VALUE_PREMISE_HEADER: (RuleId.VALUE_PREMISE_ID,),
    **{h: (RuleId.DATE,) for h in sorted(DATE_HEADERS)},
}


@dataclass(frozen=True)
class ColumnRules:
    col_index: int
    header: str                      # canonical (trimmed, lower-case)
    rules: Tuple[RuleId, ...]


def required_headers(role: SheetRole) -> Tuple[str, ...]:
    return REQUIRED_HEADERS.get(SheetRole(role), ())


def rules_for_header(header: str) -> Tuple[RuleId, ...]:
    return (RuleId.NOT_EMPTY,) + HEADER_RULES.get(normalize_header(header), ())


def missing_headers(sheet: Optional[Sheet], role: SheetRole) -> List[str]:
    """
    Required headers for `role` not present (case-insensitively) in the
    sheet's header row, in registry order. An absent or empty sheet misses all.
    """
    required = required_headers(role)
    if sheet is None or sheet.is_empty:
        return list(required)

    present = set(sheet.header_names(sheet.header_width))
    return [h for h in required if h.lower() not in present]


def resolve_column_rules(sheet: Sheet, width: int) -> List[ColumnRules]:
    headers = sheet.header_names(width)
    return [ColumnRules(j, h, rules_for_header(h)) for j, h in enumerate(headers)]


def find_column(sheet: Optional[Sheet], header: str) -> Optional[int]:
    if sheet is None or sheet.is_empty:
        return None
    target = normalize_header(header)
    for j, h in enumerate(sheet.header_names(sheet.header_width)):
        if h == target:
            return j
    return None
