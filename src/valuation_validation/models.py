# src/valuation_validation/models.py
from __future__ import annotations

import math
from dataclasses import dataclass, asdict, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    import pandas as pd


# =============================================================================
# Cell & sheet model
# =============================================================================

class CellKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EMPTY = "empty"
    DATE = "date"


@dataclass(frozen=True)
class Cell:
    """
    One workbook cell as a closed tagged value.

    `value` holds the raw Python object for the kind:
      TEXT -> str, NUMBER -> int | float, BOOLEAN -> bool,
      DATE -> date | datetime, EMPTY -> None
    """
    kind: CellKind
    value: Any = None

    @classmethod
    def from_raw(cls, value: Any) -> "Cell":
        if value is None:
            return EMPTY_CELL
        if isinstance(value, Cell):
            return value
        # bool first: bool is a subclass of int
        if isinstance(value, bool):
            return cls(CellKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            if isinstance(value, float) and math.isnan(value):
                return EMPTY_CELL
            return cls(CellKind.NUMBER, value)
        if isinstance(value, (datetime, date)):
            return cls(CellKind.DATE, value)
        if isinstance(value, str):
            return cls(CellKind.TEXT, value)
        return cls(CellKind.TEXT, str(value))

    @property
    def is_empty(self) -> bool:
        return self.kind == CellKind.EMPTY


EMPTY_CELL = Cell(CellKind.EMPTY, None)

Row = Tuple[Cell, ...]


def normalize_header(value: Any) -> str:
    """Canonical header form: trimmed, lower-cased, '' for blanks."""
    if isinstance(value, Cell):
        value = value.value
    if value is None:
        return ""
    return str(value).strip().lower()


@dataclass(frozen=True)
class Sheet:
    rows: Tuple[Row, ...] = ()

    @classmethod
    def from_rows(cls, rows: Iterable[Optional[Iterable[Any]]]) -> "Sheet":
        built = []
        for r in rows:
            if r is None:
                built.append(())
                continue
            built.append(tuple(Cell.from_raw(v) for v in r))
        return cls(tuple(built))

    @property
    def is_empty(self) -> bool:
        return len(self.rows) == 0

    @property
    def width(self) -> int:
        # ragged rows: the widest row (header included) defines the sheet
        return max((len(r) for r in self.rows), default=0)

    @property
    def header_width(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def data_row_count(self) -> int:
        return max(len(self.rows) - 1, 0)

    def cell(self, row_idx: int, col_idx: int) -> Cell:
        if row_idx < 0 or row_idx >= len(self.rows):
            return EMPTY_CELL
        row = self.rows[row_idx]
        if col_idx < 0 or col_idx >= len(row):
            return EMPTY_CELL
        return row[col_idx]

    def header_names(self, width: Optional[int] = None) -> List[str]:
        width = self.width if width is None else width
        return [normalize_header(self.cell(0, j)) for j in range(width)]

    def raw_header(self, col_idx: int) -> str:
        v = self.cell(0, col_idx).value
        return "" if v is None else str(v).strip()


@dataclass(frozen=True)
class Workbook:
    sheets: Tuple[Sheet, ...] = ()
    sheet_names: Tuple[str, ...] = ()

    @classmethod
    def from_rows(
        cls,
        sheets: Sequence[Optional[Iterable[Optional[Iterable[Any]]]]],
        sheet_names: Sequence[str] = (),
    ) -> "Workbook":
        built = tuple(Sheet() if s is None else Sheet.from_rows(s) for s in sheets)
        return cls(built, tuple(sheet_names))

    def __len__(self) -> int:
        return len(self.sheets)

    def sheet(self, idx: int) -> Optional[Sheet]:
        if 0 <= idx < len(self.sheets):
            return self.sheets[idx]
        return None

    def to_values(self) -> List[List[List[Any]]]:
        return [[[c.value for c in row] for row in s.rows] for s in self.sheets]


class SheetRole(IntEnum):
    REPORT = 0
    MARKET_ASSETS = 1
    COST_ASSETS = 2


class ValidationMode(str, Enum):
    REPORT = "report"
    IDENTIFIER = "identifier"


# =============================================================================
# Errors & results
# =============================================================================

class ErrorKind(str, Enum):
    STRUCTURE = "structure"
    MISSING_HEADERS = "missing_headers"
    EMPTY_FIELD = "empty_field"
    NOT_INTEGER = "not_integer"
    INVALID_PURPOSE_ID = "invalid_purpose_id"
    INVALID_VALUE_PREMISE_ID = "invalid_value_premise_id"
    INVALID_DATE = "invalid_date"
    REPORT_VALUE_MISMATCH = "report_value_mismatch"


@dataclass(frozen=True)
class ValidationError:
    # 0-based, relative to the physical workbook
    sheet_index: int
    row_index: int
    col_index: int
    message: str

    kind: ErrorKind = ErrorKind.EMPTY_FIELD
    column_name: Optional[str] = None

    def to_record(self) -> dict:
        rec = asdict(self)
        rec["kind"] = self.kind.value
        return rec


@dataclass(frozen=True)
class EmptyFieldInfo:
    sheet_index: int
    row_index: int
    col_index: int
    column_name: str


@dataclass
class ValidationResults:
    has_empty_fields: bool = False
    has_fraction_in_final_value: bool = False
    has_invalid_purpose_id: bool = False
    has_invalid_value_premise_id: bool = False
    has_missing_required_headers: bool = False
    is_report_value_valid: bool = True
    total_errors: int = 0

    def to_record(self) -> dict:
        return asdict(self)


@dataclass
class ValidationOutcome:
    mode: ValidationMode
    errors: List[ValidationError] = field(default_factory=list)
    results: ValidationResults = field(default_factory=ValidationResults)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_frame(self) -> pd.DataFrame:
        from .runner import errors_to_frame
        return errors_to_frame(self.errors)

    def to_record(self) -> dict:
        return {
            "mode": self.mode.value,
            "errors": [e.to_record() for e in self.errors],
            "results": self.results.to_record(),
        }
