# src/valuation_validation/__init__.py
"""
valuation_validation package.

Excel validation engine for valuation report uploads:
- read the workbook (report sheet + market / cost asset sheets)
- run header, cell and report-value checks
- export a corrected copy with every offending cell marked
"""

from .excel_io import WorkbookDecodeError, read_workbook, save_corrected_workbook, write_corrected_workbook
from .models import Cell, CellKind, Sheet, ValidationError, ValidationMode, ValidationResults, Workbook
from .runner import validate, validate_identifier_workbook, validate_workbook

__all__ = [
    "Cell",
    "CellKind",
    "Sheet",
    "ValidationError",
    "ValidationMode",
    "ValidationResults",
    "Workbook",
    "WorkbookDecodeError",
    "read_workbook",
    "save_corrected_workbook",
    "validate",
    "validate_identifier_workbook",
    "validate_workbook",
    "write_corrected_workbook",
]
__version__ = "0.1.0"
