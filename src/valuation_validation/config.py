# src/valuation_validation/config.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ValidationConfig:
    # Spreadsheet serial dates: day 0 is 1899-12-30 (25569 days before 1970-01-01)
    excel_epoch: datetime = datetime(1899, 12, 30)

    # Accepted calendar range (no per-month day count check)
    min_year: int = 1900
    max_year: int = 2100

    # Report value vs. sum of asset final values
    report_value_tolerance: float = 1e-6


@dataclass(frozen=True)
class CorrectionConfig:
    marker: str = "⚠"
    fill_color: str = "FFFFFF00"   # yellow background
    font_color: str = "FFFF0000"   # red text
    font_bold: bool = True

    default_filename: str = "corrected_report.xlsx"
    sheet_name_template: str = "Sheet{n}"
    date_number_format: str = "DD/MM/YYYY"

    # Fixed document timestamp so identical inputs serialise to identical bytes
    fixed_timestamp: datetime = datetime(2000, 1, 1, 0, 0, 0)


@dataclass
class ServiceConfig:
    corrected_filename: str = "corrected_report.xlsx"
    max_upload_mb: float = 20.0


DEFAULT_VALIDATION_CONFIG = ValidationConfig()
DEFAULT_CORRECTION_CONFIG = CorrectionConfig()
