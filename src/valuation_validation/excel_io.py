# src/valuation_validation/excel_io.py
from __future__ import annotations

import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Any, BinaryIO, Iterable, List, Optional, Union

from openpyxl import Workbook as XlsxWorkbook
from openpyxl import load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from .config import DEFAULT_CORRECTION_CONFIG, CorrectionConfig
from .correction import CellRef, apply_corrections
from .models import CellKind, ValidationError, Workbook

log = logging.getLogger(__name__)

Source = Union[bytes, bytearray, str, Path, BinaryIO]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_CORE_TIMESTAMP_RE = re.compile(r"(<dcterms:(created|modified)[^>]*>)[^<]*(</dcterms:\2>)")
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


class WorkbookDecodeError(ValueError):
    """Raised when uploaded bytes cannot be read as a workbook."""


# =============================================================================
# Ingestion
# =============================================================================

def _trim_row(values: Iterable[Any]) -> List[Any]:
    row = list(values)
    while row and row[-1] is None:
        row.pop()
    return row


def _sheet_rows(ws: Worksheet) -> List[List[Any]]:
    rows = [_trim_row(r) for r in ws.iter_rows(values_only=True)]
    # formatted-but-empty rows at the bottom are not data
    while rows and not rows[-1]:
        rows.pop()
    return rows


def read_workbook(source: Source) -> Workbook:
    """
    Decode an .xlsx payload (bytes, path or binary file object) into a Workbook.
    Cached formula results are read, not formulas.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Workbook not found: {path}")
        handle: Any = path
        label = path.name
    elif isinstance(source, (bytes, bytearray)):
        handle = io.BytesIO(bytes(source))
        label = "<bytes>"
    else:
        handle = source
        label = getattr(source, "name", "<stream>")

    try:
        wb = load_workbook(handle, data_only=True)
        try:
            names = [ws.title for ws in wb.worksheets]
            sheets = [_sheet_rows(ws) for ws in wb.worksheets]
        finally:
            wb.close()
    except (zipfile.BadZipFile, InvalidFileException, KeyError, OSError, ValueError, TypeError) as e:
        raise WorkbookDecodeError(f"Could not read workbook {label}: {e}") from e

    log.info("Loaded workbook %s (%s sheets: %s)", label, len(sheets), names)
    return Workbook.from_rows(sheets, sheet_names=names)


# =============================================================================
# Corrected output
# =============================================================================

def apply_highlights(ws: Worksheet, coords: Iterable[CellRef], sheet_index: int, cfg: CorrectionConfig) -> None:
    fill = PatternFill(start_color=cfg.fill_color, end_color=cfg.fill_color, fill_type="solid")
    font = Font(color=cfg.font_color, bold=cfg.font_bold)
    for s, r, c in coords:
        if s != sheet_index:
            continue
        cell = ws.cell(row=r + 1, column=c + 1)
        cell.fill = fill
        cell.font = font


def _normalize_archive(data: bytes, cfg: CorrectionConfig) -> bytes:
    """Pin document and zip entry timestamps so equal inputs give equal bytes."""
    stamp = cfg.fixed_timestamp.strftime("%Y-%m-%dT%H:%M:%SZ")
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as src, zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as dst:
        for info in src.infolist():
            payload = src.read(info.filename)
            if info.filename == "docProps/core.xml":
                text = payload.decode("utf-8")
                text = _CORE_TIMESTAMP_RE.sub(lambda m: f"{m.group(1)}{stamp}{m.group(3)}", text)
                payload = text.encode("utf-8")
            entry = zipfile.ZipInfo(info.filename, date_time=_ZIP_EPOCH)
            entry.compress_type = zipfile.ZIP_DEFLATED
            entry.external_attr = info.external_attr
            dst.writestr(entry, payload)
    return out.getvalue()


def write_corrected_workbook(
    workbook: Workbook,
    errors: Iterable[ValidationError],
    cfg: Optional[CorrectionConfig] = None,
) -> bytes:
    """
    Annotated copy of `workbook` as .xlsx bytes: one sheet per input sheet
    (Sheet1, Sheet2, ...), offending cells marked and highlighted.
    """
    cfg = cfg or DEFAULT_CORRECTION_CONFIG
    corrected = apply_corrections(workbook, errors, cfg)

    out = XlsxWorkbook()
    out.remove(out.active)
    out.properties.created = cfg.fixed_timestamp
    out.properties.modified = cfg.fixed_timestamp

    for n, sheet in enumerate(corrected.workbook.sheets, start=1):
        ws = out.create_sheet(title=cfg.sheet_name_template.format(n=n))
        for i, row in enumerate(sheet.rows, start=1):
            for j, cell in enumerate(row, start=1):
                if cell.is_empty:
                    continue
                xc = ws.cell(row=i, column=j, value=cell.value)
                if cell.kind == CellKind.TEXT and str(cell.value).startswith("="):
                    # keep text that looks like a formula as text
                    xc.data_type = "s"
                elif cell.kind == CellKind.DATE:
                    xc.number_format = cfg.date_number_format
        apply_highlights(ws, corrected.marked, n - 1, cfg)

    if not out.worksheets:
        out.create_sheet(title=cfg.sheet_name_template.format(n=1))

    buf = io.BytesIO()
    out.save(buf)
    log.info("Corrected workbook built (%s marked cells)", len(corrected.marked))
    return _normalize_archive(buf.getvalue(), cfg)


def save_corrected_workbook(
    workbook: Workbook,
    errors: Iterable[ValidationError],
    filename: Optional[Union[str, Path]] = None,
    cfg: Optional[CorrectionConfig] = None,
) -> Path:
    cfg = cfg or DEFAULT_CORRECTION_CONFIG
    path = Path(filename or cfg.default_filename)
    path.write_bytes(write_corrected_workbook(workbook, errors, cfg))
    return path
