from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import ServiceConfig
from .excel_io import XLSX_MEDIA_TYPE, WorkbookDecodeError, read_workbook, write_corrected_workbook
from .models import ValidationMode, ValidationOutcome, Workbook
from .report import build_summary_rows
from .runner import validate

log = logging.getLogger(__name__)

app = FastAPI(title="valuation-validation", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _build_config() -> ServiceConfig:
    """Build ServiceConfig from environment variables."""
    cfg = ServiceConfig()

    filename = os.getenv("CORRECTED_FILENAME", "").strip()
    if filename:
        cfg.corrected_filename = filename

    max_mb = os.getenv("MAX_UPLOAD_MB", "").strip()
    if max_mb:
        try:
            cfg.max_upload_mb = float(max_mb)
        except ValueError:
            log.warning("Ignoring invalid MAX_UPLOAD_MB=%r", max_mb)

    return cfg


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


async def _read_upload(file: UploadFile, cfg: ServiceConfig) -> Workbook:
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing filename")

    data = await file.read()
    if len(data) > cfg.max_upload_mb * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File larger than {cfg.max_upload_mb:g} MB")

    try:
        return read_workbook(data)
    except WorkbookDecodeError as e:
        raise HTTPException(status_code=400, detail="Error reading Excel file. Please make sure the file is valid.") from e


def _run(workbook: Workbook, mode: ValidationMode) -> ValidationOutcome:
    try:
        return validate(workbook, mode)
    except Exception as e:
        log.exception("Validation crashed")
        raise HTTPException(status_code=500, detail=f"Validation failed: {e}") from e


@app.post("/validate")
async def validate_json(
    file: UploadFile = File(...),
    mode: ValidationMode = Query(ValidationMode.REPORT),
) -> JSONResponse:
    cfg = _build_config()
    workbook = await _read_upload(file, cfg)
    outcome = _run(workbook, mode)

    content: Dict[str, Any] = outcome.to_record()
    content["summary_rows"] = build_summary_rows(outcome.results)
    return JSONResponse(content=content)


@app.post("/validate_download")
async def validate_download(
    file: UploadFile = File(...),
    mode: ValidationMode = Query(ValidationMode.REPORT),
    filename: Optional[str] = Query(None),
) -> Response:
    cfg = _build_config()
    workbook = await _read_upload(file, cfg)
    outcome = _run(workbook, mode)

    content = write_corrected_workbook(workbook, outcome.errors)
    out_name = re.sub(r"[\r\n\"]", "", filename or cfg.corrected_filename)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{out_name}"',
            "X-Total-Errors": str(outcome.results.total_errors),
        },
    )
