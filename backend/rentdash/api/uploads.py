"""
API endpoints for workbook upload and the stored dashboard data.
"""
import logging
import os

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from rentdash.models import DeleteResponse, ReportPayload, StoreResponse, UploadResponse
from rentdash.services.parsed_report import ParsedReport, validate_parsed_report
from rentdash.services.periods import sort_periods
from rentdash.services.report_store import ReportStore, ReportStoreError, get_report_store
from rentdash.services.workbook_parser import WorkbookParseError, WorkbookParser

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Workbook"])

ALLOWED_EXTENSIONS = ['.xlsx', '.xls']
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
UPLOAD_CHUNK_BYTES = 1024 * 1024


async def _read_limited(file: UploadFile) -> bytes:
    """Read the upload in chunks, stopping with 413 once it passes MAX_UPLOAD_BYTES."""
    content = bytearray()
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail="File too large (max 10 MB)")
    return bytes(content)


@router.post("/upload", response_model=UploadResponse)
async def upload_workbook(
    file: UploadFile = File(...),
    store: ReportStore = Depends(get_report_store),
):
    """
    Upload the rent collection workbook (GENERAL_REPORT.xlsx).

    The workbook is parsed in memory, checked for a DASHBOARD summary and a
    tenant roster, and stored as the current dashboard data.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    file_ext = os.path.splitext(file.filename)[1].lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Please upload an .xlsx file (allowed: {', '.join(ALLOWED_EXTENSIONS)})"
        )

    content = await _read_limited(file)

    parser = WorkbookParser(content)
    try:
        report = parser.parse()
    except WorkbookParseError as e:
        logger.error(f"[UPLOAD] {file.filename}: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    errors = validate_parsed_report(report)
    if errors:
        raise HTTPException(status_code=422, detail="; ".join(errors))

    try:
        store.save(report)
    except ReportStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return UploadResponse(
        success=True,
        file_name=file.filename,
        months=report.months,
        tenants=len(report.tenants),
        period_sheets=sort_periods(report.monthly_sheets.keys()),
        warnings=parser.diagnostics,
    )


@router.get("/data")
async def get_data(store: ReportStore = Depends(get_report_store)):
    """Stored dashboard data, or null when nothing has been uploaded."""
    try:
        report = store.load()
    except ReportStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return JSONResponse(content=report.to_dict() if report is not None else None)


@router.post("/data", response_model=StoreResponse)
async def put_data(
    payload: ReportPayload,
    store: ReportStore = Depends(get_report_store),
):
    """Store an already-parsed report (JSON shape of GET /data)."""
    report = ParsedReport.from_dict(payload.model_dump(by_alias=True))

    errors = validate_parsed_report(report)
    if errors:
        raise HTTPException(status_code=422, detail="; ".join(errors))

    try:
        store.save(report)
    except ReportStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return StoreResponse(success=True, months=report.months, tenants=len(report.tenants))


@router.delete("/data", response_model=DeleteResponse)
async def delete_data(store: ReportStore = Depends(get_report_store)):
    try:
        deleted = store.delete()
    except ReportStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return DeleteResponse(deleted=deleted)
