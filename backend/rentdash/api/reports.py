"""
Report email endpoints.

GET /report is hit by a weekly cron with ?token=<REPORT_SECRET>.
POST /test-email sends the same report to one address, using sample data
when nothing has been uploaded yet.
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from rentdash.config import get_settings
from rentdash.models import SendReportResponse, TestEmailRequest
from rentdash.services.email_report import SAMPLE_REPORT, build_email_html, build_subject, report_period
from rentdash.services.mailer import MailerNotConfigured, MailSendError, send_email
from rentdash.services.parsed_report import ParsedReport
from rentdash.services.report_store import ReportStore, ReportStoreError, get_report_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"])


async def _send(report: ParsedReport, to: str, sample: bool = False) -> SendReportResponse:
    today = date.today()
    current = report_period(report, today)
    html = build_email_html(report, today)
    subject = build_subject(current.period, today, sample=sample)

    try:
        result = await send_email(to, subject, html)
    except MailerNotConfigured as e:
        raise HTTPException(status_code=500, detail=str(e))
    except MailSendError as e:
        raise HTTPException(status_code=500, detail=f"Send failed: {e}")

    return SendReportResponse(
        ok=True,
        sent_to=to,
        period=current.period,
        id=result.get("id"),
        data_source="sample" if sample else "live",
    )


@router.get("/report", response_model=SendReportResponse)
async def send_weekly_report(
    token: Optional[str] = Query(None),
    store: ReportStore = Depends(get_report_store),
):
    """Email the weekly report for the stored dashboard data."""
    settings = get_settings()
    if settings.report_secret and token != settings.report_secret:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        report = store.load()
    except ReportStoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to read data: {e}")
    if report is None:
        raise HTTPException(status_code=404, detail="No dashboard data found. Upload an Excel file first.")
    if report.dashboard is None or not report.dashboard.entries:
        raise HTTPException(status_code=404, detail="Dashboard data is incomplete")

    if not settings.report_email_to:
        raise HTTPException(status_code=500, detail="REPORT_EMAIL_TO not configured")

    logger.info(f"[REPORT] Sending weekly report to {settings.report_email_to}")
    return await _send(report, settings.report_email_to)


@router.post("/test-email", response_model=SendReportResponse)
async def send_test_email(
    req: TestEmailRequest,
    store: ReportStore = Depends(get_report_store),
):
    """Send the report to one address; falls back to sample data."""
    if not req.to or "@" not in req.to:
        raise HTTPException(status_code=400, detail="Invalid email address")

    sample = False
    try:
        report = store.load()
    except ReportStoreError as e:
        logger.warning(f"[REPORT] Stored data unreadable, using sample data: {e}")
        report = None
    if report is None or report.dashboard is None or not report.dashboard.entries:
        report = SAMPLE_REPORT
        sample = True

    return await _send(report, req.to, sample=sample)
