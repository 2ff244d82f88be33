"""
Dashboard read endpoints - view data computed from the stored report.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from rentdash.services import dashboard_service
from rentdash.services.parsed_report import ParsedReport
from rentdash.services.report_store import ReportStore, ReportStoreError, get_report_store

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _load_report(store: ReportStore) -> ParsedReport:
    try:
        report = store.load()
    except ReportStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if report is None:
        raise HTTPException(status_code=404, detail="No dashboard data found. Upload an Excel file first.")
    return report


@router.get("/overview")
async def get_overview(store: ReportStore = Depends(get_report_store)):
    """KPIs, month-over-month trends, payer split and chart series."""
    report = _load_report(store)
    overview = dashboard_service.build_overview(report)
    if overview is None:
        raise HTTPException(status_code=404, detail="Dashboard data is incomplete")
    return overview


@router.get("/tenants")
async def get_tenants(
    filter: str = Query("all", description="all | mpire | owner | vacant"),
    q: str = Query("", description="Search by tenant name or unit"),
    store: ReportStore = Depends(get_report_store),
):
    if filter not in dashboard_service.TENANT_FILTERS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid filter. Allowed: {', '.join(dashboard_service.TENANT_FILTERS)}"
        )
    report = _load_report(store)
    tenants = dashboard_service.filter_tenants(report.tenants, filter, q)
    return {
        "tenants": [t.to_dict() for t in tenants],
        "count": len(tenants),
        "total": len(report.tenants),
    }


@router.get("/periods")
async def get_latest_period(store: ReportStore = Depends(get_report_store)):
    """Rows of the latest period sheet."""
    return _period_or_404(_load_report(store), None)


@router.get("/periods/{label}")
async def get_period(label: str, store: ReportStore = Depends(get_report_store)):
    """Rows of one period sheet, e.g. /periods/FEBRUARY%2026."""
    return _period_or_404(_load_report(store), label)


def _period_or_404(report: ParsedReport, label: Optional[str]) -> dict:
    detail = dashboard_service.period_detail(report, label)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"No payment sheet for {label or 'any period'}")
    return detail


@router.get("/history")
async def get_payment_history(store: ReportStore = Depends(get_report_store)):
    report = _load_report(store)
    return {
        "months": report.months,
        "rows": [p.to_dict() for p in report.payment_history],
    }


@router.get("/at-risk")
async def get_at_risk(store: ReportStore = Depends(get_report_store)):
    """Tenants with two or more late payments."""
    report = _load_report(store)
    rows = dashboard_service.at_risk_tenants(report.payment_history)
    return {"tenants": [p.to_dict() for p in rows], "count": len(rows)}
