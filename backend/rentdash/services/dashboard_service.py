"""
Dashboard view data derived from a ParsedReport.

The front end renders these structures as-is; no business logic lives there.
"""
from typing import Any, Dict, List, Optional

from rentdash.services.parsed_report import ParsedReport, PaymentHistoryRow, PeriodPayment, Tenant
from rentdash.services.periods import normalize_period, sort_periods
from rentdash.services.status_rules import PaymentStatus

AT_RISK_MIN_TIMES_LATE = 2

TENANT_FILTERS = ("all", "mpire", "owner", "vacant")


def _trend(current: Any, previous: Any) -> float:
    """Percent change from previous to current; 0 when there is no baseline."""
    if not isinstance(current, (int, float)) or not isinstance(previous, (int, float)) or not previous:
        return 0.0
    return (current - previous) / previous * 100


def at_risk_tenants(history: List[PaymentHistoryRow]) -> List[PaymentHistoryRow]:
    """Units that paid late at least twice."""
    return [p for p in history if p.times_late >= AT_RISK_MIN_TIMES_LATE]


def filter_tenants(tenants: List[Tenant], payer_filter: str = "all", query: str = "") -> List[Tenant]:
    """
    Filter the roster by payer / vacancy and a free-text search.

    payer_filter: "all", "mpire", "owner" or "vacant"
    query: case-insensitive substring of tenant name or unit
    """
    result = tenants
    if payer_filter == "mpire":
        result = [t for t in result if t.paid_to == "MPIRE"]
    elif payer_filter == "owner":
        result = [t for t in result if t.paid_to == "OWNER"]
    elif payer_filter == "vacant":
        result = [t for t in result if t.status == "Vacant"]

    if query:
        q = query.lower()
        result = [t for t in result if q in t.name.lower() or q in t.unit.lower()]
    return result


def sorted_period_sheets(report: ParsedReport) -> List[str]:
    return sort_periods(report.monthly_sheets.keys())


def period_detail(report: ParsedReport, label: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Rows of one period sheet (latest sheet when no label is given).
    N/A rows (vacant units) are left out of both row lists.

    Returns None when the period has no sheet.
    """
    labels = sorted_period_sheets(report)
    if not labels:
        return None
    if label is None:
        key = labels[-1]
    else:
        key = next((l for l in labels if normalize_period(l) == normalize_period(label)), None)
        if key is None:
            return None

    rows: List[PeriodPayment] = [
        r for r in report.monthly_sheets[key] if r.status != PaymentStatus.NOT_APPLICABLE.value
    ]
    return {
        "period": key,
        "periods": labels,
        "rows": [r.to_dict() for r in rows],
        "unpaid": [r.to_dict() for r in rows if r.status != PaymentStatus.PAID.value],
    }


def build_overview(report: ParsedReport) -> Optional[Dict[str, Any]]:
    """
    KPIs, trends and chart series for the overview tab.

    The current period is the last one of the summary series.
    """
    series = report.dashboard
    if series is None or not series.entries:
        return None

    entries = series.entries
    current = entries[-1]
    previous = entries[-2] if len(entries) > 1 else None

    tenants = report.tenants
    mpire_count = sum(1 for t in tenants if t.paid_to == "MPIRE" and t.status != "Vacant")
    owner_count = sum(1 for t in tenants if t.paid_to == "OWNER" and t.status != "Vacant")
    vacant_count = sum(1 for t in tenants if t.status == "Vacant")

    return {
        "period": current.period,
        "total_units": report.vacancy.total_units if report.vacancy else len(tenants),
        "kpis": {
            "total_due": current.total_due,
            "total_collected": current.total_collected,
            "total_outstanding": current.total_outstanding,
            "collection_rate": current.collection_rate,
            "units_paid": current.units_paid,
            "unpaid_prev": current.unpaid_prev,
        },
        "trends": {
            "collection_rate_pct": _trend(current.collection_rate, previous.collection_rate) if previous else 0.0,
            "collected_pct": _trend(current.total_collected, previous.total_collected) if previous else 0.0,
        },
        "payer_split": {
            "MPIRE": {
                "due": current.mpire_due,
                "collected": current.mpire_collected,
                "outstanding": current.mpire_outstanding,
            },
            "OWNER": {
                "due": current.owner_due,
                "collected": current.owner_collected,
                "outstanding": current.owner_outstanding,
            },
        },
        "tenant_mix": {
            "MPIRE": mpire_count,
            "OWNER": owner_count,
            "Vacant": vacant_count,
        },
        "vacancy": report.vacancy.to_dict() if report.vacancy else None,
        "charts": {
            "revenue": [
                {"month": e.period, "Due": e.total_due, "Collected": e.total_collected}
                for e in entries
            ],
            "rate": [
                {"month": e.period, "Rate": (e.collection_rate or 0) * 100}
                for e in entries
            ],
            "split": [
                {"month": e.period, "MPIRE": e.mpire_collected or 0, "OWNER": e.owner_collected or 0}
                for e in entries
            ],
        },
        "at_risk_count": len(at_risk_tenants(report.payment_history)),
    }
