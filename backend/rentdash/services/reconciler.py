"""
Summary reconciliation.

The DASHBOARD sheet only carries summary columns for the periods somebody
typed in. Any period that exists as its own payment sheet but is missing
from the summary gets its figures derived from the per-unit rows.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from rentdash.services.parsed_report import PeriodPayment, PeriodSummary, SummarySeries
from rentdash.services.periods import normalize_period, sort_periods
from rentdash.services.status_rules import PaymentStatus

logger = logging.getLogger(__name__)

PAYER_MPIRE = "MPIRE"
PAYER_OWNER = "OWNER"

# Largest summary vs per-period difference treated as rounding noise
TOTAL_TOLERANCE = 0.01


def _payer(row: PeriodPayment) -> str:
    return str(row.paid_to or "").strip().upper()


def _sums(rows: Iterable[PeriodPayment]) -> Tuple[float, float, float]:
    due = collected = outstanding = 0
    for row in rows:
        due += row.due
        collected += row.paid
        outstanding += row.balance
    return due, collected, outstanding


def summarize_period(label: str, rows: List[PeriodPayment]) -> PeriodSummary:
    """Derive the twelve summary metrics of a period from its payment rows."""
    total_due, total_collected, total_outstanding = _sums(rows)
    mpire_due, mpire_collected, mpire_outstanding = _sums(r for r in rows if _payer(r) == PAYER_MPIRE)
    owner_due, owner_collected, owner_outstanding = _sums(r for r in rows if _payer(r) == PAYER_OWNER)

    paid_count = sum(1 for r in rows if r.status == PaymentStatus.PAID.value)
    billable_count = sum(1 for r in rows if r.status != PaymentStatus.NOT_APPLICABLE.value)

    return PeriodSummary(
        period=label,
        total_due=total_due,
        total_collected=total_collected,
        total_outstanding=total_outstanding,
        collection_rate=total_collected / total_due if total_due > 0 else 0,
        units_paid=f"{paid_count}/{billable_count}",
        unpaid_prev=sum(r.prev_balance for r in rows),
        mpire_due=mpire_due,
        mpire_collected=mpire_collected,
        mpire_outstanding=mpire_outstanding,
        owner_due=owner_due,
        owner_collected=owner_collected,
        owner_outstanding=owner_outstanding,
    )


def reconcile_summary(
    series: Optional[SummarySeries],
    monthly_sheets: Dict[str, List[PeriodPayment]],
) -> Tuple[Optional[SummarySeries], List[str]]:
    """
    Add derived entries for periods that only exist as payment sheets.

    Returns the (possibly new) series and the labels that were added. A
    missing series is created when there is at least one period sheet.
    The series always leaves here in chronological order.
    """
    seen = set(normalize_period(m) for m in series.months) if series is not None else set()
    missing = []
    for label in sort_periods(monthly_sheets.keys()):
        key = normalize_period(label)
        if key in seen:
            continue
        seen.add(key)
        missing.append(label)

    if missing and series is None:
        series = SummarySeries()

    for label in missing:
        entry = summarize_period(label, monthly_sheets[label])
        series.append(entry)
        logger.info(
            f"[RECONCILE] Derived {label}: due={entry.total_due}, "
            f"collected={entry.total_collected}, rate={entry.collection_rate:.3f}"
        )

    if series is not None:
        series.sort_chronologically()
    return series, missing


def check_summary_totals(
    series: Optional[SummarySeries],
    monthly_sheets: Dict[str, List[PeriodPayment]],
) -> List[str]:
    """
    Compare summary totals with the sums of the matching payment sheets.

    The summary figures are kept as they are; mismatches are only reported.
    """
    if series is None:
        return []

    problems = []
    for label, rows in monthly_sheets.items():
        entry = series.get(label)
        if entry is None:
            continue
        derived = summarize_period(label, rows)
        for attr, title in (
            ("total_due", "total due"),
            ("total_collected", "total collected"),
            ("total_outstanding", "total outstanding"),
        ):
            stated = getattr(entry, attr)
            computed = getattr(derived, attr)
            if not isinstance(stated, (int, float)):
                continue
            if abs(stated - computed) > TOTAL_TOLERANCE:
                message = f"{label}: summary {title} {stated} differs from sheet sum {computed}"
                logger.warning(f"[RECONCILE] {message}")
                problems.append(message)
    return problems
