"""
Weekly rent report email.

Builds the HTML summary sent to owners: KPIs of the report period, the
MPIRE/OWNER breakdown, units still unpaid or partial, and tenants with a
history of late payment.
"""
from datetime import date
from html import escape
from typing import Any, List, Optional

from rentdash.services.dashboard_service import at_risk_tenants
from rentdash.services.parsed_report import (
    ParsedReport,
    PaymentHistoryRow,
    PeriodPayment,
    PeriodSummary,
    SummarySeries,
    Tenant,
    VacancySnapshot,
)
from rentdash.services.periods import normalize_period, resolve_report_period, sort_periods
from rentdash.services.status_rules import PaymentStatus

CURRENCY = "OMR"

C_BG = "#0B0F1A"
C_CARD = "#111827"
C_BORDER = "#1e293b"
C_TEXT = "#f1f5f9"
C_MUTED = "#94a3b8"
C_DIM = "#64748b"
C_TEAL = "#14b8a6"
C_GREEN = "#22c55e"
C_AMBER = "#f59e0b"
C_RED = "#ef4444"


def fmt_amount(value: Any) -> str:
    """Thousands separators, at most three decimals ("12,500", "1,234.5")."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return escape(str(value))
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def fmt_pct(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "—"
    return f"{value * 100:.1f}%"


def rate_color(rate: Any) -> str:
    if not isinstance(rate, (int, float)):
        return C_RED
    if rate > 0.9:
        return C_GREEN
    if rate > 0.7:
        return C_AMBER
    return C_RED


def long_date(today: date) -> str:
    """Long US date, e.g. 'Monday, October 19, 2026'."""
    return f"{today.strftime('%A, %B')} {today.day}, {today.year}"


def short_date(today: date) -> str:
    return f"{today.strftime('%b')} {today.day}"


def report_period(report: ParsedReport, today: date = None) -> Optional[PeriodSummary]:
    """Summary entry the report covers, or None when there is no series."""
    series = report.dashboard
    if series is None or not series.entries:
        return None
    idx = resolve_report_period(series.months, today)
    return series.entries[idx]


def unpaid_rows(report: ParsedReport, period: str) -> List[PeriodPayment]:
    """
    Unpaid / partial rows of the report period's sheet.

    Falls back to the latest period sheet when the period has none.
    """
    labels = sort_periods(report.monthly_sheets.keys())
    key = next((l for l in labels if normalize_period(l) == normalize_period(period)), None)
    if key is None:
        key = labels[-1] if labels else None
    if key is None:
        return []
    return [
        p for p in report.monthly_sheets[key]
        if p.status not in (PaymentStatus.PAID.value, PaymentStatus.NOT_APPLICABLE.value)
    ]


def build_subject(period: str, today: date = None, sample: bool = False) -> str:
    if today is None:
        today = date.today()
    prefix = "[SAMPLE DATA] " if sample else ""
    return f"{prefix}MPIRE Weekly Report — {period} · {short_date(today)}"


def _kpi_card(label: str, value: str, accent: str, value_color: str, padding: str) -> str:
    return f"""
      <td width="50%" style="padding:{padding};">
        <div style="background:{C_CARD};border:1px solid {C_BORDER};border-radius:12px;padding:14px 16px;border-left:4px solid {accent};">
          <p style="color:{C_MUTED};font-size:9px;font-weight:600;letter-spacing:0.08em;text-transform:uppercase;margin:0;">{label}</p>
          <p style="color:{value_color};font-size:20px;font-weight:700;margin:4px 0 0;">{value}</p>
        </div>
      </td>"""


def _money(value: Any) -> str:
    return f'{fmt_amount(value)} <span style="font-size:11px;color:{C_MUTED};">{CURRENCY}</span>'


def _breakdown_row(label: str, color: str, background: str, due: Any, collected: Any, outstanding: Any) -> str:
    return f"""
      <tr>
        <td style="padding:6px 8px 6px 0;"><span style="padding:2px 8px;border-radius:10px;font-size:10px;font-weight:600;background:{background};color:{color};">{label}</span></td>
        <td style="color:{C_TEXT};font-size:13px;font-weight:600;text-align:right;padding:6px 0;">{fmt_amount(due)}</td>
        <td style="color:{C_GREEN};font-size:13px;font-weight:600;text-align:right;padding:6px 0;">{fmt_amount(collected)}</td>
        <td style="color:{C_RED};font-size:13px;font-weight:600;text-align:right;padding:6px 0;">{fmt_amount(outstanding)}</td>
      </tr>"""


def _unpaid_section(period: str, rows: List[PeriodPayment]) -> str:
    if not rows:
        return ""
    body = []
    for p in rows:
        partial = p.status == PaymentStatus.PARTIAL.value
        badge_bg = "rgba(245,158,11,0.15)" if partial else "rgba(239,68,68,0.15)"
        badge_fg = C_AMBER if partial else C_RED
        badge = "◐ Partial" if partial else "✗ Pending"
        body.append(f"""
      <tr style="border-bottom:1px solid {C_BORDER};">
        <td style="color:{C_TEXT};font-weight:600;padding:6px 0;">{escape(p.unit)}</td>
        <td style="color:{C_MUTED};padding:6px 0;">{escape(p.tenant)}</td>
        <td style="color:{C_RED};font-weight:600;text-align:right;padding:6px 0;">{fmt_amount(p.balance)}</td>
        <td style="text-align:right;padding:6px 0;"><span style="padding:2px 6px;border-radius:10px;font-size:9px;font-weight:600;background:{badge_bg};color:{badge_fg};">{badge}</span></td>
      </tr>""")
    return f"""
  <div style="background:{C_CARD};border:1px solid {C_BORDER};border-radius:12px;padding:16px;margin-bottom:16px;">
    <p style="color:{C_MUTED};font-size:9px;font-weight:600;letter-spacing:0.08em;text-transform:uppercase;margin:0 0 10px;">⚠ Unpaid / Partial — {escape(period)} ({len(rows)})</p>
    <table width="100%" cellpadding="0" cellspacing="0" style="font-size:11px;">
      <tr style="border-bottom:1px solid {C_BORDER};">
        <td style="color:{C_MUTED};font-size:9px;padding:6px 0;font-weight:500;">Unit</td>
        <td style="color:{C_MUTED};font-size:9px;padding:6px 0;font-weight:500;">Tenant</td>
        <td style="color:{C_MUTED};font-size:9px;padding:6px 0;text-align:right;font-weight:500;">Balance</td>
        <td style="color:{C_MUTED};font-size:9px;padding:6px 0;text-align:right;font-weight:500;">Status</td>
      </tr>{''.join(body)}
    </table>
  </div>"""


def _at_risk_section(rows: List[PaymentHistoryRow]) -> str:
    if not rows:
        return ""
    body = []
    for t in rows:
        name = f'<span style="color:{C_MUTED};font-size:11px;"> — {escape(t.tenant)}</span>' if t.tenant else ""
        avg = (
            f'<br/><span style="color:{C_AMBER};font-size:10px;">Avg {fmt_amount(t.avg_days_late)}d late</span>'
            if t.avg_days_late > 0 else ""
        )
        body.append(f"""
    <div style="padding:8px 0;border-bottom:1px solid {C_BORDER};">
      <span style="color:{C_TEXT};font-weight:600;">Unit {escape(t.unit)}</span>{name}
      <span style="float:right;padding:2px 6px;border-radius:10px;font-size:9px;font-weight:600;background:rgba(239,68,68,0.15);color:{C_RED};">{fmt_amount(t.times_late)}x late</span>{avg}
    </div>""")
    return f"""
  <div style="background:{C_CARD};border:1px solid {C_BORDER};border-radius:12px;padding:16px;margin-bottom:16px;">
    <p style="color:{C_MUTED};font-size:9px;font-weight:600;letter-spacing:0.08em;text-transform:uppercase;margin:0 0 10px;">🔴 At-Risk Tenants (2+ Late)</p>{''.join(body)}
  </div>"""


def build_email_html(report: ParsedReport, today: date = None) -> str:
    """
    Render the weekly report for `report`.

    The report period comes from resolve_report_period(): the previous month
    on the 1st, otherwise the current month, falling back to the latest
    period in the summary series.

    Raises ValueError when the report has no summary series.
    """
    if today is None:
        today = date.today()
    current = report_period(report, today)
    if current is None:
        raise ValueError("Report has no summary data")

    period = current.period
    total_units = report.vacancy.total_units if report.vacancy else len(report.tenants)
    rate = current.collection_rate
    rc = rate_color(rate)

    unpaid = unpaid_rows(report, period)
    at_risk = at_risk_tenants(report.payment_history)

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"/><meta name="viewport" content="width=device-width,initial-scale=1"/></head>
<body style="margin:0;padding:0;background:{C_BG};font-family:'Helvetica Neue',Arial,sans-serif;color:{C_TEXT};">
<div style="max-width:600px;margin:0 auto;padding:24px 16px;">

  <div style="text-align:center;margin-bottom:24px;">
    <h1 style="color:{C_TEXT};font-size:20px;font-weight:700;margin:12px 0 4px;">Weekly Rent Report</h1>
    <p style="color:{C_MUTED};font-size:12px;margin:0;">{escape(period)} · {fmt_amount(total_units)} Units · Generated {long_date(today)}</p>
  </div>

  <table width="100%" cellpadding="0" cellspacing="0" style="margin-bottom:16px;">
    <tr>{_kpi_card("Rent Due", _money(current.total_due), C_TEAL, C_TEXT, "0 4px 8px 0")}{_kpi_card("Collected", _money(current.total_collected), C_GREEN, C_GREEN, "0 0 8px 4px")}
    </tr>
    <tr>{_kpi_card("Outstanding", _money(current.total_outstanding), C_RED, C_RED, "0 4px 0 0")}{_kpi_card("Collection Rate", fmt_pct(rate), rc, rc, "0 0 0 4px")}
    </tr>
  </table>

  <div style="background:{C_CARD};border:1px solid {C_BORDER};border-radius:12px;padding:16px;margin-bottom:16px;">
    <p style="color:{C_MUTED};font-size:9px;font-weight:600;letter-spacing:0.08em;text-transform:uppercase;margin:0 0 12px;">Breakdown</p>
    <table width="100%" cellpadding="0" cellspacing="0">
      <tr>
        <td></td>
        <td style="color:{C_MUTED};font-size:9px;text-align:right;padding-bottom:6px;">Due</td>
        <td style="color:{C_MUTED};font-size:9px;text-align:right;padding-bottom:6px;">Collected</td>
        <td style="color:{C_MUTED};font-size:9px;text-align:right;padding-bottom:6px;">Outstanding</td>
      </tr>{_breakdown_row("MPIRE", "#6366f1", "rgba(99,102,241,0.15)", current.mpire_due, current.mpire_collected, current.mpire_outstanding)}{_breakdown_row("OWNER", "#f97316", "rgba(249,115,22,0.15)", current.owner_due, current.owner_collected, current.owner_outstanding)}
    </table>
  </div>
{_unpaid_section(period, unpaid)}
{_at_risk_section(at_risk)}

  <div style="text-align:center;padding:16px 0;border-top:1px solid {C_BORDER};">
    <p style="color:{C_DIM};font-size:9px;margin:0;">MPIRE Property Management · Muscat, Oman</p>
    <p style="color:{C_DIM};font-size:9px;margin:4px 0 0;">This is an automated weekly report from your Bousher Dashboard.</p>
  </div>

</div>
</body>
</html>"""


# Used for test sends before any workbook has been uploaded
SAMPLE_REPORT = ParsedReport(
    dashboard=SummarySeries(entries=[
        PeriodSummary(
            period="JANUARY 26", total_due=12500, total_collected=11200, total_outstanding=1300,
            collection_rate=0.896, units_paid="44/50", unpaid_prev=800,
            mpire_due=7500, mpire_collected=7100, mpire_outstanding=400,
            owner_due=5000, owner_collected=4100, owner_outstanding=900,
        ),
        PeriodSummary(
            period="FEBRUARY 26", total_due=12500, total_collected=10800, total_outstanding=1700,
            collection_rate=0.864, units_paid="42/50", unpaid_prev=1300,
            mpire_due=7500, mpire_collected=6800, mpire_outstanding=700,
            owner_due=5000, owner_collected=4000, owner_outstanding=1000,
        ),
    ]),
    tenants=[
        Tenant(id=1, unit="G-01", name="Ahmed Al-Rashid", rent=250, gateway="Bank Transfer", paid_to="MPIRE", status="Active"),
        Tenant(id=2, unit="G-02", name="Fatima Hassan", rent=250, gateway="Bank Transfer", paid_to="MPIRE", status="Active"),
        Tenant(id=3, unit="1-01", name="Omar Khalil", rent=250, gateway="Cash", paid_to="OWNER", status="Active"),
    ],
    months=["JANUARY 26", "FEBRUARY 26"],
    monthly_sheets={
        "FEBRUARY 26": [
            PeriodPayment(unit="G-01", tenant="Ahmed Al-Rashid", due=250, paid=250, balance=0, status="Paid", paid_to="MPIRE", days_late=0, prev_balance=0),
            PeriodPayment(unit="G-02", tenant="Fatima Hassan", due=250, paid=100, balance=150, status="Partial", paid_to="MPIRE", days_late=5, prev_balance=0),
            PeriodPayment(unit="1-01", tenant="Omar Khalil", due=250, paid=0, balance=250, status="Pending", paid_to="OWNER", days_late=12, prev_balance=200),
        ],
    },
    payment_history=[
        PaymentHistoryRow(unit="G-01", tenant="Ahmed Al-Rashid", history=["✓", "✓"], times_late=0, avg_days_late=0),
        PaymentHistoryRow(unit="G-02", tenant="Fatima Hassan", history=["✓", "◐"], times_late=1, avg_days_late=5),
        PaymentHistoryRow(unit="1-01", tenant="Omar Khalil", history=["✗", "✗"], times_late=2, avg_days_late=15),
    ],
    vacancy=VacancySnapshot(total_units=50, vacant=2, occupancy=0.96),
)
