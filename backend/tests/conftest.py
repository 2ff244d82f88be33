"""
Test fixtures for the rent collection dashboard backend.

Workbooks are built in memory with openpyxl so tests never depend on a real
GENERAL_REPORT.xlsx, and the report store is pointed at a temporary
directory so tests never touch stored production data.
"""
import io
from typing import Any, Dict, List, Optional, Sequence

import pytest
from httpx import AsyncClient, ASGITransport
from openpyxl import Workbook

from rentdash.config import get_settings
from rentdash.main import app
from rentdash.services.report_store import ReportStore, get_report_store


# ── Workbook builders ──────────────────────────────────────────────────

SUMMARY_LABELS = [
    "Total Rent Due (OMR)",
    "Total Collected (OMR)",
    "Total Outstanding (OMR)",
    "Collection Rate",
    "Units Paid / Total",
    "Unpaid from Prev. Month",
    "MPIRE Rent Due",
    "MPIRE Collected",
    "MPIRE Outstanding",
    "OWNER Rent Due",
    "OWNER Collected",
    "OWNER Outstanding",
]

ROSTER_HEADER = ["#", "Unit", "Tenant Name", "Phone", "Monthly Rent", "Lease Start",
                 "Lease End", "Deposit", "Gateway", "Paid To", "Status"]

PERIOD_HEADER = ["Unit", "Tenant", "Rent Due", "Due Date", "Paid", "Balance", "Status",
                 "Paid Date", "Gateway", "Paid To", "Days Late", "Prev. Balance"]


def build_workbook(sheets: Dict[str, List[Sequence[Any]]]) -> bytes:
    """Write {sheet name: rows} to an in-memory .xlsx and return its bytes."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def summary_rows(months: List[str], values: Dict[str, List[Any]]) -> List[List[Any]]:
    """DASHBOARD sheet with a title block above the 'Metric' header."""
    rows: List[List[Any]] = [
        ["MPIRE RENT COLLECTION REPORT"],
        [],
        ["Metric"] + list(months),
    ]
    for label in SUMMARY_LABELS:
        if label in values:
            rows.append([label] + list(values[label]))
    return rows


def roster_row(id: Any, unit: str, name: Optional[str], rent: Any, gateway: str,
               paid_to: str, status: Optional[str] = "Active") -> List[Any]:
    return [id, unit, name, None, rent, None, None, None, gateway, paid_to, status]


def period_row(unit: str, tenant: Optional[str], due: Any, paid: Any, balance: Any, status: Any,
               paid_to: str = "MPIRE", days_late: Any = 0, prev_balance: Any = 0) -> List[Any]:
    return [unit, tenant, due, None, paid, balance, status, None, None, paid_to, days_late, prev_balance]


def period_rows(rows: List[List[Any]], title: str = "") -> List[List[Any]]:
    return [[title or "Monthly Collection"], [], PERIOD_HEADER] + rows


def history_rows(months: List[str], rows: List[List[Any]]) -> List[List[Any]]:
    return [["Payment History"], ["Unit", "Tenant"] + list(months) + ["Times Late", "Avg Days Late"]] + rows


def vacancy_rows(total: Any = 50, vacant: Any = 2, occupancy: Any = 0.96) -> List[List[Any]]:
    return [
        ["Vacancy Tracker"],
        [],
        ["Total Units:", total, None, "Currently Vacant:", vacant, None, "Occupancy Rate:", occupancy],
    ]


def standard_sheets() -> Dict[str, List[List[Any]]]:
    """
    A complete workbook: JANUARY 26 is in the summary, FEBRUARY 26 only
    exists as a payment sheet.
    """
    return {
        "DASHBOARD": summary_rows(["JANUARY 26"], {
            "Total Rent Due (OMR)": [750],
            "Total Collected (OMR)": [700],
            "Total Outstanding (OMR)": [50],
            "Collection Rate": [0.9333],
            "Units Paid / Total": ["2/3"],
            "Unpaid from Prev. Month": [0],
            "MPIRE Rent Due": [500],
            "MPIRE Collected": [450],
            "MPIRE Outstanding": [50],
            "OWNER Rent Due": [250],
            "OWNER Collected": [250],
            "OWNER Outstanding": [0],
        }),
        "Tenant Master": [
            ["TENANT MASTER"],
            [],
            ROSTER_HEADER,
            roster_row(1, "G-01", "Ahmed Al-Rashid", 250, "Bank Transfer", "MPIRE"),
            roster_row(2, "G-02", "Fatima Hassan", 250, "Bank Transfer", "MPIRE"),
            roster_row(3, "1-01", "Omar Khalil", 250, "Cash", "OWNER"),
            roster_row(4, "1-02", None, 0, "", "OWNER", "Vacant"),
            ["TOTAL", 4, None, None, 750],
        ],
        "Payment History": history_rows(["JANUARY 26"], [
            ["G-01", "Ahmed Al-Rashid", "✓ Paid", 0, 0],
            ["G-02", "Fatima Hassan", "Partially Paid", 2, 6.5],
            ["1-01", "Omar Khalil", "Pending", 3, 12],
        ]),
        "JANUARY 26": period_rows([
            period_row("G-01", "Ahmed Al-Rashid", 250, 250, 0, "Paid"),
            period_row("G-02", "Fatima Hassan", 250, 200, 50, "Partially Paid"),
            period_row("1-01", "Omar Khalil", 250, 250, 0, "Paid", paid_to="OWNER"),
            period_row("1-02", None, 0, 0, 0, "N/A", paid_to="OWNER"),
            period_row("TOTAL", None, 750, 700, 50, None, paid_to=""),
        ]),
        "FEBRUARY 26": period_rows([
            period_row("G-01", "Ahmed Al-Rashid", 250, 250, 0, "Paid"),
            period_row("G-02", "Fatima Hassan", 250, 100, 150, "Partially Paid — balance owed",
                       days_late=5, prev_balance=50),
            period_row("1-01", "Omar Khalil", 250, 0, 250, "Pending", paid_to="OWNER", days_late=12),
            period_row("1-02", None, 0, 0, 0, "N/A", paid_to="OWNER"),
            period_row("Total", None, 750, 350, 400, None, paid_to=""),
        ]),
        "Vacancy Tracker": vacancy_rows(),
    }


# ── Fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def standard_workbook() -> bytes:
    return build_workbook(standard_sheets())


@pytest.fixture
def report_store(tmp_path):
    return ReportStore(tmp_path / "data", "rent-dashboard.json")


@pytest.fixture
def settings_env(monkeypatch):
    """Set environment-backed settings for one test and reset the cache."""
    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(key.upper(), value)
        get_settings.cache_clear()
    yield _apply
    get_settings.cache_clear()


@pytest.fixture
async def client(report_store):
    """Async test client for the FastAPI app, backed by a temporary store."""
    app.dependency_overrides[get_report_store] = lambda: report_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
