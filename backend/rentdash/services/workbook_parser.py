"""
Parser for the rent collection workbook (GENERAL_REPORT.xlsx).

Reads every sheet as a raw grid, finds each table by its header marker,
extracts typed rows and finally reconciles the summary series with the
per-period payment sheets.

Sheets:
- DASHBOARD: summary metrics, one column per period
- Tenant Master: tenant roster
- Payment History: one status cell per period for each unit
- "<MONTH> <yy>": one payment sheet per period
- Vacancy Tracker: labeled totals (units, vacant, occupancy)
"""
import io
import logging
import math
import numbers
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from rentdash.services.parsed_report import (
    Number,
    ParsedReport,
    PaymentHistoryRow,
    PeriodPayment,
    PeriodSummary,
    SummarySeries,
    SUMMARY_FIELDS,
    Tenant,
    VacancySnapshot,
)
from rentdash.services.periods import is_period_sheet
from rentdash.services.reconciler import check_summary_totals, reconcile_summary
from rentdash.services.sheet_schema import (
    DEFAULT_TENANT_STATUS,
    HISTORY_SCHEMA,
    HISTORY_SHEET,
    NAME_PLACEHOLDER,
    PERIOD_SCHEMA,
    ROSTER_SCHEMA,
    ROSTER_SHEET,
    SUMMARY_MARKER,
    SUMMARY_ROW_LABELS,
    SUMMARY_SHEET,
    VACANCY_CELLS,
    VACANCY_SHEET,
    find_header_row,
    first_cell,
    history_rollup_columns,
    is_total_row,
)
from rentdash.services.status_rules import classify_history_mark, classify_payment_status

logger = logging.getLogger(__name__)

Grid = List[List[Any]]


class WorkbookParseError(Exception):
    """The uploaded buffer is not a readable spreadsheet document."""


def to_number(value: Any) -> Number:
    """Coerce a cell to a number; anything non-numeric becomes 0."""
    if value is None or isinstance(value, bool):
        return int(bool(value))
    if isinstance(value, numbers.Real):
        number = float(value)
        if not math.isfinite(number):
            return 0
        return int(value) if isinstance(value, numbers.Integral) else number
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return 0
        if not math.isfinite(number):
            return 0
        return int(number) if number.is_integer() else number
    return 0


def to_text(value: Any, default: str = "") -> str:
    """Render a cell as text; integral floats lose their trailing '.0'."""
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value != "" else None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def _cell(row: Sequence[Any], idx: int) -> Any:
    return row[idx] if 0 <= idx < len(row) else None


def read_workbook(content: bytes) -> Dict[str, Grid]:
    """
    Read all sheets of an .xlsx/.xls buffer into raw grids.

    Blank cells become None. Raises WorkbookParseError when the buffer is
    not a spreadsheet.
    """
    try:
        frames = pd.read_excel(
            io.BytesIO(content),
            sheet_name=None,
            header=None,
            dtype=object,
            na_filter=False,
        )
    except Exception as e:
        raise WorkbookParseError(f"Failed to parse document: {e}") from e

    sheets: Dict[str, Grid] = {}
    for name, df in frames.items():
        sheets[str(name)] = [
            [_clean_cell(v) for v in row]
            for row in df.itertuples(index=False, name=None)
        ]
    return sheets


class WorkbookParser:
    """Normalizes one rent collection workbook into a ParsedReport."""

    def __init__(self, content: bytes):
        self.content = content
        self.sheets: Dict[str, Grid] = {}
        self.diagnostics: List[str] = []

    def parse(self) -> ParsedReport:
        """Parse the workbook. Only an unreadable document raises."""
        self.sheets = read_workbook(self.content)
        self.diagnostics = []

        report = ParsedReport()

        summary = self._parse_summary(self.sheets.get(SUMMARY_SHEET))
        declared_periods = summary.months if summary is not None else []

        report.tenants = self._parse_tenants(self.sheets.get(ROSTER_SHEET))
        report.payment_history = self._parse_payment_history(
            self.sheets.get(HISTORY_SHEET), declared_periods
        )

        for name, grid in self.sheets.items():
            if not is_period_sheet(name):
                continue
            payments = self._parse_period_sheet(name, grid)
            if payments is not None:
                report.monthly_sheets[name] = payments

        report.vacancy = self._parse_vacancy(self.sheets.get(VACANCY_SHEET))

        self.diagnostics.extend(check_summary_totals(summary, report.monthly_sheets))
        summary, added = reconcile_summary(summary, report.monthly_sheets)
        report.dashboard = summary
        report.months = summary.months if summary is not None else []

        logger.info(
            f"[PARSER] Parsed workbook: {len(report.months)} periods "
            f"({len(added)} derived), {len(report.tenants)} tenants, "
            f"{len(report.monthly_sheets)} period sheets"
        )
        return report

    def _note(self, message: str):
        logger.warning(f"[PARSER] {message}")
        self.diagnostics.append(message)

    # ── Summary ──────────────────────────────────────────────────────────

    def _parse_summary(self, grid: Optional[Grid]) -> Optional[SummarySeries]:
        if grid is None:
            logger.warning(f"[PARSER] Sheet '{SUMMARY_SHEET}' not found")
            return None

        hi = find_header_row(grid, SUMMARY_MARKER)
        if hi < 0:
            logger.warning(f"[PARSER] No '{SUMMARY_MARKER}' header in '{SUMMARY_SHEET}'")
            return None

        months = [to_text(v) for v in grid[hi][1:] if v]
        entries = [PeriodSummary(period=m) for m in months]

        for row in grid[hi + 1:]:
            label = first_cell(row)
            key = SUMMARY_ROW_LABELS.get(label) if isinstance(label, str) else None
            if key is None:
                continue
            attr = SUMMARY_FIELDS[key]
            for i, entry in enumerate(entries):
                raw = _cell(row, i + 1)
                if key == "unitsPaid":
                    value = to_text(raw, "0")
                else:
                    value = to_number(raw)
                setattr(entry, attr, value)

        return SummarySeries(entries=entries)

    # ── Tenant roster ────────────────────────────────────────────────────

    def _parse_tenants(self, grid: Optional[Grid]) -> List[Tenant]:
        if grid is None:
            logger.warning(f"[PARSER] Sheet '{ROSTER_SHEET}' not found")
            return []

        hi = find_header_row(grid, ROSTER_SCHEMA.header_marker)
        if hi < 0:
            logger.warning(f"[PARSER] No header row in '{ROSTER_SHEET}'")
            return []
        for message in ROSTER_SCHEMA.describe_missing(ROSTER_SHEET, grid[hi]):
            self._note(message)

        s = ROSTER_SCHEMA
        tenants = []
        for row in grid[hi + 1:]:
            if first_cell(row) is None or is_total_row(row):
                continue
            tenants.append(Tenant(
                id=int(to_number(s.cell(row, "id"))),
                unit=to_text(s.cell(row, "unit")),
                name=to_text(s.cell(row, "name"), NAME_PLACEHOLDER),
                rent=to_number(s.cell(row, "rent")),
                gateway=to_text(s.cell(row, "gateway")),
                paid_to=to_text(s.cell(row, "paidTo")),
                status=to_text(s.cell(row, "status"), DEFAULT_TENANT_STATUS),
            ))
        return tenants

    # ── Payment history ──────────────────────────────────────────────────

    def _parse_payment_history(self, grid: Optional[Grid], periods: List[str]) -> List[PaymentHistoryRow]:
        """
        Extract the payment history grid.

        `periods` are the periods declared by the summary sheet; the history
        sheet has exactly one status column per declared period, followed by
        the times-late and average-days-late rollups.
        """
        if grid is None:
            logger.warning(f"[PARSER] Sheet '{HISTORY_SHEET}' not found")
            return []

        hi = find_header_row(grid, HISTORY_SCHEMA.header_marker)
        if hi < 0:
            logger.warning(f"[PARSER] No header row in '{HISTORY_SHEET}'")
            return []
        for message in HISTORY_SCHEMA.describe_missing(HISTORY_SHEET, grid[hi]):
            self._note(message)

        first = HISTORY_SCHEMA.index("firstPeriod")
        rollups = history_rollup_columns(len(periods))

        rows = []
        for row in grid[hi + 1:]:
            if first_cell(row) is None or is_total_row(row):
                continue
            rows.append(PaymentHistoryRow(
                unit=to_text(HISTORY_SCHEMA.cell(row, "unit")),
                tenant=to_text(HISTORY_SCHEMA.cell(row, "tenant")),
                history=[classify_history_mark(_cell(row, first + j)) for j in range(len(periods))],
                times_late=to_number(_cell(row, rollups["timesLate"])),
                avg_days_late=to_number(_cell(row, rollups["avgDaysLate"])),
            ))
        return rows

    # ── Per-period payment sheets ────────────────────────────────────────

    def _parse_period_sheet(self, name: str, grid: Grid) -> Optional[List[PeriodPayment]]:
        hi = find_header_row(grid, PERIOD_SCHEMA.header_marker)
        if hi < 0:
            logger.warning(f"[PARSER] No header row in period sheet '{name}', skipping")
            return None
        for message in PERIOD_SCHEMA.describe_missing(name, grid[hi]):
            self._note(message)

        s = PERIOD_SCHEMA
        payments = []
        for row in grid[hi + 1:]:
            if first_cell(row) is None or is_total_row(row):
                continue
            payments.append(PeriodPayment(
                unit=to_text(s.cell(row, "unit")),
                tenant=to_text(s.cell(row, "tenant"), NAME_PLACEHOLDER),
                due=to_number(s.cell(row, "due")),
                paid=to_number(s.cell(row, "paid")),
                balance=to_number(s.cell(row, "balance")),
                status=classify_payment_status(to_text(s.cell(row, "status"))),
                paid_to=to_text(s.cell(row, "paidTo")),
                days_late=to_number(s.cell(row, "daysLate")),
                prev_balance=to_number(s.cell(row, "prevBalance")),
            ))
        return payments

    # ── Vacancy ──────────────────────────────────────────────────────────

    def _parse_vacancy(self, grid: Optional[Grid]) -> VacancySnapshot:
        values = {c.field_name: c.default for c in VACANCY_CELLS}
        if grid is None:
            logger.info(f"[PARSER] Sheet '{VACANCY_SHEET}' not found, using default vacancy")
            return VacancySnapshot(**_vacancy_kwargs(values))

        for row in grid:
            if not row:
                continue
            for c in VACANCY_CELLS:
                if _cell(row, c.label_column) == c.label:
                    values[c.field_name] = to_number(_cell(row, c.value_column)) or c.default
        return VacancySnapshot(**_vacancy_kwargs(values))


def _vacancy_kwargs(values: Dict[str, Number]) -> Dict[str, Number]:
    return {
        'total_units': values["totalUnits"],
        'vacant': values["vacant"],
        'occupancy': values["occupancy"],
    }


def parse_workbook(content: bytes) -> ParsedReport:
    """
    Parse a rent collection workbook buffer.

    Args:
        content: Raw bytes of an .xlsx/.xls file

    Returns:
        ParsedReport with summary series, tenants, payment sheets, history
        and vacancy
    """
    return WorkbookParser(content).parse()
