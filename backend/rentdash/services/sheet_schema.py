"""
Named-column schemas for the sheets of the rent collection workbook.

Each schema maps a field name to its 0-indexed column and names the fields
a header row must cover. Offsets are fixed by the report template.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple


SUMMARY_SHEET = "DASHBOARD"
ROSTER_SHEET = "Tenant Master"
HISTORY_SHEET = "Payment History"
VACANCY_SHEET = "Vacancy Tracker"

TOTAL_ROW_LABEL = "TOTAL"
NAME_PLACEHOLDER = "—"
DEFAULT_TENANT_STATUS = "Active"


@dataclass(frozen=True)
class ColumnSchema:
    """Column layout of one sheet kind."""
    sheet_kind: str
    header_marker: str
    columns: Dict[str, int]
    required: Tuple[str, ...] = ()

    def index(self, field_name: str) -> int:
        return self.columns[field_name]

    def cell(self, row: Sequence[Any], field_name: str) -> Any:
        idx = self.columns[field_name]
        return row[idx] if idx < len(row) else None

    def missing_columns(self, header_row: Sequence[Any]) -> List[str]:
        """Required fields whose column is blank or absent in the header row."""
        missing = []
        for name in self.required:
            idx = self.columns[name]
            if idx >= len(header_row) or header_row[idx] is None or str(header_row[idx]).strip() == "":
                missing.append(name)
        return missing

    def describe_missing(self, sheet_name: str, header_row: Sequence[Any]) -> List[str]:
        return [
            f"{sheet_name}: missing expected column '{name}' at index {self.columns[name]}"
            for name in self.missing_columns(header_row)
        ]


ROSTER_SCHEMA = ColumnSchema(
    sheet_kind="roster",
    header_marker="#",
    columns={
        "id": 0,
        "unit": 1,
        "name": 2,
        "rent": 4,
        "gateway": 8,
        "paidTo": 9,
        "status": 10,
    },
    required=("id", "unit", "rent"),
)

PERIOD_SCHEMA = ColumnSchema(
    sheet_kind="period",
    header_marker="Unit",
    columns={
        "unit": 0,
        "tenant": 1,
        "due": 2,
        "paid": 4,
        "balance": 5,
        "status": 6,
        "paidTo": 9,
        "daysLate": 10,
        "prevBalance": 11,
    },
    required=("unit", "due", "paid", "balance", "status"),
)

# Period columns start at "firstPeriod"; the two rollups follow the last period
HISTORY_SCHEMA = ColumnSchema(
    sheet_kind="history",
    header_marker="Unit",
    columns={
        "unit": 0,
        "tenant": 1,
        "firstPeriod": 2,
    },
    required=("unit",),
)

SUMMARY_MARKER = "Metric"

# Row label in the summary sheet -> summary record field
SUMMARY_ROW_LABELS: Dict[str, str] = {
    "Total Rent Due (OMR)": "totalDue",
    "Total Collected (OMR)": "totalCollected",
    "Total Outstanding (OMR)": "totalOutstanding",
    "Collection Rate": "collectionRate",
    "Units Paid / Total": "unitsPaid",
    "Unpaid from Prev. Month": "unpaidPrev",
    "MPIRE Rent Due": "mpireDue",
    "MPIRE Collected": "mpireCollected",
    "MPIRE Outstanding": "mpireOutstanding",
    "OWNER Rent Due": "ownerDue",
    "OWNER Collected": "ownerCollected",
    "OWNER Outstanding": "ownerOutstanding",
}


@dataclass(frozen=True)
class LabeledCell:
    """A value found next to a fixed label in a free-form sheet."""
    field_name: str
    label: str
    label_column: int
    default: float
    value_offset: int = 1

    @property
    def value_column(self) -> int:
        return self.label_column + self.value_offset


VACANCY_CELLS: List[LabeledCell] = [
    LabeledCell("totalUnits", "Total Units:", 0, 50),
    LabeledCell("vacant", "Currently Vacant:", 3, 0),
    LabeledCell("occupancy", "Occupancy Rate:", 6, 0),
]


def history_rollup_columns(period_count: int) -> Dict[str, int]:
    """Columns of the times-late / average-days-late rollups for N periods."""
    first = HISTORY_SCHEMA.index("firstPeriod")
    return {
        "timesLate": first + period_count,
        "avgDaysLate": first + period_count + 1,
    }


def find_header_row(rows: Sequence[Sequence[Any]], marker: str) -> int:
    """Index of the first row whose first cell equals `marker`, else -1."""
    for i, row in enumerate(rows):
        if row and row[0] == marker:
            return i
    return -1


def first_cell(row: Optional[Sequence[Any]]) -> Any:
    if not row:
        return None
    return row[0]


def is_total_row(row: Sequence[Any]) -> bool:
    value = first_cell(row)
    return value is not None and str(value).strip().upper() == TOTAL_ROW_LABEL
