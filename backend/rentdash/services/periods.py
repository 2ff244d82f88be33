"""
Billing period labels ("FEBRUARY 26") and their chronological ordering.
Also picks the period a report is sent for, based on the send date.
"""
import re
from datetime import date
from typing import Iterable, List, Optional, Tuple

MONTHS = [
    "JANUARY", "FEBRUARY", "MARCH", "APRIL", "MAY", "JUNE",
    "JULY", "AUGUST", "SEPTEMBER", "OCTOBER", "NOVEMBER", "DECEMBER",
]

# Sheet names like "FEBRUARY 26" hold one billing period each
PERIOD_SHEET_PATTERN = re.compile(
    r"^(" + "|".join(MONTHS) + r")\s+\d{2}$",
    re.IGNORECASE,
)

_PERIOD_LABEL = re.compile(r"^\s*([A-Za-z]+)\s+(\d{1,4})\s*$")


def normalize_period(label: str) -> str:
    """Uppercase, whitespace-trimmed form used for period equality."""
    return str(label).strip().upper()


def is_period_sheet(sheet_name: str) -> bool:
    return bool(PERIOD_SHEET_PATTERN.match(str(sheet_name)))


def parse_period(label: str) -> Optional[Tuple[int, int]]:
    """
    Parse a period label into (year, month_index).

    month_index is 0-based (January=0). Returns None when the label is not
    "<MONTH NAME> <year>".
    """
    match = _PERIOD_LABEL.match(str(label))
    if not match:
        return None
    month = match.group(1).upper()
    if month not in MONTHS:
        return None
    return int(match.group(2)), MONTHS.index(month)


def period_sort_key(label: str) -> Tuple[int, int]:
    # Unparseable labels lead; sorted() keeps their relative order
    parsed = parse_period(label)
    if parsed is None:
        return (-1, -1)
    return parsed


def sort_periods(labels: Iterable[str]) -> List[str]:
    return sorted(labels, key=period_sort_key)


def period_label(year: int, month_index: int) -> str:
    """Build "<MONTH> <yy>" from a full year and a 0-based month index."""
    return f"{MONTHS[month_index]} {str(year)[-2:]}"


def target_period_label(today: date = None) -> str:
    """
    Label of the period a report sent on `today` covers.

    - 1st of the month: the previous month
    - any other day: the current month
    """
    if today is None:
        today = date.today()

    month_index = today.month - 1
    year = today.year
    if today.day == 1:
        month_index -= 1
        if month_index < 0:
            month_index = 11
            year -= 1
    return period_label(year, month_index)


def resolve_report_period(months: List[str], today: date = None) -> int:
    """
    Index into `months` of the report period.

    Falls back to the last period when the target period is not present.
    Returns -1 for an empty list.
    """
    target = target_period_label(today)
    for i, label in enumerate(months):
        if normalize_period(label) == target:
            return i
    return len(months) - 1
