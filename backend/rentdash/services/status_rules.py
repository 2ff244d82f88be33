"""
Status classification for payment cells.

Raw status text in the workbook is free-form ("Paid", "Partially Paid —
balance owed", "Pending (follow up)"). Each classifier walks an ordered rule
list and returns the result of the first rule that matches.
"""
from enum import Enum
from typing import Any, List, NamedTuple, Optional


class PaymentStatus(str, Enum):
    """Status of one unit's payment for one period."""
    PAID = "Paid"
    PENDING = "Pending"
    PARTIAL = "Partial"
    NOT_APPLICABLE = "N/A"


class HistoryMark(str, Enum):
    """Glyph shown per period in the payment history grid."""
    PAID = "✓"
    PENDING = "✗"
    PARTIAL = "◐"
    UNKNOWN = "—"


class StatusRule(NamedTuple):
    pattern: str
    result: str
    exact: bool = False

    def matches(self, text: str) -> bool:
        if self.exact:
            return text == self.pattern
        return self.pattern in text


# "Partial" must be checked first: "Partially Paid" also contains "Paid"
PAYMENT_STATUS_RULES: List[StatusRule] = [
    StatusRule("Partial", PaymentStatus.PARTIAL.value),
    StatusRule("Paid", PaymentStatus.PAID.value),
    StatusRule("Pending", PaymentStatus.PENDING.value),
    StatusRule("N/A", PaymentStatus.NOT_APPLICABLE.value, exact=True),
]

HISTORY_MARK_RULES: List[StatusRule] = [
    StatusRule("Partial", HistoryMark.PARTIAL.value),
    StatusRule("Paid", HistoryMark.PAID.value),
    StatusRule("Pending", HistoryMark.PENDING.value),
]


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def apply_rules(rules: List[StatusRule], text: str) -> Optional[str]:
    for rule in rules:
        if rule.matches(text):
            return rule.result
    return None


def classify_payment_status(raw: Any) -> str:
    """Classify a per-period status cell; unmatched text passes through unchanged."""
    text = _cell_text(raw)
    result = apply_rules(PAYMENT_STATUS_RULES, text)
    return text if result is None else result


def classify_history_mark(raw: Any) -> str:
    """Classify a payment-history cell into a glyph; unmatched text is unknown."""
    result = apply_rules(HISTORY_MARK_RULES, _cell_text(raw))
    return HistoryMark.UNKNOWN.value if result is None else result
