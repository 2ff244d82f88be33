"""
Data model of a normalized rent collection workbook.

ParsedReport is the only artifact that is persisted and handed to the
dashboard and email layers. to_dict() produces the JSON shape those layers
read (camelCase keys, summary series as parallel arrays).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from rentdash.services.periods import normalize_period, period_sort_key

Number = Union[int, float]


@dataclass(frozen=True)
class Tenant:
    """One row of the tenant roster."""
    id: int
    unit: str
    name: str
    rent: Number
    gateway: str
    paid_to: str
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'unit': self.unit,
            'name': self.name,
            'rent': self.rent,
            'gateway': self.gateway,
            'paidTo': self.paid_to,
            'status': self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tenant":
        return cls(
            id=data.get('id', 0),
            unit=data.get('unit', ''),
            name=data.get('name', ''),
            rent=data.get('rent', 0),
            gateway=data.get('gateway', ''),
            paid_to=data.get('paidTo', ''),
            status=data.get('status', ''),
        )


@dataclass(frozen=True)
class PaymentHistoryRow:
    """Per-unit payment track record: one glyph per known period."""
    unit: str
    tenant: str
    history: List[str]
    times_late: Number
    avg_days_late: Number

    def to_dict(self) -> Dict[str, Any]:
        return {
            'unit': self.unit,
            'tenant': self.tenant,
            'history': list(self.history),
            'timesLate': self.times_late,
            'avgDaysLate': self.avg_days_late,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentHistoryRow":
        return cls(
            unit=data.get('unit', ''),
            tenant=data.get('tenant', ''),
            history=list(data.get('history', [])),
            times_late=data.get('timesLate', 0),
            avg_days_late=data.get('avgDaysLate', 0),
        )


@dataclass(frozen=True)
class PeriodPayment:
    """One unit's payment for one period."""
    unit: str
    tenant: str
    due: Number
    paid: Number
    balance: Number
    status: str
    paid_to: str
    days_late: Number
    prev_balance: Number

    def to_dict(self) -> Dict[str, Any]:
        return {
            'unit': self.unit,
            'tenant': self.tenant,
            'due': self.due,
            'paid': self.paid,
            'balance': self.balance,
            'status': self.status,
            'paidTo': self.paid_to,
            'daysLate': self.days_late,
            'prevBalance': self.prev_balance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PeriodPayment":
        return cls(
            unit=data.get('unit', ''),
            tenant=data.get('tenant', ''),
            due=data.get('due', 0),
            paid=data.get('paid', 0),
            balance=data.get('balance', 0),
            status=data.get('status', ''),
            paid_to=data.get('paidTo', ''),
            days_late=data.get('daysLate', 0),
            prev_balance=data.get('prevBalance', 0),
        )


@dataclass(frozen=True)
class VacancySnapshot:
    total_units: Number = 50
    vacant: Number = 0
    occupancy: Number = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalUnits': self.total_units,
            'vacant': self.vacant,
            'occupancy': self.occupancy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VacancySnapshot":
        return cls(
            total_units=data.get('totalUnits', 50),
            vacant=data.get('vacant', 0),
            occupancy=data.get('occupancy', 0),
        )


# JSON array name -> PeriodSummary attribute
SUMMARY_FIELDS: Dict[str, str] = {
    'totalDue': 'total_due',
    'totalCollected': 'total_collected',
    'totalOutstanding': 'total_outstanding',
    'collectionRate': 'collection_rate',
    'unitsPaid': 'units_paid',
    'unpaidPrev': 'unpaid_prev',
    'mpireDue': 'mpire_due',
    'mpireCollected': 'mpire_collected',
    'mpireOutstanding': 'mpire_outstanding',
    'ownerDue': 'owner_due',
    'ownerCollected': 'owner_collected',
    'ownerOutstanding': 'owner_outstanding',
}


@dataclass
class PeriodSummary:
    """All twelve summary metrics of one period."""
    period: str
    total_due: Number = 0
    total_collected: Number = 0
    total_outstanding: Number = 0
    collection_rate: Number = 0
    units_paid: Union[str, Number] = ""
    unpaid_prev: Number = 0
    mpire_due: Number = 0
    mpire_collected: Number = 0
    mpire_outstanding: Number = 0
    owner_due: Number = 0
    owner_collected: Number = 0
    owner_outstanding: Number = 0


@dataclass
class SummarySeries:
    """
    Time series of summary metrics, one PeriodSummary per period.

    Kept as a single list of records so metrics can never drift out of
    alignment with their period label. Serialized as parallel arrays.
    """
    entries: List[PeriodSummary] = field(default_factory=list)

    @property
    def months(self) -> List[str]:
        return [e.period for e in self.entries]

    def has_period(self, label: str) -> bool:
        key = normalize_period(label)
        return any(normalize_period(e.period) == key for e in self.entries)

    def get(self, label: str) -> Optional[PeriodSummary]:
        key = normalize_period(label)
        for entry in self.entries:
            if normalize_period(entry.period) == key:
                return entry
        return None

    def append(self, entry: PeriodSummary):
        self.entries.append(entry)

    def sort_chronologically(self):
        self.entries.sort(key=lambda e: period_sort_key(e.period))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {'months': self.months}
        for key, attr in SUMMARY_FIELDS.items():
            out[key] = [getattr(e, attr) for e in self.entries]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummarySeries":
        months = [str(m) for m in data.get('months', [])]
        entries = []
        for i, label in enumerate(months):
            entry = PeriodSummary(period=label)
            for key, attr in SUMMARY_FIELDS.items():
                values = data.get(key) or []
                if i < len(values) and values[i] is not None:
                    setattr(entry, attr, values[i])
            entries.append(entry)
        return cls(entries=entries)


@dataclass
class ParsedReport:
    """Aggregate root produced by the workbook normalizer."""
    dashboard: Optional[SummarySeries] = None
    tenants: List[Tenant] = field(default_factory=list)
    months: List[str] = field(default_factory=list)
    monthly_sheets: Dict[str, List[PeriodPayment]] = field(default_factory=dict)
    payment_history: List[PaymentHistoryRow] = field(default_factory=list)
    vacancy: Optional[VacancySnapshot] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dashboard': self.dashboard.to_dict() if self.dashboard is not None else None,
            'tenants': [t.to_dict() for t in self.tenants],
            'months': list(self.months),
            'monthlySheets': {
                label: [p.to_dict() for p in rows]
                for label, rows in self.monthly_sheets.items()
            },
            'paymentHistory': [p.to_dict() for p in self.payment_history],
            'vacancy': self.vacancy.to_dict() if self.vacancy is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedReport":
        dashboard = data.get('dashboard')
        vacancy = data.get('vacancy')
        return cls(
            dashboard=SummarySeries.from_dict(dashboard) if dashboard else None,
            tenants=[Tenant.from_dict(t) for t in data.get('tenants') or []],
            months=[str(m) for m in data.get('months') or []],
            monthly_sheets={
                str(label): [PeriodPayment.from_dict(p) for p in rows or []]
                for label, rows in (data.get('monthlySheets') or {}).items()
            },
            payment_history=[PaymentHistoryRow.from_dict(p) for p in data.get('paymentHistory') or []],
            vacancy=VacancySnapshot.from_dict(vacancy) if vacancy else None,
        )


def validate_parsed_report(report: Optional[ParsedReport]) -> List[str]:
    """
    User-facing reasons a report cannot back the dashboard.

    An empty list means the report is usable.
    """
    if report is None:
        return ["No dashboard data found. Upload an Excel file first."]

    errors = []
    if report.dashboard is None:
        errors.append("Missing DASHBOARD sheet")
    if not report.tenants:
        errors.append("Missing Tenant Master data")
    return errors
