"""
Pydantic models for Rent Collection Dashboard API requests and responses.
"""
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt
from typing import Dict, List, Optional, Union

# JSON numbers only; numeric strings are rejected rather than stored as text
Number = Union[StrictInt, StrictFloat]


class UploadResponse(BaseModel):
    success: bool
    file_name: str
    months: List[str]
    tenants: int
    period_sheets: List[str]
    warnings: List[str] = []


class StoreResponse(BaseModel):
    success: bool
    months: List[str]
    tenants: int


class DeleteResponse(BaseModel):
    deleted: bool


class TestEmailRequest(BaseModel):
    to: str


class SendReportResponse(BaseModel):
    ok: bool
    sent_to: str
    period: str
    id: Optional[str] = None
    data_source: str = "live"  # "live" | "sample"


# ── Stored report body (POST /api/data) ───────────────────────────────
# Same camelCase shape as GET /api/data.

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TenantIn(_CamelModel):
    id: StrictInt = 0
    unit: str = ""
    name: str = ""
    rent: Number = 0
    gateway: str = ""
    paid_to: str = Field("", alias="paidTo")
    status: str = ""


class PaymentHistoryIn(_CamelModel):
    unit: str = ""
    tenant: str = ""
    history: List[str] = []
    times_late: Number = Field(0, alias="timesLate")
    avg_days_late: Number = Field(0, alias="avgDaysLate")


class PeriodPaymentIn(_CamelModel):
    unit: str = ""
    tenant: str = ""
    due: Number = 0
    paid: Number = 0
    balance: Number = 0
    status: str = ""
    paid_to: str = Field("", alias="paidTo")
    days_late: Number = Field(0, alias="daysLate")
    prev_balance: Number = Field(0, alias="prevBalance")


class VacancyIn(_CamelModel):
    total_units: Number = Field(50, alias="totalUnits")
    vacant: Number = 0
    occupancy: Number = 0


class SummarySeriesIn(_CamelModel):
    months: List[str] = []
    total_due: List[Optional[Number]] = Field([], alias="totalDue")
    total_collected: List[Optional[Number]] = Field([], alias="totalCollected")
    total_outstanding: List[Optional[Number]] = Field([], alias="totalOutstanding")
    collection_rate: List[Optional[Number]] = Field([], alias="collectionRate")
    units_paid: List[Optional[Union[str, Number]]] = Field([], alias="unitsPaid")
    unpaid_prev: List[Optional[Number]] = Field([], alias="unpaidPrev")
    mpire_due: List[Optional[Number]] = Field([], alias="mpireDue")
    mpire_collected: List[Optional[Number]] = Field([], alias="mpireCollected")
    mpire_outstanding: List[Optional[Number]] = Field([], alias="mpireOutstanding")
    owner_due: List[Optional[Number]] = Field([], alias="ownerDue")
    owner_collected: List[Optional[Number]] = Field([], alias="ownerCollected")
    owner_outstanding: List[Optional[Number]] = Field([], alias="ownerOutstanding")


class ReportPayload(_CamelModel):
    dashboard: Optional[SummarySeriesIn] = None
    tenants: List[TenantIn] = []
    months: List[str] = []
    monthly_sheets: Dict[str, List[PeriodPaymentIn]] = Field({}, alias="monthlySheets")
    payment_history: List[PaymentHistoryIn] = Field([], alias="paymentHistory")
    vacancy: Optional[VacancyIn] = None
