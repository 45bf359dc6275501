from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ServiceOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    status: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TransactionOut(BaseModel):
    id: str
    date: str
    amount: float
    status: str
    status_label: str
    status_severity: str
    status_message: str
    reference: str
    description: str
    type: str
    sender: Optional[str] = None
    recipient: Optional[str] = None
    account_number: Optional[str] = None
    phone_number: Optional[str] = None
    gateway_transaction_id: str
    status_description: str
    branch: str
    transtype: Optional[str] = None
    param4: Optional[str] = None
    responsecode: Optional[str] = None
    responsemessage: Optional[str] = None
    postingdate: Optional[str] = None
    updatedat: Optional[str] = None
    request_body: Dict[str, Any] = Field(default_factory=dict)
    response_body: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None


class TransactionListOut(BaseModel):
    service_id: str
    total: int
    transactions: List[TransactionOut]


class TransactionCountsOut(BaseModel):
    counts: Dict[str, int]
    errors: Dict[str, str] = Field(default_factory=dict)
    failed_summary: Optional[str] = None
    invocation: Optional[int] = None


class RefreshCountsIn(BaseModel):
    service_ids: List[str] = Field(..., example=["5", "6"])


class StatusCountsOut(BaseModel):
    total: int
    pending: int
    success: int
    failed: int
    unknown: int
    total_amount: float
    success_rate: float


class StatusSummaryOut(StatusCountsOut):
    service_id: str


class StatusSummariesOut(BaseModel):
    summaries: Dict[str, StatusSummaryOut]
    errors: Dict[str, str] = Field(default_factory=dict)


class ServiceAnalyticsOut(BaseModel):
    service_id: str
    all_time: StatusCountsOut
    current_month: StatusCountsOut


class MonthlyTrendOut(BaseModel):
    month: str
    label: str
    transactions: int
    volume: float


class AnalyticsOut(BaseModel):
    services: List[ServiceAnalyticsOut]
    overall: StatusCountsOut
    current_month: StatusCountsOut
    monthly_trends: List[MonthlyTrendOut]
    errors: Dict[str, str] = Field(default_factory=dict)
