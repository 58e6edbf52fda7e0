"""Pydantic schemas for request/response validation."""

from datetime import datetime, date
from typing import Any, Optional, Literal
from pydantic import BaseModel, Field


# ── Credit pull requests ─────────────────────────────

class CreditAddress(BaseModel):
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=2, max_length=2)
    zip: str = Field(pattern=r"^\d{5}(-\d{4})?$")


class BorrowerConsent(BaseModel):
    """Consent as captured by the client.

    ``obtained`` is passed through untyped. The consent gate accepts only a
    JSON ``true`` and answers anything else with a 400 instead of coercing it.
    """
    obtained: Any = None
    consent_date: Optional[datetime] = None


class CreditReportRequest(BaseModel):
    borrower_id: int
    ssn: str = Field(pattern=r"^\d{3}-?\d{2}-?\d{4}$")
    date_of_birth: date
    address: CreditAddress
    pull_type: Literal["hard", "soft"] = "hard"
    purpose: Literal["preapproval", "underwriting", "reissue", "monitoring"] = "preapproval"
    borrower_consent: Optional[BorrowerConsent] = None


# ── Credit report responses ──────────────────────────

class CreditScoreResponse(BaseModel):
    bureau: str
    score: Optional[int] = None
    model: Optional[str] = None
    factors: list[Any] = []


class CreditReportSummaryResponse(BaseModel):
    id: int
    xactus_report_id: Optional[str] = None
    status: str
    scores: list[CreditScoreResponse] = []
    mid_score: Optional[int] = None
    summary: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    expires_at: datetime

    model_config = {"from_attributes": True}


class CreditReportResponse(CreditReportSummaryResponse):
    loan_id: int
    borrower_id: int
    requested_by_id: int
    report_type: str
    tradelines: list[dict[str, Any]] = []
    public_records: list[dict[str, Any]] = []
    inquiries: list[dict[str, Any]] = []
    raw_data_stored: bool
    retention_period_days: int
    raw_data: Optional[Any] = None


class CreditReportListItem(BaseModel):
    id: int
    xactus_report_id: Optional[str] = None
    report_type: str
    status: str
    mid_score: Optional[int] = None
    borrower_id: int
    requested_by_id: int
    created_at: Optional[datetime] = None
    expires_at: datetime

    model_config = {"from_attributes": True}


class CreditRequestResponse(BaseModel):
    message: str
    credit_report: CreditReportSummaryResponse
    pull_log_id: int
    notification_sent: bool


class CreditReportEnvelope(BaseModel):
    credit_report: CreditReportResponse


class LoanCreditReportsResponse(BaseModel):
    loan_id: int
    credit_reports: list[CreditReportListItem]


# ── Pull logs ────────────────────────────────────────

class CreditPullLogResponse(BaseModel):
    id: int
    loan_id: int
    borrower_id: int
    requested_by_id: int
    credit_report_id: Optional[int] = None
    pull_type: str
    purpose: str
    status: str
    xactus_transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    consent_obtained: bool
    consent_date: Optional[datetime] = None
    notification_sent: bool
    notified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CreditPullLogListResponse(BaseModel):
    logs: list[CreditPullLogResponse]


class PurgeResponse(BaseModel):
    message: str
    purged_count: int
