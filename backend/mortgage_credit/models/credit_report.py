"""Credit report model for storing tri-merge pull results."""

import enum
from datetime import datetime

from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, JSON, Text, CheckConstraint, Index, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from mortgage_credit.database import Base
from mortgage_credit.services.credit_reporting.errors import StatusTransitionError

# Loaded together or not at all; see get_report(include_raw=True).
ENCRYPTED_PAYLOAD_GROUP = "encrypted_payload"


class ReportType(str, enum.Enum):
    TRI_MERGE = "tri_merge"
    SINGLE_BUREAU = "single_bureau"
    SOFT_PULL = "soft_pull"


class CreditReportStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"


class Bureau(str, enum.Enum):
    EQUIFAX = "equifax"
    EXPERIAN = "experian"
    TRANSUNION = "transunion"


# Forward-only status machine.  Retention expiry applies to any live report,
# pending ones included: the data must go regardless of how far it got.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    CreditReportStatus.PENDING.value: frozenset({
        CreditReportStatus.COMPLETED.value,
        CreditReportStatus.FAILED.value,
        CreditReportStatus.EXPIRED.value,
    }),
    CreditReportStatus.COMPLETED.value: frozenset({CreditReportStatus.EXPIRED.value}),
    CreditReportStatus.FAILED.value: frozenset({CreditReportStatus.EXPIRED.value}),
    CreditReportStatus.EXPIRED.value: frozenset(),
}


class CreditReport(Base):
    """One row per tri-merge pull that the provider answered.

    History is append-only: reissues create new rows and expiry redacts in
    place, so the loan's full pull history survives as the compliance record.
    """

    __tablename__ = "credit_reports"
    __table_args__ = (
        CheckConstraint(
            "(encrypted_data IS NULL AND encryption_iv IS NULL) OR "
            "(encrypted_data IS NOT NULL AND encryption_iv IS NOT NULL)",
            name="ck_credit_reports_encrypted_pair",
        ),
        Index("ix_credit_reports_expiry", "expires_at", "status"),
        Index("ix_credit_reports_loan_created", "loan_id", "created_at"),
        Index("ix_credit_reports_borrower_created", "borrower_id", "created_at"),
    )
    # Fetch server-side timestamps on flush; no lazy loads under asyncio.
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    loan_id: Mapped[int] = mapped_column(ForeignKey("loan_applications.id"), nullable=False)
    borrower_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    requested_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    xactus_report_id: Mapped[str | None] = mapped_column(
        String(100), unique=True, nullable=True
    )

    report_type: Mapped[str] = mapped_column(
        String(20), default=ReportType.TRI_MERGE.value, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=CreditReportStatus.PENDING.value, nullable=False, index=True
    )

    # Bureau data
    scores: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    mid_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tradelines: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    public_records: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    inquiries: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    summary: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Raw provider payload, AES-256-CBC; never part of the default projection
    encrypted_data: Mapped[str | None] = mapped_column(
        Text, nullable=True, deferred=True, deferred_group=ENCRYPTED_PAYLOAD_GROUP
    )
    encryption_iv: Mapped[str | None] = mapped_column(
        String(32), nullable=True, deferred=True, deferred_group=ENCRYPTED_PAYLOAD_GROUP
    )
    raw_data_stored: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # FCRA retention
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    retention_period_days: Mapped[int] = mapped_column(Integer, default=730, nullable=False)

    error_message: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    loan = relationship("LoanApplication", back_populates="credit_reports")
    borrower = relationship("User", foreign_keys=[borrower_id])
    requested_by = relationship("User", foreign_keys=[requested_by_id])

    @validates("status")
    def _validate_status(self, key: str, value: str) -> str:
        value = CreditReportStatus(value).value
        current = self.__dict__.get("status")
        if current is not None and current != value and value not in ALLOWED_TRANSITIONS[current]:
            raise StatusTransitionError(f"Cannot move credit report from {current} to {value}")
        return value
