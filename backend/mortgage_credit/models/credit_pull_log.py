"""Credit pull log: one row per pull attempt, successful or not."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Numeric, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mortgage_credit.database import Base


class PullType(str, enum.Enum):
    HARD = "hard"
    SOFT = "soft"


class PullPurpose(str, enum.Enum):
    PREAPPROVAL = "preapproval"
    UNDERWRITING = "underwriting"
    REISSUE = "reissue"
    MONITORING = "monitoring"


class PullLogStatus(str, enum.Enum):
    INITIATED = "initiated"
    COMPLETED = "completed"
    FAILED = "failed"


class CreditPullLog(Base):
    """Audit record of a single pull attempt.

    Committed in ``initiated`` state before the provider is called, then
    moved to ``completed`` or ``failed``.  The consent columns are a snapshot
    taken at request time and are never updated afterwards.
    """

    __tablename__ = "credit_pull_logs"
    __table_args__ = (
        Index("ix_credit_pull_logs_created", "created_at"),
        Index("ix_credit_pull_logs_requester_created", "requested_by_id", "created_at"),
        Index("ix_credit_pull_logs_status_notified", "status", "notification_sent"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    loan_id: Mapped[int] = mapped_column(
        ForeignKey("loan_applications.id"), nullable=False, index=True
    )
    borrower_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    requested_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    credit_report_id: Mapped[int | None] = mapped_column(
        ForeignKey("credit_reports.id"), nullable=True
    )

    pull_type: Mapped[str] = mapped_column(String(10), default=PullType.HARD.value, nullable=False)
    purpose: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=PullLogStatus.INITIATED.value, nullable=False, index=True
    )
    xactus_transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    error_message: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Consent snapshot
    consent_obtained: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    consent_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    consent_ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    consent_user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    notification_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    credit_report = relationship("CreditReport")
