"""Loan application model (the credit subsystem only reads it)."""

import enum
from datetime import datetime

from sqlalchemy import String, Numeric, Enum, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mortgage_credit.database import Base


class LoanStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PROCESSING = "processing"
    UNDERWRITING = "underwriting"
    APPROVED = "approved"
    DECLINED = "declined"
    CLOSED = "closed"


class LoanApplication(Base):
    __tablename__ = "loan_applications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    reference_number: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )
    borrower_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    assigned_officer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), nullable=True, index=True
    )

    amount: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    property_address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    status: Mapped[LoanStatus] = mapped_column(
        Enum(LoanStatus), default=LoanStatus.DRAFT, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    borrower = relationship("User", foreign_keys=[borrower_id])
    assigned_officer = relationship("User", foreign_keys=[assigned_officer_id])
    credit_reports = relationship(
        "CreditReport", back_populates="loan", order_by="CreditReport.created_at.desc()"
    )
