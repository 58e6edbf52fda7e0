"""User model for borrowers and staff."""

import enum
from datetime import datetime

from sqlalchemy import String, Boolean, Enum, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from mortgage_credit.database import Base


class UserRole(str, enum.Enum):
    BORROWER = "borrower"
    LOAN_OFFICER_RETAIL = "loan_officer_retail"
    LOAN_OFFICER_TPO = "loan_officer_tpo"
    PROCESSOR = "processor"
    UNDERWRITER = "underwriter"
    ADMIN = "admin"


# Roles allowed to order pulls and read any report.
PRIVILEGED_ROLES = frozenset({
    UserRole.ADMIN,
    UserRole.LOAN_OFFICER_RETAIL,
    UserRole.LOAN_OFFICER_TPO,
})


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), default=UserRole.BORROWER, nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES
