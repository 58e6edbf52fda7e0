"""SQLAlchemy models for the mortgage credit-reporting service."""

from mortgage_credit.models.user import User, UserRole, PRIVILEGED_ROLES
from mortgage_credit.models.loan import LoanApplication, LoanStatus
from mortgage_credit.models.credit_report import (
    CreditReport,
    CreditReportStatus,
    ReportType,
    Bureau,
    ENCRYPTED_PAYLOAD_GROUP,
)
from mortgage_credit.models.credit_pull_log import (
    CreditPullLog,
    PullType,
    PullPurpose,
    PullLogStatus,
)
from mortgage_credit.models.notification import Notification
from mortgage_credit.models.error_log import ErrorLog, ErrorSeverity

__all__ = [
    "User",
    "UserRole",
    "PRIVILEGED_ROLES",
    "LoanApplication",
    "LoanStatus",
    # Credit reporting
    "CreditReport",
    "CreditReportStatus",
    "ReportType",
    "Bureau",
    "ENCRYPTED_PAYLOAD_GROUP",
    "CreditPullLog",
    "PullType",
    "PullPurpose",
    "PullLogStatus",
    "Notification",
    # Error Monitoring
    "ErrorLog",
    "ErrorSeverity",
]
