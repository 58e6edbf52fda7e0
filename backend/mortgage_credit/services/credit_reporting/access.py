"""Row- and field-level access rules for credit reports."""

from typing import Optional

from mortgage_credit.models.credit_report import CreditReport
from mortgage_credit.models.loan import LoanApplication
from mortgage_credit.models.user import User, PRIVILEGED_ROLES
from mortgage_credit.services.credit_reporting.errors import AccessDeniedError


def is_privileged(user: User) -> bool:
    return user.role in PRIVILEGED_ROLES


def can_access_report(user: User, report: CreditReport, loan: Optional[LoanApplication]) -> bool:
    """Borrower, original requester, the loan's assigned officer, or a privileged role."""
    if is_privileged(user):
        return True
    if user.id in (report.borrower_id, report.requested_by_id):
        return True
    return loan is not None and loan.assigned_officer_id is not None and user.id == loan.assigned_officer_id


def can_access_loan(user: User, loan: LoanApplication) -> bool:
    if is_privileged(user):
        return True
    return user.id in (loan.borrower_id, loan.assigned_officer_id)


def can_view_raw_data(user: User, include_raw_data: bool) -> bool:
    """Decrypted payloads need a privileged role *and* an explicit opt-in."""
    return include_raw_data is True and is_privileged(user)


def ensure_can_access_report(
    user: User, report: CreditReport, loan: Optional[LoanApplication]
) -> None:
    if not can_access_report(user, report, loan):
        raise AccessDeniedError(f"User {user.id} may not read credit report {report.id}")


def ensure_can_access_loan(user: User, loan: LoanApplication) -> None:
    if not can_access_loan(user, loan):
        raise AccessDeniedError(f"User {user.id} may not read credit reports for loan {loan.id}")


def ensure_can_view_raw_data(user: User) -> None:
    if not can_view_raw_data(user, True):
        raise AccessDeniedError(f"User {user.id} may not read raw credit data")
