"""Tests for credit report access rules."""

import pytest

from mortgage_credit.models import CreditReport, LoanApplication, User, UserRole
from mortgage_credit.services.credit_reporting.access import (
    can_access_loan,
    can_access_report,
    can_view_raw_data,
    ensure_can_access_loan,
    ensure_can_access_report,
    ensure_can_view_raw_data,
)
from mortgage_credit.services.credit_reporting.errors import AccessDeniedError

BORROWER_ID = 1
REQUESTER_ID = 2
OFFICER_ID = 3
STRANGER_ID = 99


def _user(user_id, role):
    return User(id=user_id, email=f"u{user_id}@example.com", first_name="U", last_name=str(user_id), role=role)


@pytest.fixture
def loan():
    return LoanApplication(id=5, borrower_id=BORROWER_ID, assigned_officer_id=OFFICER_ID)


@pytest.fixture
def report():
    return CreditReport(id=10, loan_id=5, borrower_id=BORROWER_ID, requested_by_id=REQUESTER_ID)


class TestCanAccessReport:

    def test_borrower(self, report, loan):
        assert can_access_report(_user(BORROWER_ID, UserRole.BORROWER), report, loan)

    def test_requester(self, report, loan):
        assert can_access_report(_user(REQUESTER_ID, UserRole.PROCESSOR), report, loan)

    def test_assigned_officer(self, report, loan):
        assert can_access_report(_user(OFFICER_ID, UserRole.UNDERWRITER), report, loan)

    @pytest.mark.parametrize("role", [
        UserRole.ADMIN, UserRole.LOAN_OFFICER_RETAIL, UserRole.LOAN_OFFICER_TPO,
    ])
    def test_privileged_roles(self, report, loan, role):
        assert can_access_report(_user(STRANGER_ID, role), report, loan)

    @pytest.mark.parametrize("role", [UserRole.BORROWER, UserRole.PROCESSOR, UserRole.UNDERWRITER])
    def test_unrelated_user_denied(self, report, loan, role):
        assert not can_access_report(_user(STRANGER_ID, role), report, loan)

    def test_unassigned_loan_does_not_match_anonymous_officer(self, report):
        loan = LoanApplication(id=5, borrower_id=BORROWER_ID, assigned_officer_id=None)
        assert not can_access_report(_user(STRANGER_ID, UserRole.PROCESSOR), report, loan)

    def test_ensure_raises(self, report, loan):
        with pytest.raises(AccessDeniedError):
            ensure_can_access_report(_user(STRANGER_ID, UserRole.BORROWER), report, loan)


class TestCanAccessLoan:

    def test_borrower_and_officer(self, loan):
        assert can_access_loan(_user(BORROWER_ID, UserRole.BORROWER), loan)
        assert can_access_loan(_user(OFFICER_ID, UserRole.PROCESSOR), loan)

    def test_stranger_denied(self, loan):
        assert not can_access_loan(_user(STRANGER_ID, UserRole.UNDERWRITER), loan)
        with pytest.raises(AccessDeniedError):
            ensure_can_access_loan(_user(STRANGER_ID, UserRole.UNDERWRITER), loan)

    def test_admin(self, loan):
        assert can_access_loan(_user(STRANGER_ID, UserRole.ADMIN), loan)


class TestCanViewRawData:

    def test_privileged_with_opt_in(self):
        assert can_view_raw_data(_user(STRANGER_ID, UserRole.LOAN_OFFICER_TPO), True)

    def test_privileged_without_opt_in(self):
        assert not can_view_raw_data(_user(STRANGER_ID, UserRole.ADMIN), False)

    def test_truthy_flag_is_not_an_opt_in(self):
        assert not can_view_raw_data(_user(STRANGER_ID, UserRole.ADMIN), "true")

    def test_borrower_never(self):
        assert not can_view_raw_data(_user(BORROWER_ID, UserRole.BORROWER), True)
        with pytest.raises(AccessDeniedError):
            ensure_can_view_raw_data(_user(BORROWER_ID, UserRole.BORROWER))
