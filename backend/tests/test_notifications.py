"""Tests for best-effort loan officer notification."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy import select

from mortgage_credit.models import CreditPullLog, LoanApplication, Notification
from mortgage_credit.services.credit_reporting import notifications
from mortgage_credit.services.credit_reporting.consent import validate_consent
from mortgage_credit.services.credit_reporting.notifications import (
    NOTIFICATION_TYPE,
    build_officer_message,
    notify_loan_officer,
)
from mortgage_credit.services.credit_reporting.pull_log import open_pull_log


def _borrower(seed):
    return SimpleNamespace(id=seed.borrower.id, full_name="Jane Doe")


async def _pull_log(session_factory, seed):
    async with session_factory() as session:
        return await open_pull_log(
            session,
            loan_id=seed.loan.id,
            borrower_id=seed.borrower.id,
            requested_by_id=seed.officer.id,
            pull_type="hard",
            purpose="preapproval",
            consent=validate_consent({"obtained": True}),
        )


class TestMessage:

    def test_includes_name_and_mid_score(self):
        borrower = SimpleNamespace(full_name="Jane Doe")
        report = SimpleNamespace(mid_score=702)
        assert build_officer_message(borrower, report) == (
            "Credit report for Jane Doe is ready. Mid score: 702"
        )

    def test_missing_mid_score(self):
        borrower = SimpleNamespace(full_name="Jane Doe")
        report = SimpleNamespace(mid_score=None)
        assert build_officer_message(borrower, report).endswith("Mid score: not available")


class TestNotifyLoanOfficer:

    @pytest.mark.asyncio
    async def test_no_assigned_officer(self, session_factory, seed, create_report):
        report = await create_report(loan=seed.unassigned_loan)
        pull_log = await _pull_log(session_factory, seed)

        assert await notify_loan_officer(seed.unassigned_loan, _borrower(seed), report, pull_log) is False
        async with session_factory() as session:
            assert (await session.execute(select(Notification))).first() is None

    @pytest.mark.asyncio
    async def test_persists_notification(self, session_factory, seed, create_report):
        report = await create_report()
        pull_log = await _pull_log(session_factory, seed)

        assert await notify_loan_officer(seed.loan, _borrower(seed), report, pull_log) is True
        assert pull_log.notification_sent is True
        assert pull_log.notified_at is not None

        async with session_factory() as session:
            note = (await session.execute(select(Notification))).scalar_one()
            stored_log = await session.get(CreditPullLog, pull_log.id)
        assert note.user_id == seed.officer.id
        assert note.type == NOTIFICATION_TYPE
        assert note.metadata_["credit_report_id"] == report.id
        assert note.metadata_["mid_score"] == 700
        assert stored_log.notification_sent is True

    @pytest.mark.asyncio
    async def test_failed_insert_is_swallowed(self, session_factory, seed, create_report):
        report = await create_report()
        pull_log = await _pull_log(session_factory, seed)

        with patch.object(notifications, "build_officer_message", return_value=None):
            assert await notify_loan_officer(seed.loan, _borrower(seed), report, pull_log) is False

        assert pull_log.notification_sent is False
        async with session_factory() as session:
            assert (await session.execute(select(Notification))).first() is None
            stored_log = await session.get(CreditPullLog, pull_log.id)
        assert stored_log.notification_sent is False

    @pytest.mark.asyncio
    async def test_caller_session_untouched_by_failure(self, session_factory, seed, create_report):
        report = await create_report()
        pull_log = await _pull_log(session_factory, seed)

        async with session_factory() as session:
            loan = await session.get(LoanApplication, seed.loan.id)
            with patch.object(notifications, "build_officer_message", return_value=None):
                assert await notify_loan_officer(loan, _borrower(seed), report, pull_log) is False
            # Still usable: no pending rollback, nothing expired
            assert session.is_active
            assert loan.reference_number == "ML-000001"
            await session.commit()
