"""Tests for FCRA expiry dates, the expire-and-redact purge, and status rules."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from mortgage_credit.database import Base
from mortgage_credit.models import CreditReport
from mortgage_credit.services.credit_reporting.errors import StatusTransitionError
from mortgage_credit.services.credit_reporting.reports import get_report
from mortgage_credit.services.credit_reporting.retention import (
    EXPIRABLE_STATUSES,
    compute_expiration,
    expire_transition,
    find_expiring_reports,
    purge_expired,
    set_expiration,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
PAST = datetime.now(timezone.utc) - timedelta(days=1)


class TestExpirationDates:

    def test_compute_expiration(self):
        assert compute_expiration(730, NOW) == NOW + timedelta(days=730)

    def test_set_expiration_fills_defaults(self):
        report = CreditReport()
        expires = set_expiration(report, NOW)
        assert report.retention_period_days == 730
        assert expires == NOW + timedelta(days=730)

    def test_set_expiration_never_recomputes(self):
        fixed = NOW + timedelta(days=10)
        report = CreditReport(retention_period_days=30, expires_at=fixed)
        assert set_expiration(report, NOW + timedelta(days=500)) == fixed
        assert report.expires_at == fixed

    def test_custom_retention_window(self):
        report = CreditReport(retention_period_days=30)
        assert set_expiration(report, NOW) == NOW + timedelta(days=30)


class TestStatusTransitions:

    def test_expirable_statuses(self):
        assert set(EXPIRABLE_STATUSES) == {"pending", "completed", "failed"}

    def test_forward_transitions_allowed(self):
        report = CreditReport(status="pending")
        report.status = "completed"
        report.status = "expired"
        assert report.status == "expired"

    def test_completed_cannot_go_back_to_pending(self):
        report = CreditReport(status="completed")
        with pytest.raises(StatusTransitionError):
            report.status = "pending"

    def test_expired_is_terminal(self):
        report = CreditReport(status="expired")
        with pytest.raises(StatusTransitionError):
            report.status = "completed"

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            CreditReport(status="archived")


class TestPurgeExpired:

    @pytest.mark.asyncio
    async def test_expires_and_redacts_overdue_reports(self, session_factory, create_report):
        overdue = await create_report(expires_at=PAST, raw_data={"report_id": "XR-OLD"})
        current = await create_report(raw_data={"report_id": "XR-NEW"})

        async with session_factory() as session:
            assert await purge_expired(session) == 1

        async with session_factory() as session:
            expired = await get_report(session, overdue.id, include_raw=True)
            assert expired.status == "expired"
            assert expired.encrypted_data is None
            assert expired.encryption_iv is None
            assert expired.raw_data_stored is False
            assert expired.tradelines == []
            assert expired.public_records == []
            assert expired.inquiries == []
            # The redacted shell stays on file
            assert expired.mid_score == 700
            assert len(expired.scores) == 3

        async with session_factory() as session:
            kept = await get_report(session, current.id, include_raw=True)
            assert kept.status == "completed"
            assert kept.raw_data_stored is True
            assert kept.encrypted_data is not None

    @pytest.mark.asyncio
    async def test_pending_and_failed_reports_expire_too(self, session_factory, create_report):
        await create_report(status="pending", expires_at=PAST)
        await create_report(status="failed", expires_at=PAST)
        async with session_factory() as session:
            assert await purge_expired(session) == 2

    @pytest.mark.asyncio
    async def test_rows_are_never_deleted(self, session_factory, create_report):
        await create_report(expires_at=PAST)
        await create_report(expires_at=PAST)
        async with session_factory() as session:
            await purge_expired(session)
        async with session_factory() as session:
            count = (await session.execute(select(func.count()).select_from(CreditReport))).scalar_one()
        assert count == 2

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, session_factory, create_report):
        await create_report(expires_at=PAST)
        async with session_factory() as session:
            assert await purge_expired(session) == 1
        async with session_factory() as session:
            assert await purge_expired(session) == 0

    def test_update_is_guarded_by_status(self):
        sql = str(expire_transition(NOW))
        assert "credit_reports.status IN" in sql
        assert "credit_reports.expires_at <" in sql
        assert "RETURNING credit_reports.id" in sql

    @pytest.mark.asyncio
    async def test_explicit_now(self, session_factory, create_report):
        await create_report(expires_at=NOW + timedelta(days=5))
        async with session_factory() as session:
            assert await purge_expired(session, now=NOW) == 0
        async with session_factory() as session:
            assert await purge_expired(session, now=NOW + timedelta(days=6)) == 1


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """File-backed database where every session gets its own connection.

    ``BEGIN IMMEDIATE`` makes a second writer wait for the first to commit,
    the way row locks do on PostgreSQL.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'retention.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 15},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


class TestOverlappingPurges:

    @pytest.mark.asyncio
    async def test_each_report_counted_once(self, file_engine):
        factory = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as session:
            session.add_all([
                CreditReport(
                    loan_id=1, borrower_id=1, requested_by_id=1, status="completed",
                    expires_at=NOW - timedelta(days=n + 1), tradelines=[{"creditor_name": "Chase"}],
                )
                for n in range(3)
            ])
            session.add(CreditReport(
                loan_id=1, borrower_id=1, requested_by_id=1, status="completed",
                expires_at=NOW + timedelta(days=30),
            ))
            await session.commit()

        async def _purge():
            async with factory() as session:
                return await purge_expired(session, now=NOW)

        counts = await asyncio.gather(_purge(), _purge())
        assert sorted(counts) == [0, 3]

        async with factory() as session:
            statuses = (await session.execute(
                select(CreditReport.status).order_by(CreditReport.id)
            )).scalars().all()
        assert statuses == ["expired", "expired", "expired", "completed"]


class TestExpiringReports:

    @pytest.mark.asyncio
    async def test_completed_reports_inside_window(self, session_factory, create_report):
        soon = await create_report(expires_at=NOW + timedelta(days=9, hours=1))
        sooner = await create_report(expires_at=NOW + timedelta(days=2))
        await create_report(expires_at=NOW + timedelta(days=45))
        await create_report(status="pending", expires_at=NOW + timedelta(days=5))
        await create_report(expires_at=NOW - timedelta(days=1))

        async with session_factory() as session:
            expiring = await find_expiring_reports(session, now=NOW)

        assert [r.report_id for r in expiring] == [sooner.id, soon.id]
        assert [r.days_remaining for r in expiring] == [2, 10]
        assert expiring[0].loan_id == sooner.loan_id

    @pytest.mark.asyncio
    async def test_custom_window(self, session_factory, create_report):
        report = await create_report(expires_at=NOW + timedelta(days=45))
        async with session_factory() as session:
            assert await find_expiring_reports(session, within_days=30, now=NOW) == []
            expiring = await find_expiring_reports(session, within_days=60, now=NOW)
        assert [r.report_id for r in expiring] == [report.id]

    @pytest.mark.asyncio
    async def test_log_lines_carry_no_borrower_details(self, session_factory, create_report, caplog):
        report = await create_report(expires_at=NOW + timedelta(days=3))
        with caplog.at_level(logging.INFO, logger="mortgage_credit.services.credit_reporting.retention"):
            async with session_factory() as session:
                await find_expiring_reports(session, now=NOW)
        assert f"Credit report {report.id} on loan" in caplog.text
        assert "expires in 3 days" in caplog.text
        assert "Jane" not in caplog.text
        assert "Doe" not in caplog.text
