"""Shared fixtures: in-memory async database, seeded users/loans, stub provider.

Environment is set before any ``mortgage_credit`` import so the settings
singleton sees a valid encryption key.
"""

import os

TEST_ENCRYPTION_KEY = "00112233445566778899aabbccddeeff" * 2

os.environ["ENVIRONMENT"] = "development"
os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-signing"
os.environ["CREDIT_ENCRYPTION_KEY"] = TEST_ENCRYPTION_KEY
os.environ["CREDIT_BUREAU_PROVIDER"] = "mock"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import asyncio  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from mortgage_credit import database  # noqa: E402
from mortgage_credit.database import Base  # noqa: E402
from mortgage_credit.models import (  # noqa: E402
    CreditReport,
    LoanApplication,
    LoanStatus,
    User,
    UserRole,
)
from mortgage_credit.services.credit_bureau.adapter import (  # noqa: E402
    TriMergeClient,
    TriMergeResponse,
)
from mortgage_credit.services.credit_reporting.encryption import (  # noqa: E402
    encrypt_payload,
    load_encryption_key,
)


# ---------------------------------------------------------------------------
# Provider doubles
# ---------------------------------------------------------------------------

BUREAUS = ("equifax", "experian", "transunion")


def build_tri_merge_response(
    scores=(702, 745, 689),
    transaction_id="T1",
    report_id="XR-0001",
    status="completed",
) -> TriMergeResponse:
    tradelines = [{
        "creditor_name": "Chase Bank USA",
        "account_number": "****4321",
        "account_type": "revolving",
        "balance": 1200.0,
        "credit_limit": 5000.0,
        "monthly_payment": 35.0,
        "payment_status": "current",
        "open_date": "2015-03-01",
        "last_payment_date": "2026-09-15",
        "remarks": None,
    }]
    return TriMergeResponse(
        report_id=report_id,
        transaction_id=transaction_id,
        status=status,
        scores=[
            {"bureau": bureau, "score": score, "model": "FICO", "factors": []}
            for bureau, score in zip(BUREAUS, scores)
        ],
        tradelines=tradelines,
        public_records=[],
        inquiries=[{
            "bureau": "experian",
            "creditor_name": "Wells Fargo Home Mortgage",
            "inquiry_date": "2026-08-01",
            "inquiry_type": "hard",
        }],
        summary={"total_accounts": 1, "open_accounts": 1, "total_debt": 1200.0},
        raw_data={
            "report_id": report_id,
            "transaction_id": transaction_id,
            "credit_scores": [
                {"bureau": bureau.title(), "value": score} for bureau, score in zip(BUREAUS, scores)
            ],
        },
    )


class StubTriMergeClient(TriMergeClient):
    """Records calls; returns a canned response or raises ``error``."""

    def __init__(self, response=None, error=None, delay=0.0):
        self.response = response or build_tri_merge_response()
        self.error = error
        self.delay = delay
        self.calls = []

    @property
    def provider_name(self) -> str:
        return "stub"

    async def _answer(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response

    async def request_tri_merge(self, borrower):
        self.calls.append(("request", borrower))
        return await self._answer()

    async def request_soft_pull(self, borrower):
        self.calls.append(("soft", borrower))
        return await self._answer()

    async def reissue_report(self, report_id):
        self.calls.append(("reissue", report_id))
        return await self._answer()


@pytest.fixture
def make_response():
    return build_tri_merge_response


@pytest.fixture
def stub_client():
    return StubTriMergeClient


@pytest.fixture
def consent():
    return {"obtained": True, "consent_date": datetime(2026, 10, 1, 14, 30, tzinfo=timezone.utc)}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine, monkeypatch):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    # Standalone error logging opens sessions through the module attribute
    monkeypatch.setattr(database, "async_session", factory)
    return factory


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory):
    """Staff, a borrower and two loans (one with an assigned officer)."""
    async with session_factory() as session:
        admin = User(email="admin@lender.test", first_name="Ada", last_name="Admin", role=UserRole.ADMIN)
        officer = User(
            email="officer@lender.test", first_name="Omar", last_name="Officer",
            role=UserRole.LOAN_OFFICER_RETAIL,
        )
        borrower = User(
            email="jane.doe@example.com", first_name="Jane", last_name="Doe", role=UserRole.BORROWER,
        )
        other_borrower = User(
            email="sam.smith@example.com", first_name="Sam", last_name="Smith", role=UserRole.BORROWER,
        )
        processor = User(
            email="processor@lender.test", first_name="Pat", last_name="Processor",
            role=UserRole.PROCESSOR,
        )
        session.add_all([admin, officer, borrower, other_borrower, processor])
        await session.flush()

        loan = LoanApplication(
            reference_number="ML-000001",
            borrower_id=borrower.id,
            assigned_officer_id=officer.id,
            amount=Decimal("425000.00"),
            property_address="12 Harbor View Rd, Portland, ME 04101",
            status=LoanStatus.SUBMITTED,
        )
        unassigned_loan = LoanApplication(
            reference_number="ML-000002",
            borrower_id=other_borrower.id,
            assigned_officer_id=None,
            amount=Decimal("310000.00"),
            status=LoanStatus.DRAFT,
        )
        session.add_all([loan, unassigned_loan])
        await session.commit()

    return SimpleNamespace(
        admin=admin,
        officer=officer,
        borrower=borrower,
        other_borrower=other_borrower,
        processor=processor,
        loan=loan,
        unassigned_loan=unassigned_loan,
    )


@pytest_asyncio.fixture
async def create_report(session_factory, seed):
    """Insert a report directly, bypassing the pull flow."""
    key = load_encryption_key(TEST_ENCRYPTION_KEY)
    counter = {"n": 0}

    async def _create(
        status="completed",
        expires_at=None,
        xactus_report_id="auto",
        raw_data=None,
        loan=None,
        created_at=None,
    ) -> CreditReport:
        counter["n"] += 1
        loan_ = loan or seed.loan
        report = CreditReport(
            loan_id=loan_.id,
            borrower_id=loan_.borrower_id,
            requested_by_id=seed.officer.id,
            xactus_report_id=(
                f"XR-SEED-{counter['n']}" if xactus_report_id == "auto" else xactus_report_id
            ),
            status=status,
            scores=[{"bureau": b, "score": 700, "model": "FICO", "factors": []} for b in BUREAUS],
            mid_score=700,
            tradelines=[{"creditor_name": "Capital One", "account_number": "****9876"}],
            public_records=[{"type": "judgment", "amount": 1500.0}],
            inquiries=[{"bureau": "equifax", "inquiry_type": "hard"}],
            summary={"total_accounts": 1},
            expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=730),
            retention_period_days=730,
        )
        if created_at is not None:
            report.created_at = created_at
        if raw_data is not None:
            encrypted = encrypt_payload(raw_data, key)
            report.encrypted_data = encrypted.ciphertext
            report.encryption_iv = encrypted.iv
            report.raw_data_stored = True
        async with session_factory() as session:
            session.add(report)
            await session.commit()
        return report

    return _create
