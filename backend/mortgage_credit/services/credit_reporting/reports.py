"""Credit report persistence and access-checked reads.

The encrypted payload columns are deferred on the mapping, so every query
here leaves them out unless ``include_raw=True`` asks for the pair.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer_group

from mortgage_credit.models.credit_report import (
    CreditReport,
    CreditReportStatus,
    ENCRYPTED_PAYLOAD_GROUP,
)
from mortgage_credit.models.loan import LoanApplication
from mortgage_credit.models.user import User
from mortgage_credit.services.credit_bureau.adapter import TriMergeResponse
from mortgage_credit.services.credit_reporting.access import (
    ensure_can_access_loan,
    ensure_can_access_report,
    ensure_can_view_raw_data,
)
from mortgage_credit.services.credit_reporting.encryption import (
    configured_key,
    decrypt_payload,
    encrypt_payload,
)
from mortgage_credit.services.credit_reporting.errors import NotFoundError
from mortgage_credit.services.credit_reporting.mid_score import mid_score_from_bureaus
from mortgage_credit.services.credit_reporting.retention import set_expiration

logger = logging.getLogger(__name__)


def build_report(
    response: TriMergeResponse,
    *,
    loan_id: int,
    borrower_id: int,
    requested_by_id: int,
    key: bytes,
    retention_days: int,
    now: Optional[datetime] = None,
) -> CreditReport:
    """Assemble an unsaved report: mid score, encrypted raw payload, expiry."""
    report = CreditReport(
        loan_id=loan_id,
        borrower_id=borrower_id,
        requested_by_id=requested_by_id,
        xactus_report_id=response.report_id,
        report_type=response.report_type,
        status=(
            CreditReportStatus.COMPLETED.value
            if response.status == "completed"
            else CreditReportStatus.PENDING.value
        ),
        scores=response.scores,
        mid_score=mid_score_from_bureaus(response.scores),
        tradelines=response.tradelines,
        public_records=response.public_records,
        inquiries=response.inquiries,
        summary=response.summary,
        retention_period_days=retention_days,
        raw_data_stored=False,
    )
    if response.raw_data is not None:
        encrypted = encrypt_payload(response.raw_data, key)
        report.encrypted_data = encrypted.ciphertext
        report.encryption_iv = encrypted.iv
        report.raw_data_stored = True
    set_expiration(report, now)
    return report


async def get_loan(db: AsyncSession, loan_id: int) -> LoanApplication:
    loan = await db.get(LoanApplication, loan_id)
    if loan is None:
        raise NotFoundError(f"Loan {loan_id} not found")
    return loan


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"Borrower {user_id} not found")
    return user


async def get_report(
    db: AsyncSession, report_id: int, *, include_raw: bool = False
) -> CreditReport:
    query = select(CreditReport).where(CreditReport.id == report_id)
    if include_raw:
        query = query.options(undefer_group(ENCRYPTED_PAYLOAD_GROUP)).execution_options(
            populate_existing=True
        )
    result = await db.execute(query)
    report = result.scalar_one_or_none()
    if report is None:
        raise NotFoundError(f"Credit report {report_id} not found")
    return report


async def read_report_for_user(
    db: AsyncSession, report_id: int, user: User, include_raw_data: bool = False
) -> tuple[CreditReport, Optional[Any]]:
    """Return the report and, for privileged opt-in reads, its decrypted payload."""
    report = await get_report(db, report_id)
    loan = await db.get(LoanApplication, report.loan_id)
    ensure_can_access_report(user, report, loan)

    if not include_raw_data:
        return report, None

    ensure_can_view_raw_data(user)
    report = await get_report(db, report_id, include_raw=True)
    raw_data = decrypt_payload(report.encrypted_data, report.encryption_iv, configured_key())
    logger.info("User %s read raw data of credit report %s", user.id, report_id)
    return report, raw_data


async def list_reports_for_loan(
    db: AsyncSession, loan_id: int, user: User
) -> list[CreditReport]:
    """Full pull history for the loan, newest first."""
    loan = await get_loan(db, loan_id)
    ensure_can_access_loan(user, loan)
    result = await db.execute(
        select(CreditReport)
        .where(CreditReport.loan_id == loan_id)
        .order_by(CreditReport.created_at.desc(), CreditReport.id.desc())
    )
    return list(result.scalars().all())
