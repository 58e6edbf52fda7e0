"""Pull-log ledger: the audit trail of every credit pull attempt."""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mortgage_credit.models.credit_pull_log import CreditPullLog, PullLogStatus
from mortgage_credit.models.credit_report import CreditReport
from mortgage_credit.services.credit_reporting.consent import ConsentSnapshot
from mortgage_credit.services.credit_reporting.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 50
MAX_LOG_LIMIT = 500
ERROR_MESSAGE_MAX = 500


async def open_pull_log(
    db: AsyncSession,
    *,
    loan_id: int,
    borrower_id: int,
    requested_by_id: int,
    pull_type: str,
    purpose: str,
    consent: ConsentSnapshot,
) -> CreditPullLog:
    """Create the ``initiated`` row and commit it.

    Must return before the provider is called: a crash mid-call then still
    leaves the attempt on record.
    """
    pull_log = CreditPullLog(
        loan_id=loan_id,
        borrower_id=borrower_id,
        requested_by_id=requested_by_id,
        pull_type=pull_type,
        purpose=purpose,
        status=PullLogStatus.INITIATED.value,
        **consent.as_log_columns(),
    )
    db.add(pull_log)
    await db.commit()
    logger.info(
        "Credit pull %s initiated: loan=%s borrower=%s purpose=%s",
        pull_log.id, loan_id, borrower_id, purpose,
    )
    return pull_log


def complete_pull_log(
    pull_log: CreditPullLog, report: CreditReport, transaction_id: Optional[str]
) -> None:
    """Link the report; the caller commits this together with the report."""
    pull_log.status = PullLogStatus.COMPLETED.value
    pull_log.credit_report_id = report.id
    pull_log.xactus_transaction_id = transaction_id


async def mark_pull_log_failed(db: AsyncSession, pull_log_id: int, error_message: str) -> None:
    """Record the failure in its own transaction.

    Raises PersistenceError if that write fails; callers log it and carry on
    propagating the original error.
    """
    message = (error_message or "Unknown error")[:ERROR_MESSAGE_MAX]
    try:
        await db.execute(
            update(CreditPullLog)
            .where(
                CreditPullLog.id == pull_log_id,
                CreditPullLog.status == PullLogStatus.INITIATED.value,
            )
            .values(status=PullLogStatus.FAILED.value, error_message=message)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception as exc:
        await db.rollback()
        raise PersistenceError(f"Could not mark pull log {pull_log_id} failed: {exc}") from exc
    logger.warning("Credit pull %s failed: %s", pull_log_id, message)


async def list_pull_logs(
    db: AsyncSession,
    *,
    loan_id: Optional[int] = None,
    borrower_id: Optional[int] = None,
    status: Optional[str] = None,
    limit: int = DEFAULT_LOG_LIMIT,
) -> list[CreditPullLog]:
    """Newest first; ``limit`` is clamped to 1..MAX_LOG_LIMIT."""
    query = select(CreditPullLog)
    if loan_id is not None:
        query = query.where(CreditPullLog.loan_id == loan_id)
    if borrower_id is not None:
        query = query.where(CreditPullLog.borrower_id == borrower_id)
    if status:
        query = query.where(CreditPullLog.status == status)
    limit = max(1, min(limit, MAX_LOG_LIMIT))
    result = await db.execute(
        query.order_by(CreditPullLog.created_at.desc(), CreditPullLog.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def find_origin_pull_log(db: AsyncSession, credit_report_id: int) -> Optional[CreditPullLog]:
    """The completed pull that produced ``credit_report_id``, if any."""
    result = await db.execute(
        select(CreditPullLog)
        .where(
            CreditPullLog.credit_report_id == credit_report_id,
            CreditPullLog.status == PullLogStatus.COMPLETED.value,
        )
        .order_by(CreditPullLog.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
