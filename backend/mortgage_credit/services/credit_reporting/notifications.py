"""Best-effort notification of the loan officer when a report lands.

Never raises: the pull has already succeeded by the time this runs and a
notification problem must not change that outcome.  The notification is
written through its own session, so a failed write cannot roll back or
expire anything held by the caller's session.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value

from mortgage_credit import database
from mortgage_credit.models.credit_pull_log import CreditPullLog
from mortgage_credit.models.credit_report import CreditReport
from mortgage_credit.models.loan import LoanApplication
from mortgage_credit.models.notification import Notification
from mortgage_credit.models.user import User

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "credit_report_ready"


def build_officer_message(borrower: User, report: CreditReport) -> str:
    mid = report.mid_score if report.mid_score is not None else "not available"
    return f"Credit report for {borrower.full_name} is ready. Mid score: {mid}"


async def notify_loan_officer(
    loan: LoanApplication,
    borrower: User,
    report: CreditReport,
    pull_log: CreditPullLog,
) -> bool:
    """Queue an in-app notification for the assigned officer; True if sent."""
    officer_id = loan.assigned_officer_id
    if not officer_id:
        logger.info("Loan %s has no assigned officer, skipping credit notification", loan.id)
        return False

    report_id = report.id
    pull_log_id = pull_log.id
    notified_at = datetime.now(timezone.utc)
    try:
        async with database.async_session() as session:
            session.add(Notification(
                user_id=officer_id,
                type=NOTIFICATION_TYPE,
                title="New Credit Report Available",
                message=build_officer_message(borrower, report),
                metadata_={
                    "loan_id": loan.id,
                    "borrower_id": borrower.id,
                    "credit_report_id": report_id,
                    "mid_score": report.mid_score,
                },
            ))
            await session.execute(
                update(CreditPullLog)
                .where(CreditPullLog.id == pull_log_id)
                .values(notification_sent=True, notified_at=notified_at)
            )
            await session.commit()
    except Exception as exc:
        logger.error(
            "Failed to notify loan officer %s of credit report %s: %s",
            officer_id, report_id, exc,
        )
        return False

    # Already persisted; mirror it without dirtying the caller's session
    set_committed_value(pull_log, "notification_sent", True)
    set_committed_value(pull_log, "notified_at", notified_at)
    logger.info("Loan officer %s notified of credit report %s", officer_id, report_id)
    return True
