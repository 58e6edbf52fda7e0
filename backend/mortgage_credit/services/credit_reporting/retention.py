"""FCRA retention: expiry dates and the expire-and-redact transition.

``expires_at`` is fixed once, before a report is first persisted.  Expiry is
the single transition ``→ expired``; its only side effect is the redaction in
``REDACTED_VALUES``.  Rows are never deleted, so the redacted shell (status,
dates, scores, identities) stays on file.

Completed reports close to their expiry date are listed for a daily warning.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import Update, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mortgage_credit.config import settings
from mortgage_credit.models.credit_report import (
    ALLOWED_TRANSITIONS,
    CreditReport,
    CreditReportStatus,
)

logger = logging.getLogger(__name__)

# Warn about completed reports this many days before they expire
EXPIRY_WARNING_DAYS = 30

EXPIRABLE_STATUSES = tuple(
    status for status, targets in ALLOWED_TRANSITIONS.items()
    if CreditReportStatus.EXPIRED.value in targets
)

REDACTED_VALUES = {
    "encrypted_data": None,
    "encryption_iv": None,
    "tradelines": [],
    "public_records": [],
    "inquiries": [],
    "raw_data_stored": False,
}


def compute_expiration(retention_days: int, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) + timedelta(days=retention_days)


def set_expiration(report: CreditReport, now: Optional[datetime] = None) -> datetime:
    """Assign ``expires_at`` if unset; an existing value is never recomputed."""
    if report.retention_period_days is None:
        report.retention_period_days = settings.credit_retention_days
    if report.expires_at is None:
        report.expires_at = compute_expiration(report.retention_period_days, now)
    return report.expires_at


def expire_transition(now: datetime) -> Update:
    """UPDATE moving every overdue live report to ``expired`` with redaction.

    The status predicate doubles as a compare-and-set guard: a row another
    purge already expired no longer matches, so overlapping runs neither
    redact twice nor count twice.
    """
    return (
        update(CreditReport)
        .where(
            CreditReport.status.in_(EXPIRABLE_STATUSES),
            CreditReport.expires_at < now,
        )
        .values(status=CreditReportStatus.EXPIRED.value, **REDACTED_VALUES)
        .returning(CreditReport.id)
        .execution_options(synchronize_session=False)
    )


async def purge_expired(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Expire and redact every report past its retention date; returns the count."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(expire_transition(now))
    expired_ids = result.scalars().all()
    await db.commit()
    if expired_ids:
        logger.info("Expired %d credit reports per FCRA retention: %s", len(expired_ids), expired_ids)
    else:
        logger.info("No credit reports due for FCRA expiry")
    return len(expired_ids)


@dataclass(frozen=True)
class ExpiringReport:
    report_id: int
    loan_id: int
    expires_at: datetime
    days_remaining: int


def _days_until(expires_at: datetime, now: datetime) -> int:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return math.ceil((expires_at - now).total_seconds() / 86400)


async def find_expiring_reports(
    db: AsyncSession,
    within_days: int = EXPIRY_WARNING_DAYS,
    now: Optional[datetime] = None,
) -> list[ExpiringReport]:
    """Completed reports whose retention ends within ``within_days``, soonest first."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(CreditReport.id, CreditReport.loan_id, CreditReport.expires_at)
        .where(
            CreditReport.status == CreditReportStatus.COMPLETED.value,
            CreditReport.expires_at >= now,
            CreditReport.expires_at <= now + timedelta(days=within_days),
        )
        .order_by(CreditReport.expires_at, CreditReport.id)
    )
    expiring = [
        ExpiringReport(
            report_id=row.id,
            loan_id=row.loan_id,
            expires_at=row.expires_at,
            days_remaining=_days_until(row.expires_at, now),
        )
        for row in result.all()
    ]
    logger.info("%d credit reports expire within %d days", len(expiring), within_days)
    for report in expiring:
        logger.info(
            "Credit report %s on loan %s expires in %d days",
            report.report_id, report.loan_id, report.days_remaining,
        )
    return expiring
