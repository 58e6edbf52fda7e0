"""Credit pull orchestration: request and reissue tri-merge reports.

Ordering guarantees:

1. Consent is validated before anything is written.  A rejected request
   leaves no pull log.
2. The ``initiated`` pull log is committed before the provider is called.
3. The new report and the pull log's ``completed`` state are committed in
   one transaction, so neither can exist without the other.
4. Any failure after (2) marks the pull log ``failed`` and re-raises; a
   failure to write that state is logged and never replaces the original.
5. Officer notification runs last and cannot fail the request.

Concurrent pulls for the same loan are independent: there is no per-loan lock.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mortgage_credit.config import settings
from mortgage_credit.models.credit_pull_log import CreditPullLog, PullPurpose, PullType
from mortgage_credit.models.credit_report import CreditReport
from mortgage_credit.models.loan import LoanApplication
from mortgage_credit.models.user import User
from mortgage_credit.services.credit_bureau.adapter import (
    BorrowerIdentity,
    TriMergeClient,
    TriMergeResponse,
    get_tri_merge_client,
)
from mortgage_credit.services.credit_reporting.consent import ConsentSnapshot, validate_consent
from mortgage_credit.services.credit_reporting.encryption import configured_key
from mortgage_credit.services.credit_reporting.errors import (
    CreditPullError,
    CreditValidationError,
    PersistenceError,
    ProviderError,
)
from mortgage_credit.services.credit_reporting.notifications import notify_loan_officer
from mortgage_credit.services.credit_reporting.pull_log import (
    complete_pull_log,
    find_origin_pull_log,
    mark_pull_log_failed,
    open_pull_log,
)
from mortgage_credit.services.credit_reporting.reports import (
    build_report,
    get_loan,
    get_report,
    get_user,
)

logger = logging.getLogger(__name__)


@dataclass
class PullRequest:
    """Borrower details and pull parameters supplied with a request."""
    ssn: str
    date_of_birth: str
    address: dict[str, str] = field(default_factory=dict)
    pull_type: str = PullType.HARD.value
    purpose: str = PullPurpose.PREAPPROVAL.value
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class PullOutcome:
    report: CreditReport
    pull_log: CreditPullLog
    notified: bool


async def _call_provider(coro) -> TriMergeResponse:
    """Bound the provider call; a timeout is just another provider failure."""
    try:
        return await asyncio.wait_for(coro, timeout=settings.xactus_timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise ProviderError(
            f"Tri-merge provider timed out after {settings.xactus_timeout_seconds}s"
        ) from exc


async def _execute_pull(
    db: AsyncSession,
    *,
    loan: LoanApplication,
    borrower: User,
    requested_by: User,
    pull_type: str,
    purpose: str,
    consent: ConsentSnapshot,
    provider_call,
) -> PullOutcome:
    """Shared request/reissue flow from the pull-log write onwards."""
    # Resolve the key before the attempt is logged: a missing key is a
    # configuration fault, not a pull attempt.
    key = configured_key()

    pull_log = await open_pull_log(
        db,
        loan_id=loan.id,
        borrower_id=borrower.id,
        requested_by_id=requested_by.id,
        pull_type=pull_type,
        purpose=purpose,
        consent=consent,
    )
    pull_log_id = pull_log.id

    try:
        response = await _call_provider(provider_call())
        report = build_report(
            response,
            loan_id=loan.id,
            borrower_id=borrower.id,
            requested_by_id=requested_by.id,
            key=key,
            retention_days=settings.credit_retention_days,
        )
        db.add(report)
        await db.flush()
        complete_pull_log(pull_log, report, response.transaction_id)
        await db.commit()
    except Exception as exc:
        await _record_failure(db, pull_log_id, exc)
        if isinstance(exc, CreditPullError):
            exc.pull_log_id = pull_log_id
            raise
        raise CreditPullError(
            f"Credit pull {pull_log_id} failed: {exc}", pull_log_id=pull_log_id,
        ) from exc

    logger.info(
        "Credit report %s stored: loan=%s borrower=%s pull_log=%s mid_score=%s",
        report.id, loan.id, borrower.id, pull_log_id, report.mid_score,
    )
    notified = await notify_loan_officer(loan, borrower, report, pull_log)
    return PullOutcome(report=report, pull_log=pull_log, notified=notified)


async def _record_failure(db: AsyncSession, pull_log_id: int, exc: Exception) -> None:
    logger.error("Credit pull %s failed: %s", pull_log_id, exc)
    try:
        await db.rollback()
        await mark_pull_log_failed(db, pull_log_id, str(exc) or type(exc).__name__)
    except PersistenceError as log_exc:
        logger.error("Could not record failure of credit pull %s: %s", pull_log_id, log_exc)
    except Exception as log_exc:
        logger.error("Rollback failed for credit pull %s: %s", pull_log_id, log_exc)


async def request_report(
    db: AsyncSession,
    *,
    loan_id: int,
    borrower_id: int,
    requested_by: User,
    pull: PullRequest,
    consent: Optional[Mapping[str, Any]],
    client: Optional[TriMergeClient] = None,
) -> PullOutcome:
    """Order a new report for a borrower on a loan; soft pulls use the soft-inquiry endpoint."""
    loan = await get_loan(db, loan_id)
    borrower = await get_user(db, borrower_id)
    snapshot = validate_consent(consent, pull.ip_address, pull.user_agent)

    client = client or get_tri_merge_client()
    identity = BorrowerIdentity(
        first_name=borrower.first_name,
        last_name=borrower.last_name,
        ssn=pull.ssn,
        date_of_birth=pull.date_of_birth,
        address=dict(pull.address),
        purpose=pull.purpose,
    )

    if pull.pull_type == PullType.SOFT.value:
        order = client.request_soft_pull
    else:
        order = client.request_tri_merge

    return await _execute_pull(
        db,
        loan=loan,
        borrower=borrower,
        requested_by=requested_by,
        pull_type=pull.pull_type,
        purpose=pull.purpose,
        consent=snapshot,
        provider_call=lambda: order(identity),
    )


async def reissue_report(
    db: AsyncSession,
    *,
    report_id: int,
    requested_by: User,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    client: Optional[TriMergeClient] = None,
) -> PullOutcome:
    """Refresh an existing report into a new one; the source row is untouched."""
    existing = await get_report(db, report_id)
    if not existing.xactus_report_id:
        raise CreditValidationError(f"Credit report {report_id} has no provider report id")

    loan = await get_loan(db, existing.loan_id)
    borrower = await get_user(db, existing.borrower_id)
    origin = await find_origin_pull_log(db, report_id)
    if origin is None or not origin.consent_obtained:
        raise CreditValidationError(f"No borrower consent on record for credit report {report_id}")
    snapshot = validate_consent(
        {"obtained": True, "consent_date": origin.consent_date}, ip_address, user_agent
    )
    source_report_id = existing.xactus_report_id

    client = client or get_tri_merge_client()
    outcome = await _execute_pull(
        db,
        loan=loan,
        borrower=borrower,
        requested_by=requested_by,
        pull_type=PullType.HARD.value,
        purpose=PullPurpose.REISSUE.value,
        consent=snapshot,
        provider_call=lambda: client.reissue_report(source_report_id),
    )
    logger.info("Credit report %s reissued as %s", report_id, outcome.report.id)
    return outcome
