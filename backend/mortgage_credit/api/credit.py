"""Credit reporting API: tri-merge pulls, report reads, pull logs, retention."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from mortgage_credit.auth_utils import get_current_user, require_roles
from mortgage_credit.config import settings
from mortgage_credit.database import get_db
from mortgage_credit.models.error_log import ErrorSeverity
from mortgage_credit.models.user import User, UserRole
from mortgage_credit.schemas import (
    CreditReportRequest,
    CreditRequestResponse,
    CreditReportSummaryResponse,
    CreditReportResponse,
    CreditReportEnvelope,
    CreditReportListItem,
    LoanCreditReportsResponse,
    CreditPullLogResponse,
    CreditPullLogListResponse,
    PurgeResponse,
)
from mortgage_credit.services.credit_reporting.errors import (
    AccessDeniedError,
    CreditError,
    CreditValidationError,
    NotFoundError,
)
from mortgage_credit.services.credit_reporting.orchestrator import (
    PullRequest,
    reissue_report,
    request_report,
)
from mortgage_credit.services.credit_reporting.pull_log import DEFAULT_LOG_LIMIT, list_pull_logs
from mortgage_credit.services.credit_reporting.reports import (
    list_reports_for_loan,
    read_report_for_user,
)
from mortgage_credit.services.credit_reporting.retention import purge_expired
from mortgage_credit.services.error_logger import log_error_standalone

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)

CREDIT_ROLES = (UserRole.ADMIN, UserRole.LOAN_OFFICER_RETAIL, UserRole.LOAN_OFFICER_TPO)


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")


async def _http_error(
    exc: CreditError,
    request: Request,
    fallback: str,
    *,
    user: Optional[User] = None,
    loan_id: Optional[int] = None,
) -> HTTPException:
    """Translate a service error; internal failures get a generic detail."""
    if isinstance(exc, CreditValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AccessDeniedError):
        return HTTPException(status_code=403, detail="Access denied")

    await log_error_standalone(
        exc,
        severity=ErrorSeverity.ERROR,
        module="api.credit",
        request_method=request.method,
        request_path=str(request.url.path),
        status_code=500,
        loan_id=loan_id,
        pull_log_id=getattr(exc, "pull_log_id", None),
        user_id=user.id if user else None,
        ip_address=_client_ip(request),
    )
    return HTTPException(status_code=500, detail=fallback)


# ── Pulls ────────────────────────────────────────────────────


@router.post("/loans/{loan_id}/request", response_model=CreditRequestResponse, status_code=201)
@limiter.limit(settings.credit_request_rate_limit)
async def request_credit_report(
    loan_id: int,
    data: CreditReportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*CREDIT_ROLES)),
):
    """Order a tri-merge report. Requires explicit borrower consent."""
    pull = PullRequest(
        ssn=data.ssn,
        date_of_birth=data.date_of_birth.isoformat(),
        address=data.address.model_dump(),
        pull_type=data.pull_type,
        purpose=data.purpose,
        ip_address=_client_ip(request),
        user_agent=_user_agent(request),
    )
    consent = data.borrower_consent.model_dump() if data.borrower_consent else None

    try:
        outcome = await request_report(
            db,
            loan_id=loan_id,
            borrower_id=data.borrower_id,
            requested_by=current_user,
            pull=pull,
            consent=consent,
        )
    except CreditError as exc:
        raise await _http_error(
            exc, request, "Failed to request credit report", user=current_user, loan_id=loan_id,
        )

    return CreditRequestResponse(
        message="Credit report requested successfully",
        credit_report=CreditReportSummaryResponse.model_validate(outcome.report),
        pull_log_id=outcome.pull_log.id,
        notification_sent=outcome.notified,
    )


@router.post("/reports/{report_id}/reissue", response_model=CreditRequestResponse)
async def reissue_credit_report(
    report_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*CREDIT_ROLES)),
):
    try:
        outcome = await reissue_report(
            db,
            report_id=report_id,
            requested_by=current_user,
            ip_address=_client_ip(request),
            user_agent=_user_agent(request),
        )
    except CreditError as exc:
        raise await _http_error(exc, request, "Failed to reissue credit report", user=current_user)

    return CreditRequestResponse(
        message="Credit report reissued successfully",
        credit_report=CreditReportSummaryResponse.model_validate(outcome.report),
        pull_log_id=outcome.pull_log.id,
        notification_sent=outcome.notified,
    )


# ── Reads ────────────────────────────────────────────────────


@router.get("/reports/{report_id}", response_model=CreditReportEnvelope)
async def get_credit_report(
    report_id: int,
    request: Request,
    include_raw_data: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Read a report. The decrypted payload needs a privileged role and opt-in."""
    try:
        report, raw_data = await read_report_for_user(
            db, report_id, current_user, include_raw_data=include_raw_data
        )
    except CreditError as exc:
        raise await _http_error(exc, request, "Failed to retrieve credit report", user=current_user)

    payload = CreditReportResponse.model_validate(report)
    payload.raw_data = raw_data
    return CreditReportEnvelope(credit_report=payload)


@router.get("/loans/{loan_id}/reports", response_model=LoanCreditReportsResponse)
async def get_credit_reports_for_loan(
    loan_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        reports = await list_reports_for_loan(db, loan_id, current_user)
    except CreditError as exc:
        raise await _http_error(
            exc, request, "Failed to retrieve credit reports", user=current_user, loan_id=loan_id,
        )
    return LoanCreditReportsResponse(
        loan_id=loan_id,
        credit_reports=[CreditReportListItem.model_validate(r) for r in reports],
    )


@router.get("/logs", response_model=CreditPullLogListResponse)
async def get_credit_pull_logs(
    loan_id: Optional[int] = Query(None),
    borrower_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_LOG_LIMIT),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*CREDIT_ROLES)),
):
    """Pull-log audit trail, newest first."""
    logs = await list_pull_logs(
        db, loan_id=loan_id, borrower_id=borrower_id, status=status, limit=limit,
    )
    return CreditPullLogListResponse(
        logs=[CreditPullLogResponse.model_validate(log) for log in logs],
    )


# ── Retention ────────────────────────────────────────────────


@router.post("/expired/purge", response_model=PurgeResponse)
async def purge_expired_credit_reports(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
):
    """Expire and redact every report past its retention window."""
    purged = await purge_expired(db)
    logger.info("Admin %s purged %d expired credit reports", current_user.id, purged)
    return PurgeResponse(message="Expired credit reports purged", purged_count=purged)
