"""Borrower consent gate for credit pulls."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from mortgage_credit.services.credit_reporting.errors import CreditValidationError


@dataclass(frozen=True)
class ConsentSnapshot:
    """Consent as it stood when the pull was initiated."""
    obtained: bool
    consent_date: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def as_log_columns(self) -> dict[str, Any]:
        return {
            "consent_obtained": self.obtained,
            "consent_date": self.consent_date,
            "consent_ip_address": self.ip_address,
            "consent_user_agent": self.user_agent,
        }


def validate_consent(
    consent: Optional[Mapping[str, Any]],
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ConsentSnapshot:
    """Reject unless consent was explicitly obtained; snapshot it otherwise.

    Only a literal ``True`` counts: truthy strings such as ``"yes"`` are
    rejected.
    """
    if not consent or consent.get("obtained") is not True:
        raise CreditValidationError("Borrower consent is required for credit pull")

    consent_date = consent.get("consent_date") or now or datetime.now(timezone.utc)
    if consent_date.tzinfo is None:
        consent_date = consent_date.replace(tzinfo=timezone.utc)

    return ConsentSnapshot(
        obtained=True,
        consent_date=consent_date,
        ip_address=ip_address[:45] if ip_address else None,
        user_agent=user_agent[:500] if user_agent else None,
    )
