"""Abstract tri-merge client interface and factory."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mortgage_credit.config import settings


@dataclass
class BorrowerIdentity:
    """PII sent to the provider; never persisted by this service."""
    first_name: str
    last_name: str
    ssn: str
    date_of_birth: str
    address: Dict[str, str]
    purpose: str = "preapproval"


@dataclass
class TriMergeResponse:
    """Provider answer after transformation into our record layout."""
    report_id: Optional[str]
    transaction_id: Optional[str]
    status: str
    report_type: str = "tri_merge"
    scores: List[Dict[str, Any]] = field(default_factory=list)
    tradelines: List[Dict[str, Any]] = field(default_factory=list)
    public_records: List[Dict[str, Any]] = field(default_factory=list)
    inquiries: List[Dict[str, Any]] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    raw_data: Any = None


class TriMergeClient(ABC):
    """Outbound contract to the tri-merge credit aggregator."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Name of the aggregator."""
        ...

    @abstractmethod
    async def request_tri_merge(self, borrower: BorrowerIdentity) -> TriMergeResponse:
        """Order a new tri-merge report for the borrower."""
        ...

    @abstractmethod
    async def request_soft_pull(self, borrower: BorrowerIdentity) -> TriMergeResponse:
        """Order a soft-inquiry report for prequalification."""
        ...

    @abstractmethod
    async def reissue_report(self, report_id: str) -> TriMergeResponse:
        """Refresh an existing report by the provider's report id."""
        ...


def get_tri_merge_client() -> TriMergeClient:
    """Factory function that returns the configured tri-merge client."""
    provider = settings.credit_bureau_provider.lower()

    if provider == "xactus":
        from mortgage_credit.services.credit_bureau.xactus import XactusClient
        return XactusClient()
    else:
        from mortgage_credit.services.credit_bureau.mock_bureau import MockTriMergeClient
        return MockTriMergeClient()
