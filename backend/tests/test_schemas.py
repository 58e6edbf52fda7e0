"""Tests for credit API schemas covering CreditReportRequest and report responses."""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from mortgage_credit.schemas import (
    CreditReportRequest,
    CreditReportResponse,
    CreditReportSummaryResponse,
)

VALID = {
    "borrower_id": 7,
    "ssn": "123-45-6789",
    "date_of_birth": "1985-06-15",
    "address": {"street": "12 Harbor View Rd", "city": "Portland", "state": "ME", "zip": "04101"},
}


class TestCreditReportRequest:
    """Pull requests validate identity fields but not consent."""

    def test_defaults(self):
        data = CreditReportRequest(**VALID)
        assert data.pull_type == "hard"
        assert data.purpose == "preapproval"
        assert data.borrower_consent is None

    def test_ssn_without_dashes(self):
        assert CreditReportRequest(**{**VALID, "ssn": "123456789"}).ssn == "123456789"

    @pytest.mark.parametrize("ssn", ["12-345-6789", "abc-de-fghi", "1234567890"])
    def test_rejects_malformed_ssn(self, ssn):
        with pytest.raises(ValidationError):
            CreditReportRequest(**{**VALID, "ssn": ssn})

    def test_zip_plus_four(self):
        address = {**VALID["address"], "zip": "04101-1234"}
        assert CreditReportRequest(**{**VALID, "address": address}).address.zip == "04101-1234"

    def test_rejects_bad_zip(self):
        with pytest.raises(ValidationError):
            CreditReportRequest(**{**VALID, "address": {**VALID["address"], "zip": "4101"}})

    def test_rejects_unknown_pull_type(self):
        with pytest.raises(ValidationError):
            CreditReportRequest(**{**VALID, "pull_type": "medium"})

    def test_consent_value_is_not_coerced(self):
        """A string "true" reaches the consent gate unchanged."""
        data = CreditReportRequest(**{**VALID, "borrower_consent": {"obtained": "true"}})
        assert data.borrower_consent.obtained == "true"


class TestCreditReportResponses:

    def _report(self, **overrides):
        fields = dict(
            id=1,
            loan_id=2,
            borrower_id=3,
            requested_by_id=4,
            xactus_report_id="XR-1",
            report_type="tri_merge",
            status="completed",
            scores=[{"bureau": "equifax", "score": 702, "model": "FICO", "factors": []}],
            mid_score=702,
            summary={"total_accounts": 1},
            tradelines=[],
            public_records=[],
            inquiries=[],
            raw_data_stored=True,
            retention_period_days=730,
            created_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
            expires_at=datetime(2028, 9, 30, tzinfo=timezone.utc),
            encrypted_data="ciphertext",
            encryption_iv="00" * 16,
        )
        fields.update(overrides)
        return SimpleNamespace(**fields)

    def test_full_response_from_orm(self):
        data = CreditReportResponse.model_validate(self._report())
        assert data.mid_score == 702
        assert data.scores[0].bureau == "equifax"
        assert data.raw_data is None

    def test_encrypted_columns_never_serialized(self):
        dumped = CreditReportResponse.model_validate(self._report()).model_dump()
        assert "encrypted_data" not in dumped
        assert "encryption_iv" not in dumped

    def test_summary_response_has_no_detail(self):
        dumped = CreditReportSummaryResponse.model_validate(self._report()).model_dump()
        assert "tradelines" not in dumped
        assert dumped["expires_at"].year == 2028
