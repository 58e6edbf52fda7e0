"""Mock tri-merge client for development and testing.

Generates synthetic Xactus-format report bodies, seeded from the borrower's
SSN (or the report id for reissues) so the same borrower always gets the same
file, and runs them through the real transformation.

SSNs ending in ``0000`` simulate a provider outage.
"""

import hashlib
import random
import uuid
from datetime import date, timedelta
from typing import Any, Dict, List

from mortgage_credit.services.credit_bureau.adapter import (
    BorrowerIdentity,
    TriMergeClient,
    TriMergeResponse,
)
from mortgage_credit.services.credit_bureau.transform import transform_report
from mortgage_credit.services.credit_reporting.errors import ProviderError

# ── Reference data ────────────────────────────────────

SCENARIOS = {
    "prime": {"score_range": (740, 820), "tradelines": (4, 9), "late_chance": 0.02, "record_chance": 0.0},
    "near_prime": {"score_range": (660, 739), "tradelines": (3, 7), "late_chance": 0.1, "record_chance": 0.05},
    "subprime": {"score_range": (540, 659), "tradelines": (2, 6), "late_chance": 0.35, "record_chance": 0.25},
}

CREDITORS = [
    "Chase Bank USA",
    "Capital One",
    "Wells Fargo Home Mortgage",
    "Toyota Motor Credit",
    "Navient",
    "Discover Financial",
    "Synchrony Bank",
    "Ally Financial",
]

ACCOUNT_TYPES = ["Revolving", "Installment", "Mortgage", "Auto", "Student"]
BUREAUS = ["Equifax", "Experian", "TransUnion"]
SCORE_MODELS = {"Equifax": "FICO 5", "Experian": "FICO 2", "TransUnion": "FICO 4"}
FACTORS = [
    "Proportion of balances to credit limits is too high",
    "Length of time accounts have been established",
    "Too many inquiries last 12 months",
    "Number of accounts with delinquency",
    "Lack of recent installment loan information",
]


def _rng_for(seed_text: str) -> random.Random:
    return random.Random(int(hashlib.sha256(seed_text.encode()).hexdigest(), 16))


class MockTriMergeClient(TriMergeClient):
    """Mock implementation producing deterministic tri-merge data."""

    @property
    def provider_name(self) -> str:
        return "mock_xactus"

    # ── helpers ───────────────────────────────────────

    def _gen_scores(self, rng: random.Random, low: int, high: int) -> List[Dict[str, Any]]:
        base = rng.randint(low, high)
        return [
            {
                "bureau": bureau,
                "value": max(300, min(850, base + rng.randint(-25, 25))),
                "model": SCORE_MODELS[bureau],
                "factors": rng.sample(FACTORS, 2),
            }
            for bureau in BUREAUS
        ]

    def _gen_tradelines(self, rng: random.Random, count: int, late_chance: float) -> List[Dict[str, Any]]:
        tradelines = []
        for _ in range(count):
            account_type = rng.choice(ACCOUNT_TYPES)
            limit = round(rng.uniform(1_000, 25_000), 2) if account_type == "Revolving" else 0
            balance = (
                round(limit * rng.uniform(0.0, 0.9), 2)
                if account_type == "Revolving"
                else round(rng.uniform(2_000, 350_000), 2)
            )
            opened = date.today() - timedelta(days=rng.randint(180, 365 * 15))
            closed = rng.random() < 0.15
            tradelines.append({
                "creditor_name": rng.choice(CREDITORS),
                "account_number": "".join(str(rng.randint(0, 9)) for _ in range(12)),
                "account_type": account_type,
                "balance": 0 if closed else balance,
                "credit_limit": limit,
                "monthly_payment": round(balance * 0.02, 2),
                "payment_status": "Closed" if closed else (
                    "Past Due" if rng.random() < late_chance else "Current"
                ),
                "open_date": opened.isoformat(),
                "last_payment_date": (date.today() - timedelta(days=rng.randint(1, 45))).isoformat(),
                "remarks": None,
            })
        return tradelines

    def _gen_inquiries(self, rng: random.Random) -> List[Dict[str, Any]]:
        return [
            {
                "bureau": rng.choice(BUREAUS),
                "creditor_name": rng.choice(CREDITORS),
                "inquiry_date": (date.today() - timedelta(days=rng.randint(1, 700))).isoformat(),
                "inquiry_type": rng.choice(["hard", "soft"]),
            }
            for _ in range(rng.randint(0, 4))
        ]

    def _gen_public_records(self, rng: random.Random, chance: float) -> List[Dict[str, Any]]:
        if rng.random() >= chance:
            return []
        return [{
            "type": rng.choice(["Bankruptcy", "Tax Lien", "Judgment"]),
            "filing_date": (date.today() - timedelta(days=rng.randint(400, 2500))).isoformat(),
            "amount": round(rng.uniform(1_000, 40_000), 2),
            "status": rng.choice(["Discharged", "Satisfied", "Open"]),
            "remarks": None,
        }]

    def _gen_report(self, rng: random.Random, report_type: str = "tri_merge") -> Dict[str, Any]:
        scenario = SCENARIOS[rng.choice(list(SCENARIOS))]
        low, high = scenario["score_range"]
        return {
            "report_id": f"XR-{uuid.uuid4().hex[:12].upper()}",
            "transaction_id": f"TX-{uuid.uuid4().hex[:16].upper()}",
            "status": "completed",
            "report_type": report_type,
            "credit_scores": self._gen_scores(rng, low, high),
            "tradelines": self._gen_tradelines(
                rng, rng.randint(*scenario["tradelines"]), scenario["late_chance"]
            ),
            "public_records": self._gen_public_records(rng, scenario["record_chance"]),
            "inquiries": self._gen_inquiries(rng),
        }

    # ── TriMergeClient ────────────────────────────────

    async def request_tri_merge(self, borrower: BorrowerIdentity) -> TriMergeResponse:
        if borrower.ssn.endswith("0000"):
            raise ProviderError("Mock provider unavailable")
        return transform_report(self._gen_report(_rng_for(borrower.ssn)))

    async def request_soft_pull(self, borrower: BorrowerIdentity) -> TriMergeResponse:
        if borrower.ssn.endswith("0000"):
            raise ProviderError("Mock provider unavailable")
        return transform_report(self._gen_report(_rng_for(borrower.ssn), report_type="soft_pull"))

    async def reissue_report(self, report_id: str) -> TriMergeResponse:
        return transform_report(self._gen_report(_rng_for(report_id)))
