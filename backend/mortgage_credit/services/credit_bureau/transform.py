"""Map Xactus report JSON onto our credit report layout.

All functions are pure.  Dates stay ISO-8601 strings so the result can be
stored in JSON columns and encrypted without custom encoders.
"""

from typing import Any, Dict, List, Optional

from mortgage_credit.services.credit_bureau.adapter import TriMergeResponse

BUREAU_MAP = {
    "Equifax": "equifax",
    "Experian": "experian",
    "TransUnion": "transunion",
    "TU": "transunion",
}

ACCOUNT_TYPE_MAP = {
    "Revolving": "revolving",
    "Installment": "installment",
    "Mortgage": "mortgage",
    "Auto": "auto",
    "Student": "student",
    "Open": "other",
}

PAYMENT_STATUS_MAP = {
    "Current": "current",
    "Past Due": "past_due",
    "Charge Off": "charge_off",
    "Collection": "collection",
    "Closed": "closed",
}

PUBLIC_RECORD_TYPE_MAP = {
    "Bankruptcy": "bankruptcy",
    "Tax Lien": "tax_lien",
    "Judgment": "judgment",
    "Foreclosure": "foreclosure",
}

REPORT_TYPES = {"tri_merge", "single_bureau", "soft_pull"}


def map_bureau(name: Optional[str]) -> str:
    if not name:
        return "unknown"
    return BUREAU_MAP.get(name, name.lower())


def mask_account_number(number: Optional[str]) -> Optional[str]:
    if not number:
        return None
    return f"****{number[-4:]}"


def extract_scores(raw_scores: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "bureau": map_bureau(s.get("bureau")),
            "score": int(s["value"]),
            "model": s.get("model") or "FICO",
            "factors": list(s.get("factors") or []),
        }
        for s in raw_scores
        if s.get("value") is not None
    ]


def extract_tradelines(raw_tradelines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "creditor_name": t.get("creditor_name"),
            "account_number": mask_account_number(t.get("account_number")),
            "account_type": ACCOUNT_TYPE_MAP.get(t.get("account_type"), "other"),
            "balance": float(t.get("balance") or 0),
            "credit_limit": float(t.get("credit_limit") or 0),
            "monthly_payment": float(t.get("monthly_payment") or 0),
            "payment_status": PAYMENT_STATUS_MAP.get(t.get("payment_status"), "current"),
            "open_date": t.get("open_date"),
            "last_payment_date": t.get("last_payment_date"),
            "remarks": t.get("remarks"),
        }
        for t in raw_tradelines
    ]


def extract_public_records(raw_records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    records = []
    for r in raw_records:
        raw_type = r.get("type") or ""
        records.append({
            "type": PUBLIC_RECORD_TYPE_MAP.get(raw_type, raw_type.lower()),
            "filing_date": r.get("filing_date"),
            "amount": float(r.get("amount") or 0),
            "status": r.get("status"),
            "remarks": r.get("remarks"),
        })
    return records


def extract_inquiries(raw_inquiries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "bureau": map_bureau(i.get("bureau")),
            "creditor_name": i.get("creditor_name"),
            "inquiry_date": i.get("inquiry_date"),
            "inquiry_type": i.get("inquiry_type"),
        }
        for i in raw_inquiries
    ]


def calculate_summary(
    tradelines: List[Dict[str, Any]], inquiry_count: int
) -> Dict[str, Any]:
    """Aggregate counts and amounts over the transformed tradelines."""
    open_accounts = sum(1 for t in tradelines if t["payment_status"] != "closed")
    total_debt = sum(t["balance"] for t in tradelines)
    revolving = [t for t in tradelines if t["account_type"] == "revolving"]
    available_credit = sum(t["credit_limit"] - t["balance"] for t in revolving)
    total_limit = sum(t["credit_limit"] for t in revolving)
    open_dates = [t["open_date"] for t in tradelines if t.get("open_date")]

    return {
        "total_accounts": len(tradelines),
        "open_accounts": open_accounts,
        "closed_accounts": len(tradelines) - open_accounts,
        "total_debt": round(total_debt, 2),
        "available_credit": round(available_credit, 2),
        # Utilization against revolving limits, as the bureau summary reports it
        "credit_utilization": round(total_debt / total_limit * 100, 2) if total_limit > 0 else 0.0,
        "oldest_account": min(open_dates) if open_dates else None,
        "recent_inquiries": inquiry_count,
    }


def transform_report(data: Dict[str, Any]) -> TriMergeResponse:
    """Build a TriMergeResponse from an Xactus report body."""
    raw_inquiries = data.get("inquiries") or []
    tradelines = extract_tradelines(data.get("tradelines") or [])
    report_type = data.get("report_type")

    return TriMergeResponse(
        report_id=data.get("report_id"),
        transaction_id=data.get("transaction_id"),
        status="completed" if data.get("status") == "completed" else "pending",
        report_type=report_type if report_type in REPORT_TYPES else "tri_merge",
        scores=extract_scores(data.get("credit_scores") or []),
        tradelines=tradelines,
        public_records=extract_public_records(data.get("public_records") or []),
        inquiries=extract_inquiries(raw_inquiries),
        summary=calculate_summary(tradelines, len(raw_inquiries)),
        raw_data=data,
    )
