"""Mid-score derivation for tri-merge reports.

Mortgage underwriting uses the middle of the three bureau scores.  With any
other number of scores the mid score is simply not computed: no averaging and
no partial-bureau fallback.
"""

from typing import Any, Optional

TRI_MERGE_SIZE = 3


def calculate_mid_score(scores: list[int]) -> Optional[int]:
    """Return the median of exactly three scores, else None."""
    if len(scores) != TRI_MERGE_SIZE:
        return None
    return sorted(scores)[1]


def mid_score_from_bureaus(scores: list[dict[str, Any]]) -> Optional[int]:
    """Mid score for bureau score entries, one per bureau.

    Three entries from fewer than three distinct bureaus are not a tri-merge.
    """
    bureaus = {entry.get("bureau") for entry in scores}
    if len(scores) != TRI_MERGE_SIZE or len(bureaus) != TRI_MERGE_SIZE:
        return None
    return calculate_mid_score([int(entry["score"]) for entry in scores])
