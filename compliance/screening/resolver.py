"""Compliance status aggregation.

The status is DETERMINISTIC and depends only on the results gathered.
Priority:
  - exact sanctions hit (score >= 1.0) or any blacklist match -> flagged
  - otherwise, any sanctions score >= 0.85                  -> needs_review
  - otherwise                                               -> clean

The sanctions matcher's own ``is_match`` cutoff (0.90) is a separate value
and is not consulted here.
"""

from typing import Mapping, Optional, Sequence

from compliance.models import (
    BlacklistMatch,
    ComplianceStatus,
    NameCheckResult,
    ThresholdsConfig,
)


def resolve_status(
    results: Mapping[str, NameCheckResult],
    blacklist_matches: Sequence[BlacklistMatch],
    config: Optional[ThresholdsConfig] = None,
) -> ComplianceStatus:
    """Reduce all sanctions results and blacklist matches to one status."""
    config = config or ThresholdsConfig()
    scores = [result.match_score for result in results.values()]

    if blacklist_matches or any(s >= config.flag_score for s in scores):
        return ComplianceStatus.FLAGGED
    if any(s >= config.review_score for s in scores):
        return ComplianceStatus.NEEDS_REVIEW
    return ComplianceStatus.CLEAN
