"""Sanctions list matching.

Screens a candidate name (or registration number) against the sanctions
corpus. The corpus is not held here: a lookup collaborator returns the
entries relevant to the query and every entry is scored locally:

  - primary name and each alias: token-overlap similarity
  - identifiers: exact equality after normalization, never fuzzy, so that
    numeric identifiers cannot produce partial matches

An exact identifier hit scores 1.0 and ends the scan immediately.
"""

import logging
from typing import Optional, Protocol

from compliance.exceptions import ValidationError
from compliance.models import (
    MatchDetails,
    NameCheckResult,
    SanctionsEntry,
    ThresholdsConfig,
)
from compliance.screening.similarity import normalize_name, similarity
from compliance.screening.transliteration import transliterate

logger = logging.getLogger(__name__)


class SanctionsLookup(Protocol):
    """Source of sanctions entries relevant to a query string."""

    async def search(self, query: str) -> list[SanctionsEntry]:
        """Return candidate entries; raise RetrievalError when unavailable."""
        ...


class SanctionsMatcher:
    """Scores candidates against entries returned by a sanctions lookup."""

    def __init__(
        self,
        lookup: SanctionsLookup,
        config: Optional[ThresholdsConfig] = None,
    ) -> None:
        self.lookup = lookup
        self.config = config or ThresholdsConfig()

    async def match(self, candidate: str, identifier: bool = False) -> NameCheckResult:
        """Screen one candidate and return the best match found.

        With ``identifier=True`` the candidate is a registration/tax number
        and only exact identifier equality is considered.

        Raises:
            ValidationError: the candidate is blank.
            RetrievalError: the lookup failed (propagated unchanged).
        """
        if not candidate or not candidate.strip():
            raise ValidationError("Cannot screen an empty name")

        query = transliterate(candidate).lower()
        normalized_query = normalize_name(query)
        entries = await self.lookup.search(query)

        best_score = 0.0
        best_entry: Optional[SanctionsEntry] = None

        for entry in entries:
            if not identifier:
                for listed in [entry.primary_name, *entry.aliases]:
                    score = similarity(query, transliterate(listed))
                    if score > best_score:
                        best_score, best_entry = score, entry

            # Identifier hit overrides any name score and stops the scan
            if normalized_query and any(
                normalized_query == normalize_name(i.id_value)
                for i in entry.identifiers
            ):
                best_score, best_entry = 1.0, entry
                break

        result = NameCheckResult(
            queried_name=candidate,
            is_match=best_score >= self.config.match_score,
            match_score=best_score,
            matched_name=best_entry.primary_name if best_entry else None,
            matched_entry_id=best_entry.id if best_entry else None,
            details=(
                MatchDetails(
                    category=best_entry.category,
                    program_labels=best_entry.program_labels,
                    remarks=best_entry.remarks,
                )
                if best_entry
                else None
            ),
        )
        logger.debug(
            "Screened %r against %d entries: score=%.2f match=%s",
            candidate, len(entries), result.match_score, result.matched_name,
        )
        return result
