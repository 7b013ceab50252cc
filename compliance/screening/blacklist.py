"""Internal blacklist matching.

Blacklist records are curated by hand and entered in canonical form, so
matching is exact and case-insensitive only. There is no fuzzy scoring here:
a near miss against the blacklist is not a hit.
"""

from typing import Optional, Sequence

from compliance.models import BlacklistMatch, BlacklistRecord


def _slot_locale(slot: str) -> str:
    """Infer the variant language from its slot name (``full_name_ru`` -> ``ru``)."""
    return "ru" if slot.endswith("_ru") else "en"


def match_blacklist(
    candidate: str,
    blacklist: Sequence[BlacklistRecord],
) -> Optional[BlacklistMatch]:
    """Return the first blacklist variant equal to ``candidate``, ignoring case.

    Records are tried in list order and, within a record, variants in slot
    declaration order. Empty variants never match.
    """
    candidate_lower = candidate.strip().lower()
    if not candidate_lower:
        return None

    for record in blacklist:
        for slot, variant in record.names.model_dump().items():
            if variant and variant.strip().lower() == candidate_lower:
                return BlacklistMatch(
                    matched_name=variant,
                    match_variant_slot=slot,
                    locale=_slot_locale(slot),
                    source_record=record,
                )
    return None
