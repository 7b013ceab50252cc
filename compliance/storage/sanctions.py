"""Sanctions corpus lookups.

Two sources implement the ``SanctionsLookup`` protocol used by the matcher:

  - InMemorySanctionsCorpus: the SDN list loaded from a JSON file. A query
    returns the entries sharing a word (or part of one) with it, those
    whose names are close by thefuzz token_set_ratio, and those that carry
    the query as an identifier. Final scoring is done by the matcher, not
    here.
  - SdnApiLookup: the remote SDN search endpoint, queried over HTTP.

Both return raw entries. Neither ever answers "no match" on failure: errors
surface as RetrievalError.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from thefuzz import fuzz

from compliance.exceptions import RetrievalError
from compliance.models import SanctionsEntry
from compliance.screening.similarity import normalize_name, similarity
from compliance.screening.transliteration import transliterate

logger = logging.getLogger(__name__)


class InMemorySanctionsCorpus:
    """SDN entries held in memory and searched with thefuzz."""

    def __init__(
        self,
        entries: Iterable[SanctionsEntry],
        search_cutoff: int = 60,
    ) -> None:
        self.entries: List[SanctionsEntry] = list(entries)
        self.search_cutoff = search_cutoff

    @classmethod
    def from_json(cls, path: Path, search_cutoff: int = 60) -> "InMemorySanctionsCorpus":
        """Load a list of SDN API records (uid/name/aka_names/ids/...) from a file."""
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
        entries = [SanctionsEntry.from_sdn_record(r) for r in records]
        logger.info("Loaded %d sanctions entries from %s", len(entries), path)
        return cls(entries, search_cutoff=search_cutoff)

    def __len__(self) -> int:
        return len(self.entries)

    def _is_candidate(self, entry: SanctionsEntry, query: str, normalized: str) -> bool:
        if normalized and any(
            normalize_name(i.id_value) == normalized for i in entry.identifiers
        ):
            return True
        # Token overlap keeps every entry the matcher could score above 0;
        # thefuzz adds near-misses such as misspelled tokens
        return any(
            similarity(query, transliterate(name)) > 0
            or fuzz.token_set_ratio(query, name) >= self.search_cutoff
            for name in [entry.primary_name, *entry.aliases]
        )

    async def search(self, query: str) -> List[SanctionsEntry]:
        """Return entries related to ``query``; every entry when the cutoff is 0."""
        if self.search_cutoff <= 0:
            return list(self.entries)
        normalized = normalize_name(query)
        return [e for e in self.entries if self._is_candidate(e, query, normalized)]


class SdnApiLookup:
    """Client for a remote ``/api/sdn/search`` endpoint.

    The endpoint answers with a JSON list of SDN records, or an object
    holding that list under ``results``.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_exponential(multiplier=0.5, max=4),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _fetch(self, query: str) -> Any:
        response = await self._client.get(
            f"{self.base_url}/api/sdn/search",
            params={"query": query},
        )
        response.raise_for_status()
        return response.json()

    async def search(self, query: str) -> List[SanctionsEntry]:
        """Query the SDN search endpoint and parse the returned records."""
        try:
            payload = await self._fetch(query)
        except httpx.HTTPError as e:
            logger.warning("SDN search for %r failed: %s", query, e)
            raise RetrievalError(f"SDN search failed for {query!r}: {e}") from e
        except ValueError as e:
            raise RetrievalError(f"SDN search returned invalid JSON: {e}") from e

        records = payload.get("results") if isinstance(payload, dict) else payload
        if not isinstance(records, list):
            raise RetrievalError("SDN search returned an unexpected payload")
        try:
            return [SanctionsEntry.from_sdn_record(r) for r in records]
        except (AttributeError, ValueError) as e:
            raise RetrievalError(f"SDN search returned a malformed record: {e}") from e

    async def aclose(self) -> None:
        await self._client.aclose()
