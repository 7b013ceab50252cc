"""Core compliance screening orchestrator.

Checks an entity and its whole ownership tree:
  1. Walk the ownership tree and collect names and identifiers
  2. Screen each distinct key against sanctions, concurrently
  3. Match every name against the internal blacklist
  4. Resolve one status from whatever was successfully gathered

A failed sanctions lookup never aborts the other checks and is never
counted as clean: it is listed in the report's failures so a reviewer can
see that the check is incomplete.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from compliance.exceptions import RetrievalError, ValidationError
from compliance.models import (
    AuditEntry,
    BlacklistMatch,
    BlacklistRecord,
    CheckFailure,
    CheckTarget,
    Entity,
    EntityCheckReport,
    NameCheckResult,
    NameScreeningResponse,
    ThresholdsConfig,
)
from compliance.screening.blacklist import match_blacklist
from compliance.screening.ownership import dedup_key, walk_ownership
from compliance.screening.resolver import resolve_status
from compliance.screening.sanctions import SanctionsLookup, SanctionsMatcher
from compliance.screening.transliteration import transliterate
from compliance.storage.memory import MemoryStore

logger = logging.getLogger(__name__)


@dataclass
class CheckSession:
    """Targets already screened and their outcomes, by normalized key.

    Pass the same session to several entity checks to avoid screening a
    shared owner twice. A session must not be used by two checks at once.
    """
    checked: set[str] = field(default_factory=set)
    results: dict[str, NameCheckResult] = field(default_factory=dict)
    failures: dict[str, CheckFailure] = field(default_factory=dict)

    def claim(self, key: str) -> bool:
        """Mark ``key`` as checked; False if it already was."""
        if key in self.checked:
            return False
        self.checked.add(key)
        return True


class ComplianceEngine:
    """Screens entities and free-text names against sanctions and the blacklist."""

    def __init__(
        self,
        lookup: SanctionsLookup,
        store: Optional[MemoryStore] = None,
        config: Optional[ThresholdsConfig] = None,
    ) -> None:
        self.lookup = lookup
        self.store = store
        self.config = config or ThresholdsConfig()

    def _matcher(self) -> SanctionsMatcher:
        # Built per call so that threshold updates apply immediately
        return SanctionsMatcher(self.lookup, self.config)

    async def check_entity_compliance(
        self,
        entity: Entity,
        blacklist: Sequence[BlacklistRecord],
        session: Optional[CheckSession] = None,
    ) -> EntityCheckReport:
        """Screen an entity, its executive and every owner at every depth."""
        session = session if session is not None else CheckSession()
        walk = walk_ownership(entity)
        matcher = self._matcher()
        semaphore = asyncio.Semaphore(self.config.max_concurrent_checks)

        pending = [t for t in walk.targets if session.claim(dedup_key(t))]
        await asyncio.gather(
            *(self._screen_target(matcher, t, session, semaphore) for t in pending)
        )

        results = {
            t.key: session.results[dedup_key(t)]
            for t in walk.targets
            if dedup_key(t) in session.results
        }
        failures = [
            session.failures[dedup_key(t)]
            for t in walk.targets
            if dedup_key(t) in session.failures
        ]
        blacklist_matches = self._match_blacklist(walk.targets, blacklist)
        status = resolve_status(results, blacklist_matches, self.config)

        report = EntityCheckReport(
            subject=entity.name,
            results=results,
            blacklist_matches=blacklist_matches,
            status=status,
            failures=failures,
            skipped_subtrees=walk.skipped,
        )
        logger.info(
            "Checked %r: %d keys, status=%s, failures=%d",
            entity.name, len(walk.targets), status.value, len(failures),
        )

        if self.store is not None:
            self.store.add_audit(
                AuditEntry(
                    subject=entity.name,
                    status=status,
                    checks=len(results),
                    failures=len(failures),
                    flagged_keys=[
                        key for key, r in results.items()
                        if r.match_score >= self.config.review_score
                    ] + [m.matched_name for m in blacklist_matches],
                )
            )
        return report

    async def check_name(
        self,
        name: str,
        blacklist: Sequence[BlacklistRecord],
    ) -> NameScreeningResponse:
        """Screen a single free-text name.

        An exact blacklist hit is decisive on its own: if the sanctions
        lookup then fails, the name is still reported as flagged, with the
        failure attached and no sanctions result.

        Raises:
            ValidationError: the name is blank.
            RetrievalError: the sanctions lookup failed and the name is not
                blacklisted.
        """
        match = match_blacklist(name, blacklist) or match_blacklist(
            transliterate(name), blacklist
        )
        try:
            result = await self._matcher().match(name)
        except RetrievalError as e:
            if match is None:
                raise
            logger.warning("Sanctions check failed for blacklisted %r: %s", name, e)
            return NameScreeningResponse(
                name=name,
                sanctions=None,
                blacklist_match=match,
                status=resolve_status({}, [match], self.config),
                failure=CheckFailure(key=transliterate(name), reason=str(e)),
            )

        status = resolve_status(
            {transliterate(name): result},
            [match] if match else [],
            self.config,
        )
        return NameScreeningResponse(
            name=name,
            sanctions=result,
            blacklist_match=match,
            status=status,
        )

    async def _screen_target(
        self,
        matcher: SanctionsMatcher,
        target: CheckTarget,
        session: CheckSession,
        semaphore: asyncio.Semaphore,
    ) -> None:
        key = dedup_key(target)
        async with semaphore:
            try:
                result = await matcher.match(
                    target.key, identifier=target.kind == "identifier"
                )
            except ValidationError:
                logger.debug("Skipping blank check target %r", target.raw)
                return
            except RetrievalError as e:
                logger.warning("Sanctions check failed for %r: %s", target.key, e)
                session.failures[key] = CheckFailure(key=target.key, reason=str(e))
                return
            except Exception as e:
                # Recorded like a retrieval failure; sibling checks keep running
                logger.exception("Unexpected error checking %r", target.key)
                session.failures[key] = CheckFailure(
                    key=target.key, reason=f"Unexpected lookup error: {e}"
                )
                return
        session.results[key] = result

    @staticmethod
    def _match_blacklist(
        targets: Sequence[CheckTarget],
        blacklist: Sequence[BlacklistRecord],
    ) -> list[BlacklistMatch]:
        matches: list[BlacklistMatch] = []
        for target in targets:
            if target.kind != "name":
                continue
            # Name as written first: blacklist variants may be in Cyrillic
            match = match_blacklist(target.raw, blacklist) or match_blacklist(
                target.key, blacklist
            )
            if match is not None:
                matches.append(match)
        return matches
