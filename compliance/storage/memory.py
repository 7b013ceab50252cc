"""In-memory storage for blacklist records, common entities and audit logs.

Records are kept in dicts keyed by id, which preserve insertion order, so
listing the blacklist returns records in the order they were added. That
order is also the order blacklist matching tries them in. All data lives in
memory and is lost on restart.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from compliance.models import (
    AuditEntry,
    BlacklistRecord,
    BlacklistRecordCreate,
    CommonEntity,
    CommonEntityCreate,
    CommonEntityUpdate,
    ComplianceStatus,
)


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class MemoryStore:
    """In-memory store for blacklist records, common entities and audit entries."""

    def __init__(self) -> None:
        self._blacklist: Dict[str, BlacklistRecord] = {}
        self._entities: Dict[str, CommonEntity] = {}
        # Chronological audit log
        self._audit_log: List[AuditEntry] = []

    # --- Blacklist ---------------------------------------------------------

    def add_blacklist(self, record: BlacklistRecord) -> BlacklistRecord:
        """Store a blacklist record under its id."""
        self._blacklist[record.id] = record
        return record

    def list_blacklist(self) -> List[BlacklistRecord]:
        return list(self._blacklist.values())

    def get_blacklist(self, record_id: str) -> Optional[BlacklistRecord]:
        return self._blacklist.get(record_id)

    def replace_blacklist(
        self,
        record_id: str,
        data: BlacklistRecordCreate,
    ) -> Optional[BlacklistRecord]:
        """Replace names/tax id/notes of a record, keeping its id and date added."""
        existing = self._blacklist.get(record_id)
        if existing is None:
            return None
        updated = BlacklistRecord(
            id=existing.id,
            date_added=existing.date_added,
            **data.model_dump(),
        )
        self._blacklist[record_id] = updated
        return updated

    def delete_blacklist(self, record_id: str) -> bool:
        return self._blacklist.pop(record_id, None) is not None

    # --- Common entities ---------------------------------------------------

    def add_entity(self, data: CommonEntityCreate) -> CommonEntity:
        entity = CommonEntity(**data.model_dump())
        self._entities[entity.id] = entity
        return entity

    def list_entities(
        self,
        status: Optional[ComplianceStatus] = None,
    ) -> List[CommonEntity]:
        """Return stored entities, optionally only those with the given status."""
        entities = list(self._entities.values())
        if status is not None:
            entities = [e for e in entities if e.status == status]
        return entities

    def get_entity(self, entity_id: str) -> Optional[CommonEntity]:
        return self._entities.get(entity_id)

    def update_entity(
        self,
        entity_id: str,
        update: CommonEntityUpdate,
        last_checked: Optional[datetime] = None,
    ) -> Optional[CommonEntity]:
        """Apply the set fields of ``update`` to a stored entity."""
        existing = self._entities.get(entity_id)
        if existing is None:
            return None
        changes = update.model_dump(exclude_none=True)
        if last_checked is not None:
            changes["last_checked"] = last_checked
        updated = existing.model_copy(update=changes)
        self._entities[entity_id] = updated
        return updated

    def delete_entity(self, entity_id: str) -> bool:
        return self._entities.pop(entity_id, None) is not None

    # --- Audit -------------------------------------------------------------

    def add_audit(self, entry: AuditEntry) -> None:
        """Append an entry to the audit log."""
        self._audit_log.append(entry)

    def get_audit_log(
        self,
        subject: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[AuditEntry]:
        """Return audit entries, optionally filtered by subject and/or time range."""
        since = _as_utc(since) if since is not None else None
        until = _as_utc(until) if until is not None else None
        results: List[AuditEntry] = []
        for entry in self._audit_log:
            if subject is not None and entry.subject.lower() != subject.lower():
                continue
            if since is not None and entry.timestamp < since:
                continue
            if until is not None and entry.timestamp > until:
                continue
            results.append(entry)
        return results
