"""Pydantic models for the entity compliance screening service."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class ComplianceStatus(str, Enum):
    """Aggregate verdict for an entity and its full ownership tree."""
    CLEAN = "clean"
    NEEDS_REVIEW = "needs_review"
    FLAGGED = "flagged"


# --- Sanctions corpus ------------------------------------------------------


class SanctionsIdentifier(BaseModel):
    """A registration/tax/passport number attached to a sanctions entry."""
    id_type: str = ""
    id_value: str


class SanctionsEntry(BaseModel):
    """One record of the sanctions (SDN) corpus. Read-only reference data."""
    id: str
    primary_name: str
    aliases: list[str] = Field(default_factory=list)
    identifiers: list[SanctionsIdentifier] = Field(default_factory=list)
    category: str = ""
    program_labels: list[str] = Field(default_factory=list)
    remarks: Optional[str] = None

    @classmethod
    def from_sdn_record(cls, record: dict) -> "SanctionsEntry":
        """Build an entry from the SDN search API record shape.

        The API uses ``uid``/``name``/``type``/``programs``/``aka_names`` and
        ``ids`` with ``id_number`` values.
        """
        return cls(
            id=str(record.get("uid", "")),
            primary_name=record.get("name") or "",
            aliases=list(record.get("aka_names") or []),
            identifiers=[
                SanctionsIdentifier(
                    id_type=i.get("id_type") or "",
                    id_value=str(i.get("id_number") or ""),
                )
                for i in record.get("ids") or []
                if i.get("id_number")
            ],
            category=record.get("type") or "",
            program_labels=list(record.get("programs") or []),
            remarks=record.get("remarks"),
        )


class MatchDetails(BaseModel):
    """Descriptive fields copied from the matched sanctions entry."""
    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    program_labels: list[str] = Field(default_factory=list)
    remarks: Optional[str] = None


class NameCheckResult(BaseModel):
    """Outcome of screening a single name or identifier against sanctions."""
    model_config = ConfigDict(frozen=True)

    queried_name: str
    is_match: bool
    match_score: float = Field(ge=0.0, le=1.0)
    matched_name: Optional[str] = None
    matched_entry_id: Optional[str] = None
    details: Optional[MatchDetails] = None


# --- Blacklist -------------------------------------------------------------


class BlacklistNames(BaseModel):
    """Localized name variants of a blacklisted organization.

    Field order is the order variants are compared in.
    """
    full_name_en: str = ""
    full_name_ru: str = ""
    short_name_en: str = ""
    short_name_ru: str = ""
    abbreviation_en: str = ""
    abbreviation_ru: str = ""


class BlacklistRecordCreate(BaseModel):
    """Payload for creating or replacing a blacklist record."""
    names: BlacklistNames
    tax_id: Optional[str] = None
    notes: Optional[str] = None


class BlacklistRecord(BlacklistRecordCreate):
    """An internally curated blacklist record."""
    id: str = Field(default_factory=_new_id)
    date_added: datetime = Field(default_factory=_utcnow)


class BlacklistMatch(BaseModel):
    """The blacklist variant that a candidate name matched exactly."""
    model_config = ConfigDict(frozen=True)

    matched_name: str
    match_variant_slot: str
    locale: Literal["en", "ru"]
    source_record: BlacklistRecord


# --- Entities and ownership ------------------------------------------------


class OrganizationDetails(BaseModel):
    """Registry details of an owner that is itself an organization."""
    name: str
    tax_id: Optional[str] = None
    executive_name: Optional[str] = None
    sub_owners: list["OwnershipNode"] = Field(default_factory=list)


class OwnershipNode(BaseModel):
    """A founder / beneficial owner of an entity."""
    display_name: str
    owner_identifier: Optional[str] = None
    is_organization: bool = False
    ownership_percentage: Optional[float] = None
    organization_details: Optional[OrganizationDetails] = None


OrganizationDetails.model_rebuild()


class Entity(BaseModel):
    """An organization to be screened together with its ownership tree."""
    name: str
    tax_id: Optional[str] = None
    executive_name: Optional[str] = None
    owners: list[OwnershipNode] = Field(default_factory=list)


class CommonEntityCreate(Entity):
    """Payload for registering a frequently screened counterparty."""
    source: Literal["egrul", "orginfo"] = "egrul"
    notes: str = ""


class CommonEntity(CommonEntityCreate):
    """A stored counterparty with its most recent compliance verdict."""
    id: str = Field(default_factory=_new_id)
    status: ComplianceStatus = ComplianceStatus.CLEAN
    last_checked: Optional[datetime] = None


class CommonEntityUpdate(BaseModel):
    """Partial update of a stored counterparty (manual review outcome)."""
    status: Optional[ComplianceStatus] = None
    notes: Optional[str] = None


# --- Check results ---------------------------------------------------------


class CheckTarget(BaseModel):
    """One name or identifier collected from an entity for screening."""
    model_config = ConfigDict(frozen=True)

    key: str  # transliterated name, or identifier as found on the record
    raw: str
    kind: Literal["name", "identifier"]


class CheckFailure(BaseModel):
    """A check that could not be completed."""
    key: str
    reason: str


class EntityCheckReport(BaseModel):
    """Everything learned from screening one entity and its owners."""
    subject: str
    results: dict[str, NameCheckResult] = Field(default_factory=dict)
    blacklist_matches: list[BlacklistMatch] = Field(default_factory=list)
    status: ComplianceStatus
    failures: list[CheckFailure] = Field(default_factory=list)
    skipped_subtrees: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def complete(self) -> bool:
        """False when some checks failed and a human should know."""
        return not self.failures and not self.skipped_subtrees


class NameScreeningRequest(BaseModel):
    """A single free-text name to screen."""
    name: str


class NameScreeningResponse(BaseModel):
    """Result of screening one free-text name.

    ``sanctions`` is None only when the lookup failed for a name that is
    blacklisted anyway; ``failure`` then says why.
    """
    name: str
    sanctions: Optional[NameCheckResult] = None
    failure: Optional[CheckFailure] = None
    blacklist_match: Optional[BlacklistMatch] = None
    status: ComplianceStatus


class AuditEntry(BaseModel):
    """Audit trail entry recorded for every entity check."""
    timestamp: datetime = Field(default_factory=_utcnow)
    subject: str
    status: ComplianceStatus
    checks: int
    failures: int
    flagged_keys: list[str] = Field(default_factory=list)


class ThresholdsConfig(BaseModel):
    """Tunable score thresholds and fan-out limits."""
    flag_score: float = 1.0
    review_score: float = 0.85
    match_score: float = 0.90
    max_concurrent_checks: int = Field(default=8, ge=1)
    corpus_search_cutoff: int = Field(default=60, ge=0, le=100)
