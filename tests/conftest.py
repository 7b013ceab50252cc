"""Shared fixtures for the test suite."""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from compliance.exceptions import RetrievalError
from compliance.main import app
from compliance.models import (
    BlacklistNames,
    BlacklistRecord,
    Entity,
    OrganizationDetails,
    OwnershipNode,
    SanctionsEntry,
    SanctionsIdentifier,
    ThresholdsConfig,
)
from compliance.screening.engine import ComplianceEngine
from compliance.storage.memory import MemoryStore
from compliance.storage.sanctions import InMemorySanctionsCorpus


SANCTIONS_ENTRIES = [
    SanctionsEntry(
        id="SDN-1001",
        primary_name="Viktor Petrov",
        aliases=["Victor Petroff", "Viktor Ivanovich Petrov"],
        identifiers=[SanctionsIdentifier(id_type="Passport", id_value="AB1234567")],
        category="Individual",
        program_labels=["UKRAINE-EO13662"],
    ),
    SanctionsEntry(
        id="SDN-1002",
        primary_name="Al-Rashid Trading Company",
        aliases=["Al Rashid Trading Co"],
        identifiers=[SanctionsIdentifier(id_type="Tax ID No.", id_value="1234567890")],
        category="Entity",
        program_labels=["SDGT"],
        remarks="Front company",
    ),
    SanctionsEntry(
        id="SDN-1003",
        primary_name="Golden Phoenix Import Export",
        aliases=["Golden Phoenix LLC"],
        identifiers=[
            SanctionsIdentifier(id_type="Registration Number", id_value="7701234567")
        ],
        category="Entity",
        program_labels=["IRAN"],
    ),
    SanctionsEntry(
        id="SDN-1004",
        primary_name="Sayed Al Tikriti",
        aliases=["Sayed Mohammad Ali Hassan Abdul Rahman Al Tikriti"],
        category="Individual",
        program_labels=["IRAQ2"],
    ),
]

# Seven of eight words shared with the SDN-1004 alias: scores 0.875
NEAR_MATCH_OWNER = "Sayed Mohammad Ali Hassan Abdul Rahman Al Basri"


class StaticLookup:
    """Returns the same entries for every query and records the queries."""

    def __init__(self, entries):
        self.entries = list(entries)
        self.queries: list[str] = []

    async def search(self, query: str) -> list[SanctionsEntry]:
        self.queries.append(query)
        return list(self.entries)


class FailingLookup:
    """Fails for queries containing ``fail_on`` (or for all queries)."""

    def __init__(self, entries=(), fail_on: Optional[str] = None):
        self.entries = list(entries)
        self.fail_on = fail_on

    async def search(self, query: str) -> list[SanctionsEntry]:
        if self.fail_on is None or self.fail_on in query:
            raise RetrievalError("SDN search unavailable")
        return list(self.entries)


@pytest.fixture
def sanctions_entries():
    return SANCTIONS_ENTRIES[:]


@pytest.fixture
def corpus(sanctions_entries):
    # Cutoff 0 returns every entry: scoring is left entirely to the matcher
    return InMemorySanctionsCorpus(sanctions_entries, search_cutoff=0)


@pytest.fixture
def blacklist():
    return [make_blacklist_record()]


@pytest.fixture
def config():
    return ThresholdsConfig()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(corpus, store, config):
    return ComplianceEngine(lookup=corpus, store=store, config=config)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def make_blacklist_record(
    record_id="bl-test",
    full_name_en="Northwind Shell Holdings LLC",
    full_name_ru="ООО Нортвинд Шелл Холдингс",
    short_name_en="Northwind Shell",
    short_name_ru="",
    abbreviation_en="NSH",
    abbreviation_ru="",
) -> BlacklistRecord:
    return BlacklistRecord(
        id=record_id,
        names=BlacklistNames(
            full_name_en=full_name_en,
            full_name_ru=full_name_ru,
            short_name_en=short_name_en,
            short_name_ru=short_name_ru,
            abbreviation_en=abbreviation_en,
            abbreviation_ru=abbreviation_ru,
        ),
        tax_id="7705555555",
    )


def make_person(name: str, identifier: Optional[str] = None) -> OwnershipNode:
    return OwnershipNode(display_name=name, owner_identifier=identifier)


def make_company_owner(
    name: str,
    identifier: Optional[str] = None,
    executive: Optional[str] = None,
    sub_owners=(),
) -> OwnershipNode:
    return OwnershipNode(
        display_name=name,
        owner_identifier=identifier,
        is_organization=True,
        organization_details=OrganizationDetails(
            name=name,
            tax_id=identifier,
            executive_name=executive,
            sub_owners=list(sub_owners),
        ),
    )


def make_entity(
    name="Test Company LLC",
    tax_id: Optional[str] = None,
    executive: Optional[str] = None,
    owners=(),
) -> Entity:
    return Entity(
        name=name,
        tax_id=tax_id,
        executive_name=executive,
        owners=list(owners),
    )
