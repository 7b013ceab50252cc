"""Tests for the sanctions corpus lookups."""

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from compliance.exceptions import RetrievalError
from compliance.models import SanctionsEntry
from compliance.storage.sanctions import InMemorySanctionsCorpus, SdnApiLookup
from tests.conftest import SANCTIONS_ENTRIES

DATA_DIR = Path(__file__).parent.parent / "data"

SDN_RECORD = {
    "uid": "SDN-1001",
    "name": "Viktor Petrov",
    "type": "Individual",
    "programs": ["UKRAINE-EO13662"],
    "remarks": "Board member",
    "aka_names": ["Victor Petroff"],
    "ids": [
        {"id_type": "Passport", "id_number": "AB1234567"},
        {"id_type": "Unknown", "id_number": None},
    ],
}


def search(corpus, query):
    return asyncio.run(corpus.search(query))


def api_search(handler, query="viktor petrov"):
    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        lookup = SdnApiLookup("http://sdn.test/", client=client)
        try:
            return await lookup.search(query)
        finally:
            await lookup.aclose()

    return asyncio.run(run())


class TestSdnRecordMapping:
    def test_fields_mapped(self):
        entry = SanctionsEntry.from_sdn_record(SDN_RECORD)
        assert entry.id == "SDN-1001"
        assert entry.primary_name == "Viktor Petrov"
        assert entry.aliases == ["Victor Petroff"]
        assert entry.category == "Individual"
        assert entry.program_labels == ["UKRAINE-EO13662"]
        assert entry.remarks == "Board member"

    def test_identifiers_without_number_dropped(self):
        entry = SanctionsEntry.from_sdn_record(SDN_RECORD)
        assert [i.id_value for i in entry.identifiers] == ["AB1234567"]

    def test_missing_optional_fields(self):
        entry = SanctionsEntry.from_sdn_record({"uid": 42, "name": "Someone"})
        assert entry.id == "42"
        assert entry.aliases == []
        assert entry.identifiers == []
        assert entry.remarks is None


class TestInMemorySanctionsCorpus:
    def test_load_from_json(self):
        corpus = InMemorySanctionsCorpus.from_json(DATA_DIR / "sanctions_corpus.json")
        assert len(corpus) == 4
        assert corpus.entries[1].identifiers[0].id_value == "1234567890"

    def test_related_name_found(self):
        corpus = InMemorySanctionsCorpus(SANCTIONS_ENTRIES, search_cutoff=60)
        ids = [e.id for e in search(corpus, "viktor petrov")]
        assert "SDN-1001" in ids

    def test_alias_subset_found(self):
        corpus = InMemorySanctionsCorpus(SANCTIONS_ENTRIES, search_cutoff=60)
        ids = [e.id for e in search(corpus, "golden phoenix")]
        assert "SDN-1003" in ids

    def test_unrelated_name_filtered_out(self):
        corpus = InMemorySanctionsCorpus(SANCTIONS_ENTRIES, search_cutoff=60)
        assert search(corpus, "zhou xu") == []

    def test_partial_token_found(self):
        corpus = InMemorySanctionsCorpus(SANCTIONS_ENTRIES, search_cutoff=60)
        # token_set_ratio alone scores this below the cutoff
        assert [e.id for e in search(corpus, "petr")] == ["SDN-1001"]

    def test_identifier_found_exactly(self):
        corpus = InMemorySanctionsCorpus(SANCTIONS_ENTRIES, search_cutoff=60)
        assert [e.id for e in search(corpus, "7701234567")] == ["SDN-1003"]

    def test_zero_cutoff_returns_everything(self):
        corpus = InMemorySanctionsCorpus(SANCTIONS_ENTRIES, search_cutoff=0)
        assert len(search(corpus, "zhou xu")) == len(SANCTIONS_ENTRIES)


class TestSdnApiLookup:
    def test_list_payload(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["query"] = request.url.params["query"]
            return httpx.Response(200, json=[SDN_RECORD])

        entries = api_search(handler)
        assert seen == {"path": "/api/sdn/search", "query": "viktor petrov"}
        assert [e.id for e in entries] == ["SDN-1001"]

    def test_results_object_payload(self):
        def handler(request):
            return httpx.Response(200, json={"results": [SDN_RECORD], "total": 1})

        assert len(api_search(handler)) == 1

    def test_empty_result(self):
        assert api_search(lambda request: httpx.Response(200, json=[])) == []

    def test_server_error_raises_retrieval_error(self):
        with pytest.raises(RetrievalError):
            api_search(lambda request: httpx.Response(503, text="unavailable"))

    def test_invalid_json_raises_retrieval_error(self):
        with pytest.raises(RetrievalError):
            api_search(lambda request: httpx.Response(200, text="<html>"))

    def test_aggregate_score_payload_rejected(self):
        def handler(request):
            return httpx.Response(200, json={"average_match_score": 0.4})

        with pytest.raises(RetrievalError):
            api_search(handler)

    def test_malformed_record_rejected(self):
        with pytest.raises(RetrievalError):
            api_search(lambda request: httpx.Response(200, json=["Viktor Petrov"]))

    def test_transport_error_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, content=json.dumps([SDN_RECORD]))

        entries = api_search(handler)
        assert len(calls) == 2
        assert entries[0].primary_name == "Viktor Petrov"
