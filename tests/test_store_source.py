import json

import pytest
import requests

from waterfall_rpc.errors import CatalogNotFound, SourceUnavailable
from waterfall_rpc.models import Catalog
from waterfall_rpc.source import ChainlistSource
from waterfall_rpc.store import JsonFileStore, MemoryStore


def test_json_store_missing_file(tmp_path):
    with pytest.raises(CatalogNotFound):
        JsonFileStore(tmp_path / ".rpcdata").load()


def test_json_store_round_trip(tmp_path):
    store = JsonFileStore(tmp_path / "nested" / ".rpcdata")
    document = {"entries": {"1": {"chainId": 1, "rpcs": [{"url": "https://a"}]}}, "date": "2026-10-01T00:00:00+00:00"}

    store.save(document)

    assert store.load() == document
    assert json.loads(store.path.read_text()) == document
    assert [p.name for p in store.path.parent.iterdir()] == [".rpcdata"]


def test_json_store_defaults_to_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert JsonFileStore().path == tmp_path / ".rpcdata"


def test_memory_store_copies_documents():
    store = MemoryStore()
    document = {"entries": {}, "date": "x"}
    store.save(document)
    document["entries"]["1"] = {}

    assert store.load() == {"entries": {}, "date": "x"}


def test_catalog_document_accepts_zulu_dates():
    catalog = Catalog.from_document({"entries": {}, "date": "2025-04-07T10:00:00.000Z"})

    assert catalog.fetched_at.utcoffset().total_seconds() == 0


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    def get(self, url, timeout=None):
        if self.error:
            raise self.error
        return self.response


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(str(self.status_code))

    def json(self):
        if self.bad_json:
            raise ValueError("bad json")
        return self.payload


def test_source_returns_descriptors():
    payload = [{"chainId": 1, "name": "Ethereum", "rpc": [{"url": "https://a"}]}]
    source = ChainlistSource(session=FakeSession(FakeResponse(payload)))

    assert source.fetch() == payload


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("offline")),
        FakeSession(FakeResponse(status_code=503)),
        FakeSession(FakeResponse(bad_json=True)),
        FakeSession(FakeResponse({"result": []})),
        FakeSession(FakeResponse([{"name": "no id", "rpc": []}])),
        FakeSession(FakeResponse([{"chainId": 1, "rpc": "https://a"}])),
    ],
)
def test_source_failures_are_wholesale(session):
    with pytest.raises(SourceUnavailable):
        ChainlistSource(session=session).fetch()
