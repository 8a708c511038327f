from types import SimpleNamespace

import pytest
from qdrant_client import QdrantClient

from lucidsearch.common import VectorRecord
from lucidsearch.common.errors import VectorStoreError
from lucidsearch.retrieval.vector_store import RUN_ID_FIELD, QdrantStore


@pytest.fixture
def store():
    """
    Store backed by qdrant-client's in-process local mode.
    """
    s = QdrantStore(QdrantClient(":memory:"), collection_name="test_embeddings", dimension=2)
    s.create_collection()
    return s


def _record(vector, text, run_id):
    return VectorRecord(vector=vector, payload={"title": "T", "link": "https://t", "text": text, RUN_ID_FIELD: run_id})


def test_upsert_search_and_fetch(store):
    near = store.upsert(_record([1.0, 0.0], "near", "run-a"))
    store.upsert(_record([0.0, 1.0], "orthogonal", "run-a"))

    ids = store.search([1.0, 0.05], limit=10, score_threshold=0.6)

    assert ids == [near]
    assert [p["text"] for p in store.fetch(ids)] == ["near"]


def test_search_is_scoped_to_a_run(store):
    store.upsert(_record([1.0, 0.0], "from run a", "run-a"))
    b = store.upsert(_record([0.9, 0.1], "from run b", "run-b"))

    assert store.search([1.0, 0.0], run_id="run-b") == [b]


def test_fetch_keeps_request_order_and_skips_unknown_ids(store):
    first = store.upsert(_record([1.0, 0.0], "first", "r"))
    second = store.upsert(_record([0.0, 1.0], "second", "r"))
    unknown = "00000000-0000-0000-0000-000000000000"

    payloads = store.fetch([second, unknown, first])

    assert [p["text"] for p in payloads] == ["second", "first"]


def test_create_collection_recreates_by_default(store):
    store.upsert(_record([1.0, 0.0], "old", "r"))

    store.create_collection()

    assert store.search([1.0, 0.0]) == []


def test_create_collection_can_keep_existing_data(store):
    kept = store.upsert(_record([1.0, 0.0], "old", "r"))

    store.create_collection(recreate=False)

    assert store.search([1.0, 0.0]) == [kept]


def test_create_collection_requires_dimension():
    s = QdrantStore(QdrantClient(":memory:"))

    with pytest.raises(VectorStoreError):
        s.create_collection()


class FailingClient:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise ConnectionError("qdrant down")
        return _fail


def test_client_failures_become_vector_store_errors():
    s = QdrantStore(FailingClient(), dimension=2)

    with pytest.raises(VectorStoreError):
        s.upsert(VectorRecord(vector=[1.0, 0.0], payload={}))
    with pytest.raises(VectorStoreError):
        s.search([1.0, 0.0])
    with pytest.raises(VectorStoreError):
        s.fetch(["abc"])
    with pytest.raises(VectorStoreError):
        s.create_collection()
    assert s.ping() is False


def test_search_builds_run_filter():
    captured = {}

    class RecordingClient:
        def query_points(self, **kwargs):
            captured.update(kwargs)
            return SimpleNamespace(points=[SimpleNamespace(id="x"), SimpleNamespace(id=7)])

    ids = QdrantStore(RecordingClient()).search([0.5], limit=4, score_threshold=0.6, run_id="run-z")

    assert ids == ["x", "7"]
    assert captured["limit"] == 4
    condition = captured["query_filter"].must[0]
    assert condition.key == RUN_ID_FIELD
    assert condition.match.value == "run-z"


def test_delete_run_removes_only_that_run(store):
    store.upsert(_record([1.0, 0.0], "a1", "run-a"))
    store.upsert(_record([0.9, 0.1], "a2", "run-a"))
    kept = store.upsert(_record([1.0, 0.0], "b1", "run-b"))

    store.delete_run("run-a")

    assert store.count() == 1
    assert store.search([1.0, 0.0]) == [kept]


def test_delete_run_failure_becomes_vector_store_error():
    with pytest.raises(VectorStoreError):
        QdrantStore(FailingClient()).delete_run("run-a")
