from lucidsearch.common import RetrievedChunk
from lucidsearch.retrieval.retriever import VectorIndexRetriever


class DummyStore:
    def __init__(self, ids, payloads):
        self.ids = ids
        self.payloads = payloads
        self.search_calls = []
        self.fetch_calls = []

    def search(self, vector, limit=10, score_threshold=0.6, run_id=None):
        self.search_calls.append((vector, limit, score_threshold, run_id))
        return list(self.ids)

    def fetch(self, ids):
        self.fetch_calls.append(list(ids))
        return [self.payloads[i] for i in ids if i in self.payloads]


def test_retrieve_hydrates_payloads_in_similarity_order():
    store = DummyStore(
        ["b", "a"],
        {
            "a": {"title": "A", "link": "https://a", "text": "second"},
            "b": {"title": "B", "link": "https://b", "text": "first"},
        },
    )
    retriever = VectorIndexRetriever(store, limit=5, score_threshold=0.7)

    chunks = retriever.retrieve([0.1, 0.2], run_id="run-1")

    assert chunks == [
        RetrievedChunk(title="B", link="https://b", text="first"),
        RetrievedChunk(title="A", link="https://a", text="second"),
    ]
    assert store.search_calls == [([0.1, 0.2], 5, 0.7, "run-1")]


def test_retrieve_drops_noisy_payloads():
    """
    Texts that still carry markup/serialisation markers are dropped after the
    similarity search.
    """
    store = DummyStore(
        ["1", "2", "3"],
        {
            "1": {"title": "T", "link": "L", "text": "window.config = {a: 1}"},
            "2": {"title": "T", "link": "L", "text": "std::vector usage"},
            "3": {"title": "T", "link": "L", "text": "Solar panels are cheap."},
        },
    )

    chunks = VectorIndexRetriever(store).retrieve([1.0])

    assert [c.text for c in chunks] == ["Solar panels are cheap."]


def test_retrieve_omits_missing_payloads():
    store = DummyStore(["gone", "here"], {"here": {"title": "T", "link": "L", "text": "kept"}})

    chunks = VectorIndexRetriever(store).retrieve([1.0])

    assert [c.text for c in chunks] == ["kept"]


def test_retrieve_with_no_hits_skips_payload_lookup():
    store = DummyStore([], {})

    assert VectorIndexRetriever(store).retrieve([1.0]) == []
    assert store.fetch_calls == []


def test_from_config_dict_reads_limits():
    retriever = VectorIndexRetriever.from_config_dict(
        {"limit": 3, "score_threshold": 0.5, "noise_markers": ["<"]},
        DummyStore([], {}),
    )

    assert (retriever.limit, retriever.score_threshold, retriever.noise_markers) == (3, 0.5, ("<",))


def test_retrieve_skips_payloads_without_text():
    """
    A payload with a missing or blank ``text`` would render an empty context
    block, so it is dropped like a noisy one.
    """
    store = DummyStore(
        ["1", "2", "3"],
        {
            "1": {"title": "T", "link": "https://no-text"},
            "2": {"title": "T", "link": "https://blank", "text": "   "},
            "3": {"title": "T", "link": "https://ok", "text": "Solar panels are cheap."},
        },
    )

    chunks = VectorIndexRetriever(store).retrieve([1.0])

    assert [c.link for c in chunks] == ["https://ok"]
