import pytest

from lucidsearch.common.errors import EmbeddingError
from lucidsearch.retrieval.embedder import BaseEmbedder, _normalize_embedder_kind, create_embedder


class DummyLlamaEmbedding:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def get_text_embedding(self, text):
        if self.error is not None:
            raise self.error
        return self.result


class DummyEmbedder(BaseEmbedder):
    def __init__(self, inner):
        self.inner = inner

    def get_embedder(self):
        return self.inner

    @classmethod
    def from_config_dict(cls, config, callback_manager=None):
        return cls(DummyLlamaEmbedding(result=config["result"]))


def test_embed_text_returns_floats():
    embedder = DummyEmbedder(DummyLlamaEmbedding(result=[1, 0.5]))

    assert embedder.embed_text("solar") == [1.0, 0.5]


def test_provider_failure_becomes_embedding_error():
    embedder = DummyEmbedder(DummyLlamaEmbedding(error=TimeoutError("read timed out")))

    with pytest.raises(EmbeddingError, match="timed out"):
        embedder.embed_text("solar")


def test_empty_vector_is_an_embedding_error():
    with pytest.raises(EmbeddingError):
        DummyEmbedder(DummyLlamaEmbedding(result=[])).embed_text("solar")


def test_normalize_embedder_kind():
    assert _normalize_embedder_kind("OpenAILike") == "openai_like"
    assert _normalize_embedder_kind("Hugging Face") == "hugging_face"
    assert _normalize_embedder_kind("") == ""


def test_create_embedder_rejects_unknown_kind():
    with pytest.raises(ValueError, match="Unknown embedder kind"):
        create_embedder({"kind": "word2vec", "model_name": "m"})


def test_create_embedder_requires_mapping():
    with pytest.raises(TypeError):
        create_embedder(["not", "a", "mapping"])
