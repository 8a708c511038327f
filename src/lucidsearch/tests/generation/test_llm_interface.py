from types import SimpleNamespace

import pytest

from lucidsearch.common.errors import GenerationError
from lucidsearch.generation import llm_interface
from lucidsearch.generation.llm_interface import (
    OpenAIChatLikeLLM,
    OpenAILikeLLM,
    _content_to_text,
    _normalize_llm_kind,
    create_llm,
)

GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta/openai/"


class DummyChatModel:
    """
    Stands in for ``ChatOpenAI``; records constructor and invoke arguments.
    """

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.invocations = []
        self.content = "an answer [1]"
        self.error = None
        DummyChatModel.instances.append(self)

    def invoke(self, prompt, stop=None, **kwargs):
        self.invocations.append((prompt, stop, kwargs))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


class DummyCompletionModel:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls = []

    def generate(self, prompts, stop=None, **kwargs):
        self.calls.append((prompts, stop, kwargs))
        return SimpleNamespace(generations=[[SimpleNamespace(text="completed")]])


@pytest.fixture(autouse=True)
def fake_langchain(monkeypatch):
    DummyChatModel.instances = []
    monkeypatch.setattr(llm_interface, "ChatOpenAI", DummyChatModel)
    monkeypatch.setattr(llm_interface, "OpenAI", DummyCompletionModel)


def test_create_llm_defaults_to_chat_completions():
    llm = create_llm({"model_name": "gemini-2.0-flash", "api_base": GEMINI_BASE, "api_key": "k"})

    assert isinstance(llm, OpenAIChatLikeLLM)
    assert llm.get_llm().kwargs["model"] == "gemini-2.0-flash"
    assert llm.get_llm().kwargs["base_url"] == GEMINI_BASE


@pytest.mark.parametrize(
    "kind, cls",
    [
        ("OpenAILike", OpenAILikeLLM),
        ("openai-completion", OpenAILikeLLM),
        ("OpenAIChat", OpenAIChatLikeLLM),
        ("gemini", OpenAIChatLikeLLM),
    ],
)
def test_create_llm_selects_implementation_by_kind(kind, cls):
    assert isinstance(create_llm({"kind": kind, "model_name": "m", "api_base": "http://x"}), cls)


def test_create_llm_rejects_unknown_kind():
    with pytest.raises(ValueError, match="Unknown LLM kind"):
        create_llm({"kind": "carrier-pigeon"})


def test_normalize_llm_kind():
    assert _normalize_llm_kind("OpenAIChatLike") == "openai_chat_like"
    assert _normalize_llm_kind(" ") == ""


def test_generate_returns_text_and_sends_prompt_once():
    llm = OpenAIChatLikeLLM("m", "http://x")

    assert llm.generate("PROMPT") == "an answer [1]"
    assert [call[0] for call in llm.get_llm().invocations] == ["PROMPT"]


def test_stop_sequences_precedence():
    llm = OpenAIChatLikeLLM("m", "http://x", stop_list=["DEFAULT"])
    model = llm.get_llm()

    llm.generate("p")
    llm.generate("p", stop_list=["ALT"])
    llm.generate("p", stop=["EXPLICIT"], stop_list=["ALT"])

    assert [stop for _, stop, _ in model.invocations] == [["DEFAULT"], ["ALT"], ["EXPLICIT"]]


def test_provider_failure_becomes_generation_error():
    llm = OpenAIChatLikeLLM("m", "http://x")
    llm.get_llm().error = RuntimeError("429 quota exceeded")

    with pytest.raises(GenerationError, match="quota"):
        llm.generate("p")


def test_gemini_drops_unsupported_penalties():
    with pytest.warns(UserWarning, match="frequency_penalty"):
        llm = OpenAIChatLikeLLM("m", GEMINI_BASE, temperature=0.2, frequency_penalty=0.5)

    assert "frequency_penalty" not in llm.get_llm().kwargs
    assert llm.get_llm().kwargs["temperature"] == 0.2


def test_completion_llm_returns_first_generation():
    llm = OpenAILikeLLM("m", "http://x")

    assert llm.generate("p", temperature=0) == "completed"
    assert llm.get_llm().calls == [(["p"], None, {"temperature": 0})]


def test_content_to_text_concatenates_parts():
    assert _content_to_text("plain") == "plain"
    assert _content_to_text(None) == ""
    assert _content_to_text(["a", {"type": "text", "text": "b"}, {"type": "image"}]) == "ab"
