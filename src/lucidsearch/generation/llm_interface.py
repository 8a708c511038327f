"""lucidsearch.generation.llm_interface

Unified interface and factory for answer-generation LLM backends.

This module defines a small, provider-agnostic abstraction for text
generation and concrete implementations backed by LangChain's OpenAI
wrappers, which also cover OpenAI-compatible servers such as Gemini's
``/openai`` endpoint or vLLM. A factory function instantiates the
appropriate implementation from the ``generator_llm`` configuration section.

Classes
-------
BaseLLM
    Abstract interface specifying the API used by the RAG pipeline.
OpenAILikeLLM
    Text completion using an OpenAI-compatible HTTP API via LangChain.
OpenAIChatLikeLLM
    Chat completions using an OpenAI-compatible HTTP API via LangChain.

Functions
---------
create_llm
    Construct an LLM implementation from a configuration mapping.
"""

import logging
import warnings
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from langchain_core.callbacks import BaseCallbackHandler
from langchain_openai import ChatOpenAI, OpenAI

from lucidsearch.common.errors import GenerationError

logger = logging.getLogger(__name__)


def _is_gemini_openai_compat(api_base: str | None) -> bool:
    """Return ``True`` when the API base points to Gemini's OpenAI-compatible endpoint."""
    if not api_base:
        return False
    base = api_base.lower()
    return "generativelanguage.googleapis.com" in base and "/openai" in base


def _sanitize_openai_kwargs(
    api_base: str | None,
    kwargs: dict[str, Any],
    *,
    context: str,
) -> dict[str, Any]:
    """Drop provider-incompatible OpenAI kwargs for known OpenAI-compatible backends."""
    sanitized = dict(kwargs)

    if _is_gemini_openai_compat(api_base):
        unsupported_keys = {"frequency_penalty", "presence_penalty"}
        removed = sorted(k for k in unsupported_keys if k in sanitized)
        for key in removed:
            sanitized.pop(key, None)
        if removed:
            warnings.warn(
                "Dropping unsupported Gemini OpenAI-compatible params "
                f"during {context}: {', '.join(removed)}",
                UserWarning,
            )

    return sanitized


def _content_to_text(content: Any) -> str:
    """Flatten a chat message ``content`` into plain text.

    Providers may return a string or a list of parts (strings or mappings
    with a ``text`` key). Parts are concatenated in order; non-text parts are
    skipped.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, Mapping) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return str(content)


class BaseLLM(ABC):
    """Abstract interface for answer generation.

    Concrete implementations wrap a LangChain model and expose
    :meth:`generate`, which returns the model's text verbatim or raises
    :class:`~lucidsearch.common.errors.GenerationError`.
    """

    @classmethod
    @abstractmethod
    def from_config_dict(
            cls,
            config: dict,
            callback_manager: BaseCallbackHandler = None
        ) -> "BaseLLM":
        """Create an LLM instance from a configuration mapping.

        Parameters
        ----------
        config : dict
            The ``generator_llm`` configuration section.
        callback_manager : BaseCallbackHandler, optional
            Optional callback handler for logging/telemetry.

        Returns
        -------
        BaseLLM
            An initialised LLM implementation.
        """
        pass

    @abstractmethod
    def get_llm(self) -> Any:
        """Return the underlying LangChain model object."""
        pass

    @abstractmethod
    def generate(
            self,
            prompt: str,
            **kwargs
        ) -> str:
        """Generate an answer for a single prompt.

        Parameters
        ----------
        prompt : str
            Fully rendered prompt.
        **kwargs
            Additional generation parameters forwarded to the model.

        Returns
        -------
        str
            Generated text.

        Raises
        ------
        GenerationError
            If the provider call fails.
        """
        pass


class OpenAILikeLLM(BaseLLM):
    """LLM interface using an OpenAI-compatible completions API.

    This implementation wraps :class:`langchain_openai.OpenAI`.

    Parameters
    ----------
    model_name : str
        Model identifier.
    api_base : str
        Base URL for the OpenAI-compatible API endpoint.
    api_key : str, optional
        API key value. Defaults to ``"fake"`` for local deployments that do
        not require authentication.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry.
    **model_kwargs : Any
        Forwarded to the LangChain wrapper (e.g., ``temperature``,
        ``max_tokens``). ``stop_list`` sets default stop sequences.
    """

    def __init__(
        self,
        model_name: str,
        api_base: str,
        api_key: str = "fake",
        callback_manager: BaseCallbackHandler = None,
        **model_kwargs: Any,
    ):
        self.api_base = api_base
        model_kwargs = _sanitize_openai_kwargs(api_base, model_kwargs, context="model init")
        self.default_stop_list = model_kwargs.pop("stop_list", None)

        self.llm = OpenAI(
            model_name=model_name,
            openai_api_base=api_base,
            openai_api_key=api_key,
            callbacks=[callback_manager] if callback_manager else None,
            **model_kwargs,
        )

    @classmethod
    def from_config_dict(
            cls,
            config: dict,
            callback_manager: BaseCallbackHandler = None
        ) -> "OpenAILikeLLM":
        return cls(
            model_name=config.get("model_name"),
            api_base=config.get("api_base"),
            api_key=config.get("api_key") or "fake",
            callback_manager=callback_manager,
            **config.get("model_kwargs", {}),
        )

    def get_llm(self) -> OpenAI:
        return self.llm

    def generate(
            self,
            prompt: str,
            **kwargs
        ) -> str:
        """Generate text for a single prompt.

        Notes
        -----
        Stop sequences are resolved in the following order: explicit ``stop``,
        per-call ``stop_list``, then the instance default stop list.
        """
        run_kwargs = _sanitize_openai_kwargs(self.api_base, kwargs, context="generation")
        explicit_stop = run_kwargs.pop("stop", None)
        alt_stop_list = run_kwargs.pop("stop_list", None)
        final_stop = explicit_stop or alt_stop_list or self.default_stop_list

        try:
            response = self.llm.generate([prompt], stop=final_stop, **run_kwargs)
        except Exception as e:
            raise GenerationError(f"Completion request failed: {e}") from e
        return response.generations[0][0].text


class OpenAIChatLikeLLM(BaseLLM):
    """LLM interface using an OpenAI-compatible Chat Completions API.

    This implementation wraps :class:`langchain_openai.ChatOpenAI`. The
    rendered prompt is sent as a single user message.

    Parameters
    ----------
    model_name : str
        Model identifier (e.g., ``"gemini-2.0-flash"``).
    api_base : str
        Base URL for the OpenAI-compatible API endpoint.
    api_key : str, optional
        API key value.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry.
    **model_kwargs : Any
        Forwarded to the LangChain wrapper (e.g., ``temperature``).
    """

    def __init__(
        self,
        model_name: str,
        api_base: str,
        api_key: str = "fake",
        callback_manager: BaseCallbackHandler = None,
        **model_kwargs: Any,
    ):
        self.api_base = api_base
        model_kwargs = _sanitize_openai_kwargs(api_base, model_kwargs, context="model init")
        self.default_stop_list = model_kwargs.pop("stop_list", None)

        self.llm = ChatOpenAI(
            model=model_name,
            base_url=api_base,
            api_key=api_key,
            callbacks=[callback_manager] if callback_manager else None,
            **model_kwargs,
        )

    @classmethod
    def from_config_dict(
        cls,
        config: dict,
        callback_manager: BaseCallbackHandler = None,
    ) -> "OpenAIChatLikeLLM":
        return cls(
            model_name=config.get("model_name"),
            api_base=config.get("api_base"),
            api_key=config.get("api_key") or "fake",
            callback_manager=callback_manager,
            **config.get("model_kwargs", {}),
        )

    def get_llm(self) -> ChatOpenAI:
        return self.llm

    def generate(self, prompt: str, **kwargs) -> str:
        """Generate text for a single prompt.

        List-of-parts message content is concatenated in order.
        """
        run_kwargs = _sanitize_openai_kwargs(self.api_base, kwargs, context="generation")
        explicit_stop = run_kwargs.pop("stop", None)
        alt_stop_list = run_kwargs.pop("stop_list", None)
        final_stop = explicit_stop or alt_stop_list or self.default_stop_list

        try:
            response = self.llm.invoke(prompt, stop=final_stop, **run_kwargs)
        except Exception as e:
            raise GenerationError(f"Chat completion request failed: {e}") from e
        return _content_to_text(getattr(response, "content", response))


# ----------------- Factory helpers -----------------

def _get_llm_kind(cfg: Mapping[str, Any]) -> str:
    """Return the first non-empty ``kind``/``type``/``provider`` value, or ``""``."""
    for key in ("kind", "type", "provider"):
        val = cfg.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return ""


def _normalize_llm_kind(kind: str) -> str:
    """Normalise an LLM kind to a registry key (``"OpenAIChat"`` -> ``"openai_chat"``)."""
    k = kind.strip()
    if not k:
        return ""

    out: list[str] = []
    prev = ""
    for ch in k:
        if prev and prev.islower() and ch.isupper():
            out.append("_")
        out.append(ch)
        prev = ch

    k2 = "".join(out).replace("-", "_").replace(" ", "_")
    while "__" in k2:
        k2 = k2.replace("__", "_")
    k2 = k2.lower()

    for alias in ("openailike", "open_ailike", "open_ai_like"):
        k2 = k2.replace(alias, "openai_like")
    for alias in ("open_aichat", "open_ai_chat"):
        k2 = k2.replace(alias, "openai_chat")
    return k2


def create_llm(
    config: dict,
    callback_manager: Optional[BaseCallbackHandler] = None,
) -> BaseLLM:
    """Create an LLM implementation from a configuration mapping.

    The implementation is selected by ``kind``/``type``/``provider``; chat
    completions are the default.

    Parameters
    ----------
    config : dict
        The ``generator_llm`` configuration section.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry.

    Returns
    -------
    BaseLLM
        An initialised LLM implementation.

    Raises
    ------
    TypeError
        If ``config`` is not a mapping.
    ValueError
        If the discriminator selects an unsupported implementation.
    """
    if not isinstance(config, Mapping):
        raise TypeError(f"create_llm expected a mapping/dict, got {type(config)}")

    kind_raw = _get_llm_kind(config)
    kind = _normalize_llm_kind(kind_raw)

    registry = {
        "openai_like": OpenAILikeLLM,
        "openai_completion": OpenAILikeLLM,
        "openai_chat": OpenAIChatLikeLLM,
        "openai_chat_like": OpenAIChatLikeLLM,
        "chat": OpenAIChatLikeLLM,
        "gemini": OpenAIChatLikeLLM,
    }

    cls = registry.get(kind) if kind else OpenAIChatLikeLLM
    if cls is None:
        raise ValueError(
            f"Unknown LLM kind '{kind_raw}' (normalized to '{kind}'). "
            f"Supported kinds: {sorted(registry.keys())}."
        )

    logger.debug("Creating %s for model %s", cls.__name__, config.get("model_name"))
    return cls.from_config_dict(dict(config), callback_manager=callback_manager)


__all__ = [
    "BaseLLM",
    "OpenAILikeLLM",
    "OpenAIChatLikeLLM",
    "create_llm",
]
