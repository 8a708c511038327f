"""lucidsearch.retrieval.embedder

Embedding interfaces and factories for the retrieval layer.

This module defines a small provider-agnostic interface for producing vector
embeddings from text, along with concrete implementations backed by
LlamaIndex embedding wrappers. A factory function constructs an embedder from
the ``embedder`` configuration section.

Classes
-------
BaseEmbedder
    Abstract interface specifying the API used by the ingestion pipeline.
OpenAILikeEmbedder
    Embedder backed by an OpenAI-compatible HTTP API via LlamaIndex.
HuggingFaceEmbedder
    Embedder backed by a local Hugging Face model via LlamaIndex.

Functions
---------
create_embedder
    Create an embedder implementation from a configuration mapping.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from langchain_core.callbacks import BaseCallbackHandler
from llama_index.core.base.embeddings.base import BaseEmbedding as LlamaIndexBaseEmbedding

from lucidsearch.common.errors import EmbeddingError

logger = logging.getLogger(__name__)


class BaseEmbedder(ABC):
    """Abstract interface for text embedding.

    Concrete implementations wrap a LlamaIndex embedding and expose
    :meth:`embed_text`, which turns every provider failure into
    :class:`~lucidsearch.common.errors.EmbeddingError`.
    """

    @abstractmethod
    def get_embedder(self) -> LlamaIndexBaseEmbedding:
        """Return the wrapped LlamaIndex embedding instance."""
        pass

    @classmethod
    @abstractmethod
    def from_config_dict(
            cls,
            config: Dict[str, Any],
            callback_manager: BaseCallbackHandler = None
        ) -> "BaseEmbedder":
        """Create an embedder from a configuration mapping.

        Parameters
        ----------
        config : dict[str, Any]
            The ``embedder`` configuration section.
        callback_manager : BaseCallbackHandler, optional
            Optional callback handler for logging/telemetry.

        Returns
        -------
        BaseEmbedder
            An initialised embedder implementation.

        Raises
        ------
        KeyError
            If required configuration keys are missing.
        """
        pass

    def embed_text(self, text: str) -> List[float]:
        """Embed a single piece of text.

        Parameters
        ----------
        text : str
            Text to embed. Must already be valid UTF-8.

        Returns
        -------
        list[float]
            Embedding vector.

        Raises
        ------
        EmbeddingError
            If the provider call fails or returns an empty vector.
        """
        try:
            vector = self.get_embedder().get_text_embedding(text)
        except Exception as e:
            raise EmbeddingError(f"Embedding request failed: {e}", details={"chars": len(text)}) from e

        if not vector:
            raise EmbeddingError("Embedding provider returned an empty vector.", details={"chars": len(text)})
        return [float(v) for v in vector]


class OpenAILikeEmbedder(BaseEmbedder):
    """Embedder backed by an OpenAI-compatible embedding API via LlamaIndex.

    This implementation wraps :class:`llama_index.embeddings.openai_like.OpenAILikeEmbedding`,
    which covers Gemini's OpenAI-compatible endpoint as well as vLLM/TEI
    servers.

    Parameters
    ----------
    model_name : str
        Model identifier for the embedding endpoint.
    api_base : str
        Base URL of the OpenAI-compatible API.
    api_key : str, optional
        API key for the endpoint.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry.
    model_kwargs : dict[str, Any] or None, optional
        Additional keyword arguments forwarded with each request.
    timeout : float, optional
        Request timeout in seconds.
    max_retries : int, optional
        Client-side retries for transient failures.
    """

    def __init__(
            self,
            model_name: str,
            *,
            api_base: str,
            api_key: str = None,
            callback_manager: BaseCallbackHandler = None,
            model_kwargs: dict[str, Any] = None,
            timeout: float = 30.0,
            max_retries: int = 2,
        ):
        from llama_index.embeddings.openai_like import OpenAILikeEmbedding

        self.embedder = OpenAILikeEmbedding(
            model_name=model_name,
            api_base=api_base,
            api_key=api_key,
            callback_manager=callback_manager,
            additional_kwargs=model_kwargs or {},
            timeout=timeout,
            max_retries=max_retries,
            embed_batch_size=1,
        )

    def get_embedder(self) -> LlamaIndexBaseEmbedding:
        return self.embedder

    @classmethod
    def from_config_dict(
            cls,
            config: Dict[str, Any],
            callback_manager: BaseCallbackHandler = None
        ) -> "OpenAILikeEmbedder":
        """Create an OpenAI-compatible embedder from a configuration mapping.

        Raises
        ------
        KeyError
            If ``model_name`` or ``api_base`` is missing.
        """
        return cls(
            model_name=config["model_name"],
            api_base=config["api_base"],
            api_key=config.get("api_key"),
            callback_manager=callback_manager,
            model_kwargs=config.get("model_kwargs", {}),
            timeout=float(config.get("timeout", 30.0)),
            max_retries=int(config.get("max_retries", 2)),
        )


class HuggingFaceEmbedder(BaseEmbedder):
    """Embedder backed by a local Hugging Face model via LlamaIndex.

    Requires the ``huggingface`` extra.

    Parameters
    ----------
    model_name : str
        Name or path of the embedding model.
    device : str, optional
        Device identifier (e.g., ``"cuda"``, ``"cpu"``, ``"mps"``).
    trust_remote_code : bool, optional
        Whether to allow custom model code from the Hugging Face Hub.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry.
    """

    def __init__(
            self,
            model_name: str,
            *,
            device: str = "cpu",
            trust_remote_code: bool = False,
            callback_manager: BaseCallbackHandler = None,
        ):
        from llama_index.embeddings.huggingface import HuggingFaceEmbedding

        self.embedder = HuggingFaceEmbedding(
            model_name=model_name,
            device=device,
            trust_remote_code=trust_remote_code,
            callback_manager=callback_manager,
        )

    def get_embedder(self) -> LlamaIndexBaseEmbedding:
        return self.embedder

    @classmethod
    def from_config_dict(
            cls,
            config: Dict[str, Any],
            callback_manager: BaseCallbackHandler = None
        ) -> "HuggingFaceEmbedder":
        return cls(
            model_name=config["model_name"],
            device=config.get("device", "cpu"),
            trust_remote_code=bool(config.get("trust_remote_code", False)),
            callback_manager=callback_manager,
        )


# ----------------- Factory helpers -----------------

def _get_embedder_kind(cfg: Mapping[str, Any]) -> str:
    """Return the first non-empty ``kind``/``type``/``provider`` value, or ``""``."""
    for key in ("kind", "type", "provider"):
        val = cfg.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return ""


def _normalize_embedder_kind(kind: str) -> str:
    """Normalise an embedder kind to a registry key (``"OpenAILike"`` -> ``"openai_like"``)."""
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
    return k2


def create_embedder(
    config: dict,
    callback_manager: Optional[BaseCallbackHandler] = None,
) -> BaseEmbedder:
    """Create an embedder implementation from a configuration mapping.

    The implementation is selected by ``kind``/``type``/``provider``. Without
    a discriminator the OpenAI-compatible embedder is used.

    Parameters
    ----------
    config : dict
        The ``embedder`` configuration section.
    callback_manager : BaseCallbackHandler, optional
        Optional callback handler for logging/telemetry.

    Returns
    -------
    BaseEmbedder
        An initialised embedder implementation.

    Raises
    ------
    TypeError
        If ``config`` is not a mapping.
    ValueError
        If the discriminator selects an unsupported implementation.
    """
    if not isinstance(config, Mapping):
        raise TypeError(f"create_embedder expected a mapping/dict, got {type(config)}")

    kind_raw = _get_embedder_kind(config)
    kind = _normalize_embedder_kind(kind_raw)

    registry = {
        "openai_like": OpenAILikeEmbedder,
        "openai": OpenAILikeEmbedder,
        "gemini": OpenAILikeEmbedder,
        "huggingface": HuggingFaceEmbedder,
        "hf": HuggingFaceEmbedder,
    }

    cls = registry.get(kind) if kind else OpenAILikeEmbedder
    if cls is None:
        raise ValueError(
            f"Unknown embedder kind '{kind_raw}' (normalized to '{kind}'). "
            f"Supported kinds: {sorted(registry.keys())}."
        )

    logger.debug("Creating %s for model %s", cls.__name__, config.get("model_name"))
    return cls.from_config_dict(dict(config), callback_manager=callback_manager)


__all__ = [
    "BaseEmbedder",
    "OpenAILikeEmbedder",
    "HuggingFaceEmbedder",
    "create_embedder",
]
