"""lucidsearch.app.container

Composition root for the LucidSearch system.

This module is the single place where concrete implementations are wired
together from configuration (search sources, content retriever, embedder,
vector store, LLM client and the end-to-end RAG pipeline). Components are
constructed lazily and cached on first access so that one set of clients is
shared by every request.

Notes
-----
- Keep this module importable with minimal side effects:
  - do not perform network calls at import time
  - do not read files at import time
  - construct expensive objects lazily (cached on first access)
- :meth:`LucidContainer.startup` is the only method that touches external
  resources eagerly (dataset file, vector collection).

Examples
--------
>>> from lucidsearch.config import GlobalConfig
>>> from lucidsearch.app.container import build_container
>>> cfg = GlobalConfig.load("config/config.yaml")
>>> c = build_container(cfg)
>>> c.startup()
>>> answer = c.pipeline.answer("solar energy")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Any, List, Mapping

from lucidsearch.common import ReferenceTalk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LucidContainer:
    """Holds the configured, cached runtime components for the application.

    Parameters
    ----------
    config : Any
        Loaded global configuration (typically :class:`lucidsearch.config.GlobalConfig`).
    """

    config: Any

    @cached_property
    def generator_llm(self) -> Any:
        """Return the LLM used to generate final answers."""
        from lucidsearch.generation.llm_interface import create_llm

        return create_llm(dict(_as_mapping(self.config.generator_llm)))

    @cached_property
    def embedder(self) -> Any:
        """Return the embedding client used for chunks and queries."""
        from lucidsearch.retrieval.embedder import create_embedder

        return create_embedder(dict(_as_mapping(self.config.embedder)))

    @cached_property
    def vector_store(self) -> Any:
        """Return the Qdrant-backed vector store."""
        from lucidsearch.retrieval.vector_store import QdrantStore

        return QdrantStore.from_config_dict(dict(_as_mapping(self.config.vector_store)))

    @cached_property
    def reference_talks(self) -> List[ReferenceTalk]:
        """Return the talk reference dataset, loaded from ``talks.path``."""
        from lucidsearch.retrieval.document_loader import load_reference_talks

        return load_reference_talks(self.config.talks_path)

    @cached_property
    def talk_index(self) -> Any:
        from lucidsearch.retrieval.talk_matcher import TalkIndex

        section = _as_mapping(self.config.talks)
        return TalkIndex(
            self.reference_talks,
            threshold=float(section.get("threshold", 70.0)),
            strategy=section.get("strategy", "first"),
        )

    @cached_property
    def search_sources(self) -> list:
        from lucidsearch.retrieval.search import create_search_sources

        return create_search_sources(dict(_as_mapping(self.config.search)))

    @cached_property
    def content_retriever(self) -> Any:
        from lucidsearch.retrieval.document_loader import ContentRetriever

        return ContentRetriever.from_config_dict(dict(_as_mapping(self.config.fetch)), self.talk_index)

    @cached_property
    def ingestion(self) -> Any:
        from lucidsearch.pipelines.ingestion import IngestionPipeline

        return IngestionPipeline.from_config_dict(
            dict(_as_mapping(self.config.ingestion)),
            embedder=self.embedder,
            store=self.vector_store,
        )

    @cached_property
    def retriever(self) -> Any:
        from lucidsearch.retrieval.retriever import VectorIndexRetriever

        return VectorIndexRetriever.from_config_dict(dict(_as_mapping(self.config.retriever)), self.vector_store)

    @cached_property
    def prompt_builder(self) -> Any:
        """Return the prompt builder loaded from ``config.prompts``.

        Relative prompt paths are resolved against the config file directory,
        not the current working directory.
        """
        from lucidsearch.generation.prompt_builder import PromptBuilder

        prompts = self.config.prompts
        if isinstance(prompts, str):
            sources = [prompts]
        elif isinstance(prompts, (list, tuple)):
            sources = [str(p) for p in prompts]
        else:
            raise TypeError(f"config.prompts must be a str or list[str], got {type(prompts)!r}")

        cfg_path = getattr(self.config, "config_path", None)
        base_dir = cfg_path.parent if cfg_path is not None else None

        builder = PromptBuilder()
        for src in sources:
            builder.register_from_source(src, base_dir=base_dir)
        return builder

    @cached_property
    def prompt_name(self) -> str:
        """Return the configured prompt name.

        Raises
        ------
        ValueError
            If the name is not registered in :attr:`prompt_builder`.
        """
        name = str(_as_mapping(self.config.pipeline).get("prompt_name", "lucid_answer"))
        if name not in self.prompt_builder.list_prompts():
            available = ", ".join(self.prompt_builder.list_prompts())
            raise ValueError(f"Configured prompt_name {name!r} was not found in loaded prompts. Available: [{available}]")
        return name

    @cached_property
    def pipeline(self) -> Any:
        """Return the fully wired :class:`~lucidsearch.pipelines.rag_pipeline.RAGPipeline`."""
        from lucidsearch.pipelines.rag_pipeline import RAGPipeline

        pipeline_cfg = _as_mapping(self.config.pipeline)
        search_cfg = _as_mapping(self.config.search)
        retriever_cfg = _as_mapping(self.config.retriever)

        return RAGPipeline(
            sources=self.search_sources,
            content_retriever=self.content_retriever,
            ingestion=self.ingestion,
            retriever=self.retriever,
            prompt_builder=self.prompt_builder,
            prompt_name=self.prompt_name,
            llm=self.generator_llm,
            max_workers=int(pipeline_cfg.get("max_workers", 8)),
            max_context_words=int(pipeline_cfg.get("max_context_words", 8192)),
            deduplicate_links=bool(search_cfg.get("deduplicate_links", True)),
            scope_to_run=bool(retriever_cfg.get("scope_to_run", True)),
            llm_generate_defaults=dict(pipeline_cfg.get("llm_generate") or {}),
        )

    def startup(self) -> None:
        """Validate configuration and prepare external resources.

        Loads the talk dataset and creates the vector collection (dropping an
        existing one when ``vector_store.recreate_on_startup`` is set, the
        default).

        Raises
        ------
        ConfigurationError
            If configuration or the dataset is invalid.
        VectorStoreError
            If the collection cannot be created.
        """
        self.config.validate()
        logger.info("Loaded %d reference talks", len(self.talk_index))

        section = _as_mapping(self.config.vector_store)
        self.vector_store.create_collection(
            int(section["dimension"]),
            recreate=bool(section.get("recreate_on_startup", True)),
        )


def build_container(config: Any) -> LucidContainer:
    """Create a :class:`LucidContainer`.

    Single entry point for the FastAPI startup hook, CLI scripts and tests.
    """
    return LucidContainer(config=config)


def _as_mapping(obj: Any) -> Mapping[str, Any]:
    """Coerce ``obj`` into a mapping.

    Raises
    ------
    TypeError
        If ``obj`` is neither a mapping nor an object with ``__dict__``.
    """
    if isinstance(obj, Mapping):
        return obj

    if hasattr(obj, "__dict__"):
        return dict(vars(obj))

    raise TypeError(f"Expected mapping type but got {type(obj)}")


__all__ = ["LucidContainer", "build_container"]
