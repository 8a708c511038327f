"""lucidsearch

LucidSearch answer-engine package.

This package contains the building blocks for a search-grounded
Retrieval-Augmented Generation (RAG) service: per-query web and talk search
fan-out, content retrieval, chunking and embedding into a vector index,
similarity retrieval, context assembly and answer generation.

Attributes
----------
__version__ : str
    Package version string. Defaults to ``"0.0.0-dev"`` when package metadata is
    unavailable.

Modules
-------
config
    Global configuration loader and cached accessors.
app
    Application container and HTTP front end.
pipelines
    Ingestion and end-to-end RAG orchestration.
retrieval
    Search sources, content retrieval, preprocessing, chunking, embedding,
    vector store and retriever.
generation
    Context assembly, prompt building and LLM interfaces.
common
    Shared schemas, errors and concurrency helpers.

Exports
-------
GlobalConfig
    Global configuration loader and accessor.
LucidContainer
    Cached runtime component container for applications.
build_container
    Factory function to construct a configured :class:`~lucidsearch.app.container.LucidContainer`.
RAGPipeline
    End-to-end Retrieval-Augmented Generation pipeline.
SearchResult
    Search hit schema.
RetrievedChunk
    Chunk payload hydrated from the vector index.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("lucidsearch")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from .config import GlobalConfig
from .app.container import LucidContainer, build_container
from .pipelines.rag_pipeline import RAGPipeline
from .common import RetrievedChunk, SearchResult

__all__ = [
    "__version__",
    "GlobalConfig",
    "LucidContainer",
    "build_container",
    "RAGPipeline",
    "SearchResult",
    "RetrievedChunk",
]
