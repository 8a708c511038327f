"""
Common building blocks shared across the LucidSearch stack.

This package provides small, widely-used primitives (data schemas, the error
hierarchy and thread-coordination helpers) intended to be imported by
multiple layers of the system.

Classes
-------
SearchResult
    Search hit produced by query fan-out.
Chunk
    Bounded slice of document text.
VectorRecord
    Record stored in the vector index.
RetrievedChunk
    Noise-filtered payload hydrated from the vector index.
ReferenceTalk
    Entry of the talk-transcript reference dataset.
CancellationToken
    Cooperative cancellation flag for a pipeline run.

Attributes
----------
RecordId : TypeAlias
    Type alias for vector record identifiers.
RunId : TypeAlias
    Type alias for pipeline run identifiers.
"""
from __future__ import annotations
from typing import TypeAlias

from .schemas import (
    Chunk,
    ReferenceTalk,
    RetrievedChunk,
    SearchResult,
    VectorRecord,
)
from .concurrency import CancellationToken, embedding_counter

RecordId: TypeAlias = str
RunId: TypeAlias = str

__all__ = [
    "Chunk",
    "ReferenceTalk",
    "RetrievedChunk",
    "SearchResult",
    "VectorRecord",
    "CancellationToken",
    "embedding_counter",
    "RecordId",
    "RunId",
]
