"""lucidsearch.common.schemas

Core data schemas shared across the retrieval pipeline.

These lightweight dataclasses describe the shapes handed between search
fan-out, content retrieval, chunking, embedding, vector storage and context
assembly.

Classes
-------
SearchResult
    A single hit returned by a search source.
Chunk
    A bounded slice of a document's cleaned text.
VectorRecord
    The unit stored in the vector index.
RetrievedChunk
    A chunk payload hydrated back out of the vector index.
ReferenceTalk
    One entry of the talk-transcript reference dataset.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List
from uuid import uuid4


@dataclass(frozen=True)
class SearchResult:
    """A search hit produced by query fan-out.

    Attributes
    ----------
    title : str
        Title reported by the search provider.
    link : str
        Target URL. May be empty, in which case there is nothing to retrieve.
    is_specialized : bool
        ``True`` when the hit came from the talk-transcript source and must be
        resolved through the talk matcher rather than generic scraping.
    """
    title: str
    link: str
    is_specialized: bool = False


@dataclass
class Chunk:
    """A contiguous, word-aligned slice of document text.

    Attributes
    ----------
    text : str
        Chunk text.
    byte_size : int
        Size of ``text`` as measured by the chunker (code points, so an
        approximation of the encoded byte size for non-ASCII text).
    """
    text: str
    byte_size: int


@dataclass
class VectorRecord:
    """A record stored in the vector index.

    Attributes
    ----------
    vector : list[float]
        Embedding vector.
    payload : Dict[str, Any]
        Source metadata. Always carries ``title``, ``link`` and ``text``.
    id : str
        Unique identifier. A fresh UUID4 string is generated per record and
        never reused.
    """
    vector: List[float]
    payload: Dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid4()))


@dataclass(frozen=True)
class RetrievedChunk:
    """A chunk payload read back from the vector index.

    Instances are only created for payloads that passed noise filtering, so
    ``text`` is plain prose.
    """
    title: str
    link: str
    text: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RetrievedChunk":
        return cls(
            title=str(payload.get("title") or ""),
            link=str(payload.get("link") or ""),
            text=str(payload.get("text") or ""),
        )


@dataclass(frozen=True)
class ReferenceTalk:
    """An entry of the talk-transcript reference dataset.

    Attributes
    ----------
    title : str
        Talk title.
    output : str
        Transcript or summary text returned on a successful match.
    speaker : str
        Speaker name.
    """
    title: str
    output: str
    speaker: str = ""
