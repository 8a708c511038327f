"""lucidsearch.retrieval.types

Shared type definitions for the retrieval layer.

This module defines lightweight protocol abstractions used to decouple the
fan-out and orchestration code from concrete backend classes.

Classes
-------
SearchSource
    Protocol defining the minimal search-source interface.
Retriever
    Protocol defining the minimal chunk-retriever interface.
"""

from typing import Iterator, List, Protocol

from lucidsearch.common import RetrievedChunk, SearchResult


class SearchSource(Protocol):
    """Protocol defining the search-source interface.

    Attributes
    ----------
    name : str
        Source name, used in logs and thread names.

    Methods
    -------
    iter_results
        Stream results for a query.
    """
    name: str

    def iter_results(self, query: str) -> Iterator[SearchResult]:
        """Yield results for ``query`` in provider order.

        Implementations raise :class:`~lucidsearch.common.errors.SearchError`
        on failure; results already yielded stay valid.
        """
        ...


class Retriever(Protocol):
    """Protocol defining the retriever interface.

    Methods
    -------
    retrieve
        Return the noise-free chunks most similar to a query vector.
    """
    def retrieve(self, query_vector: List[float], *, run_id: str | None = None) -> List[RetrievedChunk]:
        ...
