"""lucidsearch.retrieval.retriever

Retriever implementation for the LucidSearch pipeline.

Classes
-------
VectorIndexRetriever
    Similarity search over the vector store followed by payload hydration and
    noise filtering.
"""
import logging
from typing import List, Optional, Sequence

from lucidsearch.common import RetrievedChunk
from lucidsearch.retrieval.document_preprocessor import DEFAULT_NOISE_MARKERS, is_noisy
from lucidsearch.retrieval.vector_store import QdrantStore

logger = logging.getLogger(__name__)


class VectorIndexRetriever:
    """Vector-based retriever over a :class:`QdrantStore`.

    Parameters
    ----------
    store : QdrantStore
        Vector store to search.
    limit : int, optional
        Maximum number of records returned by the similarity search.
        Defaults to ``10``.
    score_threshold : float, optional
        Minimum similarity a record must reach. Defaults to ``0.6``.
    noise_markers : Sequence[str], optional
        Chunks whose text contains any of these substrings are discarded.
        Defaults to ``("::", "{", "}")``.
    """

    def __init__(
            self,
            store: QdrantStore,
            *,
            limit: int = 10,
            score_threshold: float = 0.6,
            noise_markers: Sequence[str] = DEFAULT_NOISE_MARKERS,
        ):
        self.store = store
        self.limit = int(limit)
        self.score_threshold = float(score_threshold)
        self.noise_markers = tuple(noise_markers)

    @classmethod
    def from_config_dict(cls, config: dict, store: QdrantStore) -> "VectorIndexRetriever":
        return cls(
            store,
            limit=config.get("limit", 10),
            score_threshold=config.get("score_threshold", 0.6),
            noise_markers=config.get("noise_markers", DEFAULT_NOISE_MARKERS),
        )

    def retrieve(
            self,
            query_vector: List[float],
            *,
            run_id: Optional[str] = None,
        ) -> List[RetrievedChunk]:
        """Return the noise-free chunks most similar to ``query_vector``.

        Parameters
        ----------
        query_vector : list[float]
            Embedded query.
        run_id : str or None, optional
            Restrict the search to records written by this pipeline run.

        Returns
        -------
        list[RetrievedChunk]
            Chunks in similarity order. Ids whose payload is gone are
            omitted, as are payloads with no text and texts containing a
            noise marker.

        Raises
        ------
        VectorStoreError
            If the search or the payload lookup fails.
        """
        ids = self.store.search(
            query_vector,
            limit=self.limit,
            score_threshold=self.score_threshold,
            run_id=run_id,
        )
        if not ids:
            logger.info("Similarity search returned no records above %.2f", self.score_threshold)
            return []

        payloads = self.store.fetch(ids)
        chunks: List[RetrievedChunk] = []
        for payload in payloads:
            text = str(payload.get("text") or "")
            if not text.strip():
                logger.warning("Skipping payload without text (link=%s)", payload.get("link"))
                continue
            if is_noisy(text, self.noise_markers):
                continue
            chunks.append(RetrievedChunk.from_payload(payload))

        logger.debug("Retrieved %d ids, %d payloads, %d kept after noise filtering", len(ids), len(payloads), len(chunks))
        return chunks


__all__ = ["VectorIndexRetriever"]
