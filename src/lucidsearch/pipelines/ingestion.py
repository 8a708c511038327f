"""lucidsearch.pipelines.ingestion

Per-document chunk, embed and store pipeline.

Classes
-------
IngestionPipeline
    Turns one document's text into at most ``max_chunks`` stored vectors, and
    embeds queries through the same path.
"""
import logging
from typing import List, Optional

from lucidsearch.common import CancellationToken, VectorRecord, embedding_counter
from lucidsearch.common.concurrency import raise_if_cancelled
from lucidsearch.common.errors import EmbeddingError
from lucidsearch.retrieval.document_preprocessor import sanitize_utf8
from lucidsearch.retrieval.embedder import BaseEmbedder
from lucidsearch.retrieval.text_splitter import (
    DEFAULT_FLUSH_LIMIT,
    DEFAULT_MAX_BYTES,
    split_content_by_bytes,
)
from lucidsearch.retrieval.vector_store import RUN_ID_FIELD, QdrantStore

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Chunk, embed and store documents.

    Parameters
    ----------
    embedder : BaseEmbedder
        Embedding provider wrapper.
    store : QdrantStore
        Destination vector store.
    max_bytes : int, optional
        Chunk size bound passed to the text splitter. Defaults to ``9000``.
    max_chunks : int, optional
        Maximum number of vectors stored per document. Defaults to ``5``.
    flush_limit : int, optional
        Trailing-buffer bound passed to the text splitter.
    """

    def __init__(
            self,
            embedder: BaseEmbedder,
            store: QdrantStore,
            *,
            max_bytes: int = DEFAULT_MAX_BYTES,
            max_chunks: int = 5,
            flush_limit: int = DEFAULT_FLUSH_LIMIT,
        ):
        self.embedder = embedder
        self.store = store
        self.max_bytes = int(max_bytes)
        self.max_chunks = int(max_chunks)
        self.flush_limit = int(flush_limit)

    @classmethod
    def from_config_dict(cls, config: dict, embedder: BaseEmbedder, store: QdrantStore) -> "IngestionPipeline":
        return cls(
            embedder,
            store,
            max_bytes=config.get("max_bytes", DEFAULT_MAX_BYTES),
            max_chunks=config.get("max_chunks", 5),
            flush_limit=config.get("flush_limit", DEFAULT_FLUSH_LIMIT),
        )

    def ingest(
            self,
            content: str,
            title: str,
            link: str,
            *,
            run_id: Optional[str] = None,
            cancel_token: CancellationToken | None = None,
        ) -> int:
        """Embed and store up to ``max_chunks`` chunks of ``content``.

        Chunks are processed in document order. A chunk whose embedding fails
        is skipped and the next one is tried; once ``max_chunks`` vectors have
        been stored the remaining chunks are dropped.

        Parameters
        ----------
        content : str
            Cleaned document text.
        title : str
            Source title stored in every payload.
        link : str
            Source link stored in every payload.
        run_id : str or None, optional
            Pipeline run identifier stored in every payload.
        cancel_token : CancellationToken or None, optional
            Checked before every chunk.

        Returns
        -------
        int
            Number of vectors stored.

        Raises
        ------
        VectorStoreError
            If an upsert fails. Vectors stored before the failure remain.
        PipelineCancelled
            If ``cancel_token`` was cancelled.
        """
        stored = 0

        for chunk in split_content_by_bytes(content, self.max_bytes, flush_limit=self.flush_limit):
            if stored >= self.max_chunks:
                break
            raise_if_cancelled(cancel_token)

            text = sanitize_utf8(chunk)
            if not text:
                continue

            try:
                vector = self.embedder.embed_text(text)
            except EmbeddingError as e:
                logger.warning("Skipping chunk of %s: %s", link, e)
                continue

            payload = {"title": title, "link": link, "text": text}
            if run_id is not None:
                payload[RUN_ID_FIELD] = run_id
            self.store.upsert(VectorRecord(vector=vector, payload=payload))

            stored += 1
            total = embedding_counter.add()
            logger.debug("Stored chunk %d of %s (process total %d)", stored, link, total)

        return stored

    def discard_run(self, run_id: str) -> None:
        """Remove every vector stored under ``run_id``.

        Raises
        ------
        VectorStoreError
            If the delete fails.
        """
        self.store.delete_run(run_id)

    def embed_query(self, query: str) -> List[float]:
        """Embed ``query`` through the ingestion path without storing it.

        Only the first chunk of the query is embedded.

        Raises
        ------
        EmbeddingError
            If the query is empty or the provider fails.
        """
        chunks = split_content_by_bytes(query, self.max_bytes, flush_limit=self.flush_limit)
        text = sanitize_utf8(chunks[0]) if chunks else ""
        if not text:
            raise EmbeddingError("Cannot embed an empty query.")
        return self.embedder.embed_text(text)


__all__ = ["IngestionPipeline"]
