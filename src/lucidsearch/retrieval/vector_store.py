"""lucidsearch.retrieval.vector_store

Vector store wrapper for the retrieval layer.

This module wraps a single Qdrant collection through
:class:`qdrant_client.QdrantClient`. It is deliberately thin: the ingestion
pipeline upserts one :class:`~lucidsearch.common.schemas.VectorRecord` at a
time, and the retriever runs a similarity search that returns record ids
before hydrating their payloads.

Every client failure is re-raised as
:class:`~lucidsearch.common.errors.VectorStoreError`.

Classes
-------
QdrantStore
    Qdrant-backed vector store.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from qdrant_client import QdrantClient
from qdrant_client.http import models as qmodels

from lucidsearch.common import RecordId, VectorRecord
from lucidsearch.common.errors import VectorStoreError

logger = logging.getLogger(__name__)

RUN_ID_FIELD = "run_id"


class QdrantStore:
    """Qdrant-backed vector store.

    Parameters
    ----------
    client : QdrantClient
        Connected client.
    collection_name : str, optional
        Collection to read and write. Defaults to ``"embeddings"``.
    dimension : int or None, optional
        Vector size used by :meth:`create_collection` when none is passed.
    """

    def __init__(
            self,
            client: QdrantClient,
            *,
            collection_name: str = "embeddings",
            dimension: Optional[int] = None,
        ):
        self.client = client
        self.collection_name = collection_name
        self.dimension = dimension

    @classmethod
    def from_config_dict(cls, config: dict) -> "QdrantStore":
        """Create a store from the ``vector_store`` configuration section.

        Parameters
        ----------
        config : dict
            Expected keys include ``host`` (default ``"localhost"``), ``port``
            (default ``6333``), ``collection_name``, ``dimension`` and the
            optional ``location``, ``url``, ``api_key`` and ``timeout``.

        Returns
        -------
        QdrantStore
            Store bound to a new client. No request is made until first use.
        """
        if config.get("location"):
            # ":memory:" or a local path, served in-process by qdrant-client.
            client = QdrantClient(location=config["location"])
        elif config.get("url"):
            client = QdrantClient(
                url=config["url"],
                api_key=config.get("api_key"),
                timeout=int(config.get("timeout", 10)),
            )
        else:
            client = QdrantClient(
                host=config.get("host", "localhost"),
                port=int(config.get("port", 6333)),
                api_key=config.get("api_key"),
                timeout=int(config.get("timeout", 10)),
            )
        return cls(
            client,
            collection_name=config.get("collection_name", "embeddings"),
            dimension=config.get("dimension"),
        )

    def create_collection(self, dimension: Optional[int] = None, *, recreate: bool = True) -> None:
        """Create the collection with cosine distance.

        Parameters
        ----------
        dimension : int or None, optional
            Vector size. Falls back to the configured dimension.
        recreate : bool, optional
            Drop an existing collection first. When ``False`` an existing
            collection is kept as is.

        Raises
        ------
        VectorStoreError
            If no dimension is known or a client call fails.
        """
        size = dimension or self.dimension
        if not size:
            raise VectorStoreError("Cannot create a collection without a vector dimension.")

        try:
            exists = self.client.collection_exists(self.collection_name)
            if exists and not recreate:
                logger.info("Keeping existing collection '%s'", self.collection_name)
                return
            if exists:
                self.client.delete_collection(self.collection_name)
                logger.info("Deleted collection '%s'", self.collection_name)

            self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=qmodels.VectorParams(size=int(size), distance=qmodels.Distance.COSINE),
            )
            self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name=RUN_ID_FIELD,
                field_schema=qmodels.PayloadSchemaType.KEYWORD,
            )
        except Exception as e:
            raise VectorStoreError(
                f"Could not create collection '{self.collection_name}': {e}",
                details={"dimension": size},
            ) from e

        logger.info("Created collection '%s' (dimension=%d, distance=cosine)", self.collection_name, size)

    def upsert(self, record: VectorRecord) -> RecordId:
        """Insert ``record`` and return its id.

        Raises
        ------
        VectorStoreError
            If the write is rejected or the index is unreachable.
        """
        point = qmodels.PointStruct(id=record.id, vector=list(record.vector), payload=dict(record.payload))
        try:
            self.client.upsert(collection_name=self.collection_name, points=[point], wait=True)
        except Exception as e:
            raise VectorStoreError(f"Upsert into '{self.collection_name}' failed: {e}", details={"id": record.id}) from e
        return record.id

    def search(
            self,
            vector: List[float],
            limit: int = 10,
            score_threshold: float = 0.6,
            run_id: Optional[str] = None,
        ) -> List[RecordId]:
        """Return ids of the records most similar to ``vector``.

        Parameters
        ----------
        vector : list[float]
            Query vector.
        limit : int, optional
            Maximum number of ids returned.
        score_threshold : float, optional
            Minimum cosine similarity (inclusive).
        run_id : str or None, optional
            Only consider records written by this pipeline run.

        Returns
        -------
        list[str]
            Ids in descending similarity order.

        Raises
        ------
        VectorStoreError
            If the query fails.
        """
        query_filter = None
        if run_id is not None:
            query_filter = qmodels.Filter(
                must=[qmodels.FieldCondition(key=RUN_ID_FIELD, match=qmodels.MatchValue(value=run_id))]
            )

        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=list(vector),
                limit=int(limit),
                score_threshold=float(score_threshold),
                query_filter=query_filter,
                with_payload=False,
            )
        except Exception as e:
            raise VectorStoreError(f"Similarity search on '{self.collection_name}' failed: {e}") from e

        return [str(point.id) for point in response.points]

    def fetch(self, ids: Iterable[RecordId]) -> List[Dict[str, Any]]:
        """Return the payloads of ``ids``, in request order. Unknown ids are omitted.

        Raises
        ------
        VectorStoreError
            If the lookup fails.
        """
        ids = list(ids)
        if not ids:
            return []

        try:
            points = self.client.retrieve(
                collection_name=self.collection_name,
                ids=ids,
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            raise VectorStoreError(f"Payload lookup on '{self.collection_name}' failed: {e}") from e

        by_id = {str(p.id): (p.payload or {}) for p in points}
        return [by_id[i] for i in ids if i in by_id]

    def delete_run(self, run_id: str) -> None:
        """Delete every record written by pipeline run ``run_id``.

        Raises
        ------
        VectorStoreError
            If the delete fails.
        """
        selector = qmodels.FilterSelector(
            filter=qmodels.Filter(
                must=[qmodels.FieldCondition(key=RUN_ID_FIELD, match=qmodels.MatchValue(value=run_id))]
            )
        )
        try:
            self.client.delete(collection_name=self.collection_name, points_selector=selector, wait=True)
        except Exception as e:
            raise VectorStoreError(
                f"Deleting run '{run_id}' from '{self.collection_name}' failed: {e}",
                details={"run_id": run_id},
            ) from e
        logger.debug("Deleted records of run %s from '%s'", run_id, self.collection_name)

    def count(self) -> int:
        """Return the exact number of records in the collection."""
        try:
            return int(self.client.count(collection_name=self.collection_name, exact=True).count)
        except Exception as e:
            raise VectorStoreError(f"Counting records in '{self.collection_name}' failed: {e}") from e

    def ping(self) -> bool:
        """Return ``True`` when the collection can be reached."""
        try:
            return bool(self.client.collection_exists(self.collection_name))
        except Exception:
            logger.warning("Vector store health check failed", exc_info=True)
            return False


__all__ = ["QdrantStore", "RUN_ID_FIELD"]
