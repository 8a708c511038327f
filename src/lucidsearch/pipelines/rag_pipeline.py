"""lucidsearch.pipelines.rag_pipeline

End-to-end Retrieval-Augmented Generation (RAG) pipeline orchestration.

This module defines the :class:`RAGPipeline`, which coordinates per-query
ingestion (search fan-out, content retrieval, chunk embedding), similarity
retrieval, context assembly, prompt construction and LLM invocation.

Classes
-------
RAGPipeline
    Orchestrates fan-out → ingest → retrieve → context → generation.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Dict, Sequence
from uuid import uuid4

from lucidsearch.common import CancellationToken, SearchResult
from lucidsearch.common.concurrency import raise_if_cancelled
from lucidsearch.common.errors import FetchError, PipelineCancelled, VectorStoreError
from lucidsearch.generation.context_builder import DEFAULT_MAX_CONTEXT_WORDS, build_context
from lucidsearch.generation.llm_interface import BaseLLM
from lucidsearch.generation.prompt_builder import PromptBuilder
from lucidsearch.pipelines.ingestion import IngestionPipeline
from lucidsearch.retrieval.document_loader import ContentRetriever
from lucidsearch.retrieval.search import fanout
from lucidsearch.retrieval.types import Retriever, SearchSource

logger = logging.getLogger(__name__)


class RAGPipeline:
    """Retrieval-Augmented Generation (RAG) orchestrator.

    This class wires together:
    - search sources queried concurrently for candidate documents
    - a content retriever and an ingestion pipeline run per document on a
      bounded worker pool
    - a retriever that searches the vector store with the query embedding
    - a prompt builder and an LLM interface for the final answer

    Components are shared across requests; per-run state lives in
    :meth:`run`, so one instance can serve concurrent queries.

    Parameters
    ----------
    sources : Sequence[SearchSource]
        Search sources fanned out for every query.
    content_retriever : ContentRetriever
        Resolves a search result to document text.
    ingestion : IngestionPipeline
        Chunks, embeds and stores document text; embeds the query.
    retriever : Retriever
        Similarity search plus payload hydration and noise filtering.
    prompt_builder : PromptBuilder
        Registry holding the answer template.
    prompt_name : str
        Name of the template used to render the prompt.
    llm : BaseLLM
        Answer-generation model.
    max_workers : int, optional
        Size of the per-document worker pool. Defaults to ``8``.
    max_context_words : int, optional
        Word budget of the assembled context. Defaults to ``8192``.
    deduplicate_links : bool, optional
        Skip repeated links within one fan-out. Defaults to ``True``.
    scope_to_run : bool, optional
        Restrict similarity search to vectors written by the current run and
        delete those vectors once their payloads are fetched. Defaults to
        ``True``.
    llm_generate_defaults : dict or None, optional
        Keyword arguments forwarded to ``llm.generate``.
    """

    def __init__(
            self,
            sources: Sequence[SearchSource],
            content_retriever: ContentRetriever,
            ingestion: IngestionPipeline,
            retriever: Retriever,
            prompt_builder: PromptBuilder,
            prompt_name: str,
            llm: BaseLLM,
            *,
            max_workers: int = 8,
            max_context_words: int = DEFAULT_MAX_CONTEXT_WORDS,
            deduplicate_links: bool = True,
            scope_to_run: bool = True,
            llm_generate_defaults: dict | None = None,
        ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.sources = list(sources)
        self.content_retriever = content_retriever
        self.ingestion = ingestion
        self.retriever = retriever
        self.prompt_builder = prompt_builder
        self.prompt_name = prompt_name
        self.llm = llm
        self.max_workers = int(max_workers)
        self.max_context_words = int(max_context_words)
        self.deduplicate_links = bool(deduplicate_links)
        self.scope_to_run = bool(scope_to_run)
        self.llm_generate_defaults = llm_generate_defaults or {}

    def _process_result(
            self,
            result: SearchResult,
            run_id: str,
            cancel_token: CancellationToken | None,
        ) -> int:
        content = self.content_retriever.retrieve(result, cancel_token=cancel_token)
        if not content:
            logger.debug("No content for %r (%s)", result.title, result.link)
            return 0
        return self.ingestion.ingest(
            content,
            result.title,
            result.link,
            run_id=run_id,
            cancel_token=cancel_token,
        )

    def _ingest_results(
            self,
            query: str,
            run_id: str,
            cancel_token: CancellationToken | None,
        ) -> Dict[str, int]:
        stats = {"results": 0, "documents_ingested": 0, "documents_failed": 0, "vectors_stored": 0}
        futures: Dict[Future, SearchResult] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ingest") as pool:
            for result in fanout(
                query,
                self.sources,
                deduplicate_links=self.deduplicate_links,
                cancel_token=cancel_token,
            ):
                stats["results"] += 1
                futures[pool.submit(self._process_result, result, run_id, cancel_token)] = result
            wait(futures)

        raise_if_cancelled(cancel_token)

        for future, result in futures.items():
            try:
                stored = future.result()
            except PipelineCancelled:
                raise
            except (FetchError, VectorStoreError) as e:
                stats["documents_failed"] += 1
                logger.warning("Document %s failed: %s", result.link, e)
                continue
            except Exception:
                stats["documents_failed"] += 1
                logger.exception("Unexpected failure while ingesting %s", result.link)
                continue

            if stored:
                stats["documents_ingested"] += 1
                stats["vectors_stored"] += stored

        return stats

    def _discard_run(self, run_id: str) -> None:
        # Ingest workers have all returned by now, so nothing writes under run_id after this.
        try:
            self.ingestion.discard_run(run_id)
        except VectorStoreError as e:
            logger.warning("Could not discard vectors of run %s: %s", run_id, e)

    def run(
            self,
            query: str,
            *,
            cancel_token: CancellationToken | None = None,
        ) -> Dict[str, Any]:
        """Execute the RAG pipeline for a single query.

        The execution order is:
        1. Fan out the query and ingest every result on the worker pool,
           waiting for all of them.
        2. Embed the query.
        3. Retrieve the most similar noise-free chunks, then delete the
           run's vectors when ``scope_to_run`` is set (also on failure).
        4. Assemble the context under the word budget.
        5. Render the prompt and call the LLM once.

        Parameters
        ----------
        query : str
            User's natural-language query.
        cancel_token : CancellationToken or None, optional
            Cancels outstanding work when set.

        Returns
        -------
        dict
            Dictionary containing:
            - ``"answer"``: the model output, verbatim
            - ``"prompt"``: the rendered prompt
            - ``"context"``: the assembled context string
            - ``"chunks"``: the :class:`RetrievedChunk` objects in the context
            - ``"stats"``: ``results``, ``documents_ingested``,
              ``documents_failed`` and ``vectors_stored`` counts

        Raises
        ------
        EmbeddingError
            If the query cannot be embedded.
        VectorStoreError
            If the similarity search or payload lookup fails.
        GenerationError
            If the LLM call fails.
        PipelineCancelled
            If ``cancel_token`` was cancelled.
        """
        run_id = uuid4().hex
        logger.info("Run %s started for query %r", run_id, query)

        try:
            stats = self._ingest_results(query, run_id, cancel_token)
            logger.info(
                "Run %s ingested %d/%d documents (%d failed, %d vectors)",
                run_id, stats["documents_ingested"], stats["results"],
                stats["documents_failed"], stats["vectors_stored"],
            )

            query_vector = self.ingestion.embed_query(query)
            raise_if_cancelled(cancel_token)

            chunks = self.retriever.retrieve(query_vector, run_id=run_id if self.scope_to_run else None)
        finally:
            if self.scope_to_run:
                self._discard_run(run_id)

        context, used = build_context(chunks, query, max_words=self.max_context_words)

        prompt = self.prompt_builder.build(self.prompt_name, query=query, context=context)
        raise_if_cancelled(cancel_token)
        answer = self.llm.generate(prompt, **self.llm_generate_defaults)

        logger.info("Run %s answered with %d context blocks", run_id, len(used))
        return {"answer": answer, "prompt": prompt, "context": context, "chunks": used, "stats": stats}

    def answer(self, query: str, *, cancel_token: CancellationToken | None = None) -> str:
        """Return only the answer text for ``query``."""
        return self.run(query, cancel_token=cancel_token)["answer"]

    def __call__(self, query: str, **kwargs) -> Dict[str, Any]:
        return self.run(query, **kwargs)


__all__ = ["RAGPipeline"]
