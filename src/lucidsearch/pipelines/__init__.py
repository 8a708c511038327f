"""lucidsearch.pipelines

Pipeline orchestration components for the LucidSearch system.

This package contains the high-level pipelines that coordinate search,
ingestion, retrieval, prompt construction and language model generation.
Pipelines hold only their configured components; per-query state lives in
each call, making them safe to reuse across concurrent requests.

Modules
-------
ingestion
    Chunk, embed and store one document; embed queries.
rag_pipeline
    End-to-end Retrieval-Augmented Generation (RAG) pipeline.
"""
