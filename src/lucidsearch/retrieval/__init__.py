"""
Retrieval layer of the LucidSearch pipeline.

This package covers everything needed to turn a query into searchable
vectors and to fetch the most relevant chunks back: search sources and
fan-out, content retrieval and talk matching, text cleaning and splitting,
embedding model wrappers, the vector store and the retriever.

Submodules
----------
search
    Search sources and concurrent query fan-out.
document_loader
    Content retrieval for search results and the talk reference dataset.
talk_matcher
    Fuzzy title matching against the talk reference dataset.
document_preprocessor
    Text cleaning, UTF-8 sanitising and HTML extraction.
text_splitter
    Word-aligned, size-bounded chunking.
embedder
    Embedding model wrappers and factory.
vector_store
    Qdrant-backed vector store.
retriever
    Similarity search with payload hydration and noise filtering.
types
    Protocols shared across the layer.
"""
