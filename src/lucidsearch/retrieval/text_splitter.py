"""lucidsearch.retrieval.text_splitter

Text splitting utilities for the retrieval layer.

This module converts a document's cleaned text into bounded-size,
word-aligned chunks suitable for a single embedding call.

Functions
---------
split_content_by_bytes
    Greedily pack whitespace-delimited words into chunks of at most
    ``max_bytes`` characters.
chunk_document
    Same as :func:`split_content_by_bytes` but returns
    :class:`~lucidsearch.common.schemas.Chunk` objects.

Notes
-----
Word sizes are measured in code points, not encoded bytes. For text that is
mostly ASCII this matches the UTF-8 size exactly; for multi-byte text the
``max_bytes`` bound is a soft bound and the encoded chunk may be larger.
"""

from typing import List

from lucidsearch.common import Chunk

DEFAULT_MAX_BYTES = 9000
DEFAULT_FLUSH_LIMIT = 9990


def _split_oversized_word(word: str, max_bytes: int) -> List[str]:
    return [word[start:start + max_bytes] for start in range(0, len(word), max_bytes)]


def split_content_by_bytes(
        content: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        *,
        flush_limit: int = DEFAULT_FLUSH_LIMIT,
    ) -> List[str]:
    """Split text into word-aligned chunks bounded by ``max_bytes``.

    Words are appended to a running buffer (joined by single spaces) until
    the next word plus its separator would exceed ``max_bytes``; the buffer is
    then emitted as a chunk and a new one is started with that word. A word
    that is itself longer than ``max_bytes`` is cut into consecutive windows
    of ``max_bytes`` characters, each emitted as its own chunk.

    Parameters
    ----------
    content : str
        Text to split. Any run of whitespace separates words.
    max_bytes : int, optional
        Chunk size bound, in code points. Defaults to ``9000``.
    flush_limit : int, optional
        The trailing buffer is only emitted when it is shorter than this
        bound. Defaults to ``9990``; with ``max_bytes`` below it the trailing
        buffer is always emitted.

    Returns
    -------
    list[str]
        Chunks in document order. Empty or whitespace-only content yields an
        empty list.

    Raises
    ------
    ValueError
        If ``max_bytes`` is smaller than 1.
    """
    if max_bytes < 1:
        raise ValueError(f"max_bytes must be >= 1, got {max_bytes}")

    chunks: List[str] = []
    current: List[str] = []
    current_size = 0

    for word in content.split():
        word_size = len(word)

        if current_size + word_size + 1 > max_bytes:
            if current:
                chunks.append(" ".join(current))
                current = []
                current_size = 0

            if word_size > max_bytes:
                chunks.extend(_split_oversized_word(word, max_bytes))
            else:
                current = [word]
                current_size = word_size
        else:
            if current:
                current_size += 1
            current.append(word)
            current_size += word_size

    if current:
        tail = " ".join(current)
        if len(tail) < flush_limit:
            chunks.append(tail)

    return chunks


def chunk_document(
        content: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        *,
        flush_limit: int = DEFAULT_FLUSH_LIMIT,
    ) -> List[Chunk]:
    """Split ``content`` and wrap each piece in a :class:`Chunk`."""
    return [
        Chunk(text=text, byte_size=len(text))
        for text in split_content_by_bytes(content, max_bytes, flush_limit=flush_limit)
    ]


__all__ = [
    "DEFAULT_MAX_BYTES",
    "DEFAULT_FLUSH_LIMIT",
    "split_content_by_bytes",
    "chunk_document",
]
