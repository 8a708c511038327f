"""lucidsearch.generation.context_builder

Grounding-context assembly for answer generation.

Retrieved chunks are rendered as labelled blocks (source title, link and
paragraph text) and concatenated under a word budget. A block is either
included whole or not at all; assembly stops at the first block that would
exceed the budget.

Functions
---------
format_block
    Render one chunk as a labelled context block.
count_words
    Count whitespace-delimited words.
build_context
    Concatenate blocks for a list of chunks under a word budget.
"""
import logging
from typing import Iterable, List, Tuple

from lucidsearch.common import RetrievedChunk

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTEXT_WORDS = 8192


def format_block(chunk: RetrievedChunk) -> str:
    return (
        "Title of the website where the following paragraph was obtained from -> "
        f"{chunk.title}. Link of the website -> {chunk.link} . "
        f"Paragraph -> {chunk.text} . End of that paragraph.\n"
        " Starting new paragraph :  \n"
    )


def count_words(text: str) -> int:
    return len(text.split())


def build_context(
        chunks: Iterable[RetrievedChunk],
        query: str,
        *,
        max_words: int = DEFAULT_MAX_CONTEXT_WORDS,
    ) -> Tuple[str, List[RetrievedChunk]]:
    """Assemble the grounding context for ``query``.

    Parameters
    ----------
    chunks : Iterable[RetrievedChunk]
        Noise-free chunks in similarity order.
    query : str
        Original user query. Chunks whose text equals it exactly are skipped.
    max_words : int, optional
        Word budget for the whole context. Defaults to ``8192``.

    Returns
    -------
    tuple[str, list[RetrievedChunk]]
        The context string and the chunks it was built from, in order.
    """
    blocks: List[str] = []
    used: List[RetrievedChunk] = []
    words = 0

    for chunk in chunks:
        if chunk.text == query:
            continue

        block = format_block(chunk)
        block_words = count_words(block)
        if words + block_words > max_words:
            logger.info("Context word budget reached (%d/%d); dropping remaining chunks", words, max_words)
            break

        blocks.append(block)
        used.append(chunk)
        words += block_words

    return "".join(blocks), used


__all__ = ["format_block", "count_words", "build_context", "DEFAULT_MAX_CONTEXT_WORDS"]
