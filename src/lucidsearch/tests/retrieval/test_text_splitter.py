import pytest

from lucidsearch.retrieval.text_splitter import chunk_document, split_content_by_bytes


def test_empty_and_whitespace_content_yield_no_chunks():
    """
    Empty or whitespace-only content produces an empty list, not a list with
    an empty string.
    """
    assert split_content_by_bytes("", 10) == []
    assert split_content_by_bytes("   \n\t  ", 10) == []


def test_short_content_is_one_normalised_chunk():
    """
    Content that fits in the budget comes back as a single chunk with its
    whitespace runs collapsed to single spaces.
    """
    assert split_content_by_bytes("solar   panels\nconvert\tlight", 100) == ["solar panels convert light"]


def test_greedy_packing_respects_budget():
    """
    Words are packed until the next word plus one separator would exceed the
    budget. With a budget of 11, "aaaa bbbb" (9) fits but adding " cccc"
    would make 14, so a new chunk starts.
    """
    chunks = split_content_by_bytes("aaaa bbbb cccc dddd", 11)

    assert chunks == ["aaaa bbbb", "cccc dddd"]
    assert all(len(c) <= 11 for c in chunks)


def test_oversized_word_is_split_into_windows_not_dropped():
    """
    A word longer than the budget is cut into fixed windows of max_bytes
    characters, each emitted as its own chunk, and packing resumes after it.
    """
    chunks = split_content_by_bytes("hi abcdefghij yo", 4)

    assert chunks == ["hi", "abcd", "efgh", "ij", "yo"]


def test_rejoined_chunks_reproduce_the_word_sequence():
    """
    Re-joining chunks with single spaces gives back the whitespace-normalised
    word sequence when no word exceeds the budget.
    """
    content = "the quick  brown fox\njumps over the lazy dog " * 20
    chunks = split_content_by_bytes(content, 37)

    assert " ".join(chunks).split() == content.split()
    assert all(len(c) <= 37 for c in chunks)


def test_splitting_is_deterministic():
    """
    Chunk boundaries depend only on the content and the budget.
    """
    content = "alpha beta gamma delta epsilon zeta eta theta " * 50

    assert split_content_by_bytes(content, 64) == split_content_by_bytes(content, 64)


def test_trailing_buffer_above_flush_limit_is_not_emitted():
    """
    The trailing buffer is only flushed when it is below flush_limit.
    """
    assert split_content_by_bytes("aaaa bbbb", 100, flush_limit=5) == []
    assert split_content_by_bytes("aaaa bbbb", 100, flush_limit=10) == ["aaaa bbbb"]


def test_multibyte_words_are_measured_in_code_points():
    """
    Sizes are counted per code point, so a budget of 6 fits five accented
    characters plus a separator even though they take 11 bytes in UTF-8.
    """
    chunks = split_content_by_bytes("éééé é", 6)

    assert chunks == ["éééé é"]
    assert len(chunks[0].encode("utf-8")) > 6


def test_invalid_budget_raises():
    with pytest.raises(ValueError):
        split_content_by_bytes("anything", 0)


def test_chunk_document_wraps_chunks():
    chunks = chunk_document("aaaa bbbb cccc dddd", 11)

    assert [c.text for c in chunks] == ["aaaa bbbb", "cccc dddd"]
    assert [c.byte_size for c in chunks] == [9, 9]
