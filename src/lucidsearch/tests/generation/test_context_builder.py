from lucidsearch.common import RetrievedChunk
from lucidsearch.generation.context_builder import build_context, count_words, format_block


def _chunk(i, text=None):
    return RetrievedChunk(title=f"Site {i}", link=f"https://site{i}.example.com", text=text or f"paragraph number {i}")


def test_format_block_labels_title_link_and_text():
    block = format_block(_chunk(1, "Solar is cheap."))

    assert block == (
        "Title of the website where the following paragraph was obtained from -> Site 1. "
        "Link of the website -> https://site1.example.com . "
        "Paragraph -> Solar is cheap. . End of that paragraph.\n"
        " Starting new paragraph :  \n"
    )


def test_blocks_are_concatenated_in_order():
    chunks = [_chunk(1), _chunk(2)]

    context, used = build_context(chunks, "solar energy")

    assert context == format_block(chunks[0]) + format_block(chunks[1])
    assert used == chunks


def test_chunk_equal_to_query_is_skipped():
    """
    A chunk whose text is exactly the query (e.g. the query itself echoed
    back by a page) adds nothing and is left out.
    """
    chunks = [_chunk(1, "solar energy"), _chunk(2)]

    context, used = build_context(chunks, "solar energy")

    assert used == [chunks[1]]
    assert "Paragraph -> solar energy ." not in context


def test_word_budget_stops_at_first_block_that_does_not_fit():
    """
    Blocks are all-or-nothing and assembly stops at the first block that
    would exceed the budget, even if a later, shorter block would fit.
    """
    short = _chunk(1)
    long = _chunk(2, " ".join(["word"] * 50))
    later = _chunk(3)
    budget = count_words(format_block(short)) + 10

    context, used = build_context([short, long, later], "q", max_words=budget)

    assert used == [short]
    assert context == format_block(short)
    assert count_words(context) <= budget


def test_empty_input_gives_empty_context():
    assert build_context([], "q") == ("", [])
