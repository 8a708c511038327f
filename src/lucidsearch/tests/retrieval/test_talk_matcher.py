import pytest

from lucidsearch.common import ReferenceTalk
from lucidsearch.retrieval.talk_matcher import (
    NO_DETAILS,
    NO_MATCH,
    TalkIndex,
    find_match,
    levenshtein_distance,
    similarity,
)

TALKS = [
    ReferenceTalk(title="The power of vulnerability", output="Brené on vulnerability.", speaker="Brené Brown"),
    ReferenceTalk(title="The power of vulnerable", output="A near duplicate title.", speaker="Someone Else"),
    ReferenceTalk(title="Solar energy is the future", output="Why solar keeps getting cheaper.", speaker="Ramez Naam"),
]


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("", "", 0),
        ("abc", "", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("same", "same", 0),
    ],
)
def test_levenshtein_distance(a, b, expected):
    assert levenshtein_distance(a, b) == expected
    assert levenshtein_distance(b, a) == expected


def test_similarity_is_normalised_to_percent():
    """
    kitten/sitting: distance 3 over max length 7.
    """
    assert similarity("kitten", "sitting") == pytest.approx((1 - 3 / 7) * 100)
    assert similarity("", "") == 100.0
    assert similarity("abc", "") == 0.0


def test_exact_title_matches():
    assert find_match("Solar energy is the future", "Ramez Naam", TALKS) == "Why solar keeps getting cheaper."


def test_first_strategy_returns_first_talk_over_threshold():
    """
    Both vulnerability titles clear the threshold for the query below; the
    first one in dataset order wins even though the second scores higher.
    """
    title = "The power of vulnerable!"

    assert similarity(TALKS[1].title, title) > similarity(TALKS[0].title, title) >= 70
    assert find_match(title, "", TALKS) == "Brené on vulnerability."


def test_best_strategy_returns_highest_score():
    title = "The power of vulnerable!"

    assert find_match(title, "", TALKS, strategy="best") == "A near duplicate title."


def test_no_talk_over_threshold_returns_sentinel():
    assert find_match("Completely unrelated title", "Nobody", TALKS) == NO_MATCH


def test_missing_title_and_speaker_returns_sentinel():
    assert find_match("", "", TALKS) == NO_DETAILS


def test_threshold_is_inclusive():
    """
    "abcdefghij" vs "abcdefgxyz" scores exactly 70.
    """
    talks = [ReferenceTalk(title="abcdefghij", output="hit")]

    assert similarity("abcdefghij", "abcdefgxyz") == pytest.approx(70.0)
    assert find_match("abcdefgxyz", "", talks, threshold=70.0) == "hit"


def test_talk_index_keeps_first_match_over_later_exact_entry():
    """
    An exact (title, speaker) entry later in the dataset does not beat an
    earlier talk that already clears the threshold.
    """
    talks = [
        ReferenceTalk(title="The future of solar power", output="first talk", speaker="Ann"),
        ReferenceTalk(title="The future of solar powers", output="exact talk", speaker="Bob"),
    ]
    index = TalkIndex(talks)

    assert len(index) == 2
    assert index.get("The future of solar powers", "Bob").output == "exact talk"
    assert index.find_match("The future of solar powers", "Bob") == "first talk"
    assert index.find_match("The future of solar powers", "Bob") == find_match(
        "The future of solar powers", "Bob", talks
    )


def test_talk_index_best_strategy_picks_highest_score():
    talks = [
        ReferenceTalk(title="The future of solar power", output="first talk"),
        ReferenceTalk(title="The future of solar powers", output="exact talk"),
    ]

    assert TalkIndex(talks, strategy="best").find_match("The future of solar powers", "") == "exact talk"
