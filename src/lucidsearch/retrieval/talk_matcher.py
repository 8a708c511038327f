"""lucidsearch.retrieval.talk_matcher

Fuzzy title matching against the talk-transcript reference dataset.

Specialised search hits point at talk pages whose body text is mostly
navigation. Instead of scraping them, the page's title is matched against a
pre-loaded dataset of transcripts/summaries and the matching entry's text is
used as the document content.

Classes
-------
TalkIndex
    Read-only, in-memory index over the reference dataset.

Functions
---------
levenshtein_distance
    Edit distance between two strings, over code points.
similarity
    Normalised edit-distance similarity in ``[0, 100]``.
find_match
    Return the transcript of the matching talk, or a sentinel string.
"""

from typing import Dict, Iterable, List, Sequence, Tuple

from lucidsearch.common import ReferenceTalk

NO_MATCH = "No matching TED Talk found."
NO_DETAILS = "Could not extract TED Talk details."
SENTINELS = frozenset({NO_MATCH, NO_DETAILS})

DEFAULT_THRESHOLD = 70.0


def levenshtein_distance(a: str, b: str) -> int:
    """Return the Levenshtein distance (insert/delete/substitute, cost 1) between ``a`` and ``b``."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Return ``(1 - distance / max_len) * 100``. Two empty strings score ``100``."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100.0
    return (1.0 - levenshtein_distance(a, b) / max_len) * 100.0


def find_match(
        title: str,
        speaker: str,
        talks: Sequence[ReferenceTalk],
        *,
        threshold: float = DEFAULT_THRESHOLD,
        strategy: str = "first",
    ) -> str:
    """Return the transcript of the talk whose title matches ``title``.

    Parameters
    ----------
    title : str
        Title extracted from the talk page.
    speaker : str
        Speaker extracted from the talk page. Only used to decide whether the
        page yielded any details at all; scoring is by title.
    talks : Sequence[ReferenceTalk]
        Reference dataset, in file order.
    threshold : float, optional
        Minimum similarity (inclusive). Defaults to ``70``.
    strategy : {"first", "best"}, optional
        ``"first"`` returns the first talk reaching ``threshold`` in dataset
        order. ``"best"`` scans every talk and returns the highest scoring
        one, ties going to the lowest index.

    Returns
    -------
    str
        The talk's ``output`` text, :data:`NO_DETAILS` if both ``title`` and
        ``speaker`` are empty, or :data:`NO_MATCH` if no talk reaches the
        threshold.
    """
    if not title and not speaker:
        return NO_DETAILS

    if strategy == "best":
        best: ReferenceTalk | None = None
        best_score = -1.0
        for talk in talks:
            score = similarity(talk.title, title)
            if score >= threshold and score > best_score:
                best, best_score = talk, score
        return best.output if best is not None else NO_MATCH

    for talk in talks:
        if similarity(talk.title, title) >= threshold:
            return talk.output
    return NO_MATCH


class TalkIndex:
    """In-memory index over the reference dataset.

    Keeps the dataset order (needed for first-match semantics) alongside an
    exact ``(title, speaker)`` lookup table used by :meth:`get`. Matching never
    consults the lookup table. Read-only after construction.
    """

    def __init__(
            self,
            talks: Iterable[ReferenceTalk],
            *,
            threshold: float = DEFAULT_THRESHOLD,
            strategy: str = "first",
        ):
        self.talks: List[ReferenceTalk] = list(talks)
        self.threshold = float(threshold)
        self.strategy = strategy
        self._by_key: Dict[Tuple[str, str], ReferenceTalk] = {}
        for talk in self.talks:
            # Later duplicates overwrite earlier ones, mirroring a plain dict load.
            self._by_key[(talk.title, talk.speaker)] = talk

    def __len__(self) -> int:
        return len(self.talks)

    def get(self, title: str, speaker: str) -> ReferenceTalk | None:
        return self._by_key.get((title, speaker))

    def find_match(self, title: str, speaker: str) -> str:
        """Fuzzy title scan over the dataset with the index threshold and strategy."""
        return find_match(title, speaker, self.talks, threshold=self.threshold, strategy=self.strategy)


__all__ = [
    "NO_MATCH",
    "NO_DETAILS",
    "SENTINELS",
    "levenshtein_distance",
    "similarity",
    "find_match",
    "TalkIndex",
]
