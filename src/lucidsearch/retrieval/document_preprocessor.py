"""lucidsearch.retrieval.document_preprocessor

Text and HTML cleaning utilities applied before chunking and embedding.

Functions
---------
clean_text
    Collapse whitespace runs to single spaces and trim the ends.
sanitize_utf8
    Drop invalid UTF-8 sequences before text is sent to an external encoder.
strip_tags
    Remove noise elements (scripts, styles, ...) from a parsed HTML tree.
extract_main_text
    Pull the readable text out of a parsed HTML page using ordered selectors.
is_noisy
    Check whether a text contains structural/serialisation markers.
"""

from typing import Iterable, Sequence

from bs4 import BeautifulSoup

DEFAULT_STRIP_TAGS = ("script", "style", "noscript", "template")
DEFAULT_SELECTORS = (
    "article",
    "div.main-content",
    ".entry-content",
    ".article-content",
    ".post",
    "#content",
    "#main",
)
DEFAULT_NOISE_MARKERS = ("::", "{", "}")


def clean_text(text: str) -> str:
    """Normalise whitespace: every run of spaces/newlines/tabs becomes one space."""
    if not text:
        return ""
    return " ".join(text.split())


def sanitize_utf8(data: str | bytes) -> str:
    """Return ``data`` as text that is guaranteed to encode as UTF-8.

    Valid input is returned unchanged. For ``bytes``, each invalid byte is
    dropped while every valid character is kept in order. For ``str``, lone
    surrogate code points are dropped; these are how undecodable bytes
    survive a ``surrogateescape``/``surrogatepass`` decode.

    The result is never longer than the input and ``sanitize_utf8`` is
    idempotent.

    Parameters
    ----------
    data : str or bytes
        Text to sanitise.

    Returns
    -------
    str
        Valid text.
    """
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="ignore")

    try:
        data.encode("utf-8")
        return data
    except UnicodeEncodeError:
        return "".join(ch for ch in data if not "\ud800" <= ch <= "\udfff")


def strip_tags(soup: BeautifulSoup, tags: Iterable[str] = DEFAULT_STRIP_TAGS) -> BeautifulSoup:
    """Remove every element named in ``tags`` from ``soup`` in place."""
    for tag in soup(list(tags)):
        tag.decompose()
    return soup


def extract_main_text(
        soup: BeautifulSoup,
        selectors: Sequence[str] = DEFAULT_SELECTORS,
    ) -> str:
    """Extract the main readable text of a page.

    Selectors are tried in order. For the first selector whose matches carry
    any text, every match contributes one section; the sections are joined
    and whitespace-normalised. When no selector yields text, the ``<body>``
    (or, for fragments without one, the whole document) is used.

    Parameters
    ----------
    soup : BeautifulSoup
        Parsed page, ideally already passed through :func:`strip_tags`.
    selectors : Sequence[str], optional
        CSS selectors for "article-like" containers.

    Returns
    -------
    str
        Cleaned text, possibly empty.
    """
    for selector in selectors:
        sections = [clean_text(el.get_text(" ")) for el in soup.select(selector)]
        sections = [s for s in sections if s]
        if sections:
            return clean_text(" ".join(sections))

    body = soup.body if soup.body is not None else soup
    return clean_text(body.get_text(" "))


def is_noisy(text: str, markers: Iterable[str] = DEFAULT_NOISE_MARKERS) -> bool:
    """Return ``True`` if ``text`` contains any leftover markup/serialisation marker."""
    return any(marker in text for marker in markers)


__all__ = [
    "DEFAULT_STRIP_TAGS",
    "DEFAULT_SELECTORS",
    "DEFAULT_NOISE_MARKERS",
    "clean_text",
    "sanitize_utf8",
    "strip_tags",
    "extract_main_text",
    "is_noisy",
]
