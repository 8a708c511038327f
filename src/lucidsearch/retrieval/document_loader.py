"""lucidsearch.retrieval.document_loader

Document loading utilities for search results and the talk reference dataset.

This module turns a :class:`~lucidsearch.common.schemas.SearchResult` into the
plain text that gets chunked and embedded. Generic web hits are fetched over
HTTP and scraped; specialised (talk) hits are resolved through the
:mod:`~lucidsearch.retrieval.talk_matcher` against a dataset loaded once at
startup.

Classes
-------
ContentRetriever
    Fetch and extract the text behind a search result.

Functions
---------
decode_html
    Decode a response body using the charset declared by the page.
load_reference_talks
    Load the talk reference dataset from a JSON file.
"""
import json
import logging
import time
from pathlib import Path
from typing import List, Sequence

import requests
from bs4 import BeautifulSoup

from lucidsearch.common import CancellationToken, ReferenceTalk, SearchResult
from lucidsearch.common.concurrency import raise_if_cancelled
from lucidsearch.common.errors import ConfigurationError, FetchError, RetryableFetchError
from lucidsearch.retrieval.document_preprocessor import (
    DEFAULT_SELECTORS,
    DEFAULT_STRIP_TAGS,
    clean_text,
    extract_main_text,
    strip_tags,
)
from lucidsearch.retrieval.talk_matcher import SENTINELS, TalkIndex

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "UTF-8"
DEFAULT_USER_AGENT = "lucidsearch/0.1 (+https://github.com/lucidsearch)"
TALK_TITLE_SELECTOR = "meta[property='og:title']"
TALK_SPEAKER_SELECTOR = ".talk-speaker__name"
TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


def decode_html(content: bytes) -> str:
    """Decode an HTML body using its ``<meta charset>`` declaration.

    Parameters
    ----------
    content : bytes
        Raw response body.

    Returns
    -------
    str
        Decoded text. Unknown charsets fall back to UTF-8; undecodable bytes
        are replaced.
    """
    charset = DEFAULT_CHARSET
    tag = BeautifulSoup(content, "html.parser").find("meta", charset=True)
    if tag and tag.get("charset"):
        charset = tag["charset"]

    try:
        return content.decode(charset, errors="replace")
    except LookupError:
        return content.decode(DEFAULT_CHARSET, errors="replace")


def load_reference_talks(path: str | Path) -> List[ReferenceTalk]:
    """Load the talk reference dataset.

    The file is a JSON array of objects with ``title``, ``output`` and
    ``speaker`` keys. Entries keep file order, which matters for first-match
    lookups.

    Parameters
    ----------
    path : str or Path
        Location of the JSON file.

    Returns
    -------
    list[ReferenceTalk]
        Parsed entries.

    Raises
    ------
    ConfigurationError
        If the file is missing, is not valid JSON or is not an array of
        objects.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Talk dataset not found: {p}")

    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read talk dataset {p}: {e}") from e

    if not isinstance(data, list):
        raise ConfigurationError(f"Talk dataset must be a JSON array: {p}")

    talks: List[ReferenceTalk] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Talk dataset entry #{i} must be an object: {p}")
        talks.append(
            ReferenceTalk(
                title=str(item.get("title") or ""),
                output=str(item.get("output") or ""),
                speaker=str(item.get("speaker") or ""),
            )
        )

    logger.info("Loaded %d reference talks from %s", len(talks), p)
    return talks


class ContentRetriever:
    """Fetch and extract the text behind a search result.

    Parameters
    ----------
    talk_index : TalkIndex
        Loaded reference dataset used for specialised results.
    timeout : float, optional
        Per-request timeout in seconds. Defaults to ``5``.
    max_attempts : int, optional
        Total number of attempts for transport failures. Defaults to ``3``.
    retry_delay : float, optional
        Fixed delay between attempts, in seconds. Defaults to ``1``.
    selectors : Sequence[str], optional
        Ordered CSS selectors for the main content of a page.
    strip_tags : Sequence[str], optional
        Elements removed before extraction.
    user_agent : str, optional
        ``User-Agent`` header sent with every request.
    session : requests.Session or None, optional
        Session to issue requests with. A new one is created if omitted.
    """

    def __init__(
            self,
            talk_index: TalkIndex,
            *,
            timeout: float = 5.0,
            max_attempts: int = 3,
            retry_delay: float = 1.0,
            selectors: Sequence[str] = DEFAULT_SELECTORS,
            strip_tags: Sequence[str] = DEFAULT_STRIP_TAGS,
            user_agent: str = DEFAULT_USER_AGENT,
            session: requests.Session | None = None,
        ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.talk_index = talk_index
        self.timeout = float(timeout)
        self.max_attempts = int(max_attempts)
        self.retry_delay = float(retry_delay)
        self.selectors = tuple(selectors)
        self.strip_tags = tuple(strip_tags)
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    @classmethod
    def from_config_dict(cls, cfg: dict, talk_index: TalkIndex) -> "ContentRetriever":
        """Build a retriever from the ``fetch`` configuration section."""
        return cls(
            talk_index,
            timeout=cfg.get("timeout", 5.0),
            max_attempts=cfg.get("max_attempts", 3),
            retry_delay=cfg.get("retry_delay", 1.0),
            selectors=cfg.get("selectors") or DEFAULT_SELECTORS,
            strip_tags=cfg.get("strip_tags") or DEFAULT_STRIP_TAGS,
            user_agent=cfg.get("user_agent") or DEFAULT_USER_AGENT,
        )

    def retrieve(
            self,
            result: SearchResult,
            *,
            cancel_token: CancellationToken | None = None,
        ) -> str:
        """Return the cleaned text behind ``result``.

        Parameters
        ----------
        result : SearchResult
            Search hit to resolve.
        cancel_token : CancellationToken or None, optional
            Checked before every attempt and used for the retry wait.

        Returns
        -------
        str
            Cleaned document text. Empty when the result has no link or a
            specialised result did not match any reference talk.

        Raises
        ------
        FetchError
            If the server answered with a non-2xx status.
        RetryableFetchError
            If every attempt failed with a transport error.
        PipelineCancelled
            If ``cancel_token`` was cancelled.
        """
        if not result.link:
            return ""

        if result.is_specialized:
            return self._retrieve_talk(result, cancel_token)

        response = self._get(result.link, cancel_token)
        soup = BeautifulSoup(decode_html(response.content), "html.parser")
        strip_tags(soup, self.strip_tags)
        return extract_main_text(soup, self.selectors)

    def _retrieve_talk(self, result: SearchResult, cancel_token: CancellationToken | None) -> str:
        response = self._get(result.link, cancel_token)
        soup = BeautifulSoup(decode_html(response.content), "html.parser")

        title = ""
        meta = soup.select_one(TALK_TITLE_SELECTOR)
        if meta is not None:
            title = clean_text(meta.get("content") or "")

        speaker = ""
        speaker_el = soup.select_one(TALK_SPEAKER_SELECTOR)
        if speaker_el is not None:
            speaker = clean_text(speaker_el.get_text(" "))

        text = self.talk_index.find_match(title, speaker)
        if text in SENTINELS:
            logger.info("No reference talk for %s (title=%r, speaker=%r): %s", result.link, title, speaker, text)
            return ""
        return text

    def _get(self, url: str, cancel_token: CancellationToken | None) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            raise_if_cancelled(cancel_token)
            try:
                response = self.session.get(url, timeout=self.timeout)
            except TRANSIENT_ERRORS as e:
                last_error = e
                logger.warning("Fetch attempt %d/%d failed for %s: %s", attempt, self.max_attempts, url, e)
                if attempt < self.max_attempts:
                    if cancel_token is not None:
                        cancel_token.wait(self.retry_delay)
                    else:
                        time.sleep(self.retry_delay)
                continue
            except requests.RequestException as e:
                raise FetchError(f"Request failed for {url}: {e}", url=url) from e

            if not 200 <= response.status_code < 300:
                raise FetchError(
                    f"Unexpected status {response.status_code} for {url}",
                    url=url,
                    status_code=response.status_code,
                )
            return response

        raise_if_cancelled(cancel_token)
        raise RetryableFetchError(
            f"Giving up on {url} after {self.max_attempts} attempts",
            url=url,
            details={"error": str(last_error)},
        ) from last_error


__all__ = [
    "ContentRetriever",
    "decode_html",
    "load_reference_talks",
]
