"""lucidsearch.retrieval.search

Search sources and concurrent query fan-out.

Classes
-------
GoogleSearchSource
    Client for the Google Programmable Search JSON API.

Functions
---------
create_search_sources
    Build the configured search sources from the ``search`` config section.
fanout
    Query several sources concurrently and stream their results.
"""
import logging
import queue
import threading
from typing import Iterator, List, Sequence

import requests

from lucidsearch.common import CancellationToken, SearchResult
from lucidsearch.common.concurrency import raise_if_cancelled
from lucidsearch.common.errors import SearchError
from lucidsearch.retrieval.types import SearchSource

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
PAGE_SIZE = 10
_POLL_INTERVAL = 0.1
_END_OF_STREAM = object()


class GoogleSearchSource:
    """Client for the Google Programmable Search (Custom Search) JSON API.

    Parameters
    ----------
    name : str
        Source name, used in logs.
    api_key : str
        API key sent as ``key``.
    cx : str
        Search engine identifier sent as ``cx``.
    max_results : int, optional
        Maximum number of results returned per query. The API serves at most
        10 per page, so larger values are paginated with ``start``.
    specialized : bool, optional
        Tag every result as a talk hit (resolved through the talk matcher).
    query_template : str, optional
        Format string applied to the query, e.g. ``"TED Talk {query}"``.
    endpoint : str, optional
        API endpoint.
    timeout : float, optional
        Per-request timeout in seconds.
    session : requests.Session or None, optional
        Session used for requests.
    """

    def __init__(
            self,
            name: str,
            api_key: str,
            cx: str,
            *,
            max_results: int = 8,
            specialized: bool = False,
            query_template: str = "{query}",
            endpoint: str = DEFAULT_ENDPOINT,
            timeout: float = 10.0,
            session: requests.Session | None = None,
        ):
        self.name = name
        self.api_key = api_key
        self.cx = cx
        self.max_results = int(max_results)
        self.specialized = bool(specialized)
        self.query_template = query_template
        self.endpoint = endpoint
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    def build_query(self, query: str) -> str:
        return self.query_template.format(query=query)

    def iter_results(self, query: str) -> Iterator[SearchResult]:
        """Yield results page by page, in provider order.

        Raises
        ------
        SearchError
            On transport errors, non-2xx responses or undecodable bodies.
        """
        q = self.build_query(query)
        remaining = self.max_results
        start = 1

        while remaining > 0:
            num = min(PAGE_SIZE, remaining)
            items = self._request_page(q, num=num, start=start)
            for item in items[:num]:
                yield SearchResult(
                    title=str(item.get("title") or ""),
                    link=str(item.get("link") or ""),
                    is_specialized=self.specialized,
                )
            if len(items) < num:
                break
            remaining -= num
            start += num

    def search(self, query: str) -> List[SearchResult]:
        """Return up to ``max_results`` results for ``query``."""
        return list(self.iter_results(query))

    def _request_page(self, q: str, *, num: int, start: int) -> list:
        params = {"q": q, "key": self.api_key, "cx": self.cx, "num": num, "start": start}
        try:
            response = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise SearchError(f"Search source '{self.name}' request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise SearchError(
                f"Search source '{self.name}' returned status {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SearchError(f"Search source '{self.name}' returned invalid JSON: {e}") from e

        items = data.get("items") if isinstance(data, dict) else None
        return [item for item in (items or []) if isinstance(item, dict)]


def create_search_sources(cfg: dict, session: requests.Session | None = None) -> List[GoogleSearchSource]:
    """Build one :class:`GoogleSearchSource` per entry of ``cfg["sources"]``.

    Parameters
    ----------
    cfg : dict
        The validated ``search`` configuration section.
    session : requests.Session or None, optional
        Shared session. Each source creates its own if omitted.

    Returns
    -------
    list[GoogleSearchSource]
        Sources in configuration order.
    """
    sources = []
    for item in cfg["sources"]:
        sources.append(
            GoogleSearchSource(
                name=item["name"],
                api_key=item.get("api_key", cfg["api_key"]),
                cx=item.get("cx", cfg["cx"]),
                max_results=item.get("max_results", 8),
                specialized=item.get("specialized", False),
                query_template=item.get("query_template", "{query}"),
                endpoint=item.get("endpoint", cfg.get("endpoint", DEFAULT_ENDPOINT)),
                timeout=item.get("timeout", cfg.get("timeout", 10)),
                session=session,
            )
        )
    return sources


def _run_source(
        source: SearchSource,
        query: str,
        out: "queue.Queue[object]",
        cancel_token: CancellationToken | None,
    ) -> None:
    name = getattr(source, "name", type(source).__name__)
    count = 0
    try:
        for result in source.iter_results(query):
            if cancel_token is not None and cancel_token.is_cancelled():
                return
            out.put(result)
            count += 1
    except SearchError as e:
        logger.warning("Search source '%s' failed after %d results: %s", name, count, e)
    except Exception:
        logger.exception("Search source '%s' failed unexpectedly after %d results", name, count)
    else:
        logger.debug("Search source '%s' produced %d results", name, count)


def fanout(
        query: str,
        sources: Sequence[SearchSource],
        *,
        deduplicate_links: bool = True,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[SearchResult]:
    """Query every source concurrently and stream their results.

    One worker thread runs per source and pushes results onto a shared queue
    as they arrive. A closer thread waits for every worker and then posts an
    end-of-stream marker, so the iterator only finishes once all sources are
    done. Results from one source keep their order; there is no ordering
    across sources.

    Parameters
    ----------
    query : str
        User query.
    sources : Sequence[SearchSource]
        Sources to query.
    deduplicate_links : bool, optional
        Skip results whose link was already emitted during this call. Empty
        links are never deduplicated.
    cancel_token : CancellationToken or None, optional
        When cancelled, workers stop pushing and the iterator raises
        :class:`~lucidsearch.common.errors.PipelineCancelled`.

    Yields
    ------
    SearchResult
        Results in arrival order.
    """
    out: "queue.Queue[object]" = queue.Queue()

    workers = [
        threading.Thread(
            target=_run_source,
            args=(source, query, out, cancel_token),
            name=f"search-{getattr(source, 'name', i)}",
            daemon=True,
        )
        for i, source in enumerate(sources)
    ]

    def _close() -> None:
        for worker in workers:
            worker.join()
        out.put(_END_OF_STREAM)

    for worker in workers:
        worker.start()
    threading.Thread(target=_close, name="search-closer", daemon=True).start()

    seen: set[str] = set()
    while True:
        raise_if_cancelled(cancel_token)
        try:
            item = out.get(timeout=_POLL_INTERVAL)
        except queue.Empty:
            continue
        if item is _END_OF_STREAM:
            return

        if deduplicate_links and item.link:
            if item.link in seen:
                logger.debug("Skipping duplicate link %s", item.link)
                continue
            seen.add(item.link)
        yield item


__all__ = [
    "GoogleSearchSource",
    "create_search_sources",
    "fanout",
]
