"""
Scroll consumer: walks every hit of a query, page by page.

Used for exports and reprocessing where ``from``/``size`` paging would be
both slow and inconsistent.

Design:
- Pull-driven: nothing is fetched until the caller asks for the next page.
- The first pull opens the cursor with a ``_doc`` sort (cheapest order); later
  pulls renew it with the last cursor id.
- Production ends when the fetched count reaches the reported total or an
  empty page comes back; the cursor is cleared at that point.
- Overlapping pulls raise ``ScrollInProgressError`` instead of racing.
- Not restartable; open a new consumer to start over.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd
from elasticsearch import Elasticsearch, NotFoundError

from logsearch.core.config import ScrollConfig, config
from logsearch.core.exceptions import ScrollInProgressError

logger = logging.getLogger(__name__)

MATCH_ALL: Dict[str, Any] = {"match_all": {}}


def _total(hits: Dict[str, Any]) -> Optional[int]:
    total = hits.get("total")
    if isinstance(total, dict):
        return total.get("value")
    return total


class ScrollConsumer:
    """
    Finite, non-restartable iterator over every hit of a query.

    Example:
        with ScrollConsumer(client, "msvistalog") as hits:
            for hit in hits:
                handle(hit["_source"])
    """

    def __init__(
        self,
        client: Elasticsearch,
        index: str,
        query: Optional[Dict[str, Any]] = None,
        settings: Optional[ScrollConfig] = None,
        **search_options: Any,
    ):
        self.client = client
        self.index = index
        self.query = query or MATCH_ALL
        self.settings = settings or config.scroll
        self.search_options = search_options

        self.fetched = 0
        self.total: Optional[int] = None
        self._scroll_id: Optional[str] = None
        self._done = False
        self._in_flight = threading.Lock()

    @property
    def done(self) -> bool:
        return self._done

    def _open(self) -> Dict[str, Any]:
        logger.debug("Opening scroll over %s", self.index)
        return self.client.search(
            index=self.index,
            query=self.query,
            sort=["_doc"],
            size=self.settings.page_size,
            scroll=self.settings.keep_alive,
            track_total_hits=True,
            **self.search_options,
        )

    def _continue(self) -> Dict[str, Any]:
        return self.client.scroll(scroll_id=self._scroll_id, scroll=self.settings.keep_alive)

    def pull(self) -> List[Dict[str, Any]]:
        """
        Fetch the next page of hits.

        Returns:
            The page's hits; an empty list once the scroll is exhausted

        Raises:
            ScrollInProgressError: If another pull has not returned yet
        """
        if not self._in_flight.acquire(blocking=False):
            raise ScrollInProgressError(f"A scroll pull over {self.index} is already in flight")
        try:
            if self._done:
                return []

            response = self._open() if self._scroll_id is None else self._continue()
            self._scroll_id = response.get("_scroll_id", self._scroll_id)

            hits = response["hits"]
            page = hits["hits"]
            self.total = _total(hits)
            self.fetched += len(page)

            if not page or (self.total is not None and self.fetched >= self.total):
                logger.debug("Scroll over %s finished after %d hits", self.index, self.fetched)
                self._done = True
                self._clear()

            return page
        finally:
            self._in_flight.release()

    def _clear(self) -> None:
        if self._scroll_id is None:
            return
        scroll_id, self._scroll_id = self._scroll_id, None
        try:
            self.client.clear_scroll(scroll_id=scroll_id)
        except NotFoundError:
            logger.debug("Scroll %s already expired", scroll_id)

    def close(self) -> None:
        """Stop early and release the server-side cursor."""
        self._done = True
        self._clear()

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        while not self._done:
            yield from self.pull()

    def __enter__(self) -> "ScrollConsumer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def get_all_entries(
    client: Elasticsearch, index: str, query: Optional[Dict[str, Any]] = None, **search_options: Any
) -> List[Dict[str, Any]]:
    """Collect every hit of ``query`` into a list."""
    with ScrollConsumer(client, index, query, **search_options) as consumer:
        return list(consumer)


def hits_to_frame(hits: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Flatten hits into a DataFrame, one row per document.

    Nested ``_source`` fields become dotted columns (``log.message``);
    ``_index`` and ``_id`` are kept so rows can be traced back.
    """
    if not hits:
        return pd.DataFrame(columns=["_index", "_id"])
    frame = pd.json_normalize([hit.get("_source", {}) for hit in hits])
    frame.insert(0, "_id", [hit.get("_id") for hit in hits])
    frame.insert(0, "_index", [hit.get("_index") for hit in hits])
    return frame
