"""
Index generation loader.

Loads one complete generation of a log type into a fresh index and swaps the
read alias onto it in a single atomic call, so readers see either the old
generation or the new one, never neither and never both.

Lifecycle:
    created --start()--> indexing --end()--> finalizing --> done
                                                  \\--> failed

Design:
- The new index is named ``<alias>-YYYY-MM-DD-HH-MM-SS-mmm`` (UTC) and created
  with refreshes disabled for load speed.
- Documents are spread round-robin over a fixed pool of ``BulkWorker``s;
  ``push`` only enqueues.
- ``end()`` drains the workers, refreshes, force-merges to one segment (the
  index is static from here on) and then switches the alias.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import Future
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from elasticsearch import Elasticsearch

from logsearch.core.config import IndexingConfig, config
from logsearch.core.exceptions import PipelineStateError
from logsearch.data.schema import LoadSummary

from .bulk import BulkItem, BulkWorker, Callback, check_doc_type
from .mappings import new_index_settings
from .maintenance import get_alias_indices

logger = logging.getLogger(__name__)


class LoaderState(str, Enum):
    CREATED = "created"
    INDEXING = "indexing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


def make_index_name(alias: str, when: Optional[datetime] = None) -> str:
    """Timestamped generation name for ``alias``."""
    when = (when or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"{alias}-{when:%Y-%m-%d-%H-%M-%S}-{when.microsecond // 1000:03d}"


def alias_actions(alias: str, new_index: str, old_indices: List[str]) -> List[Dict[str, Any]]:
    """Add the new generation and remove every other index bound to ``alias``."""
    actions: List[Dict[str, Any]] = [{"add": {"index": new_index, "alias": alias}}]
    for old in old_indices:
        if old != new_index:
            actions.append({"remove": {"index": old, "alias": alias}})
    return actions


class IndexLoader:
    """
    Loads a new generation behind ``alias``.

    Example:
        with IndexLoader(client, "msvistalog", MSVISTA.mappings()) as loader:
            for item in ingest_documents(path):
                loader.push(item.document, item.doc_id)
        print(loader.summary)
    """

    def __init__(
        self,
        client: Elasticsearch,
        alias: str,
        mappings: Dict[str, Any],
        settings: Optional[IndexingConfig] = None,
        number_of_shards: Optional[int] = None,
        doc_type: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        check_doc_type(doc_type)
        self.client = client
        self.alias = alias
        self.mappings = mappings
        self.settings = settings or config.indexing
        self.number_of_shards = number_of_shards or config.elasticsearch.number_of_shards
        self.doc_type = doc_type
        self._sleep = sleep
        self._clock = clock

        self.state = LoaderState.CREATED
        self.index: Optional[str] = None
        self.pushed = 0
        self.summary: Optional[LoadSummary] = None

        self._workers: List[BulkWorker] = []
        self._rotation = None
        self._push_lock = threading.Lock()

    def _require(self, *states: LoaderState) -> None:
        if self.state not in states:
            expected = " or ".join(s.value for s in states)
            raise PipelineStateError(f"Loader for {self.alias} is {self.state.value}, expected {expected}")

    def start(self) -> str:
        """
        Create the new index and start the workers.

        Returns:
            The new index name
        """
        self._require(LoaderState.CREATED)
        self.index = make_index_name(self.alias, self._clock())

        logger.info("Creating index %s for alias %s", self.index, self.alias)
        self.client.indices.create(
            index=self.index,
            settings=new_index_settings(self.number_of_shards),
            mappings=self.mappings,
        )

        self._workers = [
            BulkWorker(self.client, f"{self.index}-worker-{n}", self.settings, self._sleep)
            for n in range(self.settings.concurrency)
        ]
        for worker in self._workers:
            worker.start()
        self._rotation = itertools.cycle(self._workers)

        self.state = LoaderState.INDEXING
        return self.index

    def push(
        self,
        document: Any,
        doc_id: Optional[str] = None,
        doc_type: Optional[str] = None,
        callback: Optional[Callback] = None,
    ) -> Future:
        """
        Queue a document for indexing; never blocks on network I/O.

        Args:
            document: ``_source`` dict or a model with ``to_source()``
            doc_id: Backend id; auto-assigned when omitted
            doc_type: Only ``_doc`` (or None); the backend is typeless
            callback: Invoked once with ``None`` or the item's error

        Returns:
            Future resolving to ``doc_id`` or raising the item's error
        """
        self._require(LoaderState.INDEXING)
        item = BulkItem.build(self.index, document, doc_id, doc_type or self.doc_type, callback)
        with self._push_lock:
            worker = next(self._rotation)
            self.pushed += 1
        worker.enqueue(item)
        return item.future

    def _drain(self) -> None:
        for worker in self._workers:
            worker.close()
        for worker in self._workers:
            worker.join()

    def end(self) -> LoadSummary:
        """
        Drain, refresh, force-merge and switch the alias.

        Raises:
            PipelineStateError: If the loader is not indexing
        """
        self._require(LoaderState.INDEXING)
        self.state = LoaderState.FINALIZING

        try:
            self._drain()
            indexed = sum(worker.indexed for worker in self._workers)
            failed = sum(worker.failed for worker in self._workers)
            logger.info("Drained %s: %d indexed, %d failed", self.index, indexed, failed)

            self.client.indices.refresh(index=self.index)

            logger.info("Force-merging %s", self.index)
            self.client.options(request_timeout=self.settings.merge_timeout_seconds).indices.forcemerge(
                index=self.index, max_num_segments=1
            )

            self.switch_alias()
        except Exception:
            self.state = LoaderState.FAILED
            logger.exception("Finalizing %s failed; alias %s left unchanged", self.index, self.alias)
            raise

        self.summary = LoadSummary(
            index=self.index, alias=self.alias, pushed=self.pushed, indexed=indexed, failed=failed
        )
        self.state = LoaderState.DONE
        return self.summary

    def switch_alias(self) -> List[str]:
        """Atomically bind ``alias`` to the new index; returns the indexes unbound."""
        old_indices = get_alias_indices(self.client, self.alias)
        actions = alias_actions(self.alias, self.index, old_indices)
        self.client.indices.update_aliases(actions=actions)
        removed = [a["remove"]["index"] for a in actions if "remove" in a]
        logger.info("Alias %s now points at %s (removed: %s)", self.alias, self.index, ", ".join(removed) or "none")
        return removed

    def abort(self) -> None:
        """Stop after the queued work finishes, leaving the alias untouched."""
        if self.state == LoaderState.INDEXING:
            self._drain()
        self.state = LoaderState.FAILED

    def __enter__(self) -> "IndexLoader":
        if self.state == LoaderState.CREATED:
            self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.end()
        else:
            logger.error("Load into %s aborted: %s", self.index, exc)
            self.abort()
