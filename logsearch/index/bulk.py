"""
Bulk indexing workers.

Each worker owns a queue, a thread and at most one bulk request in flight.
Producers enqueue serialized documents without blocking; the worker thread
flushes a batch once the queued bytes reach the configured threshold, or
flushes whatever is left when the worker is closed for draining.

Design:
- Whole-batch throttling (HTTP 429/503) puts the batch back at the head of
  the queue; any other whole-batch failure fails every item in it.
- Per-item results are handled individually: 2xx completes the item, 429/503
  sends only that item to the back of the queue, anything else fails it.
- Throttled retries are unbounded. The delay between consecutive throttled
  attempts doubles from ``retry_backoff_initial`` up to ``retry_backoff_max``
  and resets after a call that was not throttled.
- Every item completes exactly once: its Future resolves and its optional
  callback is invoked with ``None`` or the error.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Deque, Dict, List, Optional

from elasticsearch import ApiError, Elasticsearch, TransportError

from logsearch.core.config import IndexingConfig, config
from logsearch.core.es import error_status, is_retryable, is_retryable_status
from logsearch.core.exceptions import BulkItemError, BulkRequestError

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[BaseException]], None]

# Typeless backends accept only the implicit type; ``_type`` is never sent
DEFAULT_DOC_TYPE = "_doc"


def check_doc_type(doc_type: Optional[str]) -> None:
    if doc_type not in (None, DEFAULT_DOC_TYPE):
        raise ValueError(f"Mapping types other than {DEFAULT_DOC_TYPE!r} are not supported: {doc_type!r}")


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)


@dataclass
class BulkItem:
    """One document waiting to be indexed, already serialized."""

    header: str
    source: str
    doc_id: Optional[str] = None
    callback: Optional[Callback] = None
    future: Future = field(default_factory=Future)
    attempts: int = 0

    def __post_init__(self) -> None:
        self.size = len(self.header.encode("utf-8")) + len(self.source.encode("utf-8")) + 2
        self._completed = False

    @classmethod
    def build(
        cls,
        index: str,
        document: Any,
        doc_id: Optional[str] = None,
        doc_type: Optional[str] = None,
        callback: Optional[Callback] = None,
    ) -> "BulkItem":
        check_doc_type(doc_type)
        action: Dict[str, Any] = {"_index": index}
        if doc_id is not None:
            action["_id"] = doc_id
        if hasattr(document, "to_source"):
            document = document.to_source()
        return cls(dumps({"index": action}), dumps(document), doc_id, callback)

    def complete(self, error: Optional[BaseException] = None) -> None:
        """Resolve the item; later calls are ignored."""
        if self._completed:
            return
        self._completed = True

        if error is None:
            self.future.set_result(self.doc_id)
        else:
            self.future.set_exception(error)

        if self.callback is not None:
            try:
                self.callback(error)
            except Exception:
                logger.exception("Bulk item callback raised for document %s", self.doc_id)


class BulkWorker(threading.Thread):
    """
    Batching writer for one shard of the producer's documents.

    Order is preserved within a worker, except for items re-queued after a
    per-item throttle, which go to the back.
    """

    def __init__(
        self,
        client: Elasticsearch,
        name: str,
        settings: Optional[IndexingConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(name=name, daemon=True)
        self.client = client
        self.settings = settings or config.indexing
        self._sleep = sleep

        self._queue: Deque[BulkItem] = deque()
        self._queued_bytes = 0
        self._closing = False
        self._cond = threading.Condition()
        self._backoff = 0.0

        self.batches_sent = 0
        self.indexed = 0
        self.failed = 0
        self.throttled = 0

    # -- producer side -------------------------------------------------

    def enqueue(self, item: BulkItem) -> None:
        """Queue an item; never blocks on I/O."""
        with self._cond:
            self._queue.append(item)
            self._queued_bytes += item.size
            if self._queued_bytes >= self.settings.bulk_size_bytes:
                self._cond.notify()

    def close(self) -> None:
        """Ask the worker to flush everything queued, then exit."""
        with self._cond:
            self._closing = True
            self._cond.notify()

    def drain(self, timeout: Optional[float] = None) -> None:
        self.close()
        self.join(timeout)

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._queue)

    # -- worker side ---------------------------------------------------

    def _requeue_front(self, items: List[BulkItem]) -> None:
        with self._cond:
            for item in reversed(items):
                self._queue.appendleft(item)
                self._queued_bytes += item.size

    def _requeue_back(self, items: List[BulkItem]) -> None:
        with self._cond:
            for item in items:
                self._queue.append(item)
                self._queued_bytes += item.size

    def _ready(self) -> bool:
        return self._queued_bytes >= self.settings.bulk_size_bytes or (self._closing and bool(self._queue))

    def _next_batch(self) -> Optional[List[BulkItem]]:
        """Block until a batch is due; ``None`` once closed and empty."""
        with self._cond:
            while not self._ready():
                if self._closing and not self._queue:
                    return None
                self._cond.wait()

            batch: List[BulkItem] = []
            batch_bytes = 0
            while self._queue and batch_bytes < self.settings.bulk_size_bytes:
                item = self._queue.popleft()
                self._queued_bytes -= item.size
                batch_bytes += item.size
                batch.append(item)
            return batch

    def run(self) -> None:
        logger.debug("%s started", self.name)
        while True:
            batch = self._next_batch()
            if batch is None:
                break
            try:
                self._send(batch)
            except Exception as exc:
                logger.exception("%s: unexpected failure sending %d items", self.name, len(batch))
                self._fail(batch, exc)
        logger.debug(
            "%s finished: %d batches, %d indexed, %d failed, %d throttled",
            self.name, self.batches_sent, self.indexed, self.failed, self.throttled,
        )

    def _fail(self, items: List[BulkItem], error: BaseException) -> None:
        for item in items:
            self.failed += 1
            item.complete(error)

    def _pause(self, throttled: bool) -> None:
        if not throttled:
            self._backoff = 0.0
            return
        if self._backoff == 0.0:
            self._backoff = self.settings.retry_backoff_initial
        else:
            self._backoff = min(self._backoff * 2, self.settings.retry_backoff_max)
        if self._backoff > 0:
            self._sleep(self._backoff)

    def _send(self, batch: List[BulkItem]) -> None:
        operations: List[str] = []
        for item in batch:
            item.attempts += 1
            operations.append(item.header)
            operations.append(item.source)

        self.batches_sent += 1
        try:
            response = self.client.bulk(operations=operations)
        except (ApiError, TransportError) as exc:
            if is_retryable(exc):
                self.throttled += len(batch)
                logger.warning(
                    "%s: bulk request throttled (status %s), re-queueing %d items",
                    self.name, error_status(exc), len(batch),
                )
                self._requeue_front(batch)
                self._pause(throttled=True)
                return

            status = error_status(exc)
            logger.error("%s: bulk request failed (status %s): %s", self.name, status, exc)
            self._fail(batch, BulkRequestError(f"Bulk request failed: {exc}", status=status))
            self._pause(throttled=False)
            return

        self._handle_items(batch, response.get("items", []))

    def _handle_items(self, batch: List[BulkItem], results: List[Dict[str, Any]]) -> None:
        retry: List[BulkItem] = []

        for position, item in enumerate(batch):
            if position >= len(results):
                self.failed += 1
                item.complete(BulkItemError("No result returned for bulk item"))
                continue

            result = next(iter(results[position].values()), {})
            status = result.get("status", 0)

            if 200 <= status < 300:
                self.indexed += 1
                item.complete(None)
            elif is_retryable_status(status):
                retry.append(item)
            else:
                self.failed += 1
                reason = result.get("error")
                logger.warning("%s: document %s rejected (status %s): %s", self.name, item.doc_id, status, reason)
                item.complete(BulkItemError(f"Document rejected with status {status}", status=status, reason=reason))

        if retry:
            self.throttled += len(retry)
            logger.warning("%s: %d items throttled, re-queueing", self.name, len(retry))
            self._requeue_back(retry)

        self._pause(throttled=bool(retry))
