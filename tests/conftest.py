"""
Pytest configuration and shared fixtures.

Provides an in-memory stand-in for the Elasticsearch client, real client
errors with chosen HTTP statuses, and sample documents for unit and
integration tests.
"""

import fnmatch
import json
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig
from elasticsearch import ApiError, NotFoundError

from logsearch.core.config import IndexingConfig, ScrollConfig, SearchConfig


def make_api_error(status: int, cls=ApiError, message: Optional[str] = None) -> ApiError:
    """Build a real client error carrying ``status``."""
    meta = ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )
    return cls(message or f"status {status}", meta=meta, body={"error": {"type": f"http_{status}"}})


def bulk_ids(operations: List[str]) -> List[Optional[str]]:
    """Document ids in a bulk body, in order."""
    return [json.loads(line)["index"].get("_id") for line in operations[0::2]]


def bulk_response(operations: List[str], status_for: Callable[[Optional[str]], int] = lambda _id: 201):
    items = []
    for doc_id in bulk_ids(operations):
        status = status_for(doc_id)
        result: Dict[str, Any] = {"_id": doc_id, "status": status}
        if status >= 300:
            result["error"] = {"type": "mapper_parsing_exception" if status == 400 else "es_rejected_execution_exception"}
        items.append({"index": result})
    return {"took": 1, "errors": any(item["index"]["status"] >= 300 for item in items), "items": items}


class FakeIndices:
    """The ``client.indices`` namespace, backed by plain dicts."""

    def __init__(self, client: "FakeElasticsearch"):
        self._client = client
        # index name -> {"aliases": {...}, "settings": {...}, "mappings": {...}}
        self.indices: Dict[str, Dict[str, Any]] = {}
        self.templates: Dict[str, Dict[str, Any]] = {}
        self.deleted: List[str] = []
        self.alias_actions: List[List[Dict[str, Any]]] = []

    def create(self, index: str, settings=None, mappings=None, **kwargs):
        self._client.record("indices.create", index=index, settings=settings, mappings=mappings)
        self.indices[index] = {
            "aliases": {},
            "settings": {"index": {"creation_date": "0"}},
            "mappings": mappings or {},
            "create_settings": settings or {},
        }
        return {"acknowledged": True, "index": index}

    def refresh(self, index: str, **kwargs):
        self._client.record("indices.refresh", index=index)
        return {"_shards": {"failed": 0}}

    def forcemerge(self, index: str, max_num_segments: Optional[int] = None, **kwargs):
        self._client.record("indices.forcemerge", index=index, max_num_segments=max_num_segments)
        return {"_shards": {"failed": 0}}

    def update_aliases(self, actions: List[Dict[str, Any]], **kwargs):
        self._client.record("indices.update_aliases", actions=actions)
        self.alias_actions.append(actions)
        for action in actions:
            (kind, spec), = action.items()
            aliases = self.indices.setdefault(spec["index"], {"aliases": {}, "settings": {}})["aliases"]
            if kind == "add":
                aliases[spec["alias"]] = {}
            else:
                aliases.pop(spec["alias"], None)
        return {"acknowledged": True}

    def get_alias(self, name: str, **kwargs):
        self._client.record("indices.get_alias", name=name)
        found = {
            index: {"aliases": {name: {}}}
            for index, info in self.indices.items()
            if name in info.get("aliases", {})
        }
        if not found:
            raise make_api_error(404, NotFoundError, f"alias [{name}] missing")
        return found

    def get(self, index, **kwargs):
        self._client.record("indices.get", index=index, **kwargs)
        patterns = [index] if isinstance(index, str) else list(index)
        return {
            name: info
            for name, info in self.indices.items()
            if any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)
        }

    def delete(self, index, **kwargs):
        self._client.record("indices.delete", index=index)
        names = [index] if isinstance(index, str) else list(index)
        for name in names:
            self.indices.pop(name, None)
            self.deleted.append(name)
        return {"acknowledged": True}

    def put_index_template(self, name: str, **template):
        self._client.record("indices.put_index_template", name=name, **template)
        self.templates[name] = template
        return {"acknowledged": True}


class FakeElasticsearch:
    """
    Thread-safe in-memory client.

    ``bulk_handler(call_number, operations)`` decides each bulk response (or
    raises); search and scroll responses are served from FIFO queues.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.calls: List[tuple] = []
        self.indices = FakeIndices(self)
        self.bulk_handler: Callable[[int, List[str]], Dict[str, Any]] = lambda n, ops: bulk_response(ops)
        self.bulk_calls: List[List[str]] = []
        self.search_responses: List[Any] = []
        self.scroll_responses: List[Any] = []
        self.cleared: List[str] = []
        self.documents: Dict[tuple, Dict[str, Any]] = {}
        self.options_used: List[Dict[str, Any]] = []

    def record(self, method: str, **kwargs) -> None:
        with self._lock:
            self.calls.append((method, kwargs))

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [kwargs for call, kwargs in self.calls if call == method]

    def options(self, **kwargs):
        self.options_used.append(kwargs)
        return self

    def bulk(self, operations: List[str], **kwargs):
        with self._lock:
            self.bulk_calls.append(list(operations))
            call_number = len(self.bulk_calls)
        self.record("bulk", operations=operations)
        return self.bulk_handler(call_number, operations)

    @staticmethod
    def _serve(queue: List[Any]):
        response = queue.pop(0) if queue else {"hits": {"total": {"value": 0, "relation": "eq"}, "hits": []}}
        if isinstance(response, BaseException):
            raise response
        return response

    def search(self, **kwargs):
        self.record("search", **kwargs)
        with self._lock:
            return self._serve(self.search_responses)

    def scroll(self, scroll_id: str, scroll: Optional[str] = None, **kwargs):
        self.record("scroll", scroll_id=scroll_id, scroll=scroll)
        with self._lock:
            return self._serve(self.scroll_responses)

    def clear_scroll(self, scroll_id: str, **kwargs):
        self.record("clear_scroll", scroll_id=scroll_id)
        self.cleared.append(scroll_id)
        return {"succeeded": True}

    def get(self, index: str, id: str, **kwargs):
        self.record("get", index=index, id=id)
        try:
            source = self.documents[(index, id)]
        except KeyError:
            raise make_api_error(404, NotFoundError, f"{index}/{id} not found") from None
        return {"_index": index, "_id": id, "found": True, "_source": source}


def search_page(hits: List[Dict[str, Any]], total: Any, scroll_id: Optional[str] = None) -> Dict[str, Any]:
    response: Dict[str, Any] = {"hits": {"total": total, "hits": hits}}
    if scroll_id is not None:
        response["_scroll_id"] = scroll_id
    return response


def make_hit(index: str, doc_id: str, source: Optional[Dict[str, Any]] = None, **extra) -> Dict[str, Any]:
    hit = {"_index": index, "_id": doc_id, "_source": source or {}}
    hit.update(extra)
    return hit


@pytest.fixture
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest.fixture
def api_error():
    """Factory fixture: ``api_error(429)`` builds a real ``ApiError``."""
    return make_api_error


@pytest.fixture
def indexing_settings() -> IndexingConfig:
    """Small, sleep-free indexing settings for tests."""
    return IndexingConfig(
        concurrency=2,
        bulk_size_bytes=1024,
        merge_timeout_seconds=5,
        retry_backoff_initial=0.0,
        retry_backoff_max=0.0,
    )


@pytest.fixture
def search_settings() -> SearchConfig:
    return SearchConfig()


@pytest.fixture
def scroll_settings() -> ScrollConfig:
    return ScrollConfig(keep_alive="1m", page_size=2)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2017, 3, 15, 10, 42, 17, 250000, tzinfo=timezone.utc)


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """A Windows logon event as the ETL adapter emits it."""
    return {
        "_id": "c2f1e0a9",
        "log": {
            "recordFinder": "A1B2C3",
            "receivingPort": 514,
            "reportingIp": "10.0.0.5",
            "receivedTime": "2017-03-15T10:40:01.123Z",
            "eventTime": "2017-03-15T10:40:00.000Z",
            "tag": ["logon"],
            "message": "An account was successfully logged on.",
            "source": {"ip": "10.1.2.3", "samName": "alice"},
            "target": {"hostname": "dc01", "domain": "corp"},
        },
        "msvistalog": {
            "system": {"eventId": 4624, "computer": "DC01.corp.example.com"},
            "logon": {"logonType": 3},
        },
    }


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
