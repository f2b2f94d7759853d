"""
Search service: what the HTTP API and library callers use to read logs.

Design:
- A ``SearchRequest`` is resolved into a concrete window, compiled and sent
  as one search against the type's read alias.
- Every hit is returned with its generation suffix and permalink so the UI
  can link to it without knowing how either is built.
- Backend errors propagate unchanged; only request problems are wrapped.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import pandas as pd

from logsearch.core.config import SearchConfig, config
from logsearch.core.exceptions import RequestValidationError
from logsearch.data.schema import SearchRequest
from logsearch.index.mappings import RECEIVED_TIME_FIELD, RECORD_FINDER_FIELD

from .compiler import QueryCompiler
from .dates import create_relative_date
from .locator import encode_locator
from .terms import parse_query_terms

if TYPE_CHECKING:
    from elasticsearch import Elasticsearch

    from logsearch.logtypes.base import LogType

logger = logging.getLogger(__name__)


def resolve_window(request: SearchRequest, now: Optional[datetime] = None):
    """Resolve the request's start (rounded down) and end (rounded up)."""
    start = create_relative_date(request.start, round_up=False, now=now)
    if start is None:
        raise RequestValidationError(f"Invalid start date: {request.start!r}", code="invalid-start-date")
    end = create_relative_date(request.end, round_up=True, now=now)
    if end is None:
        raise RequestValidationError(f"Invalid end date: {request.end!r}", code="invalid-end-date")
    return start, end


def _hit_locator(source: Dict[str, Any]) -> Optional[str]:
    log = source.get("log") or {}
    received = log.get(RECEIVED_TIME_FIELD.split(".", 1)[1])
    finder = log.get(RECORD_FINDER_FIELD.split(".", 1)[1])
    if not received or not finder:
        return None
    try:
        return encode_locator(pd.Timestamp(received).to_pydatetime(), finder)
    except ValueError:
        logger.debug("No permalink for record %r received at %r", finder, received)
        return None


def _entry(log_type: "LogType", hit: Dict[str, Any]) -> Dict[str, Any]:
    source = hit.get("_source") or {}
    return {
        "index": hit["_index"],
        "suffix": log_type.index_suffix(hit["_index"]),
        "id": hit["_id"],
        "score": hit.get("_score"),
        "locator": _hit_locator(source),
        "source": source,
        "highlight": hit.get("highlight", {}),
    }


def build_search_body(
    log_type: "LogType",
    request: SearchRequest,
    settings: Optional[SearchConfig] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Keyword arguments for ``client.search`` answering ``request``."""
    settings = settings or config.search
    start, end = resolve_window(request, now=now)
    terms = parse_query_terms(request.q)
    query = QueryCompiler(log_type, settings).compile(terms, start, end)

    sort_field = log_type.columns.sort_field_for(request.sort_prop, RECEIVED_TIME_FIELD)
    return {
        "index": log_type.alias,
        "query": query,
        "sort": [{sort_field: {"order": request.sort_order.value}}],
        "size": settings.default_size if request.size is None else request.size,
        "from_": request.from_,
        "track_total_hits": True,
        "highlight": {
            "pre_tags": [settings.highlight_pre_tag],
            "post_tags": [settings.highlight_post_tag],
            "fields": {name: {"number_of_fragments": 0} for name in log_type.highlight_fields},
        },
    }


def search_logs(
    client: "Elasticsearch",
    log_type: "LogType",
    request: SearchRequest,
    settings: Optional[SearchConfig] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Run a search for one log type.

    Returns:
        ``{"total": int, "entries": [...]}`` where each entry carries its
        index, suffix, id, score, permalink, source and highlights

    Raises:
        RequestValidationError: For unparseable dates or an empty window
    """
    body = build_search_body(log_type, request, settings=settings, now=now)
    logger.debug("Searching %s for %r", log_type.alias, request.q)
    response = client.search(**body)

    hits = response["hits"]
    total = hits.get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    entries: List[Dict[str, Any]] = [_entry(log_type, hit) for hit in hits["hits"]]
    return {"total": total, "entries": entries}


def get_entry(client: "Elasticsearch", log_type: "LogType", index_suffix: str, doc_id: str) -> Dict[str, Any]:
    """Fetch one document by generation suffix and id; ``NotFoundError`` propagates."""
    response = client.get(index=log_type.index_name(index_suffix), id=doc_id)
    hit = {"_index": response["_index"], "_id": response["_id"], "_source": response["_source"]}
    return _entry(log_type, hit)
