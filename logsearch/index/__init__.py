"""
Index module: mappings, bulk loading, scrolling and maintenance.

    Documents
        ↓
    IndexLoader.push (logsearch/index/loader.py) → round-robin
        ↓
    BulkWorker × N (logsearch/index/bulk.py) → bulk requests with retry
        ↓
    IndexLoader.end → refresh → force-merge → atomic alias switch
"""

from logsearch.index.bulk import BulkItem, BulkWorker
from logsearch.index.loader import IndexLoader, LoaderState, alias_actions, make_index_name
from logsearch.index.maintenance import (
    cleanup_unaliased_indexes,
    expire_daily_indexes,
    expired_daily_indexes,
    find_unaliased_indexes,
    get_alias_indices,
)
from logsearch.index.mappings import (
    COMMON_ANALYSIS,
    EVENT_TIME_FIELD,
    LOG_COMMON,
    RECEIVED_TIME_FIELD,
    RECORD_FINDER_FIELD,
    TAG_FIELD,
)
from logsearch.index.scroll import ScrollConsumer, get_all_entries, hits_to_frame

__all__ = [
    # Mappings
    "COMMON_ANALYSIS",
    "LOG_COMMON",
    "EVENT_TIME_FIELD",
    "RECEIVED_TIME_FIELD",
    "RECORD_FINDER_FIELD",
    "TAG_FIELD",

    # Loading
    "IndexLoader",
    "LoaderState",
    "BulkItem",
    "BulkWorker",
    "alias_actions",
    "make_index_name",

    # Scrolling
    "ScrollConsumer",
    "get_all_entries",
    "hits_to_frame",

    # Maintenance
    "get_alias_indices",
    "find_unaliased_indexes",
    "cleanup_unaliased_indexes",
    "expired_daily_indexes",
    "expire_daily_indexes",
]
