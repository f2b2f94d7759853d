"""
Permalink codec.

A locator identifies a log entry without the backend's document id, which
changes whenever the entry is re-ingested into a new index generation:

    <base64 of receivedTime in epoch ms, 6 bytes little-endian>-<recordFinder>

``recordFinder`` is unique within its ``receivedTime`` bucket, so the pair is
enough to find the entry again in any generation.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Union

from logsearch.core.exceptions import MalformedLocatorError
from logsearch.data.schema import DocumentId
from logsearch.index.mappings import RECEIVED_TIME_FIELD, RECORD_FINDER_FIELD

from .compiler import format_timestamp

if TYPE_CHECKING:
    from elasticsearch import Elasticsearch

    from logsearch.logtypes.base import LogType

logger = logging.getLogger(__name__)

SEPARATOR = "-"
TIMESTAMP_BYTES = 6
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Locator:
    received_time: datetime
    record_finder: str

    def encode(self) -> str:
        return encode_locator(self.received_time, self.record_finder)


def to_epoch_millis(value: Union[datetime, int]) -> int:
    if isinstance(value, int):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


def encode_locator(received_time: Union[datetime, int], record_finder: str) -> str:
    """
    Build the locator for an entry.

    Raises:
        ValueError: If ``record_finder`` is empty or contains the separator, or
            the timestamp does not fit in six bytes
    """
    if not record_finder or SEPARATOR in record_finder:
        raise ValueError(f"recordFinder must be non-empty and free of {SEPARATOR!r}: {record_finder!r}")

    millis = to_epoch_millis(received_time)
    try:
        raw = millis.to_bytes(TIMESTAMP_BYTES, "little")
    except OverflowError as exc:
        raise ValueError(f"receivedTime out of range for a locator: {received_time!r}") from exc

    return base64.b64encode(raw).decode("ascii") + SEPARATOR + record_finder


def decode_locator(locator: str) -> Locator:
    """
    Split a locator back into its receivedTime and recordFinder.

    Raises:
        MalformedLocatorError: Unless there is exactly one separator, both
            parts are non-empty and the first is base64 of at most six bytes
    """
    parts = (locator or "").split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MalformedLocatorError(f"Malformed locator: {locator!r}")

    encoded, record_finder = parts
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedLocatorError(f"Malformed locator timestamp: {encoded!r}") from exc

    if not 1 <= len(raw) <= TIMESTAMP_BYTES:
        raise MalformedLocatorError(f"Malformed locator timestamp: {encoded!r}")

    millis = int.from_bytes(raw, "little")
    return Locator(EPOCH + timedelta(milliseconds=millis), record_finder)


def locator_query(locator: Locator) -> Dict[str, Any]:
    return {
        "bool": {
            "filter": [
                {"term": {RECEIVED_TIME_FIELD: format_timestamp(locator.received_time)}},
                {"term": {RECORD_FINDER_FIELD: locator.record_finder}},
            ]
        }
    }


def resolve_locator(client: "Elasticsearch", log_type: "LogType", locator: str) -> List[DocumentId]:
    """
    Find every document a locator points at.

    Searches all generations of the log type, not just the aliased one, so
    permalinks outlive alias rotation. Zero matches is a normal result.
    """
    decoded = decode_locator(locator)
    response = client.search(
        index=log_type.index_pattern,
        query=locator_query(decoded),
        source=False,
        track_scores=False,
        request_cache=False,
    )
    hits = response["hits"]["hits"]
    if len(hits) > 1:
        logger.warning("Locator %s matched %d entries in %s", locator, len(hits), log_type.index_pattern)
    return [DocumentId(index=hit["_index"], id=hit["_id"]) for hit in hits]
