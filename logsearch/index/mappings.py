"""
Index mappings and analysis settings shared by every log type.

The ``log`` object is common to all documents. Identifiers recorded under
``source`` and ``target`` are copied into ``all`` by the backend at index time
(``copy_to``), so a single ``ip:10.0.0.1`` filter finds either side without
the query having to know which one.
"""

from typing import Any, Dict

EVENT_TIME_FIELD = "log.eventTime"
RECEIVED_TIME_FIELD = "log.receivedTime"
RECORD_FINDER_FIELD = "log.recordFinder"
TAG_FIELD = "log.tag"

COMMON_ANALYSIS: Dict[str, Any] = {
    "tokenizer": {
        "autocomplete_filter": {
            "type": "edge_ngram",
            "min_gram": 1,
            "max_gram": 20,
            "token_chars": ["letter", "digit", "punctuation"],
        },
        "code_keyword_tokenizer": {
            "type": "pattern",
            # Stretches of non-keyword characters and the numbers after them
            "pattern": "(?:[^a-zA-Z0-9_]++[0-9]*+)++",
        },
    },
    "analyzer": {
        "lowercase": {
            "tokenizer": "keyword",
            "filter": "lowercase",
        },
        "autocomplete": {
            "type": "custom",
            "tokenizer": "autocomplete_filter",
            "filter": ["lowercase"],
        },
        "code_keyword": {
            "type": "custom",
            "tokenizer": "code_keyword_tokenizer",
            "filter": ["lowercase"],
        },
    },
}

# Field name -> backend type for the identifier objects
IDENTIFIER_FIELDS: Dict[str, str] = {
    "ip": "ip",
    "hostname": "keyword",
    "fqdn": "keyword",
    "fqdnBreakdown": "keyword",
    "samName": "keyword",  # uppercase
    "serviceName": "keyword",
    "sid": "keyword",  # uppercase
    "port": "integer",
    "domain": "keyword",  # uppercase
    "upn": "keyword",
    "logonId": "keyword",  # 0xHEX
}


def identifier_properties(copy_to: bool) -> Dict[str, Any]:
    """Mapping for an identifier object, optionally fanned out into ``log.all``."""
    properties: Dict[str, Any] = {}
    for name, es_type in IDENTIFIER_FIELDS.items():
        prop: Dict[str, Any] = {"type": es_type}
        if copy_to:
            prop["copy_to"] = f"log.all.{name}"
        properties[name] = prop
    return {"properties": properties}


LOG_COMMON: Dict[str, Any] = {
    "properties": {
        "recordFinder": {"type": "keyword"},
        "receivingPort": {"type": "integer"},
        "reportingIp": {"type": "ip"},
        "receivedTime": {"type": "date", "format": "date_optional_time"},
        "eventTime": {"type": "date", "format": "date_optional_time"},
        "tag": {"type": "keyword"},
        "message": {"type": "text"},
        "ipProtocol": {"type": "short"},
        "all": identifier_properties(copy_to=False),
        "source": identifier_properties(copy_to=True),
        "target": identifier_properties(copy_to=True),
    }
}


def keyword_text(analyzer: str = "standard") -> Dict[str, Any]:
    """Searchable text field with an exact ``.raw`` keyword sub-field."""
    return {
        "type": "text",
        "analyzer": analyzer,
        "fields": {"raw": {"type": "keyword", "ignore_above": 1024}},
    }


def new_index_settings(number_of_shards: int) -> Dict[str, Any]:
    """Settings for a fresh generation: no refreshes until the load ends."""
    return {
        "index.refresh_interval": -1,
        "index.number_of_shards": number_of_shards,
        "analysis": COMMON_ANALYSIS,
    }
