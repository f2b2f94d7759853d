"""
Query compiler: parsed terms + time window + log type -> Elasticsearch bool query.

Design:
- Two non-scoring range filters bound the window: a coarse one on hour
  boundaries (cacheable across nearby searches) followed by a precise one on
  minute boundaries (no partial histogram buckets at the edges).
- Exact filters (columns, tags, existence) go to the filter context; free
  text goes to the scoring context.
- Unsigned bare words are collected and matched together once, which scores
  better than one clause per word.
- Nothing but the time window can make compilation fail; unknown columns or
  uncoercible values are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from logsearch.core.config import SearchConfig, config
from logsearch.core.exceptions import InvalidTimeWindowError
from logsearch.index.mappings import TAG_FIELD

from .dates import ceil_date, floor_date
from .terms import HASHTAG, PHRASE, TERM, QueryTerm, Requirement

if TYPE_CHECKING:
    from logsearch.logtypes.base import LogType

logger = logging.getLogger(__name__)


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    value = value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_window(start: Any, end: Any) -> None:
    """Reject windows that are not datetimes or are empty or inverted."""
    if not isinstance(start, datetime) or not isinstance(end, datetime):
        raise InvalidTimeWindowError("Search window bounds must be datetimes.")
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    if start >= end:
        raise InvalidTimeWindowError(
            f"Search window start {format_timestamp(start)} is not before end {format_timestamp(end)}."
        )


def time_range(time_field: str, start: datetime, end: datetime, unit: str) -> Dict[str, Any]:
    return {
        "range": {
            time_field: {
                "gte": format_timestamp(floor_date(start, unit)),
                "lt": format_timestamp(ceil_date(end, unit)),
            }
        }
    }


@dataclass
class QueryCompiler:
    """
    Compiles terms for one log type.

    The boosts, fuzziness, should-term batching and minimum-should-match
    policy come from ``SearchConfig`` so relevance can be tuned per deployment.
    """

    log_type: "LogType"
    settings: SearchConfig = field(default_factory=lambda: config.search)

    def relevance(self, text: str, phrase: bool = False) -> List[Dict[str, Any]]:
        """Exact match on the body fields, plus a fuzzy variant unless ``phrase``."""
        fields = list(self.log_type.body_fields)
        queries: List[Dict[str, Any]] = [
            {
                "multi_match": {
                    "query": text,
                    "type": "phrase" if phrase else "most_fields",
                    "fields": fields,
                    "boost": self.settings.exact_boost,
                }
            }
        ]
        if not phrase:
            queries.append(
                {
                    "multi_match": {
                        "query": text,
                        "type": "most_fields",
                        "fuzziness": self.settings.fuzziness,
                        "fields": fields,
                        "boost": self.settings.fuzzy_boost,
                    }
                }
            )
        return queries

    def _term_filter(self, term: QueryTerm) -> Optional[Dict[str, Any]]:
        if term.type in (HASHTAG, "tag"):
            return {"term": {TAG_FIELD: term.term}}

        if term.type == "exists":
            column = self.log_type.columns.get(term.term)
            if column is None:
                logger.debug("Dropping exists term for unknown column %r", term.term)
                return None
            return {"exists": {"field": column.backend_field}}

        column = self.log_type.columns.get(term.type)
        if column is not None:
            if not column.searchable:
                return None
            value = column.to_backend_term(term.term)
            if value is None:
                logger.debug("Dropping %s:%r, no usable value", term.type, term.term)
                return None
            return {"term": {column.backend_field: value}}

        return {"term": {self.log_type.fallback_field(term.type): term.term}}

    def compile(self, terms: Sequence[QueryTerm], start: datetime, end: datetime) -> Dict[str, Any]:
        """
        Build the bool query.

        Raises:
            InvalidTimeWindowError: If ``start`` is not strictly before ``end``
        """
        validate_window(start, end)
        time_field = self.log_type.time_field

        bool_query: Dict[str, Any] = {
            "filter": [
                time_range(time_field, start, end, "h"),
                time_range(time_field, start, end, "m"),
            ],
            "must": [],
            "should": [],
            "must_not": [],
            "minimum_should_match": self.settings.minimum_should_match,
        }

        filtered = {
            Requirement.MUST: bool_query["filter"],
            Requirement.SHOULD: bool_query["should"],
            Requirement.MUST_NOT: bool_query["must_not"],
        }
        scored = {
            Requirement.MUST: bool_query["must"],
            Requirement.SHOULD: bool_query["should"],
            Requirement.MUST_NOT: bool_query["must_not"],
        }

        lonely: List[str] = []

        for term in terms:
            if term.type == TERM:
                if term.term == "*":
                    filtered[term.requirement].append({"match_all": {}})
                elif term.requirement == Requirement.SHOULD and self.settings.batch_should_terms:
                    lonely.append(term.term)
                else:
                    scored[term.requirement].append({"bool": {"should": self.relevance(term.term)}})
            elif term.type == PHRASE:
                scored[term.requirement].extend(self.relevance(term.term, phrase=True))
            else:
                clause = self._term_filter(term)
                if clause is not None:
                    filtered[term.requirement].append(clause)

        if lonely:
            bool_query["should"].append({"bool": {"should": self.relevance(" ".join(lonely))}})

        return {"bool": bool_query}


def compile_query(
    terms: Sequence[QueryTerm],
    log_type: "LogType",
    start: datetime,
    end: datetime,
    settings: Optional[SearchConfig] = None,
) -> Dict[str, Any]:
    """Compile ``terms`` over ``[start, end)`` for ``log_type``."""
    compiler = QueryCompiler(log_type, settings or config.search)
    return compiler.compile(terms, start, end)
