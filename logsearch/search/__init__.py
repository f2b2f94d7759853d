"""
Search module: from the search box to a backend query and back.

    Search box text
        ↓
    parse_query_terms (logsearch/search/terms.py) → QueryTerm list
        ↓
    QueryCompiler (logsearch/search/compiler.py) → bool query
        ↓
    search_logs (logsearch/search/service.py) → entries with permalinks
"""

from logsearch.search.columns import COERCIONS, Column, ColumnKind, ColumnRegistry
from logsearch.search.compiler import QueryCompiler, compile_query, format_timestamp, validate_window
from logsearch.search.dates import RelativeDate, create_relative_date, parse_relative_date
from logsearch.search.locator import (
    Locator,
    decode_locator,
    encode_locator,
    locator_query,
    resolve_locator,
)
from logsearch.search.service import build_search_body, get_entry, resolve_window, search_logs
from logsearch.search.terms import (
    HASHTAG,
    PHRASE,
    TERM,
    QueryTerm,
    Requirement,
    format_query_term,
    format_query_terms,
    parse_query_terms,
)

__all__ = [
    # Columns
    "Column",
    "ColumnKind",
    "ColumnRegistry",
    "COERCIONS",

    # Terms
    "QueryTerm",
    "Requirement",
    "TERM",
    "PHRASE",
    "HASHTAG",
    "parse_query_terms",
    "format_query_term",
    "format_query_terms",

    # Compilation
    "QueryCompiler",
    "compile_query",
    "format_timestamp",
    "validate_window",
    "RelativeDate",
    "parse_relative_date",
    "create_relative_date",

    # Permalinks
    "Locator",
    "encode_locator",
    "decode_locator",
    "locator_query",
    "resolve_locator",

    # Service
    "search_logs",
    "get_entry",
    "build_search_body",
    "resolve_window",
]
