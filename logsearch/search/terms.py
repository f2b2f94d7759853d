"""
Query term parser for the analyst search box.

Turns free text such as ``+alice -bob "exact phrase" #tag user:ALICE`` into an
ordered list of typed terms.

Design:
- Tokens are quoted phrases or whitespace-delimited runs, each optionally
  ``field:``-prefixed and optionally signed (``+`` must, ``-`` must_not).
- An unterminated quote is ordinary text; parsing never fails.
- ``format_query_terms`` renders the canonical form that re-parses to an
  equivalent list, which is how click-to-filter edits rebuild the search box.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

# A signed, optionally field-prefixed quoted phrase, or any whitespace-free run
QUERY_RE = re.compile(
    r'(?P<quoted>[-+]?(?:[^\s:]+:)?"[^"]+")|(?P<bare>\S+)'
)

TERM = "term"
PHRASE = "phrase"
HASHTAG = "hashtag"


class Requirement(str, Enum):
    """How strongly a term constrains the result set."""

    MUST = "must"
    SHOULD = "should"
    MUST_NOT = "must_not"


_SIGNS = {"+": Requirement.MUST, "-": Requirement.MUST_NOT}
_PREFIXES = {Requirement.MUST: "+", Requirement.MUST_NOT: "-", Requirement.SHOULD: ""}


@dataclass(frozen=True)
class QueryTerm:
    """
    One parsed search term.

    ``type`` is ``term``, ``phrase``, ``hashtag`` or a field name typed by the
    analyst (``user`` for ``user:ALICE``).
    """

    term: str
    type: str = TERM
    requirement: Requirement = Requirement.SHOULD

    @property
    def is_field(self) -> bool:
        return self.type not in (TERM, PHRASE, HASHTAG)


def _split_sign(token: str):
    if token[:1] in _SIGNS and len(token) > 1:
        return _SIGNS[token[0]], token[1:]
    return Requirement.SHOULD, token


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def parse_query_terms(query: str) -> List[QueryTerm]:
    """
    Parse a search string into terms, left to right.

    Args:
        query: Raw search box contents

    Returns:
        Ordered list of QueryTerm; empty for blank input
    """
    terms: List[QueryTerm] = []
    if not query:
        return terms

    for match in QUERY_RE.finditer(query):
        requirement, token = _split_sign(match.group(0))
        quoted = match.group("quoted") is not None

        if token.startswith('"'):
            # Unterminated quotes stay literal
            terms.append(QueryTerm(_unquote(token), PHRASE, requirement) if quoted
                         else QueryTerm(token, TERM, requirement))
            continue

        if token.startswith("#") and len(token) > 1:
            terms.append(QueryTerm(token[1:], HASHTAG, requirement))
            continue

        field, sep, value = token.partition(":")
        if sep and field:
            terms.append(QueryTerm(_unquote(value) if quoted else value, field, requirement))
            continue

        terms.append(QueryTerm(token, TERM, requirement))

    return terms


def _field_form(term: QueryTerm) -> str:
    value = f'"{term.term}"' if re.search(r"\s", term.term) else term.term
    return f"{term.type}:{value}"


def format_query_term(term: QueryTerm) -> str:
    """
    Render one term so that it parses back to itself.

    Shorthand (``"phrase"``, ``#tag``, bare words) is used where it survives
    re-parsing; otherwise the explicit ``type:value`` form is written, e.g. an
    empty phrase becomes ``phrase:`` and the word ``-x`` becomes ``term:-x``.
    """
    prefix = _PREFIXES[term.requirement]
    if term.type == PHRASE:
        short = f'"{term.term}"'
    elif term.type == HASHTAG:
        short = f"#{term.term}"
    elif term.type == TERM:
        short = term.term
    else:
        return prefix + _field_form(term)

    if parse_query_terms(prefix + short) == [term]:
        return prefix + short
    return prefix + _field_form(term)


def format_query_terms(terms: Iterable[QueryTerm]) -> str:
    """Render terms back into a canonical search string."""
    return " ".join(format_query_term(term) for term in terms)
