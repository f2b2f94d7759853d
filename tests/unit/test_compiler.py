"""
Unit tests for the query compiler.

Tests the time window filters, term routing into bool clauses and the
handling of columns, tags and unknown fields.
"""

from datetime import datetime, timedelta, timezone

import pytest

from logsearch.core.config import SearchConfig
from logsearch.core.exceptions import InvalidTimeWindowError
from logsearch.logtypes import MSVISTA, SQL
from logsearch.search.compiler import QueryCompiler, compile_query, format_timestamp, validate_window
from logsearch.search.terms import PHRASE, QueryTerm, Requirement, parse_query_terms

START = datetime(2017, 3, 15, 10, 42, 17, 250000, tzinfo=timezone.utc)
END = datetime(2017, 3, 15, 11, 5, 30, tzinfo=timezone.utc)


def compile_bool(query: str, log_type=MSVISTA, settings=None):
    return compile_query(parse_query_terms(query), log_type, START, END, settings)["bool"]


class TestTimeWindow:
    """Test the two range filters that bound every query."""

    def test_hour_then_minute_ranges(self):
        """Test the coarse hour range followed by the precise minute range."""
        filters = compile_bool("")["filter"]
        hour, minute = filters[0]["range"]["log.eventTime"], filters[1]["range"]["log.eventTime"]

        assert hour == {"gte": "2017-03-15T10:00:00.000Z", "lt": "2017-03-15T12:00:00.000Z"}
        assert minute == {"gte": "2017-03-15T10:42:00.000Z", "lt": "2017-03-15T11:06:00.000Z"}

    def test_hour_range_contains_minute_range(self):
        """Test that the coarse range always covers the precise one."""
        filters = compile_bool("")["filter"]
        hour, minute = filters[0]["range"]["log.eventTime"], filters[1]["range"]["log.eventTime"]
        assert hour["gte"] <= minute["gte"]
        assert minute["lt"] <= hour["lt"]

    def test_equal_bounds_rejected(self):
        with pytest.raises(InvalidTimeWindowError):
            compile_query([], MSVISTA, START, START)

    def test_inverted_bounds_rejected(self):
        with pytest.raises(InvalidTimeWindowError) as excinfo:
            compile_query([], MSVISTA, END, START)
        assert excinfo.value.code == "validation"

    def test_non_datetime_rejected(self):
        with pytest.raises(InvalidTimeWindowError):
            validate_window("now-1d", END)

    def test_naive_bounds_treated_as_utc(self):
        validate_window(datetime(2017, 3, 15, 10), datetime(2017, 3, 15, 11))

    def test_format_timestamp(self):
        assert format_timestamp(START) == "2017-03-15T10:42:17.250Z"
        offset = START.astimezone(timezone(timedelta(hours=2)))
        assert format_timestamp(offset) == "2017-03-15T10:42:17.250Z"


class TestTermRouting:
    """Test where each kind of term lands in the bool query."""

    def test_empty_query_has_no_scoring_clauses(self):
        query = compile_bool("")
        assert query["must"] == []
        assert query["should"] == []
        assert query["must_not"] == []
        assert query["minimum_should_match"] == "1<75%"

    def test_lonely_terms_are_batched(self):
        """Test that unsigned words become one combined relevance clause."""
        should = compile_bool("failed logon attempt")["should"]
        assert len(should) == 1
        exact, fuzzy = should[0]["bool"]["should"]
        assert exact["multi_match"]["query"] == "failed logon attempt"
        assert fuzzy["multi_match"]["query"] == "failed logon attempt"
        assert "fuzziness" in fuzzy["multi_match"]
        assert "fuzziness" not in exact["multi_match"]

    def test_lonely_batching_can_be_disabled(self):
        should = compile_bool("failed logon", settings=SearchConfig(batch_should_terms=False))["should"]
        assert [clause["bool"]["should"][0]["multi_match"]["query"] for clause in should] == ["failed", "logon"]

    def test_signed_terms_get_exact_and_fuzzy(self):
        """Test must and must_not terms with boosts from settings."""
        settings = SearchConfig(exact_boost=3.0, fuzzy_boost=0.5)
        query = compile_bool("+alice -bob", settings=settings)

        (must,) = query["must"]
        (must_not,) = query["must_not"]
        exact, fuzzy = must["bool"]["should"]
        assert exact["multi_match"] == {
            "query": "alice",
            "type": "most_fields",
            "fields": ["log.message"],
            "boost": 3.0,
        }
        assert fuzzy["multi_match"]["boost"] == 0.5
        assert must_not["bool"]["should"][0]["multi_match"]["query"] == "bob"

    def test_phrase_has_no_fuzzy_variant(self):
        should = compile_bool('"account was locked"')["should"]
        assert should == [
            {
                "multi_match": {
                    "query": "account was locked",
                    "type": "phrase",
                    "fields": ["log.message"],
                    "boost": 2.0,
                }
            }
        ]

    def test_star_is_match_all_filter(self):
        query = compile_bool("+*")
        assert {"match_all": {}} in query["filter"]

    def test_body_fields_follow_log_type(self):
        """Test that free text searches the log type's body fields."""
        (clause,) = compile_bool("+select", log_type=SQL)["must"]
        assert clause["bool"]["should"][0]["multi_match"]["fields"] == ["sql.TSQLCommand", "sql.TextData"]


class TestFieldTerms:
    """Test hashtags, columns, existence and fallback terms."""

    def test_hashtag_and_tag_field(self):
        query = compile_bool("+#logon -tag:noise")
        assert {"term": {"log.tag": "logon"}} in query["filter"]
        assert query["must_not"] == [{"term": {"log.tag": "noise"}}]

    def test_column_value_is_coerced(self):
        """Test that known columns filter on their backend field."""
        query = compile_bool("+user:alice +event:4624")
        assert {"term": {"msvistalog.system.samName": "ALICE"}} in query["filter"]
        assert {"term": {"msvistalog.system.eventId": 4624}} in query["filter"]

    def test_uncoercible_value_is_dropped(self):
        """Test that a non-number for an integer column adds nothing."""
        query = compile_bool("+event:abc")
        assert len(query["filter"]) == 2
        assert query["must"] == []

    def test_unsearchable_column_is_dropped(self):
        query = compile_bool("+message:hello")
        assert len(query["filter"]) == 2

    def test_exists(self):
        query = compile_bool("+exists:user")
        assert {"exists": {"field": "msvistalog.system.samName"}} in query["filter"]

    def test_exists_unknown_column_dropped(self):
        query = compile_bool("+exists:nosuchcolumn")
        assert len(query["filter"]) == 2

    def test_unknown_field_uses_namespace(self):
        """Test the best-effort filter under the payload namespace."""
        query = compile_bool("-keywords:0x8020")
        assert query["must_not"] == [{"term": {"msvistalog.keywords": "0x8020"}}]

    def test_should_field_term_lands_in_should(self):
        query = compile_bool("channel:Security")
        assert query["should"] == [{"term": {"msvistalog.system.channel": "Security"}}]

    def test_identifier_column(self):
        query = compile_bool("+source.samName:bob +domain:corp")
        assert {"term": {"log.source.samName": "BOB"}} in query["filter"]
        assert {"term": {"log.all.domain": "CORP"}} in query["filter"]


class TestQueryCompiler:
    """Test the compiler object directly."""

    def test_compile_is_pure(self):
        compiler = QueryCompiler(MSVISTA, SearchConfig())
        terms = [QueryTerm("locked", PHRASE, Requirement.MUST)]
        assert compiler.compile(terms, START, END) == compiler.compile(terms, START, END)
