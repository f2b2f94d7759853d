"""
Unit tests for the scroll consumer.

Tests termination, cursor handling and the in-flight guard.
"""

import threading

import pytest
from elasticsearch import NotFoundError

from logsearch.core.exceptions import ScrollInProgressError
from logsearch.index.scroll import ScrollConsumer, get_all_entries, hits_to_frame

from conftest import make_api_error, make_hit, search_page


def hits(*ids):
    return [make_hit("wsalog-1", doc_id, {"log": {"message": f"m{doc_id}"}}) for doc_id in ids]


class TestScrollConsumer:
    """Test paging through a query."""

    def test_stops_when_total_reached(self, fake_es, scroll_settings):
        """Test that the consumer stops once fetched equals the total."""
        fake_es.search_responses.append(search_page(hits("1", "2"), {"value": 3}, "s1"))
        fake_es.scroll_responses.append(search_page(hits("3"), {"value": 3}, "s2"))

        consumer = ScrollConsumer(fake_es, "wsalog", settings=scroll_settings)
        assert [hit["_id"] for hit in consumer] == ["1", "2", "3"]
        assert consumer.done
        assert consumer.fetched == 3
        assert fake_es.calls_to("scroll") == [{"scroll_id": "s1", "scroll": "1m"}]
        assert fake_es.cleared == ["s2"]

    def test_stops_on_empty_page(self, fake_es, scroll_settings):
        """Test that an empty page ends production even below the total."""
        fake_es.search_responses.append(search_page(hits("1", "2"), {"value": 10}, "s1"))
        fake_es.scroll_responses.append(search_page([], {"value": 10}, "s1"))

        consumer = ScrollConsumer(fake_es, "wsalog", settings=scroll_settings)
        assert len(list(consumer)) == 2
        assert consumer.done
        assert fake_es.cleared == ["s1"]

    def test_integer_total(self, fake_es, scroll_settings):
        fake_es.search_responses.append(search_page(hits("1"), 1, "s1"))
        assert len(list(ScrollConsumer(fake_es, "wsalog", settings=scroll_settings))) == 1
        assert fake_es.calls_to("scroll") == []

    def test_open_request(self, fake_es, scroll_settings):
        """Test the first request: sorted by _doc, page size, keep-alive."""
        fake_es.search_responses.append(search_page([], {"value": 0}, "s1"))
        query = {"term": {"log.tag": "x"}}
        list(ScrollConsumer(fake_es, "wsalog", query, settings=scroll_settings, source=["log"]))

        (call,) = fake_es.calls_to("search")
        assert call["index"] == "wsalog"
        assert call["query"] == query
        assert call["sort"] == ["_doc"]
        assert call["size"] == 2
        assert call["scroll"] == "1m"
        assert call["source"] == ["log"]

    def test_pull_after_done_is_empty(self, fake_es, scroll_settings):
        fake_es.search_responses.append(search_page(hits("1"), {"value": 1}, "s1"))
        consumer = ScrollConsumer(fake_es, "wsalog", settings=scroll_settings)
        consumer.pull()
        assert consumer.pull() == []
        assert len(fake_es.calls_to("search")) == 1

    def test_not_restartable(self, fake_es, scroll_settings):
        fake_es.search_responses.append(search_page(hits("1"), {"value": 1}, "s1"))
        consumer = ScrollConsumer(fake_es, "wsalog", settings=scroll_settings)
        assert len(list(consumer)) == 1
        assert list(consumer) == []

    def test_close_releases_cursor(self, fake_es, scroll_settings):
        fake_es.search_responses.append(search_page(hits("1", "2"), {"value": 5}, "s1"))
        with ScrollConsumer(fake_es, "wsalog", settings=scroll_settings) as consumer:
            consumer.pull()
        assert consumer.done
        assert fake_es.cleared == ["s1"]

    def test_expired_cursor_on_clear_is_ignored(self, fake_es, scroll_settings):
        def expired(scroll_id, **kwargs):
            raise make_api_error(404, NotFoundError)

        fake_es.clear_scroll = expired
        fake_es.search_responses.append(search_page(hits("1"), {"value": 1}, "s1"))
        assert len(list(ScrollConsumer(fake_es, "wsalog", settings=scroll_settings))) == 1

    def test_overlapping_pull_rejected(self, fake_es, scroll_settings):
        """Test the in-flight guard while a pull is blocked on the backend."""
        entered = threading.Event()
        release = threading.Event()
        original_search = fake_es.search

        def slow_search(**kwargs):
            entered.set()
            release.wait(5)
            return original_search(**kwargs)

        fake_es.search = slow_search
        fake_es.search_responses.append(search_page(hits("1"), {"value": 1}, "s1"))
        consumer = ScrollConsumer(fake_es, "wsalog", settings=scroll_settings)

        worker = threading.Thread(target=consumer.pull)
        worker.start()
        assert entered.wait(5)
        with pytest.raises(ScrollInProgressError):
            consumer.pull()
        release.set()
        worker.join(5)
        assert consumer.done


class TestHelpers:
    """Test get_all_entries and hits_to_frame."""

    def test_get_all_entries(self, fake_es):
        fake_es.search_responses.append(search_page(hits("1", "2"), {"value": 2}, "s1"))
        assert [hit["_id"] for hit in get_all_entries(fake_es, "wsalog")] == ["1", "2"]

    def test_hits_to_frame(self):
        frame = hits_to_frame(hits("1", "2"))
        assert list(frame["_id"]) == ["1", "2"]
        assert list(frame["log.message"]) == ["m1", "m2"]
        assert frame.columns[0] == "_index"

    def test_hits_to_frame_empty(self):
        frame = hits_to_frame([])
        assert frame.empty
        assert list(frame.columns) == ["_index", "_id"]
