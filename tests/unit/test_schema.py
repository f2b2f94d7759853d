"""
Unit tests for the document schema.

Tests the Pydantic models and schema definitions.
"""

import pytest
from datetime import datetime, timezone, timedelta
from pydantic import ValidationError

from logsearch.data.schema import (
    DocumentId,
    Identifiers,
    LoadSummary,
    LogDocument,
    LogRecord,
    SearchRequest,
    SortOrder,
)
from logsearch.index.mappings import LOG_COMMON
from logsearch.search.locator import decode_locator


class TestIdentifiers:
    """Test Identifiers model."""

    def test_scalars_become_lists(self):
        """Test that single values are wrapped in lists."""
        ids = Identifiers(ip="10.0.0.1", port=445)
        assert ids.ip == ["10.0.0.1"]
        assert ids.port == [445]

    def test_uppercase_fields(self):
        """Test that SAM names, SIDs and domains are uppercased."""
        ids = Identifiers.model_validate({"samName": "alice", "sid": "s-1-5-18", "domain": ["corp", "Corp.Example"]})
        assert ids.sam_name == ["ALICE"]
        assert ids.sid == ["S-1-5-18"]
        assert ids.domain == ["CORP", "CORP.EXAMPLE"]

    def test_other_fields_keep_case(self):
        ids = Identifiers(hostname="dc01", upn="Alice@corp.example")
        assert ids.hostname == ["dc01"]
        assert ids.upn == ["Alice@corp.example"]


class TestLogRecord:
    """Test LogRecord model."""

    def test_minimal_valid_record(self):
        """Test creating a minimal valid LogRecord."""
        record = LogRecord.model_validate({"recordFinder": "A1", "receivedTime": "2017-03-15T10:40:01Z"})

        assert record.record_finder == "A1"
        assert record.received_time == datetime(2017, 3, 15, 10, 40, 1, tzinfo=timezone.utc)
        assert record.tag == []
        assert record.event_time is None

    def test_times_normalized_to_utc(self):
        """Test that offsets are converted and naive times assumed UTC."""
        record = LogRecord(
            record_finder="A1",
            received_time=datetime(2017, 3, 15, 12, 0, tzinfo=timezone(timedelta(hours=2))),
            event_time=datetime(2017, 3, 15, 9, 0),
        )
        assert record.received_time == datetime(2017, 3, 15, 10, 0, tzinfo=timezone.utc)
        assert record.received_time.utcoffset() == timedelta(0)
        assert record.event_time.tzinfo is not None

    def test_single_tag_listified(self):
        record = LogRecord(record_finder="A1", received_time=datetime.now(timezone.utc), tag="logon")
        assert record.tag == ["logon"]

    @pytest.mark.parametrize("finder", ["", "with-dash"])
    def test_invalid_record_finder(self, finder):
        """Test that record finders cannot be empty or hold the locator separator."""
        with pytest.raises(ValidationError):
            LogRecord(record_finder=finder, received_time=datetime.now(timezone.utc))

    def test_missing_received_time(self):
        with pytest.raises(ValidationError):
            LogRecord(record_finder="A1")

    def test_port_range(self):
        with pytest.raises(ValidationError):
            LogRecord(record_finder="A1", received_time=datetime.now(timezone.utc), receiving_port=70000)

    def test_ip_protocol_fits_mapping(self):
        """Test that the full protocol number range validates and is mapped wide enough."""
        record = LogRecord(record_finder="A1", received_time=datetime.now(timezone.utc), ip_protocol=253)
        assert record.ip_protocol == 253
        assert LOG_COMMON["properties"]["ipProtocol"]["type"] in ("short", "integer")
        with pytest.raises(ValidationError):
            LogRecord(record_finder="A1", received_time=datetime.now(timezone.utc), ip_protocol=256)


class TestLogDocument:
    """Test LogDocument model."""

    @pytest.fixture
    def document(self, sample_document):
        return LogDocument.model_validate({k: v for k, v in sample_document.items() if k != "_id"})

    def test_payload_kept(self, document):
        """Test that the payload beside ``log`` passes through."""
        source = document.to_source()
        assert source["msvistalog"]["system"]["eventId"] == 4624

    def test_source_uses_wire_names(self, document):
        source = document.to_source()
        assert source["log"]["recordFinder"] == "A1B2C3"
        assert source["log"]["source"]["samName"] == ["ALICE"]
        assert "eventTime" in source["log"]
        assert "ipProtocol" not in source["log"]

    def test_locator(self, document):
        """Test that the document's permalink decodes to its own fields."""
        decoded = decode_locator(document.locator)
        assert decoded.record_finder == "A1B2C3"
        assert decoded.received_time == document.log.received_time


class TestRequestModels:
    """Test request and result models."""

    def test_search_request_defaults(self):
        request = SearchRequest()
        assert request.q == ""
        assert request.start == "now-1d"
        assert request.end == "now"
        assert request.sort_order == SortOrder.DESC
        assert request.size is None
        assert request.from_ == 0

    def test_search_request_wire_names(self):
        request = SearchRequest.model_validate(
            {"q": "+alice", "sortProp": "user", "sortOrder": "asc", "size": 10, "from": 20}
        )
        assert request.sort_prop == "user"
        assert request.sort_order == SortOrder.ASC
        assert request.from_ == 20

    def test_search_request_limits(self):
        with pytest.raises(ValidationError):
            SearchRequest.model_validate({"size": 20000})
        with pytest.raises(ValidationError):
            SearchRequest.model_validate({"sortOrder": "sideways"})

    def test_document_id_and_summary(self):
        assert DocumentId(index="wsalog-1", id="x").id == "x"
        summary = LoadSummary(index="wsalog-1", alias="wsalog", pushed=3, indexed=2, failed=1)
        assert summary.model_dump()["failed"] == 1
