"""
Canonical document schema for indexed log entries.

Every log domain produces documents of the form ``{"log": {...}, "<namespace>":
{...}}``. The ``log`` object is common to all of them and is what the search
layer, the permalink codec and the loader rely on; the payload beside it is
specific to each log type and passed through untouched.

Design rationale:
- Field names on the wire are camelCase (``recordFinder``); Python attributes
  are snake_case, bridged with aliases
- All timestamps are timezone-aware UTC
- Identifier values are always lists; SAM names, SIDs and domains are uppercase
- ``log.all`` is filled by the index mapping's copy_to rules, never by clients
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_UPPERCASE_IDENTIFIERS = ("sam_name", "sid", "domain")


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Identifiers(_CamelModel):
    """
    Identifiers seen on one side of an event.

    Each attribute may hold several values (a logon event can name both a
    NetBIOS and a DNS domain).
    """

    ip: Optional[List[str]] = None
    hostname: Optional[List[str]] = None
    fqdn: Optional[List[str]] = None
    fqdn_breakdown: Optional[List[str]] = None
    sam_name: Optional[List[str]] = None
    service_name: Optional[List[str]] = None
    sid: Optional[List[str]] = None
    port: Optional[List[int]] = None
    domain: Optional[List[str]] = None
    upn: Optional[List[str]] = None
    logon_id: Optional[List[str]] = None

    @field_validator("*", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if value is None or isinstance(value, list):
            return value
        return [value]

    @field_validator(*_UPPERCASE_IDENTIFIERS)
    @classmethod
    def _uppercase(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        return [item.upper() for item in value]


class LogRecord(_CamelModel):
    """
    The common ``log`` object.

    Attributes:
        record_finder: Discriminator unique within a receivedTime bucket
        receiving_port: Port the collector received the event on
        reporting_ip: Address of the reporting device
        received_time: When the collector received the event
        event_time: Time reported by the source
        tag: Free-form labels
        message: Human readable message body
        ip_protocol: IP protocol number, when the event has one
    """

    record_finder: str = Field(..., min_length=1, pattern=r"^[^-]+$")
    receiving_port: Optional[int] = Field(default=None, ge=0, le=65535)
    reporting_ip: Optional[str] = None
    received_time: datetime
    event_time: Optional[datetime] = None
    tag: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    ip_protocol: Optional[int] = Field(default=None, ge=0, le=255)
    source: Optional[Identifiers] = None
    target: Optional[Identifiers] = None
    all: Optional[Identifiers] = None

    @field_validator("received_time", "event_time")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("tag", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class LogDocument(BaseModel):
    """
    A complete indexed document: the common ``log`` object plus a payload.

    Payload objects are kept as extra fields so each log type can carry its
    own structure without a model per type.
    """

    model_config = ConfigDict(extra="allow")

    log: LogRecord

    def to_source(self) -> Dict[str, Any]:
        """JSON-ready ``_source`` body."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @property
    def locator(self) -> str:
        from logsearch.search.locator import encode_locator

        return encode_locator(self.log.received_time, self.log.record_finder)


class DocumentId(BaseModel):
    """Physical address of a document: generation name and backend id."""

    index: str
    id: str


class SearchRequest(BaseModel):
    """
    A search as submitted by the UI.

    ``start`` and ``end`` are date specifications such as ``now-1d/h``.
    """

    model_config = ConfigDict(populate_by_name=True)

    q: str = Field("", description="Search box contents")
    start: str = Field("now-1d", description="Window start (rounded down)")
    end: str = Field("now", description="Window end (rounded up)")
    sort_prop: Optional[str] = Field(default=None, alias="sortProp")
    sort_order: SortOrder = Field(default=SortOrder.DESC, alias="sortOrder")
    size: Optional[int] = Field(default=None, ge=0, le=10000)
    from_: int = Field(default=0, ge=0, alias="from")


class LoadSummary(BaseModel):
    """Outcome of one index generation load."""

    index: str
    alias: str
    pushed: int = 0
    indexed: int = 0
    failed: int = 0
