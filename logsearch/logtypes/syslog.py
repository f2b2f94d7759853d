"""Generic syslog: the common ``log`` object plus facility and severity."""

from logsearch.search.columns import Column, ColumnRegistry

from .base import LogType
from .common import CAT_STANDARD, identifier_columns, standard_columns

SYSLOG = LogType(
    name="syslog",
    alias="raw-syslog",
    namespace="syslog",
    columns=ColumnRegistry.of(
        standard_columns(),
        [Column("facility", "syslog.facility", "Facility", CAT_STANDARD),
         Column("severity", "syslog.severity", "Severity", CAT_STANDARD)],
        identifier_columns(),
    ),
    body_fields=("log.message",),
    highlight_fields=("log.message",),
    locator_param="sl",
    payload_mapping={
        "properties": {
            "facility": {"type": "keyword"},
            "severity": {"type": "keyword"},
            "program": {"type": "keyword"},
        }
    },
)
