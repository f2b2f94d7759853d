"""
Columns shared by every log type: the standard ``log`` fields and the
identifier groups (all / source / target).
"""

from typing import List

from logsearch.data.schema import SortOrder
from logsearch.search.columns import Column, ColumnKind

CAT_STANDARD = "Standard"
CAT_ALL = "Identifiers"
CAT_SOURCE = "Source Identifiers"
CAT_TARGET = "Target Identifiers"

# Identifier name -> (display name, coercion)
_IDENTIFIERS = [
    ("ip", "IP", ColumnKind.DEFAULT),
    ("port", "Port", ColumnKind.INTEGER),
    ("hostname", "Hostname", ColumnKind.UPPERCASE),
    ("fqdn", "FQDN", ColumnKind.LOWERCASE),
    ("samName", "SAM Name", ColumnKind.UPPERCASE),
    ("sid", "SID", ColumnKind.UPPERCASE),
    ("domain", "Domain", ColumnKind.UPPERCASE),
    ("serviceName", "Service Name", ColumnKind.DEFAULT),
    ("upn", "UPN", ColumnKind.DEFAULT),
    ("logonId", "Logon ID", ColumnKind.DEFAULT),
]


def standard_columns() -> List[Column]:
    return [
        Column("receivedTime", "log.receivedTime", "Received", CAT_STANDARD, default_sort_order=SortOrder.DESC),
        Column("eventTime", "log.eventTime", "Time", CAT_STANDARD, default_sort_order=SortOrder.DESC),
        Column("tag", "log.tag", "Tags", CAT_STANDARD, sortable=False),
        Column("reportingIp", "log.reportingIp", "Reporting IP", CAT_STANDARD),
        Column("receivingPort", "log.receivingPort", "Receiving Port", CAT_STANDARD, kind=ColumnKind.INTEGER),
        Column("ipProtocol", "log.ipProtocol", "IP Protocol", CAT_STANDARD, kind=ColumnKind.INTEGER),
        Column("recordFinder", "log.recordFinder", "Record Finder", CAT_STANDARD, sortable=False),
        Column("message", "log.message", "Message", CAT_STANDARD, sortable=False, searchable=False),
    ]


def identifier_columns() -> List[Column]:
    """``ip``, ``source.ip``, ``target.ip`` and so on for every identifier."""
    groups = [("", "log.all", "", CAT_ALL), ("source.", "log.source", "Source ", CAT_SOURCE),
              ("target.", "log.target", "Target ", CAT_TARGET)]
    columns: List[Column] = []
    for name_prefix, field_prefix, display_prefix, category in groups:
        for name, display, kind in _IDENTIFIERS:
            columns.append(
                Column(
                    f"{name_prefix}{name}",
                    f"{field_prefix}.{name}",
                    f"{display_prefix}{display}",
                    category,
                    kind=kind,
                )
            )
    return columns
