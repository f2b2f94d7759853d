"""Endpoint protection reports (``cylancelog``)."""

from logsearch.index.mappings import keyword_text
from logsearch.search.columns import Column, ColumnKind, ColumnRegistry

from .base import LogType
from .common import CAT_STANDARD, identifier_columns, standard_columns

CAT_THREAT = "Threat"

CYLANCE_COLUMNS = [
    Column("eventType", "cylance.eventType", "Event Type", CAT_STANDARD),
    Column("eventName", "cylance.eventName", "Event Name", CAT_STANDARD),
    Column("device", "cylance.device", "Device", CAT_STANDARD),
    Column("agentVersion", "cylance.agentVersion", "Agent Version", CAT_STANDARD),
    Column("mac", "cylance.mac", "MAC", CAT_STANDARD),
    Column("processId", "cylance.processId", "Process ID", CAT_STANDARD, kind=ColumnKind.INTEGER),
    Column("processName", "cylance.processName.raw", "Process Name", CAT_STANDARD),
    Column("os", "cylance.os.raw", "OS", CAT_STANDARD),
    Column("loginName", "cylance.loginName", "Login Name", CAT_STANDARD),
    Column("violationType", "cylance.violationType", "Violation Type", CAT_STANDARD),
    Column("zone", "cylance.zone", "Zone", CAT_STANDARD),
    Column("fileName", "cylance.fileName.raw", "File Name", CAT_THREAT),
    Column("fullPath", "cylance.fullPath.raw", "Full Path", CAT_THREAT),
    Column("driveType", "cylance.driveType", "Drive Type", CAT_THREAT),
    Column("sha256", "cylance.sha256", "SHA256", CAT_THREAT, kind=ColumnKind.UPPERCASE),
    Column("md5", "cylance.md5", "MD5", CAT_THREAT, kind=ColumnKind.UPPERCASE),
    Column("status", "cylance.status", "Status", CAT_THREAT),
    Column("isRunning", "cylance.isRunning", "Running", CAT_THREAT, kind=ColumnKind.BOOLEAN),
    Column("autoRun", "cylance.autoRun", "Auto Run", CAT_THREAT, kind=ColumnKind.BOOLEAN),
    Column("threatClass", "cylance.threatClass", "Threat Class", CAT_THREAT),
]

_KEYWORDS = [
    "eventType", "eventName", "device", "agentVersion", "mac", "samName", "loginName", "violationType",
    "zone", "driveType", "sha256", "md5", "status", "fileType", "detectedBy", "threatClass",
    "threatSubClass", "policy", "category", "userName", "userEmail", "reason",
]

CYLANCE = LogType(
    name="cylance",
    alias="cylancelog",
    namespace="cylance",
    columns=ColumnRegistry.of(standard_columns(), CYLANCE_COLUMNS, identifier_columns()),
    body_fields=("cylance.message",),
    highlight_fields=("cylance.message",),
    locator_param="cy",
    payload_mapping={
        "properties": {
            **{name: {"type": "keyword"} for name in _KEYWORDS},
            "ip": {"type": "ip"},
            "message": {"type": "text"},
            "auditMessage": {"type": "text"},
            "processId": {"type": "integer"},
            "processName": keyword_text(),
            "os": keyword_text(),
            "fileName": keyword_text("simple"),
            "fullPath": keyword_text("simple"),
            "cylanceScore": {"type": "float"},
            "isRunning": {"type": "boolean"},
            "autoRun": {"type": "boolean"},
        }
    },
)
