"""
Windows event log (``msvistalog``).

Columns cover the System block of every event plus the logon fields of the
security channel's logon and Kerberos events.
"""

from logsearch.search.columns import Column, ColumnKind, ColumnRegistry

from .base import LogType
from .common import CAT_STANDARD, identifier_columns, standard_columns

CAT_LOGON = "Logon"

MSVISTA_COLUMNS = [
    Column("computer", "msvistalog.system.computer", "Computer", CAT_STANDARD),
    Column("provider", "msvistalog.system.provider.eventSourceName", "Provider", CAT_STANDARD),
    Column("event", "msvistalog.system.eventId", "Event ID", CAT_STANDARD, kind=ColumnKind.INTEGER),
    Column("channel", "msvistalog.system.channel", "Channel", CAT_STANDARD),
    Column("process", "msvistalog.system.execution.processId", "Process ID", CAT_STANDARD,
           kind=ColumnKind.INTEGER),
    Column("thread", "msvistalog.system.execution.threadId", "Thread ID", CAT_STANDARD,
           kind=ColumnKind.INTEGER),
    Column("opcode", "msvistalog.system.opcode", "Opcode", CAT_STANDARD, kind=ColumnKind.INTEGER),
    Column("user", "msvistalog.system.samName", "User", CAT_STANDARD, kind=ColumnKind.UPPERCASE),
    Column("activity", "msvistalog.system.correlation.activityId", "Activity", CAT_STANDARD,
           kind=ColumnKind.UPPERCASE),
    Column("task", "msvistalog.system.task", "Task", CAT_STANDARD, kind=ColumnKind.INTEGER),
    Column("logon.logonType", "msvistalog.logon.logonType", "Logon Type", CAT_LOGON, kind=ColumnKind.INTEGER),
    Column("logon.logonProcessName", "msvistalog.logon.logonProcessName", "Logon Process Name", CAT_LOGON),
    Column("logon.authenticationPackageName", "msvistalog.logon.authenticationPackageName",
           "Auth Package Name", CAT_LOGON),
    Column("logon.workstationName", "msvistalog.logon.workstationName", "Workstation Name", CAT_LOGON),
    Column("logon.processName", "msvistalog.logon.processName", "Process Name", CAT_LOGON),
    Column("logon.statusCode", "msvistalog.logon.statusCode", "Status Code", CAT_LOGON, kind=ColumnKind.INTEGER),
    Column("logon.subStatusCode", "msvistalog.logon.subStatusCode", "Sub-Status Code", CAT_LOGON,
           kind=ColumnKind.INTEGER),
    Column("logon.memberName", "msvistalog.logon.memberName", "Member Name", CAT_LOGON,
           kind=ColumnKind.LOWERCASE),
    Column("logon.memberSid", "msvistalog.logon.memberSid", "Member SID", CAT_LOGON, kind=ColumnKind.UPPERCASE),
    Column("logon.ticketEncryptionType", "msvistalog.logon.ticketEncryptionType", "Ticket Encryption Type",
           CAT_LOGON, kind=ColumnKind.INTEGER),
]

MSVISTA = LogType(
    name="msvista",
    alias="msvistalog",
    namespace="msvistalog",
    columns=ColumnRegistry.of(standard_columns(), MSVISTA_COLUMNS, identifier_columns()),
    body_fields=("log.message",),
    highlight_fields=("log.message",),
    locator_param="vl",
    payload_mapping={
        "properties": {
            "category": {"type": "keyword"},
            "system": {
                "properties": {
                    "computer": {"type": "keyword"},
                    "provider": {
                        "properties": {
                            "name": {"type": "keyword"},
                            "guid": {"type": "keyword"},
                            "eventSourceName": {"type": "keyword"},
                        }
                    },
                    "eventId": {"type": "integer"},
                    "eventType": {"type": "keyword"},
                    "channel": {"type": "keyword"},
                    "execution": {
                        "properties": {
                            "processId": {"type": "integer"},
                            "threadId": {"type": "integer"},
                        }
                    },
                    "opcode": {"type": "integer"},
                    "samName": {"type": "keyword"},
                    "correlation": {"properties": {"activityId": {"type": "keyword"}}},
                    "task": {"type": "integer"},
                }
            },
            "logon": {
                "properties": {
                    "logonType": {"type": "integer"},
                    "logonProcessName": {"type": "keyword"},
                    "authenticationPackageName": {"type": "keyword"},
                    "workstationName": {"type": "keyword"},
                    "processName": {"type": "keyword"},
                    "statusCode": {"type": "long"},
                    "subStatusCode": {"type": "long"},
                    "memberName": {"type": "keyword"},
                    "memberSid": {"type": "keyword"},
                    "ticketEncryptionType": {"type": "integer"},
                }
            },
        }
    },
)
