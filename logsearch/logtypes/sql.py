"""SQL Server audit trace (``sqllog``)."""

from logsearch.index.mappings import keyword_text
from logsearch.search.columns import Column, ColumnKind, ColumnRegistry

from .base import LogType
from .common import CAT_STANDARD, identifier_columns, standard_columns

_KEYWORDS = [
    "EventType", "DatabaseName", "DBUserName", "NTUserName", "NTDomainName", "HostName",
    "ApplicationName", "LoginName", "ServerName", "SchemaName", "ObjectName", "ObjectType",
    "TargetLoginName", "TargetUserName", "SID", "LoginSid",
]
_INTEGERS = ["DatabaseID", "Error", "Severity", "SPID", "State", "ClientProcessID", "EventClass", "EventSubClass"]

SQL_COLUMNS = [
    Column("eventType", "sql.EventType", "Event Type", CAT_STANDARD),
    Column("database", "sql.DatabaseName", "Database", CAT_STANDARD),
    Column("dbUser", "sql.DBUserName", "DB User", CAT_STANDARD),
    Column("ntUser", "sql.NTUserName", "NT User", CAT_STANDARD, kind=ColumnKind.UPPERCASE),
    Column("ntDomain", "sql.NTDomainName", "NT Domain", CAT_STANDARD, kind=ColumnKind.UPPERCASE),
    Column("host", "sql.HostName", "Host", CAT_STANDARD, kind=ColumnKind.UPPERCASE),
    Column("application", "sql.ApplicationName", "Application", CAT_STANDARD),
    Column("login", "sql.LoginName", "Login", CAT_STANDARD),
    Column("server", "sql.ServerName", "Server", CAT_STANDARD),
    Column("object", "sql.ObjectName", "Object", CAT_STANDARD),
    Column("spid", "sql.SPID", "SPID", CAT_STANDARD, kind=ColumnKind.INTEGER),
    Column("error", "sql.Error", "Error", CAT_STANDARD, kind=ColumnKind.INTEGER),
    Column("success", "sql.Success", "Success", CAT_STANDARD, kind=ColumnKind.BOOLEAN),
    Column("isSystem", "sql.IsSystem", "System", CAT_STANDARD, kind=ColumnKind.BOOLEAN),
]

SQL = LogType(
    name="sql",
    alias="sqllog",
    namespace="sql",
    columns=ColumnRegistry.of(standard_columns(), SQL_COLUMNS, identifier_columns()),
    body_fields=("sql.TSQLCommand", "sql.TextData"),
    highlight_fields=("sql.TSQLCommand", "sql.TextData"),
    locator_param="sq",
    payload_mapping={
        "properties": {
            "TSQLCommand": {"type": "text", "analyzer": "code_keyword"},
            "TextData": {"type": "text", "analyzer": "code_keyword"},
            **{name: {"type": "keyword"} for name in _KEYWORDS},
            **{name: {"type": "integer"} for name in _INTEGERS},
            "Duration": {"type": "long"},
            "IsSystem": {"type": "boolean"},
            "Success": {"type": "boolean"},
            "StartTime": {"type": "date", "format": "date_optional_time"},
            "EndTime": {"type": "date", "format": "date_optional_time"},
            "ObjectPath": keyword_text(),
        }
    },
)
