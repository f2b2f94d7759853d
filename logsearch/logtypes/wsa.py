"""Web proxy access log (``wsalog``)."""

from logsearch.data.schema import SortOrder
from logsearch.search.columns import Column, ColumnKind, ColumnRegistry

from .base import LogType
from .common import CAT_STANDARD, identifier_columns, standard_columns

CAT_VERDICT = "Verdict"
CAT_POLICY = "Policies"

WSA_COLUMNS = [
    Column("clientIp", "wsa.request.clientIp", "Client IP", CAT_STANDARD),
    Column("category", "wsa.urlCategory", "URL Category", CAT_STANDARD),
    Column("aclDecisionBase", "wsa.aclDecisionBase", "Base Decision", CAT_STANDARD, kind=ColumnKind.UPPERCASE),
    Column("method", "wsa.request.httpMethod", "Method", CAT_STANDARD, kind=ColumnKind.UPPERCASE),
    Column("url", "wsa.request.url.raw", "URL", CAT_STANDARD),
    Column("status", "wsa.response.httpResponseCode", "Status", CAT_STANDARD, kind=ColumnKind.INTEGER),
    Column("mimeType", "wsa.response.mimeType", "MIME Type", CAT_STANDARD),
    Column("malwareCategory", "wsa.response.malwareCategory", "Malware Category", CAT_STANDARD),
    Column("sha256", "wsa.response.sha256Hash", "SHA256", CAT_STANDARD),
    Column("elapsedTime", "wsa.elapsedTime", "Elapsed Time", CAT_STANDARD, kind=ColumnKind.INTEGER,
           default_sort_order=SortOrder.DESC),
    Column("requestSize", "wsa.request.size", "Request Size", CAT_STANDARD, kind=ColumnKind.INTEGER,
           default_sort_order=SortOrder.DESC),
    Column("responseSize", "wsa.response.size", "Response Size", CAT_STANDARD, kind=ColumnKind.INTEGER,
           default_sort_order=SortOrder.DESC),
    Column("transactionResult", "wsa.transactionResult", "Transaction Result", CAT_VERDICT),
    Column("webReputationScore", "wsa.verdict.webReputationScore", "Web Reputation Score", CAT_VERDICT,
           kind=ColumnKind.INTEGER),
    Column("policies.decision", "wsa.policies.decision", "Decision Policy", CAT_POLICY),
    Column("policies.identity", "wsa.policies.identity", "Identity Policy", CAT_POLICY),
]

WSA = LogType(
    name="wsa",
    alias="wsalog",
    namespace="wsa",
    columns=ColumnRegistry.of(standard_columns(), WSA_COLUMNS, identifier_columns()),
    body_fields=("wsa.request.url",),
    highlight_fields=("wsa.request.url",),
    locator_param="wsa",
    payload_mapping={
        "properties": {
            "urlCategory": {"type": "keyword"},
            "aclDecisionBase": {"type": "keyword"},
            "transactionResult": {"type": "keyword"},
            "elapsedTime": {"type": "integer"},
            "request": {
                "properties": {
                    "clientIp": {"type": "ip"},
                    "httpMethod": {"type": "keyword"},
                    "url": {
                        "type": "text",
                        "analyzer": "code_keyword",
                        "fields": {"raw": {"type": "keyword", "ignore_above": 2048}},
                    },
                    "samName": {"type": "keyword"},
                    "size": {"type": "long"},
                }
            },
            "response": {
                "properties": {
                    "httpResponseCode": {"type": "short"},
                    "mimeType": {"type": "keyword"},
                    "malwareCategory": {"type": "keyword"},
                    "sha256Hash": {"type": "keyword"},
                    "size": {"type": "long"},
                }
            },
            "verdict": {"properties": {"webReputationScore": {"type": "float"}}},
            "policies": {
                "properties": {
                    "decision": {"type": "keyword"},
                    "identity": {"type": "keyword"},
                }
            },
        }
    },
)
