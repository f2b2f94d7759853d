"""
Data module: document schema and ingestion of ETL output.

    ETL adapter output (NDJSON / JSON array)
        ↓
    Ingestion (logsearch/data/ingestion.py) → LogDocument
        ↓
    Bulk Indexing Pipeline (logsearch/index)
"""

from logsearch.data.ingestion import (
    BaseDocumentSource,
    DocumentIngestionError,
    IngestedDocument,
    JSONArrayDocumentSource,
    NDJSONDocumentSource,
    ingest_documents,
    open_document_source,
)
from logsearch.data.schema import (
    DocumentId,
    Identifiers,
    LoadSummary,
    LogDocument,
    LogRecord,
    SearchRequest,
    SortOrder,
)

__all__ = [
    # Schema
    "LogDocument",
    "LogRecord",
    "Identifiers",
    "DocumentId",
    "SearchRequest",
    "SortOrder",
    "LoadSummary",

    # Ingestion
    "ingest_documents",
    "open_document_source",
    "BaseDocumentSource",
    "NDJSONDocumentSource",
    "JSONArrayDocumentSource",
    "IngestedDocument",
    "DocumentIngestionError",
]
