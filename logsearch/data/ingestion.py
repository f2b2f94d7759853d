"""
Document ingestion from ETL output files.

Format-specific adapters (event log converters, proxy log parsers, endpoint
report captures) write their normalized documents as JSON. This module reads
those files back for the bulk loader.

Design:
- NDJSON (one document per line) and JSON array files are both accepted
- Iterator-based for memory efficiency with large files (NDJSON is streamed)
- Bad rows are logged and skipped; they don't crash the load
- An optional ``_id`` key on a row becomes the backend document id
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from pydantic import ValidationError

from logsearch.core.exceptions import LogSearchError

from .schema import LogDocument

logger = logging.getLogger(__name__)


class DocumentIngestionError(LogSearchError):
    """Base exception for document ingestion failures."""

    code = "ingestion"


@dataclass
class IngestedDocument:
    """A validated document and the id it should be indexed under."""

    document: LogDocument
    doc_id: Optional[str] = None
    line_number: Optional[int] = None


class BaseDocumentSource(ABC):
    """
    Abstract base class for document sources.

    Subclasses yield raw dicts; validation into ``LogDocument`` is shared.
    """

    def __init__(self, filepath: Union[str, Path], encoding: str = "utf-8"):
        """
        Initialize document source.

        Args:
            filepath: Path to the ETL output file
            encoding: File encoding (default utf-8)

        Raises:
            DocumentIngestionError: If file doesn't exist
        """
        self.filepath = Path(filepath)
        self.encoding = encoding
        self.skipped = 0

        if not self.filepath.exists():
            raise DocumentIngestionError(f"Document file not found: {self.filepath}")

    @abstractmethod
    def rows(self) -> Iterator[tuple]:
        """
        Yield ``(position, raw dict)`` pairs from the file.
        """
        pass

    def ingest(self) -> Iterator[IngestedDocument]:
        """
        Validate rows into documents.

        Yields:
            IngestedDocument for every row that validates

        Notes:
            - Rows failing validation are counted in ``skipped`` and logged
        """
        for position, row in self.rows():
            doc_id = row.pop("_id", None)
            try:
                document = LogDocument.model_validate(row)
            except ValidationError as e:
                self.skipped += 1
                logger.warning("Invalid document at %s:%s: %s", self.filepath, position, e.errors()[:3])
                continue
            yield IngestedDocument(document, str(doc_id) if doc_id is not None else None, position)


class NDJSONDocumentSource(BaseDocumentSource):
    """
    Reads newline-delimited JSON, one document per line.

    Example:
        {"log": {"recordFinder": "a1", "receivedTime": "2017-03-01T10:00:00Z"}, ...}
    """

    def rows(self) -> Iterator[tuple]:
        try:
            with open(self.filepath, "rb") as f:
                for line_num, raw in enumerate(f, start=1):
                    try:
                        line = raw.decode(self.encoding).strip().lstrip("\ufeff")
                    except UnicodeDecodeError as e:
                        self.skipped += 1
                        logger.warning("Undecodable bytes at line %d: %s", line_num, e)
                        continue
                    if not line:
                        continue
                    try:
                        row = json.loads(line)
                    except json.JSONDecodeError:
                        self.skipped += 1
                        logger.warning("Malformed JSON at line %d: %s", line_num, line[:100])
                        continue
                    if not isinstance(row, dict):
                        self.skipped += 1
                        logger.warning("NDJSON line %d not an object: %s", line_num, type(row).__name__)
                        continue
                    yield line_num, row
        except OSError as e:
            logger.error("Error reading document file %s: %s", self.filepath, e)
            raise DocumentIngestionError(f"Failed to read documents: {e}") from e


class JSONArrayDocumentSource(BaseDocumentSource):
    """
    Reads a single JSON array of documents.

    File-level JSON errors are fatal.
    """

    def rows(self) -> Iterator[tuple]:
        try:
            with open(self.filepath, "r", encoding=self.encoding) as f:
                content = f.read().lstrip("\ufeff").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentIngestionError(f"Failed to read documents: {e}") from e

        try:
            rows = json.loads(content)
        except json.JSONDecodeError as e:
            raise DocumentIngestionError(f"Invalid JSON array: {e}") from e

        if not isinstance(rows, list):
            raise DocumentIngestionError("JSON document file must hold an array")

        for idx, row in enumerate(rows):
            if isinstance(row, dict):
                yield idx, row
            else:
                self.skipped += 1
                logger.warning("Non-object entry at index %d: %s", idx, type(row).__name__)


def open_document_source(filepath: Union[str, Path], format: str = "auto") -> BaseDocumentSource:
    """
    Pick a source for ``filepath``.

    Args:
        filepath: Path to the ETL output file
        format: "ndjson", "json" or "auto" (sniff the first character)

    Raises:
        DocumentIngestionError: If file not found or format unsupported
    """
    filepath = Path(filepath)

    if format == "auto":
        if not filepath.exists():
            raise DocumentIngestionError(f"Document file not found: {filepath}")
        try:
            with open(filepath, "rb") as f:
                head = f.read(1024)
        except OSError as e:
            raise DocumentIngestionError(f"Failed to read documents: {e}") from e
        format = "json" if head.lstrip(b"\xef\xbb\xbf \t\r\n").startswith(b"[") else "ndjson"

    if format == "ndjson":
        return NDJSONDocumentSource(filepath)
    if format == "json":
        return JSONArrayDocumentSource(filepath)
    raise DocumentIngestionError(f"Unknown format: {format}")


def ingest_documents(filepath: Union[str, Path], format: str = "auto") -> Iterator[IngestedDocument]:
    """
    Convenience function to read validated documents from a file.

    Example:
        for item in ingest_documents("msvista.ndjson"):
            loader.push(item.document.to_source(), item.doc_id)
    """
    yield from open_document_source(filepath, format).ingest()
