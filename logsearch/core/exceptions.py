"""
Custom exceptions for the log search platform.

These exceptions provide clear error semantics across the system.
Every error carries a short machine-readable ``code`` so the HTTP layer can
report it without string matching. Transport errors raised by the
Elasticsearch client are not wrapped and propagate unchanged on read paths.
"""

from typing import Any, Optional


class LogSearchError(Exception):
    """Base exception for log search failures."""

    code = "log-search-error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class RequestValidationError(LogSearchError):
    """Raised when a caller-supplied request is invalid."""

    code = "validation"


class InvalidTimeWindowError(RequestValidationError):
    """Raised when a search window is empty, inverted or not made of datetimes."""


class MalformedLocatorError(RequestValidationError):
    """Raised when a permalink locator cannot be decoded."""

    code = "malformed-locator"


class BulkRequestError(LogSearchError):
    """Raised for every item of a batch the backend rejected as a whole."""

    code = "bulk-request-failed"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class BulkItemError(LogSearchError):
    """Raised for a single document the backend refused to index."""

    code = "partial-item-failure"

    def __init__(self, message: str, status: Optional[int] = None, reason: Any = None):
        super().__init__(message)
        self.status = status
        self.reason = reason


class PipelineStateError(LogSearchError):
    """Raised when the index loader is driven out of order."""

    code = "pipeline-state"


class ScrollInProgressError(LogSearchError):
    """Raised when a scroll pull is requested while another is in flight."""

    code = "scroll-in-progress"


class ConfigurationError(LogSearchError):
    """Raised when configuration is invalid or missing."""

    code = "configuration"
