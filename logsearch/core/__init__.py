"""
Core module: Configuration, logging, exception handling and the backend client.
"""

from .config import Config, config
from .es import create_client, error_status, is_retryable
from .exceptions import (
    BulkItemError,
    BulkRequestError,
    ConfigurationError,
    InvalidTimeWindowError,
    LogSearchError,
    MalformedLocatorError,
    PipelineStateError,
    RequestValidationError,
    ScrollInProgressError,
)
from .logging_config import setup_logging

__all__ = [
    "Config",
    "config",
    "setup_logging",
    "create_client",
    "error_status",
    "is_retryable",
    "LogSearchError",
    "RequestValidationError",
    "InvalidTimeWindowError",
    "MalformedLocatorError",
    "BulkRequestError",
    "BulkItemError",
    "PipelineStateError",
    "ScrollInProgressError",
    "ConfigurationError",
]
