"""
Elasticsearch client construction and error classification.

Design:
- One factory builds the synchronous client from configuration.
- Status helpers let the bulk pipeline tell throttling apart from rejection
  without depending on the client's exception hierarchy everywhere.
"""

from __future__ import annotations

import logging
from typing import Optional

from elasticsearch import ApiError, Elasticsearch

from .config import ElasticsearchConfig, config

logger = logging.getLogger(__name__)

# Statuses that mean "try again later" rather than "this request is wrong"
RETRYABLE_STATUSES = frozenset({429, 503})


def create_client(settings: Optional[ElasticsearchConfig] = None) -> Elasticsearch:
    """Build a client from the ``elasticsearch`` section of the configuration."""
    settings = settings or config.elasticsearch
    logger.info("Connecting to Elasticsearch at %s", ", ".join(settings.hosts))
    kwargs = {"request_timeout": settings.request_timeout}
    if settings.api_key:
        kwargs["api_key"] = settings.api_key
    return Elasticsearch(settings.hosts, **kwargs)


def error_status(exc: BaseException) -> Optional[int]:
    """Return the HTTP status carried by a client error, if any."""
    if isinstance(exc, ApiError):
        return exc.meta.status
    return None


def is_retryable(exc: BaseException) -> bool:
    """True when the backend answered with throttling or unavailability."""
    return error_status(exc) in RETRYABLE_STATUSES


def is_retryable_status(status: Optional[int]) -> bool:
    return status in RETRYABLE_STATUSES
