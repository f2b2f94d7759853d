"""
Log types: one descriptor per log domain.

Each descriptor carries the alias, payload namespace, column registry and
mapping of its domain; everything else in the package is written against
``LogType``.
"""

import logging
from typing import Dict, List, Optional

from logsearch.core.exceptions import RequestValidationError

from .base import LogType
from .cylance import CYLANCE
from .msvista import MSVISTA
from .sql import SQL
from .syslog import SYSLOG
from .wsa import WSA

logger = logging.getLogger(__name__)

LOG_TYPES: Dict[str, LogType] = {
    log_type.name: log_type for log_type in (SYSLOG, MSVISTA, SQL, CYLANCE, WSA)
}


def get_log_type(name: str) -> LogType:
    """Look up a log type by its short name."""
    try:
        return LOG_TYPES[name]
    except KeyError:
        raise RequestValidationError(f"Unknown log type: {name}", code="unknown-log-type") from None


def get_log_type_by_alias(alias: str) -> LogType:
    for log_type in LOG_TYPES.values():
        if log_type.alias == alias:
            return log_type
    raise RequestValidationError(f"Unknown log alias: {alias}", code="unknown-log-type")


def by_locator_param(params: Dict[str, str]) -> Optional[LogType]:
    """First log type whose permalink parameter appears in ``params``."""
    for log_type in LOG_TYPES.values():
        if log_type.locator_param and log_type.locator_param in params:
            return log_type
    return None


def put_templates(client) -> List[str]:
    """Install (or replace) the index template of every log type."""
    installed = []
    for log_type in LOG_TYPES.values():
        client.indices.put_index_template(name=log_type.alias, **log_type.index_template())
        logger.info("Installed index template %s for %s", log_type.alias, log_type.index_pattern)
        installed.append(log_type.alias)
    return installed


__all__ = [
    "LogType",
    "LOG_TYPES",
    "SYSLOG",
    "MSVISTA",
    "SQL",
    "CYLANCE",
    "WSA",
    "get_log_type",
    "get_log_type_by_alias",
    "by_locator_param",
    "put_templates",
]
