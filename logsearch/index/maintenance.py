"""
Index maintenance: alias lookup, retention and cleanup.

Design:
- Daily indexes are named ``<prefix>-YYYY.MM.DD``; each managed prefix keeps a
  configurable number of days.
- Every completed load leaves its previous generation without an alias; the
  cleanup job deletes those, a bounded number per run, and skips indexes
  younger than a grace period so a load still in progress is never touched.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from elasticsearch import Elasticsearch, NotFoundError

from logsearch.core.config import MaintenanceConfig, config

logger = logging.getLogger(__name__)

DAILY_DATE_FORMAT = "%Y.%m.%d"


def get_alias_indices(client: Elasticsearch, alias: str) -> List[str]:
    """Names of the indexes ``alias`` currently points at; empty if none."""
    try:
        response = client.indices.get_alias(name=alias)
    except NotFoundError:
        return []
    return sorted(response.keys())


def _creation_time(index_info: Dict) -> Optional[datetime]:
    created = index_info.get("settings", {}).get("index", {}).get("creation_date")
    if created is None:
        return None
    return datetime.fromtimestamp(int(created) / 1000, tz=timezone.utc)


def find_unaliased_indexes(
    client: Elasticsearch,
    prefixes: Iterable[str],
    min_age: timedelta = timedelta(hours=1),
    now: Optional[datetime] = None,
) -> List[str]:
    """Indexes under ``prefixes`` that no alias points at and are older than ``min_age``."""
    now = now or datetime.now(timezone.utc)
    patterns = [f"{prefix}-*" for prefix in prefixes]
    response = client.indices.get(index=patterns, allow_no_indices=True, ignore_unavailable=True)

    found: List[str] = []
    for name, info in sorted(response.items()):
        if info.get("aliases"):
            continue
        created = _creation_time(info)
        if created is not None and now - created < min_age:
            logger.debug("Skipping young unaliased index %s", name)
            continue
        found.append(name)
    return found


def cleanup_unaliased_indexes(
    client: Elasticsearch,
    prefixes: Iterable[str],
    settings: Optional[MaintenanceConfig] = None,
    min_age: timedelta = timedelta(hours=1),
    dry_run: bool = False,
) -> List[str]:
    """
    Delete stale, unaliased generations.

    Returns:
        The indexes deleted (or that would be, with ``dry_run``)
    """
    settings = settings or config.maintenance
    to_delete = find_unaliased_indexes(client, prefixes, min_age)[: settings.cleanup_batch_size]

    if not to_delete:
        return []

    logger.info("Deleting %d unaliased indexes: %s", len(to_delete), ", ".join(to_delete))
    if not dry_run:
        client.indices.delete(index=to_delete)
    return to_delete


def parse_daily_index(name: str) -> Optional[tuple]:
    """Split ``<prefix>-YYYY.MM.DD`` into ``(prefix, date)``; None otherwise."""
    prefix, sep, stamp = name.rpartition("-")
    if not sep or not prefix:
        return None
    try:
        day = datetime.strptime(stamp, DAILY_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None
    return prefix, day


def expired_daily_indexes(
    names: Iterable[str], retention_days: Dict[str, int], now: Optional[datetime] = None
) -> List[str]:
    """Daily indexes older than their prefix's retention window."""
    now = now or datetime.now(timezone.utc)
    expired: List[str] = []
    for name in names:
        parsed = parse_daily_index(name)
        if parsed is None:
            continue
        prefix, day = parsed
        keep_days = retention_days.get(prefix)
        if keep_days is None:
            continue
        if day < now - timedelta(days=keep_days):
            expired.append(name)
    return sorted(expired)


def expire_daily_indexes(
    client: Elasticsearch,
    settings: Optional[MaintenanceConfig] = None,
    dry_run: bool = False,
    now: Optional[datetime] = None,
) -> List[str]:
    """Delete daily indexes past retention for every managed prefix."""
    settings = settings or config.maintenance
    if not settings.retention_days:
        return []

    patterns = [f"{prefix}-*" for prefix in settings.retention_days]
    response = client.indices.get(
        index=patterns, allow_no_indices=True, ignore_unavailable=True, expand_wildcards="all"
    )
    expired = expired_daily_indexes(response.keys(), settings.retention_days, now)

    if expired:
        logger.info("Deleting %d expired indexes: %s", len(expired), ", ".join(expired))
        if not dry_run:
            client.indices.delete(index=expired)
    return expired
