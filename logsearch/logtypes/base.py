"""
Log type descriptor shared by the compiler, the codec and the loader.

A ``LogType`` bundles everything that differs between log domains: the read
alias, the payload namespace, which fields free text is matched against and
the column registry. The search and indexing code is written once against
this descriptor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from logsearch.core.config import config
from logsearch.index.mappings import COMMON_ANALYSIS, EVENT_TIME_FIELD, LOG_COMMON
from logsearch.search.columns import ColumnRegistry


@dataclass(frozen=True)
class LogType:
    """
    Attributes:
        name: Short name used in URLs (``msvista``)
        alias: Read alias; index generations are named ``<alias>-<timestamp>``
        namespace: Payload object name beside ``log`` in each document
        columns: Column registry for ``field:value`` terms and sorting
        body_fields: Fields free text and phrases are matched against
        highlight_fields: Fields returned with highlight markers
        locator_param: Query parameter carrying permalinks for this type
        payload_mapping: Mapping of the payload object
        time_field: Field the search window filters on
    """

    name: str
    alias: str
    namespace: str
    columns: ColumnRegistry
    body_fields: Tuple[str, ...] = ("log.message",)
    highlight_fields: Tuple[str, ...] = ("log.message",)
    locator_param: Optional[str] = None
    payload_mapping: Dict[str, Any] = field(default_factory=dict)
    time_field: str = EVENT_TIME_FIELD

    @property
    def index_pattern(self) -> str:
        """Pattern covering every generation, including ones no longer aliased."""
        return f"{self.alias}-*"

    def fallback_field(self, type_name: str) -> str:
        return f"{self.namespace}.{type_name}"

    def index_suffix(self, index: str) -> str:
        """Strip ``<alias>-`` from a generation name for use in entry URLs."""
        prefix = f"{self.alias}-"
        return index[len(prefix):] if index.startswith(prefix) else index

    def index_name(self, suffix: str) -> str:
        return f"{self.alias}-{suffix}"

    def mappings(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {"log": LOG_COMMON}
        if self.payload_mapping:
            properties[self.namespace] = self.payload_mapping
        return {"dynamic": False, "properties": properties}

    def index_template(self) -> Dict[str, Any]:
        """Composable index template applied to every generation of this type."""
        return {
            "index_patterns": [self.index_pattern],
            "template": {
                "settings": {
                    "index.refresh_interval": "10s",
                    "index.number_of_shards": config.elasticsearch.number_of_shards,
                    "analysis": COMMON_ANALYSIS,
                },
                "mappings": self.mappings(),
            },
        }

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "alias": self.alias,
            "locatorParam": self.locator_param,
            "columns": self.columns.describe(),
        }
