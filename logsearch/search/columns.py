"""
Column registry: the per-log-type table of queryable columns.

Each column maps the logical name an analyst types (``user:ALICE``) to the
backend field it lives in, together with how the typed value must be coerced
before it can be used in an exact term filter.

Design:
- Columns are immutable rows; coercion is chosen from a strategy table keyed
  by ``ColumnKind`` rather than a class per kind.
- A coercion returning ``None`` means "no usable value": the compiler drops
  the term instead of failing.
- Registries reject duplicate names at construction time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from logsearch.core.exceptions import ConfigurationError
from logsearch.data.schema import SortOrder


class ColumnKind(str, Enum):
    """Coercion policy applied to a typed search value."""

    DEFAULT = "default"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"


def _to_number(value: str) -> Optional[Union[int, float]]:
    text = value.strip()
    try:
        return int(text, 0) if text.lower().startswith(("0x", "0o", "0b")) else int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


COERCIONS: Dict[ColumnKind, Callable[[str], Any]] = {
    ColumnKind.DEFAULT: lambda value: value,
    ColumnKind.INTEGER: _to_number,
    ColumnKind.BOOLEAN: lambda value: value == "true",
    ColumnKind.UPPERCASE: lambda value: value.upper(),
    ColumnKind.LOWERCASE: lambda value: value.lower(),
}


@dataclass(frozen=True)
class Column:
    """
    A single queryable column.

    Attributes:
        name: Logical name used in ``name:value`` search terms
        backend_field: Dotted field path in the index
        display_name: Human readable header
        category: Grouping shown in column pickers
        sort_field: Field used when sorting (defaults to backend_field)
        sortable: Whether the column may be sorted on
        searchable: Whether ``name:value`` terms are honored
        default_sort_order: Initial sort direction
        kind: Coercion policy for typed values
    """

    name: str
    backend_field: str
    display_name: str
    category: str = "Standard"
    sort_field: Optional[str] = None
    sortable: bool = True
    searchable: bool = True
    default_sort_order: SortOrder = SortOrder.ASC
    kind: ColumnKind = ColumnKind.DEFAULT

    def __post_init__(self) -> None:
        if self.sort_field is None:
            object.__setattr__(self, "sort_field", self.backend_field)

    def to_backend_term(self, value: str) -> Any:
        """Coerce a typed value; ``None`` means the term should be dropped."""
        return COERCIONS[self.kind](value)

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "field": self.backend_field,
            "displayName": self.display_name,
            "category": self.category,
            "sortField": self.sort_field,
            "sortable": self.sortable,
            "searchable": self.searchable,
            "defaultSortOrder": self.default_sort_order.value,
            "kind": self.kind.value,
        }


@dataclass
class ColumnRegistry:
    """Ordered, name-unique collection of columns for one log type."""

    columns: List[Column] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_name: Dict[str, Column] = {}
        for column in self.columns:
            if column.name in self._by_name:
                raise ConfigurationError(f"Duplicate column name: {column.name}")
            self._by_name[column.name] = column

    @classmethod
    def of(cls, *groups: Iterable[Column]) -> "ColumnRegistry":
        """Build a registry from several column groups, in order."""
        return cls([column for group in groups for column in group])

    def get(self, name: str) -> Optional[Column]:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def sort_field_for(self, name: Optional[str], default: str) -> str:
        """Sort field of a sortable column, or ``default`` when unknown."""
        column = self._by_name.get(name) if name else None
        if column is None or not column.sortable:
            return default
        return column.sort_field or column.backend_field

    def describe(self) -> List[Dict[str, Any]]:
        return [column.describe() for column in self.columns]
