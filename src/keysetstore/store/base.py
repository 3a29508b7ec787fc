"""
Backing store boundary.

The pagination engine needs a store that can filter by an opaque predicate,
sort by an explicit ordered field list, select an index by hint, restrict to
a min/max range keyed by the hint fields, limit rows and project fields.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..core.query_types import Cursor, NormalizedFilter
from ..core.sort import SortSpec


@dataclass(frozen=True)
class RangeBound:
    """
    Range restriction keyed by the hint fields, compared in hint order.

    min is inclusive, max is exclusive.
    """
    min: Optional[Cursor] = None
    max: Optional[Cursor] = None

    @property
    def is_open(self) -> bool:
        return self.min is None and self.max is None


class CollectionStore(ABC):
    """Abstract read capability used by the page executor."""

    @abstractmethod
    async def find(
        self,
        query: Sequence[NormalizedFilter],
        *,
        sort: SortSpec,
        hint: SortSpec,
        fields: Optional[Sequence[str]],
        bound: RangeBound,
        limit: int,
    ) -> list[dict[str, Any]]:
        """
        Run one query and return up to `limit` rows ordered by `sort`.

        Args:
            query: Filter predicate, passed through untouched
            sort: Result ordering
            hint: Index orientation; bound cursors are keyed by its fields
            fields: Projection (None = all fields)
            bound: Optional min/max range restriction
            limit: Maximum number of rows
        """
