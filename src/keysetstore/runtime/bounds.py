"""
Range bound builder - turns a resumption cursor into a store range.

The store seeks straight to the boundary through its index instead of
skipping rows, so a page costs O(log n + count) regardless of depth.
"""

from __future__ import annotations

from typing import Optional

from ..core.query_types import Cursor
from ..store.base import RangeBound


def build_range_bound(cursor: Optional[Cursor], natural: bool) -> RangeBound:
    """
    Build the range restriction for one scan.

    A natural scan starts at the cursor (inclusive min); a reverse scan stops
    just before it (exclusive max).
    """
    if cursor is None:
        return RangeBound()
    if natural:
        return RangeBound(min=cursor)
    return RangeBound(max=cursor)
