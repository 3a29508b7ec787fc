"""
Sort & direction resolver - first stage of the page pipeline.

Decides which way the store is walked and which index orientation to hint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.sort import SortSpec


@dataclass(frozen=True)
class ScanPlan:
    """
    How one page is scanned.

    - hint: index orientation (primary field ascending); cursors are keyed by its fields
    - sorter: order the store returns rows in
    - natural: True when the scan follows the hint's stored order
    - invert: True when rows must be reversed to match the caller's sort
    """
    hint: SortSpec
    sorter: SortSpec
    natural: bool
    invert: bool


class ScanResolver:
    """
    Resolves a sort and requested direction into a ScanPlan.

    Usage:
        plan = ScanResolver().resolve(sort, direction=-1)
    """

    def resolve(self, sort: SortSpec, direction: Optional[int] = None) -> ScanPlan:
        """
        Args:
            sort: Caller sort, already carrying the identity tie-break
            direction: +1 / -1; defaults to the primary field's order

        Returns:
            ScanPlan for the page
        """
        if direction is None:
            direction = sort.primary_order

        hint = sort if sort.primary_order == 1 else sort.inverted()
        natural = direction == 1
        sorter = hint if natural else hint.inverted()

        return ScanPlan(
            hint=hint,
            sorter=sorter,
            natural=natural,
            invert=sorter.primary_order != sort.primary_order,
        )
