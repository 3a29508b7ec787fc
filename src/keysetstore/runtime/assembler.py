"""
Page assembler - turns fetched rows into a caller-facing PageResult.

Handles:
- Trimming the overflow row fetched to detect a further page
- Building the links to the adjacent pages
- Restoring the caller's sort order
- Applying the requested projection
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.query_types import Cursor, PageResult, SearchRequest
from ..core.sort import SortSpec
from .resolver import ScanPlan


def build_cursor(hint: SortSpec, record: dict[str, Any]) -> Cursor:
    """Cursor holding the record's hint-field values in hint order."""
    return {f.field: record.get(f.field) for f in hint}


class PageAssembler:
    """
    Assembles a PageResult from the rows of one scan.

    Rows arrive in scan order and may hold one row more than requested. Both
    cursor conventions follow the store's range semantics: a cursor names
    the first row at or after which a natural scan starts (inclusive min),
    and the row before which a reverse scan stops (exclusive max).

    Usage:
        assembler = PageAssembler()
        page = assembler.assemble(rows, request, plan)
    """

    def assemble(
        self,
        rows: Sequence[dict[str, Any]],
        request: SearchRequest,
        plan: ScanPlan,
    ) -> PageResult:
        """
        Args:
            rows: Up to request.count + 1 rows in plan.sorter order
            request: The caller's request, unmodified
            plan: ScanPlan the rows were fetched with

        Returns:
            PageResult with at most request.count records
        """
        records = list(rows)

        # Link in the direction just scanned
        scan_forward: Optional[SearchRequest] = None
        if len(records) == request.count + 1:
            overflow = records.pop()
            boundary = overflow if plan.natural else records[-1]
            scan_forward = self._link(
                request,
                build_cursor(plan.hint, boundary),
                1 if plan.natural else -1,
            )

        # Link back to where the scan came from; the caller's cursor is
        # already a valid resumption point for the opposite direction
        scan_backward: Optional[SearchRequest] = None
        if request.cursor is not None:
            scan_backward = self._link(
                request,
                request.cursor,
                -1 if plan.natural else 1,
            )

        if plan.natural:
            left, right = scan_backward, scan_forward
        else:
            left, right = scan_forward, scan_backward

        if request.sort.primary_order == 1:
            previous, next_ = left, right
        else:
            previous, next_ = right, left

        if plan.invert:
            records.reverse()

        if request.fields is not None:
            records = [self._project(record, request.fields) for record in records]

        return PageResult(records=records, previous=previous, next=next_)

    def _link(self, request: SearchRequest, cursor: Cursor, direction: int) -> SearchRequest:
        return SearchRequest(
            query=list(request.query),
            sort=request.sort,
            count=request.count,
            cursor=dict(cursor),
            direction=direction,
            fields=list(request.fields) if request.fields is not None else None,
        )

    def _project(self, record: dict[str, Any], fields: Sequence[str]) -> dict[str, Any]:
        return {field: record[field] for field in fields if field in record}
