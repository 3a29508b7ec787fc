"""
Paginator - keyset pagination over a CollectionStore.

Composes the page pipeline:
    ScanResolver -> build_range_bound -> PageExecutor -> PageAssembler

Each call is independent; nothing is kept between pages.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.errors import ContractViolation
from ..core.query_types import NormalizedFilter, PageResult, SearchRequest
from ..store.base import CollectionStore
from .assembler import PageAssembler
from .bounds import build_range_bound
from .executor import PageExecutor
from .resolver import ScanResolver

logger = logging.getLogger(__name__)


class Paginator:
    """
    Fetches one page of a sorted, filtered collection.

    Usage:
        paginator = Paginator(store, identity_field="id")
        page = await paginator.page(SearchRequest(sort=["-created_at"], count=20))
        if page.next:
            page = await paginator.page(page.next)
    """

    def __init__(self, store: CollectionStore, identity_field: str = "id"):
        """
        Initialize paginator.

        Args:
            store: Backing store
            identity_field: Unique field appended to every sort as tie-break
        """
        self.identity_field = identity_field
        self.resolver = ScanResolver()
        self.executor = PageExecutor(store)
        self.assembler = PageAssembler()

    async def page(
        self,
        request: SearchRequest,
        guard: Sequence[NormalizedFilter] = (),
    ) -> PageResult:
        """
        Fetch the page described by request.

        Args:
            request: Caller request (first page or a link from a previous page)
            guard: Extra filters applied to the store query but kept out of links

        Returns:
            PageResult with records in the caller's sort order

        Raises:
            ContractViolation: count < 1, or a cursor without a direction
        """
        self._check_contract(request)

        sort = request.sort.with_tiebreak(self.identity_field)
        plan = self.resolver.resolve(sort, request.direction)
        bound = build_range_bound(request.cursor, plan.natural)

        rows = await self.executor.fetch(
            [*request.query, *guard],
            plan,
            self._fetch_fields(request.fields, plan.hint.field_names),
            bound,
            limit=request.count + 1,
        )
        return self.assembler.assemble(rows, request, plan)

    def _check_contract(self, request: SearchRequest) -> None:
        if request.count < 1:
            raise ContractViolation(f"count must be at least 1, got {request.count}")
        if request.cursor is not None and request.direction is None:
            raise ContractViolation("cursor requires an explicit direction")

    def _fetch_fields(
        self,
        fields: Optional[Sequence[str]],
        hint_fields: list[str],
    ) -> Optional[list[str]]:
        """Widen the projection so cursors can always be built."""
        if fields is None:
            return None
        widened = list(fields)
        for name in hint_fields:
            if name not in widened:
                widened.append(name)
        return widened
