"""
Page executor - issues the single store query for a page.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..core.query_types import NormalizedFilter
from ..store.base import CollectionStore, RangeBound
from .resolver import ScanPlan

logger = logging.getLogger(__name__)


class PageExecutor:
    """
    Executes one bounded, hinted, sorted query.

    Store errors propagate unchanged; reads are not retried here.

    Usage:
        executor = PageExecutor(store)
        rows = await executor.fetch(query, plan, fields, bound, limit=count + 1)
    """

    def __init__(self, store: CollectionStore):
        self.store = store

    async def fetch(
        self,
        query: Sequence[NormalizedFilter],
        plan: ScanPlan,
        fields: Optional[Sequence[str]],
        bound: RangeBound,
        limit: int,
    ) -> list[dict[str, Any]]:
        logger.debug(
            f"Fetching page: sort={plan.sorter.to_pairs()} min={bound.min} max={bound.max} limit={limit}"
        )
        rows = await self.store.find(
            query,
            sort=plan.sorter,
            hint=plan.hint,
            fields=fields,
            bound=bound,
            limit=limit,
        )
        logger.debug(f"Fetched {len(rows)} rows")
        return rows
