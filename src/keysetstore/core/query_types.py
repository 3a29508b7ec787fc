"""
Pydantic models for search requests, pages and mutations.

These define the structure of incoming requests and of the results handed
back to callers.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from .sort import SortSpec


# Boundary record values keyed by hint field, in hint order.
Cursor = dict[str, Any]


class NormalizedFilter(BaseModel):
    """
    Normalized filter representation.

    Input: {"name__icontains": "test"}
    Normalized: NormalizedFilter(field="name", op="icontains", value="test")
    """
    field: str
    op: str  # eq, ne, in, nin, gt, gte, lt, lte, icontains, isnull
    value: Any = None

    @classmethod
    def from_compact(cls, filters: dict[str, Any]) -> list[NormalizedFilter]:
        """Parse the compact {"field__op": value} form; a bare field means eq."""
        parsed = []
        for key, value in filters.items():
            field, _, op = key.partition("__")
            parsed.append(cls(field=field, op=op or "eq", value=value))
        return parsed


class SearchRequest(BaseModel):
    """
    One page request.

    The query is opaque to the pagination engine and is handed to the store
    as-is. A cursor is only valid together with a direction.

    Example:
    {
        "query": [{"field": "status", "op": "eq", "value": "active"}],
        "sort": ["-created_at"],
        "count": 20
    }
    """
    query: list[NormalizedFilter] = Field(default_factory=list)
    sort: SortSpec
    count: int = 20
    cursor: Optional[Cursor] = None
    direction: Optional[Literal[1, -1]] = None
    fields: Optional[list[str]] = None


class PageResult(BaseModel):
    """
    One page of records plus links to the adjacent pages.

    previous/next are complete SearchRequests, or None when no page exists
    on that side.
    """
    records: list[dict[str, Any]] = Field(default_factory=list)
    previous: Optional[SearchRequest] = None
    next: Optional[SearchRequest] = None


# --- Mutation types ---

class FindOneRequest(BaseModel):
    """
    POST /internal/find_one
    """
    query: list[NormalizedFilter] = Field(default_factory=list)
    fields: Optional[list[str]] = None


class MutationRequest(BaseModel):
    """
    Request format for mutations.

    POST /internal/create
    POST /internal/update
    POST /internal/remove
    """
    operation: Optional[Literal["create", "update", "remove"]] = None
    data: dict[str, Any] = Field(default_factory=dict)
    query: list[NormalizedFilter] = Field(default_factory=list)  # For update/remove


class MutationResponse(BaseModel):
    """
    Response format for mutations.

    For create/update: returns the written record
    For remove: returns removed count
    """
    items: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0
