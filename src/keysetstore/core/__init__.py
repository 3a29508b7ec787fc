"""
Core module - sort specifications, request/page types and errors.
"""

from __future__ import annotations

from .errors import (
    ContractViolation,
    KeysetStoreError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .query_types import (
    Cursor,
    FindOneRequest,
    MutationRequest,
    MutationResponse,
    NormalizedFilter,
    PageResult,
    SearchRequest,
)
from .sort import SortField, SortSpec

__all__ = [
    # Errors
    "KeysetStoreError",
    "ContractViolation",
    "StoreError",
    "ValidationError",
    "NotFoundError",
    # Sort
    "SortField",
    "SortSpec",
    # Query types
    "Cursor",
    "NormalizedFilter",
    "SearchRequest",
    "PageResult",
    "FindOneRequest",
    "MutationRequest",
    "MutationResponse",
]
