"""
Store module - backing store boundary and its SQLAlchemy implementation.
"""

from __future__ import annotations

from .base import CollectionStore, RangeBound
from .casting import FieldCaster, get_column_type
from .indexes import CompoundIndex, ensure_indexes, match_index
from .sql import SqlCollectionStore, apply_filters

__all__ = [
    "CollectionStore",
    "RangeBound",
    "FieldCaster",
    "get_column_type",
    "CompoundIndex",
    "ensure_indexes",
    "match_index",
    "SqlCollectionStore",
    "apply_filters",
]
