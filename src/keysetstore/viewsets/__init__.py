"""
ViewSets - per-collection configuration.

Usage:
    from keysetstore.viewsets import ModelViewSet, AccessConfig

    class ArticleViewSet(ModelViewSet):
        model = Article
        sortable_fields = {"published_at"}
        access = AccessConfig.direct("org_id")
"""

from __future__ import annotations

from .base import (
    SORTABLE_TYPES,
    AccessConfig,
    FieldInfo,
    ModelViewSet,
    Validator,
    VisibilityConfig,
    describe_fields,
    primary_key_fields,
)

__all__ = [
    "ModelViewSet",
    "AccessConfig",
    "VisibilityConfig",
    "Validator",
    "FieldInfo",
    "SORTABLE_TYPES",
    "describe_fields",
    "primary_key_fields",
]
