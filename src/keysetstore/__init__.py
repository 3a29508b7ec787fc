"""
keysetstore - keyset pagination and CRUD over sorted, indexed collections.

Pages are fetched by range-restricting on indexed values rather than by
skipping an offset; every page carries links to its neighbours.

Usage:
    from keysetstore import ModelRepository, ModelViewSet, SearchRequest

    class ArticleViewSet(ModelViewSet):
        model = Article
        sortable_fields = {"published_at"}

    repo = ModelRepository(ArticleViewSet, session)
    page = await repo.find(SearchRequest(sort=["-published_at"], count=20))
    while page.next:
        page = await repo.find(page.next)
"""

from __future__ import annotations

from .config import StoreSettings, load_config
from .core import (
    ContractViolation,
    Cursor,
    FindOneRequest,
    KeysetStoreError,
    MutationRequest,
    MutationResponse,
    NormalizedFilter,
    NotFoundError,
    PageResult,
    SearchRequest,
    SortField,
    SortSpec,
    StoreError,
    ValidationError,
)
from .messaging import ChangePublisher, init_redis, close_redis
from .runtime import (
    PageAssembler,
    PageExecutor,
    Paginator,
    ScanPlan,
    ScanResolver,
    build_range_bound,
)
from .store import (
    CollectionStore,
    CompoundIndex,
    FieldCaster,
    RangeBound,
    SqlCollectionStore,
    ensure_indexes,
)
from .service import (
    Base,
    ModelRepository,
    Principal,
    close_db,
    create_internal_router,
    create_service_app,
    get_engine,
    get_session,
    init_db,
)
from .viewsets import AccessConfig, ModelViewSet, VisibilityConfig

__version__ = "0.1.0"

__all__ = [
    # Config
    "StoreSettings",
    "load_config",
    # Errors
    "KeysetStoreError",
    "ContractViolation",
    "StoreError",
    "ValidationError",
    "NotFoundError",
    # Types
    "SortField",
    "SortSpec",
    "Cursor",
    "NormalizedFilter",
    "SearchRequest",
    "PageResult",
    "FindOneRequest",
    "MutationRequest",
    "MutationResponse",
    # Pagination
    "ScanPlan",
    "ScanResolver",
    "build_range_bound",
    "PageExecutor",
    "PageAssembler",
    "Paginator",
    # Store
    "CollectionStore",
    "RangeBound",
    "SqlCollectionStore",
    "FieldCaster",
    "CompoundIndex",
    "ensure_indexes",
    # Messaging
    "ChangePublisher",
    "init_redis",
    "close_redis",
    # Service
    "Base",
    "ModelRepository",
    "Principal",
    "create_service_app",
    "create_internal_router",
    "get_session",
    "get_engine",
    "init_db",
    "close_db",
    # ViewSets
    "ModelViewSet",
    "AccessConfig",
    "VisibilityConfig",
]
