"""
Internal API router for keysetstore services.

Provides the CRUD endpoints a service mounts per collection:
- POST /internal/find     - One page of records (keyset pagination)
- POST /internal/find_one - Single record
- POST /internal/create   - Create record
- POST /internal/update   - Update first matching record
- POST /internal/remove   - Remove matching records
- GET  /internal/schema   - Collection schema

Usage:
    from keysetstore.service import create_internal_router

    router = create_internal_router(ArticleViewSet, get_session)
    app.include_router(router, prefix="/article")
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ContractViolation, NotFoundError, StoreError, ValidationError
from ..core.query_types import (
    FindOneRequest,
    MutationRequest,
    MutationResponse,
    PageResult,
    SearchRequest,
)
from ..messaging.events import ChangePublisher
from ..viewsets.base import ModelViewSet
from .context import Principal
from .repository import ModelRepository


def no_principal() -> Optional[Principal]:
    """Default principal dependency: trusted internal caller."""
    return None


def no_publisher() -> Optional[ChangePublisher]:
    """Default publisher dependency: change events disabled."""
    return None


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map keysetstore errors onto HTTP errors."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors) from e
    except (ContractViolation, StoreError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


class InternalRouter:
    """
    Factory for creating internal API routers for a viewset.
    """

    def __init__(
        self,
        viewset: type[ModelViewSet],
        get_session: Callable[[], AsyncSession],
        get_principal: Callable[..., Optional[Principal]] = no_principal,
        get_publisher: Callable[..., Optional[ChangePublisher]] = no_publisher,
    ):
        self.viewset = viewset
        self.get_session = get_session
        self.get_principal = get_principal
        self.get_publisher = get_publisher

    def create_router(self, prefix: str = "") -> APIRouter:
        """Create FastAPI router with all internal endpoints."""
        router = APIRouter(prefix=prefix)

        async def get_repository(
            session: AsyncSession = Depends(self.get_session),
            principal: Optional[Principal] = Depends(self.get_principal),
            publisher: Optional[ChangePublisher] = Depends(self.get_publisher),
        ) -> ModelRepository:
            return ModelRepository(self.viewset, session, principal=principal, publisher=publisher)

        @router.post("/internal/find", response_model=PageResult)
        async def internal_find(
            request: SearchRequest,
            repo: ModelRepository = Depends(get_repository),
        ) -> PageResult:
            with translate_errors():
                return await repo.find(request)

        @router.post("/internal/find_one")
        async def internal_find_one(
            request: FindOneRequest,
            repo: ModelRepository = Depends(get_repository),
        ) -> dict[str, Any]:
            with translate_errors():
                return await repo.find_one(request.query, request.fields)

        @router.post("/internal/create", response_model=MutationResponse)
        async def internal_create(
            request: MutationRequest,
            repo: ModelRepository = Depends(get_repository),
        ) -> MutationResponse:
            with translate_errors():
                item = await repo.create(request.data)
            return MutationResponse(items=[item], count=1)

        @router.post("/internal/update", response_model=MutationResponse)
        async def internal_update(
            request: MutationRequest,
            repo: ModelRepository = Depends(get_repository),
        ) -> MutationResponse:
            with translate_errors():
                item = await repo.update(request.query, request.data)
            return MutationResponse(items=[item], count=1)

        @router.post("/internal/remove", response_model=MutationResponse)
        async def internal_remove(
            request: MutationRequest,
            repo: ModelRepository = Depends(get_repository),
        ) -> MutationResponse:
            with translate_errors():
                count = await repo.remove(request.query)
            return MutationResponse(items=[], count=count)

        @router.get("/internal/schema")
        async def internal_schema() -> dict[str, Any]:
            return self.viewset.describe()

        return router


def create_internal_router(
    viewset: type[ModelViewSet],
    get_session: Callable[[], AsyncSession],
    prefix: str = "",
    get_principal: Callable[..., Optional[Principal]] = no_principal,
    get_publisher: Callable[..., Optional[ChangePublisher]] = no_publisher,
) -> APIRouter:
    """
    Create an internal API router for a viewset.

    Args:
        viewset: Collection configuration
        get_session: Dependency that returns AsyncSession
        prefix: URL prefix for routes
        get_principal: Dependency resolving the calling principal
        get_publisher: Dependency returning the change publisher (or None)

    Returns:
        FastAPI router with internal CRUD endpoints
    """
    factory = InternalRouter(viewset, get_session, get_principal, get_publisher)
    return factory.create_router(prefix)
