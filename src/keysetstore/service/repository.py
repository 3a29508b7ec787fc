"""
Model repository - CRUD operations around the pagination engine.

Provides:
- create / update / find_one / remove with validation and change events
- find: keyset pagination with access guards and field visibility
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError
from ..core.query_types import NormalizedFilter, PageResult, SearchRequest
from ..messaging.events import ChangePublisher, diff
from ..runtime.paginator import Paginator
from ..store.casting import FieldCaster
from ..store.sql import SqlCollectionStore, apply_filters
from ..viewsets.base import ModelViewSet
from .context import OperationContext, Principal
from .validators import validate
from .visibility import VisibilityFilter

logger = logging.getLogger(__name__)


class ModelRepository:
    """
    CRUD access to one viewset's collection within a session.

    Usage:
        repo = ModelRepository(ArticleViewSet, session, principal=principal, publisher=publisher)
        article = await repo.create({"title": "Hello", "rank": 3})
        page = await repo.find(SearchRequest(sort=["-rank"], count=20))
    """

    def __init__(
        self,
        viewset: type[ModelViewSet],
        session: AsyncSession,
        *,
        principal: Optional[Principal] = None,
        publisher: Optional[ChangePublisher] = None,
    ):
        self.viewset = viewset
        self.model = viewset.model
        self.session = session
        self.principal = principal
        self.publisher = publisher
        self.caster = FieldCaster(self.model)
        self.visibility = VisibilityFilter(viewset.visibility)
        self.store = SqlCollectionStore(self.model, session, indexes=viewset.get_indexes())
        self.paginator = Paginator(self.store, identity_field=viewset.get_identity_field())

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """Insert one record and publish a create event."""
        ctx = self._context("create", data=self.caster.cast(data))
        await validate(ctx)

        instance = self.model(**ctx.data)
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)

        record = self._to_dict(instance)
        await self._publish(record, "create", diff({}, record))
        return record

    async def update(self, query: Sequence[NormalizedFilter], data: dict[str, Any]) -> dict[str, Any]:
        """
        Update the first record matching query and publish an update event.

        Raises:
            NotFoundError: nothing matches
        """
        ctx = self._context("update", data=self.caster.cast(data), query=list(query))
        await validate(ctx)

        instance = await self._first(ctx.query)
        if instance is None:
            raise NotFoundError(ctx.model_name, ctx.query)
        ctx.found = self._to_dict(instance)

        for key, value in ctx.data.items():
            setattr(instance, key, value)
        await self.session.commit()
        await self.session.refresh(instance)

        record = self._to_dict(instance)
        await self._publish(record, "update", diff(ctx.found, record))
        return record

    async def find_one(
        self,
        query: Sequence[NormalizedFilter],
        fields: Optional[Sequence[str]] = None,
    ) -> dict[str, Any]:
        """
        Return the first record matching query, visibility applied.

        Raises:
            NotFoundError: nothing matches
        """
        ctx = self._context("find_one", query=list(query))
        await validate(ctx)

        instance = await self._first(ctx.query)
        if instance is None:
            raise NotFoundError(ctx.model_name, ctx.query)

        record = self._to_dict(instance)
        if fields is not None:
            record = {key: record[key] for key in fields if key in record}
        return self.visibility.apply(self.principal, record)

    async def remove(self, query: Sequence[NormalizedFilter]) -> int:
        """
        Delete every record matching query.

        Raises:
            NotFoundError: nothing matches
        """
        ctx = self._context("remove", query=list(query))
        await validate(ctx)

        stmt = apply_filters(delete(self.model), self.model, [*ctx.query, *self._guard()])
        result = await self.session.execute(stmt)
        await self.session.commit()

        if not result.rowcount:
            raise NotFoundError(ctx.model_name, ctx.query)
        logger.info(f"Removed {result.rowcount} {ctx.model_name} records")
        return result.rowcount

    async def find(self, search: SearchRequest) -> PageResult:
        """One page of records; links are left exactly as the paginator built them."""
        if "count" not in search.model_fields_set:
            search = search.model_copy(update={"count": self.viewset.pagination_default_limit})
        ctx = self._context("find", query=list(search.query), search=search)
        await validate(ctx)

        page = await self.paginator.page(search, guard=self._guard())
        return page.model_copy(
            update={"records": self.visibility.apply_many(self.principal, page.records)}
        )

    def _context(self, operation: str, **kwargs) -> OperationContext:
        return OperationContext(
            viewset=self.viewset,
            operation=operation,
            session=self.session,
            principal=self.principal,
            **kwargs,
        )

    def _guard(self) -> list[NormalizedFilter]:
        """Mandatory tenant filters; callers never see them in links."""
        return self.viewset.access.guard(self.principal)

    async def _first(self, query: list[NormalizedFilter]):
        identity = getattr(self.model, self.viewset.get_identity_field())
        stmt = apply_filters(select(self.model), self.model, [*query, *self._guard()])
        stmt = stmt.order_by(identity.asc()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    def _to_dict(self, instance) -> dict[str, Any]:
        return {key: getattr(instance, key) for key in self.caster.field_names}

    async def _publish(self, record: dict[str, Any], action: str, changes: dict[str, Any]) -> None:
        if self.publisher is None or not self.viewset.publish_changes:
            return
        await self.publisher.publish(
            self.viewset.get_entity_name(),
            record[self.viewset.get_identity_field()],
            action,
            changes,
        )
