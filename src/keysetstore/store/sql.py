"""
SQLAlchemy implementation of the collection store.

Maps the store capabilities onto one SELECT:
- filter   -> WHERE from NormalizedFilters
- sort     -> ORDER BY
- bound    -> lexicographic keyset predicate over the hint fields
- hint     -> dialect index hint when a provisioned index matches
- limit    -> LIMIT
- fields   -> column projection
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import and_, false, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from ..core.errors import StoreError, ValidationError
from ..core.query_types import Cursor, NormalizedFilter
from ..core.sort import SortSpec
from .base import CollectionStore, RangeBound
from .casting import FieldCaster
from .indexes import CompoundIndex, match_index

logger = logging.getLogger(__name__)

# Dialects that sort NULL lowest natively and reject NULLS FIRST / NULLS LAST
NATIVE_NULL_ORDERING = frozenset({"mysql", "mariadb"})


class SqlCollectionStore(CollectionStore):
    """
    Collection store backed by one SQLAlchemy model.

    Usage:
        store = SqlCollectionStore(Article, session, indexes=ArticleViewSet.get_indexes())
        rows = await store.find(filters, sort=..., hint=..., fields=None, bound=RangeBound(), limit=21)
    """

    def __init__(
        self,
        model: type[DeclarativeBase],
        session: AsyncSession,
        indexes: Sequence[CompoundIndex] = (),
    ):
        self.model = model
        self.session = session
        self.indexes = list(indexes)
        self.caster = FieldCaster(model)

    async def find(
        self,
        query: Sequence[NormalizedFilter],
        *,
        sort: SortSpec,
        hint: SortSpec,
        fields: Optional[Sequence[str]],
        bound: RangeBound,
        limit: int,
    ) -> list[dict[str, Any]]:
        names = list(fields) if fields is not None else self.caster.field_names
        stmt = select(*[self._column(name) for name in names])

        stmt = apply_filters(stmt, self.model, query)

        if bound.min is not None:
            stmt = stmt.where(self._keyset(hint, bound.min, after=True))
        if bound.max is not None:
            stmt = stmt.where(self._keyset(hint, bound.max, after=False))

        explicit_nulls = self._dialect_name() not in NATIVE_NULL_ORDERING
        for f in sort:
            stmt = stmt.order_by(self._order_by(f.field, f.order, explicit_nulls))

        index = match_index(self.indexes, hint)
        if index is not None:
            stmt = stmt.with_hint(self.model.__table__, f"USE INDEX ({index.name})", "mysql")

        stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [dict(row._mapping) for row in result]

    def _column(self, name: str):
        if not self.caster.has_field(name):
            raise StoreError(f"Unknown field '{name}' on {self.model.__name__}")
        return getattr(self.model, name)

    def _nullable(self, name: str) -> bool:
        return self.model.__table__.c[name].nullable

    def _dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def _order_by(self, name: str, order: int, explicit_nulls: bool):
        """ORDER BY clause placing NULL below every value, as the keyset predicate does."""
        column = self._column(name)
        clause = column.asc() if order == 1 else column.desc()
        if explicit_nulls and self._nullable(name):
            clause = clause.nulls_first() if order == 1 else clause.nulls_last()
        return clause

    def _keyset(self, hint: SortSpec, cursor: Cursor, after: bool):
        """
        Predicate selecting rows on one side of the cursor in hint order.

        after=True:  rows at or after the cursor (inclusive)
        after=False: rows strictly before the cursor

        NULL compares below every value, so cursors taken from rows with
        NULL sort fields still move the scan forward.
        """
        if set(cursor) != set(hint.field_names):
            raise StoreError(
                f"Cursor fields {list(cursor)} do not match index hint {hint.field_names}"
            )
        try:
            values = self.caster.cast({f.field: cursor[f.field] for f in hint})
        except ValidationError as e:
            raise StoreError(f"Invalid cursor: {e.errors}") from e

        terms = []
        prefix = []
        for f in hint:
            column = self._column(f.field)
            value = values[f.field]
            greater = (f.order == 1) == after
            terms.append(and_(*prefix, _beyond(column, value, greater)))
            prefix.append(column.is_(None) if value is None else column == value)
        if after:
            terms.append(and_(*prefix))
        return or_(*terms)


def _beyond(column, value: Any, greater: bool):
    """Strict comparison with NULL ordered below every value."""
    if value is None:
        return column.isnot(None) if greater else false()
    if greater:
        return column > value
    return or_(column < value, column.is_(None))


def apply_filters(stmt, model: type[DeclarativeBase], filters: Sequence[NormalizedFilter]):
    """Apply filters to a select, update or delete statement."""
    for f in filters:
        column = getattr(model, f.field, None)
        if column is None:
            raise StoreError(f"Unknown filter field '{f.field}' on {model.__name__}")

        if f.op == "eq":
            stmt = stmt.where(column == f.value)
        elif f.op == "ne":
            stmt = stmt.where(column != f.value)
        elif f.op == "in":
            stmt = stmt.where(column.in_(f.value))
        elif f.op == "nin":
            stmt = stmt.where(column.not_in(f.value))
        elif f.op == "gte":
            stmt = stmt.where(column >= f.value)
        elif f.op == "lte":
            stmt = stmt.where(column <= f.value)
        elif f.op == "gt":
            stmt = stmt.where(column > f.value)
        elif f.op == "lt":
            stmt = stmt.where(column < f.value)
        elif f.op == "icontains":
            stmt = stmt.where(column.ilike(f"%{f.value}%"))
        elif f.op == "isnull":
            if f.value:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column.isnot(None))
        else:
            raise StoreError(f"Unsupported filter operator '{f.op}'")

    return stmt
