"""
Operation context for CRUD processing.

Contains everything validators and collaborators see during one operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.query_types import NormalizedFilter, SearchRequest

if TYPE_CHECKING:
    from ..viewsets.base import ModelViewSet


@dataclass
class Principal:
    """
    Represents the authenticated user/service making the request.

    Used for access guards and field visibility.
    """
    id: Optional[Any] = None
    roles: list[str] = field(default_factory=list)
    tenant_ids: list[Any] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationContext:
    """
    Context passed through one CRUD operation.

    Contains:
    - viewset: Collection configuration
    - operation: create, update, find_one, remove or find
    - principal: Authenticated caller (None = anonymous)
    - data: Cast mutation data
    - query: Caller filters, before access guards
    - search: Page request for find
    - found: Record state before an update
    - validated: Set once validation has run
    """
    viewset: type[ModelViewSet]
    operation: str
    session: AsyncSession
    principal: Optional[Principal] = None
    data: dict[str, Any] = field(default_factory=dict)
    query: list[NormalizedFilter] = field(default_factory=list)
    search: Optional[SearchRequest] = None
    found: Optional[dict[str, Any]] = None
    validated: bool = False

    @property
    def model_name(self) -> str:
        return self.viewset.get_entity_name()
