"""
Service module - CRUD layer and utilities for building keysetstore services.

Provides:
- ModelRepository: CRUD + pagination for one viewset
- create_service_app: Factory for creating FastAPI service apps
- create_internal_router: Factory for internal API routes
- Database utilities (Base, get_session, init_db)
"""

from __future__ import annotations

from .app import create_service_app
from .context import OperationContext, Principal
from .database import Base, get_session, init_db, close_db, get_engine
from .internal_api import create_internal_router, InternalRouter
from .repository import ModelRepository
from .validators import validate
from .visibility import VisibilityFilter

__all__ = [
    # App factory
    "create_service_app",
    # Context
    "Principal",
    "OperationContext",
    # Database
    "Base",
    "get_session",
    "init_db",
    "close_db",
    "get_engine",
    # CRUD
    "ModelRepository",
    "validate",
    "VisibilityFilter",
    # Internal API
    "create_internal_router",
    "InternalRouter",
]
