"""
Service app factory for keysetstore services.

    app = create_service_app("articles", [ArticleViewSet])

The app mounts one internal router per viewset under /<service>, creates
tables and indexes on startup, connects the change publisher when a Redis
URL is configured and serves GET /health.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Callable, Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import StoreSettings, configure, get_settings
from ..messaging.client import close_redis, init_redis
from ..messaging.events import ChangePublisher
from ..viewsets.base import ModelViewSet
from .context import Principal
from .database import close_db, get_session, init_db
from .internal_api import create_internal_router, no_principal

logger = logging.getLogger(__name__)

QUIET_PATHS = ("/health", "/internal/schema")


class QuietPathsFilter(logging.Filter):
    """Drops access-log lines for polling endpoints."""

    def __init__(self, paths: Sequence[str] = QUIET_PATHS):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        path = self._request_path(record)
        return not any(path == quiet or path.endswith(quiet) for quiet in self.paths)

    @staticmethod
    def _request_path(record: logging.LogRecord) -> str:
        # uvicorn access records: (client, method, path, http_version, status)
        if isinstance(record.args, tuple) and len(record.args) >= 3:
            return str(record.args[2]).split("?", 1)[0]
        return ""


async def _run_hook(hook: Optional[Callable]) -> None:
    if hook is None:
        return
    if asyncio.iscoroutinefunction(hook):
        await hook()
    else:
        hook()


def create_service_app(
    service_name: str,
    viewsets: Sequence[type[ModelViewSet]] = (),
    *,
    settings: Optional[StoreSettings] = None,
    get_principal: Callable[..., Optional[Principal]] = no_principal,
    cors_origins: Sequence[str] = ("*",),
    on_startup: Optional[Callable] = None,
    on_shutdown: Optional[Callable] = None,
    init_database: bool = True,
) -> FastAPI:
    """
    Create a FastAPI app serving the given viewsets.

    Args:
        service_name: Used in the app title, logs and /health
        viewsets: Collections to expose
        settings: Installed process-wide when given (defaults to environment)
        get_principal: Dependency resolving the calling principal
        cors_origins: Allowed CORS origins
        on_startup: Sync or async hook run after connections are ready
        on_shutdown: Sync or async hook run before connections close
        init_database: Create tables and indexes on startup and dispose the engine on shutdown
    """
    if settings is not None:
        configure(settings)
    settings = get_settings()
    state: dict[str, Any] = {}

    def get_publisher() -> Optional[ChangePublisher]:
        return state.get("publisher")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        access_log = logging.getLogger("uvicorn.access")
        if not any(isinstance(f, QuietPathsFilter) for f in access_log.filters):
            access_log.addFilter(QuietPathsFilter())

        async with AsyncExitStack() as stack:
            if init_database:
                await init_db(viewsets)
                stack.push_async_callback(close_db)
            if settings.redis_url:
                client = await init_redis(settings.redis_url)
                stack.push_async_callback(close_redis)
                state["redis"] = client
                state["publisher"] = ChangePublisher(client, settings.change_channel)
            stack.callback(state.clear)

            await _run_hook(on_startup)
            logger.info(f"{service_name} serving {[v.get_service() for v in viewsets]}")
            try:
                yield
            finally:
                await _run_hook(on_shutdown)
                logger.info(f"{service_name} shutting down")

    app = FastAPI(title=service_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for viewset in viewsets:
        app.include_router(
            create_internal_router(
                viewset,
                get_session,
                prefix=f"/{viewset.get_service()}",
                get_principal=get_principal,
                get_publisher=get_publisher,
            )
        )

    @app.get("/health")
    async def health() -> dict[str, Any]:
        status: dict[str, Any] = {"status": "ok", "service": service_name}
        if "redis" in state:
            status["redis"] = "ok" if await state["redis"].healthy() else "unavailable"
        return status

    return app
