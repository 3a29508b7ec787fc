import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from keysetstore.service.database import Base, engine_options
from tests.models import ArticleViewSet, TenantArticleViewSet


@pytest.fixture(scope="session", autouse=True)
def _declare_indexes():
    """Attach provisioned indexes to the metadata before any table is created."""
    ArticleViewSet.get_indexes()
    TenantArticleViewSet.get_indexes()
    yield


@pytest_asyncio.fixture
async def engine():
    url = "sqlite+aiosqlite://"
    engine = create_async_engine(url, **engine_options(url))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session
