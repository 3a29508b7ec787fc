import pytest
from sqlalchemy import func, select

from keysetstore.core.errors import ContractViolation, NotFoundError, ValidationError
from keysetstore.core.query_types import NormalizedFilter, SearchRequest
from keysetstore.service.context import Principal
from keysetstore.service.repository import ModelRepository
from tests.models import Article, ArticleViewSet, FakePublisher, TenantArticleViewSet, seed_articles


def by_id(record_id):
    return [NormalizedFilter(field="id", op="eq", value=record_id)]


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def repo(session, publisher):
    return ModelRepository(ArticleViewSet, session, publisher=publisher)


@pytest.mark.asyncio
async def test_create_casts_data_and_publishes(repo, publisher):
    record = await repo.create({"rank": "3", "title": "Hello", "author_id": 7})

    assert record["rank"] == 3
    assert record["org_id"] == 1
    assert publisher.events == [{
        "model": "Article",
        "id": record["id"],
        "action": "create",
        "updated": {"id": record["id"], "rank": 3, "title": "Hello", "org_id": 1, "author_id": 7},
    }]


@pytest.mark.asyncio
async def test_create_rejects_unknown_fields(repo, publisher):
    with pytest.raises(ValidationError):
        await repo.create({"rank": 1, "title": "Hello", "color": "red"})
    assert publisher.events == []


@pytest.mark.asyncio
async def test_update_publishes_changed_fields(session, repo, publisher):
    await seed_articles(session, [1, 2])

    record = await repo.update(by_id(2), {"title": "Renamed", "rank": 2})

    assert record["title"] == "Renamed"
    assert publisher.events == [{"model": "Article", "id": 2, "action": "update", "updated": {"title": "Renamed"}}]


@pytest.mark.asyncio
async def test_update_missing_record(repo, publisher):
    with pytest.raises(NotFoundError):
        await repo.update(by_id(99), {"title": "Renamed"})
    assert publisher.events == []


@pytest.mark.asyncio
async def test_find_one_applies_projection(session, repo):
    await seed_articles(session, [1, 2])
    assert await repo.find_one(by_id(2), fields=["id", "title"]) == {"id": 2, "title": "article 2"}


@pytest.mark.asyncio
async def test_find_one_missing_record(repo):
    with pytest.raises(NotFoundError):
        await repo.find_one(by_id(1))


@pytest.mark.asyncio
async def test_remove_returns_count(session, repo):
    await seed_articles(session, [1, 1, 2])

    removed = await repo.remove([NormalizedFilter(field="rank", op="eq", value=1)])

    assert removed == 2
    remaining = await session.scalar(select(func.count()).select_from(Article))
    assert remaining == 1


@pytest.mark.asyncio
async def test_remove_nothing_is_not_found(repo):
    with pytest.raises(NotFoundError):
        await repo.remove(by_id(1))


@pytest.mark.asyncio
async def test_find_defaults_count_from_viewset(session, repo):
    await seed_articles(session, [1, 2, 3, 4, 5])

    page = await repo.find(SearchRequest(sort=["rank"]))

    assert [r["id"] for r in page.records] == [1, 2, 3]
    assert page.next.count == 3


@pytest.mark.asyncio
async def test_find_validates_before_paging(repo):
    with pytest.raises(ValidationError):
        await repo.find(SearchRequest(sort=["draft_notes"], count=5))
    with pytest.raises(ContractViolation):
        await repo.find(SearchRequest(sort=["rank"], count=0))


@pytest.mark.asyncio
async def test_publishing_can_be_disabled(session, publisher):
    class QuietViewSet(ArticleViewSet):
        publish_changes = False

    repo = ModelRepository(QuietViewSet, session, publisher=publisher)
    await repo.create({"rank": 1, "title": "Hello"})
    assert publisher.events == []


# --- Access guards and visibility ---


async def seed_tenants(session):
    session.add_all([
        Article(id=1, rank=1, title="a", org_id=1, author_id=7, draft_notes="one"),
        Article(id=2, rank=2, title="b", org_id=2, author_id=8, draft_notes="two"),
        Article(id=3, rank=3, title="c", org_id=1, author_id=8, draft_notes="three"),
        Article(id=4, rank=4, title="d", org_id=1, author_id=8, draft_notes="four"),
    ])
    await session.commit()


@pytest.mark.asyncio
async def test_find_is_limited_to_principal_tenants(session):
    await seed_tenants(session)
    repo = ModelRepository(TenantArticleViewSet, session, principal=Principal(id=7, tenant_ids=[1]))

    page = await repo.find(SearchRequest(sort=["rank"], count=2))
    assert [r["id"] for r in page.records] == [1, 3]
    assert page.next.query == []

    page = await repo.find(page.next)
    assert [r["id"] for r in page.records] == [4]


@pytest.mark.asyncio
async def test_find_hides_restricted_fields_but_not_from_owner(session):
    await seed_tenants(session)
    repo = ModelRepository(TenantArticleViewSet, session, principal=Principal(id=7, tenant_ids=[1]))

    page = await repo.find(SearchRequest(sort=["rank"], count=3))

    notes = [r.get("draft_notes") for r in page.records]
    assert notes == ["one", None, None]
    assert "draft_notes" not in page.records[1]


@pytest.mark.asyncio
async def test_editor_sees_restricted_fields(session):
    await seed_tenants(session)
    repo = ModelRepository(TenantArticleViewSet, session, principal=Principal(id=1, roles=["editor"], tenant_ids=[2]))

    record = await repo.find_one(by_id(2))
    assert record["draft_notes"] == "two"


@pytest.mark.asyncio
async def test_other_tenant_records_are_not_found(session):
    await seed_tenants(session)
    repo = ModelRepository(TenantArticleViewSet, session, principal=Principal(id=9, tenant_ids=[1]))

    with pytest.raises(NotFoundError):
        await repo.find_one(by_id(2))
    with pytest.raises(NotFoundError):
        await repo.remove(by_id(2))


@pytest.mark.asyncio
async def test_trusted_caller_has_no_guard(session):
    await seed_tenants(session)
    repo = ModelRepository(TenantArticleViewSet, session)

    page = await repo.find(SearchRequest(sort=["rank"], count=10))
    assert [r["id"] for r in page.records] == [1, 2, 3, 4]
