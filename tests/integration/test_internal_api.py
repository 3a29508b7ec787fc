import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from keysetstore.config import StoreSettings
from keysetstore.service.app import create_service_app
from keysetstore.service.internal_api import create_internal_router
from tests.models import ArticleViewSet, FakePublisher, seed_articles


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest_asyncio.fixture
async def client(session_maker, publisher):
    async def get_test_session():
        async with session_maker() as session:
            yield session

    app = FastAPI()
    app.include_router(
        create_internal_router(
            ArticleViewSet,
            get_test_session,
            prefix="/article",
            get_publisher=lambda: publisher,
        )
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_find_walks_pages_through_links(session, client):
    await seed_articles(session, [1, 2, 3, 4, 5])

    response = await client.post("/article/internal/find", json={"sort": ["-rank"], "count": 2})
    assert response.status_code == 200
    page = response.json()
    assert [r["id"] for r in page["records"]] == [5, 4]
    assert page["previous"] is None

    seen = [r["id"] for r in page["records"]]
    while page["next"] is not None:
        page = (await client.post("/article/internal/find", json=page["next"])).json()
        seen.extend(r["id"] for r in page["records"])
    assert seen == [5, 4, 3, 2, 1]

    previous = (await client.post("/article/internal/find", json=page["previous"])).json()
    assert [r["id"] for r in previous["records"]] == [3, 2]


@pytest.mark.asyncio
async def test_find_contract_violations_are_bad_requests(client):
    response = await client.post("/article/internal/find", json={"sort": ["rank"], "count": 0})
    assert response.status_code == 400

    response = await client.post(
        "/article/internal/find",
        json={"sort": ["rank"], "count": 2, "cursor": {"rank": 1, "id": 1}},
    )
    assert response.status_code == 400
    assert "direction" in response.json()["detail"]


@pytest.mark.asyncio
async def test_find_rejects_mapping_sort(client):
    response = await client.post("/article/internal/find", json={"sort": {"rank": 1}})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_find_validation_errors_list_every_problem(client):
    response = await client.post(
        "/article/internal/find",
        json={"sort": ["draft_notes"], "count": 500},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == [
        "Field 'draft_notes' is not sortable",
        "count must not exceed 50",
    ]


@pytest.mark.asyncio
async def test_mismatched_cursor_is_bad_request(client):
    response = await client.post(
        "/article/internal/find",
        json={"sort": ["rank"], "count": 2, "cursor": {"title": "x"}, "direction": 1},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_crud_round(client, publisher):
    response = await client.post("/article/internal/create", json={"data": {"rank": 1, "title": "Hello"}})
    assert response.status_code == 200
    created = response.json()["items"][0]
    query = [{"field": "id", "op": "eq", "value": created["id"]}]

    response = await client.post(
        "/article/internal/update",
        json={"query": query, "data": {"title": "Renamed"}},
    )
    assert response.status_code == 200
    assert response.json()["items"][0]["title"] == "Renamed"

    response = await client.post("/article/internal/find_one", json={"query": query, "fields": ["title"]})
    assert response.json() == {"title": "Renamed"}

    response = await client.post("/article/internal/remove", json={"query": query})
    assert response.json() == {"items": [], "count": 1}

    response = await client.post("/article/internal/find_one", json={"query": query})
    assert response.status_code == 404

    assert [event["action"] for event in publisher.events] == ["create", "update"]


@pytest.mark.asyncio
async def test_schema_lists_fields_and_indexes(client):
    response = await client.get("/article/internal/schema")
    schema = response.json()

    assert schema["service"] == "article"
    assert schema["identity"] == "id"
    assert schema["fields"]["rank"]["sortable"] is True
    assert schema["fields"]["draft_notes"]["sortable"] is False
    assert {"name": "ix_articles_rank_id", "sort": [["rank", 1], ["id", 1]]} in schema["indexes"]


@pytest.mark.asyncio
async def test_service_app_lifecycle(tmp_path, monkeypatch):
    monkeypatch.setattr("keysetstore.config._settings", None)
    settings = StoreSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    app = create_service_app("article_service", [ArticleViewSet], settings=settings)

    transport = httpx.ASGITransport(app=app)
    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            health = await client.get("/health")
            assert health.json() == {"status": "ok", "service": "article_service"}

            await client.post("/article/internal/create", json={"data": {"rank": 2, "title": "b"}})
            await client.post("/article/internal/create", json={"data": {"rank": 1, "title": "a"}})

            page = (await client.post("/article/internal/find", json={"sort": ["rank"]})).json()
            assert [r["title"] for r in page["records"]] == ["a", "b"]
            assert page["next"] is None
