import pytest

from keysetstore.core.errors import ValidationError
from keysetstore.core.query_types import NormalizedFilter, SearchRequest
from keysetstore.service.context import OperationContext
from keysetstore.service.validators import validate
from tests.models import ArticleViewSet

BY_ID = [NormalizedFilter(field="id", op="eq", value=1)]


def make_context(operation, viewset=ArticleViewSet, **kwargs):
    return OperationContext(viewset=viewset, operation=operation, session=None, **kwargs)


@pytest.mark.asyncio
async def test_find_accepts_sortable_fields():
    ctx = make_context("find", search=SearchRequest(sort=["-published_at", "title"], count=10))
    await validate(ctx)
    assert ctx.validated is True


@pytest.mark.asyncio
async def test_find_rejects_unsortable_field():
    ctx = make_context("find", search=SearchRequest(sort=["draft_notes"]))
    with pytest.raises(ValidationError) as exc_info:
        await validate(ctx)
    assert exc_info.value.errors == ["Field 'draft_notes' is not sortable"]


@pytest.mark.asyncio
async def test_find_rejects_count_over_limit():
    ctx = make_context("find", search=SearchRequest(sort=["rank"], count=51))
    with pytest.raises(ValidationError):
        await validate(ctx)


@pytest.mark.asyncio
async def test_find_rejects_unknown_projection():
    ctx = make_context("find", search=SearchRequest(sort=["rank"], fields=["title", "color"]))
    with pytest.raises(ValidationError) as exc_info:
        await validate(ctx)
    assert exc_info.value.errors == ["Unknown field: color"]


@pytest.mark.asyncio
async def test_update_rejects_identity_change():
    ctx = make_context("update", query=BY_ID, data={"id": 2})
    with pytest.raises(ValidationError) as exc_info:
        await validate(ctx)
    assert "Field 'id' cannot be updated" in exc_info.value.errors


@pytest.mark.asyncio
async def test_remove_requires_filters():
    with pytest.raises(ValidationError):
        await validate(make_context("remove"))


@pytest.mark.asyncio
async def test_viewset_validators_run_after_builtin_checks():
    seen = []

    async def no_shouting(ctx):
        seen.append(ctx.operation)
        if ctx.data.get("title", "").isupper():
            raise ValidationError(["Title must not be all caps"])

    class CheckedViewSet(ArticleViewSet):
        validators = {"create": [no_shouting]}

    with pytest.raises(ValidationError):
        await validate(make_context("create", viewset=CheckedViewSet))
    assert seen == []

    with pytest.raises(ValidationError) as exc_info:
        await validate(make_context("create", viewset=CheckedViewSet, data={"title": "HELLO"}))
    assert exc_info.value.errors == ["Title must not be all caps"]
    assert seen == ["create"]


@pytest.mark.asyncio
async def test_validation_runs_once_per_context():
    calls = []

    async def count_calls(ctx):
        calls.append(ctx)

    class CountingViewSet(ArticleViewSet):
        validators = {"remove": [count_calls]}

    ctx = make_context("remove", viewset=CountingViewSet, query=BY_ID)
    await validate(ctx)
    await validate(ctx)
    assert len(calls) == 1
