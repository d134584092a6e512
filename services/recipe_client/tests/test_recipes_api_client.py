"""Tests for the recipes HTTP client (httpx.MockTransport)."""
import json

import httpx
import pytest

from shared.errors import (
    CancelledByUser,
    IngredientValidationError,
    RateLimitExceeded,
    RecipeAppError,
    TransportError,
    UpstreamGenerationError,
)
from shared.sse import StreamEvent, encode_event

from recipe_client.api import RecipesApiClient


def make_client(handler, **kwargs) -> RecipesApiClient:
    return RecipesApiClient("http://recipes.test", retries=1, transport=httpx.MockTransport(handler), **kwargs)


async def collect(client: RecipesApiClient, ingredients=("tomato", "basil", "rice")):
    return [e async for e in client.stream_recipe(list(ingredients))]


@pytest.mark.asyncio
async def test_stream_recipe_yields_events_until_terminal() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user"] = request.headers.get("x-user-id")
        seen["body"] = json.loads(request.content)
        body = (
            encode_event(StreamEvent.chunk("Recipe"))
            + encode_event(StreamEvent.chunk(" Title"))
            + "data: {broken\n\n"
            + encode_event(StreamEvent.complete("Recipe Title"))
        )
        return httpx.Response(200, content=body.encode(), headers={"content-type": "text/event-stream"})

    client = make_client(handler, user_id="u-1")
    events = await collect(client)
    await client.aclose()

    assert [e.type for e in events] == ["chunk", "chunk", "complete"]
    assert events[-1].content == "Recipe Title"
    assert seen["user"] == "u-1"
    assert seen["body"] == {"ingredients": ["tomato", "basil", "rice"]}


@pytest.mark.asyncio
async def test_rate_limited_response_raises_with_retry_after() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={
                "success": False,
                "error": "Rate limit exceeded. Please try again later.",
                "details": {"retryAfter": 42, "resetTime": "2024-01-01T13:00:00Z", "limit": 5, "remaining": 0},
            },
            headers={"Retry-After": "42"},
        )

    with pytest.raises(RateLimitExceeded) as exc_info:
        await collect(make_client(handler))
    assert exc_info.value.retry_after == 42
    assert exc_info.value.limit == 5
    assert exc_info.value.display_message() == "Rate limit exceeded. Please try again in 42 seconds."


@pytest.mark.asyncio
async def test_validation_response_raises_with_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"success": False, "error": "Invalid request data", "details": {"errors": ["ingredients: dup"]}},
        )

    with pytest.raises(IngredientValidationError) as exc_info:
        await collect(make_client(handler))
    assert exc_info.value.errors == ["ingredients: dup"]


@pytest.mark.asyncio
async def test_server_error_is_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    with pytest.raises(UpstreamGenerationError):
        await collect(make_client(handler))


@pytest.mark.asyncio
async def test_cancelled_status_maps_to_cancelled_by_user() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(499, json={"success": False, "error": "Recipe generation was cancelled."})

    with pytest.raises(CancelledByUser):
        await collect(make_client(handler))


@pytest.mark.asyncio
async def test_stream_without_terminal_event_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=encode_event(StreamEvent.chunk("Rec")).encode())

    with pytest.raises(TransportError):
        await collect(make_client(handler))


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        await collect(make_client(handler))


@pytest.mark.asyncio
async def test_validate_and_suggest() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "data": {
                        "ingredient": "tomatoe",
                        "isValid": False,
                        "errors": [],
                        "suggestion": "tomato",
                        "confidence": 0.86,
                        "category": "vegetables",
                        "alternatives": [],
                    },
                },
            )
        assert request.url.params["q"] == "tom"
        return httpx.Response(
            200, json={"success": True, "data": [{"value": "tomato", "label": "Tomato", "category": "vegetables"}]}
        )

    client = make_client(handler)
    result = await client.validate_ingredient("tomatoe")
    assert result.is_valid is False
    assert result.suggestion == "tomato"
    suggestions = await client.suggest("tom")
    assert [s.value for s in suggestions] == ["tomato"]


@pytest.mark.asyncio
async def test_save_requires_user_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": {"id": "r-1"}})

    with pytest.raises(RecipeAppError):
        await make_client(handler).save_recipe("T", ["a", "b", "c"], "content here")
    saved = await make_client(handler, user_id="u-1").save_recipe("T", ["a", "b", "c"], "content here")
    assert saved == {"id": "r-1"}


@pytest.mark.asyncio
async def test_save_is_sent_once_even_when_the_response_is_lost() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if len(paths) == 1:
            raise httpx.ReadTimeout("response lost", request=request)
        return httpx.Response(200, json={"success": True, "data": {"id": "r-1"}})

    client = RecipesApiClient(
        "http://recipes.test", user_id="u-1", retries=3, transport=httpx.MockTransport(handler)
    )
    with pytest.raises(TransportError):
        await client.save_recipe("T", ["a", "b", "c"], "content here")
    assert paths == ["/api/recipes/save"]


@pytest.mark.asyncio
async def test_history_passes_query_aliases() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "data": {"recipes": []}})

    await make_client(handler, user_id="u-1").history(page=2, search="pasta", sort_by="title")
    assert seen["params"] == {"page": "2", "limit": "12", "sortBy": "title", "sortOrder": "desc", "search": "pasta"}
