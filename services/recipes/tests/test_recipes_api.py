"""HTTP tests for the recipes API (mock provider, mocked session factory)."""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from shared.sse import SSEDecoder, parse_event

from recipes.clients import MockRecipeClient
from recipes.config import RecipesSettings
from recipes.main import create_app
from recipes.service.rate_limit import FixedWindowRateLimiter, RateLimitService

USER = {"X-User-ID": "user-1"}


@pytest.fixture
def mock_session_factory() -> MagicMock:
    session = MagicMock()
    session.commit = AsyncMock()
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=session)
    cm.__aexit__ = AsyncMock(return_value=None)
    factory = MagicMock()
    factory.return_value = cm
    return factory


def make_limits(guest: int = 5, user: int = 20, validation: int = 10) -> RateLimitService:
    return RateLimitService(
        guest_generation=FixedWindowRateLimiter(guest, 3600),
        user_generation=FixedWindowRateLimiter(user, 3600),
        validation=FixedWindowRateLimiter(validation, 60),
    )


@pytest.fixture
def make_client(mock_session_factory: MagicMock):
    clients: list[TestClient] = []

    def _make(**limits) -> TestClient:
        app = create_app(
            RecipesSettings(json_logs=False),
            model_client=MockRecipeClient(),
            session_factory=mock_session_factory,
            rate_limits=make_limits(**limits),
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


def saved_recipe(**overrides) -> SimpleNamespace:
    data = {
        "id": uuid4(),
        "title": "Tomato Basil Pasta",
        "ingredients": ["tomato", "basil", "pasta"],
        "recipe_content": "# Tomato Basil Pasta\n1. Boil pasta.",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def stream_events(body: str):
    return [parse_event(d) for d in SSEDecoder().feed(body)]


def test_generate_streams_mock_recipe_end_to_end(make_client) -> None:
    client = make_client()
    resp = client.post("/api/recipes/generate", json={"ingredients": ["tomato", "basil", "olive oil"]})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache"
    assert resp.headers["x-ratelimit-limit"] == "5"
    assert resp.headers["x-ratelimit-remaining"] == "4"
    assert resp.headers["x-ratelimit-reset"].endswith("Z")

    events = stream_events(resp.text)
    assert [e.type for e in events[:-1]] == ["chunk"] * (len(events) - 1)
    final = events[-1]
    assert final.type == "complete"
    assert final.content.startswith("# Tomato with Basil and Olive Oil")
    assert "## Instructions" in final.content
    assert "".join(e.content for e in events[:-1]) == final.content
    assert final.ingredients == ["tomato", "basil", "olive oil"]


def test_generate_uses_user_quota_when_authenticated(make_client) -> None:
    client = make_client(guest=1, user=2)
    resp = client.post("/api/recipes/generate", json={"ingredients": ["tomato", "basil", "rice"]}, headers=USER)
    assert resp.headers["x-ratelimit-limit"] == "2"


def test_generate_rate_limited_returns_429(make_client) -> None:
    client = make_client(guest=1)
    body = {"ingredients": ["tomato", "basil", "rice"]}
    assert client.post("/api/recipes/generate", json=body).status_code == 200

    resp = client.post("/api/recipes/generate", json=body)
    assert resp.status_code == 429
    data = resp.json()
    assert data["success"] is False
    assert data["error"] == "Rate limit exceeded. Please try again later."
    assert data["details"]["limit"] == 1
    assert data["details"]["remaining"] == 0
    assert data["details"]["retryAfter"] >= 1
    assert resp.headers["retry-after"] == str(data["details"]["retryAfter"])


def test_generate_rejects_duplicates_with_400(make_client) -> None:
    client = make_client()
    resp = client.post("/api/recipes/generate", json={"ingredients": ["tomato", "Tomato", "basil"]})
    assert resp.status_code == 400
    data = resp.json()
    assert data["error"] == "Invalid request data"
    assert any("Duplicate" in e for e in data["details"]["errors"])
    assert data["details"]["rateLimitInfo"]["remaining"] == 4


def test_generate_rejects_malformed_body(make_client) -> None:
    client = make_client()
    resp = client.post("/api/recipes/generate", content=b"not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["details"]["errors"] == ["ingredients: Expected an array of strings"]


def test_validate_ingredient_returns_suggestion(make_client) -> None:
    client = make_client()
    resp = client.post("/api/ingredients/validate", json={"ingredient": "tomatoe"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["isValid"] is False
    assert data["suggestion"] == "tomato"
    assert data["confidence"] > 0.6


def test_validate_ingredient_rejects_non_food(make_client) -> None:
    client = make_client()
    data = client.post("/api/ingredients/validate", json={"ingredient": "motor oil"}).json()["data"]
    assert data["isValid"] is False
    assert data["errors"] == ["This item is not a valid ingredient"]


def test_validate_ingredient_empty_is_400(make_client) -> None:
    client = make_client()
    resp = client.post("/api/ingredients/validate", json={"ingredient": ""})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request data"
    assert resp.json()["details"]["errors"][0].startswith("ingredient:")


def test_validation_is_rate_limited(make_client) -> None:
    client = make_client(validation=1)
    assert client.post("/api/ingredients/validate", json={"ingredient": "basil"}).status_code == 200
    resp = client.post("/api/ingredients/validate", json={"ingredient": "basil"})
    assert resp.status_code == 429
    assert resp.json()["error"] == "Too many validation requests. Please slow down."


def test_autocomplete_short_query_does_not_consume_quota(make_client) -> None:
    client = make_client(validation=1)
    for _ in range(3):
        resp = client.get("/api/ingredients/validate", params={"q": "t"})
        assert resp.json()["data"] == []

    resp = client.get("/api/ingredients/validate", params={"q": "tom"})
    values = [s["value"] for s in resp.json()["data"]]
    assert "tomato" in values
    assert resp.json()["data"][0]["label"][0].isupper()

    assert client.get("/api/ingredients/validate", params={"q": "tom"}).status_code == 429


def test_history_requires_user(make_client) -> None:
    client = make_client()
    resp = client.get("/api/recipes/history")
    assert resp.status_code == 401
    assert resp.json()["success"] is False
    assert resp.json()["error"] == "Authentication required"


def test_save_recipe(make_client, mock_session_factory: MagicMock) -> None:
    client = make_client()
    recipe = saved_recipe()
    with patch("recipes.api.routes.RecipeRepository") as repo_cls:
        repo_cls.return_value.count_for_user = AsyncMock(return_value=0)
        repo_cls.return_value.add = AsyncMock(return_value=recipe)
        resp = client.post(
            "/api/recipes/save",
            json={
                "title": "  Tomato Basil Pasta ",
                "ingredients": ["Tomato", "basil", "pasta"],
                "recipe_content": recipe.recipe_content,
            },
            headers=USER,
        )

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Recipe saved successfully"
    assert body["data"]["id"] == str(recipe.id)
    repo_cls.return_value.add.assert_awaited_once_with(
        "user-1", "Tomato Basil Pasta", ["tomato", "basil", "pasta"], recipe.recipe_content
    )
    session = mock_session_factory.return_value.__aenter__.return_value
    session.commit.assert_awaited_once()


def test_save_recipe_over_quota(make_client) -> None:
    client = make_client()
    with patch("recipes.api.routes.RecipeRepository") as repo_cls:
        repo_cls.return_value.count_for_user = AsyncMock(return_value=1000)
        repo_cls.return_value.add = AsyncMock()
        resp = client.post(
            "/api/recipes/save",
            json={"title": "T", "ingredients": ["tomato", "basil", "pasta"], "recipe_content": "x" * 20},
            headers=USER,
        )
    assert resp.status_code == 429
    repo_cls.return_value.add.assert_not_called()


def test_history_page(make_client) -> None:
    client = make_client()
    recipe = saved_recipe()
    with patch("recipes.api.routes.RecipeRepository") as repo_cls:
        repo_cls.return_value.list_for_user = AsyncMock(return_value=([recipe], 13))
        resp = client.get(
            "/api/recipes/history",
            params={"page": 1, "limit": 12, "sortBy": "title", "sortOrder": "asc", "search": "pasta"},
            headers=USER,
        )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["pagination"] == {
        "currentPage": 1,
        "totalPages": 2,
        "totalCount": 13,
        "limit": 12,
        "hasNextPage": True,
        "hasPrevPage": False,
    }
    assert data["sortBy"] == "title"
    assert data["recipes"][0]["title"] == "Tomato Basil Pasta"
    repo_cls.return_value.list_for_user.assert_awaited_once_with(
        "user-1", page=1, limit=12, search="pasta", sort_by="title", sort_order="asc"
    )


def test_history_rejects_bad_sort(make_client) -> None:
    client = make_client()
    resp = client.get("/api/recipes/history", params={"sortBy": "user_id"}, headers=USER)
    assert resp.status_code == 400


def test_get_recipe_not_found_and_bad_id(make_client) -> None:
    client = make_client()
    with patch("recipes.api.routes.RecipeRepository") as repo_cls:
        repo_cls.return_value.get = AsyncMock(return_value=None)
        missing = client.get(f"/api/recipes/{uuid4()}", headers=USER)
    assert missing.status_code == 404
    assert missing.json()["error"] == "Recipe not found"

    bad = client.get("/api/recipes/not-a-uuid", headers=USER)
    assert bad.status_code == 400
    assert bad.json()["error"] == "Invalid recipe ID format"


def test_delete_recipe(make_client) -> None:
    client = make_client()
    recipe = saved_recipe()
    with patch("recipes.api.routes.RecipeRepository") as repo_cls:
        repo_cls.return_value.delete = AsyncMock(return_value=recipe)
        resp = client.delete(f"/api/recipes/{recipe.id}", headers=USER)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Recipe deleted successfully"
    repo_cls.return_value.delete.assert_awaited_once_with("user-1", recipe.id)


def test_health_and_request_id(make_client) -> None:
    client = make_client()
    resp = client.get("/healthz", headers={"X-Request-ID": "abc"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["x-request-id"] == "abc"

    ready = client.get("/readyz")
    assert ready.status_code == 200
    assert ready.json()["checks"]["ai"]["status"] == "healthy"
