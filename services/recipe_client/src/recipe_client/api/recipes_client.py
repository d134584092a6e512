"""HTTP client to the recipes service API."""
from collections.abc import AsyncIterator
from typing import Any

import httpx
import structlog

from shared.errors import (
    CancelledByUser,
    IngredientValidationError,
    RateLimitExceeded,
    RecipeAppError,
    TransportError,
    UpstreamGenerationError,
)
from shared.http_client import create_http_client, request_with_retries
from shared.ingredients import IngredientSuggestion, IngredientValidationResult
from shared.sse import StreamEvent, iter_events

logger = structlog.get_logger(__name__)

STREAM_INTERRUPTED = "Connection lost while generating the recipe. Please try again."
SIGN_IN_REQUIRED = "Please sign in to save recipes"


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def error_from_response(response: httpx.Response) -> RecipeAppError:
    """Map a non-2xx recipes API response onto the shared error taxonomy."""
    body = _error_body(response)
    message = body.get("error") or None
    details = body.get("details") or {}
    status = response.status_code
    if status == 429:
        retry_after = details.get("retryAfter") or response.headers.get("retry-after") or 1
        return RateLimitExceeded(
            retry_after=int(retry_after),
            reset_time=details.get("resetTime"),
            limit=details.get("limit"),
            remaining=details.get("remaining", 0),
            user_message=message,
        )
    if status == 400:
        return IngredientValidationError(
            details.get("errors", []),
            user_message=message,
            rate_limit_info=details.get("rateLimitInfo"),
        )
    if status == CancelledByUser.status_code:
        return CancelledByUser(message)
    if status >= 500:
        return UpstreamGenerationError(message)
    return RecipeAppError(message)


class RecipesApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        user_id: str | None = None,
        retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = create_http_client(base_url, timeout=timeout, transport=transport)
        self._user_id = user_id or None
        self._retries = retries

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def _headers(self) -> dict[str, str]:
        if self._user_id:
            return {"X-User-ID": self._user_id}
        return {}

    async def stream_recipe(self, ingredients: list[str]) -> AsyncIterator[StreamEvent]:
        """Open one generation stream and yield its events up to the terminal one.

        Rejections before the stream opens raise the matching RecipeAppError;
        a stream that ends without a terminal event raises TransportError.
        """
        try:
            async with self._client.stream(
                "POST",
                "/api/recipes/generate",
                json={"ingredients": ingredients},
                headers={**self._headers(), "Accept": "text/event-stream"},
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise error_from_response(response)
                logger.debug(
                    "recipe_stream_opened",
                    remaining=response.headers.get("x-ratelimit-remaining"),
                )
                async for event in iter_events(response.aiter_text()):
                    yield event
                    if event.is_terminal:
                        return
        except httpx.HTTPError as e:
            logger.warning("recipe_stream_transport_error", error=type(e).__name__)
            raise TransportError() from e
        raise TransportError(STREAM_INTERRUPTED)

    async def _request(self, method: str, url: str, retries: int | None = None, **kwargs: Any) -> Any:
        try:
            resp = await request_with_retries(
                self._client,
                method,
                url,
                headers=self._headers(),
                retries=self._retries if retries is None else retries,
                **kwargs,
            )
        except httpx.HTTPStatusError as e:
            raise error_from_response(e.response) from e
        except httpx.HTTPError as e:
            raise TransportError() from e
        return resp.json().get("data")

    async def validate_ingredient(self, ingredient: str) -> IngredientValidationResult:
        data = await self._request("POST", "/api/ingredients/validate", json={"ingredient": ingredient})
        return IngredientValidationResult.model_validate(data)

    async def suggest(self, query: str) -> list[IngredientSuggestion]:
        data = await self._request("GET", "/api/ingredients/validate", params={"q": query})
        return [IngredientSuggestion.model_validate(item) for item in data or []]

    async def save_recipe(self, title: str, ingredients: list[str], recipe_content: str) -> dict:
        if not self._user_id:
            raise RecipeAppError(SIGN_IN_REQUIRED)
        return await self._request(
            "POST",
            "/api/recipes/save",
            json={"title": title, "ingredients": ingredients, "recipe_content": recipe_content},
            # not idempotent, never replayed
            retries=1,
        )

    async def history(
        self,
        page: int = 1,
        limit: int = 12,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        params: dict[str, Any] = {"page": page, "limit": limit, "sortBy": sort_by, "sortOrder": sort_order}
        if search:
            params["search"] = search
        return await self._request("GET", "/api/recipes/history", params=params)

    async def aclose(self) -> None:
        await self._client.aclose()
