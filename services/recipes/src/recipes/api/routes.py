"""Recipes API routes."""
import math
from collections.abc import AsyncIterator
from contextlib import aclosing
from uuid import UUID, uuid4

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from shared.errors import RateLimitExceeded
from shared.ingredients import ingredient_errors, match, suggest, validate_ingredients
from shared.ingredients.vocabulary import AUTOCOMPLETE_MIN_CHARS
from shared.sse import encode_event

from recipes import metrics
from recipes.api.deps import require_user_id, resolve_identity
from recipes.api.schemas import (
    ApiResponse,
    HistoryPage,
    HistoryQuery,
    IngredientCheck,
    Pagination,
    RecipeOut,
    SaveRecipeRequest,
    ValidateIngredientRequest,
)
from recipes.repositories import RecipeRepository
from recipes.service import GenerationRequest, GenerationService, RateLimitService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["recipes"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _sse_frames(service: GenerationService, gen_request: GenerationRequest) -> AsyncIterator[str]:
    async with aclosing(service.stream_events(gen_request)) as events:
        async for event in events:
            yield encode_event(event)


@router.post("/recipes/generate")
async def generate_recipe(request: Request) -> StreamingResponse:
    service: GenerationService = request.app.state.generation_service
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    raw_ingredients = payload.get("ingredients") if isinstance(payload, dict) else None
    request_id = getattr(request.state, "request_id", None) or str(uuid4())

    gen_request, limit = service.admit(raw_ingredients, resolve_identity(request), request_id)
    return StreamingResponse(
        _sse_frames(service, gen_request),
        media_type="text/event-stream",
        headers={**STREAM_HEADERS, **limit.headers()},
    )


def _consume_validation(request: Request, message: str) -> None:
    rate_limits: RateLimitService = request.app.state.rate_limits
    result = rate_limits.consume_validation(resolve_identity(request).key)
    if not result.allowed:
        metrics.RATE_LIMIT_REJECTIONS.labels(action="validation").inc()
        raise RateLimitExceeded(
            retry_after=result.retry_after or 1,
            reset_time=result.reset_time,
            limit=result.limit,
            remaining=result.remaining,
            user_message=message,
        )


@router.post("/ingredients/validate", response_model=ApiResponse)
async def validate_ingredient(body: ValidateIngredientRequest, request: Request) -> ApiResponse:
    _consume_validation(request, "Too many validation requests. Please slow down.")
    errors = ingredient_errors(body.ingredient)
    smart = match(body.ingredient)
    check = IngredientCheck(
        ingredient=body.ingredient,
        is_valid=not errors and smart.is_valid,
        errors=errors,
        suggestion=smart.suggestion,
        confidence=smart.confidence,
        category=smart.category,
        alternatives=smart.alternatives,
    )
    metrics.INGREDIENT_VALIDATIONS.labels(valid=str(check.is_valid).lower()).inc()
    return ApiResponse(data=check.model_dump(by_alias=True))


@router.get("/ingredients/validate", response_model=ApiResponse)
async def autocomplete_ingredients(request: Request, q: str = "") -> ApiResponse:
    query = q.strip().lower()
    if len(query) < AUTOCOMPLETE_MIN_CHARS:
        return ApiResponse(data=[])
    _consume_validation(request, "Too many requests. Please slow down.")
    return ApiResponse(data=[s.model_dump() for s in suggest(query)])


@router.post("/recipes/save", response_model=ApiResponse)
async def save_recipe(
    body: SaveRecipeRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> ApiResponse:
    ingredients = validate_ingredients(body.ingredients)
    settings = request.app.state.settings
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        repo = RecipeRepository(session)
        if await repo.count_for_user(user_id) >= settings.max_saved_recipes_per_user:
            raise HTTPException(
                status_code=429,
                detail="Recipe limit reached. Please delete some recipes to save new ones.",
            )
        recipe = await repo.add(user_id, body.title, ingredients, body.recipe_content)
        await session.commit()
        out = RecipeOut.model_validate(recipe)
    logger.info("recipe_saved", recipe_id=str(out.id))
    return ApiResponse(data=out.model_dump(mode="json"), message="Recipe saved successfully")


@router.get("/recipes/history", response_model=ApiResponse)
async def recipe_history(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    search: str | None = None,
    sort_by: str = Query("created_at", alias="sortBy", pattern="^(created_at|title)$"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    user_id: str = Depends(require_user_id),
) -> ApiResponse:
    query = HistoryQuery(page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order)
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        repo = RecipeRepository(session)
        recipes, total = await repo.list_for_user(
            user_id,
            page=query.page,
            limit=query.limit,
            search=query.search,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
        )
        items = [RecipeOut.model_validate(r) for r in recipes]
    total_pages = math.ceil(total / query.limit) if total else 0
    page_out = HistoryPage(
        recipes=items,
        pagination=Pagination(
            current_page=query.page,
            total_pages=total_pages,
            total_count=total,
            limit=query.limit,
            has_next_page=query.page < total_pages,
            has_prev_page=query.page > 1,
        ),
        search=query.search,
        sort_by=query.sort_by,
        sort_order=query.sort_order,
    )
    return ApiResponse(data=page_out.model_dump(mode="json", by_alias=True))


def _parse_recipe_id(recipe_id: str) -> UUID:
    try:
        return UUID(recipe_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid recipe ID format") from None


@router.get("/recipes/{recipe_id}", response_model=ApiResponse)
async def get_recipe(
    recipe_id: str,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> ApiResponse:
    rid = _parse_recipe_id(recipe_id)
    async with request.app.state.session_factory() as session:
        recipe = await RecipeRepository(session).get(user_id, rid)
        if recipe is None:
            raise HTTPException(status_code=404, detail="Recipe not found")
        out = RecipeOut.model_validate(recipe)
    return ApiResponse(data=out.model_dump(mode="json"))


@router.delete("/recipes/{recipe_id}", response_model=ApiResponse)
async def delete_recipe(
    recipe_id: str,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> ApiResponse:
    rid = _parse_recipe_id(recipe_id)
    async with request.app.state.session_factory() as session:
        recipe = await RecipeRepository(session).delete(user_id, rid)
        if recipe is None:
            raise HTTPException(status_code=404, detail="Recipe not found")
        out = RecipeOut.model_validate(recipe)
        await session.commit()
    return ApiResponse(data=out.model_dump(mode="json"), message="Recipe deleted successfully")
