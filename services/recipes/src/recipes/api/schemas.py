"""API request/response schemas."""
from datetime import datetime, timezone
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.ingredients.vocabulary import MAX_INGREDIENT_LENGTH, MAX_INGREDIENTS, MIN_INGREDIENTS


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    message: str = "Operation completed successfully"
    timestamp: datetime = Field(default_factory=_now)


class ApiError(BaseModel):
    success: bool = False
    error: str
    details: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=_now)


class ValidateIngredientRequest(BaseModel):
    ingredient: str = Field(..., min_length=1, max_length=MAX_INGREDIENT_LENGTH)


class IngredientCheck(BaseModel):
    """Result of POST /api/ingredients/validate."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ingredient: str
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    suggestion: str | None = None
    confidence: float
    category: str | None = None
    alternatives: list[str] = Field(default_factory=list)


class SaveRecipeRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    ingredients: list[str] = Field(..., min_length=MIN_INGREDIENTS, max_length=MAX_INGREDIENTS)
    recipe_content: str = Field(..., min_length=10, max_length=5000)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v


class RecipeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    ingredients: list[str]
    recipe_content: str
    created_at: datetime


class HistoryQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1, le=50)
    search: str | None = None
    sort_by: Literal["created_at", "title"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class Pagination(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class HistoryPage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recipes: list[RecipeOut]
    pagination: Pagination
    search: str | None = None
    sort_by: str
    sort_order: str
