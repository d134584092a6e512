"""Saved recipe repository; every query is scoped to the owning user."""
from typing import Literal
from uuid import UUID

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from recipes.repositories.models import SavedRecipe

SortField = Literal["created_at", "title"]
SortOrder = Literal["asc", "desc"]

LIKE_ESCAPE = "\\"


def like_pattern(search: str) -> str:
    """Case-folded substring pattern with LIKE wildcards in ``search`` matched literally."""
    term = search.strip().lower()
    for char in (LIKE_ESCAPE, "%", "_"):
        term = term.replace(char, LIKE_ESCAPE + char)
    return f"%{term}%"


class RecipeRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        user_id: str,
        title: str,
        ingredients: list[str],
        recipe_content: str,
    ) -> SavedRecipe:
        recipe = SavedRecipe(
            user_id=user_id,
            title=title,
            ingredients=ingredients,
            recipe_content=recipe_content,
        )
        self._session.add(recipe)
        await self._session.flush()
        return recipe

    async def count_for_user(self, user_id: str) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(SavedRecipe).where(SavedRecipe.user_id == user_id)
        )
        return int(result.scalar_one())

    async def get(self, user_id: str, recipe_id: UUID) -> SavedRecipe | None:
        result = await self._session.execute(
            select(SavedRecipe).where(SavedRecipe.id == recipe_id, SavedRecipe.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def delete(self, user_id: str, recipe_id: UUID) -> SavedRecipe | None:
        recipe = await self.get(user_id, recipe_id)
        if recipe is None:
            return None
        await self._session.execute(
            delete(SavedRecipe).where(SavedRecipe.id == recipe_id, SavedRecipe.user_id == user_id)
        )
        return recipe

    async def list_for_user(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 12,
        search: str | None = None,
        sort_by: SortField = "created_at",
        sort_order: SortOrder = "desc",
    ) -> tuple[list[SavedRecipe], int]:
        """One page of the user's recipes plus the total count matching the filter."""
        conditions = [SavedRecipe.user_id == user_id]
        if search and search.strip():
            term = like_pattern(search)
            conditions.append(
                or_(
                    func.lower(SavedRecipe.title).like(term, escape=LIKE_ESCAPE),
                    func.lower(cast(SavedRecipe.ingredients, String)).like(term, escape=LIKE_ESCAPE),
                )
            )
        column = SavedRecipe.title if sort_by == "title" else SavedRecipe.created_at
        order = column.asc() if sort_order == "asc" else column.desc()

        total = await self._session.execute(
            select(func.count()).select_from(SavedRecipe).where(*conditions)
        )
        rows = await self._session.execute(
            select(SavedRecipe)
            .where(*conditions)
            .order_by(order)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(rows.scalars().all()), int(total.scalar_one())
