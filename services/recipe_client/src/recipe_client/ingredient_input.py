"""Ingredient entry with debounced validation and autocomplete.

Every keystroke reschedules one debounced lookup; only the last value typed
within ``debounce`` seconds reaches the API. When the API is unreachable,
rate limited or returns an error, the offline matcher answers instead.
"""
import asyncio
from collections.abc import Callable
from typing import Protocol

import structlog

from shared.errors import RecipeAppError
from shared.ingredients import (
    IngredientSuggestion,
    IngredientValidationResult,
    ingredient_errors,
    match,
    sanitize,
    suggest,
)
from shared.ingredients.vocabulary import AUTOCOMPLETE_MIN_CHARS, MAX_INGREDIENTS

logger = structlog.get_logger(__name__)


class IngredientLookup(Protocol):
    async def validate_ingredient(self, ingredient: str) -> IngredientValidationResult: ...

    async def suggest(self, query: str) -> list[IngredientSuggestion]: ...


class IngredientInput:
    def __init__(
        self,
        api: IngredientLookup,
        debounce: float = 0.3,
        on_change: Callable[["IngredientInput"], None] | None = None,
    ) -> None:
        self._api = api
        self.debounce = debounce
        self._on_change = on_change
        self.value = ""
        self.items: list[str] = []
        self.validation: IngredientValidationResult | None = None
        self.suggestions: list[IngredientSuggestion] = []
        self.offline = False
        self._pending: asyncio.Task | None = None

    def update(self, value: str) -> asyncio.Task:
        """Record the current text; lookups run after the debounce delay."""
        self.value = value
        self.cancel()
        self._pending = asyncio.create_task(self._lookup(value))
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def flush(self) -> None:
        if self._pending is not None:
            await asyncio.gather(self._pending, return_exceptions=True)

    def add(self, raw: str | None = None) -> list[str]:
        """Add an ingredient to the list; returns the reasons it was refused, if any."""
        raw = self.value if raw is None else raw
        errors = ingredient_errors(raw)
        if errors:
            return errors
        ingredient = sanitize(raw)
        if ingredient in self.items:
            return [f"{ingredient} is already in the list"]
        if len(self.items) >= MAX_INGREDIENTS:
            return [f"Maximum {MAX_INGREDIENTS} ingredients allowed"]
        self.items.append(ingredient)
        self.cancel()
        self.value = ""
        self.validation = None
        self.suggestions = []
        self._notify()
        return []

    def remove(self, ingredient: str) -> bool:
        ingredient = sanitize(ingredient)
        if ingredient not in self.items:
            return False
        self.items.remove(ingredient)
        self._notify()
        return True

    async def _lookup(self, value: str) -> None:
        await asyncio.sleep(self.debounce)
        self.offline = False
        await asyncio.gather(self._validate(value), self._suggest(value))
        self._notify()

    async def _validate(self, value: str) -> None:
        if not value.strip():
            self.validation = None
            return
        try:
            self.validation = await self._api.validate_ingredient(value)
        except RecipeAppError as e:
            logger.warning("ingredient_validation_offline", error=type(e).__name__)
            self.offline = True
            self.validation = match(value)

    async def _suggest(self, value: str) -> None:
        query = value.strip().lower()
        if len(query) < AUTOCOMPLETE_MIN_CHARS:
            self.suggestions = []
            return
        try:
            self.suggestions = await self._api.suggest(query)
        except RecipeAppError as e:
            logger.warning("ingredient_suggestions_offline", error=type(e).__name__)
            self.offline = True
            self.suggestions = suggest(query)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
