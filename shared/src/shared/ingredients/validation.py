"""IngredientList normalization and validation."""
import re

from shared.errors import IngredientValidationError
from shared.ingredients.vocabulary import (
    DENYLIST,
    KNOWN_INGREDIENT_SET,
    MAX_INGREDIENT_LENGTH,
    MAX_INGREDIENTS,
    MIN_INGREDIENTS,
)

_UNSAFE_CHARS = re.compile(r"[<>\"'&]")
_WHITESPACE = re.compile(r"\s+")


def sanitize(value: str) -> str:
    """Trim, strip markup-significant characters, collapse whitespace, lowercase."""
    cleaned = _UNSAFE_CHARS.sub("", value.strip())
    return _WHITESPACE.sub(" ", cleaned).strip().lower()


def contains_denylisted_term(ingredient: str) -> str | None:
    """Return the non-food term an ingredient contains, if any.

    Vocabulary entries are always accepted ("olive oil" contains "oil").
    """
    if ingredient in KNOWN_INGREDIENT_SET:
        return None
    for item in DENYLIST:
        if item in ingredient:
            return item
    return None


def ingredient_errors(raw: str, position: int | None = None) -> list[str]:
    """Every constraint a single ingredient violates (empty list when valid)."""
    where = f"ingredients.{position}: " if position is not None else ""
    if not raw or not raw.strip():
        return [f"{where}Ingredient cannot be empty"]
    errors: list[str] = []
    if len(raw.strip()) > MAX_INGREDIENT_LENGTH:
        errors.append(f"{where}Ingredient must be at most {MAX_INGREDIENT_LENGTH} characters")
    cleaned = sanitize(raw)
    if not cleaned:
        errors.append(f"{where}Ingredient cannot be empty")
    elif contains_denylisted_term(cleaned):
        errors.append(f"{where}This item is not a valid ingredient")
    return errors


def validate_ingredients(raw: list[str]) -> list[str]:
    """Normalize and validate a submitted IngredientList.

    Returns the sanitized list in submission order. Raises
    IngredientValidationError listing every violated constraint.
    """
    errors: list[str] = []
    if len(raw) < MIN_INGREDIENTS:
        errors.append(f"ingredients: At least {MIN_INGREDIENTS} ingredients required")
    if len(raw) > MAX_INGREDIENTS:
        errors.append(f"ingredients: Maximum {MAX_INGREDIENTS} ingredients allowed")

    cleaned: list[str] = []
    for i, item in enumerate(raw):
        item_errors = ingredient_errors(item, position=i)
        errors.extend(item_errors)
        cleaned.append(sanitize(item))

    seen: set[str] = set()
    duplicates: list[str] = []
    for item in cleaned:
        if not item:
            continue
        if item in seen and item not in duplicates:
            duplicates.append(item)
        seen.add(item)
    if duplicates:
        errors.append(
            "ingredients: Duplicate ingredients are not allowed (" + ", ".join(duplicates) + ")"
        )

    if errors:
        raise IngredientValidationError(errors)
    return cleaned
