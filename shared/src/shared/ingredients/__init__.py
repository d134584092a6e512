"""Ingredient vocabulary, fuzzy matching and list validation."""
from shared.ingredients.matcher import (
    IngredientSuggestion,
    IngredientValidationResult,
    category_for,
    edit_distance,
    match,
    similarity,
    suggest,
)
from shared.ingredients.validation import ingredient_errors, sanitize, validate_ingredients

__all__ = [
    "IngredientSuggestion",
    "IngredientValidationResult",
    "category_for",
    "edit_distance",
    "ingredient_errors",
    "match",
    "sanitize",
    "similarity",
    "suggest",
    "validate_ingredients",
]
