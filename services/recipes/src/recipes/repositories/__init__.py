"""Repositories."""
from recipes.repositories.models import Base, SavedRecipe
from recipes.repositories.recipe_repository import RecipeRepository

__all__ = ["Base", "RecipeRepository", "SavedRecipe"]
