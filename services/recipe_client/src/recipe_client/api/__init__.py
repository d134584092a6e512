from recipe_client.api.recipes_client import RecipesApiClient, error_from_response

__all__ = ["RecipesApiClient", "error_from_response"]
