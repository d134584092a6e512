from recipes.clients.anthropic_client import AnthropicClient
from recipes.clients.base import RecipeModelClient
from recipes.clients.mock_client import MockRecipeClient

__all__ = ["AnthropicClient", "MockRecipeClient", "RecipeModelClient"]
