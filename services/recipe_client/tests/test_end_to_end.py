"""Client against the real recipes app over ASGI with the mock provider."""
from unittest.mock import MagicMock

import httpx
import pytest

from recipe_client.api import RecipesApiClient
from recipe_client.consumer import ConsumerState, RecipeStreamConsumer
from recipes.clients import MockRecipeClient
from recipes.config import RecipesSettings
from recipes.main import create_app


@pytest.mark.asyncio
async def test_tomato_basil_olive_oil_round_trip() -> None:
    app = create_app(
        RecipesSettings(json_logs=False),
        model_client=MockRecipeClient(),
        session_factory=MagicMock(),
    )
    async with app.router.lifespan_context(app):
        api = RecipesApiClient("http://recipes.test", transport=httpx.ASGITransport(app=app))
        consumer = RecipeStreamConsumer(api, typing_delay=0, cursor_blink=10)
        consumer.set_ingredients(["tomato", "basil", "olive oil"])
        consumer.generate()
        await consumer.wait()
        await api.aclose()

    assert consumer.state == ConsumerState.DONE
    assert consumer.title == "Tomato with Basil and Olive Oil"
    assert "## Instructions" in consumer.recipe_text
    assert "1. " in consumer.recipe_text
    assert consumer.display.displayed == consumer.recipe_text
