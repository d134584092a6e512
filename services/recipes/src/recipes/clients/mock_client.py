"""Mock provider: deterministic recipe built from the prompt's ingredients, streamed in small chunks."""
import asyncio
import re
from collections.abc import AsyncIterator

from recipes.clients.base import RecipeModelClient
from recipes.service.prompts import ingredients_from_prompt

_TOKEN = re.compile(r"\S+\s*|\s+")


def _title_case(s: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in s.split())


def build_mock_recipe(ingredients: list[str]) -> str:
    if not ingredients:
        ingredients = ["pantry staples"]
    main = _title_case(ingredients[0])
    rest = [_title_case(i) for i in ingredients[1:3]]
    title = f"{main} with {' and '.join(rest)}" if rest else f"Simple {main}"
    lines = [
        f"# {title}",
        "",
        "**Prep Time:** 10 minutes",
        "**Cook Time:** 20 minutes",
        "**Servings:** 2",
        "",
        "## Ingredients",
    ]
    lines.extend(f"- 1 cup {i}" for i in ingredients)
    lines.extend(
        [
            "",
            "## Instructions",
            f"1. Wash and prepare the {ingredients[0]}.",
            "2. Heat a pan over medium heat.",
            f"3. Add {', '.join(ingredients)} and cook for 15 minutes, stirring occasionally.",
            "4. Season to taste and serve warm.",
            "",
            "## Chef's Tips",
            "- Taste as you go and adjust seasoning at the end.",
        ]
    )
    return "\n".join(lines)


class MockRecipeClient(RecipeModelClient):
    name = "mock"

    def __init__(self, chunk_delay: float = 0.0, fail_after: int | None = None) -> None:
        self._chunk_delay = chunk_delay
        self._fail_after = fail_after

    async def stream(
        self,
        prompt: str,
        *,
        system: str,
        max_tokens: int,
        temperature: float,
    ) -> AsyncIterator[str]:
        text = build_mock_recipe(ingredients_from_prompt(prompt))
        for i, token in enumerate(_TOKEN.findall(text)):
            if self._fail_after is not None and i >= self._fail_after:
                raise RuntimeError("mock provider failure")
            if self._chunk_delay:
                await asyncio.sleep(self._chunk_delay)
            yield token
