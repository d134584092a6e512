"""Prompt assembly for recipe generation."""
import re

PROMPT_TEMPLATE = """Create a delicious recipe using these ingredients: {ingredients}.

Please format the recipe clearly with sections for ingredients (with measurements), instructions, prep time, cook time, and servings. Make the recipe practical and achievable for home cooks."""

_INGREDIENTS_LINE = re.compile(r"using these ingredients: (.+?)\.\n")


def build_recipe_prompt(ingredients: list[str]) -> str:
    return PROMPT_TEMPLATE.format(ingredients=", ".join(ingredients))


def ingredients_from_prompt(prompt: str) -> list[str]:
    """Recover the ingredient list embedded by build_recipe_prompt (used by the mock provider)."""
    m = _INGREDIENTS_LINE.search(prompt)
    if not m:
        return []
    return [i.strip() for i in m.group(1).split(",") if i.strip()]
