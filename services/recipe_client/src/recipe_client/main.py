"""Terminal recipe client: streams a recipe and types it out.

    python -m recipe_client.main tomato basil "olive oil" [--save]
"""
import argparse
import asyncio
import sys

import structlog

from shared.errors import CancelledByUser, RecipeAppError
from shared.logging import configure_logging

from recipe_client.api import RecipesApiClient
from recipe_client.config import RecipeClientSettings
from recipe_client.consumer import ConsumerState, RecipeStreamConsumer
from recipe_client.ingredient_input import IngredientInput

logger = structlog.get_logger(__name__)


def get_settings() -> RecipeClientSettings:
    return RecipeClientSettings()


class TerminalRenderer:
    """Writes newly revealed characters to a text stream."""

    def __init__(self, out=sys.stdout) -> None:
        self._out = out
        self._written = 0

    def __call__(self, consumer: RecipeStreamConsumer) -> None:
        displayed = consumer.display.displayed
        if len(displayed) < self._written:
            self._written = 0
        if len(displayed) > self._written:
            self._out.write(displayed[self._written :])
            self._out.flush()
            self._written = len(displayed)


def build_consumer(api, settings: RecipeClientSettings, on_update=None) -> RecipeStreamConsumer:
    return RecipeStreamConsumer(
        api,
        typewriter_mode=settings.typewriter_mode,
        typing_delay=settings.typing_delay_seconds,
        cursor_blink=settings.cursor_blink_seconds,
        auto_generate=settings.auto_generate,
        on_update=on_update,
    )


def build_ingredient_input(api, settings: RecipeClientSettings) -> IngredientInput:
    return IngredientInput(api, debounce=settings.debounce_seconds)


async def collect_ingredients(entry: IngredientInput, raw_items: list[str], err=None) -> list[str] | None:
    """Check each ingredient like an interactive entry would; None if any is refused."""
    err = err or sys.stderr
    for raw in raw_items:
        entry.update(raw)
        await entry.flush()
        hint = entry.validation
        if hint is not None and not hint.is_valid and hint.suggestion:
            print(f"{raw}: did you mean {hint.suggestion}?", file=err)
        errors = entry.add(raw)
        if errors:
            print("; ".join(errors), file=err)
            return None
    return entry.items


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="recipe_client", description="Generate a recipe from ingredients.")
    parser.add_argument("ingredients", nargs="+", help="ingredients to cook with")
    parser.add_argument("--save", action="store_true", help="save the recipe (needs RECIPE_CLIENT_USER_ID)")
    parser.add_argument("--base-url", default=None, help="recipes service URL")
    return parser.parse_args(argv)


async def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(json_logs=settings.json_logs, level=settings.log_level)

    api = RecipesApiClient(
        args.base_url or settings.base_url,
        timeout=settings.timeout_seconds,
        user_id=settings.user_id,
        retries=settings.request_retries,
    )
    consumer = build_consumer(api, settings, on_update=TerminalRenderer())
    try:
        ingredients = await collect_ingredients(build_ingredient_input(api, settings), args.ingredients)
        if ingredients is None:
            return 2
        consumer.set_ingredients(ingredients)
        try:
            consumer.generate()
        except RecipeAppError as e:
            print(e.user_message, file=sys.stderr)
            return 2
        await consumer.wait()
        print()
        if consumer.state == ConsumerState.CANCELLED:
            print(CancelledByUser.default_message, file=sys.stderr)
            return 130
        if consumer.state != ConsumerState.DONE:
            print(consumer.error_message or "Recipe generation did not finish.", file=sys.stderr)
            return 1
        if consumer.title:
            logger.info("recipe_ready", title=consumer.title)
        if args.save:
            try:
                saved = await consumer.save()
            except RecipeAppError as e:
                print(e.user_message, file=sys.stderr)
                return 1
            print(f"Saved as {saved.get('id')}")
        return 0
    finally:
        await consumer.close()
        await api.aclose()


def main() -> None:
    try:
        code = asyncio.run(run())
    except KeyboardInterrupt:
        print(CancelledByUser.default_message, file=sys.stderr)
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
