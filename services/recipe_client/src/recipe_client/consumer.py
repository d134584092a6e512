"""Streaming recipe consumer: drives one generation end-to-end and renders it.

State machine::

    IDLE -> REQUESTING -> STREAMING -> TYPEWRITING -> DONE
                                                   -> CANCELLED
                                                   -> ERRORED

At most one generation is in flight. Every started generation gets a new
token; events carrying a stale token are dropped, so data arriving after a
cancel never reaches the display.
"""
import asyncio
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import aclosing
from enum import Enum
from typing import Literal, Protocol

import structlog

from shared.errors import CancelledByUser, IngredientValidationError, RateLimitExceeded, RecipeAppError
from shared.ingredients.vocabulary import MIN_INGREDIENTS
from shared.sse import StreamEvent

from recipe_client.titles import DEFAULT_TITLE, extract_title
from recipe_client.typewriter import DisplayState, Typewriter

logger = structlog.get_logger(__name__)

EMPTY_RECIPE = "Generate a recipe before saving."


class RecipeStream(Protocol):
    def stream_recipe(self, ingredients: list[str]) -> AsyncIterator[StreamEvent]: ...

    async def save_recipe(self, title: str, ingredients: list[str], recipe_content: str) -> dict: ...


class ConsumerState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    TYPEWRITING = "typewriting"
    DONE = "done"
    CANCELLED = "cancelled"
    ERRORED = "errored"


TERMINAL_STATES = frozenset({ConsumerState.DONE, ConsumerState.CANCELLED, ConsumerState.ERRORED})


def _ingredient_key(ingredients: Sequence[str]) -> tuple[str, ...]:
    return tuple(i.strip().lower() for i in ingredients if i.strip())


class RecipeStreamConsumer:
    def __init__(
        self,
        api: RecipeStream,
        *,
        typewriter_mode: Literal["on_complete", "on_chunk"] = "on_complete",
        typing_delay: float = 0.05,
        cursor_blink: float = 0.53,
        auto_generate: bool = False,
        on_update: Callable[["RecipeStreamConsumer"], None] | None = None,
    ) -> None:
        self._api = api
        self.typewriter_mode = typewriter_mode
        self.auto_generate = auto_generate
        self._on_update = on_update
        self._typewriter = Typewriter(typing_delay, cursor_blink, on_update=self._display_changed)

        self.state = ConsumerState.IDLE
        self.error_message: str | None = None
        self.recipe_text: str | None = None
        self.title: str | None = None

        self._ingredients: tuple[str, ...] = ()
        self._task: asyncio.Task | None = None
        self._inflight_key: tuple[str, ...] | None = None
        self._token = 0
        self._accumulated = ""

    @property
    def display(self) -> DisplayState:
        return self._typewriter.state

    @property
    def ingredients(self) -> tuple[str, ...]:
        return self._ingredients

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_ingredients(self, ingredients: Sequence[str]) -> None:
        key = _ingredient_key(ingredients)
        if key == self._ingredients:
            return
        if self.in_flight:
            self.cancel()
        self._ingredients = key
        if self.auto_generate and len(key) >= MIN_INGREDIENTS:
            self.generate()

    def generate(self, force: bool = False) -> asyncio.Task | None:
        """Start generating for the current ingredients.

        A call while a request for the same ingredients is in flight returns
        the running task. ``force`` aborts it and starts over (regenerate).
        """
        if len(self._ingredients) < MIN_INGREDIENTS:
            raise IngredientValidationError(
                [f"At least {MIN_INGREDIENTS} ingredients are required"],
                user_message=f"Please add at least {MIN_INGREDIENTS} ingredients",
            )
        if self.in_flight:
            if not force and self._inflight_key == self._ingredients:
                logger.debug("generate_skipped_in_flight")
                return self._task
            self.cancel()

        self._token += 1
        token = self._token
        self._typewriter.reset()
        self._accumulated = ""
        self.recipe_text = None
        self.title = None
        self.error_message = None
        self._inflight_key = self._ingredients
        self._set_state(ConsumerState.REQUESTING)
        self._task = asyncio.create_task(self._run(token, list(self._ingredients)))
        return self._task

    def cancel(self) -> bool:
        """Abort the in-flight generation; returns False if there was none."""
        task = self._task
        self._token += 1
        self._task = None
        self._inflight_key = None
        self._typewriter.stop()
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("generation_cancelled")
        self._set_state(ConsumerState.CANCELLED)
        return True

    async def wait(self) -> None:
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def close(self) -> None:
        task = self._task
        self.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        self._typewriter.reset()

    async def save(self) -> dict:
        if self.state != ConsumerState.DONE or not self.recipe_text:
            raise RecipeAppError(EMPTY_RECIPE)
        return await self._api.save_recipe(
            self.title or DEFAULT_TITLE,
            list(self._ingredients),
            self.recipe_text,
        )

    async def _run(self, token: int, ingredients: list[str]) -> None:
        try:
            async with aclosing(self._api.stream_recipe(ingredients)) as events:
                async for event in events:
                    if token != self._token:
                        logger.debug("late_event_dropped", type=event.type)
                        return
                    self._apply(event)
                    if event.is_terminal:
                        break
            if token == self._token and self.state == ConsumerState.TYPEWRITING:
                await self._typewriter.wait()
                if token == self._token and not self._typewriter.running:
                    self._set_state(ConsumerState.DONE)
        except CancelledByUser:
            if token == self._token:
                self._typewriter.stop()
                self._set_state(ConsumerState.CANCELLED)
        except RateLimitExceeded as e:
            self._fail(token, e.display_message())
        except RecipeAppError as e:
            self._fail(token, e.user_message)
        except Exception:
            logger.exception("generation_unexpected_error")
            self._fail(token, RecipeAppError.default_message)
        finally:
            if token == self._token:
                self._inflight_key = None

    def _apply(self, event: StreamEvent) -> None:
        if event.type == "chunk":
            self._accumulated += event.content or ""
            if self.state != ConsumerState.STREAMING:
                self._set_state(ConsumerState.STREAMING)
            if self.typewriter_mode == "on_chunk":
                self._typewriter.feed(self._accumulated)
            return
        if event.type == "complete":
            self.recipe_text = event.content or self._accumulated
            self.title = extract_title(self.recipe_text)
            self._set_state(ConsumerState.TYPEWRITING)
            if self.typewriter_mode == "on_chunk":
                self._typewriter.feed(self.recipe_text, final=True)
            else:
                self._typewriter.start(self.recipe_text)
            return
        self._fail(self._token, event.message or RecipeAppError.default_message)

    def _fail(self, token: int, message: str) -> None:
        if token != self._token:
            return
        self._typewriter.stop()
        self.error_message = message
        logger.info("generation_failed", user_message=message)
        self._set_state(ConsumerState.ERRORED)

    def _set_state(self, state: ConsumerState) -> None:
        self.state = state
        self._notify()

    def _display_changed(self, _state: DisplayState) -> None:
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self)
