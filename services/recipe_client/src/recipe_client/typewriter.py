"""Typewriter rendering: reveal known text one character at a time.

Two independent asyncio tasks drive the effect: the reveal task appends one
character per ``typing_delay`` and the blink task toggles the cursor every
``cursor_blink`` seconds while typing is active. Text may be extended while
revealing (streamed chunks); the reveal only ends once the text is sealed.
"""
import asyncio
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class DisplayState:
    full_text: str = ""
    displayed: str = ""
    cursor_visible: bool = False
    is_typing: bool = False


class Typewriter:
    def __init__(
        self,
        typing_delay: float = 0.05,
        cursor_blink: float = 0.53,
        on_update: Callable[[DisplayState], None] | None = None,
    ) -> None:
        self.typing_delay = typing_delay
        self.cursor_blink = cursor_blink
        self.state = DisplayState()
        self._on_update = on_update
        self._reveal_task: asyncio.Task | None = None
        self._blink_task: asyncio.Task | None = None
        self._more = asyncio.Event()
        self._sealed = False

    @property
    def running(self) -> bool:
        return self._reveal_task is not None and not self._reveal_task.done()

    def start(self, text: str, final: bool = True) -> None:
        """Restart from an empty prefix."""
        self.stop()
        self.state.displayed = ""
        self._sealed = False
        self.feed(text, final=final)

    def feed(self, text: str, final: bool = False) -> None:
        """Set the full text known so far; starts revealing if idle."""
        if not text.startswith(self.state.displayed):
            self.start(text, final=final)
            return
        self.state.full_text = text
        self._sealed = final
        self._more.set()
        if self.running:
            return
        if len(self.state.displayed) >= len(text) and final:
            self._finish()
            return
        self.state.is_typing = True
        self.state.cursor_visible = True
        self._notify()
        self._reveal_task = asyncio.create_task(self._reveal())
        if self._blink_task is None or self._blink_task.done():
            self._blink_task = asyncio.create_task(self._blink())

    def stop(self) -> None:
        """Cancel pending ticks; displayed text stays as is. Safe to call twice."""
        for task in (self._reveal_task, self._blink_task):
            if task is not None and not task.done():
                task.cancel()
        self._reveal_task = None
        self._blink_task = None
        if self.state.is_typing or self.state.cursor_visible:
            self.state.is_typing = False
            self.state.cursor_visible = False
            self._notify()

    def reset(self) -> None:
        self.stop()
        self._sealed = False
        self.state.full_text = ""
        self.state.displayed = ""
        self._notify()

    async def wait(self) -> None:
        """Wait until the sealed text is fully revealed (or typing is stopped)."""
        task = self._reveal_task
        if task is not None:
            await asyncio.wait({task})

    async def _reveal(self) -> None:
        while True:
            if len(self.state.displayed) < len(self.state.full_text):
                await asyncio.sleep(self.typing_delay)
                self.state.displayed = self.state.full_text[: len(self.state.displayed) + 1]
                self._notify()
            elif self._sealed:
                break
            else:
                self._more.clear()
                await self._more.wait()
        self._finish()

    async def _blink(self) -> None:
        while True:
            await asyncio.sleep(self.cursor_blink)
            self.state.cursor_visible = not self.state.cursor_visible
            self._notify()

    def _finish(self) -> None:
        if self._blink_task is not None and not self._blink_task.done():
            self._blink_task.cancel()
        self._blink_task = None
        self.state.is_typing = False
        self.state.cursor_visible = False
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self.state)
