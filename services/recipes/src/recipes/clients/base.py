"""AI provider client interface."""
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class RecipeModelClient(ABC):
    """Streams generated text for one prompt.

    Implementations must release the upstream request when the returned
    iterator is closed early (``aclose``) or the consuming task is cancelled.
    """

    name: str = "base"

    @abstractmethod
    def stream(
        self,
        prompt: str,
        *,
        system: str,
        max_tokens: int,
        temperature: float,
    ) -> AsyncIterator[str]:
        """Yield text chunks in generation order."""
        ...

    def is_configured(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None
