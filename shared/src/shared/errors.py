"""Error taxonomy shared by the recipes service and its clients.

Every error carries a plain-language ``user_message`` that is safe to show to
an end user; internal details stay in logs.
"""
from datetime import datetime


class RecipeAppError(Exception):
    """Base class for expected, user-presentable failures."""

    status_code: int = 500
    retryable: bool = False
    default_message = "Something went wrong. Please try again."

    def __init__(self, user_message: str | None = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class IngredientValidationError(RecipeAppError):
    """Bad input shape/content; the user must correct it."""

    status_code = 400
    default_message = "Invalid request data"

    def __init__(
        self,
        errors: list[str],
        user_message: str | None = None,
        rate_limit_info: dict | None = None,
    ) -> None:
        super().__init__(user_message)
        self.errors = list(errors)
        self.rate_limit_info = rate_limit_info


class RateLimitExceeded(RecipeAppError):
    """Quota exhausted for the current window; retryable after ``retry_after`` seconds."""

    status_code = 429
    retryable = True
    default_message = "Rate limit exceeded. Please try again later."

    def __init__(
        self,
        retry_after: int,
        reset_time: datetime | str | None = None,
        limit: int | None = None,
        remaining: int = 0,
        user_message: str | None = None,
    ) -> None:
        super().__init__(user_message)
        self.retry_after = retry_after
        self.reset_time = reset_time
        self.limit = limit
        self.remaining = remaining

    def display_message(self) -> str:
        return f"Rate limit exceeded. Please try again in {self.retry_after} seconds."


class UpstreamGenerationError(RecipeAppError):
    """The AI provider failed or returned a malformed stream."""

    status_code = 502
    retryable = True
    default_message = "Failed to generate recipe. Please try again."


class TransportError(RecipeAppError):
    """Network or stream interruption between client and service."""

    status_code = 503
    retryable = True
    default_message = "Network error. Please check your connection and try again."


class CancelledByUser(RecipeAppError):
    """Explicit cancellation. Not an error from the user's point of view."""

    status_code = 499
    default_message = "Recipe generation was cancelled."
