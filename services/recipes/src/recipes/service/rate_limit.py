"""Fixed-window rate limiting keyed by (action, identity)."""
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from limits import RateLimitItemPerSecond, strategies
from limits.storage import MemoryStorage, Storage

logger = structlog.get_logger(__name__)

GENERATION = "recipe_generation"
VALIDATION = "validation"


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_time: datetime
    retry_after: int | None = None

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_time.isoformat().replace("+00:00", "Z"),
        }


class FixedWindowRateLimiter:
    """``limit`` hits per key in non-overlapping windows of ``window_seconds``.

    Backed by the ``limits`` fixed-window strategy. A window opens on the first
    hit for a key; the storage expires it, so the next hit starts a fresh one.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        *,
        name: str = "",
        storage: Storage | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        self.limit = limit
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._storage = storage or MemoryStorage()
        self._strategy = strategies.FixedWindowRateLimiter(self._storage)
        self._item = RateLimitItemPerSecond(limit, int(window_seconds), namespace=name or "recipes")

    def consume(self, key: str) -> RateLimitResult:
        allowed = self._strategy.hit(self._item, key)
        result = self._result(key, allowed)
        if not allowed:
            logger.info("rate_limited", limiter=self.name, retry_after=result.retry_after)
        return result

    def peek(self, key: str) -> RateLimitResult:
        """Report the state for ``key`` without consuming a hit."""
        return self._result(key, self._strategy.test(self._item, key))

    def reset(self, key: str | None = None) -> None:
        """Forget ``key``, or every key in the backing storage when omitted."""
        if key is None:
            self._storage.reset()
        else:
            self._strategy.clear(self._item, key)

    def _result(self, key: str, allowed: bool) -> RateLimitResult:
        stats = self._strategy.get_window_stats(self._item, key)
        now = self._clock()
        if stats.remaining >= self.limit:
            # no window open for this key yet
            reset_at = now + self.window_seconds
        else:
            reset_at = stats.reset_time
        seconds_left = max(0.0, reset_at - now)
        reset_time = datetime.fromtimestamp(reset_at, tz=timezone.utc)
        if allowed:
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=stats.remaining,
                reset_time=reset_time,
            )
        return RateLimitResult(
            allowed=False,
            limit=self.limit,
            remaining=0,
            reset_time=reset_time,
            retry_after=max(1, math.ceil(seconds_left)),
        )


class RateLimitService:
    """Independent limiters for generation (guest/user quotas) and validation.

    Built once per application and injected into handlers via ``app.state``.
    """

    def __init__(
        self,
        guest_generation: FixedWindowRateLimiter,
        user_generation: FixedWindowRateLimiter,
        validation: FixedWindowRateLimiter,
    ) -> None:
        self.guest_generation = guest_generation
        self.user_generation = user_generation
        self.validation = validation

    @classmethod
    def from_settings(cls, settings, storage: Storage | None = None) -> "RateLimitService":
        storage = storage or MemoryStorage()
        return cls(
            guest_generation=FixedWindowRateLimiter(
                settings.guest_requests_per_hour,
                settings.generation_window_seconds,
                name="generation_guest",
                storage=storage,
            ),
            user_generation=FixedWindowRateLimiter(
                settings.user_requests_per_hour,
                settings.generation_window_seconds,
                name="generation_user",
                storage=storage,
            ),
            validation=FixedWindowRateLimiter(
                settings.validation_requests_per_minute,
                settings.validation_window_seconds,
                name="validation",
                storage=storage,
            ),
        )

    def consume_generation(self, identity: str, authenticated: bool) -> RateLimitResult:
        limiter = self.user_generation if authenticated else self.guest_generation
        return limiter.consume(f"{GENERATION}:{identity}")

    def consume_validation(self, identity: str) -> RateLimitResult:
        return self.validation.consume(f"{VALIDATION}:{identity}")
