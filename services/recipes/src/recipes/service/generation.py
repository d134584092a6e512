"""Generation pipeline: rate-limit gate, validation gate, provider stream -> StreamEvents.

Request lifecycle: Received -> RateChecked -> Validated -> Streaming ->
Completed | Failed. The first three happen in ``admit`` and fail with
ordinary structured errors before any stream is opened; everything after
that is reported in-band as a terminal ``error`` event.
"""
import asyncio
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Literal

import structlog

from shared.errors import IngredientValidationError, RateLimitExceeded, UpstreamGenerationError
from shared.ingredients import validate_ingredients
from shared.sse import StreamEvent

from recipes import metrics
from recipes.clients.base import RecipeModelClient
from recipes.service.prompts import build_recipe_prompt
from recipes.service.rate_limit import RateLimitResult, RateLimitService

logger = structlog.get_logger(__name__)

RelayStrategy = Literal["incremental", "buffered"]

GENERIC_FAILURE = "Failed to generate recipe. Please try again."
TIMEOUT_FAILURE = "The recipe took too long to generate. Please try again."
EMPTY_FAILURE = "The AI service returned an empty recipe. Please try again."


def _as_string_list(value: object) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        raise IngredientValidationError(["ingredients: Expected an array of strings"])
    return value


@dataclass(frozen=True)
class Identity:
    key: str
    authenticated: bool


@dataclass(frozen=True)
class GenerationRequest:
    ingredients: tuple[str, ...]
    identity: Identity
    request_id: str


class GenerationService:
    def __init__(
        self,
        client: RecipeModelClient,
        rate_limits: RateLimitService,
        *,
        system_prompt: str,
        max_tokens: int = 1500,
        temperature: float = 0.7,
        relay_strategy: RelayStrategy = "incremental",
        timeout_seconds: float = 120.0,
    ) -> None:
        if relay_strategy not in ("incremental", "buffered"):
            raise ValueError(f"unknown relay strategy: {relay_strategy}")
        self._client = client
        self._rate_limits = rate_limits
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout_seconds
        self.relay_strategy = relay_strategy

    def admit(
        self,
        raw_ingredients: object,
        identity: Identity,
        request_id: str,
    ) -> tuple[GenerationRequest, RateLimitResult]:
        """Rate-check then validate. Raises RateLimitExceeded or IngredientValidationError.

        ``raw_ingredients`` is the untrusted ``ingredients`` field of the body;
        its shape is checked only after a token has been consumed.
        """
        limit = self._rate_limits.consume_generation(identity.key, identity.authenticated)
        if not limit.allowed:
            metrics.GENERATION_REQUESTS.labels(outcome="rate_limited").inc()
            metrics.RATE_LIMIT_REJECTIONS.labels(action="generation").inc()
            raise RateLimitExceeded(
                retry_after=limit.retry_after or 1,
                reset_time=limit.reset_time,
                limit=limit.limit,
                remaining=limit.remaining,
            )
        try:
            ingredients = validate_ingredients(_as_string_list(raw_ingredients))
        except IngredientValidationError as e:
            metrics.GENERATION_REQUESTS.labels(outcome="invalid").inc()
            e.rate_limit_info = {
                "limit": limit.limit,
                "remaining": limit.remaining,
                "resetTime": limit.reset_time.isoformat().replace("+00:00", "Z"),
            }
            raise
        request = GenerationRequest(
            ingredients=tuple(ingredients),
            identity=identity,
            request_id=request_id,
        )
        return request, limit

    async def stream_events(self, request: GenerationRequest) -> AsyncIterator[StreamEvent]:
        """Yield zero or more chunk events then exactly one terminal event.

        Closing this iterator early (client went away) closes the provider
        stream as well.
        """
        log = logger.bind(request_id=request.request_id, relay=self.relay_strategy)
        ingredients = list(request.ingredients)
        upstream = self._client.stream(
            build_recipe_prompt(ingredients),
            system=self._system_prompt,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        parts: list[str] = []
        started = time.perf_counter()
        deadline = started + self._timeout
        log.info("generation_started", provider=self._client.name, ingredient_count=len(ingredients))
        outcome = "failed"
        try:
            while True:
                remaining = deadline - time.perf_counter()
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                try:
                    text = await asyncio.wait_for(anext(upstream), timeout=remaining)
                except StopAsyncIteration:
                    break
                if not text:
                    continue
                parts.append(text)
                if self.relay_strategy == "incremental":
                    yield StreamEvent.chunk(text)

            full_text = "".join(parts)
            if not full_text.strip():
                log.warning("generation_empty")
                yield StreamEvent.error(EMPTY_FAILURE)
                return
            outcome = "completed"
            log.info("generation_completed", chars=len(full_text), chunks=len(parts))
            yield StreamEvent.complete(full_text, ingredients=ingredients)
        except asyncio.TimeoutError:
            log.warning("generation_timeout", timeout_seconds=self._timeout)
            yield StreamEvent.error(TIMEOUT_FAILURE)
        except UpstreamGenerationError as e:
            log.warning("generation_upstream_error")
            yield StreamEvent.error(e.user_message)
        except (GeneratorExit, asyncio.CancelledError):
            outcome = "disconnected"
            log.info("generation_aborted", chunks=len(parts))
            raise
        except Exception:
            log.exception("generation_failed")
            yield StreamEvent.error(GENERIC_FAILURE)
        finally:
            await upstream.aclose()
            metrics.GENERATION_REQUESTS.labels(outcome=outcome).inc()
            metrics.GENERATION_DURATION.observe(time.perf_counter() - started)
