"""HTTP client with retries, timeout and simple circuit breaker."""
import time
from collections.abc import Callable
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)


class CircuitBreakerOpenError(Exception):
    """Raised when circuit breaker is open."""

    pass


class CircuitBreaker:
    """Simple in-memory circuit breaker: opens after failure_threshold consecutive failures."""

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_after_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.reset_after_seconds = reset_after_seconds
        self._clock = clock
        self._failures = 0
        self._last_failure_time: float | None = None

    @property
    def failures(self) -> int:
        return self._failures

    def record_success(self) -> None:
        self._failures = 0
        self._last_failure_time = None

    def record_failure(self) -> None:
        self._last_failure_time = self._clock()
        self._failures += 1

    def is_open(self) -> bool:
        if self._failures < self.failure_threshold:
            return False
        if self._last_failure_time is None:
            return True
        if self._clock() - self._last_failure_time >= self.reset_after_seconds:
            # half-open: let the next call through
            self._failures = 0
            self._last_failure_time = None
            return False
        return True

    def guard(self) -> None:
        if self.is_open():
            raise CircuitBreakerOpenError("Circuit breaker is open")


def create_http_client(
    base_url: str = "",
    timeout: float = 30.0,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create async HTTP client; retries are handled by request_with_retries, not the transport."""
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=httpx.Timeout(timeout),
        headers=headers,
        transport=transport or httpx.AsyncHTTPTransport(retries=0),
    )


def is_retryable(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are retried; 4xx are final."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


async def request_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    json: Any = None,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    retries: int = 3,
    wait_multiplier: float = 1.0,
    wait_max: float = 10.0,
    circuit_breaker: CircuitBreaker | None = None,
) -> httpx.Response:
    """Perform request with tenacity retries and optional circuit breaker."""
    if circuit_breaker:
        circuit_breaker.guard()

    @retry(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(retries),
        wait=wait_exponential(multiplier=wait_multiplier, min=0, max=wait_max),
        reraise=True,
    )
    async def _do() -> httpx.Response:
        resp = await client.request(method, url, json=json, params=params, headers=headers)
        resp.raise_for_status()
        return resp

    try:
        resp = await _do()
    except Exception:
        if circuit_breaker:
            circuit_breaker.record_failure()
        raise
    if circuit_breaker:
        circuit_breaker.record_success()
    return resp
