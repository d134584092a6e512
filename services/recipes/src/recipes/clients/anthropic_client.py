"""Streaming client for the Anthropic Messages API over httpx."""
import json
from collections.abc import AsyncIterator

import httpx
import structlog

from shared.errors import UpstreamGenerationError
from shared.http_client import CircuitBreaker, CircuitBreakerOpenError, create_http_client
from shared.sse import SSEDecoder

from recipes.clients.base import RecipeModelClient

logger = structlog.get_logger(__name__)


class AnthropicClient(RecipeModelClient):
    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        timeout: float = 120.0,
        circuit_breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._breaker = circuit_breaker or CircuitBreaker()
        self._http = create_http_client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "x-api-key": api_key,
                "anthropic-version": api_version,
                "content-type": "application/json",
            },
            transport=transport,
        )

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def stream(
        self,
        prompt: str,
        *,
        system: str,
        max_tokens: int,
        temperature: float,
    ) -> AsyncIterator[str]:
        try:
            self._breaker.guard()
        except CircuitBreakerOpenError as e:
            raise UpstreamGenerationError() from e

        payload = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system,
            "stream": True,
            "messages": [{"role": "user", "content": prompt}],
        }
        try:
            async with self._http.stream("POST", "/v1/messages", json=payload) as resp:
                if resp.status_code != 200:
                    body = await resp.aread()
                    logger.warning(
                        "provider_http_error",
                        provider=self.name,
                        status=resp.status_code,
                        body=body[:300].decode("utf-8", errors="replace"),
                    )
                    raise UpstreamGenerationError()
                decoder = SSEDecoder()
                async for raw in resp.aiter_text():
                    for data in decoder.feed(raw):
                        text, done = self._parse_provider_event(data)
                        if text:
                            yield text
                        if done:
                            self._breaker.record_success()
                            return
            # connection closed without message_stop
            logger.warning("provider_stream_truncated", provider=self.name)
            raise UpstreamGenerationError()
        except httpx.HTTPError as e:
            logger.warning("provider_transport_error", provider=self.name, error=type(e).__name__)
            self._breaker.record_failure()
            raise UpstreamGenerationError() from e
        except UpstreamGenerationError:
            self._breaker.record_failure()
            raise

    def _parse_provider_event(self, data: str) -> tuple[str, bool]:
        """Return (text delta, stream finished) for one provider event payload."""
        try:
            event = json.loads(data)
        except ValueError as e:
            logger.warning("provider_frame_malformed", provider=self.name)
            raise UpstreamGenerationError() from e
        kind = event.get("type")
        if kind == "content_block_delta":
            delta = event.get("delta") or {}
            if delta.get("type") == "text_delta":
                return delta.get("text", ""), False
            return "", False
        if kind == "message_stop":
            return "", True
        if kind == "error":
            err = event.get("error") or {}
            logger.warning("provider_stream_error", provider=self.name, error_type=err.get("type"))
            raise UpstreamGenerationError()
        return "", False
