"""httpx transport that retries transport errors and 429/5xx responses."""

from __future__ import annotations

import asyncio

import httpx
import structlog

log = structlog.get_logger(__name__)

_DEFAULT_RETRYABLE = frozenset({429, 500, 502, 503, 504})


class RetryTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx transport with linear back-off retries.

    Retries up to *max_retries* times when the wrapped transport raises
    ``httpx.TransportError`` (connect failures, read timeouts) or answers
    with a retryable status code.  Attempt ``n`` (0-based) waits
    ``backoff_base * (n + 1)`` seconds before the next try.  Redirect
    responses are passed through untouched.
    """

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 2,
        backoff_base: float = 1.0,
        retryable_status_codes: frozenset[int] = _DEFAULT_RETRYABLE,
    ) -> None:
        self._wrapped = wrapped
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._retryable = retryable_status_codes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send *request* through the wrapped transport, retrying on failure."""
        for attempt in range(1 + self._max_retries):
            is_last = attempt == self._max_retries
            try:
                response = await self._wrapped.handle_async_request(request)
            except httpx.TransportError as exc:
                if is_last:
                    raise
                log.info(
                    "http_retry_error",
                    url=str(request.url),
                    attempt=attempt + 1,
                    error=str(exc) or type(exc).__name__,
                )
            else:
                if response.status_code not in self._retryable or is_last:
                    return response
                # Read + close the retryable response before retrying
                await response.aread()
                await response.aclose()
                log.info(
                    "http_retry_status",
                    url=str(request.url),
                    status=response.status_code,
                    attempt=attempt + 1,
                )
            await asyncio.sleep(self._backoff_base * (attempt + 1))

        raise AssertionError("unreachable")  # pragma: no cover

    async def aclose(self) -> None:
        """Close the wrapped transport."""
        await self._wrapped.aclose()
