"""Remote cache adapter: a small HTTP key/value service.

Endpoints::

    GET    /<key>      -> {"streams": [...]} or 404 on miss
    POST   /           <- {"key", "streams", "ttl", "metadata"}
    DELETE /<key>
    POST   /clearall
    GET    /stats

The service stores stream lists, so values must be JSON-serialisable
lists.  Every failure is logged and reported as a miss / False; the
cache never breaks a resolution.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any
from urllib.parse import quote

import httpx
import structlog

log = structlog.get_logger(__name__)


class RemoteCacheAdapter:
    """Async client for the remote stream cache.

    Args:
        base_url: Service root, e.g. ``https://cache.example.workers.dev``.
        ttl_seconds: Default TTL for ``set()`` without an explicit value.
        max_concurrent: Max parallel requests.
        timeout: Per-request timeout in seconds.
        http_client: Optional pre-built client (not closed by ``aclose``).
    """

    def __init__(
        self,
        base_url: str,
        ttl_seconds: int = 3600,
        max_concurrent: int = 10,
        *,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_ttl = ttl_seconds
        self._timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> RemoteCacheAdapter:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
            log.info("remote_cache_opened", base_url=self.base_url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            log.info("remote_cache_closed", base_url=self.base_url)

    def _require_open(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Remote cache not initialized. Use 'async with cache:'")
        return self._client

    def _key_url(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='')}"

    async def get(self, key: str) -> list[Any] | None:
        client = self._require_open()
        async with self._semaphore:
            try:
                resp = await client.get(self._key_url(key))
            except httpx.HTTPError as exc:
                log.warning("remote_cache_get_error", key=key, error=str(exc))
                return None

        if resp.status_code == 404:
            log.debug("cache_miss", key=key)
            return None
        if resp.is_error:
            log.warning("remote_cache_get_status", key=key, status=resp.status_code)
            return None

        try:
            data = resp.json()
        except ValueError:
            log.warning("remote_cache_invalid_json", key=key)
            return None
        streams = data.get("streams") if isinstance(data, dict) else None
        if not isinstance(streams, list):
            log.warning("remote_cache_invalid_format", key=key)
            return None

        log.debug("cache_hit", key=key, count=len(streams))
        return streams

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> bool:
        client = self._require_open()
        expire = ttl if ttl is not None else self.default_ttl
        payload = {
            "key": key,
            "streams": value,
            "ttl": expire,
            "metadata": {"timestamp": int(time.time() * 1000)},
        }
        async with self._semaphore:
            try:
                resp = await client.post(self.base_url, json=payload)
            except (httpx.HTTPError, TypeError) as exc:
                log.warning("remote_cache_set_error", key=key, error=str(exc))
                return False

        if resp.is_error:
            log.warning("remote_cache_set_status", key=key, status=resp.status_code)
            return False
        log.debug("cache_set", key=key, ttl=expire)
        return True

    async def delete(self, key: str) -> bool:
        client = self._require_open()
        async with self._semaphore:
            try:
                resp = await client.delete(self._key_url(key))
            except httpx.HTTPError as exc:
                log.warning("remote_cache_delete_error", key=key, error=str(exc))
                return False
        deleted = resp.is_success
        log.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def clear(self) -> None:
        client = self._require_open()
        async with self._semaphore:
            try:
                resp = await client.post(f"{self.base_url}/clearall")
            except httpx.HTTPError as exc:
                log.warning("remote_cache_clear_error", error=str(exc))
                return
        if resp.is_error:
            log.warning("remote_cache_clear_status", status=resp.status_code)
            return
        log.warning("cache_cleared", base_url=self.base_url)

    async def stats(self) -> dict[str, Any] | None:
        """Service-side statistics, or None when unavailable."""
        client = self._require_open()
        async with self._semaphore:
            try:
                resp = await client.get(f"{self.base_url}/stats")
                resp.raise_for_status()
                data = resp.json()
            except (httpx.HTTPError, ValueError) as exc:
                log.warning("remote_cache_stats_error", error=str(exc))
                return None
        return data if isinstance(data, dict) else None
