"""Process-wide upstream site state and its background refresh.

The base URL of the upstream site rotates; a small JSON document maps
site keys to the current domain.  ``SiteState`` holds the current base
URL plus the default request headers as one immutable snapshot that is
swapped atomically, so concurrent chains never observe a half-updated
state.  ``DomainRefresher`` refreshes it at most once per interval in a
single-flight background task that callers never await.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import httpx
import structlog

from mirrorwalk.infrastructure.config.schema import SiteConfig

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SiteSnapshot:
    """Immutable view of the base URL and the headers derived from it."""

    main_url: str
    headers: Mapping[str, str] = field(default_factory=dict)


def _build_snapshot(main_url: str, config: SiteConfig) -> SiteSnapshot:
    main_url = main_url.rstrip("/")
    headers = {
        "User-Agent": config.user_agent,
        "Accept": config.accept,
        "Accept-Language": config.accept_language,
        "Referer": f"{main_url}/",
        "Origin": main_url,
    }
    return SiteSnapshot(main_url=main_url, headers=MappingProxyType(headers))


class SiteState:
    """Read-mostly holder of the current :class:`SiteSnapshot`."""

    def __init__(self, config: SiteConfig) -> None:
        self._config = config
        self._snapshot = _build_snapshot(config.main_url, config)

    @property
    def snapshot(self) -> SiteSnapshot:
        return self._snapshot

    @property
    def main_url(self) -> str:
        return self._snapshot.main_url

    @property
    def headers(self) -> dict[str, str]:
        """Copy of the default headers, safe for per-request mutation."""
        return dict(self._snapshot.headers)

    def request_headers(self, referer: str = "") -> dict[str, str]:
        """Default headers with an optional per-request Referer override."""
        headers = self.headers
        if referer:
            headers["Referer"] = referer
        return headers

    def update_main_url(self, main_url: str) -> bool:
        """Replace the base URL. Returns True if it actually changed."""
        new = _build_snapshot(main_url, self._config)
        if new.main_url == self._snapshot.main_url:
            return False
        self._snapshot = new
        return True


class DomainRefresher:
    """Single-flight, rate-limited background refresh of ``SiteState``.

    ``trigger()`` is synchronous and returns immediately.  A refresh task
    is started only when none is in flight and the last successful
    refresh is older than the interval (monotonic clock).
    """

    def __init__(
        self,
        state: SiteState,
        http_client: httpx.AsyncClient,
        config: SiteConfig,
        *,
        timeout: float = 10.0,
    ) -> None:
        self._state = state
        self._http = http_client
        self._domains_url = config.domains_url
        self._domain_key = config.domain_key
        self._interval = config.refresh_interval_seconds
        self._timeout = timeout
        self._last_updated: float | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def _is_due(self) -> bool:
        if self._last_updated is None:
            return True
        return time.monotonic() - self._last_updated >= self._interval

    def trigger(self) -> asyncio.Task[None] | None:
        """Start a background refresh if one is due. Never blocks.

        Returns the started task (mainly for tests), or None when skipped.
        """
        if self.in_flight or not self._is_due():
            return None
        self._task = asyncio.create_task(self._refresh())
        return self._task

    async def _refresh(self) -> None:
        log.debug("domain_refresh_started", url=self._domains_url)
        try:
            resp = await self._http.get(self._domains_url, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            # Leave _last_updated untouched so the next trigger retries.
            log.warning("domain_refresh_failed", error=str(exc))
            return

        new_url = data.get(self._domain_key) if isinstance(data, dict) else None
        if isinstance(new_url, str) and new_url.strip():
            if self._state.update_main_url(new_url.strip()):
                log.info("domain_updated", main_url=self._state.main_url)
            else:
                log.debug("domain_unchanged", main_url=self._state.main_url)
        else:
            log.warning("domain_refresh_key_missing", key=self._domain_key)
        self._last_updated = time.monotonic()

    async def aclose(self) -> None:
        """Cancel an in-flight refresh (used on shutdown)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
