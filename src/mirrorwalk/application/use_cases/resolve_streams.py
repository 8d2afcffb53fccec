"""Resolve use case.

Candidate links from one upstream page -> cache lookup -> concurrent
extraction -> rank + filter -> fire-and-forget cache write.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog

from mirrorwalk.domain.entities.streams import CandidateLink, ResolvedStream
from mirrorwalk.domain.ports.stream_cache import StreamCachePort

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# ---------------------------------------------------------------------------


class _Dispatcher(Protocol):
    async def dispatch_all(
        self, links: list[CandidateLink], referer: str = ""
    ) -> list[ResolvedStream]: ...


class _Ranker(Protocol):
    def select(self, streams: list[ResolvedStream]) -> list[ResolvedStream]: ...


class _Refresher(Protocol):
    def trigger(self) -> asyncio.Task[None] | None: ...


class ResolveStreamsUseCase:
    """Turns the candidate links of a page into the caller's stream list.

    Never raises for resolution failures: the worst case is an empty
    list.  Cache reads are bounded by ``cache_read_timeout``; cache
    writes run in the background and never delay the response.
    """

    def __init__(
        self,
        dispatcher: _Dispatcher,
        ranker: _Ranker,
        *,
        refresher: _Refresher | None = None,
        stream_cache: StreamCachePort | None = None,
        cache_ttl_seconds: int = 3600,
        cache_read_timeout: float = 2.0,
    ) -> None:
        self._dispatcher = dispatcher
        self._ranker = ranker
        self._refresher = refresher
        self._cache = stream_cache
        self._cache_ttl = cache_ttl_seconds
        self._cache_read_timeout = cache_read_timeout
        self._pending_writes: set[asyncio.Task[None]] = set()

    async def execute(
        self,
        page_url: str,
        links: list[CandidateLink],
        fingerprint: str | None = None,
    ) -> list[ResolvedStream]:
        if self._refresher is not None:
            self._refresher.trigger()

        if fingerprint and self._cache is not None:
            cached = await self._read_cache(fingerprint)
            if cached is not None:
                log.info("resolve_cache_hit", fingerprint=fingerprint, count=len(cached))
                return cached

        streams = await self._dispatcher.dispatch_all(links, referer=page_url)
        ranked = self._ranker.select(streams)
        log.info(
            "resolve_complete",
            page_url=page_url[:80],
            links=len(links),
            extracted=len(streams),
            returned=len(ranked),
        )

        if ranked and fingerprint and self._cache is not None:
            self._schedule_write(fingerprint, ranked)
        return ranked

    async def _read_cache(self, fingerprint: str) -> list[ResolvedStream] | None:
        assert self._cache is not None
        try:
            return await asyncio.wait_for(
                self._cache.get(fingerprint), timeout=self._cache_read_timeout
            )
        except asyncio.TimeoutError:
            log.warning("resolve_cache_read_timeout", fingerprint=fingerprint)
        except Exception:  # noqa: BLE001
            log.exception("resolve_cache_read_failed", fingerprint=fingerprint)
        return None

    def _schedule_write(self, fingerprint: str, streams: list[ResolvedStream]) -> None:
        task = asyncio.create_task(self._write_cache(fingerprint, streams))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write_cache(self, fingerprint: str, streams: list[ResolvedStream]) -> None:
        assert self._cache is not None
        try:
            stored = await self._cache.set(fingerprint, streams, self._cache_ttl)
        except Exception:  # noqa: BLE001
            log.exception("resolve_cache_write_failed", fingerprint=fingerprint)
            return
        if not stored:
            log.warning("resolve_cache_write_rejected", fingerprint=fingerprint)

    async def drain(self) -> None:
        """Wait for in-flight background cache writes (used on shutdown)."""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)
