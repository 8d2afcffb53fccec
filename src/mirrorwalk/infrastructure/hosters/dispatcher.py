"""Concurrent fan-out of candidate links over the registry."""

from __future__ import annotations

import asyncio

import structlog

from mirrorwalk.domain.entities.streams import CandidateLink, ResolvedStream
from mirrorwalk.infrastructure.common.candidate_links import dedupe_links
from mirrorwalk.infrastructure.hosters.registry import HostExtractorRegistry

log = structlog.get_logger(__name__)

DEFAULT_MAX_CONCURRENT = 16


class ExtractionDispatcher:
    """Resolves every candidate link concurrently and aggregates the streams.

    A failing link contributes nothing; it never aborts the batch.
    Results are concatenated in link order, duplicates (same source and
    URL) keeping their first occurrence.
    """

    def __init__(
        self,
        registry: HostExtractorRegistry,
        *,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    ) -> None:
        self._registry = registry
        self._max_concurrent = max_concurrent

    async def dispatch_all(
        self, links: list[CandidateLink], referer: str = ""
    ) -> list[ResolvedStream]:
        unique = dedupe_links(links)
        if not unique:
            return []

        sem = asyncio.Semaphore(self._max_concurrent)

        async def _bounded(link: CandidateLink) -> list[ResolvedStream]:
            async with sem:
                try:
                    return await self._registry.resolve(link.url, referer)
                except Exception:  # noqa: BLE001
                    log.exception("dispatch_link_failed", url=link.url[:80])
                    return []

        batches = await asyncio.gather(*(_bounded(link) for link in unique))

        seen: set[tuple[str, str]] = set()
        streams: list[ResolvedStream] = []
        for batch in batches:
            for stream in batch:
                if stream.identity in seen:
                    continue
                seen.add(stream.identity)
                streams.append(stream)

        log.info(
            "dispatch_complete",
            links=len(unique),
            streams=len(streams),
        )
        return streams
