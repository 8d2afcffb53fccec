"""Stream list repository backed by CachePort (diskcache or remote)."""

from __future__ import annotations

from typing import Any

import structlog

from mirrorwalk.domain.entities.streams import ResolvedStream, StreamQuality
from mirrorwalk.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def _serialize_stream(stream: ResolvedStream) -> dict[str, Any]:
    return {
        "source": stream.source,
        "quality": stream.quality.value,
        "url": stream.url,
        "size_bytes": stream.size_bytes,
        "filename": stream.filename,
    }


def _deserialize_stream(d: dict[str, Any]) -> ResolvedStream:
    return ResolvedStream(
        source=d["source"],
        quality=StreamQuality.from_token(d.get("quality")),
        url=d["url"],
        size_bytes=int(d.get("size_bytes") or 0),
        filename=d.get("filename"),
    )


class CachedStreamRepository:
    """Stores resolved stream lists by fingerprint. Satisfies StreamCachePort."""

    def __init__(self, cache: CachePort, key_prefix: str = "streams:") -> None:
        self.cache = cache
        self.key_prefix = key_prefix

    def _key(self, fingerprint: str) -> str:
        return f"{self.key_prefix}{fingerprint}"

    async def get(self, fingerprint: str) -> list[ResolvedStream] | None:
        data = await self.cache.get(self._key(fingerprint))
        if data is None:
            log.debug("stream_cache_miss", fingerprint=fingerprint)
            return None

        try:
            streams = [_deserialize_stream(d) for d in data]
        except (KeyError, TypeError, ValueError) as e:
            log.error(
                "stream_cache_deserialize_error",
                fingerprint=fingerprint,
                error=str(e),
            )
            return None

        log.debug("stream_cache_hit", fingerprint=fingerprint, count=len(streams))
        return streams

    async def set(
        self,
        fingerprint: str,
        streams: list[ResolvedStream],
        ttl_seconds: int,
    ) -> bool:
        payload = [_serialize_stream(s) for s in streams]
        stored = await self.cache.set(self._key(fingerprint), payload, ttl=ttl_seconds)
        log.debug(
            "stream_cache_saved",
            fingerprint=fingerprint,
            count=len(streams),
            ttl=ttl_seconds,
            stored=stored,
        )
        return stored
