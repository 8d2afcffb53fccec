"""Port for memoizing final resolution results."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mirrorwalk.domain.entities.streams import ResolvedStream


@runtime_checkable
class StreamCachePort(Protocol):
    """Stores ranked stream lists under an opaque fingerprint.

    The fingerprint is derived by the caller (content identity + variant);
    the resolver never interprets it.
    """

    async def get(self, fingerprint: str) -> list[ResolvedStream] | None:
        """Return cached streams, or None on miss."""
        ...

    async def set(
        self,
        fingerprint: str,
        streams: list[ResolvedStream],
        ttl_seconds: int,
    ) -> bool:
        """Store streams. Returns False when the write failed."""
        ...
