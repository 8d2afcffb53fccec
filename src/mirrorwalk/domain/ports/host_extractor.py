"""Port for per-host stream extraction."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mirrorwalk.domain.entities.streams import HostKind, ResolvedStream


@runtime_checkable
class HostExtractorPort(Protocol):
    """Turns a mirror-host URL into direct-download streams.

    Implementations resolve any redirect links they discover before
    emitting a result, so every returned stream points at a direct URL.
    """

    @property
    def kind(self) -> HostKind:
        """Host kind this extractor handles."""
        ...

    async def extract(self, url: str, referer: str = "") -> list[ResolvedStream]:
        """Extract streams from *url*. Returns [] when nothing usable is found."""
        ...
