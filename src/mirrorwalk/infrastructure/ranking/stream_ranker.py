"""Stream ranking and the caller-facing quality filter.

Ordering: quality tier weight first, then declared size, both
descending.  Python's sort is stable, so full ties keep input order.
All weights come from RankingConfig.
"""

from __future__ import annotations

from mirrorwalk.domain.entities.streams import ResolvedStream, StreamQuality
from mirrorwalk.infrastructure.config.schema import RankingConfig


class StreamRanker:
    """Deterministic ranking of resolved streams.

    With default config: 2160p (10) > 1080p (8) > everything else (0),
    so a 2 GB 2160p stream ranks above a 4 GB 1080p one.
    """

    def __init__(self, config: RankingConfig) -> None:
        self._weights = {k.lower(): v for k, v in config.quality_weights.items()}
        self._min_quality = StreamQuality(config.min_quality)

    def weight(self, stream: ResolvedStream) -> int:
        return self._weights.get(stream.quality.value.lower(), 0)

    def rank(self, streams: list[ResolvedStream]) -> list[ResolvedStream]:
        """Return a new list sorted by (tier weight, size), descending."""
        return sorted(
            streams,
            key=lambda s: (self.weight(s), s.size_bytes),
            reverse=True,
        )

    def filter_for_caller(self, streams: list[ResolvedStream]) -> list[ResolvedStream]:
        """Drop Unknown quality and anything below the minimum tier."""
        floor = self._min_quality.resolution
        return [
            s
            for s in streams
            if s.quality is not StreamQuality.UNKNOWN and s.quality.resolution >= floor
        ]

    def select(self, streams: list[ResolvedStream]) -> list[ResolvedStream]:
        """Filter, then rank: the list handed back to callers."""
        return self.rank(self.filter_for_caller(streams))


def display_name(position: int, stream: ResolvedStream) -> str:
    """Numbered caller-facing label, e.g. ``"1. 1080p"``."""
    return f"{position}. {stream.quality.value}"
