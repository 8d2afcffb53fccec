"""Tests for ExtractionDispatcher."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from mirrorwalk.domain.entities.streams import CandidateLink, ResolvedStream
from mirrorwalk.infrastructure.hosters.dispatcher import ExtractionDispatcher

MakeStream = Callable[..., ResolvedStream]


def _links(*urls: str) -> list[CandidateLink]:
    return [CandidateLink(url=u) for u in urls]


class TestExtractionDispatcher:
    @pytest.mark.asyncio()
    async def test_empty_input(self) -> None:
        registry = MagicMock()
        registry.resolve = AsyncMock()

        assert await ExtractionDispatcher(registry).dispatch_all([]) == []
        registry.resolve.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_concatenates_in_link_order(self, make_stream: MakeStream) -> None:
        async def _resolve(url: str, referer: str = "") -> list[ResolvedStream]:
            # The first link finishes last.
            if url.endswith("/a"):
                await asyncio.sleep(0.01)
            return [make_stream(url=f"{url}/file.mkv")]

        registry = MagicMock()
        registry.resolve = AsyncMock(side_effect=_resolve)

        streams = await ExtractionDispatcher(registry).dispatch_all(
            _links("https://m.example/a", "https://m.example/b")
        )

        assert [s.url for s in streams] == [
            "https://m.example/a/file.mkv",
            "https://m.example/b/file.mkv",
        ]

    @pytest.mark.asyncio()
    async def test_duplicate_links_resolved_once(self, make_stream: MakeStream) -> None:
        registry = MagicMock()
        registry.resolve = AsyncMock(return_value=[make_stream()])

        await ExtractionDispatcher(registry).dispatch_all(
            _links("https://m.example/a", "https://m.example/a"),
            referer="https://hdhub4u.example/page",
        )

        registry.resolve.assert_awaited_once_with(
            "https://m.example/a", "https://hdhub4u.example/page"
        )

    @pytest.mark.asyncio()
    async def test_duplicate_streams_keep_first(self, make_stream: MakeStream) -> None:
        shared = make_stream(url="https://cdn.example.net/same.mkv", source="Pixeldrain")
        registry = MagicMock()
        registry.resolve = AsyncMock(
            side_effect=[
                [shared],
                [shared, make_stream(url="https://cdn.example.net/other.mkv")],
            ]
        )

        streams = await ExtractionDispatcher(registry).dispatch_all(
            _links("https://m.example/a", "https://m.example/b")
        )

        assert [s.url for s in streams] == [
            "https://cdn.example.net/same.mkv",
            "https://cdn.example.net/other.mkv",
        ]

    @pytest.mark.asyncio()
    async def test_failing_link_is_isolated(self, make_stream: MakeStream) -> None:
        async def _resolve(url: str, referer: str = "") -> list[ResolvedStream]:
            if url.endswith("/bad"):
                raise RuntimeError("extractor bug")
            return [make_stream(url=f"{url}/file.mkv")]

        registry = MagicMock()
        registry.resolve = AsyncMock(side_effect=_resolve)

        streams = await ExtractionDispatcher(registry).dispatch_all(
            _links("https://m.example/bad", "https://m.example/good")
        )

        assert [s.url for s in streams] == ["https://m.example/good/file.mkv"]

    @pytest.mark.asyncio()
    async def test_concurrency_is_bounded(self, make_stream: MakeStream) -> None:
        active = 0
        peak = 0

        async def _resolve(url: str, referer: str = "") -> list[ResolvedStream]:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return []

        registry = MagicMock()
        registry.resolve = AsyncMock(side_effect=_resolve)

        await ExtractionDispatcher(registry, max_concurrent=2).dispatch_all(
            _links(*(f"https://m.example/{i}" for i in range(6)))
        )

        assert registry.resolve.await_count == 6
        assert peak == 2
