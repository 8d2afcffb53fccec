"""Tests for CachedStreamRepository and the cache factory."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from mirrorwalk.domain.entities.streams import ResolvedStream, StreamQuality
from mirrorwalk.infrastructure.cache import (
    DiskcacheAdapter,
    RemoteCacheAdapter,
    create_cache,
)
from mirrorwalk.infrastructure.config.schema import CacheConfig
from mirrorwalk.infrastructure.persistence.stream_cache import CachedStreamRepository

MakeStream = Callable[..., ResolvedStream]


def _fake_cache(stored: Any = None) -> MagicMock:
    cache = MagicMock()
    cache.get = AsyncMock(return_value=stored)
    cache.set = AsyncMock(return_value=True)
    return cache


class TestCachedStreamRepository:
    @pytest.mark.asyncio()
    async def test_set_serializes_with_prefix(self, make_stream: MakeStream) -> None:
        cache = _fake_cache()
        repo = CachedStreamRepository(cache)
        stream = ResolvedStream(
            source="Pixeldrain",
            quality=StreamQuality.FHD_1080P,
            url="https://pixeldrain.com/api/file/a?download",
            size_bytes=42,
            filename="a.mkv",
        )

        assert await repo.set("fp1", [stream], ttl_seconds=60) is True

        cache.set.assert_awaited_once_with(
            "streams:fp1",
            [
                {
                    "source": "Pixeldrain",
                    "quality": "1080p",
                    "url": "https://pixeldrain.com/api/file/a?download",
                    "size_bytes": 42,
                    "filename": "a.mkv",
                }
            ],
            ttl=60,
        )

    @pytest.mark.asyncio()
    async def test_get_deserializes(self) -> None:
        cache = _fake_cache(
            [{"source": "HubCloud", "quality": "2160p", "url": "https://x", "size_bytes": 7}]
        )

        streams = await CachedStreamRepository(cache).get("fp1")

        assert streams == [
            ResolvedStream(
                source="HubCloud",
                quality=StreamQuality.UHD_2160P,
                url="https://x",
                size_bytes=7,
            )
        ]
        cache.get.assert_awaited_once_with("streams:fp1")

    @pytest.mark.asyncio()
    async def test_miss(self) -> None:
        assert await CachedStreamRepository(_fake_cache()).get("fp1") is None

    @pytest.mark.asyncio()
    async def test_corrupt_entry_is_miss(self) -> None:
        cache = _fake_cache([{"quality": "1080p"}])
        assert await CachedStreamRepository(cache).get("fp1") is None

    @pytest.mark.asyncio()
    async def test_roundtrip_through_diskcache(
        self, tmp_path: Path, make_stream: MakeStream
    ) -> None:
        streams = [make_stream(quality="2160p", size_bytes=10), make_stream(url="https://b")]

        async with DiskcacheAdapter(directory=tmp_path) as cache:
            repo = CachedStreamRepository(cache)
            await repo.set("fp", streams, ttl_seconds=60)
            assert await repo.get("fp") == streams


class TestCreateCache:
    def test_none_backend(self) -> None:
        assert create_cache(CacheConfig(backend="none")) is None

    def test_diskcache_backend(self, tmp_path: Path) -> None:
        cache = create_cache(CacheConfig(backend="diskcache", dir=str(tmp_path)))
        assert isinstance(cache, DiskcacheAdapter)
        assert cache.directory == tmp_path

    def test_remote_backend(self) -> None:
        cache = create_cache(
            CacheConfig(backend="remote", remote_url="https://cache.example.dev/")
        )
        assert isinstance(cache, RemoteCacheAdapter)
        assert cache.base_url == "https://cache.example.dev"
