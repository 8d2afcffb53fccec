"""Tests for StreamRanker."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from mirrorwalk.domain.entities.streams import ResolvedStream, StreamQuality
from mirrorwalk.infrastructure.config.schema import RankingConfig
from mirrorwalk.infrastructure.ranking.stream_ranker import StreamRanker, display_name

MakeStream = Callable[..., ResolvedStream]

_GB = 1024**3


@pytest.fixture()
def ranker() -> StreamRanker:
    return StreamRanker(RankingConfig())


class TestWeight:
    @pytest.mark.parametrize(
        ("quality", "expected"),
        [("2160p", 10), ("1080p", 8), ("720p", 0), ("480p", 0), ("unknown", 0)],
    )
    def test_default_weights(
        self, ranker: StreamRanker, make_stream: MakeStream, quality: str, expected: int
    ) -> None:
        assert ranker.weight(make_stream(quality=quality)) == expected

    def test_custom_weights(self, make_stream: MakeStream) -> None:
        ranker = StreamRanker(RankingConfig(quality_weights={"720p": 3}))
        assert ranker.weight(make_stream(quality="720p")) == 3
        assert ranker.weight(make_stream(quality="2160p")) == 0


class TestRank:
    def test_quality_dominates_size(self, ranker: StreamRanker, make_stream: MakeStream) -> None:
        small_uhd = make_stream(quality="2160p", size_bytes=2 * _GB, url="https://a/uhd")
        big_fhd = make_stream(quality="1080p", size_bytes=4 * _GB, url="https://a/fhd")

        assert ranker.rank([big_fhd, small_uhd]) == [small_uhd, big_fhd]

    def test_size_breaks_ties(self, ranker: StreamRanker, make_stream: MakeStream) -> None:
        small = make_stream(size_bytes=1 * _GB, url="https://a/small")
        big = make_stream(size_bytes=3 * _GB, url="https://a/big")

        assert ranker.rank([small, big]) == [big, small]

    def test_full_ties_keep_input_order(
        self, ranker: StreamRanker, make_stream: MakeStream
    ) -> None:
        first = make_stream(url="https://a/1")
        second = make_stream(url="https://a/2")

        assert ranker.rank([first, second]) == [first, second]

    def test_does_not_mutate_input(self, ranker: StreamRanker, make_stream: MakeStream) -> None:
        streams = [make_stream(quality="720p"), make_stream(quality="2160p")]
        snapshot = list(streams)

        ranker.rank(streams)

        assert streams == snapshot


class TestSelect:
    def test_release_page_scenario(self, ranker: StreamRanker, make_stream: MakeStream) -> None:
        fhd_small = make_stream(quality="1080p", size_bytes=500 * 1024**2, url="https://a/1")
        uhd = make_stream(quality="2160p", size_bytes=2 * _GB, url="https://a/2")
        fhd_big = make_stream(quality="1080p", size_bytes=4 * _GB, url="https://a/3")
        unknown = make_stream(quality="unknown", size_bytes=10 * _GB, url="https://a/4")

        assert ranker.select([fhd_small, uhd, fhd_big, unknown]) == [uhd, fhd_big, fhd_small]

    def test_min_quality_floor(self, make_stream: MakeStream) -> None:
        ranker = StreamRanker(RankingConfig(min_quality="720p"))
        hd = make_stream(quality="720p")
        sd = make_stream(quality="480p", url="https://a/sd")

        assert ranker.filter_for_caller([hd, sd]) == [hd]

    def test_default_floor_drops_hd(self, ranker: StreamRanker, make_stream: MakeStream) -> None:
        assert ranker.select([make_stream(quality="720p")]) == []


class TestDisplayName:
    def test_numbered_label(self, make_stream: MakeStream) -> None:
        stream = make_stream(quality="1080p")
        assert display_name(1, stream) == "1. 1080p"

    def test_unknown(self, make_stream: MakeStream) -> None:
        stream = ResolvedStream(source="x", quality=StreamQuality.UNKNOWN, url="https://a")
        assert display_name(3, stream) == "3. Unknown"
