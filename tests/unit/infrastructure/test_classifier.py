"""Tests for URL classification."""

from __future__ import annotations

import pytest

from mirrorwalk.domain.entities.streams import HostKind, LinkCategory
from mirrorwalk.infrastructure.hosters.classifier import (
    classify,
    host_kind,
    is_direct_url,
    is_redirect_url,
)


class TestClassify:
    @pytest.mark.parametrize(
        ("url", "kind"),
        [
            ("https://pixeldrain.com/u/abc123", HostKind.PIXELDRAIN),
            ("https://hubcloud.dad/drive/xyz", HostKind.HUBCLOUD),
            ("https://gamerxyt.hubcdn.fans/x", HostKind.HUBCLOUD),
            ("https://hubdrive.space/file/123", HostKind.HUBDRIVE),
            ("https://hubstream.art/#abc", HostKind.HUBSTREAM),
            ("https://new1.gdtot.cfd/file/1", HostKind.ENCODED),
            ("https://techyboy4u.com/?id=abc", HostKind.ENCODED),
            ("https://hblinks.dad/archives/123", HostKind.LINK_LIST),
        ],
    )
    def test_host_specific(self, url: str, kind: HostKind) -> None:
        result = classify(url)
        assert result.category is LinkCategory.HOST_SPECIFIC
        assert result.host_kind is kind

    def test_host_kind_wins_over_direct_shape(self) -> None:
        result = classify("https://pixeldrain.com/api/file/abc?download")
        assert result.host_kind is HostKind.PIXELDRAIN

    @pytest.mark.parametrize(
        "url",
        [
            "https://video-downloads.googleusercontent.com/ADGPM2/file",
            "https://drive.google.com/uc?id=1&export=download",
            "https://docs.google.com/uc?export=download&id=1",
        ],
    )
    def test_direct(self, url: str) -> None:
        assert classify(url).category is LinkCategory.DIRECT

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/dl.php?link=abc",
            "https://example.com/go/abc",
            "https://example.com/Redirect?to=1",
        ],
    )
    def test_redirect(self, url: str) -> None:
        assert classify(url).category is LinkCategory.REDIRECT

    def test_id_query_is_encoded_wrapper(self) -> None:
        result = classify("https://links.example.org/view?id=QWxhZGRpbg")
        assert result.host_kind is HostKind.ENCODED

    def test_direct_checked_before_id_query(self) -> None:
        assert classify("https://drive.google.com/uc?id=1").category is LinkCategory.DIRECT

    def test_unclassified(self) -> None:
        result = classify("https://files.example.net/movie.mkv")
        assert result.category is LinkCategory.UNCLASSIFIED
        assert result.host_kind is None

    def test_unparseable_url(self) -> None:
        assert classify("not a url").category is LinkCategory.UNCLASSIFIED
        assert host_kind("") is None


class TestShapePredicates:
    def test_pixel_gateway_is_redirect_shaped(self) -> None:
        url = "https://pixel.hubcdn.fans/?id=abc"
        assert is_redirect_url(url)
        assert not is_direct_url(url)

    def test_direct_wins_over_redirect(self) -> None:
        url = "https://video-downloads.googleusercontent.com/redirect/abc"
        assert is_direct_url(url)
        assert not is_redirect_url(url)

    def test_pixeldrain_download_endpoint_is_direct(self) -> None:
        assert is_direct_url("https://pixeldrain.com/api/file/abc?download")
        assert not is_direct_url("https://pixeldrain.com/api/file/abc/info")
