"""Tests for EncodedLinkExtractor."""

from __future__ import annotations

import base64
from collections.abc import Callable
from typing import Any

import httpx
import pytest
import respx

from mirrorwalk.domain.entities.streams import HostKind
from mirrorwalk.infrastructure.hosters.encoded import EncodedLinkExtractor
from mirrorwalk.infrastructure.hosters.walker import RedirectChainWalker
from mirrorwalk.infrastructure.site_state import SiteState

_PAGE_URL = "https://new.gdtot.example/file/42"
_GD_URL = "https://video-downloads.googleusercontent.com/ADGPM2/movie-1080p"

PayloadScript = Callable[[dict[str, Any]], str]


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _extractor(client: httpx.AsyncClient, site: SiteState) -> EncodedLinkExtractor:
    return EncodedLinkExtractor(client, site, RedirectChainWalker(client, site))


class TestEncodedLinkExtractor:
    def test_kind(self, site: SiteState) -> None:
        assert _extractor(httpx.AsyncClient(), site).kind is HostKind.ENCODED

    @respx.mock
    @pytest.mark.asyncio()
    async def test_inline_target(
        self, site: SiteState, payload_script: PayloadScript
    ) -> None:
        respx.get(_PAGE_URL).respond(200, html=payload_script({"o": _b64(_GD_URL)}))

        async with httpx.AsyncClient() as client:
            streams = await _extractor(client, site).extract(_PAGE_URL)

        assert len(streams) == 1
        assert streams[0].source == "Redirect"
        assert streams[0].url == _GD_URL

    @respx.mock
    @pytest.mark.asyncio()
    async def test_secondary_fetch_target(
        self, site: SiteState, payload_script: PayloadScript
    ) -> None:
        page = payload_script({"data": "abc", "blog_url": "https://blog.example.org/"})
        respx.get(_PAGE_URL).respond(200, html=page)
        secondary = respx.get("https://blog.example.org/?re=YWJj").respond(
            200, html=f"<html><body><p>{_GD_URL}</p></body></html>"
        )

        async with httpx.AsyncClient() as client:
            target = await _extractor(client, site).resolve_target(
                _PAGE_URL, referer="https://hdhub4u.example/movie"
            )

        assert target == _GD_URL
        assert secondary.calls.last.request.headers["Referer"] == (
            "https://hdhub4u.example/movie"
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_redirect_target_is_walked(
        self, site: SiteState, payload_script: PayloadScript
    ) -> None:
        redirect = "https://short.example.org/go/1"
        respx.get(_PAGE_URL).respond(200, html=payload_script({"o": _b64(redirect)}))
        respx.get(redirect).respond(302, headers={"location": _GD_URL})

        async with httpx.AsyncClient() as client:
            target = await _extractor(client, site).resolve_target(_PAGE_URL)

        assert target == _GD_URL

    @respx.mock
    @pytest.mark.asyncio()
    async def test_unresolved_redirect_target(
        self, site: SiteState, payload_script: PayloadScript
    ) -> None:
        redirect = "https://short.example.org/go/2"
        respx.get(_PAGE_URL).respond(200, html=payload_script({"o": _b64(redirect)}))
        respx.get(redirect).respond(200, html="<p>nothing here</p>")

        async with httpx.AsyncClient() as client:
            streams = await _extractor(client, site).extract(_PAGE_URL)

        assert streams == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_page_without_payload(self, site: SiteState) -> None:
        respx.get(_PAGE_URL).respond(200, html="<html><body>Expired</body></html>")

        async with httpx.AsyncClient() as client:
            assert await _extractor(client, site).resolve_target(_PAGE_URL) is None

    @respx.mock
    @pytest.mark.asyncio()
    async def test_secondary_fetch_error(
        self, site: SiteState, payload_script: PayloadScript
    ) -> None:
        page = payload_script({"data": "abc", "blog_url": "https://blog.example.org/"})
        respx.get(_PAGE_URL).respond(200, html=page)
        respx.get("https://blog.example.org/?re=YWJj").respond(500)

        async with httpx.AsyncClient() as client:
            assert await _extractor(client, site).resolve_target(_PAGE_URL) is None
