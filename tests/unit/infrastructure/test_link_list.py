"""Tests for link-list collection."""

from __future__ import annotations

import httpx
import pytest
import respx

from mirrorwalk.infrastructure.hosters.hblinks import (
    LinkListCollector,
    collect_mirror_links,
)
from mirrorwalk.infrastructure.site_state import SiteState

_PAGE_URL = "https://hblinks.example/archives/123"

_PAGE_HTML = """
<html><body>
  <nav>
    <a href="https://hblinks.example/">Home</a>
    <a href="/about">About</a>
  </nav>
  <div class="entry-content">
    <a href="https://hubdrive.space/file/1">HubDrive</a>
    <a href="https://pixeldrain.com/u/abc">Pixeldrain</a>
    <a href="https://hubdrive.space/file/1">HubDrive (again)</a>
    <a href="https://hblinks.example/archives/456">Part 2</a>
    <a href="mailto:admin@example.org">Contact</a>
  </div>
</body></html>
"""


class TestCollectMirrorLinks:
    def test_filters_navigation_and_duplicates(self) -> None:
        assert collect_mirror_links(_PAGE_HTML, _PAGE_URL) == [
            "https://hubdrive.space/file/1",
            "https://pixeldrain.com/u/abc",
            "https://hblinks.example/archives/456",
        ]

    def test_empty_page(self) -> None:
        assert collect_mirror_links("<html></html>", _PAGE_URL) == []

    def test_unparseable_href_is_skipped(self) -> None:
        html = (
            '<a href="http://[broken">Bad</a>'
            '<a href="https://pixeldrain.com/u/abc">Pixeldrain</a>'
        )
        assert collect_mirror_links(html, _PAGE_URL) == ["https://pixeldrain.com/u/abc"]


class TestLinkListCollector:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_collect(self, site: SiteState) -> None:
        respx.get(_PAGE_URL).respond(200, html=_PAGE_HTML)

        async with httpx.AsyncClient() as client:
            links = await LinkListCollector(client, site).collect(_PAGE_URL)

        assert len(links) == 3

    @respx.mock
    @pytest.mark.asyncio()
    async def test_fetch_error_returns_empty(self, site: SiteState) -> None:
        respx.get(_PAGE_URL).respond(404)

        async with httpx.AsyncClient() as client:
            assert await LinkListCollector(client, site).collect(_PAGE_URL) == []
