"""Hubstream extractor (streaming host)."""

from __future__ import annotations

import re

import httpx
import structlog

from mirrorwalk.domain.entities.streams import HostKind, ResolvedStream
from mirrorwalk.infrastructure.common.html_selectors import (
    extract_links,
    is_absolute_http,
    parse_html,
)
from mirrorwalk.infrastructure.common.parsers import parse_quality
from mirrorwalk.infrastructure.hosters._fetch import fetch_html
from mirrorwalk.infrastructure.hosters.classifier import is_redirect_url
from mirrorwalk.infrastructure.hosters.walker import RedirectChainWalker
from mirrorwalk.infrastructure.site_state import SiteState

log = structlog.get_logger(__name__)

_DOWNLOAD_TEXT_RE = re.compile(r"Download|Server|Direct")


class HubstreamExtractor:
    """Satisfies ``HostExtractorPort`` for hubstream links.

    One stream per download-labelled anchor; the page-wide quality token
    applies to all of them and sizes are unknown.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        site: SiteState,
        walker: RedirectChainWalker,
    ) -> None:
        self._http = http_client
        self._site = site
        self._walker = walker

    @property
    def kind(self) -> HostKind:
        return HostKind.HUBSTREAM

    async def extract(self, url: str, referer: str = "") -> list[ResolvedStream]:
        try:
            html = await fetch_html(self._http, url, self._site.request_headers(referer))
        except httpx.HTTPError as exc:
            log.warning("hubstream_fetch_failed", url=url, error=str(exc))
            return []

        quality = parse_quality(html)
        results: list[ResolvedStream] = []
        for link in extract_links(parse_html(html), base_url=url):
            href = link["href"]
            if not is_absolute_http(href) or not _DOWNLOAD_TEXT_RE.search(link["text"]):
                continue
            if is_redirect_url(href):
                href = await self._walker.resolve_redirect_chain(href)
                if is_redirect_url(href):
                    continue
            results.append(ResolvedStream(source="Hubstream", quality=quality, url=href))

        log.info("hubstream_extracted", url=url[:80], count=len(results))
        return results
