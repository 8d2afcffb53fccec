"""HubCloud extractor (CDN host).

A HubCloud link usually lands on a small interstitial page whose script
declares the real processing endpoint (``var url = '...'``).  That page
lists one anchor per download server next to the file size and a
header carrying the release name.  Each server is handled according to
its label:

* ``Download File`` / ``FSL`` / ``S3`` / ``10Gbps``: the href is the file;
* ``BuzzServer``: staged, a HEAD probe on ``<href>/download`` announces
  the file in ``hx-redirect`` (or ``location``);
* pixeldrain hrefs: delegated to :class:`PixeldrainExtractor`;
* anything else labelled download/server/link: taken as-is.

``ZipDisk`` and ``Telegram`` servers are skipped.  Redirect-shaped hrefs
are walked first; those that stay unresolved are dropped.
"""

from __future__ import annotations

import re

import httpx
import structlog

from mirrorwalk.domain.entities.streams import HostKind, ResolvedStream, StreamQuality
from mirrorwalk.infrastructure.common.html_selectors import (
    extract_links,
    extract_text,
    is_absolute_http,
    parse_html,
)
from mirrorwalk.infrastructure.common.parsers import parse_quality, parse_size_to_bytes
from mirrorwalk.infrastructure.hosters._fetch import fetch_html, fetch_redirect_location
from mirrorwalk.infrastructure.hosters.classifier import is_direct_url, is_redirect_url
from mirrorwalk.infrastructure.hosters.pixeldrain import PixeldrainExtractor
from mirrorwalk.infrastructure.hosters.walker import RedirectChainWalker
from mirrorwalk.infrastructure.site_state import SiteState

log = structlog.get_logger(__name__)

_SCRIPT_URL_RE = re.compile(r"var url = '([^']*)'")

_DIRECT_LABELS = ("Download File", "FSL", "S3", "10Gbps")
_STAGED_LABEL = "BuzzServer"
_SKIPPED_LABELS = ("ZipDisk", "Telegram")
_OTHER_DOWNLOAD_RE = re.compile(r"download|server|link", re.IGNORECASE)


def canonical_url(url: str) -> str:
    """Rewrite the retired ``hubcloud.ink`` domain."""
    return url.replace("hubcloud.ink", "hubcloud.dad")


class HubCloudExtractor:
    """Satisfies ``HostExtractorPort`` for hubcloud / hubcdn links."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        site: SiteState,
        walker: RedirectChainWalker,
        pixeldrain: PixeldrainExtractor,
    ) -> None:
        self._http = http_client
        self._site = site
        self._walker = walker
        self._pixeldrain = pixeldrain

    @property
    def kind(self) -> HostKind:
        return HostKind.HUBCLOUD

    async def extract(self, url: str, referer: str = "") -> list[ResolvedStream]:
        current = canonical_url(url)
        try:
            if is_redirect_url(current):
                # pixel.hubcdn gateways share the hostname family.
                current = await self._walker.resolve_redirect_chain(current)
                if is_direct_url(current):
                    return [
                        ResolvedStream(
                            source="HubCloud",
                            quality=parse_quality(current),
                            url=current,
                        )
                    ]
                if is_redirect_url(current):
                    return []

            html = await fetch_html(self._http, current, self._site.request_headers(referer))
            if "hubcloud.php" not in current:
                match = _SCRIPT_URL_RE.search(html)
                if match and is_absolute_http(match.group(1)):
                    log.debug("hubcloud_script_url", url=match.group(1)[:80])
                    html = await fetch_html(
                        self._http, match.group(1), self._site.request_headers(current)
                    )
                    current = match.group(1)
        except httpx.HTTPError as exc:
            log.warning("hubcloud_fetch_failed", url=url, error=str(exc))
            return []

        return await self._collect_servers(html, current)

    async def _collect_servers(self, html: str, page_url: str) -> list[ResolvedStream]:
        soup = parse_html(html)
        size_bytes = parse_size_to_bytes(extract_text(soup, "i#size"))
        quality = parse_quality(extract_text(soup, "div.card-header"))
        if quality is StreamQuality.UNKNOWN:
            quality = parse_quality(soup.get_text(" "))
        log.debug("hubcloud_page_info", size=size_bytes, quality=quality.value)

        results: list[ResolvedStream] = []
        for link in extract_links(soup, base_url=page_url):
            text, href = link["text"], link["href"]
            if not is_absolute_http(href):
                continue
            if any(label in text for label in _SKIPPED_LABELS):
                log.debug("hubcloud_server_skipped", label=text)
                continue

            streams = await self._resolve_server(text, href, quality, size_bytes)
            results.extend(streams)

        log.info("hubcloud_extracted", url=page_url[:80], count=len(results))
        return results

    async def _resolve_server(
        self,
        text: str,
        href: str,
        quality: StreamQuality,
        size_bytes: int,
    ) -> list[ResolvedStream]:
        source = f"HubCloud [{text}]"

        if is_redirect_url(href):
            href = await self._walker.resolve_redirect_chain(href)
            if is_redirect_url(href):
                log.debug("hubcloud_unresolved_redirect", label=text)
                return []

        if any(label in text for label in _DIRECT_LABELS):
            return [ResolvedStream(source=source, quality=quality, url=href, size_bytes=size_bytes)]

        if _STAGED_LABEL in text:
            try:
                final = await fetch_redirect_location(
                    self._http,
                    f"{href.rstrip('/')}/download",
                    self._site.request_headers(href),
                )
            except (httpx.HTTPError, ValueError) as exc:
                log.info("hubcloud_staged_probe_failed", label=text, error=str(exc))
                return []
            if not final or is_redirect_url(final):
                return []
            return [ResolvedStream(source=source, quality=quality, url=final, size_bytes=size_bytes)]

        if "pixeldra" in href:
            streams = await self._pixeldrain.extract(href)
            return streams[:1]

        if _OTHER_DOWNLOAD_RE.search(text):
            return [ResolvedStream(source=source, quality=quality, url=href, size_bytes=size_bytes)]

        return []
