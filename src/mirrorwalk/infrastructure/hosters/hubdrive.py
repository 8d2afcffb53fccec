"""HubDrive extractor (cascading drive host).

HubDrive pages hold no files themselves; they link to a HubCloud mirror
via an anchor labelled ``[HubCloud Server]``.
"""

from __future__ import annotations

import httpx
import structlog

from mirrorwalk.domain.entities.streams import HostKind, ResolvedStream
from mirrorwalk.infrastructure.common.html_selectors import extract_links, parse_html
from mirrorwalk.infrastructure.hosters._fetch import fetch_html
from mirrorwalk.infrastructure.hosters.hubcloud import HubCloudExtractor
from mirrorwalk.infrastructure.site_state import SiteState

log = structlog.get_logger(__name__)

HUBCLOUD_MARKER = "[HubCloud Server]"


def find_hubcloud_link(html: str, base_url: str = "") -> str | None:
    for link in extract_links(parse_html(html), base_url=base_url):
        if HUBCLOUD_MARKER in link["text"] and "hubcloud" in link["href"]:
            return link["href"]
    return None


class HubDriveExtractor:
    """Satisfies ``HostExtractorPort`` for hubdrive links."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        site: SiteState,
        hubcloud: HubCloudExtractor,
    ) -> None:
        self._http = http_client
        self._site = site
        self._hubcloud = hubcloud

    @property
    def kind(self) -> HostKind:
        return HostKind.HUBDRIVE

    async def extract(self, url: str, referer: str = "") -> list[ResolvedStream]:
        try:
            html = await fetch_html(self._http, url, self._site.request_headers(referer))
        except httpx.HTTPError as exc:
            log.warning("hubdrive_fetch_failed", url=url, error=str(exc))
            return []

        href = find_hubcloud_link(html, base_url=url)
        if href is None:
            log.info("hubdrive_no_hubcloud_link", url=url)
            return []

        log.debug("hubdrive_hubcloud_link", href=href[:80])
        return await self._hubcloud.extract(href, referer=url)
