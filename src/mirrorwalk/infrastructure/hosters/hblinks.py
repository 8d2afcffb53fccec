"""HBLinks link-list pages.

A link-list page is an index of mirrors on other hosts.  Collecting the
links is done here; dispatching them back through the registry is the
registry's job, which also bounds the nesting depth.
"""

from __future__ import annotations

from urllib.parse import urlparse

import httpx
import structlog

from mirrorwalk.infrastructure.common.html_selectors import (
    extract_links,
    is_absolute_http,
    parse_html,
)
from mirrorwalk.infrastructure.hosters._fetch import fetch_html
from mirrorwalk.infrastructure.site_state import SiteState

log = structlog.get_logger(__name__)


def _same_host(a: str, b: str) -> bool:
    return (urlparse(a).hostname or "").lower() == (urlparse(b).hostname or "").lower()


def collect_mirror_links(html: str, page_url: str) -> list[str]:
    """Absolute hrefs on a link-list page, minus its own navigation.

    Links back into the same host are navigation unless they point at
    an ``/archives/`` entry.  Order is preserved; duplicates dropped.
    """
    seen: set[str] = set()
    links: list[str] = []
    for link in extract_links(parse_html(html)):
        href = link["href"]
        if not is_absolute_http(href) or href in seen:
            continue
        if _same_host(href, page_url) and "/archives/" not in href:
            continue
        seen.add(href)
        links.append(href)
    return links


class LinkListCollector:
    """Fetches link-list pages and returns the mirror URLs they list."""

    def __init__(self, http_client: httpx.AsyncClient, site: SiteState) -> None:
        self._http = http_client
        self._site = site

    async def collect(self, url: str, referer: str = "") -> list[str]:
        try:
            html = await fetch_html(self._http, url, self._site.request_headers(referer))
        except httpx.HTTPError as exc:
            log.warning("link_list_fetch_failed", url=url[:80], error=str(exc))
            return []

        links = collect_mirror_links(html, url)
        log.info("link_list_collected", url=url[:80], count=len(links))
        return links
