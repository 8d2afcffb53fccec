"""Encoded-link wrapper pages (gdtot, techyboy and ``?id=`` wrappers).

These pages carry the layered payload at the top level.  Decoding it
yields either the target URL or a secondary fetch whose body is the
target; a target that is still redirect-shaped is walked.
"""

from __future__ import annotations

import httpx
import structlog

from mirrorwalk.domain.entities.streams import HostKind, ResolvedStream
from mirrorwalk.infrastructure.common.html_selectors import is_absolute_http
from mirrorwalk.infrastructure.common.parsers import parse_quality
from mirrorwalk.infrastructure.hosters._fetch import fetch_html
from mirrorwalk.infrastructure.hosters.classifier import is_redirect_url
from mirrorwalk.infrastructure.hosters.payload import (
    extract_encoded_blob,
    fetch_payload_target,
    try_decode_payload,
)
from mirrorwalk.infrastructure.hosters.walker import RedirectChainWalker
from mirrorwalk.infrastructure.site_state import SiteState

log = structlog.get_logger(__name__)


class EncodedLinkExtractor:
    """Satisfies ``HostExtractorPort`` for encoded wrapper pages."""

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
        return HostKind.ENCODED

    async def resolve_target(self, url: str, referer: str = "") -> str | None:
        """Decode the page at *url* into its target URL.

        Returns None when the page has no decodable payload, the
        secondary fetch fails, or the target stays an unresolved redirect.
        """
        headers = self._site.request_headers(referer)
        try:
            html = await fetch_html(self._http, url, headers)
            payload = try_decode_payload(extract_encoded_blob(html))
            if payload is None:
                log.info("encoded_no_payload", url=url[:80])
                return None
            target = await fetch_payload_target(self._http, payload, headers)
        except httpx.HTTPError as exc:
            log.warning("encoded_fetch_failed", url=url[:80], error=str(exc))
            return None

        if not target or not is_absolute_http(target):
            return None
        if is_redirect_url(target):
            target = await self._walker.resolve_redirect_chain(target)
            if is_redirect_url(target):
                return None

        log.debug("encoded_target", url=url[:80], target=target[:80])
        return target

    async def extract(self, url: str, referer: str = "") -> list[ResolvedStream]:
        target = await self.resolve_target(url, referer)
        if target is None:
            return []
        return [ResolvedStream(source="Redirect", quality=parse_quality(target), url=target)]
