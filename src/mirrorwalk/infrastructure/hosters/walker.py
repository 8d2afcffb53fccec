"""Redirect chain walker.

Follows a mirror URL through HTTP redirects and HTML-level indirections
until it reaches a direct download link or has to give up.  The walk is
an explicit loop over :class:`ChainState`; each iteration is one hop.

Guarantees:

* a URL with a direct shape is returned as-is without any request;
* at most ``max_hops`` hops are followed;
* an intermediate redirect-shaped URL is never returned.  When the chain
  fails or is exhausted while sitting on one, the *original* entry URL is
  returned instead.
"""

from __future__ import annotations

import html as html_lib
import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urljoin, urlparse

import httpx
import structlog
from bs4 import BeautifulSoup

from mirrorwalk.infrastructure.common.html_selectors import (
    extract_links,
    is_absolute_http,
    parse_html,
)
from mirrorwalk.infrastructure.hosters.classifier import is_direct_url, is_redirect_url
from mirrorwalk.infrastructure.hosters.payload import (
    extract_encoded_blob,
    fetch_payload_target,
    try_decode_payload,
)
from mirrorwalk.infrastructure.site_state import SiteState

log = structlog.get_logger(__name__)

DEFAULT_MAX_HOPS = 10

_BINARY_CONTENT_TYPES = (
    "video/",
    "application/octet-stream",
    "application/x-matroska",
    "application/mp4",
)

_DOWNLOAD_BUTTON_ID_RE = re.compile(r"^(downloadbtn|download-btn|btn-download)", re.IGNORECASE)

# Script patterns near a download button.  Group 1, when present, holds
# the URL; otherwise the whole match is the URL.
_BUTTON_SCRIPT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"https?://video-downloads\.googleusercontent\.com/[^\s\"'<>)]+"),
    re.compile(r"https?://[^\s\"'<>]*pixeldrain\.com[^\s\"'<>]+"),
    re.compile(r"https?://drive\.google\.com[^\s\"'<>]+"),
    re.compile(r"var\s+(?:download_?url|file_?url|link)\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"location\.href\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"window\.open\(\s*[\"']([^\"']+)[\"']", re.IGNORECASE),
)

_EMBEDDED_URL_RE = re.compile(r"https?://[^\s\"'<>)]+")

_ANCHOR_INTENT_RE = re.compile(
    r"download|get file|click here|direct link|server|get link", re.IGNORECASE
)
# Whole word only; "Downloads" labels stay eligible.
_ANCHOR_EXCLUDED_RE = re.compile(r"telegram|zipdisk|\bads\b", re.IGNORECASE)

_META_REFRESH_URL_RE = re.compile(r"url\s*=\s*['\"]?([^'\"\s;]+)", re.IGNORECASE)

_JS_LOCATION_RE = re.compile(
    r"(?:window\.location(?:\.href)?|location\.href)\s*=\s*[\"']([^\"']+)[\"']"
)


class ChainState(str, Enum):
    FOLLOWING = "following"
    TERMINAL = "terminal"
    FAILED = "failed"


@dataclass
class ResolutionState:
    """Mutable working state of one walk. Never shared between walks."""

    current_url: str
    original_url: str
    hop_count: int = 0
    visited: set[str] = field(default_factory=set)

    def advance(self, next_url: str) -> None:
        self.visited.add(self.current_url)
        self.current_url = next_url
        self.hop_count += 1


@dataclass(frozen=True)
class ChainResult:
    """Outcome of a walk: the final state, the URL to use, and hops taken."""

    state: ChainState
    url: str
    hops: int


def _short(url: str) -> str:
    return url[:80]


def is_ad_url(url: str, ad_domains: Iterable[str]) -> bool:
    """True when the host of *url* contains one of *ad_domains*."""
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return any(domain in host for domain in ad_domains)


def _join(base: str, ref: str) -> str | None:
    """Resolve *ref* against *base*; None when either does not parse."""
    try:
        return urljoin(base, ref)
    except ValueError:
        return None


def _is_binary(content_type: str) -> bool:
    ct = content_type.lower()
    return any(marker in ct for marker in _BINARY_CONTENT_TYPES)


def _is_markup(content_type: str) -> bool:
    ct = content_type.lower()
    return not ct or "html" in ct or "xml" in ct


class RedirectChainWalker:
    """Resolve redirect chains into direct download URLs.

    One instance is shared by all extractors; every :meth:`walk` call
    owns its own :class:`ResolutionState`, so concurrent walks are
    independent.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        site: SiteState,
        *,
        max_hops: int = DEFAULT_MAX_HOPS,
        ad_domains: Iterable[str] = (),
    ) -> None:
        self._http = http_client
        self._site = site
        self._max_hops = max_hops
        self._ad_domains = tuple(d.lower() for d in ad_domains)

    async def resolve_redirect_chain(self, url: str) -> str:
        """Walk *url* and return the URL callers should use."""
        result = await self.walk(url)
        return result.url

    async def walk(self, url: str) -> ChainResult:
        """Walk *url* and return the full :class:`ChainResult`."""
        chain_id = uuid.uuid4().hex[:8]
        with structlog.contextvars.bound_contextvars(chain_id=chain_id):
            state = ResolutionState(current_url=url, original_url=url)
            log.debug("walker_started", url=_short(url), max_hops=self._max_hops)
            result = await self._run(state)
            log.debug(
                "walker_finished",
                state=result.state.value,
                url=_short(result.url),
                hops=result.hops,
            )
            return result

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _run(self, state: ResolutionState) -> ChainResult:
        while True:
            current = state.current_url

            if is_direct_url(current):
                log.debug("walker_terminal_direct", hop=state.hop_count, url=_short(current))
                return self._terminal(state, current)

            if state.hop_count >= self._max_hops:
                log.info("walker_hop_limit", hops=state.hop_count, url=_short(current))
                return self._exhausted(state)

            log.debug("walker_hop", hop=state.hop_count + 1, url=_short(current))
            try:
                next_url, terminal = await self._step(current)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
                log.info(
                    "walker_hop_failed",
                    hop=state.hop_count,
                    url=_short(current),
                    error=str(exc) or type(exc).__name__,
                )
                return self._exhausted(state)

            if terminal is not None:
                return self._terminal(state, terminal)
            if next_url is None:
                # Nothing left to follow on this page.
                return self._terminal(state, current)

            if next_url in state.visited or next_url == current:
                log.info("walker_loop_detected", hop=state.hop_count, url=_short(next_url))
                return self._exhausted(state)

            state.advance(next_url)

    def _terminal(self, state: ResolutionState, url: str) -> ChainResult:
        """Settle on *url*, unless it is still an unresolved redirect."""
        if is_redirect_url(url):
            log.info("walker_stuck_on_redirect", url=_short(url))
            return ChainResult(ChainState.FAILED, state.original_url, state.hop_count)
        return ChainResult(ChainState.TERMINAL, url, state.hop_count)

    def _exhausted(self, state: ResolutionState) -> ChainResult:
        """Outcome when the chain cannot continue (error, hop cap, loop)."""
        if is_redirect_url(state.current_url):
            return ChainResult(ChainState.FAILED, state.original_url, state.hop_count)
        return ChainResult(ChainState.TERMINAL, state.current_url, state.hop_count)

    async def _step(self, current: str) -> tuple[str | None, str | None]:
        """Fetch *current* once.

        Returns ``(next_url, terminal_url)``: at most one is set.  Both
        None means the page offered nothing further.
        """
        async with self._http.stream(
            "GET",
            current,
            headers=self._site.headers,
            follow_redirects=False,
        ) as resp:
            location = resp.headers.get("location")
            if location:
                return urljoin(current, location.strip()), None

            content_type = resp.headers.get("content-type", "")
            if _is_binary(content_type):
                log.debug("walker_binary_content", content_type=content_type)
                return None, current
            if not _is_markup(content_type):
                return None, None

            await resp.aread()
            body = resp.text

        return await self._scan_markup(current, body)

    # ------------------------------------------------------------------
    # Markup strategies, in priority order
    # ------------------------------------------------------------------

    async def _scan_markup(self, current: str, body: str) -> tuple[str | None, str | None]:
        next_url = await self._from_payload(body)
        if next_url:
            log.debug("walker_strategy", strategy="payload", url=_short(next_url))
            return next_url, None

        soup = parse_html(body)

        next_url = self._from_download_button(soup, current)
        if next_url:
            log.debug("walker_strategy", strategy="button", url=_short(next_url))
            return next_url, None

        terminal = self._embedded_direct_url(body)
        if terminal:
            log.debug("walker_strategy", strategy="embedded_direct", url=_short(terminal))
            return None, terminal

        next_url = self._from_anchor(soup, current)
        if next_url:
            log.debug("walker_strategy", strategy="anchor", url=_short(next_url))
            return next_url, None

        next_url = self._from_meta_refresh(soup, current)
        if next_url:
            log.debug("walker_strategy", strategy="meta_refresh", url=_short(next_url))
            return next_url, None

        next_url = self._from_js_location(body, current)
        if next_url:
            log.debug("walker_strategy", strategy="js_location", url=_short(next_url))
            return next_url, None

        return None, None

    async def _from_payload(self, body: str) -> str | None:
        blob = extract_encoded_blob(body)
        payload = try_decode_payload(blob)
        if payload is None:
            return None
        # Errors here belong to the payload strategy only.
        try:
            target = await fetch_payload_target(self._http, payload, self._site.headers)
        except httpx.HTTPError as exc:
            log.debug("walker_payload_fetch_failed", error=str(exc))
            return None
        if target and is_absolute_http(target):
            return target
        return None

    def _from_download_button(self, soup: BeautifulSoup, current: str) -> str | None:
        button = soup.find("button", id=_DOWNLOAD_BUTTON_ID_RE)
        if button is None:
            return None

        sources = [script.get_text() for script in soup.find_all("script")]
        onclick = button.get("onclick")
        if onclick:
            sources.append(str(onclick))
        script_text = "\n".join(sources)

        for pattern in _BUTTON_SCRIPT_PATTERNS:
            match = pattern.search(script_text)
            if not match:
                continue
            found = match.group(1) if match.groups() else match.group(0)
            found = _join(current, html_lib.unescape(found.strip()))
            if found and is_absolute_http(found) and not is_ad_url(found, self._ad_domains):
                return found
        return None

    @staticmethod
    def _embedded_direct_url(body: str) -> str | None:
        for match in _EMBEDDED_URL_RE.finditer(body):
            candidate = html_lib.unescape(match.group(0))
            if is_direct_url(candidate):
                return candidate
        return None

    @staticmethod
    def _from_anchor(soup: BeautifulSoup, current: str) -> str | None:
        for link in extract_links(soup, base_url=current):
            href, text = link["href"], link["text"]
            if not is_absolute_http(href) or href == current:
                continue
            if _ANCHOR_EXCLUDED_RE.search(text):
                continue
            if _ANCHOR_INTENT_RE.search(text):
                return href
        return None

    @staticmethod
    def _from_meta_refresh(soup: BeautifulSoup, current: str) -> str | None:
        meta = soup.find("meta", attrs={"http-equiv": re.compile(r"^refresh$", re.IGNORECASE)})
        if meta is None:
            return None
        match = _META_REFRESH_URL_RE.search(str(meta.get("content", "")))
        if not match:
            return None
        target = _join(current, match.group(1))
        return target if target and is_absolute_http(target) else None

    def _from_js_location(self, body: str, current: str) -> str | None:
        # Only the first assignment counts; an ad target disables the strategy.
        match = _JS_LOCATION_RE.search(body)
        if not match:
            return None
        target = _join(current, html_lib.unescape(match.group(1).strip()))
        if not target or not is_absolute_http(target):
            return None
        if is_ad_url(target, self._ad_domains):
            log.info("walker_ad_redirect_skipped", url=_short(target))
            return None
        return target
