"""URL classification for mirror links.

Pure functions, no I/O.  ``classify`` first matches the hostname against
the known host kinds, then falls back to full-URL shape checks.  The
shape predicates ``is_direct_url`` / ``is_redirect_url`` are also used on
their own by the walker and the extractors: a URL can belong to a host
kind *and* have a direct or redirect shape (``pixel.hubcdn...`` is both a
HubCloud-family host and a redirect gateway).
"""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

from mirrorwalk.domain.entities.streams import HostKind, LinkCategory, LinkClass

# Hostname substring -> host kind. Order matters: first match wins.
_HOST_KINDS: tuple[tuple[str, HostKind], ...] = (
    ("pixeldrain", HostKind.PIXELDRAIN),
    ("hubcloud", HostKind.HUBCLOUD),
    ("hubcdn", HostKind.HUBCLOUD),
    ("hubdrive", HostKind.HUBDRIVE),
    ("hubstream", HostKind.HUBSTREAM),
    ("gdtot", HostKind.ENCODED),
    ("techyboy", HostKind.ENCODED),
    ("hblinks", HostKind.LINK_LIST),
)

DIRECT_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"pixeldrain\.com/api/file/.*\?download"),
    re.compile(r"video-downloads\.googleusercontent\.com"),
    re.compile(r"drive\.google\.com/uc\?"),
    re.compile(r"docs\.google\.com.*export"),
)

REDIRECT_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"dl\.php\?link="),
    re.compile(r"pixel\.hubcdn"),
    re.compile(r"pixel\.rohitkiskk"),
    re.compile(r"/go/"),
    re.compile(r"redirect", re.IGNORECASE),
)


def _hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def host_kind(url: str) -> HostKind | None:
    """Return the host kind whose marker appears in the URL's hostname."""
    hostname = _hostname(url)
    if not hostname:
        return None
    for marker, kind in _HOST_KINDS:
        if marker in hostname:
            return kind
    return None


def is_direct_url(url: str) -> bool:
    """True when *url* has a known final-file shape."""
    return any(p.search(url) for p in DIRECT_URL_PATTERNS)


def is_redirect_url(url: str) -> bool:
    """True when *url* has a known indirection shape.

    Direct shapes win: a URL matching both is not a redirect.
    """
    if is_direct_url(url):
        return False
    return any(p.search(url) for p in REDIRECT_URL_PATTERNS)


def _has_id_query(url: str) -> bool:
    try:
        return "id" in parse_qs(urlparse(url).query)
    except ValueError:
        return False


def classify(url: str) -> LinkClass:
    """Classify *url* as host-specific, direct, redirect or unclassified.

    Order: hostname kind, direct shape, encoded ``?id=`` wrapper,
    redirect shape.
    """
    kind = host_kind(url)
    if kind is not None:
        return LinkClass(LinkCategory.HOST_SPECIFIC, kind)
    if is_direct_url(url):
        return LinkClass(LinkCategory.DIRECT)
    if _has_id_query(url):
        return LinkClass(LinkCategory.HOST_SPECIFIC, HostKind.ENCODED)
    if is_redirect_url(url):
        return LinkClass(LinkCategory.REDIRECT)
    return LinkClass(LinkCategory.UNCLASSIFIED)
