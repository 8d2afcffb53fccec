"""Candidate link scanning for upstream release pages."""

from __future__ import annotations

import re
from collections.abc import Iterable

from mirrorwalk.domain.entities.streams import CandidateLink
from mirrorwalk.infrastructure.common.html_selectors import (
    extract_links,
    is_absolute_http,
    parse_html,
)

# Site navigation, tag pages, social links and archives are never mirrors.
_JUNK_SUBSTRINGS: tuple[str, ...] = (
    "hdhub4u.",
    "-hindi-",
    "-movie/",
    "-series/",
    "-episodes/",
    "facebook.com",
    "telegram.me",
    "how-to-download",
)
_DATED_PATH_RE = re.compile(r"/20\d{2}/")


def is_junk_link(href: str) -> bool:
    """True for links that point back into the site or at non-mirror content."""
    lowered = href.lower()
    if any(s in lowered for s in _JUNK_SUBSTRINGS):
        return True
    if _DATED_PATH_RE.search(href):
        return True
    return lowered.endswith(".zip") or ".zip?" in lowered


def dedupe_links(links: Iterable[CandidateLink]) -> list[CandidateLink]:
    """Drop later duplicates by exact URL, keeping document order."""
    seen: set[str] = set()
    unique: list[CandidateLink] = []
    for link in links:
        if link.url in seen:
            continue
        seen.add(link.url)
        unique.append(link)
    return unique


def scan_candidate_links(html: str, base_url: str = "") -> list[CandidateLink]:
    """Collect absolute, non-junk anchors from an upstream page."""
    candidates = [
        CandidateLink(url=link["href"], display_text=link["text"])
        for link in extract_links(parse_html(html), base_url=base_url)
        if is_absolute_http(link["href"]) and not is_junk_link(link["href"])
    ]
    return dedupe_links(candidates)
