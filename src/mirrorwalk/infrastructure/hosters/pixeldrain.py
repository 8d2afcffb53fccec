"""Pixeldrain extractor (simple file host).

Pixeldrain exposes a JSON metadata endpoint per file, so no page scraping
is needed: the file id is taken from the URL, ``/api/file/<id>/info``
supplies name and size, and the stream points at the download endpoint.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

import httpx
import structlog

from mirrorwalk.domain.entities.streams import HostKind, ResolvedStream
from mirrorwalk.infrastructure.common.parsers import parse_quality
from mirrorwalk.infrastructure.site_state import SiteState

log = structlog.get_logger(__name__)

PIXELDRAIN_API = "https://pixeldrain.com/api/file"

_FILE_ID_RE = re.compile(r"(?:file|u)/([A-Za-z0-9]+)")


def extract_file_id(url: str) -> str | None:
    """Return the file id from a ``/u/<id>`` or ``/api/file/<id>`` URL.

    Falls back to the last path segment.
    """
    match = _FILE_ID_RE.search(url)
    if match:
        return match.group(1)
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    last = path.rstrip("/").rsplit("/", 1)[-1]
    return last or None


def download_url(file_id: str) -> str:
    return f"{PIXELDRAIN_API}/{file_id}?download"


class PixeldrainExtractor:
    """Satisfies ``HostExtractorPort`` for pixeldrain links."""

    def __init__(self, http_client: httpx.AsyncClient, site: SiteState) -> None:
        self._http = http_client
        self._site = site

    @property
    def kind(self) -> HostKind:
        return HostKind.PIXELDRAIN

    async def extract(self, url: str, referer: str = "") -> list[ResolvedStream]:
        file_id = extract_file_id(url)
        if not file_id:
            log.warning("pixeldrain_invalid_url", url=url)
            return []

        try:
            resp = await self._http.get(
                f"{PIXELDRAIN_API}/{file_id}/info",
                headers=self._site.request_headers(referer),
            )
            resp.raise_for_status()
            info = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("pixeldrain_info_failed", file_id=file_id, error=str(exc))
            return []

        if not isinstance(info, dict):
            log.warning("pixeldrain_info_malformed", file_id=file_id)
            return []

        name = info.get("name") or None
        size = info.get("size")
        size_bytes = size if isinstance(size, int) and size > 0 else 0

        log.debug("pixeldrain_resolved", file_id=file_id, size=size_bytes)
        return [
            ResolvedStream(
                source="Pixeldrain",
                quality=parse_quality(name),
                url=download_url(file_id),
                size_bytes=size_bytes,
                filename=name,
            )
        ]
