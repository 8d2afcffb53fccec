"""Shared HTTP helpers for the host extractors."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urljoin

import httpx

# Response headers carrying the next URL of a staged download server,
# in preference order.
REDIRECT_HEADERS = ("hx-redirect", "location")


async def fetch_html(
    http: httpx.AsyncClient,
    url: str,
    headers: Mapping[str, str] | None = None,
) -> str:
    """GET *url* (following redirects) and return the body text.

    Raises ``httpx.HTTPError`` on transport errors and non-2xx statuses.
    """
    resp = await http.get(url, headers=dict(headers or {}), follow_redirects=True)
    resp.raise_for_status()
    return resp.text


async def fetch_redirect_location(
    http: httpx.AsyncClient,
    url: str,
    headers: Mapping[str, str] | None = None,
) -> str | None:
    """HEAD *url* without following redirects and return the announced target.

    Relative targets are resolved against *url*.
    """
    resp = await http.head(url, headers=dict(headers or {}), follow_redirects=False)
    for name in REDIRECT_HEADERS:
        value = resp.headers.get(name)
        if value and value.strip():
            return urljoin(url, value.strip())
    return None
