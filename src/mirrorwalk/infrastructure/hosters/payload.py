"""Decoder for the layered payloads that mirror pages hide in their scripts.

Pages embed the payload as a series of script tokens::

    s('o','<base64>')              # call-like token
    ck('_wp_http_12','<string>')   # cookie-set-like token

All token values are concatenated in page order and peeled through four
fixed stages: base64, base64, ROT13, base64.  The innermost layer is a
JSON object in one of two shapes:

* ``{"o": "<base64 url>"}``: the follow-on URL itself.
* ``{"data": "...", "blog_url": "..."}``: a secondary fetch of
  ``<blog_url>?re=<base64(data)>`` whose plain-text body is the URL.
"""

from __future__ import annotations

import base64
import binascii
import codecs
import json
import re
from typing import Mapping

import httpx
import structlog

from mirrorwalk.domain.entities.streams import DecodedPayload, SecondaryFetch
from mirrorwalk.infrastructure.common.html_selectors import strip_tags

log = structlog.get_logger(__name__)

ENCODED_TOKEN_RE = re.compile(
    r"s\('o','([A-Za-z0-9+/=]+)'|ck\('_wp_http_\d+','([^']+)'"
)

_WHITESPACE_RE = re.compile(r"\s+")


class PayloadDecodeError(ValueError):
    """Raised when an encoded payload cannot be decoded or parsed."""


def extract_encoded_blob(html: str) -> str:
    """Concatenate every encoded token value found in *html*, in order.

    Returns an empty string when the page carries no tokens.
    """
    return "".join(m.group(1) or m.group(2) or "" for m in ENCODED_TOKEN_RE.finditer(html))


def rot13(text: str) -> str:
    """ROT13 over ASCII letters; every other character passes through."""
    return codecs.encode(text, "rot13")


def _b64decode(text: str) -> bytes:
    cleaned = _WHITESPACE_RE.sub("", text)
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=True)
    except binascii.Error as exc:
        raise PayloadDecodeError(f"invalid base64: {exc}") from exc


def _b64decode_text(text: str, encoding: str = "ascii") -> str:
    try:
        return _b64decode(text).decode(encoding)
    except UnicodeDecodeError as exc:
        raise PayloadDecodeError(f"decoded bytes are not {encoding}") from exc


def decode_layers(raw: str) -> str:
    """Peel the four encoding layers off *raw* and return the inner text.

    Raises:
        PayloadDecodeError: if any stage fails.
    """
    if not raw:
        raise PayloadDecodeError("empty payload")
    stage1 = _b64decode_text(raw)
    stage2 = _b64decode_text(stage1)
    stage3 = rot13(stage2)
    return _b64decode_text(stage3, "utf-8")


def parse_payload(text: str) -> DecodedPayload:
    """Interpret the decoded JSON text as one of the two payload shapes."""
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PayloadDecodeError(f"invalid payload json: {exc}") from exc
    if not isinstance(obj, dict):
        raise PayloadDecodeError("payload is not a json object")

    encoded_url = obj.get("o")
    if isinstance(encoded_url, str) and encoded_url:
        try:
            direct = _b64decode_text(encoded_url, "utf-8").strip()
        except PayloadDecodeError:
            # An undecodable "o" counts as absent.
            direct = ""
        if direct:
            return DecodedPayload(direct_url=direct)

    data = obj.get("data")
    blog_url = obj.get("blog_url")
    if isinstance(data, str) and data and isinstance(blog_url, str) and blog_url.strip():
        query_data = base64.b64encode(data.encode("utf-8")).decode("ascii")
        return DecodedPayload(
            secondary_fetch=SecondaryFetch(base_url=blog_url.strip(), query_data=query_data)
        )

    raise PayloadDecodeError("payload carries neither 'o' nor 'data'/'blog_url'")


def decode_payload(raw: str) -> DecodedPayload:
    """Decode a concatenated token string into a :class:`DecodedPayload`.

    Raises:
        PayloadDecodeError: on any decoding or parsing failure.
    """
    return parse_payload(decode_layers(raw))


def try_decode_payload(raw: str) -> DecodedPayload | None:
    """Like :func:`decode_payload`, but returns None on failure."""
    if not raw:
        return None
    try:
        return decode_payload(raw)
    except PayloadDecodeError as exc:
        log.debug("payload_decode_failed", error=str(exc))
        return None


async def fetch_payload_target(
    http: httpx.AsyncClient,
    payload: DecodedPayload,
    headers: Mapping[str, str] | None = None,
) -> str | None:
    """Turn a decoded payload into the follow-on URL.

    Shape (a) needs no I/O.  Shape (b) performs the secondary fetch and
    returns its tag-stripped body.  Returns None if nothing usable comes
    back; HTTP errors propagate to the caller.
    """
    if payload.direct_url:
        return payload.direct_url
    if payload.secondary_fetch is None:
        return None

    fetch_url = payload.secondary_fetch.url
    log.debug("payload_secondary_fetch", url=fetch_url[:80])
    resp = await http.get(fetch_url, headers=dict(headers or {}))
    resp.raise_for_status()
    target = strip_tags(resp.text)
    return target or None
