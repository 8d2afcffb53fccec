"""Shared test fixtures for the mirrorwalk test suite."""

from __future__ import annotations

import base64
import codecs
import json
from collections.abc import Callable
from typing import Any

import pytest

from mirrorwalk.domain.entities.streams import ResolvedStream, StreamQuality
from mirrorwalk.infrastructure.config.schema import SiteConfig
from mirrorwalk.infrastructure.site_state import SiteState

# ---------------------------------------------------------------------------
# Encoded payload helpers
# ---------------------------------------------------------------------------


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def encode_layers(text: str) -> str:
    """Reference encoder: base64, ROT13, base64, base64 (inner to outer)."""
    return _b64(_b64(codecs.encode(_b64(text), "rot13")))


@pytest.fixture()
def layer_encoder() -> Callable[[str], str]:
    return encode_layers


@pytest.fixture()
def payload_script() -> Callable[[dict[str, Any]], str]:
    """Build page markup carrying *obj* as split ``s('o', ...)`` tokens."""

    def _build(obj: dict[str, Any]) -> str:
        blob = encode_layers(json.dumps(obj))
        half = len(blob) // 2
        return (
            "<html><head><script>"
            f"s('o','{blob[:half]}');"
            f"ck('_wp_http_1','{blob[half:]}');"
            "</script></head><body><p>Please wait...</p></body></html>"
        )

    return _build


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def site() -> SiteState:
    """Site state with default headers and base URL."""
    return SiteState(SiteConfig(main_url="https://hdhub4u.example"))


@pytest.fixture()
def make_stream() -> Callable[..., ResolvedStream]:
    def _make(
        quality: str = "1080p",
        size_bytes: int = 0,
        url: str = "https://cdn.example.net/file.mkv",
        source: str = "Test",
    ) -> ResolvedStream:
        return ResolvedStream(
            source=source,
            quality=StreamQuality.from_token(quality),
            url=url,
            size_bytes=size_bytes,
        )

    return _make
