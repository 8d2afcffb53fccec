"""Parsing utilities for sizes and quality tokens."""

from __future__ import annotations

import re

from mirrorwalk.domain.entities.streams import StreamQuality

_SIZE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([KMGT]?B)\b", re.IGNORECASE)

# "1080p", "2160P" or the literal "4k"; a leading digit would make it a
# longer number, so reject those.
_QUALITY_RE = re.compile(r"(?<!\d)(\d{3,4})p|\b(4k)\b", re.IGNORECASE)

_MULTIPLIERS: dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}

_UNITS: tuple[str, ...] = ("Bytes", "KB", "MB", "GB", "TB")


def parse_size_to_bytes(size_str: str | None) -> int:
    """Parse size string to bytes (1024-based).

    Supports formats:
        - "1234" (raw bytes)
        - "4.5 GB"
        - "500MB"
        - "Size: 1.2 TB"

    Args:
        size_str: Size string.

    Returns:
        Size in bytes (int), 0 when the string has no recognisable size.
    """
    if not size_str:
        return 0

    size_str = size_str.strip()
    if size_str.isdigit():
        return int(size_str)

    match = _SIZE_RE.search(size_str)
    if not match:
        return 0

    value = float(match.group(1))
    unit = match.group(2).upper()
    return int(value * _MULTIPLIERS[unit])


def parse_quality(text: str | None) -> StreamQuality:
    """Return the tier of the first quality token found in *text*."""
    if not text:
        return StreamQuality.UNKNOWN
    match = _QUALITY_RE.search(text)
    if not match:
        return StreamQuality.UNKNOWN
    return StreamQuality.from_token(match.group(1) or match.group(2))


def format_bytes(size_bytes: int) -> str:
    """Human-readable size, e.g. ``1610612736`` -> ``"1.5 GB"``."""
    if not size_bytes or size_bytes <= 0:
        return "Unknown"
    value = float(size_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(_UNITS) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[exponent]}"
