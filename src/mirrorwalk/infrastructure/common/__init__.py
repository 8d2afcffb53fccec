"""Common infrastructure utilities."""

from __future__ import annotations

from .candidate_links import dedupe_links, scan_candidate_links
from .parsers import format_bytes, parse_quality, parse_size_to_bytes

__all__ = [
    "dedupe_links",
    "format_bytes",
    "parse_quality",
    "parse_size_to_bytes",
    "scan_candidate_links",
]
