"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "mirrorwalk",
    "environment": "dev",
    "site": {
        "main_url": "https://hdhub4u.frl",
        "domain_key": "HDHUB4u",
        "refresh_interval_seconds": 3600.0,
    },
    "http": {
        "timeout_seconds": 15.0,
        "max_retries": 2,
        "backoff_base": 1.0,
    },
    "resolver": {
        "max_hops": 10,
        "max_concurrent_links": 16,
        "link_list_max_depth": 2,
    },
    "ranking": {
        "min_quality": "1080p",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "backend": "none",
        "dir": "./.cache/mirrorwalk",
        "ttl_seconds": 3600,
        "read_timeout_seconds": 2.0,
    },
}
