"""Layered configuration loading.

Layers, lowest precedence first: built-in defaults, YAML file, process
environment (optionally seeded from a ``.env`` file), CLI overrides.
Each layer may be written in the sectioned shape (``resolver.max_hops``)
or with the flat names used by env vars (``max_hops``); both are folded
into the sectioned shape before merging.
"""

from __future__ import annotations

from collections.abc import Iterator
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS: frozenset[str] = frozenset(
    {"site", "http", "resolver", "ranking", "logging", "cache"}
)
_TOP_LEVEL: tuple[str, ...] = ("app_name", "environment")

# flat name -> (section, key)
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "site_main_url": ("site", "main_url"),
    "site_domains_url": ("site", "domains_url"),
    "site_refresh_interval_seconds": ("site", "refresh_interval_seconds"),
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_max_retries": ("http", "max_retries"),
    "max_hops": ("resolver", "max_hops"),
    "max_concurrent_links": ("resolver", "max_concurrent_links"),
    "min_quality": ("ranking", "min_quality"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "cache_backend": ("cache", "backend"),
    "cache_dir": ("cache", "dir"),
    "cache_remote_url": ("cache", "remote_url"),
    "cache_ttl_seconds": ("cache", "ttl_seconds"),
}


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Merge *layer* into *target* in place; nested mappings merge key by key."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(data: Mapping[str, Any]) -> dict[str, Any]:
    """Fold one layer into the sectioned shape, dropping unknown keys."""
    out: dict[str, Any] = {
        name: dict(block)
        for name, block in data.items()
        if name in _SECTIONS and isinstance(block, Mapping)
    }
    out.update({key: data[key] for key in _TOP_LEVEL if key in data})
    for flat, (section, key) in _FLAT_KEYS.items():
        if flat in data:
            out.setdefault(section, {})[key] = data[flat]
    return out


def _require_file(path: Path) -> Path:
    if not path.exists():
        raise FileNotFoundError(path)
    return path


def _read_yaml(path: Path) -> dict[str, Any]:
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def _layers(
    config_path: Path | None, cli_overrides: Mapping[str, Any]
) -> Iterator[dict[str, Any]]:
    yield deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        yield _read_yaml(_require_file(config_path))
    yield EnvOverrides().to_update_dict()
    yield dict(cli_overrides)


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the validated :class:`AppConfig`.

    Precedence: defaults < YAML file < env vars < CLI overrides.  A
    ``.env`` file only fills variables the environment does not already
    set.  Never creates files or directories.

    Raises:
        FileNotFoundError: *config_path* or *dotenv_path* does not exist.
        ValueError: the YAML document is not a mapping.
        pydantic.ValidationError: the merged values are invalid.
    """
    if dotenv_path is not None:
        load_dotenv(_require_file(dotenv_path), override=False)

    merged: dict[str, Any] = {}
    for layer in _layers(config_path, cli_overrides or {}):
        _merge_into(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
