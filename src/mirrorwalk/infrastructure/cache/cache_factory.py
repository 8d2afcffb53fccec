"""Cache factory: builds the adapter selected by the configuration."""

from __future__ import annotations

import structlog

from mirrorwalk.domain.ports.cache import CachePort
from mirrorwalk.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from mirrorwalk.infrastructure.cache.remote_adapter import RemoteCacheAdapter
from mirrorwalk.infrastructure.config.schema import CacheConfig

log = structlog.get_logger(__name__)


def create_cache(config: CacheConfig) -> CachePort | None:
    """Create the cache adapter for ``config.backend``.

    Returns None for the ``"none"`` backend (caching disabled).

    Raises:
        ValueError: If the backend is unknown.
    """
    backend = config.backend
    if backend == "none":
        return None
    if backend == "diskcache":
        log.info(
            "cache_factory_create",
            backend=backend,
            directory=str(config.directory),
            ttl=config.ttl_seconds,
        )
        return DiskcacheAdapter(
            directory=config.directory,
            ttl_seconds=config.ttl_seconds,
            max_concurrent=config.max_concurrent,
        )
    if backend == "remote":
        log.info(
            "cache_factory_create",
            backend=backend,
            url=config.remote_url,
            ttl=config.ttl_seconds,
        )
        return RemoteCacheAdapter(
            base_url=config.remote_url,
            ttl_seconds=config.ttl_seconds,
            max_concurrent=config.max_concurrent,
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'none', 'diskcache' or 'remote'."
    )
