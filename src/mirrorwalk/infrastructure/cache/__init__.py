"""Cache infrastructure: backend implementations of CachePort."""

from .cache_factory import create_cache
from .diskcache_adapter import DiskcacheAdapter
from .remote_adapter import RemoteCacheAdapter

__all__ = [
    "DiskcacheAdapter",
    "RemoteCacheAdapter",
    "create_cache",
]
