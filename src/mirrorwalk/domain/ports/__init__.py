from .cache import CachePort
from .host_extractor import HostExtractorPort
from .stream_cache import StreamCachePort

__all__ = [
    "CachePort",
    "HostExtractorPort",
    "StreamCachePort",
]
