"""Mirror host extraction: classification, payload decoding, redirect
walking, per-host extractors and concurrent dispatch."""

from mirrorwalk.infrastructure.hosters.classifier import (
    classify,
    is_direct_url,
    is_redirect_url,
)
from mirrorwalk.infrastructure.hosters.dispatcher import ExtractionDispatcher
from mirrorwalk.infrastructure.hosters.payload import (
    PayloadDecodeError,
    decode_payload,
    try_decode_payload,
)
from mirrorwalk.infrastructure.hosters.registry import HostExtractorRegistry
from mirrorwalk.infrastructure.hosters.walker import (
    ChainResult,
    ChainState,
    RedirectChainWalker,
)

__all__ = [
    "ChainResult",
    "ChainState",
    "ExtractionDispatcher",
    "HostExtractorRegistry",
    "PayloadDecodeError",
    "RedirectChainWalker",
    "classify",
    "decode_payload",
    "is_direct_url",
    "is_redirect_url",
    "try_decode_payload",
]
