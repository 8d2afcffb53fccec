from .streams import (
    CandidateLink,
    DecodedPayload,
    HostKind,
    LinkCategory,
    LinkClass,
    ResolvedStream,
    SecondaryFetch,
    StreamQuality,
)

__all__ = [
    "CandidateLink",
    "DecodedPayload",
    "HostKind",
    "LinkCategory",
    "LinkClass",
    "ResolvedStream",
    "SecondaryFetch",
    "StreamQuality",
]
