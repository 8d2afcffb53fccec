"""Domain entities for mirror link resolution.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StreamQuality(str, Enum):
    """Coarse resolution tiers used for ranking and filtering."""

    UHD_2160P = "2160p"
    FHD_1080P = "1080p"
    HD_720P = "720p"
    SD_480P = "480p"
    UNKNOWN = "Unknown"

    @property
    def resolution(self) -> int:
        """Vertical resolution of the tier (0 for UNKNOWN)."""
        return _RESOLUTIONS[self]

    @classmethod
    def from_token(cls, token: str | None) -> StreamQuality:
        """Map a ``<digits>p`` / ``4k`` token onto its tier.

        ``"4k"`` and anything >= 2160 lines is UHD, >= 1080 is FHD,
        >= 720 is HD, every other height falls into the SD tier.
        Empty or unparseable tokens map to UNKNOWN.
        """
        if not token:
            return cls.UNKNOWN
        value = token.strip().lower()
        if value in ("4k", "uhd"):
            return cls.UHD_2160P
        if value == "unknown":
            return cls.UNKNOWN
        digits = value[:-1] if value.endswith("p") else value
        if not digits.isdigit():
            return cls.UNKNOWN
        height = int(digits)
        if height >= 2160:
            return cls.UHD_2160P
        if height >= 1080:
            return cls.FHD_1080P
        if height >= 720:
            return cls.HD_720P
        return cls.SD_480P


_RESOLUTIONS: dict[StreamQuality, int] = {
    StreamQuality.UHD_2160P: 2160,
    StreamQuality.FHD_1080P: 1080,
    StreamQuality.HD_720P: 720,
    StreamQuality.SD_480P: 480,
    StreamQuality.UNKNOWN: 0,
}


class LinkCategory(str, Enum):
    """Outcome of URL classification."""

    DIRECT = "direct"
    REDIRECT = "redirect"
    HOST_SPECIFIC = "host_specific"
    UNCLASSIFIED = "unclassified"


class HostKind(str, Enum):
    """Known mirror hosting services, each with its own extraction rules."""

    PIXELDRAIN = "pixeldrain"  # simple file host
    HUBDRIVE = "hubdrive"  # cascading drive host
    HUBCLOUD = "hubcloud"  # CDN host
    HUBSTREAM = "hubstream"  # streaming host
    ENCODED = "encoded"  # encoded-link wrapper pages (gdtot, techyboy)
    LINK_LIST = "link_list"  # link aggregation pages (hblinks)


@dataclass(frozen=True)
class LinkClass:
    """Tagged classification result: a category plus the host kind, if any."""

    category: LinkCategory
    host_kind: HostKind | None = None

    @property
    def is_direct(self) -> bool:
        return self.category is LinkCategory.DIRECT

    @property
    def is_redirect(self) -> bool:
        return self.category is LinkCategory.REDIRECT


@dataclass(frozen=True)
class CandidateLink:
    """A raw link scraped from an upstream page."""

    url: str
    display_text: str = ""


@dataclass(frozen=True)
class SecondaryFetch:
    """Recipe for a follow-on fetch: ``<base_url>?re=<query_data>``."""

    base_url: str
    query_data: str

    @property
    def url(self) -> str:
        return f"{self.base_url}?re={self.query_data}"


@dataclass(frozen=True)
class DecodedPayload:
    """Result of decoding an obfuscated page payload.

    Exactly one of ``direct_url`` / ``secondary_fetch`` is set.
    """

    direct_url: str | None = None
    secondary_fetch: SecondaryFetch | None = None


@dataclass(frozen=True)
class ResolvedStream:
    """A direct-download stream produced by a host extractor."""

    source: str  # e.g. "Pixeldrain", "HubCloud [FSL Server]"
    quality: StreamQuality
    url: str
    size_bytes: int = 0
    filename: str | None = None

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")

    @property
    def identity(self) -> tuple[str, str]:
        """Streams are the same stream when source and URL match."""
        return (self.source, self.url)
