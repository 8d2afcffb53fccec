"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackend = Literal["none", "diskcache", "remote"]

DEFAULT_AD_DOMAINS: tuple[str, ...] = (
    "bonuscaf.com",
    "urbanheadline.com",
    "propellerads",
    "adsterra",
    "popads",
    "popcash",
    "blogspot.com",
)


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class SiteConfig(BaseModel):
    """Upstream site base URL and the default request headers."""

    main_url: str = Field(
        default="https://hdhub4u.frl",
        description="Initial base URL of the upstream site.",
    )
    domains_url: str = Field(
        default=(
            "https://raw.githubusercontent.com/phisher98/TVVVV/"
            "refs/heads/main/domains.json"
        ),
        description="JSON document mapping site keys to their current base URL.",
    )
    domain_key: str = Field(
        default="HDHUB4u",
        description="Key of this site in the domains document.",
    )
    refresh_interval_seconds: float = Field(
        default=3600.0,
        description="Minimum seconds between two base URL refreshes.",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/121.0.0.0 Safari/537.36"
        ),
    )
    accept: str = Field(
        default=(
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,*/*;q=0.8"
        ),
    )
    accept_language: str = Field(default="en-US,en;q=0.9")

    @field_validator("main_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class HttpConfig(BaseModel):
    """Outgoing HTTP behaviour."""

    timeout_seconds: float = Field(
        default=15.0,
        description="Per-request timeout in seconds.",
    )
    max_retries: int = Field(
        default=2,
        description="Retries after a failed attempt (transport error or 429/5xx).",
    )
    backoff_base: float = Field(
        default=1.0,
        description="Linear back-off step: attempt N waits backoff_base * N seconds.",
    )

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v

    @field_validator("max_retries")
    @classmethod
    def _validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v


class ResolverConfig(BaseModel):
    """Redirect walking and extraction fan-out."""

    max_hops: int = Field(
        default=10,
        description="Maximum hops per redirect chain.",
    )
    ad_domains: tuple[str, ...] = Field(
        default=DEFAULT_AD_DOMAINS,
        description="Domain substrings never followed by script redirects.",
    )
    max_concurrent_links: int = Field(
        default=16,
        description="Max candidate links resolved in parallel.",
    )
    link_list_max_depth: int = Field(
        default=2,
        description="Max nesting of link-list pages and encoded re-dispatch.",
    )

    @field_validator("max_hops", "max_concurrent_links")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v


class RankingConfig(BaseModel):
    """Stream ordering and caller-facing quality filter."""

    quality_weights: dict[str, int] = Field(
        default={
            "2160p": 10,
            "4k": 10,
            "1080p": 8,
        },
        description="Tier weights; tiers not listed weigh 0.",
    )
    min_quality: Literal["2160p", "1080p", "720p", "480p"] = Field(
        default="1080p",
        description="Streams below this tier (and Unknown) are dropped.",
    )


class CacheConfig(BaseModel):
    """Result cache configuration (backend-agnostic)."""

    backend: CacheBackend = Field(
        default="none",
        description="'none', 'diskcache' (SQLite) or 'remote' (HTTP cache service)",
    )
    directory: Path = Field(
        default=Path("./.cache/mirrorwalk"),
        validation_alias=AliasChoices("directory", "dir"),
        description="Diskcache SQLite DB path",
    )
    remote_url: str = Field(
        default="https://cache.leokimpese.workers.dev",
        description="Base URL of the remote cache service",
    )
    ttl_seconds: int = Field(
        default=3600,
        description="TTL for cached stream lists (seconds)",
    )
    read_timeout_seconds: float = Field(
        default=2.0,
        description="Upper bound on how long a cache read may delay a request",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ttl_seconds must be >= 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (site/http/resolver/ranking/logging/cache).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="mirrorwalk", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    site: SiteConfig = Field(default_factory=SiteConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "site": self.site.model_dump(),
            "http": self.http.model_dump(),
            "resolver": {
                **self.resolver.model_dump(),
                "ad_domains": list(self.resolver.ad_domains),
            },
            "ranking": self.ranking.model_dump(),
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                **self.cache.model_dump(exclude={"directory"}),
                "dir": str(self.cache.directory),
            },
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read MIRRORWALK_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - MIRRORWALK_SITE_MAIN_URL
    - MIRRORWALK_HTTP_TIMEOUT_SECONDS
    - MIRRORWALK_MAX_HOPS
    - MIRRORWALK_CACHE_BACKEND
    - MIRRORWALK_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="MIRRORWALK_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    site_main_url: Optional[str] = None
    site_domains_url: Optional[str] = None
    site_refresh_interval_seconds: Optional[float] = None

    http_timeout_seconds: Optional[float] = None
    http_max_retries: Optional[int] = None

    max_hops: Optional[int] = None
    max_concurrent_links: Optional[int] = None

    min_quality: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackend] = None
    cache_dir: Optional[Path] = None
    cache_remote_url: Optional[str] = None
    cache_ttl_seconds: Optional[int] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
