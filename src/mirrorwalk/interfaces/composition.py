"""Composition root: builds and tears down every resource."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import structlog

from mirrorwalk.application.use_cases.resolve_streams import ResolveStreamsUseCase
from mirrorwalk.infrastructure.cache.cache_factory import create_cache
from mirrorwalk.infrastructure.common.retry_transport import RetryTransport
from mirrorwalk.infrastructure.config import AppConfig
from mirrorwalk.infrastructure.hosters.dispatcher import ExtractionDispatcher
from mirrorwalk.infrastructure.hosters.encoded import EncodedLinkExtractor
from mirrorwalk.infrastructure.hosters.hblinks import LinkListCollector
from mirrorwalk.infrastructure.hosters.hubcloud import HubCloudExtractor
from mirrorwalk.infrastructure.hosters.hubdrive import HubDriveExtractor
from mirrorwalk.infrastructure.hosters.hubstream import HubstreamExtractor
from mirrorwalk.infrastructure.hosters.pixeldrain import PixeldrainExtractor
from mirrorwalk.infrastructure.hosters.registry import HostExtractorRegistry
from mirrorwalk.infrastructure.hosters.walker import RedirectChainWalker
from mirrorwalk.infrastructure.persistence.stream_cache import CachedStreamRepository
from mirrorwalk.infrastructure.ranking.stream_ranker import StreamRanker
from mirrorwalk.infrastructure.site_state import DomainRefresher, SiteState
from mirrorwalk.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Shared client: retrying transport, per-request timeout."""
    transport = RetryTransport(
        wrapped=httpx.AsyncHTTPTransport(),
        max_retries=config.http.max_retries,
        backoff_base=config.http.backoff_base,
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(config.http.timeout_seconds),
        headers={"User-Agent": config.site.user_agent},
    )


def build_registry(
    http_client: httpx.AsyncClient,
    site: SiteState,
    walker: RedirectChainWalker,
    config: AppConfig,
) -> HostExtractorRegistry:
    pixeldrain = PixeldrainExtractor(http_client, site)
    hubcloud = HubCloudExtractor(http_client, site, walker, pixeldrain)
    return HostExtractorRegistry(
        [
            pixeldrain,
            hubcloud,
            HubDriveExtractor(http_client, site, hubcloud),
            HubstreamExtractor(http_client, site, walker),
        ],
        walker=walker,
        encoded=EncodedLinkExtractor(http_client, site, walker),
        link_list=LinkListCollector(http_client, site),
        max_depth=config.resolver.link_list_max_depth,
    )


@asynccontextmanager
async def lifespan(config: AppConfig) -> AsyncIterator[AppState]:
    """Initialize all resources, yield them, then clean up.

    Order matters:
        1. Cache (optional)
        2. HTTP client
        3. Site state + domain refresher
        4. Walker, registry, dispatcher
        5. Use case
    """
    # ========== 1) Cache ==========
    cache = create_cache(config.cache)
    if cache is not None:
        await cache.__aenter__()
        log.info("cache_initialized", backend=config.cache.backend)

    # ========== 2) HTTP client ==========
    http_client = build_http_client(config)
    log.info(
        "http_client_initialized",
        timeout=config.http.timeout_seconds,
        max_retries=config.http.max_retries,
    )

    # ========== 3) Site state ==========
    site = SiteState(config.site)
    refresher = DomainRefresher(site, http_client, config.site)

    # ========== 4) Resolution pipeline ==========
    walker = RedirectChainWalker(
        http_client,
        site,
        max_hops=config.resolver.max_hops,
        ad_domains=config.resolver.ad_domains,
    )
    registry = build_registry(http_client, site, walker, config)
    dispatcher = ExtractionDispatcher(
        registry, max_concurrent=config.resolver.max_concurrent_links
    )
    log.info("resolver_initialized", kinds=[k.value for k in registry.supported_kinds])

    # ========== 5) Use case ==========
    use_case = ResolveStreamsUseCase(
        dispatcher,
        StreamRanker(config.ranking),
        refresher=refresher,
        stream_cache=CachedStreamRepository(cache) if cache is not None else None,
        cache_ttl_seconds=config.cache.ttl_seconds,
        cache_read_timeout=config.cache.read_timeout_seconds,
    )

    state = AppState(
        config=config,
        http_client=http_client,
        cache=cache,
        site=site,
        refresher=refresher,
        walker=walker,
        registry=registry,
        dispatcher=dispatcher,
        resolve_streams=use_case,
    )

    try:
        yield state
    finally:
        await use_case.drain()
        await refresher.aclose()
        await http_client.aclose()
        if cache is not None:
            await cache.aclose()
        log.info("shutdown_complete")
