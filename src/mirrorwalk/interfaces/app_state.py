"""Container for the resources wired up by the composition root."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from mirrorwalk.application.use_cases.resolve_streams import ResolveStreamsUseCase
from mirrorwalk.domain.ports.cache import CachePort
from mirrorwalk.infrastructure.config import AppConfig
from mirrorwalk.infrastructure.hosters.dispatcher import ExtractionDispatcher
from mirrorwalk.infrastructure.hosters.registry import HostExtractorRegistry
from mirrorwalk.infrastructure.hosters.walker import RedirectChainWalker
from mirrorwalk.infrastructure.site_state import DomainRefresher, SiteState


@dataclass
class AppState:
    """All live resources. Lifecycle managed by composition.py::lifespan()."""

    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    cache: CachePort | None
    site: SiteState
    refresher: DomainRefresher

    # Resolution pipeline
    walker: RedirectChainWalker
    registry: HostExtractorRegistry
    dispatcher: ExtractionDispatcher

    # Application services
    resolve_streams: ResolveStreamsUseCase
