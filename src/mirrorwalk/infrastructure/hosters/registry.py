"""Registry that dispatches mirror URLs to the host extractors.

The host set is closed: :func:`classify` tags every URL and the registry
switches on that tag.  Leaf host kinds (pixeldrain, hubdrive, hubcloud,
hubstream) go to their registered extractor.  Two kinds route instead of
extracting:

* encoded wrappers decode to a target that is dispatched again when it
  belongs to another host kind;
* link-list pages fan out over every mirror they list.

Both recurse through :meth:`HostExtractorRegistry.resolve` with a depth
counter bounded by ``max_depth``.  URLs of no known host are walked and
emitted with source ``Direct``, ``Redirect`` or ``Generic``.
"""

from __future__ import annotations

import asyncio

import structlog

from mirrorwalk.domain.entities.streams import (
    HostKind,
    LinkCategory,
    LinkClass,
    ResolvedStream,
)
from mirrorwalk.domain.ports.host_extractor import HostExtractorPort
from mirrorwalk.infrastructure.common.parsers import parse_quality
from mirrorwalk.infrastructure.hosters.classifier import classify, is_redirect_url
from mirrorwalk.infrastructure.hosters.encoded import EncodedLinkExtractor
from mirrorwalk.infrastructure.hosters.hblinks import LinkListCollector
from mirrorwalk.infrastructure.hosters.walker import RedirectChainWalker

log = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 2

_ROUTING_KINDS = frozenset({HostKind.ENCODED, HostKind.LINK_LIST})


class HostExtractorRegistry:
    """Dispatches a URL to the extractor for its host kind."""

    def __init__(
        self,
        extractors: list[HostExtractorPort] | None = None,
        *,
        walker: RedirectChainWalker,
        encoded: EncodedLinkExtractor,
        link_list: LinkListCollector,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._extractors: dict[HostKind, HostExtractorPort] = {}
        self._walker = walker
        self._encoded = encoded
        self._link_list = link_list
        self._max_depth = max_depth
        for extractor in extractors or []:
            self.register(extractor)

    def register(self, extractor: HostExtractorPort) -> None:
        """Register the extractor for ``extractor.kind``, replacing any other."""
        if extractor.kind in _ROUTING_KINDS:
            raise ValueError(f"{extractor.kind.value} is handled by the registry itself")
        self._extractors[extractor.kind] = extractor
        log.debug("host_extractor_registered", kind=extractor.kind.value)

    @property
    def supported_kinds(self) -> list[HostKind]:
        return [*self._extractors, *_ROUTING_KINDS]

    async def resolve(
        self, url: str, referer: str = "", depth: int = 0
    ) -> list[ResolvedStream]:
        """Resolve *url* into direct-download streams.

        Raises nothing for expected failures (network, decode, markup);
        those yield an empty list.
        """
        link_class = classify(url)
        log.debug(
            "registry_dispatch",
            url=url[:80],
            category=link_class.category.value,
            kind=link_class.host_kind.value if link_class.host_kind else None,
            depth=depth,
        )

        if link_class.category is LinkCategory.HOST_SPECIFIC:
            return await self._resolve_host(link_class, url, referer, depth)
        if link_class.is_direct:
            return [self._stream("Direct", url)]
        return await self._resolve_generic(link_class, url)

    async def _resolve_host(
        self, link_class: LinkClass, url: str, referer: str, depth: int
    ) -> list[ResolvedStream]:
        kind = link_class.host_kind
        if kind is HostKind.ENCODED:
            return await self._resolve_encoded(url, referer, depth)
        if kind is HostKind.LINK_LIST:
            return await self._resolve_link_list(url, referer, depth)

        extractor = self._extractors.get(kind)
        if extractor is None:
            log.warning("host_extractor_missing", kind=kind.value if kind else None)
            return []
        return await extractor.extract(url, referer)

    async def _resolve_encoded(
        self, url: str, referer: str, depth: int
    ) -> list[ResolvedStream]:
        target = await self._encoded.resolve_target(url, referer)
        if target is None:
            return []

        target_class = classify(target)
        if target_class.category is LinkCategory.HOST_SPECIFIC:
            if depth >= self._max_depth:
                log.info("registry_depth_exceeded", url=target[:80], depth=depth)
                return []
            return await self.resolve(target, referer=url, depth=depth + 1)
        return [self._stream("Redirect", target)]

    async def _resolve_link_list(
        self, url: str, referer: str, depth: int
    ) -> list[ResolvedStream]:
        if depth >= self._max_depth:
            log.info("registry_depth_exceeded", url=url[:80], depth=depth)
            return []

        links = await self._link_list.collect(url, referer)
        if not links:
            return []

        batches = await asyncio.gather(
            *(self.resolve(link, referer=url, depth=depth + 1) for link in links),
            return_exceptions=True,
        )
        results: list[ResolvedStream] = []
        for link, batch in zip(links, batches):
            if isinstance(batch, BaseException):
                if not isinstance(batch, Exception):
                    raise batch
                log.warning("link_list_entry_failed", url=link[:80], error=str(batch))
                continue
            results.extend(batch)
        return results

    async def _resolve_generic(
        self, link_class: LinkClass, url: str
    ) -> list[ResolvedStream]:
        source = "Redirect" if link_class.is_redirect else "Generic"
        resolved = await self._walker.resolve_redirect_chain(url)
        if is_redirect_url(resolved):
            log.info("registry_unresolved_redirect", url=url[:80])
            return []
        return [self._stream(source, resolved)]

    @staticmethod
    def _stream(source: str, url: str) -> ResolvedStream:
        return ResolvedStream(source=source, quality=parse_quality(url), url=url)
