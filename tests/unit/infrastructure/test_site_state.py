"""Tests for SiteState and DomainRefresher."""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from mirrorwalk.infrastructure.config.schema import SiteConfig
from mirrorwalk.infrastructure.site_state import DomainRefresher, SiteState

_DOMAINS_URL = "https://domains.example.org/domains.json"


def _config(**overrides: object) -> SiteConfig:
    values: dict[str, object] = {
        "main_url": "https://hdhub4u.old",
        "domains_url": _DOMAINS_URL,
        "refresh_interval_seconds": 3600.0,
    }
    values.update(overrides)
    return SiteConfig(**values)


class TestSiteState:
    def test_headers_follow_main_url(self) -> None:
        state = SiteState(_config())

        assert state.main_url == "https://hdhub4u.old"
        assert state.headers["Referer"] == "https://hdhub4u.old/"
        assert state.headers["Origin"] == "https://hdhub4u.old"
        assert "User-Agent" in state.headers

    def test_headers_are_copies(self) -> None:
        state = SiteState(_config())
        state.headers["Referer"] = "mutated"
        assert state.headers["Referer"] == "https://hdhub4u.old/"

    def test_request_headers_referer_override(self) -> None:
        state = SiteState(_config())
        headers = state.request_headers("https://hubcloud.dad/x")
        assert headers["Referer"] == "https://hubcloud.dad/x"
        assert headers["Origin"] == "https://hdhub4u.old"

    def test_update_main_url(self) -> None:
        state = SiteState(_config())
        before = state.snapshot

        assert state.update_main_url("https://hdhub4u.new/") is True
        assert state.main_url == "https://hdhub4u.new"
        assert state.headers["Referer"] == "https://hdhub4u.new/"
        assert before.main_url == "https://hdhub4u.old"

    def test_update_same_url(self) -> None:
        state = SiteState(_config())
        assert state.update_main_url("https://hdhub4u.old/") is False


class TestDomainRefresher:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_refresh_updates_state(self) -> None:
        route = respx.get(_DOMAINS_URL).respond(200, json={"HDHUB4u": "https://hdhub4u.new"})
        state = SiteState(_config())

        async with httpx.AsyncClient() as client:
            refresher = DomainRefresher(state, client, _config())
            task = refresher.trigger()
            assert task is not None
            await task

        assert route.call_count == 1
        assert state.main_url == "https://hdhub4u.new"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_rate_limited(self) -> None:
        route = respx.get(_DOMAINS_URL).respond(200, json={"HDHUB4u": "https://hdhub4u.new"})
        state = SiteState(_config())

        async with httpx.AsyncClient() as client:
            refresher = DomainRefresher(state, client, _config())
            task = refresher.trigger()
            assert task is not None
            await task
            assert refresher.trigger() is None

        assert route.call_count == 1

    @respx.mock
    @pytest.mark.asyncio()
    async def test_single_flight(self) -> None:
        route = respx.get(_DOMAINS_URL).respond(200, json={"HDHUB4u": "https://hdhub4u.new"})
        state = SiteState(_config())

        async with httpx.AsyncClient() as client:
            refresher = DomainRefresher(state, client, _config())
            first = refresher.trigger()
            assert refresher.in_flight
            assert refresher.trigger() is None
            assert first is not None
            await first

        assert route.call_count == 1

    @respx.mock
    @pytest.mark.asyncio()
    async def test_failure_keeps_state_and_retries(self) -> None:
        route = respx.get(_DOMAINS_URL)
        route.side_effect = [
            httpx.Response(500),
            httpx.Response(200, json={"HDHUB4u": "https://hdhub4u.new"}),
        ]
        state = SiteState(_config())

        async with httpx.AsyncClient() as client:
            refresher = DomainRefresher(state, client, _config())
            first = refresher.trigger()
            assert first is not None
            await first
            assert state.main_url == "https://hdhub4u.old"

            second = refresher.trigger()
            assert second is not None
            await second

        assert state.main_url == "https://hdhub4u.new"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_key_keeps_state(self) -> None:
        respx.get(_DOMAINS_URL).respond(200, json={"OTHER": "https://other.example"})
        state = SiteState(_config())

        async with httpx.AsyncClient() as client:
            refresher = DomainRefresher(state, client, _config())
            task = refresher.trigger()
            assert task is not None
            await task

        assert state.main_url == "https://hdhub4u.old"

    @pytest.mark.asyncio()
    async def test_aclose_cancels_in_flight(self) -> None:
        started = asyncio.Event()

        async def _slow(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, json={})

        state = SiteState(_config())
        transport = httpx.MockTransport(_slow)
        async with httpx.AsyncClient(transport=transport) as client:
            refresher = DomainRefresher(state, client, _config())
            refresher.trigger()
            await started.wait()

            await refresher.aclose()

            assert not refresher.in_flight
