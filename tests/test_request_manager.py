"""Tests for AsyncRequestManager.

Uses the aiohttp mock site for real HTTP behavior and httpx.MockTransport
where the server would have to misbehave in ways aiohttp can't easily fake.
"""

import httpx
import pytest

from quotegate.common.exceptions import (
    FetchError,
    HTMLResponseAssumptionException,
    RequestTimeoutException,
    RequestTransportException,
)
from quotegate.common.request_manager import AsyncRequestManager
from quotegate.config import DEFAULT_USER_AGENT, PipelineConfig
from tests.mock_server import PageBehavior


class TestFetchPage:
    """Tests against the live mock site."""

    @pytest.mark.asyncio
    async def test_fetches_page_markup(self, server_url: str) -> None:
        """fetch_page shall return the page body and its URL."""
        config = PipelineConfig(base_url=server_url)

        async with AsyncRequestManager(config) as manager:
            response = await manager.fetch_page(2)

        assert response.status_code == 200
        assert response.page_index == 2
        assert response.url == f"{server_url}page/2/"
        assert 'class="quote"' in response.text

    @pytest.mark.asyncio
    async def test_sends_user_agent(
        self, server_url: str, page_behavior: PageBehavior
    ) -> None:
        """Every request shall carry the configured User-Agent header."""
        config = PipelineConfig(base_url=server_url)

        async with AsyncRequestManager(config) as manager:
            await manager.fetch_page(1)
            await manager.fetch_page(2)

        assert page_behavior.user_agents == [DEFAULT_USER_AGENT] * 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 500, 503])
    async def test_error_status_raises(
        self, server_url: str, page_behavior: PageBehavior, status: int
    ) -> None:
        """A 4xx/5xx status shall raise HTMLResponseAssumptionException."""
        page_behavior.status_overrides[3] = status
        config = PipelineConfig(base_url=server_url)

        async with AsyncRequestManager(config) as manager:
            with pytest.raises(HTMLResponseAssumptionException) as exc_info:
                await manager.fetch_page(3)

        assert exc_info.value.status_code == status
        assert exc_info.value.url == f"{server_url}page/3/"
        assert isinstance(exc_info.value, FetchError)

    @pytest.mark.asyncio
    async def test_timeout_raises(
        self, server_url: str, page_behavior: PageBehavior
    ) -> None:
        """A page slower than the timeout shall raise RequestTimeoutException."""
        page_behavior.slow_pages.add(1)
        page_behavior.slow_delay = 1.0
        config = PipelineConfig(base_url=server_url, timeout=0.1)

        async with AsyncRequestManager(config) as manager:
            with pytest.raises(RequestTimeoutException) as exc_info:
                await manager.fetch_page(1)

        assert exc_info.value.timeout_seconds == 0.1

    @pytest.mark.asyncio
    async def test_connection_refused_raises_transport_error(
        self, unused_url: str
    ) -> None:
        """A refused connection shall raise RequestTransportException."""
        config = PipelineConfig(base_url=unused_url, timeout=2.0)

        async with AsyncRequestManager(config) as manager:
            with pytest.raises(RequestTransportException):
                await manager.fetch_page(1)


class TestFetchPageWithMockTransport:
    """Tests using httpx.MockTransport."""

    @pytest.mark.asyncio
    async def test_builds_page_urls_from_base(self) -> None:
        """Requests shall go to <base>/page/<n>/ even without a trailing slash on base."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text="<html></html>")

        config = PipelineConfig(base_url="https://example.test")
        async with AsyncRequestManager(
            config, transport=httpx.MockTransport(handler)
        ) as manager:
            await manager.fetch_page(7)

        assert seen == ["https://example.test/page/7/"]

    @pytest.mark.asyncio
    async def test_custom_user_agent(self) -> None:
        """A configured User-Agent shall replace the default."""
        agents: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            agents.append(request.headers["User-Agent"])
            return httpx.Response(200, text="")

        config = PipelineConfig(
            base_url="https://example.test/", user_agent="quotegate-tests/1.0"
        )
        async with AsyncRequestManager(
            config, transport=httpx.MockTransport(handler)
        ) as manager:
            await manager.fetch_page(1)

        assert agents == ["quotegate-tests/1.0"]

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self) -> None:
        """httpx transport errors shall surface as RequestTransportException."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("peer closed connection", request=request)

        config = PipelineConfig(base_url="https://example.test/")
        async with AsyncRequestManager(
            config, transport=httpx.MockTransport(handler)
        ) as manager:
            with pytest.raises(RequestTransportException) as exc_info:
                await manager.fetch_page(1)

        assert "peer closed connection" in exc_info.value.reason
        assert isinstance(exc_info.value.__cause__, httpx.RemoteProtocolError)
