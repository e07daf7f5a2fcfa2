"""Shared fixtures: a real aiohttp quote site running in a background thread."""

import asyncio
import socket
import threading
from collections.abc import Generator
from contextlib import closing

import pytest
from aiohttp import web

from quotegate.config import PipelineConfig
from tests.mock_server import (
    PAGE_COUNT,
    PageBehavior,
    create_app,
)


def find_free_port() -> int:
    """Find a free port on localhost.

    Returns:
        An available port number.
    """
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def url(self) -> str:
        """Get the base URL of the server, with a trailing slash."""
        return f"http://{self.host}:{self.port}/"

    def start(self) -> None:
        """Start the server in a background thread and wait until it listens."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        if not self._started.wait(timeout=5.0):
            raise RuntimeError("mock quote server did not start")

    def _run_server(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._started.set()
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            runner = self._runner
            future = asyncio.run_coroutine_threadsafe(
                runner.cleanup(), self._loop
            )
            try:
                future.result(timeout=2.0)
            except Exception:
                pass  # Best effort cleanup

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def page_behavior() -> PageBehavior:
    """Behavior knobs shared with the running server.

    Tests may change these after the server has started; every request reads
    them afresh.
    """
    return PageBehavior()


@pytest.fixture
def quote_server(
    page_behavior: PageBehavior,
) -> Generator[AioHttpTestServer, None, None]:
    """Start the mock quote site on a random port.

    Yields:
        AioHttpTestServer instance serving /page/<n>/.
    """
    app = create_app(page_behavior)
    server = AioHttpTestServer(app, find_free_port())
    server.start()
    yield server
    server.stop()


@pytest.fixture
def server_url(quote_server: AioHttpTestServer) -> str:
    """Base URL of the mock quote site, e.g. ``http://127.0.0.1:8080/``."""
    return quote_server.url


@pytest.fixture
def server_config(server_url: str) -> PipelineConfig:
    """Config covering every populated page of the mock site."""
    return PipelineConfig(
        base_url=server_url,
        first_page=1,
        last_page=PAGE_COUNT,
        pool_capacity=4,
        timeout=5.0,
    )


@pytest.fixture
def unused_url() -> str:
    """A base URL nothing is listening on."""
    return f"http://127.0.0.1:{find_free_port()}/"
