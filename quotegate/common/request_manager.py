"""Request manager for fetching listing pages.

AsyncRequestManager encapsulates the HTTP client and page resolution:

- Maintaining the httpx.AsyncClient (default User-Agent header, timeout)
- Turning a page index into the page URL
- Converting httpx failures into FetchError subclasses
- Converting HTTP responses to Response objects

The driver owns scheduling; it never touches httpx directly.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from quotegate.common.exceptions import (
    HTMLResponseAssumptionException,
    RequestTimeoutException,
    RequestTransportException,
)
from quotegate.config import PipelineConfig
from quotegate.data_types import Response

logger = logging.getLogger(__name__)


class AsyncRequestManager:
    """Manages HTTP requests for the page pipeline.

    One manager (and so one connection pool) serves every page task of a run.

    Example::

        async with AsyncRequestManager(config) as manager:
            response = await manager.fetch_page(3)
            print(response.text)
    """

    def __init__(
        self,
        config: PipelineConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            config: Run configuration supplying base URL, User-Agent and timeout.
            transport: Optional httpx transport, e.g. httpx.MockTransport in
                tests. None uses the default network transport.
        """
        self.config = config
        self.timeout = config.timeout
        self._client = httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            timeout=config.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncRequestManager:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def page_url(self, page_index: int) -> str:
        return self.config.page_url(page_index)

    async def fetch_page(self, page_index: int) -> Response:
        """Fetch one listing page.

        Args:
            page_index: 1-based page number.

        Returns:
            Response containing the decoded page body.

        Raises:
            RequestTimeoutException: If the request exceeds the configured timeout.
            RequestTransportException: On any other transport-level failure.
            HTMLResponseAssumptionException: If the server answers with a 4xx
                or 5xx status code.
        """
        url = self.page_url(page_index)
        logger.debug("Fetching page %d from %s", page_index, url)

        try:
            http_response = await self._client.get(url)
        except httpx.TimeoutException:
            raise RequestTimeoutException(
                url=url, timeout_seconds=self.timeout
            )
        except httpx.HTTPError as e:
            raise RequestTransportException(url=url, reason=repr(e)) from e

        if http_response.is_error:
            raise HTMLResponseAssumptionException(
                status_code=http_response.status_code,
                expected_codes=[200],
                url=url,
            )

        return Response(
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            text=http_response.text,
            url=url,
            page_index=page_index,
        )
