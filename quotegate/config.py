"""Run configuration for the page pipeline.

PipelineConfig is built once (by the CLI or by the caller) and passed to the
driver. Nothing here is read from process-global state.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

from quotegate.common.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://quotes.toscrape.com/"
DEFAULT_FIRST_PAGE = 1
DEFAULT_LAST_PAGE = 19
DEFAULT_POOL_CAPACITY = 16
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:84.0) Gecko/20100101 Firefox/84.0"
)


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for one pipeline run.

    Attributes:
        base_url: Site root. A trailing slash is added if missing so that
            page paths join beneath it.
        first_page: First page index to fetch (inclusive, >= 1).
        last_page: Last page index to fetch (inclusive). ``first_page - 1``
            gives an empty range.
        pool_capacity: Maximum number of pages fetched and parsed at once.
        user_agent: Value of the User-Agent header sent with every request.
        timeout: Per-fetch timeout in seconds. None means no timeout.
        partial_pages: When True, a malformed container drops only itself
            and the rest of its page is still delivered.
    """

    base_url: str = DEFAULT_BASE_URL
    first_page: int = DEFAULT_FIRST_PAGE
    last_page: int = DEFAULT_LAST_PAGE
    pool_capacity: int = DEFAULT_POOL_CAPACITY
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float | None = None
    partial_pages: bool = False

    def __post_init__(self) -> None:
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(
                f"base_url must be an absolute http(s) URL, got {self.base_url!r}"
            )
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        if self.first_page < 1:
            raise ConfigurationError(
                f"first_page must be >= 1, got {self.first_page}"
            )
        if self.last_page < self.first_page - 1:
            raise ConfigurationError(
                f"last_page ({self.last_page}) is before first_page "
                f"({self.first_page})"
            )
        if self.pool_capacity < 1:
            raise ConfigurationError(
                f"pool_capacity must be >= 1, got {self.pool_capacity}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(
                f"timeout must be positive, got {self.timeout}"
            )

    def page_indices(self) -> Iterator[int]:
        """Yield every page index in the configured inclusive range."""
        yield from range(self.first_page, self.last_page + 1)

    @property
    def page_count(self) -> int:
        return self.last_page - self.first_page + 1

    def page_url(self, page_index: int) -> str:
        """Return the absolute URL of a listing page.

        Example::

            >>> PipelineConfig(base_url="https://example.test").page_url(3)
            'https://example.test/page/3/'
        """
        return urljoin(self.base_url, f"page/{page_index}/")
