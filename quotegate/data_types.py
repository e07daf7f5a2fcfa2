"""Core data types shared by the fetcher, extractor and driver.

- Record: one extracted quote (text, author, tags).
- Response: the fetched page handed from the request manager to the extractor.
- PageFailure: a failed page task (or, in partial mode, a failed container).
- RunSummary: what a finished run did.
- DriverState: lifecycle of AsyncPageDriver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    """One quote extracted from a listing page.

    Records are immutable. Within a single page they keep the document order
    of their containers; across pages no order is implied.

    Example::

        Record(text="“A day without sunshine...”", author="Steve Martin",
               tags=("humor", "obvious"))
    """

    model_config = ConfigDict(frozen=True)

    text: str
    author: str
    tags: tuple[str, ...] = ()


@dataclass
class Response:
    """HTTP response for a listing page.

    Modeled after httpx.Response, trimmed to what extraction needs.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers.
        text: Decoded response body.
        url: URL that was requested.
        page_index: The page this response belongs to.
    """

    status_code: int
    headers: dict[str, str]
    text: str
    url: str
    page_index: int


@dataclass(frozen=True)
class PageFailure:
    """A page, or one of its containers, that could not be delivered.

    Attributes:
        page_index: The page whose task failed.
        url: The page URL.
        error: The exception that ended the task, or the one that dropped
            a single container.
        partial: True when only a container was dropped and the rest of
            the page was still delivered.
    """

    page_index: int
    url: str
    error: Exception
    partial: bool = False

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    def describe(self) -> str:
        first_line = str(self.error).splitlines()[0] if str(self.error) else ""
        return f"page {self.page_index} ({self.url}): {self.kind}: {first_line}"


@dataclass
class RunSummary:
    """Outcome of a complete driver run.

    Attributes:
        pages_requested: Number of page tasks spawned.
        records: Number of records delivered to the consumer.
        failures: Every failure reported during the run.
        peak_concurrency: Highest number of pool slots held at once.
    """

    pages_requested: int = 0
    records: int = 0
    failures: list[PageFailure] = field(default_factory=list)
    peak_concurrency: int = 0

    @property
    def pages_failed(self) -> int:
        """Pages that delivered no records because of a failure."""
        return len(self._failed_pages())

    @property
    def pages_partial(self) -> int:
        """Pages that delivered records but dropped some containers."""
        failed = self._failed_pages()
        return len(
            {f.page_index for f in self.failures if f.page_index not in failed}
        )

    @property
    def pages_succeeded(self) -> int:
        return self.pages_requested - self.pages_failed

    @property
    def ok(self) -> bool:
        return not self.failures

    def _failed_pages(self) -> set[int]:
        return {f.page_index for f in self.failures if not f.partial}


class DriverState(Enum):
    """Lifecycle of a pipeline run."""

    PENDING = "pending"
    SPAWNING = "spawning"
    DRAINING = "draining"
    DONE = "done"
