"""Record extraction from listing-page markup.

QuoteExtractor reads every quote container on a page and turns it into a
Record. Any object with the same ``extract``/``extract_partial`` methods (see
RecordExtractor) can be handed to the driver instead.

Expected markup, one container per quote::

    <div class="quote">
        <span class="text">“...”</span>
        <small class="author">Albert Einstein</small>
        <div class="tags">
            <a class="tag">change</a> <a class="tag">thinking</a>
        </div>
    </div>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from quotegate.common.checked_html import CheckedHtmlElement
from quotegate.common.exceptions import HTMLStructuralAssumptionException
from quotegate.data_types import Record


@dataclass
class ExtractionOutcome:
    """Per-container result of extracting one page.

    Attributes:
        records: Records from well-formed containers, in document order.
        errors: One structural error per malformed container.
    """

    records: list[Record] = field(default_factory=list)
    errors: list[HTMLStructuralAssumptionException] = field(
        default_factory=list
    )


class RecordExtractor(Protocol):
    def extract(self, markup: str, url: str = "") -> list[Record]: ...

    def extract_partial(
        self, markup: str, url: str = ""
    ) -> ExtractionOutcome: ...


@dataclass(frozen=True)
class QuoteSelectors:
    """CSS selectors locating a record and its three fields."""

    container: str = ".quote"
    text: str = ".text"
    author: str = ".author"
    tag: str = ".tag"


class QuoteExtractor:
    """Extracts Records from quote listing pages.

    Extraction is a pure function of the markup: the same markup always
    produces the same records in the same order.

    Field values are the elements' text content, so inline markup inside a
    quote (``<b>``, ``<br>``, links) is flattened to its text and entities
    come back decoded.
    """

    def __init__(self, selectors: QuoteSelectors | None = None) -> None:
        self.selectors = selectors or QuoteSelectors()

    def extract(self, markup: str, url: str = "") -> list[Record]:
        """Extract every record on the page.

        Args:
            markup: Raw HTML of the page.
            url: Page URL, used in error messages.

        Returns:
            Records in container order. Empty if the page has no containers.

        Raises:
            HTMLStructuralAssumptionException: If any container lacks a text or
                author element.
        """
        return [
            self._read_container(container)
            for container in self._containers(markup, url)
        ]

    def extract_partial(self, markup: str, url: str = "") -> ExtractionOutcome:
        """Extract what can be extracted, collecting per-container errors."""
        outcome = ExtractionOutcome()
        for container in self._containers(markup, url):
            try:
                outcome.records.append(self._read_container(container))
            except HTMLStructuralAssumptionException as e:
                outcome.errors.append(e)
        return outcome

    def _containers(self, markup: str, url: str) -> list[CheckedHtmlElement]:
        tree = CheckedHtmlElement.from_markup(markup, url)
        return tree.checked_css(
            self.selectors.container, "quote containers", min_count=0
        )

    def _read_container(self, container: CheckedHtmlElement) -> Record:
        # Extra text or author elements are ignored; the first one wins
        text = container.checked_css(self.selectors.text, "quote text")[0]
        author = container.checked_css(self.selectors.author, "quote author")[0]
        tags = container.checked_css(self.selectors.tag, "quote tags", min_count=0)
        return Record(
            text=text.text(),
            author=author.text(),
            tags=tuple(tag.text() for tag in tags),
        )
