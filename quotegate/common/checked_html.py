"""Checked HTML element wrapper for safe CSS querying.

This module provides CheckedHtmlElement, a wrapper around lxml.html.HtmlElement
that validates selector results against expected counts. The extractor relies
on it so that a quote container missing its text or author surfaces as an
HTMLStructuralAssumptionException instead of an IndexError.
"""

from __future__ import annotations

from lxml import html
from lxml.etree import ParserError
from lxml.html import HtmlElement

from quotegate.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    checked_css() validates the number of results against expected
    min/max counts and raises HTMLStructuralAssumptionException with
    the selector, the counts and the page URL when they don't match.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @classmethod
    def from_markup(
        cls, markup: str, request_url: str = ""
    ) -> CheckedHtmlElement:
        """Parse a full document and wrap its root element.

        Empty or whitespace-only markup yields an empty ``<html>`` root rather
        than an lxml ParserError, so that a blank page simply has no matches.

        Args:
            markup: Raw HTML text.
            request_url: Optional URL for error context.

        Returns:
            CheckedHtmlElement wrapping the document root.
        """
        try:
            root = html.document_fromstring(markup)
        except ParserError:
            root = html.Element("html")
        return cls(root, request_url)

    @property
    def request_url(self) -> str:
        return self._request_url

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements, in document order. Each
            element is wrapped to support nested checked queries.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.

        Example::

            tree = CheckedHtmlElement.from_markup(markup)
            for quote in tree.checked_css(".quote", "quotes", min_count=0):
                text = quote.checked_css(".text", "quote text", 1, 1)
        """
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            # Invalid CSS (cssselect's SelectorSyntaxError and friends)
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                request_url=self._request_url,
            ) from e

        self._check_count(
            selector, "css", description, min_count, max_count, len(results)
        )
        return [
            CheckedHtmlElement(result, self._request_url) for result in results
        ]

    def text(self) -> str:
        """Return the element's text content with surrounding whitespace removed."""
        return self._element.text_content().strip()

    def _check_count(
        self,
        selector: str,
        selector_type: str,
        description: str,
        min_count: int,
        max_count: int | None,
        actual_count: int,
    ) -> None:
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type=selector_type,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )
