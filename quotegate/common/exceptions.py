"""Exception types for pipeline errors.

Two families matter to the driver:

- ``FetchError`` and its subclasses, raised by the request manager when a page
  could not be retrieved.
- ``ScraperAssumptionException`` and its subclasses, raised by the extractor
  when a page's markup does not look the way the selectors expect.

Either family is fatal to the task that raised it and to nothing else.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    Extraction assumes the listing markup has a particular structure. When that
    assumption is violated the extractor raises a subclass of this exception
    carrying enough context to diagnose which page and which selector broke.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the page that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when HTML structure doesn't match expectations.

    This is the extraction error: a CSS or XPath selector returned a different
    number of elements than expected, for example a quote container without
    its text or author element.

    Attributes:
        selector: The XPath or CSS selector that was used.
        selector_type: Type of selector, e.g. "css".
        description: What the selector was meant to find.
        expected_min: Minimum number of matches expected.
        expected_max: Maximum number of matches expected (None = unlimited).
        actual_count: Number of matches found.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"elements for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "selector_type": selector_type,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


# =============================================================================
# Fetch errors
# =============================================================================


class FetchError(Exception):
    """Base class for failures to retrieve a listing page.

    Covers transport failures, timeouts and unexpected status codes. Fetch
    errors are never retried; the page's task reports the failure and ends.

    Attributes:
        url: The URL that could not be fetched.
        message: Human-readable error message.
    """

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        self.message = message
        super().__init__(message)


class HTMLResponseAssumptionException(FetchError):
    """Raised when the server answers with a non-success status code.

    Attributes:
        status_code: The actual HTTP status code received.
        expected_codes: List of status codes that were expected.
    """

    def __init__(
        self,
        status_code: int,
        expected_codes: list[int],
        url: str,
    ) -> None:
        self.status_code = status_code
        self.expected_codes = expected_codes

        expected_str = ", ".join(str(code) for code in expected_codes)
        super().__init__(
            url,
            f"HTTP {status_code} from {url} (expected one of: {expected_str})",
        )


class RequestTimeoutException(FetchError):
    """Raised when a request takes longer than the configured timeout.

    Attributes:
        timeout_seconds: The timeout duration in seconds.
    """

    def __init__(self, url: str, timeout_seconds: float | None) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            url, f"Request to {url} timed out after {timeout_seconds}s"
        )


class RequestTransportException(FetchError):
    """Raised when the request fails below the HTTP layer.

    Connection refused, DNS failure, protocol errors and the like.

    Attributes:
        reason: String form of the underlying httpx error.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.reason = reason
        super().__init__(url, f"Request to {url} failed: {reason}")


# =============================================================================
# Pipeline plumbing
# =============================================================================


class ChannelClosedError(Exception):
    """Raised when sending on a channel handle that can no longer deliver.

    Either the sending handle itself was closed, or the receiving side was
    closed and nothing will ever read the item.
    """


class ConfigurationError(ValueError):
    """Raised when a PipelineConfig is built with invalid values."""
