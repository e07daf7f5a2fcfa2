"""Test utilities for pipeline tests."""

from collections.abc import Awaitable, Callable
from typing import Any

from quotegate.data_types import PageFailure


def collect_results_async() -> tuple[
    Callable[[Any], Awaitable[None]], list[Any]
]:
    """Create an async callback that collects results in a list.

    Returns:
        A tuple of (async_callback_function, results_list).
        The callback appends data to the results list.
        The results list is shared and can be inspected after driver.run().

    Example:
        callback, results = collect_results_async()
        driver = AsyncPageDriver(config, on_record=callback)
        await driver.run()
        assert len(results) > 0
    """
    results: list[Any] = []

    async def callback(data: Any) -> None:
        results.append(data)

    return callback, results


def collect_failures_async() -> tuple[
    Callable[[PageFailure], Awaitable[None]], list[PageFailure]
]:
    """Like collect_results_async, typed for the on_page_error callback."""
    return collect_results_async()

