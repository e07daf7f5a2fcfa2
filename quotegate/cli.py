"""quotegate CLI — scrape a paginated quote listing.

Usage:
    quotegate run                                   # pages 1-19 of quotes.toscrape.com
    quotegate run --start 1 --end 5 --capacity 4
    quotegate run --base-url http://localhost:8080/ --format json
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

import click
from typing_extensions import assert_never

from quotegate.common.exceptions import ConfigurationError
from quotegate.config import (
    DEFAULT_BASE_URL,
    DEFAULT_FIRST_PAGE,
    DEFAULT_LAST_PAGE,
    DEFAULT_POOL_CAPACITY,
    DEFAULT_USER_AGENT,
    PipelineConfig,
)
from quotegate.data_types import PageFailure, Record, RunSummary
from quotegate.driver.async_driver import AsyncPageDriver

OutputFormat = Literal["repr", "json"]


def format_record(record: Record, output_format: OutputFormat) -> str:
    match output_format:
        case "repr":
            return repr(record)
        case "json":
            return record.model_dump_json()
        case _:
            assert_never(output_format)


@click.group()
@click.version_option(package_name="quotegate")
def cli() -> None:
    """quotegate — bounded-concurrency quote scraper."""


@cli.command()
@click.option(
    "--base-url",
    default=DEFAULT_BASE_URL,
    show_default=True,
    help="Site root; pages are fetched from <base-url>/page/<n>/.",
)
@click.option(
    "--start",
    "first_page",
    type=int,
    default=DEFAULT_FIRST_PAGE,
    show_default=True,
    help="First page index (inclusive).",
)
@click.option(
    "--end",
    "last_page",
    type=int,
    default=DEFAULT_LAST_PAGE,
    show_default=True,
    help="Last page index (inclusive).",
)
@click.option(
    "--capacity",
    "pool_capacity",
    type=int,
    default=DEFAULT_POOL_CAPACITY,
    show_default=True,
    help="Maximum number of pages fetched at once.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Per-page fetch timeout in seconds (default: none).",
)
@click.option(
    "--user-agent",
    default=DEFAULT_USER_AGENT,
    help="User-Agent header sent with every request.",
)
@click.option(
    "--partial",
    "partial_pages",
    is_flag=True,
    help="Keep the good quotes of a page that has malformed ones.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["repr", "json"]),
    default="repr",
    show_default=True,
    help="Record output format.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def run(
    base_url: str,
    first_page: int,
    last_page: int,
    pool_capacity: int,
    timeout: float | None,
    user_agent: str,
    partial_pages: bool,
    output_format: OutputFormat,
    verbose: bool,
) -> None:
    """Fetch every page in the range and print its quotes as they arrive.

    Failed pages are reported on stderr; they never stop the run.

    \b
    Examples:
        quotegate run
        quotegate run --end 3 --capacity 2 --format json
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = PipelineConfig(
            base_url=base_url,
            first_page=first_page,
            last_page=last_page,
            pool_capacity=pool_capacity,
            user_agent=user_agent,
            timeout=timeout,
            partial_pages=partial_pages,
        )
    except ConfigurationError as e:
        raise click.BadParameter(str(e)) from e

    async def print_record(record: Record) -> None:
        click.echo(format_record(record, output_format))

    async def print_failure(failure: PageFailure) -> None:
        label = "DROPPED" if failure.partial else "FAILED"
        click.echo(f"{label} {failure.describe()}", err=True)

    async def _go() -> RunSummary:
        driver = AsyncPageDriver(
            config,
            on_record=print_record,
            on_page_error=print_failure,
        )
        return await driver.run()

    summary = asyncio.run(_go())
    click.echo(
        f"Done. {summary.records} records from "
        f"{summary.pages_succeeded}/{summary.pages_requested} pages "
        f"({summary.pages_failed} failed, {summary.pages_partial} partial).",
        err=True,
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
