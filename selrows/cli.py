"""selrows CLI: run extraction passes over HTML snapshots or a live page.

Usage:
    selrows extract page.html -s ".item .title" -s "price=.item .price"
    selrows extract scroll-1.html scroll-2.html --options options.json
    selrows live https://example.com/feed -s ".post h2" --passes 5
    selrows schema                          # Print the options JSON Schema

Selectors are given as ``[LABEL=]SELECTOR[@PROPERTY]``, e.g.
``link=.item a@href``. Every file or pass goes through the same extractor,
so rows printed once are not printed again.
"""

from __future__ import annotations

import csv
import json
import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any

import click
from pydantic import ValidationError

from selrows.common.exceptions import DocumentParseException
from selrows.data_types import (
    ContentRow,
    ExtractorOptions,
    Resource,
    SelectorPair,
)
from selrows.extractor import HtmlContentExtractor

logger = logging.getLogger(__name__)

_SELECTOR_SPEC = re.compile(
    r"""
    ^(?:(?P<label>[^=\[\]"']+?)\s*=\s*(?=\S))?
    (?P<selector>.+?)
    (?:@(?P<property>[A-Za-z_][\w-]*))?$
    """,
    re.VERBOSE,
)


def parse_selector_spec(spec: str) -> SelectorPair:
    """Parse a ``[LABEL=]SELECTOR[@PROPERTY]`` command line argument.

    A label can't contain brackets or quotes, so ``=`` inside an attribute
    selector such as ``input[name=q]`` is not mistaken for one.

    Args:
        spec: The argument.

    Returns:
        The SelectorPair it describes.

    Raises:
        click.BadParameter: If no selector can be read from it.

    Examples:
        >>> parse_selector_spec("link=.item a@href").key
        'link'
    """
    match = _SELECTOR_SPEC.match(spec.strip())
    if match is None or not match["selector"].strip():
        raise click.BadParameter(
            f"Invalid selector '{spec}'. "
            "Expected format: '[LABEL=]SELECTOR[@PROPERTY]'"
        )

    data: dict[str, Any] = {"content_selector": match["selector"]}
    if match["label"]:
        data["label"] = match["label"].strip()
    if match["property"]:
        data["content_property"] = match["property"]
    return SelectorPair(**data)


def load_options(
    options_path: str | None,
    selector_specs: Sequence[str],
    dom_read: bool | None = None,
) -> ExtractorOptions:
    """Build extractor options from an options file and/or ``-s`` flags.

    Selectors given on the command line replace the file's selector pairs.

    Raises:
        click.BadParameter: If the file is not valid JSON.
        click.ClickException: If the resulting options are invalid.
    """
    data: dict[str, Any] = {}
    if options_path is not None:
        try:
            data = json.loads(Path(options_path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise click.BadParameter(
                f"Invalid JSON in {options_path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise click.BadParameter(
                f"{options_path} must contain a JSON object"
            )

    if selector_specs:
        data.pop("selectorPairs", None)
        data["selector_pairs"] = [
            parse_selector_spec(spec) for spec in selector_specs
        ]
    if dom_read is not None:
        data.pop("domRead", None)
        data["dom_read"] = dom_read

    try:
        return ExtractorOptions.model_validate(data)
    except ValidationError as e:
        raise click.ClickException(f"Invalid extractor options:\n{e}") from e


def _unique_keys(keys: Sequence[str]) -> list[str]:
    seen: dict[str, int] = {}
    unique = []
    for key in keys:
        seen[key] = seen.get(key, 0) + 1
        unique.append(key if seen[key] == 1 else f"{key}#{seen[key]}")
    return unique


class RowWriter:
    """Writes rows to a stream as CSV or JSON lines."""

    def __init__(
        self,
        stream: IO[str],
        keys: Sequence[str],
        output_format: str = "csv",
        header: bool = True,
    ) -> None:
        self.stream = stream
        self.keys = _unique_keys(keys)
        self.output_format = output_format
        self.rows_written = 0
        self._csv = csv.writer(stream) if output_format == "csv" else None
        if self._csv is not None and header:
            self._csv.writerow(self.keys)

    def write(self, rows: Sequence[ContentRow]) -> None:
        for row in rows:
            if self._csv is not None:
                self._csv.writerow(row)
            else:
                self.stream.write(
                    json.dumps(dict(zip(self.keys, row)), ensure_ascii=False)
                    + "\n"
                )
            self.rows_written += 1
        self.stream.flush()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


selector_option = click.option(
    "-s",
    "--selector",
    "selector_specs",
    multiple=True,
    help="Selector pair as [LABEL=]SELECTOR[@PROPERTY]. Repeatable.",
)
options_option = click.option(
    "--options",
    "options_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with extractor options (selectorPairs, domRead).",
)
format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["csv", "jsonl"]),
    default="csv",
    show_default=True,
    help="Output format.",
)
header_option = click.option(
    "--no-header", is_flag=True, help="Omit the CSV header row."
)
verbose_option = click.option(
    "-v", "--verbose", is_flag=True, help="Verbose logging."
)


@click.group()
@click.version_option(package_name="selrows")
def cli() -> None:
    """selrows — extract rows of content from HTML with CSS selectors."""


@cli.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
@selector_option
@options_option
@click.option(
    "--content-type",
    default="text/html",
    show_default=True,
    help="Declared content type of the files.",
)
@click.option(
    "--url",
    default=None,
    help="URL the files were saved from, for resolving relative links.",
)
@format_option
@header_option
@verbose_option
def extract(
    files: tuple[str, ...],
    selector_specs: tuple[str, ...],
    options_path: str | None,
    content_type: str,
    url: str | None,
    output_format: str,
    no_header: bool,
    verbose: bool,
) -> None:
    """Extract rows from one or more saved HTML files.

    FILES are treated as successive snapshots of the same page: rows
    already printed for an earlier file are not printed again.

    \b
    Examples:
        selrows extract page.html -s ".item .title" -s ".item .price"
        selrows extract p1.html p2.html -s "link=.item a@href" --format jsonl
    """
    _configure_logging(verbose)
    options = load_options(options_path, selector_specs, dom_read=False)
    extractor = HtmlContentExtractor(options)
    writer = RowWriter(
        click.get_text_stream("stdout"),
        extractor.content_keys(),
        output_format,
        header=not no_header,
    )

    for file_name in files:
        path = Path(file_name)
        resource = Resource(
            url=url or path.resolve().as_uri(),
            content_type=content_type,
            data=path.read_bytes(),
        )
        try:
            result = extractor.apply(resource)
        except DocumentParseException as e:
            raise click.ClickException(f"{file_name}: {e.message}") from e

        if not result.applicable:
            click.echo(
                f"Skipping {file_name}: content type '{content_type}' "
                "is not HTML",
                err=True,
            )
            continue
        writer.write(result.rows)

    logger.debug(f"Wrote {writer.rows_written} rows")


@cli.command()
@click.argument("url")
@selector_option
@options_option
@click.option(
    "--passes",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of extraction passes.",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0),
    default=2.0,
    show_default=True,
    help="Seconds to wait between passes.",
)
@click.option(
    "--scroll/--no-scroll",
    default=True,
    show_default=True,
    help="Scroll to the bottom of the page between passes.",
)
@click.option(
    "--dom-read/--no-dom-read",
    default=None,
    help="Query the live DOM, or a serialized snapshot of it each pass.",
)
@click.option(
    "--headed", is_flag=True, help="Show the browser window."
)
@format_option
@header_option
@verbose_option
def live(
    url: str,
    selector_specs: tuple[str, ...],
    options_path: str | None,
    passes: int,
    interval: float,
    scroll: bool,
    dom_read: bool | None,
    headed: bool,
    output_format: str,
    no_header: bool,
    verbose: bool,
) -> None:
    """Extract rows from a live page, polling it several times.

    Useful for infinite-scroll feeds: each pass prints only the rows that
    appeared since the previous one.

    \b
    Examples:
        selrows live https://example.com/feed -s ".post h2" --passes 5
    """
    try:
        from playwright.sync_api import sync_playwright

        from selrows.driver.playwright_document_tree import (
            PlaywrightDocumentTree,
        )
    except ImportError as e:
        raise click.ClickException(
            f"Missing dependency: {e}. "
            "Install the 'playwright' extra: pip install selrows[playwright]"
        ) from e

    _configure_logging(verbose)
    options = load_options(options_path, selector_specs, dom_read)
    extractor = HtmlContentExtractor(options)
    writer = RowWriter(
        click.get_text_stream("stdout"),
        extractor.content_keys(),
        output_format,
        header=not no_header,
    )

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=not headed)
        try:
            page = browser.new_page()
            response = page.goto(url, wait_until="domcontentloaded")
            content_type = (
                response.headers.get("content-type", "text/html")
                if response is not None
                else "text/html"
            )
            if not extractor.is_applicable(Resource(url, content_type)):
                raise click.ClickException(
                    f"{url} is not HTML (content type '{content_type}')"
                )

            for pass_number in range(1, passes + 1):
                with PlaywrightDocumentTree(page) as live_tree:
                    tree = (
                        live_tree if options.dom_read else live_tree.snapshot()
                    )
                    result = extractor.run(extractor.request_for(tree))
                logger.info(f"Pass {pass_number}: {len(result.rows)} new rows")
                writer.write(result.rows)

                if pass_number < passes:
                    if scroll:
                        page.evaluate(
                            "window.scrollTo(0, document.body.scrollHeight)"
                        )
                    page.wait_for_timeout(interval * 1000)
        finally:
            browser.close()


@cli.command()
def schema() -> None:
    """Print the JSON Schema of the extractor options."""
    click.echo(json.dumps(ExtractorOptions.json_schema(), indent=2))


def main() -> None:
    """Entry point for the ``selrows`` console script."""
    cli()
