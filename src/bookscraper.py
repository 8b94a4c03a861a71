import asyncio
import logging
import sys
from pathlib import Path

import click
from tqdm.contrib.logging import logging_redirect_tqdm

from basescraper import BaseScraper, ResultCollector, ScrapeError
from book_fields import ExtractionError, FieldExtractor
from book_models import BookRecord, RunConfig
from browserscraper import BrowserScraper
from logging_setup import setup_logging

logger = logging.getLogger(__name__)


def child_text(node, selector: str) -> str:
    """Text of every match under node, joined and trimmed. Empty if none."""
    return "".join(child.text() for child in node.css(selector)).strip()


def extract_authors(row, selector=".authorName__container") -> list[str]:
    return [author.text().strip() for author in row.css(selector)]


class GoodreadsScraper(BaseScraper):
    BASE_URL = "https://www.goodreads.com/search?page={page}&q={query}"
    ROW_SELECTOR = "tr"
    TITLE_SELECTOR = ".bookTitle"
    AUTHOR_SELECTOR = ".authorName__container"
    DETAILS_SELECTOR = ".uitext.greyText.smallText"

    def __init__(self, field_extractor=None, **kwargs):
        super().__init__(**kwargs)
        # compiled once, only read afterwards
        self.fields = field_extractor or FieldExtractor()

    def handle_row(self, row, results: ResultCollector):
        title = child_text(row, self.TITLE_SELECTOR)
        authors = extract_authors(row, self.AUTHOR_SELECTOR)
        details = child_text(row, self.DETAILS_SELECTOR)

        try:
            fields = self.fields.extract(details)
        except ExtractionError as e:
            results.row_skipped()
            logger.warning("Skipping %r: %s", title, e)
            return None

        book = BookRecord(
            title=title,
            authors=authors,
            average_rating=fields.average_rating,
            rating_count=fields.rating_count,
            published=fields.published,
            editions=fields.editions,
        )
        results.add(book)
        logger.debug("Found book: %s", title)

        return book


class GoodreadsBrowserScraper(BrowserScraper, GoodreadsScraper):
    pass


async def crawl(scraper: BaseScraper, config: RunConfig) -> ResultCollector:
    async with scraper:
        return await scraper.scrape_all(config)


@click.command(context_settings={"auto_envvar_prefix": "GOODREADS_SCRAPE"})
@click.option("-q", "--query", help="What to search for. Asked interactively when missing.")
@click.option(
    "-p",
    "--pages",
    "page_count",
    help="How many result pages to crawl. Asked interactively when missing.",
)
@click.option(
    "-o",
    "--output",
    default="results.json",
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON file to write. Overwritten on every run.",
)
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the JSON instead of writing a file.")
@click.option("--concurrency", default=5, show_default=True, type=click.IntRange(min=1))
@click.option(
    "--timeout",
    default=30.0,
    show_default=True,
    type=click.FloatRange(min=0, min_open=True),
    help="Per-request timeout in seconds.",
)
@click.option("--browser", is_flag=True, help="Fetch pages with headless Chromium.")
@click.option("--no-progress", is_flag=True, help="Hide the progress bar.")
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path))
def main(
    query,
    page_count,
    output,
    to_stdout,
    concurrency,
    timeout,
    browser,
    no_progress,
    log_level,
    log_file,
):
    """Scrape Goodreads search results into a JSON file."""
    setup_logging(log_level.upper(), log_file)

    if query is None:
        query = click.prompt("What should we search for?", default="fantasy", err=True)
    if page_count is None:
        page_count = click.prompt("How many pages should we crawl?", default="10", err=True)

    try:
        config = RunConfig.from_input(query, page_count)
    except ValueError as e:
        logger.critical("%s", e)
        raise click.ClickException(str(e)) from e

    logger.info("Detected inputs: %s %d", config.query, config.page_count)

    scraper_class = GoodreadsBrowserScraper if browser else GoodreadsScraper
    scraper = scraper_class(
        timeout=timeout,
        max_concurrency=concurrency,
        show_progress=not no_progress,
    )

    try:
        with logging_redirect_tqdm():
            results = asyncio.run(crawl(scraper, config))

        books = results.items()
        if to_stdout:
            scraper.dump_json(books, sys.stdout)
        else:
            scraper.save_json(books, output)
    except ScrapeError as e:
        logger.critical("%s", e)
        raise click.ClickException(str(e)) from e

    logger.info(
        "Parsed book count: %d (rows seen: %d, skipped: %d)",
        len(books),
        results.rows_seen,
        results.skipped,
    )


if __name__ == "__main__":
    main()
