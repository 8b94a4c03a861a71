import asyncio
import json
import logging
import threading
from pathlib import Path
from urllib.parse import quote_plus

import httpx
from selectolax.lexbor import LexborHTMLParser
from tqdm.asyncio import tqdm

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class ScrapeError(Exception):
    pass


class FetchError(ScrapeError):
    """A page request could not be issued. Aborts the whole run."""


class PageError(ScrapeError):
    """A page failed after its request went out. Only that page is lost."""


class OutputError(ScrapeError):
    pass


class ResultCollector:
    """
    Records shared by every row handler of a run, plus the row counters.

    Row handlers run on worker threads, so every mutation goes
    through the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._items = []
        self.rows_seen = 0
        self.skipped = 0

    def add(self, item):
        with self._lock:
            self._items.append(item)

    def row_seen(self):
        with self._lock:
            self.rows_seen += 1

    def row_skipped(self):
        with self._lock:
            self.skipped += 1

    def items(self) -> list:
        with self._lock:
            return list(self._items)

    def __len__(self):
        with self._lock:
            return len(self._items)


class BaseScraper:
    BASE_URL = ""
    ROW_SELECTOR = ""

    def __init__(self, timeout=30, max_concurrency=5, show_progress=True, transport=None):
        self.timeout = timeout
        self.show_progress = show_progress
        self.transport = transport
        self.client = None
        self.semaphore = asyncio.Semaphore(max_concurrency)

    # ----------------------------
    # METHODS CHILD CLASSES OVERRIDE
    # ----------------------------

    def handle_row(self, row, results: ResultCollector):
        raise NotImplementedError

    # ---------- Context Manager ----------
    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.client.aclose()
        self.client = None

    # ---------- URLs ----------
    def page_url(self, page: int, query: str) -> str:
        return self.BASE_URL.format(page=page, query=quote_plus(query))

    def page_urls(self, config) -> list[str]:
        # pages are 1-based and include page_count
        urls = [self.page_url(page, config.query) for page in range(1, config.page_count + 1)]

        for url in urls:
            try:
                parsed = httpx.URL(url)
            except httpx.InvalidURL as e:
                raise FetchError(f"error while building the request for {url}: {e}") from e
            if parsed.scheme not in ("http", "https"):
                raise FetchError(f"unsupported URL scheme for {url!r}")

        return urls

    # ---------- Network ----------
    async def fetch(self, url: str) -> str:
        async with self.semaphore:
            try:
                response = await self.client.get(url)
            except httpx.ConnectTimeout as e:
                raise FetchError(f"error while doing the request to {url}: {e!r}") from e
            except (
                httpx.TimeoutException,
                httpx.ReadError,
                httpx.WriteError,
                httpx.RemoteProtocolError,
            ) as e:
                # the request went out; only this page is lost
                raise PageError(f"{url} failed after the request was sent: {e!r}") from e
            except httpx.RequestError as e:
                raise FetchError(f"error while doing the request to {url}: {e!r}") from e

        if response.is_error:
            raise PageError(f"{url} answered with HTTP {response.status_code}")

        return response.text

    # ---------- Parsing ----------
    def parse(self, html: str) -> LexborHTMLParser:
        return LexborHTMLParser(html)

    def process_page(self, html: str, results: ResultCollector) -> int:
        tree = self.parse(html)
        rows = tree.css(self.ROW_SELECTOR)

        for row in rows:
            results.row_seen()
            self.handle_row(row, results)

        return len(rows)

    # ---------- Pagination ----------
    async def scrape_page(self, url: str, results: ResultCollector):
        logger.info("Going to parse: %s", url)

        try:
            html = await self.fetch(url)
        except PageError as e:
            logger.error("Skipping page: %s", e)
            return

        # row handlers run off the event loop, several pages at a time
        row_count = await asyncio.to_thread(self.process_page, html, results)
        logger.debug("Found %d rows on %s", row_count, url)

    async def scrape_all(self, config) -> ResultCollector:
        urls = self.page_urls(config)
        results = ResultCollector()

        tasks = [asyncio.create_task(self.scrape_page(url, results)) for url in urls]

        with tqdm(total=len(tasks), desc="Scraping", disable=not self.show_progress) as pbar:
            try:
                for next_done in asyncio.as_completed(tasks):
                    await next_done
                    pbar.update(1)
            except BaseException:
                # one fatal page stops the whole run
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        return results

    # ---------- Export ----------
    def to_json(self, records) -> str:
        return json.dumps(
            [record.to_dict() for record in records],
            indent=2,
            ensure_ascii=False,
        )

    def save_json(self, records, filename="results.json") -> Path:
        path = Path(filename)
        partial = path.with_name(path.name + ".part")

        try:
            payload = self.to_json(records)
        except (TypeError, ValueError) as e:
            raise OutputError(f"error while generating json: {e}") from e

        # the previous file stays in place until the new one is complete
        try:
            partial.write_text(payload + "\n", encoding="utf-8")
            partial.replace(path)
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise OutputError(f"error while writing to {path}: {e}") from e

        logger.info("You can find the results at %s", path)
        return path

    def dump_json(self, records, stream):
        try:
            payload = self.to_json(records)
        except (TypeError, ValueError) as e:
            raise OutputError(f"error while generating json: {e}") from e

        stream.write(payload + "\n")
