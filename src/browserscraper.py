from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from basescraper import BaseScraper, FetchError, PageError


class BrowserScraper(BaseScraper):
    """
    Fetches pages through a headless Chromium instead of httpx.

    Useful when the plain HTTP response differs from what a browser
    gets. Every fetch opens its own tab; the semaphore bounds how many
    tabs are open at once.
    """

    def __init__(self, headless=True, settle_ms=500, **kwargs):
        super().__init__(**kwargs)
        self.headless = headless
        self.settle_ms = settle_ms
        self._playwright = None
        self.browser = None

    # ---------- Context Manager ----------
    async def __aenter__(self):
        self._playwright = await async_playwright().start()
        try:
            self.browser = await self._playwright.chromium.launch(headless=self.headless)
        except BaseException:
            await self._playwright.stop()
            self._playwright = None
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.browser.close()
        await self._playwright.stop()
        self.browser = None
        self._playwright = None

    # ---------- Network ----------
    async def fetch(self, url: str) -> str:
        async with self.semaphore:
            page = await self.browser.new_page()
            try:
                try:
                    response = await page.goto(url, timeout=self.timeout * 1000)
                except PlaywrightTimeoutError as e:
                    # navigation started; only this page is lost
                    raise PageError(f"timed out loading {url}: {e}") from e
                except PlaywrightError as e:
                    raise FetchError(f"error while loading {url}: {e}") from e

                if response is not None and response.status >= 400:
                    raise PageError(f"{url} answered with HTTP {response.status}")

                await page.wait_for_timeout(self.settle_ms)
                return await page.content()
            finally:
                # Close tab
                await page.close()
