"""HTML builders and a recording httpx transport for the scraper tests."""

import httpx
from selectolax.lexbor import LexborHTMLParser

DEFAULT_DETAILS = "4.23 avg rating — 1,234 ratings — published 1998 — 57 editions"


def book_row(
    title: str | None = "The Name of the Wind",
    authors: tuple[str, ...] = ("Patrick Rothfuss",),
    details: str | None = DEFAULT_DETAILS,
) -> str:
    """Build one search-result row the way the results table renders it."""
    parts = ['<tr itemscope itemtype="http://schema.org/Book">', "<td>"]
    if title is not None:
        parts.append(f'<a class="bookTitle" href="/book/show/1"><span itemprop="name">{title}</span></a>')
    for author in authors:
        parts.append(
            '<span class="authorName__container">'
            f'<a class="authorName" href="/author/show/1"><span itemprop="name">{author}</span></a>'
            "</span>"
        )
    if details is not None:
        parts.append(f'<span class="uitext greyText smallText">{details}</span>')
    parts.append("</td></tr>")
    return "".join(parts)


def search_page(*rows: str) -> str:
    """Wrap rows in a results table. Rows outside a table are dropped by the parser."""
    return f"<html><body><table class=\"tableList\">{''.join(rows)}</table></body></html>"


def parse_rows(html: str) -> list:
    return LexborHTMLParser(html).css("tr")


class RecordingTransport(httpx.MockTransport):
    """MockTransport that serves a page per `page` parameter and records URLs."""

    def __init__(self, pages: dict[int, str], statuses: dict[int, int] | None = None, errors=None):
        self.pages = pages
        self.statuses = statuses or {}
        self.errors = errors or {}
        self.requested: list[str] = []
        super().__init__(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requested.append(str(request.url))
        page = int(request.url.params["page"])

        if page in self.errors:
            raise self.errors[page](f"page {page} failed", request=request)

        return httpx.Response(
            self.statuses.get(page, 200),
            text=self.pages.get(page, search_page()),
        )
