"""
Pattern matching over the grey "details" line of a search result, e.g.

    4.26 avg rating — 1,234,567 ratings — published 1997 — 312 editions

Each field has its own pattern; they are independent of each other.
"""

import re
from typing import NamedTuple


class ExtractionError(ValueError):
    field = "field"

    def __init__(self, text: str, reason: str = "no match"):
        self.text = text
        self.reason = reason
        super().__init__(f"can't parse {self.field}: {reason}")


class MalformedRating(ExtractionError):
    field = "average rating"


class MalformedRatingCount(ExtractionError):
    field = "number of ratings"


class MalformedYear(ExtractionError):
    field = "publish date"


class MalformedEditionCount(ExtractionError):
    field = "editions"


class BookFields(NamedTuple):
    average_rating: float
    rating_count: int
    published: int
    editions: int


class FieldExtractor:
    # ---------- Patterns ----------
    AVERAGE_RATING = r"([\d.]+) avg rating"
    RATING_COUNT = r"([\d,]+) rating"
    # some years are separated from "published" by a newline
    PUBLISHED = r"published\s*(\d+)"
    EDITIONS = r"(\d+) edition"

    def __init__(self):
        self.average_rating_re = re.compile(self.AVERAGE_RATING)
        self.rating_count_re = re.compile(self.RATING_COUNT)
        self.published_re = re.compile(self.PUBLISHED)
        self.editions_re = re.compile(self.EDITIONS)

    # ---------- Fields ----------
    def average_rating(self, text: str) -> float:
        match = self.average_rating_re.search(text)
        if not match:
            raise MalformedRating(text)

        try:
            return float(match.group(1))
        except ValueError as e:
            raise MalformedRating(text, str(e)) from e

    def rating_count(self, text: str) -> int:
        match = self.rating_count_re.search(text)
        if not match:
            raise MalformedRatingCount(text)

        try:
            return int(match.group(1).replace(",", ""))
        except ValueError as e:
            raise MalformedRatingCount(text, str(e)) from e

    def published(self, text: str) -> int:
        match = self.published_re.search(text)
        if not match:
            return 0

        try:
            return int(match.group(1))
        except ValueError as e:
            raise MalformedYear(text, str(e)) from e

    def editions(self, text: str) -> int:
        match = self.editions_re.search(text)
        if not match:
            raise MalformedEditionCount(text)

        try:
            return int(match.group(1))
        except ValueError as e:
            raise MalformedEditionCount(text, str(e)) from e

    def extract(self, text: str) -> BookFields:
        return BookFields(
            average_rating=self.average_rating(text),
            rating_count=self.rating_count(text),
            published=self.published(text),
            editions=self.editions(text),
        )
