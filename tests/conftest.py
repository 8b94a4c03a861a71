"""Shared fixtures for the scraper tests."""

import logging

import pytest

from book_fields import FieldExtractor
from bookscraper import GoodreadsScraper


@pytest.fixture
def extractor() -> FieldExtractor:
    return FieldExtractor()


@pytest.fixture
def scraper() -> GoodreadsScraper:
    """A scraper that never touches the network unless a transport is set."""
    return GoodreadsScraper(show_progress=False)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
