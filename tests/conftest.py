"""Pytest configuration and shared fixtures."""

import sys
from collections.abc import Callable
from dataclasses import replace
from datetime import date

import pytest
from bs4 import BeautifulSoup

from sagre_scraper.config.settings import get_settings
from sagre_scraper.config.sources import SourceRegistry
from sagre_scraper.core.crawler import PageContext
from sagre_scraper.parsers.festival_parser import FestivalParser
from sagre_scraper.utils.deduplication import DuplicateDetector

from pages import NOW, TODAY

# Fix encoding for Windows
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_env():
    """Reset cached settings and the source registry around each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    SourceRegistry.clear()


@pytest.fixture
def detector() -> DuplicateDetector:
    """Fresh duplicate detector for one test run."""
    return DuplicateDetector()


@pytest.fixture
def make_page() -> Callable[..., PageContext]:
    """Build a PageContext from HTML; enqueued URLs land in page.enqueued."""

    def factory(html: str, url: str, label: str = "detail") -> PageContext:
        enqueued: list[tuple[str, str]] = []

        def enqueue(urls, lbl):
            urls = list(urls)
            enqueued.extend((u, lbl) for u in urls)
            return len(urls)

        page = PageContext(
            url=url,
            label=label,
            soup=BeautifulSoup(html, "html.parser"),
            request_url=url,
            enqueue=enqueue,
        )
        page.enqueued = enqueued
        return page

    return factory


@pytest.fixture
def make_parser(detector) -> Callable[..., FestivalParser]:
    """Parser for a registered source slug with a fixed clock.

    Keyword overrides replace fields of the registered configuration.
    """

    def factory(slug: str, today: date = TODAY, **overrides) -> FestivalParser:
        config = SourceRegistry.require(slug)
        if overrides:
            config = replace(config, **overrides)
        return FestivalParser(config, detector, now=lambda: NOW, today=today)

    return factory
