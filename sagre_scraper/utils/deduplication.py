"""Festival deduplication within a single run."""

import threading
from typing import Protocol

from sagre_scraper.core.festival_model import Place, location_name
from sagre_scraper.logging import get_logger
from sagre_scraper.utils.date_parser import month_year, parse_natural_date
from sagre_scraper.utils.text import normalize_key_part

logger = get_logger(__name__)


class KeyedRecord(Protocol):
    title: str
    location: Place | str | None
    start_date: str | None
    dates: list[str]


def rough_month_year(record: KeyedRecord) -> str:
    """Month-level date of a record.

    Taken from ``start_date`` when it parses, else from the first raw date
    fragment, else empty.
    """
    key = month_year(record.start_date)
    if key:
        return key

    if record.dates:
        parsed = parse_natural_date(record.dates[0])
        if parsed:
            return f"{parsed.month}-{parsed.year}"
    return ""


def generate_festival_key(record: KeyedRecord) -> str:
    """Identity key: normalized title, location and rough month-year.

    The URL is never part of the key, the same festival is often reachable
    from several listing pages.
    """
    return "|".join(
        [
            normalize_key_part(record.title),
            normalize_key_part(location_name(record.location)),
            rough_month_year(record),
        ]
    )


class DuplicateDetector:
    """In-memory set of festival keys seen during one run.

    Created once per run and passed to every parser invocation. Check and
    insert happen under one lock so concurrent handlers cannot both accept
    the same festival.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def is_duplicate(self, record: KeyedRecord) -> bool:
        """Return True for a repeat; remember the key on first sight."""
        key = generate_festival_key(record)
        with self._lock:
            if key in self._seen:
                logger.debug("duplicate_festival", key=key)
                return True
            self._seen.add(key)
        return False

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()

    def __len__(self) -> int:
        return len(self._seen)
