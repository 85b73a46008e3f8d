"""Past-event detection for partially dated festivals."""

from collections.abc import Callable
from datetime import date
from typing import Protocol

from sagre_scraper.utils.date_parser import parse_any_date, parse_natural_date

FragmentParser = Callable[[str], date | None]


class DatedRecord(Protocol):
    start_date: str | None
    end_date: str | None
    dates: list[str]


def is_past(
    record: DatedRecord,
    today: date | None = None,
    fragment_parser: FragmentParser = parse_natural_date,
) -> bool:
    """Decide whether a festival has already ended.

    Decision order:
    1. ``end_date`` when it parses
    2. ``start_date`` when it parses
    3. raw ``dates`` fragments: any fragment on or after today keeps the
       record; it is past only if at least one fragment parsed and every
       parsed fragment is before today
    4. otherwise keep it

    Args:
        record: Candidate or validated record
        today: Reference day, defaults to the local current date
        fragment_parser: Parser for raw fragments; sources with range
            heuristics pass their own

    Returns:
        True if the festival is in the past
    """
    today = today or date.today()

    for value in (record.end_date, record.start_date):
        parsed = parse_any_date(value)
        if parsed is not None:
            return parsed < today

    parsed_any = False
    for fragment in record.dates:
        parsed = fragment_parser(fragment)
        if parsed is None:
            continue
        if parsed >= today:
            return False
        parsed_any = True

    return parsed_any
