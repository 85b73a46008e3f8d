"""Italian date parsing utilities."""

import re
from datetime import date, datetime

from dateutil.parser import isoparse

ITALIAN_MONTHS = {
    "gennaio": 1,
    "febbraio": 2,
    "marzo": 3,
    "aprile": 4,
    "maggio": 5,
    "giugno": 6,
    "luglio": 7,
    "agosto": 8,
    "settembre": 9,
    "ottobre": 10,
    "novembre": 11,
    "dicembre": 12,
}

MONTH_PATTERN = re.compile(r"\b(" + "|".join(ITALIAN_MONTHS) + r")\b", re.IGNORECASE)

# "7 novembre 2025", "1° maggio", "15 di agosto 2024"
DAY_MONTH_PATTERN = re.compile(
    r"\b(\d{1,2})\s*[°º]?\s+(?:di\s+)?(" + "|".join(ITALIAN_MONTHS) + r")\b(?:\s+(\d{4})\b)?",
    re.IGNORECASE,
)

YEAR_PATTERN = re.compile(r"\b(20\d{2})\b")


def parse_italian_month(month_str: str) -> int | None:
    """Parse an Italian month name to its number.

    Args:
        month_str: Month name (e.g., "Novembre", "agosto")

    Returns:
        Month number (1-12) or None if not recognized
    """
    return ITALIAN_MONTHS.get(month_str.lower().strip())


def parse_natural_date(text: str | None, default_year: int | None = None) -> date | None:
    """Parse one Italian "day month [year]" triple from free text.

    When the text holds several triples the last one wins, so the closing
    date of a "dal ... al ..." phrase is what comes back. A missing year
    defaults to ``default_year`` or the current year.

    Never raises: unrecognized or impossible dates (31 febbraio) give None.

    Args:
        text: Date text as found in the page
        default_year: Year to assume when the text has none

    Returns:
        date object or None if parsing failed
    """
    if not text:
        return None

    matches = list(DAY_MONTH_PATTERN.finditer(text))
    if not matches:
        return None

    match = matches[-1]
    day = int(match.group(1))
    month = ITALIAN_MONTHS[match.group(2).lower()]
    if match.group(3):
        year = int(match.group(3))
    else:
        year = default_year or datetime.now().year

    try:
        return date(year, month, day)
    except ValueError:
        return None


def find_year(text: str | None, default: int | None = None) -> int:
    """First plausible year (20xx) in the text, else ``default`` or the current year."""
    match = YEAR_PATTERN.search(text or "")
    if match:
        return int(match.group(1))
    return default or datetime.now().year


def parse_iso_date(value: str | None) -> date | None:
    """Parse an ISO-8601 date or datetime string to a date."""
    if not value:
        return None
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


def parse_any_date(value: str | None) -> date | None:
    """Parse a normalized (ISO) date, falling back to Italian natural text."""
    return parse_iso_date(value) or parse_natural_date(value)


def month_year(value: str | None) -> str:
    """Rough "month-year" key for a date string, empty if it does not parse."""
    parsed = parse_any_date(value)
    if parsed is None:
        return ""
    return f"{parsed.month}-{parsed.year}"
