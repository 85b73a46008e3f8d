"""Date-range heuristics for the sources that publish ranges as free text.

Both functions return ``(start, end)`` and never raise; either side is None
when it cannot be determined.
"""

import re
from datetime import date

from sagre_scraper.utils.date_parser import (
    DAY_MONTH_PATTERN,
    ITALIAN_MONTHS,
    MONTH_PATTERN,
    find_year,
    parse_natural_date,
)

DateRange = tuple[date | None, date | None]

# "7-8-14-15", "31", "1-2"; never matches inside "2025"
DAY_RUN_PATTERN = re.compile(r"\b\d{1,2}(?:\s*-\s*\d{1,2})*\b")
DAY_PATTERN = re.compile(r"\b(\d{1,2})\b")

# "Dal 8 al 9 novembre", "8-9 novembre": the month is shared by both days
SHARED_MONTH_PATTERN = re.compile(
    r"\b(\d{1,2})\s*[°º]?\s*(?:al|-|–)\s*\d{1,2}\s*[°º]?\s+(?:di\s+)?("
    + "|".join(ITALIAN_MONTHS)
    + r")\b",
    re.IGNORECASE,
)


def _build(day: int, month_name: str, year: int) -> date | None:
    return parse_natural_date(f"{day} {month_name} {year}")


def parse_day_range(text: str | None, default_year: int | None = None) -> DateRange:
    """Split a calendar-style day list into start and end dates.

    One month name: start is the smallest day, end the largest
    ("7-8-14-15 Novembre 2025" -> 7 Nov, 15 Nov).

    Two or more month names: the start day is the first day number before
    the first mention of the last month, the end day the largest day number
    after the first month ("31 Ottobre 1-2 Novembre 2025" -> 31 Oct, 2 Nov).
    Only the first and last month are used, so texts naming three months,
    or whose day numbers interleave unusually with month names, can be
    mis-assigned. The year is the first 20xx in the text, for both ends.
    """
    if not text:
        return None, None

    months = list(MONTH_PATTERN.finditer(text))
    day_runs = DAY_RUN_PATTERN.findall(text)
    if not months or not day_runs:
        return None, None

    year = find_year(text, default_year)
    all_days = [int(d) for run in day_runs for d in re.split(r"\s*-\s*", run)]
    first_day, last_day = min(all_days), max(all_days)

    first_month = months[0].group(1)
    last_month = months[-1].group(1)

    if len(months) == 1:
        return _build(first_day, first_month, year), _build(last_day, first_month, year)

    last_month_at = next(m.start() for m in months if m.group(1).lower() == last_month.lower())
    days_before_last = [int(d) for d in DAY_PATTERN.findall(text[:last_month_at])]
    days_after_first = [int(d) for d in DAY_PATTERN.findall(text[months[0].end():])]

    start_day = days_before_last[0] if days_before_last else first_day
    end_day = max(days_after_first) if days_after_first else last_day

    return _build(start_day, first_month, year), _build(end_day, last_month, year)


def parse_period(text: str | None, default_year: int | None = None) -> DateRange:
    """Parse a "Dal X al Y" period.

    Handles a single date, two full dates ("Dal 8 novembre al 9 novembre
    2025") and a shared month ("Dal 8 al 9 novembre"). Dates without a year
    take the year written elsewhere in the text, else ``default_year`` or the
    current year. A period crossing New Year keeps the written year where it
    is: "Dal 28 dicembre al 6 gennaio 2026" moves the start back to 2025,
    while a year-less "Dal 28 dicembre al 6 gennaio" moves the end forward.
    """
    if not text:
        return None, None

    triples = list(DAY_MONTH_PATTERN.finditer(text))
    if not triples:
        return None, None

    year = find_year(text, default_year)

    def triple_date(match: re.Match) -> tuple[date | None, bool]:
        explicit = match.group(3) is not None
        return _build(int(match.group(1)), match.group(2), int(match.group(3) or year)), explicit

    end, end_explicit = triple_date(triples[-1])

    shared = SHARED_MONTH_PATTERN.search(text)
    if len(triples) == 1 and shared:
        end_year = end.year if end else year
        start = _build(int(shared.group(1)), shared.group(2), end_year)
        start_explicit = False
    else:
        start, start_explicit = triple_date(triples[0])

    if start and end and start > end:
        if not start_explicit and not end_explicit:
            try:
                end = end.replace(year=end.year + 1)
            except ValueError:
                end = None
        elif not start_explicit:
            try:
                start = start.replace(year=start.year - 1)
            except ValueError:
                start = None

    return start, end
