"""Festival page parsers: field extractors, JSON-LD lookup and date heuristics."""

from sagre_scraper.parsers.festival_parser import FestivalParser, ParseOutcome, ParseStatus

__all__ = ["FestivalParser", "ParseOutcome", "ParseStatus"]
