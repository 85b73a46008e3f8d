"""Generic festival parser driven by a per-source configuration.

One ``FestivalParser`` per source. The listing handler discovers detail
pages; the detail handler turns one page into a validated record, or a
reason for skipping it.

Detail processing order:
    title -> JSON-LD -> dates -> past check -> location/coordinates/province
    -> remaining fields -> duplicate check -> validation
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum

from bs4 import BeautifulSoup, Tag

from sagre_scraper.config.sources import (
    CoordinateSource,
    DateStrategy,
    DescriptionStrategy,
    FestivalSourceConfig,
    LocationStrategy,
    ProvinceCodeScope,
)
from sagre_scraper.core.crawler import PageContext
from sagre_scraper.core.exceptions import MissingFieldError
from sagre_scraper.core.festival_model import CandidateRecord, FestivalRecord, Place, location_name
from sagre_scraper.core.validator import validate
from sagre_scraper.logging import get_logger
from sagre_scraper.parsers import extractors as ex
from sagre_scraper.parsers.dates import parse_day_range, parse_period
from sagre_scraper.parsers.jsonld import find_structured_event
from sagre_scraper.utils.date_parser import parse_natural_date
from sagre_scraper.utils.deduplication import DuplicateDetector
from sagre_scraper.utils.temporal import is_past
from sagre_scraper.utils.urls import extract_map_coordinates, make_absolute_url, matches_any

logger = get_logger(__name__)


class ParseStatus(str, Enum):
    ACCEPTED = "accepted"
    SKIPPED_PAST = "skipped_past"
    SKIPPED_DUPLICATE = "skipped_duplicate"


@dataclass
class ParseOutcome:
    status: ParseStatus
    title: str
    record: FestivalRecord | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FestivalParser:
    """Listing and detail handlers for one festival source.

    Args:
        config: Declarative source description
        detector: Run-scoped duplicate detector, shared across sources
        now: Clock for ``scrapedAt``
        today: Fixed reference day for the past check (defaults to today)
    """

    def __init__(
        self,
        config: FestivalSourceConfig,
        detector: DuplicateDetector,
        now: Callable[[], datetime] = _utc_now,
        today: date | None = None,
    ) -> None:
        self.config = config
        self.detector = detector
        self._now = now
        self._today = today

    @property
    def reference_year(self) -> int:
        """Year assumed for dates written without one, from the same clock as the past check."""
        return (self._today or date.today()).year

    # ============================================================
    # LISTING
    # ============================================================

    def discover_links(self, soup: BeautifulSoup, page_url: str) -> tuple[list[str], list[str]]:
        """Detail and listing URLs found on an index page, each once."""
        cfg = self.config
        detail: list[str] = []
        listing: list[str] = []

        if cfg.detail_link_selector:
            for element in soup.select(cfg.detail_link_selector):
                anchor = element if element.name == "a" else element.find("a", href=True)
                if anchor is not None and anchor.get("href"):
                    detail.append(make_absolute_url(anchor["href"], page_url))

        if cfg.detail_link_globs or cfg.listing_link_globs:
            for anchor in soup.find_all("a", href=True):
                url = make_absolute_url(anchor["href"], page_url)
                if not url:
                    continue
                url = url.split("#")[0]
                if matches_any(url, cfg.detail_link_globs):
                    detail.append(url)
                elif matches_any(url, cfg.listing_link_globs):
                    listing.append(url)

        return list(dict.fromkeys(detail)), list(dict.fromkeys(listing))

    def handle_listing(self, page: PageContext) -> int:
        """Schedule detail pages (and nested listing pages); returns how many."""
        detail, listing = self.discover_links(page.soup, page.url)
        added = page.enqueue(detail, self.config.detail_label)
        added += page.enqueue(listing, self.config.listing_label)
        logger.info(
            "listing_processed",
            source=self.config.slug,
            detail_links=len(detail),
            listing_links=len(listing),
            enqueued=added,
        )
        return added

    # ============================================================
    # DETAIL
    # ============================================================

    def parse_detail(self, page: PageContext) -> ParseOutcome:
        """Build, filter and validate the record for one detail page.

        Raises:
            MissingFieldError: the page has no title
            RecordValidationError: the record breaks the schema
        """
        cfg = self.config
        soup = page.soup
        source = cfg.resolve_source(page.url)

        title = ex.extract_title(soup, cfg.title_selector)
        if not title:
            raise MissingFieldError("title", url=page.url, source=source.value)

        candidate = CandidateRecord(
            url=page.url,
            title=title,
            scraped_at=self._now().isoformat(),
            source=source,
        )

        structured = find_structured_event(soup, page.url)
        if structured is not None:
            candidate.apply_structured_data(structured)

        self._parse_dates(soup, candidate)
        if is_past(candidate, today=self._today, fragment_parser=self._fragment_parser):
            logger.info("festival_skipped_past", title=title, dates=candidate.dates)
            return ParseOutcome(ParseStatus.SKIPPED_PAST, title)

        full_text = ex.extract_full_text(soup)
        self._parse_location(soup, candidate)
        candidate.province = self._parse_province(soup, candidate, full_text)

        for key, value in ex.extract_metadata(soup).items():
            setattr(candidate, key, value)
        candidate.images = ex.extract_images(soup, cfg.image_exclude_patterns, page.url)
        self._parse_description(soup, candidate)
        candidate.contacts = ex.extract_contacts(soup, cfg.contact_exclude_domains)
        candidate.social_media = ex.extract_social_media(soup)
        candidate.categories = ex.extract_categories(soup, cfg.category_selectors)
        candidate.schedule = ex.extract_schedule(soup, cfg.schedule_selectors, cfg.schedule_phrases)
        candidate.prices = ex.extract_prices(soup, cfg.price_selectors)
        candidate.full_text = full_text

        if self.detector.is_duplicate(candidate):
            logger.info("festival_skipped_duplicate", title=title)
            return ParseOutcome(ParseStatus.SKIPPED_DUPLICATE, title)

        record = validate(candidate).unwrap(url=page.url, source=source.value)
        return ParseOutcome(ParseStatus.ACCEPTED, title, record)

    # ============================================================
    # STRATEGIES
    # ============================================================

    def _fragment_parser(self, text: str) -> date | None:
        """End date of a raw fragment, using this source's range heuristic."""
        strategy = self.config.date_strategy
        if strategy == DateStrategy.DAY_RANGE:
            return parse_day_range(text, self.reference_year)[1]
        if strategy == DateStrategy.LABELED_PERIOD:
            return parse_period(text, self.reference_year)[1]
        return parse_natural_date(text, self.reference_year)

    def _labeled_text(self, soup: BeautifulSoup) -> str:
        label = self.config.date_label
        pattern = re.compile(
            rf"{re.escape(label)}\s*:?\s*(.+?)(?:\borari[oi]\b|$)", re.IGNORECASE
        )
        for element in ex.select_all(soup, self.config.date_selectors):
            text = ex.element_text(element)
            if label.lower() not in text.lower():
                continue
            match = pattern.search(text)
            if match:
                return match.group(1).strip()
            return re.sub(re.escape(label), "", text, flags=re.IGNORECASE).strip()
        return ""

    def _parse_dates(self, soup: BeautifulSoup, candidate: CandidateRecord) -> None:
        strategy = self.config.date_strategy

        if strategy == DateStrategy.SELECTOR_FRAGMENTS:
            candidate.dates = ex.extract_dates(soup, self.config.date_selectors)
            return

        if strategy == DateStrategy.DAY_RANGE:
            text = " ".join(ex.extract_dates(soup, self.config.date_selectors))
            start, end = parse_day_range(text, self.reference_year)
        else:
            text = self._labeled_text(soup)
            start, end = parse_period(text, self.reference_year)

        if not text:
            return

        candidate.dates = [text]
        logger.debug("dates_parsed", text=text, start=str(start), end=str(end))
        # JSON-LD dates win, HTML only fills the gaps
        if candidate.start_date is None and start is not None:
            candidate.start_date = start.isoformat()
        if candidate.end_date is None and end is not None:
            candidate.end_date = end.isoformat()

    def _location_element(self, soup: BeautifulSoup) -> Tag | None:
        """Element carrying the location, narrowed to its link for MAP_LINK."""
        cfg = self.config
        element = soup.select_one(cfg.location_selector) if cfg.location_selector else None
        if element is None or cfg.location_strategy != LocationStrategy.MAP_LINK:
            return element
        return element if element.name == "a" else element.find("a", href=True)

    def _coordinates_from(
        self,
        origin: CoordinateSource,
        soup: BeautifulSoup,
        element: Tag | None,
    ) -> tuple[float, float] | None:
        cfg = self.config
        if origin == CoordinateSource.MAP_IFRAME:
            iframe = soup.select_one(cfg.map_iframe_selector)
            return extract_map_coordinates(iframe.get("src") if iframe else None)

        if element is None:
            return None
        if origin == CoordinateSource.MAP_LINK:
            return extract_map_coordinates(element.get("href"))
        try:
            return float(element[cfg.latitude_attribute]), float(element[cfg.longitude_attribute])
        except (KeyError, ValueError):
            return None

    def _parse_location(self, soup: BeautifulSoup, candidate: CandidateRecord) -> None:
        element = self._location_element(soup)

        text = ex.element_text(element)
        if text and not location_name(candidate.location):
            if isinstance(candidate.location, Place):
                # Keep the structured address and geo, only the name is missing
                candidate.location.name = text
            else:
                candidate.location = text

        if candidate.has_coordinates():
            return

        for origin in self.config.coordinate_sources:
            coords = self._coordinates_from(origin, soup, element)
            if coords is not None:
                candidate.set_coordinates(*coords)
                logger.debug("coordinates_extracted", via=origin.value, lat=coords[0], lng=coords[1])
                return

    def _parse_province(self, soup: BeautifulSoup, candidate: CandidateRecord, full_text: str) -> str:
        province = ex.extract_province(soup, self.config.province_selectors)
        if province:
            return province

        scope = self.config.province_code_scope
        if scope == ProvinceCodeScope.PAGE:
            return ex.extract_province_code(full_text)
        if scope == ProvinceCodeScope.LOCATION:
            return ex.extract_province_code(location_name(candidate.location))
        return ""

    def _parse_description(self, soup: BeautifulSoup, candidate: CandidateRecord) -> None:
        cfg = self.config
        strategy = cfg.description_strategy
        description = None

        if strategy == DescriptionStrategy.BLOCK_SELECTOR and cfg.description_selector:
            block = ex.element_text(soup.select_one(cfg.description_selector))
            if block:
                candidate.paragraphs = [block]
                description = block

        if description is None:
            candidate.paragraphs = ex.extract_paragraphs(
                soup, cfg.paragraph_selectors, cfg.paragraph_min_length, cfg.paragraph_exclude
            )
            if strategy != DescriptionStrategy.STRUCTURED_DATA and candidate.paragraphs:
                description = "\n\n".join(candidate.paragraphs)

        if not candidate.description and description:
            candidate.description = description
