"""Festival source configuration registry.

Each supported website is described by one declarative ``FestivalSourceConfig``
(selector lists, excluded domains, date/location strategy tags). The generic
festival parser reads nothing else, so adding a site means adding a record.

Usage:
    from sagre_scraper.config.sources import SourceRegistry

    source = SourceRegistry.get("assosagre")
    active = SourceRegistry.get_active()
"""

from dataclasses import dataclass, field
from enum import Enum

from sagre_scraper.core.exceptions import SourceNotFoundError
from sagre_scraper.core.festival_model import FestivalSource

# ============================================================
# SHARED SELECTORS
# ============================================================

DATE_SELECTORS = [".date", ".data", ".quando", '[class*="date"]', '[class*="quando"]']
PROVINCE_SELECTORS = [".province", ".provincia", '[class*="province"]']
IMAGE_EXCLUDE_PATTERNS = ["logo", "icon", "favicon"]
PARAGRAPH_SELECTORS = ["article p", ".content p", ".description p", "main p"]
CATEGORY_SELECTORS = [".category", ".tipo", ".tag", '[class*="category"]', '[class*="tag"]']
SCHEDULE_SELECTORS = [".orari", ".schedule", '[class*="orari"]', '[class*="schedule"]']
PRICE_SELECTORS = [".prezzo", ".price", '[class*="prezzo"]', '[class*="price"]']
MAP_IFRAME_SELECTOR = 'iframe[src*="maps.google."]'


class DateStrategy(str, Enum):
    """Where the raw date text lives and how it is normalized."""

    SELECTOR_FRAGMENTS = "selector_fragments"  # every date-like element, kept raw
    DAY_RANGE = "day_range"  # one element, "7-8-14-15 Novembre 2025"
    LABELED_PERIOD = "labeled_period"  # labeled block, "Periodo Dal 8 al 9 novembre"


class LocationStrategy(str, Enum):
    """How the element matched by ``location_selector`` is read.

    TEXT_BLOCK takes the element text and carries no coordinates. MAP_LINK
    narrows the match to its first link: the anchor text is the location and
    the href is a maps URL. DATA_ATTRIBUTES takes the container text and reads
    coordinates from two of its attributes.
    """

    TEXT_BLOCK = "text_block"
    MAP_LINK = "map_link"
    DATA_ATTRIBUTES = "data_attributes"


class CoordinateSource(str, Enum):
    MAP_LINK = "map_link"
    MAP_IFRAME = "map_iframe"
    DATA_ATTRIBUTES = "data_attributes"


class ProvinceCodeScope(str, Enum):
    """Where the "(XX)" province code regex is applied after selectors fail."""

    PAGE = "page"
    LOCATION = "location"
    NONE = "none"


class DescriptionStrategy(str, Enum):
    STRUCTURED_DATA = "structured_data"  # JSON-LD only
    JOINED_PARAGRAPHS = "joined_paragraphs"
    BLOCK_SELECTOR = "block_selector"  # one block, paragraphs as fallback


@dataclass
class FestivalSourceConfig:
    """Declarative description of one festival website."""

    slug: str
    name: str
    source: FestivalSource
    start_urls: list[str]
    listing_label: str
    detail_label: str

    # Link discovery
    detail_link_globs: list[str] = field(default_factory=list)
    detail_link_selector: str = ""  # containers or anchors leading to detail pages
    listing_link_globs: list[str] = field(default_factory=list)

    # URL substring -> identifier, for sites sharing one configuration
    source_by_url: dict[str, FestivalSource] = field(default_factory=dict)

    title_selector: str | None = None

    date_strategy: DateStrategy = DateStrategy.SELECTOR_FRAGMENTS
    date_selectors: list[str] = field(default_factory=lambda: list(DATE_SELECTORS))
    date_label: str = ""  # required for LABELED_PERIOD

    location_strategy: LocationStrategy = LocationStrategy.TEXT_BLOCK
    location_selector: str = ""
    # Tried in order, the first source yielding coordinates wins
    coordinate_sources: list[CoordinateSource] = field(default_factory=list)
    map_iframe_selector: str = MAP_IFRAME_SELECTOR
    latitude_attribute: str = ""
    longitude_attribute: str = ""

    province_selectors: list[str] = field(default_factory=lambda: list(PROVINCE_SELECTORS))
    province_code_scope: ProvinceCodeScope = ProvinceCodeScope.PAGE

    image_exclude_patterns: list[str] = field(default_factory=lambda: list(IMAGE_EXCLUDE_PATTERNS))

    paragraph_selectors: list[str] = field(default_factory=lambda: list(PARAGRAPH_SELECTORS))
    paragraph_min_length: int = 20
    paragraph_exclude: list[str] = field(default_factory=list)

    description_strategy: DescriptionStrategy = DescriptionStrategy.STRUCTURED_DATA
    description_selector: str = ""

    category_selectors: list[str] = field(default_factory=lambda: list(CATEGORY_SELECTORS))
    schedule_selectors: list[str] = field(default_factory=lambda: list(SCHEDULE_SELECTORS))
    schedule_phrases: list[str] = field(default_factory=list)  # paragraphs containing these
    price_selectors: list[str] = field(default_factory=lambda: list(PRICE_SELECTORS))

    contact_exclude_domains: list[str] = field(default_factory=list)

    is_active: bool = True

    def __hash__(self) -> int:
        return hash(self.slug)

    def __post_init__(self) -> None:
        if self.date_strategy == DateStrategy.LABELED_PERIOD and not self.date_label:
            raise ValueError(f"{self.slug}: labeled_period needs a date_label")
        if not (self.detail_link_globs or self.detail_link_selector):
            raise ValueError(f"{self.slug}: no way to discover detail pages")
        if self.location_strategy != LocationStrategy.TEXT_BLOCK and not self.location_selector:
            raise ValueError(f"{self.slug}: {self.location_strategy.value} needs a location_selector")
        for origin in (CoordinateSource.MAP_LINK, CoordinateSource.DATA_ATTRIBUTES):
            if origin in self.coordinate_sources and self.location_strategy.value != origin.value:
                raise ValueError(
                    f"{self.slug}: {origin.value} coordinates need the {origin.value} location strategy"
                )
        if self.location_strategy == LocationStrategy.DATA_ATTRIBUTES and not (
            self.latitude_attribute and self.longitude_attribute
        ):
            raise ValueError(f"{self.slug}: data_attributes needs latitude and longitude attributes")

    @property
    def labels(self) -> tuple[str, str]:
        return self.listing_label, self.detail_label

    @property
    def sources(self) -> list[FestivalSource]:
        """Every identifier this configuration can emit."""
        return list(dict.fromkeys([*self.source_by_url.values(), self.source]))

    def resolve_source(self, url: str) -> FestivalSource:
        """Pick the source identifier for a page URL."""
        for needle, source in self.source_by_url.items():
            if needle in url:
                return source
        return self.source


class SourceRegistry:
    """Central registry for festival sources.

    Sources are loaded from the config modules on first lookup.
    """

    _sources: dict[str, FestivalSourceConfig] = {}
    _initialized: bool = False

    @classmethod
    def register(cls, config: FestivalSourceConfig) -> None:
        cls._sources[config.slug] = config

    @classmethod
    def register_many(cls, configs: list[FestivalSourceConfig]) -> None:
        for config in configs:
            cls.register(config)

    @classmethod
    def get(cls, slug: str) -> FestivalSourceConfig | None:
        """Get a source configuration by slug.

        Args:
            slug: Source identifier

        Returns:
            Source configuration or None
        """
        cls._ensure_initialized()
        return cls._sources.get(slug)

    @classmethod
    def require(cls, slug: str) -> FestivalSourceConfig:
        """Like ``get`` but raises SourceNotFoundError for unknown slugs."""
        config = cls.get(slug)
        if config is None:
            raise SourceNotFoundError(slug, available=cls.slugs())
        return config

    @classmethod
    def get_active(cls) -> list[FestivalSourceConfig]:
        cls._ensure_initialized()
        return [s for s in cls._sources.values() if s.is_active]

    @classmethod
    def all(cls) -> list[FestivalSourceConfig]:
        cls._ensure_initialized()
        return list(cls._sources.values())

    @classmethod
    def slugs(cls) -> list[str]:
        cls._ensure_initialized()
        return list(cls._sources.keys())

    @classmethod
    def count(cls) -> int:
        cls._ensure_initialized()
        return len(cls._sources)

    @classmethod
    def _ensure_initialized(cls) -> None:
        """Ensure all source modules are imported."""
        if cls._initialized:
            return

        from sagre_scraper.config.sources.festival_sources import FESTIVAL_SOURCES

        cls.register_many(FESTIVAL_SOURCES)
        cls._initialized = True

    @classmethod
    def clear(cls) -> None:
        """Clear all registered sources (for testing)."""
        cls._sources.clear()
        cls._initialized = False


__all__ = [
    "CoordinateSource",
    "DateStrategy",
    "DescriptionStrategy",
    "FestivalSourceConfig",
    "LocationStrategy",
    "ProvinceCodeScope",
    "SourceRegistry",
]
