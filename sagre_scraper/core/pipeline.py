"""Festival crawl pipeline.

Provides a single pipeline that handles:
1. Crawling the listing pages of the selected sources
2. Parsing detail pages into candidate records
3. Filtering past festivals and duplicates, validating the rest
4. Writing accepted records to the dataset sink
5. Optional upload to Strapi (geocoding when needed)

Usage:
    from sagre_scraper.core.pipeline import FestivalPipeline, PipelineConfig

    config = PipelineConfig(source_slugs=["assosagre"])
    pipeline = FestivalPipeline(config, sink=JsonlDatasetSink("festivals.jsonl"))
    result = await pipeline.run()
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import date

import httpx

from sagre_scraper.config.settings import Settings
from sagre_scraper.config.sources import FestivalSourceConfig, SourceRegistry
from sagre_scraper.core.crawler import CrawlRequest, FestivalCrawler, PageContext, Router
from sagre_scraper.core.exceptions import MissingFieldError, RecordValidationError
from sagre_scraper.core.geocoder import GeoapifyGeocoder
from sagre_scraper.core.scraper_config import CrawlerConfig
from sagre_scraper.core.sink import FestivalSink
from sagre_scraper.core.strapi_client import FestivalUploader, StrapiClient
from sagre_scraper.logging import get_logger
from sagre_scraper.parsers.festival_parser import FestivalParser, ParseStatus
from sagre_scraper.utils.deduplication import DuplicateDetector

logger = get_logger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for a crawl run."""

    source_slugs: list[str] = field(default_factory=list)  # empty = all active sources
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)


@dataclass
class PipelineResult:
    """Summary of one crawl run."""

    sources: list[str] = field(default_factory=list)

    # Counts
    scraped: int = 0
    skipped_past: int = 0
    skipped_duplicate: int = 0
    failed_validation: int = 0
    failed_pages: int = 0
    uploads_succeeded: int = 0
    uploads_failed: int = 0

    # Distributions
    per_source: dict[str, int] = field(default_factory=dict)

    # Status
    success: bool = True
    error: str | None = None
    upload_enabled: bool = False

    # Timing
    duration_seconds: float = 0.0


def create_uploader(settings: Settings) -> FestivalUploader | None:
    """Uploader from settings, or None (with a warning) when misconfigured."""
    if not settings.upload_enabled:
        logger.warning(
            "strapi_upload_disabled",
            enabled=settings.enable_strapi_upload,
            has_strapi_url=bool(settings.strapi_url),
            has_geoapify_key=bool(settings.geoapify_api_key),
        )
        return None
    return FestivalUploader(
        StrapiClient(settings.strapi_url, settings.strapi_token),
        GeoapifyGeocoder(settings.geoapify_api_key, timeout=settings.geocode_timeout),
    )


class FestivalPipeline:
    """Crawl, parse, filter, validate and emit festivals for a set of sources.

    The duplicate detector is created per pipeline (one per run) unless one
    is injected.
    """

    def __init__(
        self,
        config: PipelineConfig,
        sink: FestivalSink,
        uploader: FestivalUploader | None = None,
        detector: DuplicateDetector | None = None,
        client: httpx.AsyncClient | None = None,
        today: date | None = None,
    ) -> None:
        self.config = config
        self.sink = sink
        self.uploader = uploader
        self.detector = detector or DuplicateDetector()
        self.client = client
        self.today = today
        self.result = PipelineResult(upload_enabled=uploader is not None)

    def resolve_sources(self) -> list[FestivalSourceConfig]:
        if not self.config.source_slugs:
            return SourceRegistry.get_active()
        return [SourceRegistry.require(slug) for slug in self.config.source_slugs]

    def build_router(self, sources: list[FestivalSourceConfig]) -> Router:
        router = Router()
        for source in sources:
            parser = FestivalParser(source, self.detector, today=self.today)
            router.add(source.listing_label, self._listing_handler(parser))
            router.add(source.detail_label, self._detail_handler(parser))
        return router

    def _listing_handler(self, parser: FestivalParser):
        async def handle(page: PageContext) -> None:
            parser.handle_listing(page)

        return handle

    def _detail_handler(self, parser: FestivalParser):
        async def handle(page: PageContext) -> None:
            await self.process_detail(parser, page)

        return handle

    async def process_detail(self, parser: FestivalParser, page: PageContext) -> None:
        """Run one detail page through the parser and emit what survives."""
        result = self.result
        try:
            outcome = parser.parse_detail(page)
        except MissingFieldError as e:
            result.failed_pages += 1
            logger.warning("festival_page_skipped", reason="missing_title", error=str(e))
            return
        except RecordValidationError as e:
            result.failed_validation += 1
            logger.error("festival_validation_failed", fields=e.fields, violations=e.violations)
            return

        if outcome.status == ParseStatus.SKIPPED_PAST:
            result.skipped_past += 1
            return
        if outcome.status == ParseStatus.SKIPPED_DUPLICATE:
            result.skipped_duplicate += 1
            return

        record = outcome.record
        # Sinks do blocking I/O, keep it off the event loop
        await asyncio.to_thread(self.sink.emit, record)
        result.scraped += 1
        source = record.source.value
        result.per_source[source] = result.per_source.get(source, 0) + 1
        logger.info("festival_scraped", title=record.title, source=source)

        if self.uploader is None:
            return
        if await self.uploader.process(record):
            result.uploads_succeeded += 1
        else:
            result.uploads_failed += 1

    async def run(self) -> PipelineResult:
        """Execute the crawl.

        Returns:
            PipelineResult with counts and status
        """
        start = time.monotonic()
        result = self.result

        try:
            sources = self.resolve_sources()
            result.sources = [s.slug for s in sources]
            crawler = FestivalCrawler(self.build_router(sources), self.config.crawler, self.client)
            requests = [
                CrawlRequest(url=url, label=source.listing_label)
                for source in sources
                for url in source.start_urls
            ]
            logger.info("pipeline_started", sources=result.sources, start_urls=len(requests))
            stats = await crawler.run(requests)
            result.failed_pages += stats.pages_failed + stats.fetch_failed
        except Exception as e:
            result.success = False
            result.error = str(e)
            logger.error("pipeline_failed", error=str(e), error_type=type(e).__name__)
        finally:
            if self.uploader is not None:
                await self.uploader.close()
            result.duration_seconds = round(time.monotonic() - start, 2)

        logger.info(
            "pipeline_complete",
            scraped=result.scraped,
            skipped_past=result.skipped_past,
            skipped_duplicate=result.skipped_duplicate,
            failed_validation=result.failed_validation,
            failed_pages=result.failed_pages,
            uploads_succeeded=result.uploads_succeeded,
            uploads_failed=result.uploads_failed,
            duration=result.duration_seconds,
        )
        return result
