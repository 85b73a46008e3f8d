"""Minimal crawl engine: fetch HTML by URL, dispatch to a handler by label.

Requests are processed by a bounded pool of asyncio workers. Each page is an
independent unit of work: whatever its handler raises is logged and counted,
and the remaining pages are still processed.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

import httpx
from bs4 import BeautifulSoup

from sagre_scraper.core.exceptions import FetchTimeoutError, HTTPError, InvalidConfigError
from sagre_scraper.core.retry import RetryableHTTPError, async_retrying
from sagre_scraper.core.scraper_config import CrawlerConfig
from sagre_scraper.logging import get_logger
from sagre_scraper.logging.logger import log_page

logger = get_logger(__name__)


@dataclass
class CrawlRequest:
    url: str
    label: str


@dataclass
class PageContext:
    """What a handler receives for one fetched page."""

    url: str  # resolved URL, after redirects
    label: str
    soup: BeautifulSoup
    request_url: str
    redirects: list[str] = field(default_factory=list)
    enqueue: Callable[[Iterable[str], str], int] = lambda urls, label: 0


Handler = Callable[[PageContext], Awaitable[None]]


class Router:
    """Maps route labels to page handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def add(self, label: str, handler: Handler) -> None:
        if label in self._handlers:
            raise InvalidConfigError(f"Handler already registered for label {label!r}", field="label")
        self._handlers[label] = handler

    def route(self, label: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``add``."""

        def decorator(handler: Handler) -> Handler:
            self.add(label, handler)
            return handler

        return decorator

    def resolve(self, label: str) -> Handler:
        try:
            return self._handlers[label]
        except KeyError:
            raise InvalidConfigError(f"No handler for label {label!r}", field="label") from None

    @property
    def labels(self) -> list[str]:
        return list(self._handlers)


@dataclass
class CrawlStats:
    requests_enqueued: int = 0
    requests_skipped: int = 0  # already seen or over budget
    pages_handled: int = 0
    pages_failed: int = 0
    fetch_failed: int = 0


class FestivalCrawler:
    """Fetches pages with httpx and hands them to routed handlers.

    Features:
    - URL de-duplication at enqueue time
    - Request budget per crawl
    - Bounded concurrency
    - Retries with backoff on transport errors and retryable status codes
    """

    def __init__(
        self,
        router: Router,
        config: CrawlerConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.router = router
        self.config = config or CrawlerConfig()
        self.stats = CrawlStats()
        self._client = client
        self._seen: set[str] = set()
        self._queue: asyncio.Queue[CrawlRequest] = asyncio.Queue()

    def add_requests(self, urls: Iterable[str], label: str) -> int:
        """Schedule URLs under a label, returns how many were accepted."""
        added = 0
        for url in urls:
            url = url.split("#")[0]
            if url in self._seen or len(self._seen) >= self.config.max_requests_per_crawl:
                self.stats.requests_skipped += 1
                continue
            self._seen.add(url)
            self._queue.put_nowait(CrawlRequest(url=url, label=label))
            added += 1
        self.stats.requests_enqueued += added
        return added

    async def run(self, requests: Iterable[CrawlRequest] = ()) -> CrawlStats:
        """Crawl until the queue drains."""
        for request in requests:
            self.add_requests([request.url], request.label)

        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.request_timeout),
            follow_redirects=True,
        )

        workers = [
            asyncio.create_task(self._worker(client))
            for _ in range(max(1, self.config.max_concurrency))
        ]
        try:
            await self._queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            if owns_client:
                await client.aclose()

        logger.info(
            "crawl_complete",
            enqueued=self.stats.requests_enqueued,
            handled=self.stats.pages_handled,
            failed=self.stats.pages_failed,
            fetch_failed=self.stats.fetch_failed,
        )
        return self.stats

    async def _worker(self, client: httpx.AsyncClient) -> None:
        while True:
            request = await self._queue.get()
            try:
                await self._process(client, request)
            finally:
                self._queue.task_done()

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        retry = self.config.retry
        try:
            async for attempt in async_retrying(retry):
                with attempt:
                    response = await client.get(url, headers=self.config.headers.get_headers())
                    if response.status_code in retry.retryable_status_codes:
                        raise RetryableHTTPError(response.status_code, url)
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(url, self.config.request_timeout) from e
        except RetryableHTTPError as e:
            raise HTTPError("Retries exhausted", status_code=e.status_code, url=url) from e

        if response.is_error:
            raise HTTPError(f"HTTP {response.status_code}", status_code=response.status_code, url=url)
        return response

    async def _process(self, client: httpx.AsyncClient, request: CrawlRequest) -> None:
        with log_page(request.url, request.label):
            try:
                response = await self._fetch(client, request.url)
            except (FetchTimeoutError, HTTPError, httpx.HTTPError) as e:
                self.stats.fetch_failed += 1
                logger.error("fetch_failed", error=str(e), error_type=type(e).__name__)
                return

            page = PageContext(
                url=str(response.url),
                label=request.label,
                soup=BeautifulSoup(response.text, "html.parser"),
                request_url=request.url,
                redirects=[str(r.url) for r in response.history],
                enqueue=self.add_requests,
            )

            try:
                handler = self.router.resolve(request.label)
                await handler(page)
            except Exception as e:
                # One broken page must never stop the crawl
                self.stats.pages_failed += 1
                logger.exception("page_failed", error=str(e), error_type=type(e).__name__)
                return

            self.stats.pages_handled += 1
