"""HTTP and crawl configuration for polite scraping.

This module provides:
- Realistic headers rotation
- Crawl limits (request budget, concurrency, retries)
"""

import random
from dataclasses import dataclass, field

from sagre_scraper.core.retry import RetryConfig

# Realistic User-Agent strings (Chrome, Firefox, Safari on Windows/Mac)
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
]


@dataclass
class HeadersConfig:
    """HTTP headers configuration with rotation."""

    rotate_user_agent: bool = True
    custom_user_agent: str | None = None
    extra_headers: dict[str, str] = field(default_factory=dict)

    def get_headers(self) -> dict[str, str]:
        """Get headers with optional User-Agent rotation."""
        if self.custom_user_agent:
            user_agent = self.custom_user_agent
        elif self.rotate_user_agent:
            user_agent = random.choice(USER_AGENTS)
        else:
            user_agent = USER_AGENTS[0]

        headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "it-IT,it;q=0.9,en;q=0.8",
            "Accept-Encoding": "gzip, deflate",
            "DNT": "1",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }
        headers.update(self.extra_headers)
        return headers


@dataclass
class CrawlerConfig:
    """Limits owned by the crawl engine, not by the parsers."""

    max_requests_per_crawl: int = 100
    max_concurrency: int = 2
    request_timeout: float = 30.0
    retry: RetryConfig = field(default_factory=RetryConfig)
    headers: HeadersConfig = field(default_factory=HeadersConfig)

    @classmethod
    def from_settings(cls, settings) -> "CrawlerConfig":
        return cls(
            max_requests_per_crawl=settings.crawl_max_requests,
            max_concurrency=settings.crawl_max_concurrency,
            request_timeout=settings.crawl_request_timeout,
            retry=RetryConfig(max_attempts=settings.crawl_max_retries + 1),
            headers=HeadersConfig(custom_user_agent=settings.crawl_user_agent),
        )
