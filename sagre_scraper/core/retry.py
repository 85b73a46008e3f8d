"""Retry policy for page fetches: exponential backoff with jitter."""

from dataclasses import dataclass, field

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from sagre_scraper.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 1.0
    retryable_status_codes: tuple[int, ...] = field(
        default_factory=lambda: (429, 500, 502, 503, 504)
    )


class RetryableHTTPError(Exception):
    """HTTP error that can be retried."""

    def __init__(self, status_code: int, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code}: {url}")


def is_retryable(config: RetryConfig, error: BaseException) -> bool:
    if isinstance(error, RetryableHTTPError):
        return error.status_code in config.retryable_status_codes
    return isinstance(error, httpx.TransportError)


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "fetch_retry",
        attempt=state.attempt_number,
        error=str(error),
        error_type=type(error).__name__,
        delay=round(state.next_action.sleep, 2) if state.next_action else None,
    )


def async_retrying(config: RetryConfig | None = None) -> AsyncRetrying:
    """Build a tenacity retrier for one request.

    Usage:
        async for attempt in async_retrying(RetryConfig(max_attempts=5)):
            with attempt:
                response = await client.get(url)
    """
    if config is None:
        config = RetryConfig()

    return AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential_jitter(
            initial=config.initial_delay,
            max=config.max_delay,
            jitter=config.jitter,
        ),
        retry=retry_if_exception(lambda e: is_retryable(config, e)),
        before_sleep=_log_retry,
        reraise=True,
    )
