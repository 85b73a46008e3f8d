"""Unified exception hierarchy for the sagre scraper.

Exception categories:
- Configuration errors (unknown source, invalid settings)
- Fetch errors (HTTP, timeout)
- Parse errors (missing title, record rejected by validation)
- Storage errors (Strapi upload and cleanup failures)
"""


class SagreError(Exception):
    """Base exception for all scraper errors."""

    def __init__(self, message: str, source: str | None = None, details: dict | None = None):
        self.source = source
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.source:
            msg = f"[{self.source}] {msg}"
        return msg


# ============================================================
# CONFIGURATION ERRORS
# ============================================================


class ConfigurationError(SagreError):
    """Base class for configuration-related errors."""
    pass


class SourceNotFoundError(ConfigurationError):
    """Raised when a source slug is not found in the registry."""

    def __init__(self, slug: str, available: list[str] | None = None):
        self.slug = slug
        self.available = available
        msg = f"Unknown source: {slug}"
        if available:
            msg += f". Available: {', '.join(available)}"
        super().__init__(msg, source=slug)


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        details = {"field": field} if field else {}
        super().__init__(message, details=details)


# ============================================================
# FETCH ERRORS
# ============================================================


class FetchError(SagreError):
    """Base class for page fetching errors."""
    pass


class HTTPError(FetchError):
    """Raised for HTTP-related failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        source: str | None = None,
    ):
        self.status_code = status_code
        self.url = url
        details = {}
        if status_code:
            details["status_code"] = status_code
        if url:
            details["url"] = url
        super().__init__(message, source=source, details=details)


class FetchTimeoutError(FetchError):
    """Raised when a request times out."""

    def __init__(self, url: str, timeout: float, source: str | None = None):
        self.url = url
        self.timeout = timeout
        super().__init__(
            f"Request timed out after {timeout}s",
            source=source,
            details={"url": url, "timeout": timeout},
        )


# ============================================================
# PARSE ERRORS
# ============================================================


class ParseError(SagreError):
    """Base class for page parsing errors."""
    pass


class MissingFieldError(ParseError):
    """Raised when a field the record cannot exist without is empty."""

    def __init__(self, field: str, url: str | None = None, source: str | None = None):
        self.field = field
        self.url = url
        super().__init__(
            f"Missing required field: {field}",
            source=source,
            details={"field": field, "url": url},
        )


class RecordValidationError(ParseError):
    """Raised at the page boundary when a candidate record is rejected.

    Carries every violated constraint, not just the first one.
    """

    def __init__(
        self,
        violations: list[dict],
        url: str | None = None,
        source: str | None = None,
    ):
        self.violations = violations
        self.url = url
        fields = sorted({v["field"] for v in violations})
        self.fields = fields
        super().__init__(
            f"Record failed validation on: {', '.join(fields)}",
            source=source,
            details={"url": url, "violations": violations},
        )


# ============================================================
# STORAGE ERRORS
# ============================================================


class StorageError(SagreError):
    """Base class for downstream store errors."""
    pass


class UploadError(StorageError):
    """Raised when the content store rejects or cannot receive a request."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        self.status_code = status_code
        self.url = url
        details = {}
        if status_code:
            details["status_code"] = status_code
        if url:
            details["url"] = url
        super().__init__(message, details=details)
