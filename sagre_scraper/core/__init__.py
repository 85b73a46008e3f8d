"""Core modules for the scraper."""

from sagre_scraper.core.exceptions import (
    ConfigurationError,
    FetchError,
    MissingFieldError,
    ParseError,
    RecordValidationError,
    SagreError,
    SourceNotFoundError,
    StorageError,
    UploadError,
)
from sagre_scraper.core.festival_model import (
    CandidateRecord,
    FestivalRecord,
    FestivalSource,
    StructuredData,
)

__all__ = [
    # Records
    "CandidateRecord",
    "FestivalRecord",
    "FestivalSource",
    "StructuredData",
    # Exceptions
    "SagreError",
    "ConfigurationError",
    "SourceNotFoundError",
    "FetchError",
    "ParseError",
    "MissingFieldError",
    "RecordValidationError",
    "StorageError",
    "UploadError",
]
