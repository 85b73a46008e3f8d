"""Schema validation stage for candidate festival records."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from sagre_scraper.core.exceptions import RecordValidationError
from sagre_scraper.core.festival_model import CandidateRecord, FestivalRecord


@dataclass
class ValidationResult:
    """Outcome of validating a single candidate.

    Either ``ok`` with the validated ``record``, or not ok with every
    violated constraint listed in ``errors``.
    """

    ok: bool
    record: FestivalRecord | None = None
    errors: list[dict[str, str]] = field(default_factory=list)

    @property
    def fields(self) -> list[str]:
        return sorted({error["field"] for error in self.errors})

    def unwrap(self, url: str | None = None, source: str | None = None) -> FestivalRecord:
        """Return the record or raise a page-fatal error with all violations."""
        if self.ok and self.record is not None:
            return self.record
        raise RecordValidationError(self.errors, url=url, source=source)


def _violations(error: ValidationError) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in detail["loc"]) or "__root__",
            "message": detail["msg"],
            "type": detail["type"],
        }
        for detail in error.errors()
    ]


def validate(candidate: CandidateRecord | dict[str, Any]) -> ValidationResult:
    """Validate a candidate against the festival record schema.

    Args:
        candidate: Working record, or its camelCase dict form

    Returns:
        ValidationResult, never raises for invalid data
    """
    payload = candidate.to_dict() if isinstance(candidate, CandidateRecord) else candidate
    try:
        record = FestivalRecord.model_validate(payload)
    except ValidationError as e:
        return ValidationResult(ok=False, errors=_violations(e))
    return ValidationResult(ok=True, record=record)
