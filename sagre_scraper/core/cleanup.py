"""Removal of festivals that have already ended from the content store."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal

from sagre_scraper.core.exceptions import UploadError
from sagre_scraper.core.strapi_client import StrapiClient
from sagre_scraper.logging import get_logger
from sagre_scraper.utils.date_parser import parse_any_date

logger = get_logger(__name__)

PAGE_SIZE = 100

CleanupStatus = Literal["deleted", "failed", "skipped"]


@dataclass
class CleanupEntry:
    document_id: str
    title: str
    end_date: str | None
    status: CleanupStatus
    error: str | None = None


@dataclass
class CleanupResult:
    """Outcome of one cleanup run."""

    total: int = 0
    deleted: int = 0
    failed: int = 0
    dry_run: bool = False
    entries: list[CleanupEntry] = field(default_factory=list)


def is_past_festival(festival: dict[str, Any], today: date | None = None) -> bool:
    """End date, else start date, strictly before today. Unknown dates are kept."""
    today = today or date.today()
    for key in ("endDate", "startDate"):
        parsed = parse_any_date(festival.get(key))
        if parsed is not None:
            return parsed < today
    return False


async def fetch_all_festivals(client: StrapiClient) -> list[dict[str, Any]]:
    """Every festival in the store, following pagination to the last page."""
    festivals: list[dict[str, Any]] = []
    page = 1
    while True:
        body = await client.list_festivals(page, PAGE_SIZE)
        festivals.extend(body.get("data") or [])
        page_count = body.get("meta", {}).get("pagination", {}).get("pageCount", 1)
        logger.debug("festivals_page_fetched", page=page, page_count=page_count)
        if page >= page_count:
            return festivals
        page += 1


async def cleanup_past_festivals(
    client: StrapiClient,
    dry_run: bool = False,
    today: date | None = None,
) -> CleanupResult:
    """Delete past festivals; a failed fetch aborts, a failed delete does not.

    Args:
        client: Strapi client
        dry_run: Report what would be deleted without deleting
        today: Reference day, defaults to the current date

    Returns:
        CleanupResult with one entry per past festival
    """
    festivals = await fetch_all_festivals(client)
    past = [f for f in festivals if is_past_festival(f, today)]
    result = CleanupResult(total=len(past), dry_run=dry_run)

    logger.info("cleanup_started", festivals=len(festivals), past=len(past), dry_run=dry_run)

    for festival in past:
        entry = CleanupEntry(
            document_id=str(festival.get("documentId", "")),
            title=festival.get("title", ""),
            end_date=festival.get("endDate") or festival.get("startDate"),
            status="skipped",
        )
        result.entries.append(entry)

        if dry_run:
            continue

        try:
            await client.delete_festival(entry.document_id)
        except UploadError as e:
            entry.status = "failed"
            entry.error = str(e)
            result.failed += 1
            logger.error("festival_delete_failed", document_id=entry.document_id, error=str(e))
            continue

        entry.status = "deleted"
        result.deleted += 1
        logger.info("festival_deleted", document_id=entry.document_id, title=entry.title)

    logger.info("cleanup_complete", total=result.total, deleted=result.deleted, failed=result.failed)
    return result
