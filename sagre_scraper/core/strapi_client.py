"""Strapi content store client and festival upload.

Upload happens after a record has already been written to the dataset, so
every failure here is converted to a False result and logged.
"""

import re
from typing import Any

import httpx

from sagre_scraper.core.exceptions import UploadError
from sagre_scraper.core.festival_model import FestivalRecord, Place, PostalAddress
from sagre_scraper.core.geocoder import Coordinates, GeoapifyGeocoder
from sagre_scraper.logging import get_logger
from sagre_scraper.utils.date_parser import parse_any_date
from sagre_scraper.utils.text import slugify

logger = get_logger(__name__)

NO_DESCRIPTION = "Nessuna descrizione disponibile"
DEFAULT_COUNTRY = "Italia"
_BLANK_LINES = re.compile(r"\n\s*\n+")


# ============================================================
# PAYLOAD BUILDING
# ============================================================


def _place_coordinates(place: Place | str | None) -> Coordinates | None:
    if isinstance(place, Place) and place.geo is not None:
        return Coordinates(lat=place.geo.latitude, lng=place.geo.longitude)
    return None


def extract_coordinates(record: FestivalRecord) -> Coordinates | None:
    """Embedded coordinates: the record's own place, then its structured data."""
    coords = _place_coordinates(record.location)
    if coords is None and record.structured_data is not None:
        coords = _place_coordinates(record.structured_data.location)
    return coords


def location_query(record: FestivalRecord) -> str | None:
    """Text to geocode, most specific first; None rather than a bare country."""
    location = record.location
    if isinstance(location, Place):
        address = location.address
        if isinstance(address, PostalAddress):
            country = address.address_country
            if isinstance(country, dict):
                country = country.get("name")
            parts = [address.street_address, address.address_locality, country]
            parts = [p.strip() for p in parts if isinstance(p, str) and p.strip()]
            if parts:
                return ", ".join(parts)
        elif isinstance(address, str) and address.strip():
            return address.strip()
        if location.name:
            return f"{location.name}, {DEFAULT_COUNTRY}"
    elif isinstance(location, str) and location.strip():
        return f"{location.strip()}, {DEFAULT_COUNTRY}"

    if record.province:
        return f"{record.province}, {DEFAULT_COUNTRY}"
    return None


def description_text(record: FestivalRecord) -> str:
    if record.paragraphs:
        return "\n\n".join(record.paragraphs)
    return record.description or record.meta_description or NO_DESCRIPTION


def rich_text(text: str) -> dict[str, Any]:
    """Split on blank lines into a rich-text document of paragraphs."""
    paragraphs = [p.strip() for p in _BLANK_LINES.split(text) if p.strip()]
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": paragraph}]}
            for paragraph in paragraphs
        ],
    }


def _iso_day(value: str | None) -> str | None:
    parsed = parse_any_date(value)
    return parsed.isoformat() if parsed else None


def build_payload(record: FestivalRecord, position: Coordinates) -> dict[str, Any]:
    """Strapi create payload for a validated festival."""
    data: dict[str, Any] = {
        "title": record.title,
        "startDate": _iso_day(record.start_date),
        "endDate": _iso_day(record.end_date),
        "description": rich_text(description_text(record)),
        "slug": slugify(record.title),
        "position": position.to_dict(),
    }
    return {"data": {k: v for k, v in data.items() if v is not None}}


# ============================================================
# HTTP CLIENT
# ============================================================


class StrapiClient:
    """Thin async client for the festivals collection."""

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._http_client = client

    @property
    def base_url(self) -> str:
        """API root: the configured URL without a trailing /festivals."""
        return self.url.removesuffix("/festivals")

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._http_client

    async def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self.get_client()
        try:
            response = await client.request(method, url, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise UploadError(f"{method} failed: {e}", url=url) from e
        if response.is_error:
            raise UploadError(
                f"{method} rejected: {response.text[:200]}",
                status_code=response.status_code,
                url=url,
            )
        return response

    async def upload(self, payload: dict[str, Any]) -> bool:
        """Create one festival. Never raises."""
        try:
            await self._request("POST", self.url, json=payload)
        except UploadError as e:
            logger.error("strapi_upload_failed", error=str(e), **e.details)
            return False
        return True

    async def list_festivals(self, page: int, page_size: int = 100) -> dict[str, Any]:
        """One page of the festivals collection, raises UploadError."""
        response = await self._request(
            "GET",
            f"{self.base_url}/festivals",
            params={"pagination[page]": page, "pagination[pageSize]": page_size},
        )
        return response.json()

    async def delete_festival(self, document_id: str) -> None:
        await self._request("DELETE", f"{self.base_url}/festivals/{document_id}")


# ============================================================
# UPLOADER
# ============================================================


class FestivalUploader:
    """Geocodes when needed, builds the payload and uploads."""

    def __init__(self, strapi: StrapiClient, geocoder: GeoapifyGeocoder) -> None:
        self.strapi = strapi
        self.geocoder = geocoder

    async def process(self, record: FestivalRecord) -> bool:
        position = extract_coordinates(record)
        if position is None:
            query = location_query(record)
            position = await self.geocoder.geocode(query)
            if position is None:
                logger.warning("festival_not_geocoded", title=record.title, query=query)
                return False

        ok = await self.strapi.upload(build_payload(record, position))
        if ok:
            logger.info("festival_uploaded", title=record.title)
        return ok

    async def close(self) -> None:
        await self.strapi.close()
        await self.geocoder.close()
