"""Tests for geocoding, Strapi upload and past-festival cleanup."""

import json
from datetime import date

import httpx
import pytest

from sagre_scraper.core.cleanup import cleanup_past_festivals, is_past_festival
from sagre_scraper.core.festival_model import CandidateRecord, FestivalSource
from sagre_scraper.core.geocoder import GeoapifyGeocoder
from sagre_scraper.core.strapi_client import (
    NO_DESCRIPTION,
    Coordinates,
    FestivalUploader,
    StrapiClient,
    build_payload,
    extract_coordinates,
    location_query,
    rich_text,
)
from sagre_scraper.core.validator import validate
from sagre_scraper.utils.text import slugify

STRAPI_URL = "https://cms.example.it/api/festivals"


def record(**overrides):
    candidate = CandidateRecord(
        url="https://www.viviromagna.it/eventi/sagra",
        title="Sagra della Patata",
        scraped_at="2025-06-01T10:00:00+00:00",
        source=FestivalSource.VIVIROMAGNA,
    )
    for key, value in overrides.items():
        setattr(candidate, key, value)
    return validate(candidate).unwrap()


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestPayload:
    """Tests for payload building."""

    def test_slug(self):
        """Slugs are lowercase, accent-free and hyphen-separated."""
        assert slugify("Sagra dei Tortelli — Città") == "sagra-dei-tortelli-citta"
        assert slugify("  Sagra dei Tortelli — Città!  ") == "sagra-dei-tortelli-citta"
        assert slugify("Festa dell'Uva") == "festa-dell-uva"

    def test_payload(self):
        """Dates are ISO days and the description is split on blank lines."""
        festival = record(
            start_date="2025-07-04T18:00:00",
            end_date="2025-07-06",
            paragraphs=["Primo blocco.", "Secondo blocco."],
        )
        payload = build_payload(festival, Coordinates(lat=44.1, lng=12.2))["data"]

        assert payload["title"] == "Sagra della Patata"
        assert payload["slug"] == "sagra-della-patata"
        assert payload["startDate"] == "2025-07-04"
        assert payload["endDate"] == "2025-07-06"
        assert payload["position"] == {"lat": 44.1, "lng": 12.2}
        texts = [block["content"][0]["text"] for block in payload["description"]["content"]]
        assert texts == ["Primo blocco.", "Secondo blocco."]

    def test_payload_without_dates_or_text(self):
        """Missing dates are omitted and the description has a placeholder."""
        payload = build_payload(record(), Coordinates(lat=0.0, lng=0.0))["data"]
        assert "startDate" not in payload
        assert payload["description"] == rich_text(NO_DESCRIPTION)


class TestLocation:
    """Tests for coordinate lookup and geocoding queries."""

    def test_coordinates_from_structured_data(self):
        """Synthesized structured data carries the page coordinates."""
        candidate = CandidateRecord(
            url="https://www.assosagre.it/calendario_sagre.php?id_sagra=3",
            title="Sagra",
            scraped_at="2025-06-01T10:00:00+00:00",
            source=FestivalSource.ASSOSAGRE,
            location="Lugo (RA)",
        )
        candidate.set_coordinates(44.42, 11.91)
        festival = validate(candidate).unwrap()

        assert extract_coordinates(festival) == Coordinates(lat=44.42, lng=11.91)

    def test_query_from_postal_address(self):
        """Address parts are joined, most specific first."""
        festival = record(
            location={
                "@type": "Place",
                "name": "Piazza",
                "address": {
                    "@type": "PostalAddress",
                    "streetAddress": "Piazza Saffi 1",
                    "addressLocality": "Forlì",
                    "addressCountry": {"name": "IT"},
                },
            }
        )
        assert location_query(festival) == "Piazza Saffi 1, Forlì, IT"

    def test_query_fallbacks(self):
        """Plain locations, then the province; never a bare country."""
        assert location_query(record(location="Budrio")) == "Budrio, Italia"
        assert location_query(record(province="Rimini")) == "Rimini, Italia"
        assert location_query(record()) is None


class TestGeocoder:
    """Tests for the Geoapify geocoder."""

    @pytest.mark.asyncio
    async def test_hit_is_cached(self):
        """A second lookup of the same query makes no request."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"results": [{"lat": 44.5, "lon": 11.3}]})

        geocoder = GeoapifyGeocoder("key", client=mock_client(handler))
        first = await geocoder.geocode("Budrio, Italia")
        second = await geocoder.geocode(" budrio, italia ")
        await geocoder.close()

        assert first == second == Coordinates(lat=44.5, lng=11.3)
        assert len(calls) == 1
        assert calls[0].url.params["text"] == "Budrio, Italia"
        assert calls[0].url.params["apiKey"] == "key"

    @pytest.mark.asyncio
    async def test_failures_are_soft(self):
        """HTTP errors, timeouts and empty results all give None."""

        def handler(request):
            text = request.url.params["text"]
            if text == "timeout":
                raise httpx.ReadTimeout("slow", request=request)
            if text == "broken":
                return httpx.Response(500)
            return httpx.Response(200, json={"results": []})

        geocoder = GeoapifyGeocoder("key", client=mock_client(handler))
        assert await geocoder.geocode("timeout") is None
        assert await geocoder.geocode("broken") is None
        assert await geocoder.geocode("nowhere") is None
        assert await geocoder.geocode("") is None
        await geocoder.close()

    @pytest.mark.asyncio
    async def test_non_object_body_is_soft(self):
        """A JSON list or scalar body gives None instead of raising."""

        def handler(request):
            if request.url.params["text"] == "Forli, Italia":
                return httpx.Response(200, json=[])
            return httpx.Response(200, json="unavailable")

        geocoder = GeoapifyGeocoder("key", client=mock_client(handler))
        assert await geocoder.geocode("Forli, Italia") is None
        assert await geocoder.geocode("Cesena, Italia") is None
        await geocoder.close()


class TestUpload:
    """Tests for the Strapi client and uploader."""

    @pytest.mark.asyncio
    async def test_upload_success(self):
        """The payload is posted with the bearer token."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"data": {"documentId": "abc"}})

        client = StrapiClient(STRAPI_URL, token="secret", client=mock_client(handler))
        assert await client.upload({"data": {"title": "x"}}) is True
        assert seen == {"auth": "Bearer secret", "body": {"data": {"title": "x"}}}
        await client.close()

    @pytest.mark.asyncio
    async def test_upload_failure_is_false(self):
        """Rejections and transport errors become False."""

        def handler(request):
            if request.headers.get("Authorization"):
                return httpx.Response(400, text="bad request")
            raise httpx.ConnectError("down", request=request)

        rejected = StrapiClient(STRAPI_URL, token="t", client=mock_client(handler))
        unreachable = StrapiClient(STRAPI_URL, client=mock_client(handler))
        assert await rejected.upload({"data": {}}) is False
        assert await unreachable.upload({"data": {}}) is False

    @pytest.mark.asyncio
    async def test_uploader_geocodes_when_needed(self):
        """Records without coordinates are geocoded before upload."""

        def geo_handler(request):
            return httpx.Response(200, json={"results": [{"lat": 44.06, "lon": 12.56}]})

        posted = []

        def strapi_handler(request):
            posted.append(json.loads(request.content))
            return httpx.Response(201, json={})

        uploader = FestivalUploader(
            StrapiClient(STRAPI_URL, client=mock_client(strapi_handler)),
            GeoapifyGeocoder("key", client=mock_client(geo_handler)),
        )
        assert await uploader.process(record(location="Rimini (RN)")) is True
        await uploader.close()

        assert posted[0]["data"]["position"] == {"lat": 44.06, "lng": 12.56}

    @pytest.mark.asyncio
    async def test_uploader_skips_ungeocodable(self):
        """No coordinates and no query means no upload."""

        def handler(request):
            raise AssertionError("no request expected")

        uploader = FestivalUploader(
            StrapiClient(STRAPI_URL, client=mock_client(handler)),
            GeoapifyGeocoder("key", client=mock_client(handler)),
        )
        assert await uploader.process(record()) is False


class TestCleanup:
    """Tests for past-festival cleanup."""

    def test_is_past_festival(self):
        """End date decides, then start date; unknown dates are kept."""
        today = date(2025, 6, 15)
        assert is_past_festival({"endDate": "2025-06-14"}, today)
        assert not is_past_festival({"endDate": "2025-06-15", "startDate": "2025-06-01"}, today)
        assert is_past_festival({"startDate": "2025-01-01"}, today)
        assert not is_past_festival({}, today)

    @staticmethod
    def store(fail_ids=()):
        pages = {
            1: [
                {"documentId": "a", "title": "Vecchia", "endDate": "2024-09-01"},
                {"documentId": "b", "title": "Futura", "endDate": "2026-09-01"},
            ],
            2: [{"documentId": "c", "title": "Passata", "startDate": "2024-10-10"}],
        }
        deleted = []

        def handler(request):
            if request.method == "GET":
                page = int(request.url.params["pagination[page]"])
                return httpx.Response(
                    200, json={"data": pages[page], "meta": {"pagination": {"pageCount": 2}}}
                )
            document_id = request.url.path.rsplit("/", 1)[-1]
            if document_id in fail_ids:
                return httpx.Response(500, text="locked")
            deleted.append(document_id)
            return httpx.Response(204)

        return StrapiClient(STRAPI_URL, client=mock_client(handler)), deleted

    @pytest.mark.asyncio
    async def test_deletes_across_pages(self):
        """Past festivals from every page are deleted."""
        client, deleted = self.store()
        result = await cleanup_past_festivals(client, today=date(2025, 6, 15))

        assert deleted == ["a", "c"]
        assert (result.total, result.deleted, result.failed) == (2, 2, 0)

    @pytest.mark.asyncio
    async def test_dry_run(self):
        """Dry runs report without deleting."""
        client, deleted = self.store()
        result = await cleanup_past_festivals(client, dry_run=True, today=date(2025, 6, 15))

        assert deleted == []
        assert result.total == 2
        assert [entry.status for entry in result.entries] == ["skipped", "skipped"]

    @pytest.mark.asyncio
    async def test_failed_delete_continues(self):
        """One rejected delete does not stop the others."""
        client, deleted = self.store(fail_ids={"a"})
        result = await cleanup_past_festivals(client, today=date(2025, 6, 15))

        assert deleted == ["c"]
        assert result.failed == 1
        assert result.entries[0].status == "failed"
        assert "locked" in result.entries[0].error
