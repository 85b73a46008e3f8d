"""Tests for the source-driven festival parser."""

from datetime import date

import pytest

from pages import (
    ASSOSAGRE_DETAIL_HTML,
    ASSOSAGRE_LIST_HTML,
    ROMAGNA_DETAIL_HTML,
    VIVIROMAGNA_DETAIL_HTML,
    VIVIROMAGNA_LIST_HTML,
    viviromagna_html,
)
from sagre_scraper.config.sources import CoordinateSource, LocationStrategy
from sagre_scraper.core.exceptions import MissingFieldError, RecordValidationError
from sagre_scraper.core.festival_model import FestivalSource, Place
from sagre_scraper.parsers import ParseStatus

ROMAGNA_URL = "https://www.sagreinromagna.it/sagre/sagra-del-tortello"
ASSOSAGRE_URL = "https://www.assosagre.it/calendario_sagre.php?id_sagra=101"
VIVIROMAGNA_URL = "https://www.viviromagna.it/eventi/sagra-del-cappelletto"


class TestRomagnaEmilia:
    """Tests for the sagreinromagna / sagreinemilia layout."""

    def test_food_event_page(self, make_parser, make_page):
        """JSON-LD dates win and HTML fills the remaining fields."""
        outcome = make_parser("romagna_emilia").parse_detail(make_page(ROMAGNA_DETAIL_HTML, ROMAGNA_URL))

        assert outcome.status == ParseStatus.ACCEPTED
        record = outcome.record
        assert record.source == FestivalSource.SAGRE_IN_ROMAGNA
        assert record.title == "Sagra del Tortello"
        assert record.scraped_at == "2025-01-01T09:30:00+00:00"
        assert record.structured_data.type == "FoodEvent"
        assert record.start_date == "2025-11-07"
        assert record.end_date == "2025-11-09"
        assert record.dates == ["7-9 Novembre 2025"]
        assert record.location == "Castel San Pietro Terme (BO)"
        assert record.province == "Bologna"
        assert record.categories == ["Gastronomia"]
        assert record.prices == ["Menu completo 25 euro"]
        assert record.paragraphs == ["Tre giorni di tortelli fatti a mano dalle azdore del paese."]
        assert record.description is None
        assert record.contacts.phones == ["+39 051 940000"]
        assert "https://www.tortello.it" in record.contacts.websites
        assert not any("sagreinromagna" in site for site in record.contacts.websites)

    def test_unnamed_structured_place_keeps_address(self, make_parser, make_page):
        """HTML text names a JSON-LD place without replacing its address."""
        html = ROMAGNA_DETAIL_HTML.replace(
            '"endDate": "2025-11-09"}',
            '"endDate": "2025-11-09", "location": {"@type": "Place", "address": '
            '{"@type": "PostalAddress", "streetAddress": "Via Roma 1", "addressLocality": "Imola"}}}',
        )
        outcome = make_parser("romagna_emilia").parse_detail(make_page(html, ROMAGNA_URL))
        location = outcome.record.location

        assert isinstance(location, Place)
        assert location.name == "Castel San Pietro Terme (BO)"
        assert location.address.street_address == "Via Roma 1"
        assert location.address.address_locality == "Imola"

    def test_output_shape(self, make_parser, make_page):
        """The dataset row uses camelCase keys and keeps null social links."""
        outcome = make_parser("romagna_emilia").parse_detail(make_page(ROMAGNA_DETAIL_HTML, ROMAGNA_URL))
        row = outcome.record.to_output()

        assert row["source"] == "sagreinromagna.it"
        assert row["structuredData"]["@type"] == "FoodEvent"
        assert row["socialMedia"]["instagram"] is None
        assert row["ogImage"] == "https://www.sagreinromagna.it/img/tortello.jpg"
        assert "description" not in row

    def test_emilia_url_resolves_source(self, make_parser, make_page):
        """The emilia domain keeps the default identifier."""
        url = "https://www.sagreinemilia.it/sagre/sagra-del-tortello"
        outcome = make_parser("romagna_emilia").parse_detail(make_page(ROMAGNA_DETAIL_HTML, url))
        assert outcome.record.source == FestivalSource.SAGRE_IN_EMILIA

    def test_listing_globs(self, make_parser, make_page):
        """Detail and listing links are split by glob; other links ignored."""
        html = """
            <a href="/sagre/sagra-del-tortello">a</a>
            <a href="/sagre/sagra-del-tortello#commenti">a again</a>
            <a href="/provincia/bologna">prov</a>
            <a href="/mese/novembre">mese</a>
            <a href="/contatti">contatti</a>
        """
        page = make_page(html, "https://www.sagreinromagna.it/", "romagna-emilia-list-page")
        make_parser("romagna_emilia").handle_listing(page)

        assert page.enqueued == [
            ("https://www.sagreinromagna.it/sagre/sagra-del-tortello", "romagna-emilia-festival-detail"),
            ("https://www.sagreinromagna.it/provincia/bologna", "romagna-emilia-list-page"),
            ("https://www.sagreinromagna.it/mese/novembre", "romagna-emilia-list-page"),
        ]


class TestAssosagre:
    """Tests for the assosagre calendar."""

    def test_detail(self, make_parser, make_page):
        """Day-range dates, map-link coordinates and joined description."""
        outcome = make_parser("assosagre").parse_detail(make_page(ASSOSAGRE_DETAIL_HTML, ASSOSAGRE_URL))

        assert outcome.status == ParseStatus.ACCEPTED
        record = outcome.record
        assert record.source == FestivalSource.ASSOSAGRE
        assert record.title == "Sagra della Lumaca"
        assert record.dates == ["31 Ottobre 1-2 Novembre 2025"]
        assert record.start_date == "2025-10-31"
        assert record.end_date == "2025-11-02"
        assert record.location == "Budrio (BO)"
        assert record.province == "BO"
        assert record.schedule == ["Orari: dalle 19:00 alle 23:00"]
        assert record.prices == ["Ingresso gratuito"]
        assert record.description.startswith("La tradizionale sagra della lumaca")
        assert [img.src for img in record.images] == ["https://www.assosagre.it/foto/lumaca.jpg"]
        assert record.social_media.facebook == "https://www.facebook.com/sagralumaca"

    def test_map_link_beats_iframe(self, make_parser, make_page):
        """Coordinates come from the first source in priority order."""
        outcome = make_parser("assosagre").parse_detail(make_page(ASSOSAGRE_DETAIL_HTML, ASSOSAGRE_URL))
        place = outcome.record.structured_data.location

        assert outcome.record.structured_data.type == "Event"
        assert isinstance(place, Place)
        assert place.name == "Budrio (BO)"
        assert place.geo.latitude == pytest.approx(44.5401)
        assert place.geo.longitude == pytest.approx(11.5301)

    def test_iframe_fallback(self, make_parser, make_page):
        """Without a usable map link the embedded map is used."""
        html = ASSOSAGRE_DETAIL_HTML.replace("maps?q=44.5401,11.5301", "place/Budrio")
        outcome = make_parser("assosagre").parse_detail(make_page(html, ASSOSAGRE_URL))
        assert outcome.record.structured_data.location.geo.latitude == pytest.approx(40.0)

    def test_map_link_narrows_container(self, make_parser, make_page):
        """A container match is narrowed to its link for text and coordinates."""
        html = ASSOSAGRE_DETAIL_HTML.replace('<div class="sagrainfo">', '<div class="sagrainfo">Dove si trova:')
        outcome = make_parser("assosagre", location_selector=".sagrainfo").parse_detail(
            make_page(html, ASSOSAGRE_URL)
        )

        assert outcome.record.location == "Budrio (BO)"
        assert outcome.record.structured_data.location.geo.latitude == pytest.approx(44.5401)

    def test_text_block_reads_whole_container(self, make_parser, make_page):
        """The same container read as a text block keeps all of its text."""
        html = ASSOSAGRE_DETAIL_HTML.replace('<div class="sagrainfo">', '<div class="sagrainfo">Dove si trova:')
        parser = make_parser(
            "assosagre",
            location_selector=".sagrainfo",
            location_strategy=LocationStrategy.TEXT_BLOCK,
            coordinate_sources=[CoordinateSource.MAP_IFRAME],
        )
        outcome = parser.parse_detail(make_page(html, ASSOSAGRE_URL))

        assert outcome.record.location.startswith("Dove si trova:")
        assert outcome.record.location.endswith("Budrio (BO)")
        assert outcome.record.structured_data.location.geo.latitude == pytest.approx(40.0)

    def test_listing_selector(self, make_parser, make_page):
        """Detail links are deduplicated and made absolute."""
        page = make_page(
            ASSOSAGRE_LIST_HTML,
            "https://www.assosagre.it/calendario_sagre.php?id_regioni=5",
            "assosagre-list",
        )
        added = make_parser("assosagre").handle_listing(page)

        assert added == 2
        assert [url for url, _ in page.enqueued] == [
            "https://www.assosagre.it/calendario_sagre.php?id_sagra=101",
            "https://www.assosagre.it/calendario_sagre.php?id_sagra=102",
        ]


class TestViviRomagna:
    """Tests for the viviromagna portal."""

    def test_detail(self, make_parser, make_page):
        """Labeled period, data-attribute coordinates and block description."""
        outcome = make_parser("viviromagna").parse_detail(
            make_page(VIVIROMAGNA_DETAIL_HTML, VIVIROMAGNA_URL)
        )

        record = outcome.record
        assert record.source == FestivalSource.VIVIROMAGNA
        assert record.dates == ["Dal 8 al 9 novembre 2025"]
        assert record.start_date == "2025-11-08"
        assert record.end_date == "2025-11-09"
        assert record.location == "Piazza Saffi, Forlì (FC)"
        assert record.province == "FC"
        assert record.structured_data.location.geo.longitude == pytest.approx(12.0408)
        assert record.paragraphs == [record.description]
        assert "cappelletto romagnolo" in record.description
        assert record.social_media.instagram == "https://www.instagram.com/cappelletto"

    def test_listing_containers(self, make_parser, make_page):
        """The first anchor of each card is the detail link."""
        page = make_page(VIVIROMAGNA_LIST_HTML, "https://www.viviromagna.it/eventi-sagre", "viviromagna-list")
        make_parser("viviromagna").handle_listing(page)

        assert [url for url, _ in page.enqueued] == [
            "https://www.viviromagna.it/eventi/sagra-del-cappelletto",
            "https://www.viviromagna.it/eventi/festa-del-vino",
        ]


class TestFiltering:
    """Tests for skip decisions and failures."""

    def test_past_festival_skipped(self, make_parser, make_page, detector):
        """Ended festivals are skipped before the duplicate check."""
        html = viviromagna_html("Dal 8 al 9 novembre 2024")
        outcome = make_parser("viviromagna").parse_detail(make_page(html, VIVIROMAGNA_URL))

        assert outcome.status == ParseStatus.SKIPPED_PAST
        assert outcome.record is None
        assert len(detector) == 0

    def test_duplicate_across_urls(self, make_parser, make_page):
        """The same festival reached twice is accepted once."""
        parser = make_parser("viviromagna")
        first = parser.parse_detail(make_page(VIVIROMAGNA_DETAIL_HTML, VIVIROMAGNA_URL))
        second = parser.parse_detail(make_page(VIVIROMAGNA_DETAIL_HTML, VIVIROMAGNA_URL + "?ref=home"))

        assert first.status == ParseStatus.ACCEPTED
        assert second.status == ParseStatus.SKIPPED_DUPLICATE

    def test_same_title_other_month_is_new(self, make_parser, make_page):
        """A later edition of the same festival is not a duplicate."""
        parser = make_parser("viviromagna")
        parser.parse_detail(make_page(VIVIROMAGNA_DETAIL_HTML, VIVIROMAGNA_URL))
        outcome = parser.parse_detail(
            make_page(viviromagna_html("Dal 7 al 8 dicembre 2025"), VIVIROMAGNA_URL)
        )
        assert outcome.status == ParseStatus.ACCEPTED

    def test_missing_title(self, make_parser, make_page):
        """A page without any title raises MissingFieldError."""
        with pytest.raises(MissingFieldError) as exc_info:
            make_parser("assosagre").parse_detail(make_page("<p>vuoto</p>", ASSOSAGRE_URL))
        assert exc_info.value.field == "title"

    def test_invalid_record(self, make_parser, make_page):
        """Schema violations surface as RecordValidationError naming the field."""
        with pytest.raises(RecordValidationError) as exc_info:
            make_parser("viviromagna").parse_detail(
                make_page(VIVIROMAGNA_DETAIL_HTML, "ftp://www.viviromagna.it/eventi/x")
            )
        assert exc_info.value.fields == ["url"]

    def test_period_across_new_year_is_upcoming(self, make_parser, make_page):
        """A year-less period spanning New Year ends in the next year."""
        parser = make_parser("viviromagna", today=date(2025, 12, 20))
        outcome = parser.parse_detail(make_page(viviromagna_html("Dal 28 dicembre al 6 gennaio"), VIVIROMAGNA_URL))

        assert outcome.status == ParseStatus.ACCEPTED
        assert outcome.record.start_date == "2025-12-28"
        assert outcome.record.end_date == "2026-01-06"

    def test_year_less_dates_follow_reference_day(self, make_parser, make_page):
        """Dates without a year take the year of the parser's reference day."""
        parser = make_parser("viviromagna", today=date(2027, 3, 1))
        outcome = parser.parse_detail(make_page(viviromagna_html("Dal 8 al 9 novembre"), VIVIROMAGNA_URL))

        assert outcome.status == ParseStatus.ACCEPTED
        assert outcome.record.end_date == "2027-11-09"
