"""Festival website configurations.

Three parser variants are covered:
- listing-and-detail pair sites (sagreinromagna.it / sagreinemilia.it)
- PHP calendar site (assosagre.it)
- single-portal site (viviromagna.it)
"""

from sagre_scraper.config.sources import (
    PARAGRAPH_SELECTORS,
    CoordinateSource,
    DateStrategy,
    DescriptionStrategy,
    FestivalSourceConfig,
    LocationStrategy,
    ProvinceCodeScope,
)
from sagre_scraper.core.festival_model import FestivalSource

SOCIAL_DOMAINS = ["facebook.com", "instagram.com"]

FESTIVAL_SOURCES: list[FestivalSourceConfig] = [
    # ============================================================
    # SAGRE IN ROMAGNA / EMILIA - one layout, two domains
    # ============================================================
    FestivalSourceConfig(
        slug="romagna_emilia",
        name="Sagre in Romagna / Sagre in Emilia",
        source=FestivalSource.SAGRE_IN_EMILIA,
        source_by_url={"romagna": FestivalSource.SAGRE_IN_ROMAGNA},
        start_urls=[
            "https://www.sagreinromagna.it",
            "https://www.sagreinemilia.it",
        ],
        listing_label="romagna-emilia-list-page",
        detail_label="romagna-emilia-festival-detail",
        detail_link_globs=[
            "https://www.sagreinromagna.it/sagre/**",
            "https://www.sagreinemilia.it/sagre/**",
        ],
        listing_link_globs=[
            "https://www.sagreinromagna.it/provincia/**",
            "https://www.sagreinemilia.it/provincia/**",
            "https://www.sagreinromagna.it/mese/**",
            "https://www.sagreinemilia.it/mese/**",
        ],
        date_strategy=DateStrategy.SELECTOR_FRAGMENTS,
        location_strategy=LocationStrategy.TEXT_BLOCK,
        location_selector="#recapiti span:has(.fa-map-marker)",
        province_code_scope=ProvinceCodeScope.PAGE,
        contact_exclude_domains=["sagreinromagna.it", "sagreinemilia.it"],
    ),
    # ============================================================
    # ASSOSAGRE - PHP calendar, Emilia-Romagna region (id_regioni=5)
    # ============================================================
    FestivalSourceConfig(
        slug="assosagre",
        name="Assosagre - Calendario Sagre",
        source=FestivalSource.ASSOSAGRE,
        start_urls=["https://www.assosagre.it/calendario_sagre.php?id_regioni=5"],
        listing_label="assosagre-list",
        detail_label="assosagre-detail",
        detail_link_selector='a[href*="calendario_sagre.php?id_sagra="]',
        title_selector=".nomesagra",
        date_strategy=DateStrategy.DAY_RANGE,
        date_selectors=[".sagradate"],
        location_strategy=LocationStrategy.MAP_LINK,
        location_selector=".sagrainfo a:has(i.icon-location)",
        coordinate_sources=[CoordinateSource.MAP_LINK, CoordinateSource.MAP_IFRAME],
        province_selectors=[],
        province_code_scope=ProvinceCodeScope.PAGE,
        image_exclude_patterns=["icon", "favicon"],
        paragraph_selectors=["p"],
        paragraph_min_length=20,
        paragraph_exclude=["Dove:", "Quando:"],
        description_strategy=DescriptionStrategy.JOINED_PARAGRAPHS,
        category_selectors=[".category", ".tag", ".tipo"],
        schedule_selectors=[],
        schedule_phrases=["Orari:", "dalle"],
        price_selectors=[".price", ".prezzo"],
        contact_exclude_domains=["assosagre.it", *SOCIAL_DOMAINS],
    ),
    # ============================================================
    # VIVIROMAGNA - portal with a dedicated sagre calendar
    # ============================================================
    FestivalSourceConfig(
        slug="viviromagna",
        name="ViviRomagna - Eventi e Sagre",
        source=FestivalSource.VIVIROMAGNA,
        start_urls=["https://www.viviromagna.it/eventi-sagre"],
        listing_label="viviromagna-list",
        detail_label="viviromagna-detail",
        detail_link_selector="ul.eventi_tre_colonne_template li.evento_tre_colonne_template",
        title_selector="h1.titoloevento.titolopagina",
        date_strategy=DateStrategy.LABELED_PERIOD,
        date_selectors=["div.titolo1"],
        date_label="periodo",
        location_strategy=LocationStrategy.DATA_ATTRIBUTES,
        location_selector="div.mappa_info_dett",
        coordinate_sources=[CoordinateSource.DATA_ATTRIBUTES],
        latitude_attribute="data-info-mappa-lat",
        longitude_attribute="data-info-mappa-lon",
        province_selectors=[],
        province_code_scope=ProvinceCodeScope.LOCATION,
        paragraph_selectors=[*PARAGRAPH_SELECTORS, "p"],
        paragraph_min_length=100,
        description_strategy=DescriptionStrategy.BLOCK_SELECTOR,
        description_selector="div.descrizione",
        price_selectors=[".prezzo", ".price"],
        contact_exclude_domains=["viviromagna.it"],
    ),
]
