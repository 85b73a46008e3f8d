"""Pydantic models for festival records.

Field names are snake_case in Python and camelCase on the wire
(``scrapedAt``, ``metaDescription``, ``structuredData`` ...), matching the
dataset and JSON-LD conventions.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sagre_scraper.utils.urls import is_valid_url

STRUCTURED_EVENT_TYPES = ("Event", "FoodEvent")
TIME_PART_PATTERN = re.compile(r"\d[T ]\d{2}")


class FestivalSource(str, Enum):
    """Closed set of originating websites."""

    SAGRE_IN_ROMAGNA = "sagreinromagna.it"
    SAGRE_IN_EMILIA = "sagreinemilia.it"
    ASSOSAGRE = "assosagre.it"
    VIVIROMAGNA = "viviromagna.it"


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageRef(CamelModel):
    src: str
    alt: str = ""


class Contacts(CamelModel):
    phones: list[str]
    emails: list[str]
    websites: list[str]


class SocialMedia(CamelModel):
    facebook: str | None = None
    instagram: str | None = None
    twitter: str | None = None


class GeoCoordinates(CamelModel):
    """schema.org GeoCoordinates; JSON-LD often carries the numbers as strings."""

    type: str = Field(default="GeoCoordinates", alias="@type")
    latitude: float
    longitude: float


class PostalAddress(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    type: str = Field(default="PostalAddress", alias="@type")
    street_address: str | None = None
    address_locality: str | None = None
    address_region: str | None = None
    postal_code: str | None = None
    address_country: str | dict[str, Any] | None = None


class Place(CamelModel):
    """Structured place: name plus address and optional coordinates."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    type: str = Field(default="Place", alias="@type")
    name: str | None = None
    address: PostalAddress | str | None = None
    geo: GeoCoordinates | None = None


class StructuredData(CamelModel):
    """JSON-LD event narrowed to the fields the pipeline reads.

    Validation is the narrowing step: anything that is not an ``Event`` or
    ``FoodEvent`` with the expected field shapes is rejected.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    type: Literal["Event", "FoodEvent"] = Field(alias="@type")
    name: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    location: Place | str | None = None
    description: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def pick_event_type(cls, v: Any) -> Any:
        # "@type": ["Event", "FoodEvent"] is valid JSON-LD
        if isinstance(v, list):
            for candidate in v:
                if candidate in STRUCTURED_EVENT_TYPES:
                    return candidate
        return v

    @field_validator("location", mode="before")
    @classmethod
    def first_location(cls, v: Any) -> Any:
        if isinstance(v, list):
            return v[0] if v else None
        return v


class FestivalRecord(CamelModel):
    """Validated festival record, the only shape that reaches the sink."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    # Always present
    url: str
    title: Annotated[str, Field(min_length=1)]
    scraped_at: str
    source: FestivalSource

    # Structured data and fields promoted from it
    structured_data: StructuredData | None = None
    name: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    location: Place | str | None = None
    description: str | None = None

    # HTML-derived, required but possibly empty
    meta_description: str
    og_image: str
    og_title: str
    dates: list[str]
    province: str
    images: list[ImageRef]
    paragraphs: list[str]
    full_text: str
    contacts: Contacts | None = None
    social_media: SocialMedia | None = None
    categories: list[str]
    schedule: list[str]
    prices: list[str]

    @field_validator("url")
    @classmethod
    def url_is_absolute(cls, v: str) -> str:
        if not is_valid_url(v):
            raise ValueError("must be an absolute http(s) URL")
        return v

    @field_validator("scraped_at")
    @classmethod
    def scraped_at_is_iso(cls, v: str) -> str:
        try:
            isoparse(v)
        except (ValueError, OverflowError) as e:
            raise ValueError("must be an ISO-8601 timestamp") from e
        if not TIME_PART_PATTERN.search(v):
            raise ValueError("must be an ISO-8601 timestamp, not a bare date")
        return v

    @property
    def location_name(self) -> str:
        return location_name(self.location)

    def to_output(self) -> dict[str, Any]:
        """Dataset representation: camelCase keys, absent optionals omitted."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.social_media is not None:
            # Null social links are part of the shape, keep them
            data["socialMedia"] = self.social_media.model_dump(mode="json")
        return data


def location_name(location: Place | str | dict | None) -> str:
    """Plain-text name of a location in either of its shapes."""
    if location is None:
        return ""
    if isinstance(location, str):
        return location
    if isinstance(location, dict):
        return str(location.get("name") or "")
    return location.name or ""


def _dump(value: Any) -> Any:
    if isinstance(value, SocialMedia):
        return value.model_dump(mode="json")
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass
class CandidateRecord:
    """Mutable working record built incrementally while parsing one page."""

    url: str
    title: str
    scraped_at: str
    source: FestivalSource | str

    structured_data: StructuredData | None = None
    name: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    location: Place | str | None = None
    description: str | None = None

    meta_description: str = ""
    og_image: str = ""
    og_title: str = ""
    dates: list[str] = field(default_factory=list)
    province: str = ""
    images: list[ImageRef] = field(default_factory=list)
    paragraphs: list[str] = field(default_factory=list)
    full_text: str = ""
    contacts: Contacts | None = None
    social_media: SocialMedia | None = None
    categories: list[str] = field(default_factory=list)
    schedule: list[str] = field(default_factory=list)
    prices: list[str] = field(default_factory=list)

    def apply_structured_data(self, data: StructuredData) -> None:
        """Take JSON-LD fields as the source of truth for what they provide."""
        self.structured_data = data
        self.name = data.name
        self.start_date = data.start_date
        self.end_date = data.end_date
        self.location = data.location
        self.description = data.description

    def set_coordinates(self, latitude: float, longitude: float) -> None:
        """Record explicit coordinates as synthesized structured data."""
        geo = GeoCoordinates(latitude=latitude, longitude=longitude)
        if self.structured_data is None:
            self.structured_data = StructuredData(
                type="Event",
                name=self.title,
                start_date=self.start_date,
                end_date=self.end_date,
                location=Place(name=location_name(self.location) or None, geo=geo),
            )
            return
        place = self.structured_data.location
        if isinstance(place, Place):
            place.geo = geo
        else:
            self.structured_data.location = Place(name=place or None, geo=geo)

    def has_coordinates(self) -> bool:
        for place in (self.location, self.structured_data and self.structured_data.location):
            if isinstance(place, Place) and place.geo is not None:
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name, value in self.__dict__.items():
            if value is None:
                continue
            data[to_camel(name)] = _dump(value)
        return data
