"""JSON-LD lookup for schema.org Event / FoodEvent islands."""

import json
from collections.abc import Iterator
from typing import Any

from bs4 import BeautifulSoup
from pydantic import ValidationError

from sagre_scraper.core.festival_model import STRUCTURED_EVENT_TYPES, StructuredData
from sagre_scraper.logging import get_logger

logger = get_logger(__name__)


def _flatten_graph(payload: Any) -> Iterator[dict[str, Any]]:
    if isinstance(payload, dict):
        if isinstance(payload.get("@graph"), list):
            for node in payload["@graph"]:
                yield from _flatten_graph(node)
        else:
            yield payload
    elif isinstance(payload, list):
        for item in payload:
            yield from _flatten_graph(item)


def _is_event_node(node: dict[str, Any]) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return any(t in STRUCTURED_EVENT_TYPES for t in node_type)
    return node_type in STRUCTURED_EVENT_TYPES


def iter_jsonld_payloads(soup: BeautifulSoup, url: str | None = None) -> Iterator[Any]:
    """Decoded JSON of every ld+json script; malformed blocks are skipped."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            yield json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("jsonld_malformed", url=url, error=str(e))


def find_structured_event(soup: BeautifulSoup, url: str | None = None) -> StructuredData | None:
    """First schema-valid Event or FoodEvent on the page.

    Nodes of other types (Organization, BreadcrumbList ...) are ignored
    silently; event nodes that fail validation are logged and skipped.
    """
    for payload in iter_jsonld_payloads(soup, url):
        for node in _flatten_graph(payload):
            if not _is_event_node(node):
                continue
            try:
                return StructuredData.model_validate(node)
            except ValidationError as e:
                logger.warning(
                    "jsonld_invalid",
                    url=url,
                    fields=[".".join(str(p) for p in err["loc"]) for err in e.errors()],
                )
    return None
