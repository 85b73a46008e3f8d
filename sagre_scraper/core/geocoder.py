"""Geocoding service using the Geoapify search API.

Used only for festivals that carry no coordinates of their own. Every failure
(timeout, HTTP error, empty result) is soft: the caller gets None.
"""

from dataclasses import dataclass

import httpx

from sagre_scraper.logging import get_logger

logger = get_logger(__name__)

GEOAPIFY_SEARCH_URL = "https://api.geoapify.com/v1/geocode/search"
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


class GeoapifyGeocoder:
    """Geocoder backed by Geoapify.

    Features:
    - In-memory cache per query, misses included
    - Short timeout, results restricted to one Italian-language match
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self._cache: dict[str, Coordinates | None] = {}
        self._http_client = client

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def geocode(self, query: str | None) -> Coordinates | None:
        """Resolve free text to coordinates.

        Args:
            query: Address or place text

        Returns:
            Coordinates of the best match, or None
        """
        if not query or not query.strip():
            return None

        key = query.strip().lower()
        if key in self._cache:
            return self._cache[key]

        client = await self.get_client()
        params = {
            "text": query.strip(),
            "apiKey": self.api_key,
            "limit": 1,
            "lang": "it",
            "format": "json",
        }

        try:
            response = await client.get(GEOAPIFY_SEARCH_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException:
            logger.warning("geocode_timeout", query=query, timeout=self.timeout)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("geocode_error", query=query, error=str(e))
            return None

        if not isinstance(body, dict):
            logger.warning("geocode_error", query=query, error=f"unexpected body: {type(body).__name__}")
            return None
        results = body.get("results") or []

        coords = None
        if results:
            try:
                coords = Coordinates(lat=float(results[0]["lat"]), lng=float(results[0]["lon"]))
            except (KeyError, TypeError, ValueError):
                logger.warning("geocode_bad_result", query=query)

        self._cache[key] = coords
        if coords is None:
            logger.info("geocode_no_match", query=query)
        else:
            logger.debug("geocode_hit", query=query, lat=coords.lat, lng=coords.lng)
        return coords
