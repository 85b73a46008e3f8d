"""URL validation and normalization utilities."""

import re
from fnmatch import fnmatchcase
from urllib.parse import unquote, urljoin, urlparse

# Map links carry "lat,lng" in one of these query parameters
MAP_COORDS_PATTERN = re.compile(
    r"[?&](?:q|ll|query|center)=(-?\d{1,3}(?:\.\d+)?)\s*,\s*(-?\d{1,3}(?:\.\d+)?)"
)


def is_valid_url(url: str | None) -> bool:
    """Check if a string is an absolute http(s) URL.

    Args:
        url: URL string to validate

    Returns:
        True if valid URL, False otherwise
    """
    if not url:
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False
    return result.scheme in ("http", "https") and bool(result.netloc)


def make_absolute_url(url: str | None, base_url: str | None) -> str | None:
    """Resolve a possibly relative URL against the page URL.

    Args:
        url: Href or src as found in the page
        base_url: URL of the page; when missing, the URL is returned unchanged

    Returns:
        Absolute URL, or None for empty input
    """
    if not url:
        return None

    url = url.strip()
    if url.startswith("//"):
        return "https:" + url
    if not base_url or is_valid_url(url):
        return url
    return urljoin(base_url, url)


def get_domain(url: str | None) -> str:
    """Host name without a leading "www.", empty for invalid URLs."""
    if not url:
        return ""
    try:
        host = urlparse(url).netloc.lower()
    except ValueError:
        return ""
    return host.removeprefix("www.")


def matches_any(url: str, patterns: list[str] | tuple[str, ...]) -> bool:
    """Check a URL against glob patterns ("**" and "*" both match across "/")."""
    return any(fnmatchcase(url, pattern) for pattern in patterns)


def extract_map_coordinates(url: str | None) -> tuple[float, float] | None:
    """Parse the "lat,lng" pair from a maps link or embed URL.

    Handles encoded commas ("q=44.1%2C12.3") and returns None when no pair is
    present or the values are outside valid ranges.
    """
    if not url:
        return None

    match = MAP_COORDS_PATTERN.search(unquote(url))
    if not match:
        return None

    lat, lng = float(match.group(1)), float(match.group(2))
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return lat, lng
