"""Text cleaning utilities."""

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace to single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def strip_accents(text: str) -> str:
    """Remove diacritics ("Città" -> "Citta")."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def slugify(text: str | None) -> str:
    """Build a URL slug from a title.

    Lowercases, strips diacritics and collapses every run of non-alphanumeric
    characters into a single hyphen, without leading or trailing hyphens.

    >>> slugify("Sagra dei Tortelli — Città")
    'sagra-dei-tortelli-citta'
    """
    if not text:
        return ""
    return _NON_ALNUM.sub("-", strip_accents(text).lower()).strip("-")


def normalize_key_part(text: str | None) -> str:
    """Lowercase and trim a value used in an identity key."""
    return (text or "").strip().lower()
