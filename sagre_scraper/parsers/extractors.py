"""Field extractors over a parsed page.

Every function here is pure: it reads the document and the selector lists it
is given, never mutates the soup, and returns an empty value when nothing
matches.
"""

import re
from collections.abc import Iterable, Sequence

from bs4 import BeautifulSoup, Tag
from bs4.element import PreformattedString

from sagre_scraper.core.festival_model import Contacts, ImageRef, SocialMedia
from sagre_scraper.utils.text import clean_text
from sagre_scraper.utils.urls import get_domain, make_absolute_url

DEFAULT_IMAGE_EXCLUDE = ("logo", "icon", "favicon")
DEFAULT_PARAGRAPH_MIN_LENGTH = 20

PROVINCE_CODE_PATTERN = re.compile(r"\(([A-Z]{2})\)")

SOCIAL_DOMAINS = {
    "facebook": ("facebook.com",),
    "instagram": ("instagram.com",),
    "twitter": ("twitter.com", "x.com"),
}

_NON_CONTENT_TAGS = {"script", "style", "noscript", "template"}


def element_text(element: Tag | None) -> str:
    """Whitespace-collapsed text of an element, empty for None."""
    if element is None:
        return ""
    return clean_text(element.get_text(" "))


def select_all(soup: BeautifulSoup | Tag, selectors: Sequence[str]) -> list[Tag]:
    """Elements matching any selector, in document order, each once."""
    if not selectors:
        return []
    return soup.select(", ".join(selectors))


def extract_texts(soup: BeautifulSoup | Tag, selectors: Sequence[str]) -> list[str]:
    """Non-empty texts of the elements matching any selector."""
    texts = (element_text(el) for el in select_all(soup, selectors))
    return [text for text in texts if text]


def extract_title(soup: BeautifulSoup, custom_selector: str | None = None) -> str:
    """Page title: custom selector, then first <h1>, then <title> before "|"."""
    if custom_selector:
        title = element_text(soup.select_one(custom_selector))
        if title:
            return title

    title = element_text(soup.find("h1"))
    if title:
        return title

    if soup.title is not None:
        return clean_text(soup.title.get_text().split("|")[0])
    return ""


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def extract_metadata(soup: BeautifulSoup) -> dict[str, str]:
    """Description and Open Graph fields, empty strings when absent."""
    return {
        "meta_description": _meta_content(soup, name="description"),
        "og_image": _meta_content(soup, property="og:image"),
        "og_title": _meta_content(soup, property="og:title"),
    }


def extract_images(
    soup: BeautifulSoup,
    exclude_patterns: Sequence[str] = DEFAULT_IMAGE_EXCLUDE,
    base_url: str | None = None,
) -> list[ImageRef]:
    """All <img> sources except those matching an exclusion substring.

    Args:
        soup: Parsed page
        exclude_patterns: Case-insensitive substrings of unwanted sources
        base_url: Page URL for resolving relative sources

    Returns:
        Images with ``alt`` defaulted to an empty string
    """
    images: list[ImageRef] = []
    patterns = [p.lower() for p in exclude_patterns]

    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if not src:
            continue
        if any(pattern in src.lower() for pattern in patterns):
            continue
        images.append(ImageRef(src=make_absolute_url(src, base_url), alt=img.get("alt") or ""))

    return images


def extract_dates(soup: BeautifulSoup, selectors: Sequence[str]) -> list[str]:
    return extract_texts(soup, selectors)


def extract_categories(soup: BeautifulSoup, selectors: Sequence[str]) -> list[str]:
    return extract_texts(soup, selectors)


def extract_schedule(
    soup: BeautifulSoup,
    selectors: Sequence[str],
    phrases: Sequence[str] = (),
) -> list[str]:
    """Schedule texts from selectors, plus paragraphs mentioning a phrase."""
    schedule = extract_texts(soup, selectors)
    if phrases:
        for paragraph in soup.find_all("p"):
            text = element_text(paragraph)
            if text and text not in schedule and any(phrase in text for phrase in phrases):
                schedule.append(text)
    return schedule


def extract_prices(soup: BeautifulSoup, selectors: Sequence[str]) -> list[str]:
    return extract_texts(soup, selectors)


def extract_paragraphs(
    soup: BeautifulSoup,
    selectors: Sequence[str],
    min_length: int = DEFAULT_PARAGRAPH_MIN_LENGTH,
    exclude_substrings: Iterable[str] = (),
) -> list[str]:
    """Text blocks strictly longer than ``min_length`` characters."""
    excluded = list(exclude_substrings)
    return [
        text
        for text in extract_texts(soup, selectors)
        if len(text) > min_length and not any(needle in text for needle in excluded)
    ]


def extract_province(soup: BeautifulSoup, selectors: Sequence[str]) -> str:
    """Text of the first element matching the province selectors."""
    matches = select_all(soup, selectors)
    return element_text(matches[0]) if matches else ""


def extract_province_code(text: str | None) -> str:
    """Two-letter province code in parentheses, e.g. "Lugo (RA)" -> "RA"."""
    match = PROVINCE_CODE_PATTERN.search(text or "")
    return match.group(1) if match else ""


def _domain_matches(href: str, domain: str) -> bool:
    host = get_domain(href)
    return host == domain or host.endswith("." + domain)


def extract_contacts(soup: BeautifulSoup, exclude_domains: Sequence[str] = ()) -> Contacts:
    """Phones from tel: links, emails from mailto: links, other absolute sites.

    Websites on any of ``exclude_domains`` (the source itself, social
    networks for some sources) are left out.
    """
    phones: list[str] = []
    emails: list[str] = []
    websites: list[str] = []

    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        lowered = href.lower()
        if lowered.startswith("tel:"):
            phone = href[4:].strip()
            if phone:
                phones.append(phone)
        elif lowered.startswith("mailto:"):
            email = href[7:].split("?")[0].strip()
            if email:
                emails.append(email)
        elif lowered.startswith("http"):
            if not any(_domain_matches(href, domain) for domain in exclude_domains):
                websites.append(href)

    return Contacts(phones=phones, emails=emails, websites=websites)


def extract_social_media(soup: BeautifulSoup) -> SocialMedia:
    """First link per network, None where the page has none."""
    found: dict[str, str | None] = dict.fromkeys(SOCIAL_DOMAINS)

    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        for network, domains in SOCIAL_DOMAINS.items():
            if found[network] is None and any(_domain_matches(href, d) for d in domains):
                found[network] = href

    return SocialMedia(**found)


def extract_full_text(soup: BeautifulSoup) -> str:
    """Visible text of the whole body, whitespace collapsed."""
    root = soup.body or soup
    strings = (
        s
        for s in root.find_all(string=True)
        if not isinstance(s, PreformattedString) and s.parent.name not in _NON_CONTENT_TAGS
    )
    return clean_text(" ".join(strings))
