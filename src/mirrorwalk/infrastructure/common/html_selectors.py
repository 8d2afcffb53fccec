"""CSS-selector-based HTML extraction helpers.

Thin wrappers around BeautifulSoup shared by the host extractors and the
redirect walker.  Every helper tolerates missing elements and returns an
empty value instead of raising.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (``lxml`` parser)."""
    return BeautifulSoup(html, "lxml")


def strip_tags(html: str) -> str:
    """Return the plain text content of *html*, trimmed."""
    return parse_html(html).get_text().strip()


def extract_text(
    element: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Extract text from the first matching child element."""
    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            text = match.get_text(strip=True)
            if text:
                return text
    return default


def is_absolute_http(url: str) -> bool:
    try:
        return urlparse(url).scheme in ("http", "https")
    except ValueError:
        return False


def extract_links(
    element: BeautifulSoup | Tag,
    selector: str = "a[href]",
    *,
    base_url: str = "",
) -> list[dict[str, str]]:
    """Extract all links matching *selector*.

    Returns a list of ``{"text": ..., "href": ...}`` dicts in document
    order.  Relative hrefs are resolved against *base_url* when given;
    hrefs that do not parse as URLs are skipped.
    """
    results: list[dict[str, str]] = []
    for tag in element.select(selector):
        href = tag.get("href")
        if not href:
            continue
        href_str = str(href).strip()
        try:
            if base_url:
                href_str = urljoin(base_url, href_str)
            urlparse(href_str)
        except ValueError:
            continue
        results.append(
            {
                "text": tag.get_text(" ", strip=True),
                "href": href_str,
            }
        )
    return results
