"""HTML extraction of product images, names, descriptions and links."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from readability import Document
from readability.readability import Unparseable

from .models import ImageCandidate
from .utils import collapse_whitespace, truncate

logger = logging.getLogger("catalog_enrich")

SOURCE_ATTRIBUTES = ("src", "data-src", "data-lazy-src")
EXCLUDED_MARKERS = ("data:", "base64", "placeholder", "empty")
BACKGROUND_PATTERN = re.compile(r"background-image\s*:\s*url\(\s*['\"]?([^'\")]+)['\"]?\s*\)", re.I)

NAME_SELECTORS = (
    "h1.product-name",
    "h1[data-product-name]",
    ".product-title h1",
    '[class*="producto"] h1',
    "h1",
)
DESCRIPTION_SELECTORS = (
    ".product-description",
    "[data-product-description]",
    ".description",
    '[class*="descripcion"]',
)
LINK_SELECTORS = (
    'a[href*="/productos/"]',
    'a[href*="/products/"]',
    ".product-link",
    '[class*="product-item"] a',
    'a[class*="product"]',
)
_MIN_NAME_CHARS = 3
_MIN_DESCRIPTION_CHARS = 10


def _is_excluded(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in EXCLUDED_MARKERS)


def _candidate_source(element: Tag) -> Optional[str]:
    """Return the first usable image reference on ``element``."""
    for attribute in SOURCE_ATTRIBUTES:
        value = element.get(attribute)
        if isinstance(value, str) and value.strip() and not _is_excluded(value):
            return value.strip()
    style = element.get("style")
    if isinstance(style, str):
        match = BACKGROUND_PATTERN.search(style)
        if match and not _is_excluded(match.group(1)):
            return match.group(1).strip()
    return None


def _resolve(src: str, base_url: str) -> Optional[str]:
    try:
        absolute = urljoin(base_url, src)
        scheme = urlparse(absolute).scheme
    except ValueError as exc:
        logger.debug("Invalid image URL %s: %s", src, exc)
        return None
    if scheme not in ("http", "https"):
        logger.debug("Skipping image URL %s with unsupported scheme", absolute)
        return None
    lowered = absolute.lower()
    if "data:" in lowered or "base64" in lowered:
        logger.debug("Skipping inline image URL %s", absolute)
        return None
    return absolute


def extract_image_urls(node: Tag, base_url: str, selectors: Sequence[str]) -> List[str]:
    """Collect absolute image URLs below ``node`` in selector priority order."""
    found: Dict[str, ImageCandidate] = {}
    for selector in selectors:
        for element in node.select(selector):
            src = _candidate_source(element)
            if not src:
                continue
            absolute = _resolve(src, base_url)
            if absolute and absolute not in found:
                found[absolute] = ImageCandidate(absolute)
    return [candidate.absolute_url for candidate in found.values()]


def extract_with_ancestors(
    node: Tag,
    base_url: str,
    selectors: Sequence[str],
    depth: int = 4,
) -> List[str]:
    """Extract images from ``node``, walking up to ``depth`` ancestors when it has none."""
    urls = extract_image_urls(node, base_url, selectors)
    current = node
    level = 0
    while not urls and level < depth:
        parent = current.parent
        if parent is None:
            break
        current = parent
        level += 1
        urls = extract_image_urls(current, base_url, selectors)
        if urls:
            logger.debug("Found %d image(s) on ancestor <%s> (level %d)", len(urls), current.name, level)
    return urls


def _first_text(soup: BeautifulSoup, selectors: Iterable[str], min_chars: int) -> Optional[str]:
    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = collapse_whitespace(element.get_text(" "))
        if len(text) > min_chars:
            return text
    return None


def extract_product_name(soup: BeautifulSoup, html: Optional[str] = None) -> Optional[str]:
    """Detect the product name shown on a product page."""
    name = _first_text(soup, NAME_SELECTORS, _MIN_NAME_CHARS)
    if name:
        return name
    if html:
        try:
            title = collapse_whitespace(Document(html).short_title() or "")
        except Unparseable as exc:
            logger.debug("Unable to read page title: %s", exc)
            return None
        if len(title) > _MIN_NAME_CHARS:
            return title
    return None


def extract_product_description(
    soup: BeautifulSoup,
    html: Optional[str] = None,
    max_chars: int = 300,
) -> str:
    """Find a product description, falling back to broader page content."""
    description = _first_text(soup, DESCRIPTION_SELECTORS, _MIN_DESCRIPTION_CHARS)
    if not description:
        meta = soup.find("meta", attrs={"name": "description"})
        if meta and meta.get("content"):
            description = collapse_whitespace(meta["content"])
    if not description:
        description = _first_text(soup, ("main", "article", '[role="main"]'), 0)
    if not description and html:
        try:
            summary_html = Document(html).summary(html_partial=True)
        except Unparseable as exc:
            logger.debug("Unable to summarise page: %s", exc)
        else:
            summary = BeautifulSoup(summary_html, "html.parser")
            description = collapse_whitespace(summary.get_text(" "))
    return truncate(description or "", max_chars)


def element_description(element: Tag, max_chars: int = 300) -> str:
    return truncate(collapse_whitespace(element.get_text(" ")), max_chars)


def discover_product_links(soup: BeautifulSoup, base_url: str, limit: int = 5) -> List[Tuple[str, str]]:
    """Return ``(name, url)`` pairs for products listed on a search results page."""
    for selector in LINK_SELECTORS:
        links: Dict[str, str] = {}
        for anchor in soup.select(selector):
            href = anchor.get("href")
            text = collapse_whitespace(anchor.get_text(" "))
            if not isinstance(href, str) or not href.strip() or not text:
                continue
            try:
                absolute = urljoin(base_url, href.strip())
            except ValueError:
                logger.debug("Invalid product link %s", href)
                continue
            if absolute not in links:
                links[absolute] = text
        if links:
            return [(name, url) for url, name in links.items()][:limit]
    return []
