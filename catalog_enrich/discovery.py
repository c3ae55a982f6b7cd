"""Strategies that turn a catalog or URL list into product sources.

Every strategy yields :class:`ProductSource` objects; the pipeline does the
same image extraction and download work regardless of where they came from.
"""

from __future__ import annotations

import abc
import logging
from typing import Iterator, List, Sequence

import requests
from bs4 import BeautifulSoup

from .config import EnrichConfig
from .content import (
    discover_product_links,
    element_description,
    extract_product_description,
    extract_product_name,
)
from .errors import PageFetchError
from .fetch import fetch_page
from .locator import locate_product
from .models import CatalogEntry, ProductSource, UrlTarget

logger = logging.getLogger("catalog_enrich")


class DiscoveryStrategy(abc.ABC):
    """Base class for the ways products are found on a website."""

    kind: str

    @abc.abstractmethod
    def sources(self, session: requests.Session, config: EnrichConfig) -> Iterator[ProductSource]:
        """Yield one source per product, in input order."""


class ScanSitePage(DiscoveryStrategy):
    """Fetch one listing page and locate every catalog entry on it."""

    kind = "scan"

    def __init__(self, url: str, entries: Sequence[CatalogEntry]) -> None:
        self.url = url
        self.entries = list(entries)

    def sources(self, session: requests.Session, config: EnrichConfig) -> Iterator[ProductSource]:
        # A failure here is fatal for the whole scan and propagates.
        page = fetch_page(session, self.url, config)
        soup = BeautifulSoup(page.html, "html.parser")
        logger.info("Searching for %d products on %s", len(self.entries), page.final_url)

        for entry in self.entries:
            outcome = locate_product(
                entry.name,
                soup,
                config.similarity_threshold,
                min_chars=config.min_text_chars,
                max_chars=config.max_text_chars,
            )
            if outcome.match is None:
                yield ProductSource(
                    name=entry.name,
                    stock=entry.stock,
                    price=entry.price,
                    base_url=page.final_url,
                    source_url=page.final_url,
                    error=f"No match above threshold (closest match {outcome.best_score:.0%})",
                )
                continue
            yield ProductSource(
                name=entry.name,
                stock=entry.stock,
                price=entry.price,
                node=outcome.match.element,
                base_url=page.final_url,
                score=outcome.match.score,
                description=element_description(outcome.match.element, config.max_description_chars),
                source_url=page.final_url,
            )


def product_page_source(
    session: requests.Session,
    config: EnrichConfig,
    name: str,
    url: str,
    stock: int = 0,
    price: str = "",
) -> ProductSource:
    """Fetch a single product page; fetch failures become an error source."""
    try:
        page = fetch_page(session, url, config)
    except PageFetchError as exc:
        logger.error("Failed to scrape %r: %s", name, exc.reason)
        return ProductSource(name=name, stock=stock, price=price, source_url=url, error=str(exc))

    soup = BeautifulSoup(page.html, "html.parser")
    detected = extract_product_name(soup, page.html) or name
    description = extract_product_description(soup, page.html, config.max_description_chars)
    return ProductSource(
        name=detected,
        stock=stock,
        price=price,
        node=soup,
        base_url=page.final_url,
        score=1.0,
        description=description or detected,
        source_url=url,
    )


class DirectProductUrl(DiscoveryStrategy):
    """Scrape known product page URLs."""

    kind = "product"

    def __init__(self, targets: Sequence[UrlTarget]) -> None:
        self.targets = list(targets)

    def sources(self, session: requests.Session, config: EnrichConfig) -> Iterator[ProductSource]:
        for target in self.targets:
            yield product_page_source(session, config, target.name, target.url, target.stock, target.price)


class SearchResultsExpansion(DiscoveryStrategy):
    """Expand search result pages into their first few product pages."""

    kind = "search"

    def __init__(self, targets: Sequence[UrlTarget]) -> None:
        self.targets = list(targets)

    def sources(self, session: requests.Session, config: EnrichConfig) -> Iterator[ProductSource]:
        for target in self.targets:
            try:
                page = fetch_page(session, target.url, config)
            except PageFetchError as exc:
                logger.error("Failed to scrape search results for %r: %s", target.name, exc.reason)
                yield ProductSource(name=target.name, source_url=target.url, error=str(exc))
                continue

            soup = BeautifulSoup(page.html, "html.parser")
            links = discover_product_links(soup, page.final_url, limit=config.search_limit)
            if not links:
                logger.warning("No products found in search results for %r", target.name)
                yield ProductSource(
                    name=target.name,
                    source_url=target.url,
                    error="No products found in search results",
                )
                continue

            logger.info("Found %d products in search results for %r", len(links), target.name)
            for name, url in links:
                yield product_page_source(session, config, name, url, target.stock, target.price)


def strategies_for_targets(targets: Sequence[UrlTarget]) -> List[DiscoveryStrategy]:
    """Group consecutive targets of the same type into strategies, keeping order."""
    strategies: List[DiscoveryStrategy] = []
    batch: List[UrlTarget] = []
    for target in targets:
        if batch and batch[-1].kind != target.kind:
            strategies.append(_strategy_for(batch))
            batch = []
        batch.append(target)
    if batch:
        strategies.append(_strategy_for(batch))
    return strategies


def _strategy_for(batch: Sequence[UrlTarget]) -> DiscoveryStrategy:
    if batch[0].kind == "search":
        return SearchResultsExpansion(batch)
    return DirectProductUrl(batch)
