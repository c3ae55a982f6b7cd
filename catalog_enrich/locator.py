"""Find the element on a page that best matches a catalog product name."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from bs4 import BeautifulSoup, Tag

from .models import LocateOutcome, MatchResult
from .similarity import clamp_score, match_score

logger = logging.getLogger("catalog_enrich")


def iter_candidates(soup: BeautifulSoup, min_chars: int, max_chars: int) -> Iterator[Tag]:
    """Yield elements in document order whose text length is within bounds.

    The window drops leaf nodes with no useful text as well as large
    containers whose text concatenates many unrelated products.
    """
    root = soup.body or soup
    for element in root.find_all(True):
        text_length = len(element.get_text())
        if min_chars <= text_length <= max_chars:
            yield element


def locate_product(
    name: str,
    soup: BeautifulSoup,
    threshold: float,
    min_chars: int = 5,
    max_chars: int = 500,
) -> LocateOutcome:
    """Score every candidate element against ``name`` and keep the best.

    Only a score strictly greater than ``threshold`` counts as a match; the
    first element in document order wins ties. Work grows with the number of
    elements times the squared text length, so this is meant for catalogs of
    tens to a few hundred products against a single page.
    """
    best_element: Optional[Tag] = None
    best_score = 0.0
    for element in iter_candidates(soup, min_chars, max_chars):
        score = match_score(name, element.get_text())
        if score > best_score:
            best_score = score
            best_element = element

    if best_element is not None and best_score > threshold:
        logger.debug("Best match for %r scored %.3f (<%s>)", name, best_score, best_element.name)
        return LocateOutcome(MatchResult(best_element, clamp_score(best_score)), best_score)
    return LocateOutcome(None, best_score)
