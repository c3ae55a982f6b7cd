"""Configuration objects and constants for the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
DEFAULT_SERIES = "Ediciones de la Montaña"
DEFAULT_IMAGE_SELECTORS: Tuple[str, ...] = (
    "img[src]",
    "img[data-src]",
    "img[data-lazy-src]",
    "picture img",
    '[style*="background-image"]',
    ".product-image img",
    '[class*="product"] img',
    '[class*="imagen"] img',
)


@dataclass(frozen=True)
class EnrichConfig:
    """Settings that control matching, extraction and downloading."""

    image_dir: Path = Path("public/products")
    public_prefix: str = "/products"
    timeout: float = 15.0
    user_agent: str = DEFAULT_USER_AGENT
    max_redirects: int = 5
    similarity_threshold: float = 0.5
    min_text_chars: int = 5
    max_text_chars: int = 500
    max_images: int = 3
    image_attempts: int = 2
    ancestor_depth: int = 4
    image_selectors: Tuple[str, ...] = DEFAULT_IMAGE_SELECTORS
    max_description_chars: int = 300
    series: str = DEFAULT_SERIES
    search_limit: int = 5
    workers: int = 1
    verify_images: bool = True
