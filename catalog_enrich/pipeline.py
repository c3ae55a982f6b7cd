"""High-level orchestration: discovery, image extraction, download and records."""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import requests

from .config import EnrichConfig
from .content import extract_with_ancestors
from .discovery import DiscoveryStrategy
from .fetch import create_session
from .images import ImageStore
from .models import ProductRecord, ProductSource, RunSummary
from .utils import slugify

logger = logging.getLogger("catalog_enrich")


class EnrichmentPipeline:
    """Runs product sources through extraction and download, one record each.

    Per-product and per-image failures are captured on records and counters;
    only a strategy's fatal error (for example the listing page being
    unreachable) escapes :meth:`run`.
    """

    def __init__(self, config: EnrichConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or create_session(config)
        self.store = ImageStore(Path(config.image_dir), self.session, config)
        self.summary = RunSummary()
        self._lock = threading.Lock()

    def run(self, strategies: Sequence[DiscoveryStrategy]) -> Tuple[List[ProductRecord], RunSummary]:
        records: List[ProductRecord] = []
        start = time.perf_counter()
        for strategy in strategies:
            logger.debug("Running %s discovery", strategy.kind)
            records.extend(self._process_all(strategy.sources(self.session, self.config)))
        logger.debug("Processed %d products in %.2fs", len(records), time.perf_counter() - start)
        return records, self.summary

    def _process_all(self, sources: Iterable[ProductSource]) -> List[ProductRecord]:
        if self.config.workers <= 1:
            return [self.process(source) for source in sources]
        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            return list(executor.map(self.process, sources))

    def process(self, source: ProductSource) -> ProductRecord:
        """Turn one source into a record, downloading at most ``max_images`` images."""
        product_id = slugify(source.name)
        if source.error or source.node is None:
            logger.warning("Not found: %r (%s)", source.name, source.error or "no element")
            self._count(matched=False, found=0, downloaded=0)
            return ProductRecord(
                id=product_id,
                name=source.name,
                series=self.config.series,
                price=source.price,
                stock=source.stock,
                source_url=source.source_url,
                error=source.error or "No element to extract images from",
            )

        logger.info("Found: %r (match: %.0f%%)", source.name, source.score * 100)
        urls = extract_with_ancestors(
            source.node,
            source.base_url,
            self.config.image_selectors,
            depth=self.config.ancestor_depth,
        )
        if urls:
            logger.info("  Found %d image(s)", len(urls))

        images: List[str] = []
        for ordinal, url in enumerate(urls[: self.config.max_images], start=1):
            filename = self.store.filename_for(product_id, ordinal)
            downloaded = self.store.fetch_with_retries(url, filename)
            if downloaded is not None:
                images.append(downloaded.local_path)
                logger.debug("Saved %s -> %s", url, downloaded.local_path)

        self._count(matched=True, found=len(urls), downloaded=len(images))
        return ProductRecord(
            id=product_id,
            name=source.name,
            series=self.config.series,
            price=source.price,
            stock=source.stock,
            images=images,
            description=source.description or source.name,
            match_score=source.score,
            source_url=source.source_url,
            images_found=len(urls),
            images_downloaded=len(images),
        )

    def _count(self, matched: bool, found: int, downloaded: int) -> None:
        with self._lock:
            self.summary.total += 1
            if matched:
                self.summary.matched += 1
            if downloaded:
                self.summary.with_images += 1
            self.summary.images_found += found
            self.summary.images_downloaded += downloaded


def successful(records: Iterable[ProductRecord]) -> List[ProductRecord]:
    return [record for record in records if not record.error]


def write_records(records: Iterable[ProductRecord], path: Path) -> Path:
    """Write records as a pretty-printed JSON array."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [record.to_dict() for record in records]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.info("Saved %d products to %s", len(payload), path)
    return path
