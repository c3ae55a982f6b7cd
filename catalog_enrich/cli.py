"""Command-line entry point for catalog enrichment."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Iterable, List, Sequence

from .books import read_books, write_books
from .catalog import read_catalog, read_url_targets
from .config import DEFAULT_SERIES, EnrichConfig
from .discovery import DiscoveryStrategy, ScanSitePage, strategies_for_targets
from .errors import EnrichError
from .models import ProductRecord, RunSummary
from .pipeline import EnrichmentPipeline, successful, write_records

logger = logging.getLogger("catalog_enrich.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("scan", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        default="public/products.json",
        type=Path,
        help="JSON file where product records should be written",
    )
    parser.add_argument(
        "--images-dir",
        default="public/products",
        type=Path,
        help="Directory where downloaded images are stored",
    )
    parser.add_argument(
        "--public-prefix",
        default="/products",
        help="Root-relative path prefix used for image references in the output",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=15.0,
        help="Request timeout in seconds for pages and images",
    )
    parser.add_argument(
        "--max-images",
        type=int,
        default=3,
        help="Maximum number of images to download per product",
    )
    parser.add_argument(
        "--attempts",
        type=int,
        default=2,
        help="Download attempts per image before giving up on it",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Process this many products concurrently (default: sequential)",
    )
    parser.add_argument(
        "--series",
        default=DEFAULT_SERIES,
        help="Series name stored on every product record",
    )
    parser.add_argument(
        "--include-errors",
        action="store_true",
        help="Also write records for products that could not be found or fetched",
    )
    parser.add_argument(
        "--no-verify-images",
        action="store_true",
        help="Keep downloaded files even when they do not look like raster images",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (also enabled by DEBUG=1)",
    )


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Website page listing the products")
    parser.add_argument(
        "--catalog",
        default="products.csv",
        type=Path,
        help="Delimited catalog export with columns [ignored, name, stock, price]",
    )
    parser.add_argument(
        "--delimiter",
        default=",",
        help="Field delimiter used by the catalog file",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=0.5,
        help="Minimum similarity an element must exceed to count as a match",
    )
    _add_common_arguments(parser)


def _add_urls_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "config",
        type=Path,
        help='JSON array of {"name", "url", "type": "product"|"search"} records',
    )
    parser.add_argument(
        "--search-limit",
        type=int,
        default=5,
        help="Number of products taken from each search results page",
    )
    _add_common_arguments(parser)


def _add_books_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("csv", type=Path, help="Book spreadsheet export (PROVEEDOR, NOMBRE, VARIANTE columns)")
    parser.add_argument(
        "--output",
        default="public/books.json",
        type=Path,
        help="JSON file where the book listing should be written",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (also enabled by DEBUG=1)",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Match catalog products on a website, download their images and write product JSON.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan", help="Locate catalog products on a single listing page"
    )
    _add_scan_arguments(scan_parser)

    urls_parser = subparsers.add_parser(
        "urls", help="Scrape product and search result URLs from a JSON config"
    )
    _add_urls_arguments(urls_parser)

    books_parser = subparsers.add_parser(
        "books", help="Convert a book spreadsheet export into JSON"
    )
    _add_books_arguments(books_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    debug = verbose or os.getenv("DEBUG", "") not in ("", "0")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _build_config(args: argparse.Namespace) -> EnrichConfig:
    return EnrichConfig(
        image_dir=Path(args.images_dir).resolve(),
        public_prefix=args.public_prefix,
        timeout=args.timeout,
        similarity_threshold=getattr(args, "threshold", 0.5),
        max_images=args.max_images,
        image_attempts=args.attempts,
        series=args.series,
        search_limit=getattr(args, "search_limit", 5),
        workers=args.workers,
        verify_images=not args.no_verify_images,
    )


def _report(summary: RunSummary, elapsed: float) -> None:
    logger.info(
        "Finished in %.2fs: %d/%d products found (%.0f%%), %d failed",
        elapsed,
        summary.matched,
        summary.total,
        summary.match_rate * 100,
        summary.failed,
    )
    logger.info(
        "Products with images: %d/%d (%.0f%%), images downloaded: %d/%d found",
        summary.with_images,
        summary.matched,
        summary.image_success_rate * 100,
        summary.images_downloaded,
        summary.images_found,
    )


def _run_pipeline(args: argparse.Namespace, strategies: List[DiscoveryStrategy], config: EnrichConfig) -> None:
    pipeline = EnrichmentPipeline(config)
    overall_start = time.perf_counter()
    records, summary = pipeline.run(strategies)
    total_elapsed = time.perf_counter() - overall_start

    output: List[ProductRecord] = records if args.include_errors else successful(records)
    write_records(output, Path(args.output))
    logger.info("Images in %s", config.image_dir)
    _report(summary, total_elapsed)


def _run_scan(args: argparse.Namespace) -> None:
    config = _build_config(args)
    entries = read_catalog(Path(args.catalog), delimiter=args.delimiter)
    _run_pipeline(args, [ScanSitePage(args.url, entries)], config)


def _run_urls(args: argparse.Namespace) -> None:
    config = _build_config(args)
    targets = read_url_targets(Path(args.config))
    if not targets:
        raise EnrichError("No products to scrape")
    _run_pipeline(args, strategies_for_targets(targets), config)


def _run_books(args: argparse.Namespace) -> None:
    books = read_books(Path(args.csv))
    write_books(books, Path(args.output))


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    try:
        if args.command == "scan":
            _run_scan(args)
        elif args.command == "urls":
            _run_urls(args)
        else:
            _run_books(args)
    except EnrichError as exc:
        logger.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
