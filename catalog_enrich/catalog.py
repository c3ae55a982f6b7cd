"""Catalog and URL target loading."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import CatalogError, ConfigError
from .models import CatalogEntry, UrlTarget

logger = logging.getLogger("catalog_enrich")

HEADER_TOKENS = {"articulo", "nombre", "name", "producto", "product"}
TARGET_KINDS = {"product", "search"}
_STOCK_PATTERN = re.compile(r"^[+-]?\d+")
_QUOTE_CHARS = "\"'"


def _parse_stock(raw: Optional[str]) -> int:
    if not raw:
        return 0
    match = _STOCK_PATTERN.match(raw.strip())
    if not match:
        return 0
    return max(int(match.group()), 0)


def _strip_quotes(raw: str) -> str:
    for char in _QUOTE_CHARS:
        raw = raw.replace(char, "")
    return raw.strip()


def _is_header(fields: Sequence[str]) -> bool:
    if len(fields) < 2:
        return False
    second = fields[1]
    return not second or second.lower() in HEADER_TOKENS


def parse_catalog(text: str, delimiter: str = ",") -> List[CatalogEntry]:
    """Parse a spreadsheet export laid out as ``[ignored, name, stock, price]``.

    The first line that looks like a header is skipped; malformed lines are
    dropped without failing the whole catalog.
    """
    entries: List[CatalogEntry] = []
    header_skipped = False
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = [part.strip() for part in line.split(delimiter)]
        if not header_skipped and _is_header(fields):
            header_skipped = True
            logger.debug("Skipping header on line %d: %s", line_number, line.strip())
            continue
        if len(fields) < 2:
            logger.debug("Skipping line %d: expected at least 2 fields", line_number)
            continue
        name = fields[1]
        if len(name) <= 2:
            logger.debug("Skipping line %d: product name %r is too short", line_number, name)
            continue
        stock = _parse_stock(fields[2] if len(fields) > 2 else None)
        price = _strip_quotes(fields[3]) if len(fields) > 3 else ""
        entries.append(CatalogEntry(name=name, stock=stock, price=price, index=len(entries)))
    return entries


def read_catalog(path: Path, delimiter: str = ",") -> List[CatalogEntry]:
    """Load catalog entries from a delimited text file."""
    if not path.is_file():
        raise CatalogError(f"Catalog file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogError(f"Unable to read catalog {path}: {exc}") from exc
    entries = parse_catalog(text, delimiter=delimiter)
    logger.info("Parsed %d products from %s", len(entries), path)
    return entries


def parse_url_targets(payload: object) -> List[UrlTarget]:
    """Validate the decoded JSON configuration of product/search URLs."""
    if not isinstance(payload, list):
        raise ConfigError("URL configuration must be a JSON array")
    targets: List[UrlTarget] = []
    for position, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ConfigError(f"Entry {position} must be an object")
        name = str(item.get("name") or "").strip()
        url = str(item.get("url") or "").strip()
        if not name or not url:
            raise ConfigError(f"Entry {position} needs both 'name' and 'url'")
        kind = str(item.get("type") or "product").strip().lower()
        if kind not in TARGET_KINDS:
            raise ConfigError(f"Entry {position} has unknown type {kind!r}")
        targets.append(
            UrlTarget(
                name=name,
                url=url,
                kind=kind,
                stock=_parse_stock(str(item.get("stock", ""))),
                price=_strip_quotes(str(item.get("price") or "")),
            )
        )
    return targets


def read_url_targets(path: Path) -> List[UrlTarget]:
    """Load the ``[{name, url, type}]`` configuration from disk."""
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Failed to parse config {path}: {exc}") from exc
    targets = parse_url_targets(payload)
    logger.info("Loaded %d targets from %s", len(targets), path)
    return targets
