"""Convert the bookstore spreadsheet export into a JSON book listing."""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

from .errors import CatalogError
from .utils import collapse_whitespace

logger = logging.getLogger("catalog_enrich")


@dataclass(frozen=True)
class Book:
    editorial: str
    name: str
    author: str


def _field(row: Dict[str, str], column: str) -> str:
    return collapse_whitespace(row.get(column) or "")


def parse_books(text: str) -> List[Book]:
    """Read ``PROVEEDOR``/``NOMBRE``/``VARIANTE`` columns, dropping nameless and repeated books."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")), skipinitialspace=True)
    if reader.fieldnames:
        reader.fieldnames = [name.strip().upper() for name in reader.fieldnames]

    books: List[Book] = []
    seen: Set[Tuple[str, str]] = set()
    for row in reader:
        name = _field(row, "NOMBRE")
        if not name:
            continue
        author = _field(row, "VARIANTE")
        key = (name, author)
        if key in seen:
            continue
        seen.add(key)
        books.append(Book(editorial=_field(row, "PROVEEDOR"), name=name, author=author))
    return books


def read_books(path: Path) -> List[Book]:
    if not path.is_file():
        raise CatalogError(f"CSV not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogError(f"Unable to read {path}: {exc}") from exc
    try:
        return parse_books(text)
    except csv.Error as exc:
        raise CatalogError(f"Parse error in {path}: {exc}") from exc


def write_books(books: Iterable[Book], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [asdict(book) for book in books]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.info("Wrote %d books to %s", len(payload), path)
    return path
