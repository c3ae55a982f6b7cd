"""Data models used throughout the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bs4 import Tag


@dataclass(frozen=True)
class CatalogEntry:
    """One product row from the spreadsheet export."""

    name: str
    stock: int
    price: str
    index: int


@dataclass(frozen=True)
class UrlTarget:
    """A product or search page listed in the URL configuration."""

    name: str
    url: str
    kind: str = "product"
    stock: int = 0
    price: str = ""


@dataclass
class MatchResult:
    """Element that best matched a catalog name, with its clamped score."""

    element: Tag
    score: float


@dataclass
class LocateOutcome:
    match: Optional[MatchResult]
    best_score: float


@dataclass
class ImageCandidate:
    """Absolute image URL discovered while parsing product markup."""

    absolute_url: str


@dataclass
class DownloadedImage:
    """Image stored in the local image directory."""

    local_path: str
    source_url: str
    cached: bool = False


@dataclass
class ProductSource:
    """A discovered product waiting for image extraction and download."""

    name: str
    stock: int = 0
    price: str = ""
    node: Optional[Tag] = None
    base_url: str = ""
    score: float = 0.0
    description: str = ""
    source_url: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ProductRecord:
    """Normalized product written to the output catalog."""

    id: str
    name: str
    series: str
    price: str
    stock: int
    images: List[str] = field(default_factory=list)
    description: str = ""
    match_score: float = 0.0
    source_url: Optional[str] = None
    images_found: int = 0
    images_downloaded: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "series": self.series,
            "price": self.price,
            "stock": self.stock,
            "images": list(self.images),
            "description": self.description,
            "matchScore": round(self.match_score, 3),
            "sourceUrl": self.source_url,
            "imagesFound": self.images_found,
            "imagesDownloaded": self.images_downloaded,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class RunSummary:
    """Aggregate counters reported at the end of a run."""

    total: int = 0
    matched: int = 0
    with_images: int = 0
    images_found: int = 0
    images_downloaded: int = 0

    @property
    def failed(self) -> int:
        return self.total - self.matched

    @property
    def match_rate(self) -> float:
        return self.matched / self.total if self.total else 0.0

    @property
    def image_success_rate(self) -> float:
        return self.with_images / self.matched if self.matched else 0.0
