"""Exceptions raised by the enrichment pipeline."""

from __future__ import annotations

from typing import Optional


class EnrichError(RuntimeError):
    """Base class for errors raised while enriching a catalog."""


class CatalogError(EnrichError):
    """Raised when the input catalog cannot be read."""


class ConfigError(EnrichError):
    """Raised when a URL target configuration is missing or malformed."""


class PageFetchError(EnrichError):
    """Raised when a page cannot be retrieved."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ImageDownloadError(EnrichError):
    """Raised when a single image cannot be stored locally."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class InvalidImageURL(ImageDownloadError):
    """Raised before any network call for URLs that can never be downloaded."""
