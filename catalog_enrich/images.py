"""Image downloading, validation and on-disk caching."""

from __future__ import annotations

import logging
import threading
import time
import weakref
from pathlib import Path
from typing import Optional

import requests
from filetype import guess

from .config import EnrichConfig
from .errors import ImageDownloadError, InvalidImageURL
from .models import DownloadedImage

logger = logging.getLogger("catalog_enrich")

IMAGE_EXTENSION = "jpg"
CHUNK_SIZE = 8192
SNIFF_BYTES = 261


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def validate_image_url(url: str) -> str:
    """Normalise protocol-relative URLs and reject ones that cannot be fetched."""
    if not url or not isinstance(url, str):
        raise InvalidImageURL(str(url), "empty URL")
    url = url.strip()
    if url.startswith("data:") or "base64" in url:
        raise InvalidImageURL(url[:60], "data URI or base64 payload")
    if url.startswith("//"):
        url = "https:" + url
    if not url.lower().startswith(("http://", "https://")):
        raise InvalidImageURL(url, "unsupported URL scheme")
    return url


class ImageStore:
    """Flat directory of downloaded product images.

    Existing files are trusted unconditionally: a file already present at the
    target path is returned without touching the network.
    """

    def __init__(self, directory: Path, session: requests.Session, config: EnrichConfig) -> None:
        self.directory = directory
        self.session = session
        self.config = config
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def filename_for(self, slug: str, ordinal: int) -> str:
        return f"{slug}-{ordinal}.{IMAGE_EXTENSION}"

    def public_path(self, filename: str) -> str:
        prefix = self.config.public_prefix.rstrip("/")
        return f"{prefix}/{filename}"

    def _lock_for(self, filename: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(filename)
            if lock is None:
                lock = self._locks[filename] = threading.Lock()
            return lock

    def fetch(self, url: str, filename: str) -> DownloadedImage:
        """Download ``url`` into ``filename`` unless it is already cached."""
        url = validate_image_url(url)
        destination = self.directory / filename
        with self._lock_for(filename):
            if destination.exists():
                logger.debug("Cache hit for %s", destination)
                return DownloadedImage(self.public_path(filename), url, cached=True)
            self.directory.mkdir(parents=True, exist_ok=True)
            self._download(url, destination)
        return DownloadedImage(self.public_path(filename), url)

    def _download(self, url: str, destination: Path) -> None:
        try:
            resp = self.session.get(url, timeout=self.config.timeout, stream=True)
        except requests.RequestException as exc:
            raise ImageDownloadError(url, str(exc)) from exc

        try:
            if resp.status_code != 200:
                raise ImageDownloadError(url, f"HTTP {resp.status_code}", status_code=resp.status_code)
            head = b""
            deadline = time.monotonic() + self.config.timeout
            with destination.open("wb") as handle:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    if time.monotonic() > deadline:
                        raise ImageDownloadError(url, "timeout")
                    if len(head) < SNIFF_BYTES:
                        head += chunk[: SNIFF_BYTES - len(head)]
                    handle.write(chunk)
            if self.config.verify_images and not detect_image_format(head):
                content_type = resp.headers.get("Content-Type", "")
                raise ImageDownloadError(url, f"not a raster image (Content-Type={content_type})")
        except ImageDownloadError:
            destination.unlink(missing_ok=True)
            raise
        except (requests.RequestException, OSError) as exc:
            destination.unlink(missing_ok=True)
            raise ImageDownloadError(url, str(exc)) from exc
        finally:
            resp.close()

    def fetch_with_retries(self, url: str, filename: str) -> Optional[DownloadedImage]:
        """Try ``config.image_attempts`` times; returns ``None`` once they are exhausted."""
        attempts = max(self.config.image_attempts, 1)
        for attempt in range(1, attempts + 1):
            try:
                return self.fetch(url, filename)
            except InvalidImageURL as exc:
                logger.warning("Skipping image %s: %s", exc.url, exc.reason)
                return None
            except ImageDownloadError as exc:
                if attempt == attempts:
                    logger.warning("Could not download image %s: %s", url[:80], exc.reason)
                else:
                    logger.debug("Attempt %d/%d for %s failed: %s", attempt, attempts, url, exc.reason)
        return None
