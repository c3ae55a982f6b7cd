"""HTTP page retrieval shared by every discovery strategy."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from .config import EnrichConfig
from .errors import PageFetchError

logger = logging.getLogger("catalog_enrich")


@dataclass
class FetchedPage:
    """HTML document returned by a successful GET."""

    url: str
    final_url: str
    html: str
    status_code: int


def create_session(config: EnrichConfig) -> requests.Session:
    """Build a session that identifies itself and follows a bounded number of redirects."""
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    session.max_redirects = config.max_redirects
    return session


def fetch_page(session: requests.Session, url: str, config: EnrichConfig) -> FetchedPage:
    """Retrieve ``url`` and return its decoded HTML."""
    logger.info("Fetching %s", url)
    try:
        resp = session.get(url, timeout=config.timeout, allow_redirects=True)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise PageFetchError(url, str(exc)) from exc

    final_url = resp.url or url
    if final_url != url:
        logger.debug("Redirected %s -> %s", url, final_url)
    if "charset" not in resp.headers.get("Content-Type", "").lower():
        resp.encoding = resp.apparent_encoding or "utf-8"
    return FetchedPage(url=url, final_url=final_url, html=resp.text, status_code=resp.status_code)
