from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Union

import pytest
import requests

from catalog_enrich.config import EnrichConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        body: Union[bytes, str] = b"",
        headers: Optional[Dict[str, str]] = None,
        url: str = "",
        stream_error: Optional[Exception] = None,
    ) -> None:
        self.status_code = status_code
        self.content = body.encode("utf-8") if isinstance(body, str) else body
        self.headers = headers or {}
        self.url = url
        self.stream_error = stream_error
        self.encoding: Optional[str] = None
        self.closed = False

    @property
    def apparent_encoding(self) -> str:
        return "utf-8"

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8")

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]
        if self.stream_error is not None:
            raise self.stream_error

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Stands in for ``requests.Session`` with canned responses per URL."""

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None) -> None:
        self.routes = dict(routes or {})
        self.calls: List[str] = []
        self.headers: Dict[str, str] = {}

    def add(self, url: str, response: Union[FakeResponse, Exception]) -> None:
        self.routes[url] = response

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"No route to {url}")
        if isinstance(route, Exception):
            raise route
        if not route.url:
            route.url = url
        return route


def html_page(body: str, title: str = "Tienda") -> FakeResponse:
    return FakeResponse(body=f"<html><head><title>{title}</title></head><body>{body}</body></html>")


def image_response(body: bytes = PNG_BYTES) -> FakeResponse:
    return FakeResponse(body=body, headers={"Content-Type": "image/png"})


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def config(tmp_path) -> EnrichConfig:
    return EnrichConfig(image_dir=tmp_path / "products")
