"""Shared fixtures: an in-memory HTTP session and generated images."""

from __future__ import annotations

import io
from typing import Dict, List, Optional, Tuple

import pytest
import requests
from PIL import Image


class FakeResponse:
    def __init__(
        self,
        url: str,
        body: bytes,
        status_code: int = 200,
        encoding: Optional[str] = "utf-8",
    ) -> None:
        self.url = url
        self.content = body
        self.status_code = status_code
        self.encoding = encoding
        self.apparent_encoding = "utf-8"
        self.headers = {
            "Content-Type": f"text/html; charset={encoding}" if encoding else "text/html"
        }
        self.closed = False

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8")

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")

    def iter_content(self, chunk_size: int = 1):
        for offset in range(0, len(self.content), chunk_size):
            yield self.content[offset : offset + chunk_size]

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FakeSession:
    """Serves canned bodies by URL and records every request."""

    def __init__(self) -> None:
        self.routes: Dict[str, Tuple[str, bytes, int, Optional[str]]] = {}
        self.calls: List[str] = []
        self.headers: Dict[str, str] = {}

    def add(
        self,
        url: str,
        body,
        *,
        final_url: Optional[str] = None,
        status: int = 200,
        encoding: Optional[str] = "utf-8",
    ) -> None:
        if isinstance(body, str):
            body = body.encode(encoding or "utf-8")
        self.routes[url] = (final_url or url, body, status, encoding)

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append(url)
        if url not in self.routes:
            raise requests.ConnectionError(f"No route to {url}")
        final_url, body, status, encoding = self.routes[url]
        return FakeResponse(final_url, body, status_code=status, encoding=encoding)


def make_image_bytes(fmt: str = "PNG", color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG", "blue")
