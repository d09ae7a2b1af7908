"""Discovery and absolutization of image references in article markup."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import SplitResult, urljoin, urlsplit

from bs4 import BeautifulSoup

from .errors import ImageReferenceError
from .models import ImageCandidate

logger = logging.getLogger("kindle_pult")

FETCHABLE_SCHEMES = ("http", "https")


def _split(reference: str) -> SplitResult:
    """Split a URL, surfacing malformed hosts and ports as errors."""
    try:
        parts = urlsplit(reference)
        parts.port  # validates the port range
    except ValueError as exc:
        raise ImageReferenceError(f"Malformed image reference {reference!r}: {exc}") from exc
    return parts


def resolve_reference(src: str, origin_url: str) -> str:
    """Return an absolute http(s) URL for a single ``src`` value."""
    reference = src.strip()
    if not reference:
        raise ImageReferenceError("Empty image reference")

    parts = _split(reference)
    if parts.scheme:
        if parts.scheme.lower() not in FETCHABLE_SCHEMES or not parts.netloc:
            raise ImageReferenceError(f"Unfetchable image reference {reference!r}")
        return reference

    absolute = urljoin(origin_url, reference)
    resolved = _split(absolute)
    if resolved.scheme.lower() not in FETCHABLE_SCHEMES or not resolved.netloc:
        raise ImageReferenceError(
            f"Cannot resolve {reference!r} against {origin_url!r}"
        )
    logger.debug("Relative image URL %s resolved to %s", reference, absolute)
    return absolute


def find_image_candidates(
    html_content: Optional[str], origin_url: str
) -> List[ImageCandidate]:
    """Collect every <img> in document order with its resolved URL."""
    if not html_content:
        return []
    soup = BeautifulSoup(html_content, "html.parser")
    candidates: List[ImageCandidate] = []
    for img in soup.find_all("img"):
        src = img.get("src")
        if src is None:
            raise ImageReferenceError(f"Image element without src attribute: {img}")
        candidates.append(
            ImageCandidate(
                original_src=src,
                absolute_url=resolve_reference(src, origin_url),
                alt_text=img.get("alt", "").strip(),
            )
        )
    return candidates


def resolve_images(html_content: Optional[str], origin_url: str) -> List[str]:
    """Return absolute URLs for all images in ``html_content``, in order."""
    urls = [c.absolute_url for c in find_image_candidates(html_content, origin_url)]
    logger.debug("Image URLs: %s", urls)
    return urls
