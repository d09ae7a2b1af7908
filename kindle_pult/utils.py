"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import hashlib
import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlsplit

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
UNSAFE_FILENAME_PATTERN = re.compile(r"[^A-Za-z0-9._-]+")
FALLBACK_FILENAME = "tmp.bin"


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def filename_from_url(url: str) -> str:
    """Return the last non-empty path segment of a URL as a safe filename."""
    segments = [segment for segment in urlsplit(url).path.split("/") if segment]
    if not segments:
        return FALLBACK_FILENAME
    name = UNSAFE_FILENAME_PATTERN.sub("_", unquote(segments[-1])).strip("._")
    return name or FALLBACK_FILENAME


def qualify_filename(name: str, url: str) -> str:
    """Append a short URL hash to a filename, keeping its suffix."""
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:8]
    path = PurePosixPath(name)
    return f"{path.stem}-{digest}{path.suffix}"
