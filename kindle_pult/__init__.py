"""Convert web articles into offline-readable EPUB books."""

from __future__ import annotations

from .config import ConvertConfig
from .errors import ConversionError
from .models import Article, FetchMode
from .pipeline import ConversionResult, convert

__all__ = [
    "Article",
    "ConversionError",
    "ConversionResult",
    "ConvertConfig",
    "FetchMode",
    "convert",
]
