"""Data models used throughout the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import ExtractionError


class FetchMode(Enum):
    """How a fetched payload is persisted."""

    TEXT = "text"
    BINARY = "binary"


@dataclass
class Article:
    """Purified article record produced by the readability extractor."""

    title: Optional[str] = None
    byline: Optional[str] = None
    date: Optional[str] = None
    content: Optional[str] = None
    plain_content: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Any) -> "Article":
        """Build an article from a deserialized extractor record."""
        if not isinstance(record, Mapping):
            raise ExtractionError(
                f"Extractor record must be a JSON object, got {type(record).__name__}"
            )
        values = {}
        for name in ("title", "byline", "date", "content", "plain_content"):
            value = record.get(name)
            if value is not None and not isinstance(value, str):
                raise ExtractionError(f"Extractor field {name!r} is not a string")
            values[name] = value
        return cls(**values)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "byline": self.byline,
            "date": self.date,
            "content": self.content,
            "plain_content": self.plain_content,
        }


@dataclass
class ImageCandidate:
    """Raw image reference discovered while parsing article content."""

    original_src: str
    absolute_url: str
    alt_text: str
