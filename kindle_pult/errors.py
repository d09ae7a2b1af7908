"""Domain-specific exceptions."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for all conversion errors."""


class InvalidURLError(ConversionError):
    """Input URL could not be parsed or is not http(s)."""


class TransportError(ConversionError):
    """A remote resource could not be fetched."""


class FilesystemError(ConversionError):
    """Reading or writing a local file failed."""


class ExtractionError(ConversionError):
    """The readability extractor failed or produced an unreadable record."""


class MissingFieldError(ConversionError):
    """The extracted article lacks a field required for assembly."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Extracted article has no {field}")
        self.field = field


class ImageReferenceError(ConversionError):
    """An <img> element has no usable source reference."""


class ImageDecodeError(ConversionError):
    """A downloaded image could not be decoded."""


class ContainerBuildError(ConversionError):
    """The EPUB container could not be generated."""
