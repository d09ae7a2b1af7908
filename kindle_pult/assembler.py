"""EPUB assembly from an extracted article and its downloaded images."""

from __future__ import annotations

import html
import io
import logging
import uuid
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from bs4 import BeautifulSoup
from ebooklib import epub
from filetype import guess
from PIL import Image

from .errors import ContainerBuildError, ImageDecodeError, MissingFieldError
from .models import Article

logger = logging.getLogger("kindle_pult")

REQUIRED_FIELDS = ("title", "byline", "content")
TITLE_PAGE_NAME = "title.xhtml"
CHAPTER_NAME = "article.xhtml"
IMAGE_DIR = "images"

_EXTENSION_ALIASES = {
    "jpg": "jpeg", "jpe": "jpeg", "jfif": "jpeg", "tif": "tiff", "svg": "svg+xml", "ico": "x-icon",
}
_IMAGE_SUBTYPES = {
    "jpeg", "png", "gif", "webp", "bmp", "tiff", "svg+xml", "avif", "heic", "heif", "x-icon",
}


def require_fields(article: Article) -> None:
    """Raise :class:`MissingFieldError` for the first absent required field."""
    for name in REQUIRED_FIELDS:
        if getattr(article, name) is None:
            raise MissingFieldError(name)


def image_media_type(path: Path, data: bytes) -> str:
    """Derive ``image/<subtype>`` from the file extension or its signature.

    Extensions that do not name an image format (``.php``, ``.aspx``, none at
    all) fall back to sniffing the bytes.
    """
    extension = path.suffix.lstrip(".").lower()
    subtype = _EXTENSION_ALIASES.get(extension, extension)
    if subtype in _IMAGE_SUBTYPES:
        return f"image/{subtype}"
    kind = guess(data)
    if kind is None or not kind.mime.startswith("image/"):
        raise ImageDecodeError(f"Cannot determine image type of {path}")
    return kind.mime


def _decode_image(path: Path) -> bytes:
    try:
        data = path.read_bytes()
        with Image.open(io.BytesIO(data)) as image:
            image.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Failed to decode image {path}: {exc}") from exc
    return data


def link_images(content: str, image_links: Mapping[str, str]) -> str:
    """Point <img> sources at the embedded resources they were downloaded to."""
    soup = BeautifulSoup(content, "html.parser")
    for img in soup.find_all("img"):
        target = image_links.get(img.get("src", ""))
        if target is not None:
            img["src"] = target
    return soup.decode()


def assemble(
    article: Article,
    image_paths: Sequence[Path],
    *,
    image_links: Optional[Mapping[str, Path]] = None,
    language: str = "en",
    identifier: Optional[str] = None,
) -> bytes:
    """Package ``article`` and its images into EPUB bytes.

    The book has exactly two sections in its spine: a title page and one
    chapter holding the article markup. When ``image_links`` maps original
    ``src`` values to local image paths, those references are rewritten to
    the embedded resource names; otherwise the markup is kept verbatim.
    """
    require_fields(article)
    title = article.title
    content = article.content

    book = epub.EpubBook()
    book.set_identifier(identifier or str(uuid.uuid4()))
    book.set_title(title)
    book.set_language(language)
    book.add_author(article.byline)

    embedded: Dict[str, str] = {}
    for index, raw_path in enumerate(image_paths, start=1):
        path = Path(raw_path)
        if str(path) in embedded:
            continue
        data = _decode_image(path)
        file_name = f"{IMAGE_DIR}/{path.name}"
        image_item = epub.EpubImage(
            uid=f"image_{index:03d}",
            file_name=file_name,
            media_type=image_media_type(path, data),
            content=data,
        )
        book.add_item(image_item)
        embedded[str(path)] = file_name
        logger.debug("Embedded %s as %s (%s)", path, file_name, image_item.media_type)

    if image_links:
        targets = {
            src: embedded[str(Path(local))]
            for src, local in image_links.items()
            if str(Path(local)) in embedded
        }
        content = link_images(content, targets)

    title_page = epub.EpubHtml(title=title, file_name=TITLE_PAGE_NAME, lang=language)
    title_page.content = f"<h1>{html.escape(title)}</h1>"
    chapter = epub.EpubHtml(title=title, file_name=CHAPTER_NAME, lang=language)
    chapter.content = content or "<div></div>"
    book.add_item(title_page)
    book.add_item(chapter)

    book.guide.append({"type": "title-page", "href": TITLE_PAGE_NAME, "title": title})
    book.toc = [
        epub.Link(TITLE_PAGE_NAME, title, "title"),
        epub.Link(CHAPTER_NAME, title, "article"),
    ]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = [title_page, chapter]

    buffer = io.BytesIO()
    try:
        epub.write_epub(buffer, book, {"epub3_pages": False, "raise_exceptions": True})
    except Exception as exc:  # pylint: disable=broad-except
        raise ContainerBuildError(f"Failed to build EPUB: {exc}") from exc
    logger.info("Assembled %r with %d image(s)", title, len(embedded))
    return buffer.getvalue()
