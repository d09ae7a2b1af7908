"""Readability extraction behind a file-in / file-out contract.

An extractor reads a downloaded HTML file and writes a JSON record with the
keys ``title``, ``byline``, ``date``, ``content`` and ``plain_content``. The
pipeline never receives the record directly; it reads it back with
:func:`load_article`, so any tool that honors the two paths can be plugged in.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from bs4 import BeautifulSoup
from readability import Document

from .errors import ExtractionError
from .models import Article

logger = logging.getLogger("kindle_pult")

_BLOCK_TAGS = {
    "p", "div", "section", "article", "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "blockquote", "pre", "table", "tr", "td", "th",
}
_DROP_TAGS = ["script", "style", "noscript", "form", "img", "figure", "picture"]
_BYLINE_PATTERN = re.compile(r"byline|author", re.IGNORECASE)
MAX_BYLINE_CHARS = 100


class ExtractorClient(Protocol):
    def extract(self, html_path: Path, output_path: Path) -> None: ...


def _meta_content(soup: BeautifulSoup, *lookups: dict) -> Optional[str]:
    for attrs in lookups:
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            return tag["content"].strip()
    return None


def _byline_text(tag) -> Optional[str]:
    if tag.name == "meta":
        text = tag.get("content", "")
    else:
        text = tag.get_text(" ", strip=True)
    text = " ".join(text.split())
    if text and len(text) < MAX_BYLINE_CHARS:
        return text
    return None


def find_byline(soup: BeautifulSoup) -> Optional[str]:
    """Author from meta tags, then rel/itemprop markers, then byline-ish classes or ids."""
    byline = _meta_content(soup, {"name": "author"}, {"property": "article:author"})
    if byline:
        return byline
    lookups = (
        {"attrs": {"rel": "author"}},
        {"attrs": {"itemprop": "author"}},
        {"class_": _BYLINE_PATTERN},
        {"id": _BYLINE_PATTERN},
    )
    for lookup in lookups:
        for tag in soup.find_all(**lookup):
            text = _byline_text(tag)
            if text:
                return text
    return None


def _find_date(soup: BeautifulSoup) -> Optional[str]:
    date = _meta_content(
        soup,
        {"property": "article:published_time"},
        {"name": "date"},
        {"itemprop": "datePublished"},
    )
    if date:
        return date
    time_tag = soup.find("time", attrs={"datetime": True})
    if time_tag:
        return time_tag["datetime"].strip()
    return None


def plain_content_from_html(content_html: str) -> str:
    """Strip markup down to bare block structure, keeping only text."""
    soup = BeautifulSoup(content_html, "html.parser")
    for tag in soup(_DROP_TAGS):
        tag.decompose()
    for tag in soup.find_all(True):
        if tag.name in _BLOCK_TAGS:
            tag.attrs = {}
        else:
            tag.unwrap()
    return soup.decode().strip()


class ReadabilityExtractor:
    """In-process extraction with readability-lxml."""

    def extract(self, html_path: Path, output_path: Path) -> None:
        try:
            html = Path(html_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ExtractionError(f"Cannot read {html_path}: {exc}") from exc

        try:
            document = Document(html)
            content_html = document.summary(html_partial=True)
            title = document.short_title()
        except Exception as exc:  # pylint: disable=broad-except
            raise ExtractionError(f"Readability failed on {html_path}: {exc}") from exc

        soup_full = BeautifulSoup(html, "html.parser")
        if not title and soup_full.title and soup_full.title.string:
            title = soup_full.title.string.strip()

        byline = find_byline(soup_full)

        article = Article(
            title=title or None,
            byline=byline,
            date=_find_date(soup_full),
            content=content_html,
            plain_content=plain_content_from_html(content_html),
        )
        try:
            Path(output_path).write_text(
                json.dumps(article.to_dict(), ensure_ascii=False), encoding="utf-8"
            )
        except OSError as exc:
            raise ExtractionError(f"Cannot write {output_path}: {exc}") from exc
        logger.debug("Readability extracted %r into %s", article.title, output_path)


class ReadabiliPyParser(Enum):
    MOZILLA = "mozilla"
    PYTHON = "python"


class ReadabiliPyExtractor:
    """Run the ``readabilipy`` command line tool as an external process.

    The Mozilla parser needs Node.js with Readability.js installed alongside
    readabilipy; the Python parser has no such requirement.
    """

    def __init__(
        self,
        parser: ReadabiliPyParser = ReadabiliPyParser.MOZILLA,
        executable: str = "readabilipy",
    ) -> None:
        self.parser = parser
        self.executable = executable

    def command(self, html_path: Path, output_path: Path) -> list:
        cmd = [self.executable, "-i", str(html_path), "-o", str(output_path)]
        if self.parser is ReadabiliPyParser.PYTHON:
            cmd.append("-p")
        return cmd

    def extract(self, html_path: Path, output_path: Path) -> None:
        if shutil.which(self.executable) is None:
            raise ExtractionError(f"Extractor executable not found: {self.executable}")
        cmd = self.command(html_path, output_path)
        logger.debug("Running %s", " ".join(cmd))
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise ExtractionError(f"Failed to run {self.executable}: {exc}") from exc
        if completed.returncode != 0:
            raise ExtractionError(
                f"{self.executable} exited with status {completed.returncode}: "
                f"{completed.stderr.strip()}"
            )


def load_article(path: Path) -> Article:
    """Read back and deserialize the record an extractor wrote."""
    try:
        with Path(path).open(encoding="utf-8") as handle:
            record = json.load(handle)
    except FileNotFoundError as exc:
        raise ExtractionError(f"Extractor produced no output at {path}") from exc
    except (OSError, ValueError) as exc:
        raise ExtractionError(f"Cannot deserialize extractor output {path}: {exc}") from exc
    return Article.from_dict(record)
