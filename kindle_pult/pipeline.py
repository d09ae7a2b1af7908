"""High-level orchestration from article URL to EPUB file."""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import requests

from .assembler import assemble, require_fields
from .config import ConvertConfig
from .errors import FilesystemError, InvalidURLError
from .extractor import ExtractorClient, ReadabilityExtractor, load_article
from .fetcher import AssetFetcher
from .models import Article, FetchMode
from .resolver import find_image_candidates
from .utils import slugify

logger = logging.getLogger("kindle_pult")

ARTICLE_RECORD_NAME = "article.json"


@dataclass
class ConversionResult:
    """Outcome of a successful conversion."""

    url: str
    output_path: Path
    title: str
    image_count: int
    total_seconds: float


def validate_url(url: str) -> str:
    """Return ``url`` stripped, or raise :class:`InvalidURLError`."""
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
        parts.port
    except ValueError as exc:
        raise InvalidURLError(f"{url!r} is not a valid URL: {exc}") from exc
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise InvalidURLError(f"{url!r} is not an absolute http(s) URL")
    return candidate


def write_output(data: bytes, output_path: Path) -> Path:
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    except OSError as exc:
        raise FilesystemError(f"Failed to write {output_path}: {exc}") from exc
    return output_path.resolve()


def _build_book(
    target: str,
    workdir: Path,
    config: ConvertConfig,
    extractor: ExtractorClient,
    session: Optional[requests.Session],
) -> Tuple[Article, bytes, List[Path]]:
    fetcher = AssetFetcher(
        workdir,
        session=session,
        timeout=config.request_timeout,
        user_agent=config.user_agent,
    )

    html_path = fetcher.fetch(target, FetchMode.TEXT)

    record_path = workdir / ARTICLE_RECORD_NAME
    extractor.extract(html_path, record_path)
    article = load_article(record_path)
    logger.info(
        "Extracted %r by %r (date: %s)", article.title, article.byline, article.date
    )
    require_fields(article)

    candidates = find_image_candidates(article.content, target)
    logger.info("Found %d image(s)", len(candidates))

    image_paths: List[Path] = []
    image_links: Dict[str, Path] = {}
    for candidate in candidates:
        local_path = fetcher.fetch(candidate.absolute_url, FetchMode.BINARY)
        image_paths.append(local_path)
        image_links[candidate.original_src] = local_path

    book = assemble(
        article,
        image_paths,
        image_links=image_links if config.link_images else None,
        language=config.language,
        identifier=f"kindle-pult-{slugify(target, fallback='article')}",
    )
    return article, book, image_paths


def convert(
    url: str,
    config: Optional[ConvertConfig] = None,
    extractor: Optional[ExtractorClient] = None,
    session: Optional[requests.Session] = None,
) -> Optional[ConversionResult]:
    """Turn the article at ``url`` into an EPUB on disk.

    Returns ``None`` without touching the filesystem when ``url`` is not a
    usable http(s) URL. Every other failure raises a
    :class:`~kindle_pult.errors.ConversionError`; the working directory is
    removed on both paths.
    """
    config = config or ConvertConfig()
    extractor = extractor or ReadabilityExtractor()

    try:
        target = validate_url(url)
    except InvalidURLError as exc:
        logger.error("%s; nothing to do.", exc)
        return None
    logger.info("Converting %s", target)

    start = time.perf_counter()
    try:
        with tempfile.TemporaryDirectory(prefix=config.workdir_prefix) as tmp_dir:
            workdir = Path(tmp_dir)
            logger.debug("Working directory %s", workdir)
            article, book, image_paths = _build_book(
                target, workdir, config, extractor, session
            )
    except OSError as exc:
        # creating or removing the working directory itself
        raise FilesystemError(f"Working directory failure: {exc}") from exc

    output_path = write_output(book, Path(config.output_path))
    total_elapsed = time.perf_counter() - start
    logger.info("Saved EPUB to %s in %.2fs", output_path, total_elapsed)
    return ConversionResult(
        url=target,
        output_path=output_path,
        title=article.title,
        image_count=len(set(image_paths)),
        total_seconds=total_elapsed,
    )
