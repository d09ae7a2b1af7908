"""Command-line entry point for the EPUB converter."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_OUTPUT_NAME, ConvertConfig
from .errors import ConversionError
from .extractor import (
    ExtractorClient,
    ReadabiliPyExtractor,
    ReadabiliPyParser,
    ReadabilityExtractor,
)
from .pipeline import convert

logger = logging.getLogger("kindle_pult.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch a web article and package it as an offline EPUB.",
    )
    parser.add_argument("url", help="URL of the article to convert")
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT_NAME,
        type=Path,
        help="Where to write the EPUB (default: %(default)s)",
    )
    parser.add_argument(
        "--extractor",
        choices=("readability", "readabilipy"),
        default="readability",
        help="Article extractor: in-process readability-lxml or the readabilipy command",
    )
    parser.add_argument(
        "--python-parser",
        action="store_true",
        help="With --extractor readabilipy, use its pure-Python parser instead of Readability.js",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Per-request network timeout in seconds",
    )
    parser.add_argument(
        "--language",
        default="en",
        help="Language code recorded in the book metadata",
    )
    parser.add_argument(
        "--link-images",
        action="store_true",
        help="Rewrite <img> references in the article to the embedded image files",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def build_extractor(args: argparse.Namespace) -> ExtractorClient:
    if args.extractor == "readabilipy":
        parser = ReadabiliPyParser.PYTHON if args.python_parser else ReadabiliPyParser.MOZILLA
        return ReadabiliPyExtractor(parser)
    return ReadabilityExtractor()


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = ConvertConfig(
        output_path=args.output,
        request_timeout=args.timeout,
        language=args.language,
        link_images=args.link_images,
    )

    try:
        result = convert(args.url, config, build_extractor(args))
    except ConversionError as exc:
        logger.error("Conversion failed: %s", exc)
        return 1

    if result is not None:
        logger.info(
            "Wrote %r (%d image(s)) to %s in %.2fs",
            result.title,
            result.image_count,
            result.output_path,
            result.total_seconds,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
