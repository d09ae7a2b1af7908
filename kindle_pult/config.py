"""Configuration objects and constants for the converter."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_OUTPUT_NAME = "book.epub"
DEFAULT_WORKDIR_PREFIX = "kindle-pult_"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class ConvertConfig:
    """Top-level settings that control fetching and book generation."""

    output_path: Path = Path(DEFAULT_OUTPUT_NAME)
    workdir_prefix: str = DEFAULT_WORKDIR_PREFIX
    request_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    language: str = "en"
    link_images: bool = False
