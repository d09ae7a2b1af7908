"""Remote asset retrieval into the run's working directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import requests

from .config import DEFAULT_USER_AGENT
from .errors import FilesystemError, TransportError
from .models import FetchMode
from .utils import filename_from_url, qualify_filename

logger = logging.getLogger("kindle_pult")

CHUNK_SIZE = 64 * 1024


def make_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/*;q=0.8,*/*;q=0.5",
        }
    )
    return session


class AssetFetcher:
    """Download URLs into a working directory, one file per resource.

    The fetch mode is chosen per call. Filenames come from the final URL after
    redirects; a name already claimed by a different URL during this run is
    qualified with a short hash of the URL instead of being overwritten.
    """

    def __init__(
        self,
        workdir: Path,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.workdir = Path(workdir)
        self.session = session if session is not None else make_session(user_agent)
        self.timeout = timeout
        self._claimed: Dict[str, str] = {}

    def _destination(self, final_url: str) -> Path:
        name = filename_from_url(final_url)
        owner = self._claimed.get(name)
        if owner is not None and owner != final_url:
            qualified = qualify_filename(name, final_url)
            logger.debug(
                "Filename %s already used by %s; saving %s as %s",
                name,
                owner,
                final_url,
                qualified,
            )
            name = qualified
        self._claimed[name] = final_url
        return self.workdir / name

    def fetch(self, url: str, mode: FetchMode) -> Path:
        """Fetch ``url`` and persist it; returns the absolute local path."""
        stream = mode is FetchMode.BINARY
        try:
            response = self.session.get(
                url, timeout=self.timeout, stream=stream, allow_redirects=True
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"Failed to fetch {url}: {exc}") from exc

        with response:
            final_url = str(response.url or url)
            destination = self._destination(final_url)
            logger.info("Downloading %s -> %s", final_url, destination)
            try:
                if mode is FetchMode.TEXT:
                    written = self._write_text(response, destination)
                else:
                    written = self._write_binary(response, destination)
            except requests.RequestException as exc:
                raise TransportError(f"Failed to read {url}: {exc}") from exc
            except OSError as exc:
                raise FilesystemError(f"Failed to write {destination}: {exc}") from exc

        logger.debug("Wrote %d bytes to %s", written, destination)
        return destination.resolve()

    @staticmethod
    def _write_text(response: requests.Response, destination: Path) -> int:
        content_type = response.headers.get("Content-Type", "")
        if "charset" in content_type.lower():
            text = response.text
        else:
            # requests assumes ISO-8859-1 for text/* without a charset
            try:
                text = response.content.decode("utf-8")
            except UnicodeDecodeError:
                response.encoding = response.apparent_encoding
                text = response.text
        data = text.encode("utf-8")
        destination.write_bytes(data)
        return len(data)

    @staticmethod
    def _write_binary(response: requests.Response, destination: Path) -> int:
        written = 0
        with destination.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    handle.write(chunk)
                    written += len(chunk)
        return written
