"""
Import file sources for the Ticket Intake service.

Loads the bytes of an import file from either:
- a local path
- an HTTP(S) URL
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx

from .config import SourceConfig
from .errors import SourceError
from .models import UploadedFile


logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


def filename_from_url(url: str) -> str:
    """Use the last path segment of a URL as the upload's filename."""
    path = unquote(urlparse(url).path)
    return path.rstrip("/").rsplit("/", 1)[-1]


class RemoteFileClient:
    """
    Client for downloading import files over HTTP(S).

    Must be used as a context manager so the connection pool is closed.
    """

    def __init__(self, config: SourceConfig):
        """
        Initialize the client.

        Args:
            config: Source configuration with the request timeout.
        """
        self._config = config
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> "RemoteFileClient":
        """Context manager entry."""
        self._client = httpx.Client(
            timeout=self._config.request_timeout,
            follow_redirects=True,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        if self._client:
            self._client.close()
            self._client = None

    def fetch(self, url: str) -> UploadedFile:
        """
        Download an import file.

        Returns:
            UploadedFile named after the last segment of the URL path.

        Raises:
            SourceError: If the download fails.
        """
        if not self._client:
            raise RuntimeError("Client must be used within a context manager")

        logger.info(f"Fetching import file from {url}")

        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching import file: {e}")
            raise SourceError(f"HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Request error fetching import file: {e}")
            raise SourceError(f"Request failed: {str(e)}") from e

        content = response.content
        logger.debug(f"Downloaded {len(content)} bytes from {url}")
        return UploadedFile(filename=filename_from_url(url), content=content)


def read_local_file(path: Path) -> UploadedFile:
    """
    Read an import file from disk.

    Raises:
        SourceError: If the file does not exist or cannot be read.
    """
    if not path.is_file():
        raise SourceError(f"File not found: {path}")

    try:
        content = path.read_bytes()
    except OSError as e:
        logger.error(f"Failed to read import file {path}: {e}")
        raise SourceError(f"Failed to read {path}: {e}") from e

    logger.debug(f"Read {len(content)} bytes from {path}")
    return UploadedFile(filename=path.name, content=content)


def load_upload(source: str, config: Optional[SourceConfig] = None) -> UploadedFile:
    """
    Load an import file from a local path or an HTTP(S) URL.

    Args:
        source: Filesystem path or URL.
        config: Source configuration (defaults from environment).

    Returns:
        The file's name and content.
    """
    if is_url(source):
        with RemoteFileClient(config or SourceConfig()) as client:
            return client.fetch(source)
    return read_local_file(Path(source))
