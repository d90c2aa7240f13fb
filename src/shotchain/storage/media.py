"""Fetch media bytes from local paths, HTTP(S) URLs and GCS URIs."""

import logging
import time
from pathlib import Path
from typing import Optional

import requests
from google.api_core import exceptions as google_exceptions
from google.cloud import storage

logger = logging.getLogger(__name__)


def split_gcs_uri(gcs_uri: str) -> tuple[str, str]:
    """Split ``gs://bucket/path`` into bucket and blob name."""
    if not gcs_uri.startswith("gs://"):
        raise ValueError(f"Invalid GCS URI: {gcs_uri}")

    uri_parts = gcs_uri[5:].split("/", 1)
    if len(uri_parts) != 2 or not uri_parts[1]:
        raise ValueError(f"Invalid GCS URI format: {gcs_uri}")

    return uri_parts[0], uri_parts[1]


class LocatorFetcher:
    """Resolve a locator to bytes.

    Relative paths are read from ``root``. The GCS client is created on first
    use so purely local setups never need Google credentials.
    """

    DEFAULT_TIMEOUT = 60.0
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_RETRY_DELAY = 2.0

    def __init__(
        self,
        root: Path = Path("."),
        storage_client: Optional[storage.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        self._root = root
        self._storage_client = storage_client
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

    def _gcs(self) -> storage.Client:
        if self._storage_client is None:
            self._storage_client = storage.Client()
        return self._storage_client

    def fetch(self, locator: str) -> bytes:
        """Return the bytes behind ``locator``.

        Raises:
            FileNotFoundError: If a local file or GCS object is missing.
            requests.HTTPError: If an HTTP fetch fails.
        """
        if locator.startswith("gs://"):
            return self._fetch_gcs(locator)
        if locator.startswith(("http://", "https://")):
            return self._fetch_http(locator)

        path = Path(locator)
        if not path.is_absolute():
            path = self._root / path
        if not path.exists():
            raise FileNotFoundError(f"Media not found: {path}")
        return path.read_bytes()

    def _fetch_http(self, url: str) -> bytes:
        logger.debug(f"Fetching {url}")
        response = requests.get(url, timeout=self._timeout)
        response.raise_for_status()
        return response.content

    def _fetch_gcs(self, gcs_uri: str) -> bytes:
        bucket_name, blob_name = split_gcs_uri(gcs_uri)

        for attempt in range(self._max_retries):
            try:
                blob = self._gcs().bucket(bucket_name).blob(blob_name)
                data = blob.download_as_bytes()
                logger.debug(f"Downloaded {gcs_uri} ({len(data)} bytes)")
                return data

            except google_exceptions.NotFound as e:
                raise FileNotFoundError(f"File not found in GCS: {gcs_uri}") from e

            except Exception as e:
                if attempt == self._max_retries - 1:
                    raise
                delay = self._retry_delay * (2**attempt)
                logger.warning(f"Download failed (attempt {attempt + 1}): {e}. Retrying in {delay}s...")
                time.sleep(delay)
