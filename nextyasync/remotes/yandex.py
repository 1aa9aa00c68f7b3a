"""REST client for Yandex Disk."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from ..exceptions import AlreadyExistsError, InvalidResponseError, NotFoundError
from ..models import EPOCH, RemoteEntry
from ..utils import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETRY_DELAY,
    DEFAULT_STREAM_CHUNK_SIZE,
    DEFAULT_TIMEOUT,
    parse_iso_timestamp,
)
from .transport import HttpTransport

logger = logging.getLogger(__name__)

YANDEX_API_URL = "https://cloud-api.yandex.net/v1/disk"

# Error code returned by the API when creating an existing folder
EXISTING_DIRECTORY_ERROR = "DiskPathPointsToExistentDirectoryError"


class YandexDiskClient:
    """Client for the Yandex Disk REST API."""

    def __init__(
        self,
        token: str,
        api_url: str = YANDEX_API_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Yandex Disk client.

        Args:
            token: OAuth token
            api_url: API base URL (default: https://cloud-api.yandex.net/v1/disk)
            page_size: Number of entries requested per listing page
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 60.0)
            transport: Optional custom httpx transport
        """
        self.api_url = api_url.rstrip("/")
        self.page_size = page_size
        self.http = HttpTransport(
            "Yandex Disk",
            headers={"Authorization": f"OAuth {token}"},
            max_retries=max_retries,
            retry_delay=retry_delay,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.http.close()

    def __enter__(self) -> YandexDiskClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get_json(self, endpoint: str, **params: Any) -> dict[str, Any]:
        response = self.http.request(
            "GET", f"{self.api_url}/{endpoint.lstrip('/')}", params=params
        )
        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(
                "Yandex Disk: invalid JSON response from server"
            ) from e
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Yandex Disk: unexpected response: {data!r}")
        return data

    def _get_href(self, endpoint: str, **params: Any) -> str:
        href = self._get_json(endpoint, **params).get("href")
        if not href:
            raise InvalidResponseError(f"Yandex Disk: no link returned by {endpoint}")
        return href

    @staticmethod
    def _entry_from_resource(resource: dict[str, Any]) -> RemoteEntry:
        return RemoteEntry(
            name=resource.get("name", ""),
            path=resource.get("path", ""),
            size=int(resource.get("size") or 0),
            is_dir=resource.get("type") == "dir",
            modified=parse_iso_timestamp(resource.get("modified")) or EPOCH,
            content_type=resource.get("mime_type"),
            etag=resource.get("md5"),
            download_url=resource.get("file"),
        )

    def authenticate(self) -> None:
        """Check that the token is valid.

        Raises:
            AuthenticationError: If the token is rejected
            RemoteUnavailableError: If the API cannot be reached
        """
        self._get_json("/")

    # =========================
    # Listing
    # =========================

    def list(self, path: str) -> list[RemoteEntry]:
        """List the direct children of a folder, following pagination.

        Args:
            path: Folder path (e.g. "disk:/backup")

        Returns:
            Entries of the folder's children
        """
        path = path or "/"
        entries: list[RemoteEntry] = []
        offset = 0

        while True:
            data = self._get_json(
                "/resources", path=path, limit=self.page_size, offset=offset
            )
            embedded = data.get("_embedded") or {}
            items = embedded.get("items") or []
            entries.extend(self._entry_from_resource(item) for item in items)

            total = embedded.get("total")
            offset += len(items)
            if not items or total is None or offset >= total:
                break
            logger.debug(f"Fetched {offset}/{total} entries of {path}")

        return entries

    def metadata(self, path: str) -> RemoteEntry:
        """Get the listing record of a single file or folder.

        Raises:
            NotFoundError: If the path does not exist
        """
        return self._entry_from_resource(self._get_json("/resources", path=path))

    # =========================
    # Transfers
    # =========================

    @contextmanager
    def read(self, path: str) -> Iterator[Iterator[bytes]]:
        """Stream the content of a file through its download link.

        Yields:
            Iterator over the file's byte chunks
        """
        href = self._get_href("/resources/download", path=path)
        with self.http.stream(
            "GET", href, chunk_size=DEFAULT_STREAM_CHUNK_SIZE
        ) as chunks:
            yield chunks

    def write(self, path: str, chunks: Iterable[bytes], size: int) -> None:
        """Upload a file, replacing any existing one.

        Args:
            path: Destination file path (e.g. "disk:/backup/a.txt")
            chunks: File content as byte chunks
            size: Exact content length in bytes
        """
        href = self._get_href("/resources/upload", path=path, overwrite="true")
        self.http.send_body("PUT", href, content=chunks, size=size, expected=(201, 202))

    def mkdir(self, path: str) -> None:
        """Create a single folder.

        Raises:
            AlreadyExistsError: If the folder already exists
            NotFoundError: If the parent folder does not exist
        """
        response = self.http.request(
            "PUT",
            f"{self.api_url}/resources",
            expected=(201, 409),
            params={"path": path},
        )
        if response.status_code == 409:
            try:
                error = response.json().get("error")
            except (ValueError, AttributeError):
                error = None
            if error == EXISTING_DIRECTORY_ERROR:
                raise AlreadyExistsError(f"Yandex Disk: folder already exists: {path}")
            raise NotFoundError(f"Yandex Disk: parent folder missing for: {path}")
        logger.debug(f"Created Yandex Disk folder {path}")
