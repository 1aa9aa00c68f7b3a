"""WebDAV client for Nextcloud."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import quote

import httpx

from ..exceptions import AlreadyExistsError, InvalidResponseError, NotFoundError
from ..models import EPOCH, RemoteEntry
from ..utils import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_STREAM_CHUNK_SIZE,
    DEFAULT_TIMEOUT,
    base_name,
    normalize_path,
    parse_http_date,
)
from .transport import HttpTransport

logger = logging.getLogger(__name__)

DAV_NS = "{DAV:}"

# Hrefs are "<server path>/remote.php/dav/files/<encoded user>/<path>"
DAV_FILES_MARKER = "/remote.php/dav/files/"

PROPFIND_BODY = """<?xml version="1.0"?>
<d:propfind xmlns:d="DAV:">
  <d:prop>
    <d:displayname/>
    <d:getlastmodified/>
    <d:getcontenttype/>
    <d:getcontentlength/>
    <d:getetag/>
    <d:resourcetype/>
  </d:prop>
</d:propfind>"""


class NextcloudClient:
    """Client for the Nextcloud WebDAV files endpoint."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Nextcloud client.

        Args:
            base_url: Nextcloud server URL (e.g. https://cloud.example.com)
            username: Nextcloud user name
            password: Nextcloud password or app password
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 60.0)
            transport: Optional custom httpx transport
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.http = HttpTransport(
            "Nextcloud",
            headers={"OCS-APIRequest": "true"},
            auth=(username, password),
            max_retries=max_retries,
            retry_delay=retry_delay,
            timeout=timeout,
            transport=transport,
        )

    @property
    def dav_prefix(self) -> str:
        """Path prefix of the user's WebDAV files root."""
        return f"{DAV_FILES_MARKER}{quote(self.username, safe='')}"

    def _dav_url(self, path: str) -> str:
        # Listed hrefs are already percent-encoded; keep existing escapes
        encoded = quote(path.lstrip("/"), safe="/%")
        return f"{self.base_url}{self.dav_prefix}/{encoded}"

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.http.close()

    def __enter__(self) -> NextcloudClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def authenticate(self) -> None:
        """Check that the server is reachable and accepts the credentials.

        Raises:
            AuthenticationError: If the credentials are rejected
            RemoteUnavailableError: If the server cannot be reached
        """
        self.http.request("GET", f"{self.base_url}/ocs/v1.php/cloud/capabilities")

    # =========================
    # Listing
    # =========================

    def _propfind(self, path: str, depth: str) -> list[RemoteEntry]:
        response = self.http.request(
            "PROPFIND",
            self._dav_url(path),
            expected=(207,),
            headers={"Depth": depth, "Content-Type": "application/xml"},
            content=PROPFIND_BODY,
        )
        return self._parse_multistatus(response.content)

    def _parse_multistatus(self, body: bytes) -> list[RemoteEntry]:
        """Parse a PROPFIND multistatus document into entries.

        Args:
            body: Raw XML response body

        Returns:
            One entry per ``<d:response>``, in document order
        """
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise InvalidResponseError(
                f"Nextcloud: failed to parse response: {e}"
            ) from e

        entries = []
        for response in root.findall(f"{DAV_NS}response"):
            href = response.findtext(f"{DAV_NS}href", default="")
            prop = response.find(f"{DAV_NS}propstat/{DAV_NS}prop")
            entries.append(self._entry_from_prop(href, prop))
        return entries

    @staticmethod
    def _path_from_href(href: str) -> str:
        """Strip the server path and the user's files root from an href.

        The rest of the href is kept percent-encoded.

        Examples:
            >>> NextcloudClient._path_from_href(
            ...     "/nc/remote.php/dav/files/alice%40example.com/docs/a.txt"
            ... )
            '/docs/a.txt'
        """
        _, marker, rest = href.partition(DAV_FILES_MARKER)
        if not marker:
            return normalize_path(href or "/")
        _, _, path = rest.partition("/")
        return normalize_path("/" + path)

    def _entry_from_prop(self, href: str, prop: ET.Element | None) -> RemoteEntry:
        path = self._path_from_href(href)

        def text(tag: str) -> str:
            if prop is None:
                return ""
            return (prop.findtext(f"{DAV_NS}{tag}") or "").strip()

        is_dir = (
            prop is not None
            and prop.find(f"{DAV_NS}resourcetype/{DAV_NS}collection") is not None
        )
        length = text("getcontentlength")

        return RemoteEntry(
            name=text("displayname") or base_name(path),
            path=path,
            size=int(length) if length.isdigit() else 0,
            is_dir=is_dir,
            modified=parse_http_date(text("getlastmodified")) or EPOCH,
            content_type=text("getcontenttype") or None,
            etag=text("getetag").strip('"') or None,
        )

    def list(self, path: str) -> list[RemoteEntry]:
        """List the direct children of a folder.

        Args:
            path: Folder path relative to the user's files root

        Returns:
            Entries of the folder's children (the folder itself is excluded)
        """
        entries = self._propfind(path, depth="1")
        # The first response describes the folder itself
        return entries[1:]

    def metadata(self, path: str) -> RemoteEntry:
        """Get the listing record of a single file or folder.

        Raises:
            NotFoundError: If the path does not exist
        """
        entries = self._propfind(path, depth="0")
        if not entries:
            raise NotFoundError(f"Nextcloud: not found: {path}")
        return entries[0]

    # =========================
    # Transfers
    # =========================

    @contextmanager
    def read(self, path: str) -> Iterator[Iterator[bytes]]:
        """Stream the content of a file.

        Yields:
            Iterator over the file's byte chunks
        """
        with self.http.stream(
            "GET", self._dav_url(path), chunk_size=DEFAULT_STREAM_CHUNK_SIZE
        ) as chunks:
            yield chunks

    def write(self, path: str, chunks: Iterable[bytes], size: int) -> None:
        """Upload a file, replacing any existing one.

        Args:
            path: Destination file path
            chunks: File content as byte chunks
            size: Exact content length in bytes
        """
        self.http.send_body(
            "PUT", self._dav_url(path), content=chunks, size=size, expected=(201, 204)
        )

    def mkdir(self, path: str) -> None:
        """Create a single folder.

        Raises:
            AlreadyExistsError: If the folder already exists
            NotFoundError: If the parent folder does not exist
        """
        response = self.http.request(
            "MKCOL", self._dav_url(path), expected=(201, 405, 409)
        )
        if response.status_code == 405:
            raise AlreadyExistsError(f"Nextcloud: folder already exists: {path}")
        if response.status_code == 409:
            raise NotFoundError(f"Nextcloud: parent folder missing for: {path}")
        logger.debug(f"Created Nextcloud folder {path}")
