"""Utility functions for nextya-sync."""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional
from urllib.parse import unquote_plus

from .exceptions import DecodeFailure

# =============================================================================
# Constants
# =============================================================================

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Request timeout for API calls and transfers
DEFAULT_TIMEOUT: float = 60.0  # seconds

# Chunk size used when streaming file content (64 KB)
DEFAULT_STREAM_CHUNK_SIZE: int = 64 * 1024

# Number of entries requested per page from the Yandex Disk API
DEFAULT_PAGE_SIZE: int = 1000

# Folder name used when a source root has no usable final segment
ROOT_PLACEHOLDER_NAME: str = "root"

_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


# =============================================================================
# Path utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a remote path to use forward slashes without a trailing one.

    Args:
        path: Remote path, possibly using backslashes

    Returns:
        Normalized path. Root paths such as "/" or "disk:/" keep their slash.

    Examples:
        >>> normalize_path("/a/b/")
        '/a/b'
        >>> normalize_path("disk:/")
        'disk:/'
    """
    path = path.replace("\\", "/")
    stripped = path.rstrip("/")
    if not stripped or stripped.endswith(":"):
        return path if path else "/"
    return stripped


def is_root_path(path: str) -> bool:
    """Check whether a path designates the root of a remote.

    Examples:
        >>> is_root_path("/")
        True
        >>> is_root_path("disk:")
        True
        >>> is_root_path("/docs")
        False
    """
    stripped = path.replace("\\", "/").rstrip("/")
    return stripped in ("", ".") or stripped.endswith(":")


def base_name(path: str) -> str:
    """Return the final segment of a remote path.

    Examples:
        >>> base_name("/docs/report.txt")
        'report.txt'
        >>> base_name("/docs/sub/")
        'sub'
        >>> base_name("disk:/backup")
        'backup'
    """
    stripped = path.replace("\\", "/").rstrip("/")
    return stripped.rsplit("/", 1)[-1]


def parent_path(path: str) -> str:
    """Return the immediate parent of a remote path.

    Examples:
        >>> parent_path("/a/b/c")
        '/a/b'
        >>> parent_path("/a")
        '/'
        >>> parent_path("disk:/backup")
        'disk:/'
        >>> parent_path("a")
        '.'
    """
    stripped = normalize_path(path)
    if "/" not in stripped:
        return "."
    head = stripped.rsplit("/", 1)[0]
    if not head or head.endswith(":"):
        return head + "/"
    return head


def join_path(base: str, name: str) -> str:
    """Join a remote directory path and an entry name with a single slash.

    Examples:
        >>> join_path("/backup", "a.txt")
        '/backup/a.txt'
        >>> join_path("disk:/", "a.txt")
        'disk:/a.txt'
    """
    return base.rstrip("/") + "/" + name


def decode_name(name: str) -> str:
    """Decode a percent-encoded entry name.

    Names that contain no escapes are returned unchanged, so decoding is
    idempotent on already-decoded names.

    Args:
        name: Entry name as returned by a remote listing

    Returns:
        The decoded name

    Raises:
        DecodeFailure: If the name contains a malformed escape or the
            escapes do not form valid UTF-8

    Examples:
        >>> decode_name("my%20file.txt")
        'my file.txt'
        >>> decode_name("report.txt")
        'report.txt'
    """
    if _PERCENT_ESCAPE.search(name):
        raise DecodeFailure(f"Invalid percent escape in name: {name}")
    try:
        return unquote_plus(name, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeFailure(f"Name is not valid UTF-8 once decoded: {name}") from e


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp as returned by the Yandex Disk API.

    Args:
        timestamp_str: ISO format timestamp (e.g., "2025-01-15T10:30:00+00:00")

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not timestamp_str:
        return None

    # The 'Z' suffix indicates UTC time
    if timestamp_str.endswith("Z"):
        timestamp_str = timestamp_str[:-1] + "+00:00"

    try:
        return _as_utc(datetime.fromisoformat(timestamp_str))
    except ValueError:
        return None


def parse_http_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 1123 date as returned by WebDAV ``getlastmodified``.

    Args:
        date_str: Date such as "Mon, 02 Jan 2006 15:04:05 GMT"

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not date_str:
        return None

    try:
        return _as_utc(parsedate_to_datetime(date_str))
    except (TypeError, ValueError):
        return None


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
