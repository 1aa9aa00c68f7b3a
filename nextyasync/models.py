"""Data models for remote listings, snapshot trees and sync statistics."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .utils import base_name

# Used when a remote omits a modification time
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class RemoteEntry:
    """A single listing record returned by a remote backend."""

    name: str
    """Display name of the entry"""

    path: str
    """Remote path using forward slashes"""

    size: int
    """Size in bytes (0 for directories)"""

    is_dir: bool
    """True if the entry is a directory"""

    modified: datetime
    """Last modification time (timezone-aware)"""

    content_type: Optional[str] = None
    """MIME type reported by the remote"""

    etag: Optional[str] = None
    """Opaque version tag reported by the remote"""

    download_url: Optional[str] = None
    """Direct download handle, when the remote provides one"""


@dataclass
class FileNode:
    """A file in a snapshot tree."""

    path: str
    modified: datetime

    @property
    def name(self) -> str:
        """Base name of the file as listed by the remote."""
        return base_name(self.path)


@dataclass
class FolderNode:
    """A folder in a snapshot tree, owning its files and subfolders."""

    path: str
    modified: datetime = EPOCH
    files: list[FileNode] = field(default_factory=list)
    folders: list["FolderNode"] = field(default_factory=list)

    @property
    def name(self) -> str:
        """Base name of the folder as listed by the remote."""
        return base_name(self.path)

    def count_files(self) -> int:
        """Count the files in this folder and all of its subfolders."""
        return len(self.files) + sum(f.count_files() for f in self.folders)


@dataclass
class SyncStats:
    """Counters accumulated over a sync run."""

    total: int = 0
    uploaded: int = 0
    skipped: int = 0
    errored: int = 0

    def to_dict(self) -> dict:
        """Convert stats to dictionary for JSON output."""
        return {
            "total": self.total,
            "uploaded": self.uploaded,
            "skipped": self.skipped,
            "errored": self.errored,
        }
