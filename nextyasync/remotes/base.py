"""Capability interface shared by all remote storage backends."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable

from ..models import RemoteEntry


@runtime_checkable
class RemoteStorage(Protocol):
    """Operations the sync engine needs from a remote directory tree.

    Paths use "/" as separator. Backends raise the exceptions defined in
    ``nextyasync.exceptions``:

    - ``NotFoundError`` if a path does not exist
    - ``AlreadyExistsError`` if ``mkdir`` targets an existing directory
    - ``RemoteUnavailableError`` (or a subclass) on transport, auth or
      quota failures
    """

    def list(self, path: str) -> list[RemoteEntry]:
        """List the direct children of a directory (non-recursive)."""
        ...

    def metadata(self, path: str) -> RemoteEntry:
        """Fetch the listing record of a single entry."""
        ...

    def read(self, path: str) -> AbstractContextManager[Iterator[bytes]]:
        """Open a file for streaming.

        The returned context manager yields an iterator of byte chunks and
        releases the underlying connection when it exits.
        """
        ...

    def write(self, path: str, chunks: Iterable[bytes], size: int) -> None:
        """Write a file of ``size`` bytes, overwriting any existing file."""
        ...

    def mkdir(self, path: str) -> None:
        """Create exactly one directory level."""
        ...
