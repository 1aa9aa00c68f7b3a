"""Shared fixtures and an in-memory remote for sync tests."""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest

from nextyasync.exceptions import AlreadyExistsError, NotFoundError
from nextyasync.models import RemoteEntry
from nextyasync.utils import base_name, is_root_path, normalize_path, parent_path

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=1)
T2 = T0 + timedelta(hours=2)


class FakeRemote:
    """In-memory implementation of the RemoteStorage protocol.

    Every call is recorded in ``calls`` as an ``(operation, path)`` tuple.
    Failures can be injected per operation and path through ``fail``.
    """

    def __init__(self):
        self.dirs: dict[str, datetime] = {}
        self.files: dict[str, tuple[bytes, datetime]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail: dict[tuple[str, str], Exception] = {}
        self.closed_reads: list[str] = []
        self.declared_sizes: dict[str, int] = {}

    # Test setup helpers

    def add_dir(self, path: str, modified: datetime = T0) -> None:
        path = normalize_path(path)
        if is_root_path(path):
            return
        self.add_dir(parent_path(path), modified)
        self.dirs.setdefault(path, modified)

    def add_file(
        self, path: str, content: bytes = b"data", modified: datetime = T0
    ) -> None:
        path = normalize_path(path)
        self.add_dir(parent_path(path), modified)
        self.files[path] = (content, modified)

    def calls_of(self, operation: str) -> list[str]:
        return [path for op, path in self.calls if op == operation]

    @property
    def writes(self) -> list[str]:
        return self.calls_of("write")

    @property
    def mkdirs(self) -> list[str]:
        return self.calls_of("mkdir")

    # RemoteStorage protocol

    def _record(self, operation: str, path: str) -> str:
        self.calls.append((operation, path))
        error = self.fail.get((operation, path))
        if error is not None:
            raise error
        return normalize_path(path)

    def _entry(self, path: str) -> RemoteEntry:
        if path in self.files:
            content, modified = self.files[path]
            return RemoteEntry(
                name=base_name(path),
                path=path,
                size=len(content),
                is_dir=False,
                modified=modified,
            )
        return RemoteEntry(
            name=base_name(path),
            path=path,
            size=0,
            is_dir=True,
            modified=self.dirs.get(path, T0),
        )

    def list(self, path: str) -> list[RemoteEntry]:
        path = self._record("list", path)
        if not is_root_path(path) and path not in self.dirs:
            raise NotFoundError(f"not found: {path}")
        children = [p for p in self.dirs if parent_path(p) == path]
        children += [p for p in self.files if parent_path(p) == path]
        return [self._entry(p) for p in children]

    def metadata(self, path: str) -> RemoteEntry:
        path = self._record("metadata", path)
        if is_root_path(path) or path in self.dirs or path in self.files:
            return self._entry(path)
        raise NotFoundError(f"not found: {path}")

    @contextmanager
    def read(self, path: str):
        path = self._record("read", path)
        if path not in self.files:
            raise NotFoundError(f"not found: {path}")
        content = self.files[path][0]
        try:
            yield iter([content[:2], content[2:]])
        finally:
            self.closed_reads.append(path)

    def write(self, path: str, chunks: Iterable[bytes], size: int) -> None:
        path = self._record("write", path)
        self.declared_sizes[path] = size
        self.files[path] = (b"".join(chunks), T2)

    def mkdir(self, path: str) -> None:
        path = self._record("mkdir", path)
        if path in self.dirs or path in self.files:
            raise AlreadyExistsError(f"exists: {path}")
        parent = parent_path(path)
        if not is_root_path(parent) and parent not in self.dirs:
            raise NotFoundError(f"parent missing: {parent}")
        self.dirs[path] = T2


@pytest.fixture
def source():
    """Provide an empty in-memory source remote."""
    return FakeRemote()


@pytest.fixture
def destination():
    """Provide an empty in-memory destination remote."""
    return FakeRemote()
