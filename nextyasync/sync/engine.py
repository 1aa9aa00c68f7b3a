"""Sync engine driving a run over all configured source roots."""

import logging
from collections.abc import Sequence
from typing import Callable, Optional

from ..exceptions import (
    AlreadyExistsError,
    ConfigurationError,
    NotFoundError,
    RemoteError,
)
from ..models import FolderNode, SyncStats
from ..remotes.base import RemoteStorage
from ..utils import ROOT_PLACEHOLDER_NAME, base_name, join_path, normalize_path
from .folders import ensure_path
from .reconciler import Reconciler
from .snapshot import build_snapshot

logger = logging.getLogger(__name__)


def target_path_for(source_root: str, destination_root: str, root_count: int) -> str:
    """Compute where a source root is synced to on the destination.

    A single source root is synced directly into the destination root.
    With several roots, each gets a subfolder named after its last path
    segment so that independent trees do not collide.

    Args:
        source_root: Configured source root
        destination_root: Configured destination root
        root_count: Number of configured source roots

    Returns:
        Destination path for this source root

    Examples:
        >>> target_path_for("/docs", "/backup", 1)
        '/backup'
        >>> target_path_for("/docs", "/backup", 2)
        '/backup/docs'
        >>> target_path_for("/", "/backup", 2)
        '/backup/root'
    """
    if root_count == 1:
        return destination_root

    name = base_name(source_root)
    if name in ("", ".", "/"):
        name = ROOT_PLACEHOLDER_NAME
    return join_path(destination_root, name)


class SyncEngine:
    """Synchronizes source roots on one remote into a destination root."""

    def __init__(
        self,
        source: RemoteStorage,
        destination: RemoteStorage,
        dry_run: bool = False,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        """Initialize sync engine.

        Args:
            source: Remote to copy from (Nextcloud)
            destination: Remote to copy to (Yandex Disk)
            dry_run: If True, only report what would be done
            progress_callback: Optional callback receiving a short status
                message whenever the engine starts a new phase
        """
        self.source = source
        self.destination = destination
        self.dry_run = dry_run
        self.progress_callback = progress_callback
        self.reconciler = Reconciler(source, destination, dry_run=dry_run)

    def _progress(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    def _exists(self, path: str) -> bool:
        try:
            self.destination.metadata(path)
        except NotFoundError:
            return False
        return True

    def _resolve_destination(self, path: str) -> FolderNode:
        """Snapshot a destination folder, creating it when missing.

        A folder that exists but vanishes partly while being listed is not
        mistaken for a missing one; the NotFoundError propagates instead.

        Raises:
            RemoteError: If the folder cannot be listed or created
        """
        try:
            return build_snapshot(self.destination, path)
        except NotFoundError:
            if self._exists(path):
                raise
            logger.info(f"Destination folder {path} doesn't exist, will create it")

        if not self.dry_run:
            try:
                ensure_path(self.destination, path)
            except AlreadyExistsError:
                logger.debug(f"Destination folder {path} already exists")
        return FolderNode(path=path)

    def run(self, source_roots: Sequence[str], destination_root: str) -> SyncStats:
        """Sync every source root into the destination.

        Roots are processed one after another in the given order. A root
        whose snapshot or target folder cannot be resolved is skipped; file
        and folder failures are reported through the returned stats.

        Args:
            source_roots: Source folder paths, in configuration order
            destination_root: Destination folder path

        Returns:
            Combined statistics for all roots

        Raises:
            ConfigurationError: If no source roots are given
            RemoteError: If the destination root cannot be resolved
        """
        if not source_roots:
            raise ConfigurationError("No source paths specified")

        destination_root = normalize_path(destination_root)
        stats = SyncStats()

        self._progress(f"Reading destination structure at {destination_root}...")
        destination_snapshot = self._resolve_destination(destination_root)

        for source_root in source_roots:
            self._progress(f"Reading source structure for {source_root}...")
            try:
                source_snapshot = build_snapshot(self.source, source_root)
            except RemoteError as e:
                logger.warning(
                    f"Failed to read source path {source_root}, skipping: {e}"
                )
                continue

            target_path = target_path_for(
                source_root, destination_root, len(source_roots)
            )
            if target_path == destination_root:
                target_snapshot = destination_snapshot
            else:
                try:
                    target_snapshot = self._resolve_destination(target_path)
                except RemoteError as e:
                    logger.warning(
                        f"Failed to prepare target folder {target_path}, "
                        f"skipping {source_root}: {e}"
                    )
                    continue

            self._progress(
                f"Syncing {source_root} -> {target_path} "
                f"({source_snapshot.count_files()} file(s))"
            )
            self.reconciler.reconcile(
                source_snapshot, target_snapshot, target_path, stats
            )

        logger.info(
            f"Synchronization completed! Files processed: {stats.total}, "
            f"uploaded: {stats.uploaded}, skipped: {stats.skipped}, "
            f"errors: {stats.errored}"
        )
        return stats
