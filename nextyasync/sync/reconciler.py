"""Comparing a source snapshot against a destination snapshot."""

import logging
from typing import Optional

from ..exceptions import AlreadyExistsError, DecodeFailure, RemoteError
from ..models import FileNode, FolderNode, SyncStats
from ..remotes.base import RemoteStorage
from ..utils import decode_name, join_path
from .folders import ensure_path
from .transfer import transfer_file

logger = logging.getLogger(__name__)


def decode_entry_name(name: str) -> str:
    """Decode a listed entry name, falling back to the raw name.

    Args:
        name: Entry name, possibly percent-encoded

    Returns:
        The decoded name, or ``name`` itself if it cannot be decoded
    """
    try:
        return decode_name(name)
    except DecodeFailure as e:
        logger.warning(f"Failed to decode name {name}, using original: {e}")
        return name


def needs_sync(source_file: FileNode, destination_file: Optional[FileNode]) -> bool:
    """Decide whether a source file must be copied to the destination.

    A file is copied if the destination has no file of that name or if the
    source was modified strictly after the destination copy. Equal
    timestamps count as up to date.
    """
    if destination_file is None:
        return True
    return source_file.modified > destination_file.modified


class Reconciler:
    """Copies new and updated files from a source tree to a destination tree."""

    def __init__(
        self,
        source: RemoteStorage,
        destination: RemoteStorage,
        dry_run: bool = False,
    ):
        """Initialize the reconciler.

        Args:
            source: Remote the source snapshot was taken from
            destination: Remote the destination snapshot was taken from
            dry_run: If True, decide and count without writing anything
        """
        self.source = source
        self.destination = destination
        self.dry_run = dry_run

    def reconcile(
        self,
        source_folder: FolderNode,
        destination_folder: FolderNode,
        destination_base_path: str,
        stats: SyncStats,
    ) -> None:
        """Sync a source folder into its destination counterpart, recursively.

        Failures of individual files or subfolders are logged and counted in
        ``stats``; they never propagate to the caller.

        Args:
            source_folder: Source subtree
            destination_folder: Matching destination subtree (possibly empty)
            destination_base_path: Destination path of ``destination_folder``
            stats: Counters updated in place
        """
        destination_files = {f.name: f for f in destination_folder.files}
        destination_folders = {f.name: f for f in destination_folder.folders}

        for source_file in source_folder.files:
            self._sync_file(
                source_file, destination_files, destination_base_path, stats
            )

        for source_subfolder in source_folder.folders:
            folder_name = decode_entry_name(source_subfolder.name)
            subfolder_path = join_path(destination_base_path, folder_name)

            destination_subfolder = destination_folders.get(folder_name)
            if destination_subfolder is None:
                destination_subfolder = self._create_folder(subfolder_path)
                if destination_subfolder is None:
                    continue

            try:
                self.reconcile(
                    source_subfolder, destination_subfolder, subfolder_path, stats
                )
            except RemoteError as e:
                logger.error(f"Error syncing subfolder {folder_name}: {e}")

    def _sync_file(
        self,
        source_file: FileNode,
        destination_files: dict[str, FileNode],
        destination_base_path: str,
        stats: SyncStats,
    ) -> None:
        file_name = decode_entry_name(source_file.name)
        stats.total += 1

        destination_file = destination_files.get(file_name)
        if not needs_sync(source_file, destination_file):
            logger.debug(f"File {file_name} is up to date, skipping")
            stats.skipped += 1
            return

        if destination_file is None:
            logger.info(f"File {file_name} doesn't exist at destination, will upload")
        else:
            logger.info(
                f"File {file_name} is newer at source "
                f"({source_file.modified} vs {destination_file.modified}), "
                f"will update"
            )

        destination_path = join_path(destination_base_path, file_name)
        if self.dry_run:
            stats.uploaded += 1
            return

        try:
            transfer_file(
                self.source, source_file.path, self.destination, destination_path
            )
        except RemoteError as e:
            logger.error(f"Error syncing file {file_name}: {e}")
            stats.errored += 1
        else:
            logger.info(f"Successfully synced file {file_name}")
            stats.uploaded += 1

    def _create_folder(self, path: str) -> Optional[FolderNode]:
        """Create a missing destination folder and return it as empty.

        Returns:
            An empty FolderNode, or None if the folder could not be created
        """
        if self.dry_run:
            logger.info(f"Would create folder {path}")
            return FolderNode(path=path)

        logger.info(f"Creating folder {path} at destination")
        try:
            ensure_path(self.destination, path)
        except AlreadyExistsError:
            logger.debug(f"Folder {path} already exists")
        except RemoteError as e:
            logger.error(f"Error creating folder chain {path}: {e}")
            return None
        return FolderNode(path=path)
