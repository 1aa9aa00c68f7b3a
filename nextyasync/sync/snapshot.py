"""Building in-memory snapshots of remote directory trees."""

import logging

from ..models import FileNode, FolderNode
from ..remotes.base import RemoteStorage

logger = logging.getLogger(__name__)


def build_snapshot(remote: RemoteStorage, root_path: str) -> FolderNode:
    """Recursively list a remote folder into a FolderNode tree.

    Children keep the order in which the remote listed them. Any error
    raised while listing the root or one of its subfolders propagates, so a
    partial snapshot is never returned.

    Args:
        remote: Remote to walk
        root_path: Path of the folder to snapshot

    Returns:
        FolderNode whose path is ``root_path``

    Raises:
        NotFoundError: If ``root_path`` (or a subfolder) does not exist
        RemoteUnavailableError: On transport or authentication failures
    """
    folder = FolderNode(path=root_path)

    for entry in remote.list(root_path):
        if entry.is_dir:
            subfolder = build_snapshot(remote, entry.path)
            subfolder.modified = entry.modified
            folder.folders.append(subfolder)
        else:
            folder.files.append(FileNode(path=entry.path, modified=entry.modified))

    logger.debug(
        f"Listed {root_path}: {len(folder.files)} file(s), "
        f"{len(folder.folders)} folder(s)"
    )
    return folder
