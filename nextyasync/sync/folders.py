"""Idempotent creation of destination folder chains."""

import logging

from ..exceptions import NotFoundError
from ..remotes.base import RemoteStorage
from ..utils import is_root_path, normalize_path, parent_path

logger = logging.getLogger(__name__)


def ensure_path(remote: RemoteStorage, path: str) -> None:
    """Make sure every folder along ``path`` exists on the remote.

    Existing levels are detected with ``metadata`` and left alone; only the
    missing suffix of the chain is created, parents first. An entry that
    exists at ``path`` is accepted whether it is a folder or a file.

    Args:
        remote: Destination remote
        path: Folder path to create

    Raises:
        AlreadyExistsError: If ``mkdir`` reports the folder exists (for
            example when it was created concurrently)
        RemoteError: If a lookup other than "not found" or a ``mkdir`` fails
    """
    path = normalize_path(path)
    if is_root_path(path):
        return

    try:
        remote.metadata(path)
        return
    except NotFoundError:
        pass

    parent = parent_path(path)
    if not is_root_path(parent) and parent != path:
        ensure_path(remote, parent)

    logger.info(f"Creating folder: {path}")
    remote.mkdir(path)
