"""Streaming a single file from one remote to another."""

import logging

from ..remotes.base import RemoteStorage
from ..utils import format_size

logger = logging.getLogger(__name__)


def transfer_file(
    source: RemoteStorage,
    source_path: str,
    destination: RemoteStorage,
    destination_path: str,
) -> int:
    """Copy one file between remotes without loading it into memory.

    The source size is looked up with ``metadata`` because the destination
    needs the content length before the upload starts. The read stream is
    closed whether the upload succeeds or fails. No retry is attempted.

    Args:
        source: Remote to read from
        source_path: Path of the file on the source
        destination: Remote to write to
        destination_path: Path of the file on the destination

    Returns:
        Number of bytes declared for the upload

    Raises:
        RemoteError: If reading, the size lookup or the upload fails
    """
    with source.read(source_path) as chunks:
        size = source.metadata(source_path).size
        logger.debug(
            f"Uploading {source_path} -> {destination_path} ({format_size(size)})"
        )
        destination.write(destination_path, chunks, size)
    return size
