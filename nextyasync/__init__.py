"""nextya-sync - one-way file synchronization from Nextcloud to Yandex Disk."""

from .exceptions import (
    AlreadyExistsError,
    AuthenticationError,
    ConfigurationError,
    DecodeFailure,
    InvalidResponseError,
    NextyaSyncError,
    NotFoundError,
    QuotaExceededError,
    RateLimitError,
    RemoteError,
    RemoteUnavailableError,
)
from .models import FileNode, FolderNode, RemoteEntry, SyncStats
from .remotes import NextcloudClient, RemoteStorage, YandexDiskClient
from .sync import SyncEngine

__all__ = [
    "NextcloudClient",
    "YandexDiskClient",
    "RemoteStorage",
    "SyncEngine",
    "FileNode",
    "FolderNode",
    "RemoteEntry",
    "SyncStats",
    "AlreadyExistsError",
    "AuthenticationError",
    "ConfigurationError",
    "DecodeFailure",
    "InvalidResponseError",
    "NextyaSyncError",
    "NotFoundError",
    "QuotaExceededError",
    "RateLimitError",
    "RemoteError",
    "RemoteUnavailableError",
]
