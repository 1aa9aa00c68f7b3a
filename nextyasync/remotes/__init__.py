"""Remote storage backends."""

from .base import RemoteStorage
from .nextcloud import NextcloudClient
from .transport import HttpTransport
from .yandex import YandexDiskClient

__all__ = [
    "RemoteStorage",
    "HttpTransport",
    "NextcloudClient",
    "YandexDiskClient",
]
