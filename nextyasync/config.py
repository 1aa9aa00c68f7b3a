"""Configuration loading for nextya-sync.

Settings are layered: command-line flags (and the environment variables
bound to them) override values from the YAML config file, which override
the built-in defaults. The config file looks like::

    yandex:
      token: "..."
      target_path: "disk:/nextcloud"
    nextcloud:
      url: "https://cloud.example.com"
      username: "alice"
      password: "..."
      sync_paths:
        - /Documents
        - /Photos
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".nextya-sync.yaml"
DEFAULT_TARGET_PATH = "disk:/nextcloud"
DEFAULT_SYNC_PATHS = ("/",)

# Syncing into the root of the disk could overwrite unrelated files
FORBIDDEN_TARGET_PATHS = ("/", "disk:", "disk:/")

# Maps (section, key) in the config file to SyncSettings attributes
_FILE_KEYS = {
    ("yandex", "token"): "yandex_token",
    ("yandex", "target_path"): "yandex_target_path",
    ("nextcloud", "url"): "nextcloud_url",
    ("nextcloud", "username"): "nextcloud_username",
    ("nextcloud", "password"): "nextcloud_password",
    ("nextcloud", "sync_paths"): "nextcloud_sync_paths",
}

# YAML may parse numeric tokens, passwords or user names as int
_STRING_KEYS = (
    "yandex_token",
    "yandex_target_path",
    "nextcloud_url",
    "nextcloud_username",
    "nextcloud_password",
)


def disk_path(path: str) -> str:
    """Qualify a Yandex Disk path with the "disk:" namespace.

    The API lists entries as "disk:/...", so the configured target is
    brought into the same form. Paths that already name a namespace are
    left alone.

    Examples:
        >>> disk_path("/backup")
        'disk:/backup'
        >>> disk_path("backup")
        'disk:/backup'
        >>> disk_path("app:/backup")
        'app:/backup'
    """
    head = path.split("/", 1)[0]
    if head.endswith(":"):
        return path
    return "disk:/" + path.lstrip("/")


def split_paths(value: Union[str, list, tuple, None]) -> list[str]:
    """Turn a comma-separated string or a list into a list of paths.

    Examples:
        >>> split_paths("/docs, /photos")
        ['/docs', '/photos']
        >>> split_paths(["/docs"])
        ['/docs']
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value]
    return [item.strip() for item in items if item.strip()]


@dataclass
class SyncSettings:
    """Resolved settings for a sync run."""

    yandex_token: str = ""
    yandex_target_path: str = DEFAULT_TARGET_PATH
    nextcloud_url: str = ""
    nextcloud_username: str = ""
    nextcloud_password: str = ""
    nextcloud_sync_paths: list[str] = field(
        default_factory=lambda: list(DEFAULT_SYNC_PATHS)
    )
    config_file: Optional[Path] = None
    """Config file the settings were read from, if any"""

    def validate(self) -> None:
        """Check that the settings are complete and safe to use.

        Raises:
            ConfigurationError: If a required value is missing or the target
                path points at the root of the disk
        """
        if not self.yandex_token:
            raise ConfigurationError("Yandex token is required")
        if not self.nextcloud_url:
            raise ConfigurationError("Nextcloud URL is required")
        if not self.nextcloud_username:
            raise ConfigurationError("Nextcloud username is required")
        if not self.nextcloud_password:
            raise ConfigurationError("Nextcloud password is required")
        if self.yandex_target_path in FORBIDDEN_TARGET_PATHS:
            raise ConfigurationError(
                "Forbidden: Yandex target path is set to root, "
                "this may overwrite existing files"
            )
        if not self.nextcloud_sync_paths:
            raise ConfigurationError("No Nextcloud sync paths specified")


def find_config_file(explicit: Optional[Path] = None) -> Optional[Path]:
    """Locate the config file to use.

    Args:
        explicit: Path given on the command line; must exist if set

    Returns:
        The explicit path, else ``~/.nextya-sync.yaml``, else
        ``./.nextya-sync.yaml``, or None if none of them exists
    """
    if explicit is not None:
        if not explicit.is_file():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return explicit

    for directory in (Path.home(), Path.cwd()):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Read settings from a YAML config file.

    Args:
        path: Config file path

    Returns:
        Mapping of SyncSettings attribute names to values

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    values: dict[str, Any] = {}
    for (section, key), attribute in _FILE_KEYS.items():
        section_data = data.get(section) or {}
        if isinstance(section_data, dict) and section_data.get(key) is not None:
            values[attribute] = section_data[key]
    return values


def load_settings(
    config_file: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> SyncSettings:
    """Build settings from the config file and command-line overrides.

    Args:
        config_file: Explicit config file path (optional)
        overrides: Values from flags or environment variables; None values
            are ignored

    Returns:
        Merged settings (not yet validated)
    """
    values: dict[str, Any] = {}

    path = find_config_file(config_file)
    if path is not None:
        logger.info(f"Using config file: {path}")
        values.update(load_config_file(path))

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    if "nextcloud_sync_paths" in values:
        values["nextcloud_sync_paths"] = split_paths(values["nextcloud_sync_paths"])
    for key in _STRING_KEYS:
        if key in values:
            values[key] = str(values[key])
    if "yandex_target_path" in values:
        values["yandex_target_path"] = disk_path(values["yandex_target_path"])

    return SyncSettings(config_file=path, **values)
