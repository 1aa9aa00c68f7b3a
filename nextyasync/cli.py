"""CLI interface for nextya-sync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .config import SyncSettings, load_settings
from .exceptions import ConfigurationError, NextyaSyncError
from .output import OutputFormatter
from .remotes import NextcloudClient, YandexDiskClient
from .sync import SyncEngine
from .utils import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default is $HOME/.nextya-sync.yaml)",
)
@click.option(
    "--yandex-token", "-y", envvar="YANDEX_TOKEN", help="Yandex Disk OAuth token"
)
@click.option(
    "--yandex-target-path",
    "-t",
    envvar="YANDEX_TARGET_PATH",
    help="Target path in Yandex Disk for synchronization (default: disk:/nextcloud)",
)
@click.option("--nextcloud-url", "-u", envvar="NEXTCLOUD_URL", help="Nextcloud URL")
@click.option(
    "--nextcloud-username", "-n", envvar="NEXTCLOUD_USERNAME", help="Nextcloud user"
)
@click.option(
    "--nextcloud-password",
    "-p",
    envvar="NEXTCLOUD_PASSWORD",
    help="Nextcloud password",
)
@click.option(
    "--nextcloud-paths",
    "-s",
    envvar="NEXTCLOUD_SYNC_PATHS",
    help="Comma-separated list of Nextcloud paths to sync (default: /)",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Network timeout in seconds for each request",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="nextya-sync")
@click.pass_context
def main(
    ctx: Any,
    config_file: Optional[Path],
    yandex_token: Optional[str],
    yandex_target_path: Optional[str],
    nextcloud_url: Optional[str],
    nextcloud_username: Optional[str],
    nextcloud_password: Optional[str],
    nextcloud_paths: Optional[str],
    timeout: float,
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """nextya-sync - Synchronize files from Nextcloud to Yandex Disk.

    Files missing on Yandex Disk or newer in Nextcloud are copied; nothing
    is ever deleted. Settings are read from flags, environment variables
    and the YAML config file, in that order of precedence.
    """
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["config_file"] = config_file
    ctx.obj["timeout"] = timeout
    ctx.obj["overrides"] = {
        "yandex_token": yandex_token,
        "yandex_target_path": yandex_target_path,
        "nextcloud_url": nextcloud_url,
        "nextcloud_username": nextcloud_username,
        "nextcloud_password": nextcloud_password,
        "nextcloud_sync_paths": nextcloud_paths,
    }

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("nextyasync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _load_settings(ctx: Any) -> SyncSettings:
    """Resolve and validate settings, exiting with an error if invalid."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        settings = load_settings(ctx.obj["config_file"], ctx.obj["overrides"])
        settings.validate()
    except ConfigurationError as e:
        out.error(str(e))
        ctx.exit(1)
    return settings


def _create_clients(ctx: Any, settings: SyncSettings):
    timeout = ctx.obj["timeout"]
    source = NextcloudClient(
        settings.nextcloud_url,
        settings.nextcloud_username,
        settings.nextcloud_password,
        timeout=timeout,
    )
    destination = YandexDiskClient(settings.yandex_token, timeout=timeout)
    return source, destination


def _authenticate(ctx: Any, source: NextcloudClient, destination: YandexDiskClient):
    out: OutputFormatter = ctx.obj["out"]
    for name, client in (("Nextcloud", source), ("Yandex Disk", destination)):
        try:
            client.authenticate()
        except NextyaSyncError as e:
            out.error(f"Failed to authenticate with {name}: {e}")
            ctx.exit(1)
        out.success(f"✓ Connected to {name}")


@main.command()
@click.option(
    "--dry-run", is_flag=True, help="Show what would be synced without syncing"
)
@click.pass_context
def sync(ctx: Any, dry_run: bool) -> None:
    """Sync the configured Nextcloud paths to Yandex Disk.

    With a single sync path its content lands directly in the target path.
    With several, each one is synced into a subfolder of the target path
    named after the last segment of the Nextcloud path.

    Examples:
        nextya-sync -s /Documents sync
        nextya-sync -s /Documents,/Photos -t disk:/backup sync
        nextya-sync --config ./sync.yaml sync --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]
    settings = _load_settings(ctx)
    source, destination = _create_clients(ctx, settings)

    with source, destination:
        _authenticate(ctx, source, destination)

        out.info(
            f"Syncing {', '.join(settings.nextcloud_sync_paths)} "
            f"-> {settings.yandex_target_path}"
        )
        if dry_run:
            out.info("Dry run: No changes will be made")

        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TimeElapsedColumn(),
                transient=True,
                disable=out.quiet or out.json_output,
            ) as progress:
                task = progress.add_task("Starting synchronization...", total=None)

                def on_progress(message: str) -> None:
                    progress.update(task, description=message)

                engine = SyncEngine(
                    source,
                    destination,
                    dry_run=dry_run,
                    progress_callback=on_progress,
                )
                stats = engine.run(
                    settings.nextcloud_sync_paths, settings.yandex_target_path
                )
        except KeyboardInterrupt:
            out.warning("\nSync cancelled by user")
            ctx.exit(130)  # Standard exit code for SIGINT
        except NextyaSyncError as e:
            out.error(f"Synchronization failed: {e}")
            ctx.exit(1)

    out.print_stats(stats, dry_run=dry_run)
    if stats.errored and not out.json_output:
        out.warning(f"{stats.errored} file(s) failed, see the log for details")


@main.command()
@click.pass_context
def status(ctx: Any) -> None:
    """Check credentials and connectivity for both services."""
    settings = _load_settings(ctx)
    source, destination = _create_clients(ctx, settings)
    with source, destination:
        _authenticate(ctx, source, destination)


@main.command()
@click.argument("remote", type=click.Choice(["nextcloud", "yandex"]))
@click.argument("path", default="/")
@click.pass_context
def ls(ctx: Any, remote: str, path: str) -> None:
    """List one level of a folder on Nextcloud or Yandex Disk.

    Examples:
        nextya-sync ls nextcloud /Documents
        nextya-sync ls yandex disk:/nextcloud
    """
    out: OutputFormatter = ctx.obj["out"]
    settings = _load_settings(ctx)
    source, destination = _create_clients(ctx, settings)
    client = source if remote == "nextcloud" else destination

    with source, destination:
        try:
            entries = client.list(path)
        except NextyaSyncError as e:
            out.error(str(e))
            ctx.exit(1)
        out.print_entries(entries)


if __name__ == "__main__":
    main()
