"""Terminal output helpers for the CLI."""

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from .models import RemoteEntry, SyncStats
from .utils import format_size


class OutputFormatter:
    """Formats CLI output as styled text or JSON."""

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize output formatter.

        Args:
            json_output: If True, print machine-readable JSON results
            quiet: If True, suppress informational messages
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console()
        self.error_console = Console(stderr=True)

    def print(self, message: Any = "") -> None:
        """Print a plain message."""
        self.console.print(message)

    def info(self, message: str) -> None:
        """Print an informational message unless quiet or in JSON mode."""
        if not self.quiet and not self.json_output:
            self.console.print(message, style="cyan")

    def success(self, message: str) -> None:
        """Print a success message unless quiet or in JSON mode."""
        if not self.quiet and not self.json_output:
            self.console.print(message, style="green")

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        self.error_console.print(message, style="yellow")

    def error(self, message: str) -> None:
        """Print an error to stderr."""
        self.error_console.print(f"Error: {message}", style="bold red")

    def output_json(self, data: Any) -> None:
        """Print data as JSON."""
        self.console.print_json(json.dumps(data, default=str))

    def print_stats(self, stats: SyncStats, dry_run: bool = False) -> None:
        """Print the summary of a sync run."""
        if self.json_output:
            self.output_json({**stats.to_dict(), "dry_run": dry_run})
            return

        title = "Sync summary (dry run)" if dry_run else "Sync summary"
        table = Table(title=title, show_header=False)
        table.add_column("Counter")
        table.add_column("Files", justify="right")
        table.add_row("Processed", str(stats.total))
        table.add_row("Would upload" if dry_run else "Uploaded", str(stats.uploaded))
        table.add_row("Skipped", str(stats.skipped))
        table.add_row("Errors", str(stats.errored))
        self.console.print(table)

    def print_entries(self, entries: list[RemoteEntry]) -> None:
        """Print a directory listing."""
        if self.json_output:
            self.output_json(
                [
                    {
                        "name": e.name,
                        "path": e.path,
                        "size": e.size,
                        "is_dir": e.is_dir,
                        "modified": e.modified.isoformat(),
                    }
                    for e in entries
                ]
            )
            return

        table = Table()
        table.add_column("Name")
        table.add_column("Size", justify="right")
        table.add_column("Modified")
        for entry in entries:
            name = f"{entry.name}/" if entry.is_dir else entry.name
            size = "" if entry.is_dir else format_size(entry.size)
            table.add_row(name, size, entry.modified.strftime("%Y-%m-%d %H:%M:%S"))
        self.console.print(table)
