"""elblogs CLI: entry point.

Usage:
    elblogs ROOT [--debug]

Walks ROOT recursively, parses every ELB access-log line it finds and
prints how many records and malformed lines were seen.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from .config import settings
from .errors import EnumerationError
from .pipeline import scan
from .visualization.tables import print_error_fields_table, print_summary_table

console = Console()
err_console = Console(stderr=True)


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--debug", is_flag=True, help="Print per-file progress messages.")
def main(root: Path, debug: bool) -> None:
    """Parse every ELB access log below ROOT and report record counts.

    \b
    Examples:
      elblogs /var/log/elb
      elblogs ./logs --debug
    """
    cfg = settings.model_copy(update={"debug": True}) if debug else settings
    _setup_logging(cfg.debug)

    try:
        result = scan(root, settings=cfg)
    except EnumerationError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    summary = result.summary
    print_summary_table(summary, title=f"ELB log scan: {root}", console=console)
    print_error_fields_table(summary, console=console)
    console.print(
        f"[dim]Parsed {summary.records} records "
        f"({summary.failures} malformed lines) from {summary.files_seen} files[/dim]"
    )


if __name__ == "__main__":
    main()
