"""Rich-powered tables for scan results."""
from __future__ import annotations

from rich import box
from rich.console import Console
from rich.table import Table

from ..pipeline import ScanSummary

_console = Console()


def print_summary_table(
    summary: ScanSummary,
    title: str = "ELB log scan",
    console: Console | None = None,
) -> None:
    """Render the run counters as a two-column Rich table."""
    out = console or _console
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right", style="cyan")

    rows = [
        ("records", summary.records),
        ("failures", summary.failures),
        ("lines", summary.lines),
        ("files", summary.files_seen),
        ("files skipped", summary.files_skipped),
        ("read errors", summary.read_errors),
    ]
    for metric, value in rows:
        table.add_row(metric, str(value))

    out.print(table)


def print_error_fields_table(
    summary: ScanSummary,
    title: str = "Malformed fields",
    console: Console | None = None,
) -> None:
    """Render how often each field tag failed, most frequent first."""
    out = console or _console
    if not summary.error_fields:
        return
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("#", style="dim", width=4)
    table.add_column("Field")
    table.add_column("Count", justify="right", style="red")

    for rank, (tag, count) in enumerate(summary.error_fields.most_common(), start=1):
        table.add_row(str(rank), tag, str(count))

    out.print(table)
