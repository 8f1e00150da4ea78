"""Rich-based display functions for IMAP Expire."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.prompt import Prompt
from rich.table import Table

from .constants import CONFIRM_WORD
from .models import CommitReport, DryRunReport, UidRange

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _flag_color(flags: tuple[str, ...]) -> str:
    """Return a Rich color name for a message's flags."""
    if "\\Seen" not in flags:
        return "yellow"
    if "\\Answered" in flags:
        return "green"
    return "white"


def _ranges_text(ranges: list[UidRange]) -> str:
    return ", ".join(str(r) for r in ranges) or "none"


def display_dry_run(report: DryRunReport, mailbox: str) -> None:
    """Display every message a commit run would delete."""
    table = Table(title=f"Messages to delete from {mailbox}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("UID", justify="right")
    table.add_column("Internal date")
    table.add_column("Flags")

    for idx, preview in enumerate(report.previews, start=1):
        color = _flag_color(preview.flags)
        table.add_row(
            str(idx),
            str(preview.uid),
            preview.internal_date.isoformat(sep=" "),
            f"[{color}]{' '.join(preview.flags) or '-'}[/{color}]",
        )

    if report.previews:
        console.print(table)
    console.print(
        Panel(
            f"Ranges: {len(report.ranges)}  |  UID set: {_ranges_text(report.ranges)}",
            title="Summary",
        )
    )
    console.print(f"[yellow]{report.candidates} not deleted (dry run).[/yellow]")


def display_commit_summary(report: CommitReport, mailbox: str) -> None:
    """Display a success summary after deleting messages."""
    console.print(
        Panel(
            f"[bold green]{report.deleted} deleted.[/bold green]\n"
            f"Mailbox {mailbox}, {len(report.ranges)} STORE commands.",
            title="Done",
        )
    )


def create_progress(description: str) -> Progress:
    """Create a configured Rich Progress bar."""
    return Progress(
        SpinnerColumn(),
        TextColumn(f"[bold blue]{description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def confirm_delete(host: str, mailbox: str, before: str) -> bool:
    """Prompt the user to confirm permanent deletion."""
    lines = [
        "[bold]Messages matching the following will be expunged:[/bold]",
        "",
        f"  - server:  {host}",
        f"  - mailbox: {mailbox}",
        f"  - before:  {before}",
        "",
        "[bold red]Expunged messages cannot be recovered.[/bold red]",
    ]
    console.print(Panel("\n".join(lines), title="Confirm Delete"))

    answer = Prompt.ask(f'[bold red]Type "{CONFIRM_WORD}" to confirm[/bold red]', console=console)
    return answer == CONFIRM_WORD
