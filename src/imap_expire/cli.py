"""CLI entry point for IMAP Expire."""

from __future__ import annotations

from datetime import datetime

import click

from .audit import save_delete_log
from .cleaner import cleanup
from .constants import DATE_FORMAT, DEFAULT_KEEP_FLAG, DEFAULT_MAILBOX, SOCKET_TIMEOUT
from .display import (
    confirm_delete,
    console,
    create_progress,
    display_commit_summary,
    display_dry_run,
    setup_logging,
)
from .errors import CleanupError
from .export import export_previews
from .models import DryRunReport
from .session import connect


@click.command(context_settings={"auto_envvar_prefix": "IMAP_EXPIRE"})
@click.version_option(version="0.1.0", prog_name="imap-expire")
@click.option("-h", "--host", required=True, help="IMAP server to connect to.")
@click.option("-p", "--port", default=None, type=int, help="Server port (default 993, or 143 with --no-ssl).")
@click.option("-u", "--username", required=True, help="Login name.")
@click.password_option("--password", confirmation_prompt=False, help="Login password (prompted when omitted).")
@click.option(
    "--before",
    required=True,
    type=click.DateTime(formats=[DATE_FORMAT]),
    help="Delete messages received before this date (YYYY-MM-DD).",
)
@click.option("-b", "--mailbox", default=DEFAULT_MAILBOX, show_default=True, help="Mailbox to clean.")
@click.option("-n", "--dry-run", is_flag=True, help="Only list the messages that would be deleted.")
@click.option(
    "--keep-flag",
    default=DEFAULT_KEEP_FLAG,
    show_default=True,
    help="Messages carrying this flag or keyword are never deleted.",
)
@click.option("--no-ssl", is_flag=True, help="Connect over a plain-text socket.")
@click.option("--timeout", default=SOCKET_TIMEOUT, type=float, show_default=True, help="Socket timeout in seconds.")
@click.option("-y", "--yes", is_flag=True, help="Delete without asking for confirmation.")
@click.option("--export", "export_path", default=None, help="Write the dry-run listing to this file.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    help="Export format.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log IMAP commands to stderr.")
def cli(
    host: str,
    port: int | None,
    username: str,
    password: str,
    before: datetime,
    mailbox: str,
    dry_run: bool,
    keep_flag: str,
    no_ssl: bool,
    timeout: float,
    yes: bool,
    export_path: str | None,
    fmt: str,
    verbose: bool,
) -> None:
    """Delete messages older than a date from an IMAP mailbox."""
    setup_logging(verbose)
    cutoff = before.date()

    if export_path and not dry_run:
        raise click.UsageError("--export can only be used with --dry-run.")

    if not dry_run and not yes and not confirm_delete(host, mailbox, cutoff.isoformat()):
        console.print("[dim]Cancelled.[/dim]")
        return

    try:
        with connect(host, username, password, port=port, use_ssl=not no_ssl, timeout=timeout) as session:
            with create_progress("Fetching" if dry_run else "Deleting") as progress:
                task = progress.add_task("ranges", total=None)

                def on_range(done: int, total: int) -> None:
                    progress.update(task, completed=done, total=total)

                outcome = cleanup(
                    session,
                    mailbox,
                    cutoff,
                    dry_run,
                    keep_flag=keep_flag,
                    callback=on_range,
                )
    except CleanupError as e:
        raise click.ClickException(str(e)) from e

    if isinstance(outcome, DryRunReport):
        display_dry_run(outcome, mailbox)
        if export_path:
            export_previews(outcome, format=fmt, output_path=export_path)
        return

    display_commit_summary(outcome, mailbox)
    log_path = save_delete_log(outcome, host, username, mailbox, cutoff)
    console.print(f"[dim]Logged to {log_path}[/dim]")
