"""Append-only log of committed deletions."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path

from imap_expire import constants
from imap_expire.models import CommitReport


def save_delete_log(
    report: CommitReport,
    host: str,
    username: str,
    mailbox: str,
    before: date,
    log_path: Path | None = None,
) -> Path:
    """Append a deletion to the audit log and return the log's path."""
    log_path = Path(log_path or constants.DELETE_LOG_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    log: list = []
    if log_path.exists():
        with open(log_path) as f:
            try:
                log = json.load(f)
            except json.JSONDecodeError:
                log = []
        if not isinstance(log, list):
            log = []

    log.append(
        {
            "date": datetime.now().isoformat(),
            "host": host,
            "username": username,
            "mailbox": mailbox,
            "before": before.isoformat(),
            "deleted": report.deleted,
            "ranges": [str(r) for r in report.ranges],
        }
    )

    with open(log_path, "w") as f:
        json.dump(log, f, indent=2)
    return log_path
