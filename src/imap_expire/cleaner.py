"""Cleanup workflow - find stale messages and preview or delete them range by range."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from .constants import DEFAULT_KEEP_FLAG
from .models import CleanupOutcome, CommitReport, DryRunReport, MessagePreview
from .ranges import compress_ranges
from .session import MailboxSession

logger = logging.getLogger(__name__)


def cleanup(
    session: MailboxSession,
    mailbox: str,
    before: date,
    dry_run: bool,
    keep_flag: str = DEFAULT_KEEP_FLAG,
    callback: Callable[[int, int], None] | None = None,
) -> CleanupOutcome:
    """Delete every message in ``mailbox`` older than ``before`` and not carrying ``keep_flag``.

    Matching UIDs are collapsed into contiguous ranges so each range costs a
    single command.  In a dry run the mailbox is examined read-only and the
    metadata of every candidate is returned; otherwise each range is marked
    ``\\Deleted`` and the mailbox is expunged once at the end.

    Session errors propagate unchanged.  A failure while marking leaves the
    earlier marks in place and skips the expunge; running again re-marks the
    same messages.  Unlike an unconditional final EXPUNGE, a commit that
    matched nothing issues no EXPUNGE at all.

    ``callback(done, total)`` is called after each range is processed.
    """
    session.select(mailbox, readonly=dry_run)

    uids = sorted(set(session.search(before, keep_flag)))
    ranges = compress_ranges(uids)
    total = len(ranges)
    logger.info(
        "%d messages in %s before %s match (%d ranges)", len(uids), mailbox, before.isoformat(), total
    )

    if dry_run:
        previews: list[MessagePreview] = []
        for num, uid_range in enumerate(ranges, start=1):
            previews.extend(session.fetch_metadata(uid_range))
            if callback:
                callback(num, total)
        return DryRunReport(candidates=len(uids), previews=previews, ranges=ranges)

    for num, uid_range in enumerate(ranges, start=1):
        logger.debug("Marking %s as deleted", uid_range)
        session.mark_deleted(uid_range)
        if callback:
            callback(num, total)

    # No EXPUNGE unless this run marked something
    if ranges:
        session.purge()

    deleted = sum(len(r) for r in ranges)
    logger.info("Deleted %d messages from %s", deleted, mailbox)
    return CommitReport(deleted=deleted, ranges=ranges)
