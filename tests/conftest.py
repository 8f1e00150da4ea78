"""Shared fixtures for tests."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from imap_expire.errors import DeleteError, FetchError, MailboxError
from imap_expire.models import MessagePreview, UidRange


class FakeSession:
    """In-memory mailbox session that records every call."""

    def __init__(
        self,
        uids: list[int] | None = None,
        mailboxes: tuple[str, ...] = ("INBOX",),
        fail_fetch_at: int | None = None,
        fail_mark_at: int | None = None,
        fail_purge: bool = False,
    ) -> None:
        self.uids = list(uids or [])
        self.mailboxes = mailboxes
        self.fail_fetch_at = fail_fetch_at
        self.fail_mark_at = fail_mark_at
        self.fail_purge = fail_purge
        self.calls: list[tuple] = []
        self.logged_out = False

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.logged_out = True

    def select(self, mailbox: str, readonly: bool = False) -> None:
        self.calls.append(("select", mailbox, readonly))
        if mailbox not in self.mailboxes:
            raise MailboxError(f"Cannot select mailbox {mailbox!r}: NO no such mailbox")

    def search(self, before: date, keep_flag: str) -> list[int]:
        self.calls.append(("search", before, keep_flag))
        return list(self.uids)

    def fetch_metadata(self, uid_range: UidRange) -> list[MessagePreview]:
        self.calls.append(("fetch", uid_range))
        if self.fail_fetch_at is not None and self.fail_fetch_at in uid_range:
            raise FetchError(f"UID FETCH failed for {uid_range}")
        return [
            MessagePreview(
                uid=uid,
                internal_date=datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc),
                flags=("\\Seen",),
            )
            for uid in sorted(set(self.uids))
            if uid in uid_range
        ]

    def mark_deleted(self, uid_range: UidRange) -> None:
        self.calls.append(("mark", uid_range))
        if self.fail_mark_at is not None and self.fail_mark_at in uid_range:
            raise DeleteError(f"UID STORE failed for {uid_range}")

    def purge(self) -> None:
        self.calls.append(("purge",))
        if self.fail_purge:
            raise DeleteError("EXPUNGE failed: NO server busy")

    def called(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def cutoff() -> date:
    return date(2024, 1, 1)


@pytest.fixture
def five_message_session() -> FakeSession:
    return FakeSession(uids=[4, 2, 3, 9, 20])


@pytest.fixture
def contiguous_session() -> FakeSession:
    return FakeSession(uids=[12, 10, 11])


@pytest.fixture
def make_session():
    """Factory for FakeSession instances with custom contents or failures."""
    return FakeSession
