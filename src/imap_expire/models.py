"""Data models for IMAP Expire."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class UidRange:
    """Inclusive run of consecutive message UIDs."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid UID range {self.start}:{self.end}")

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __contains__(self, uid: object) -> bool:
        return isinstance(uid, int) and self.start <= uid <= self.end

    def __iter__(self):
        return iter(range(self.start, self.end + 1))

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}:{self.end}"


@dataclass
class MessagePreview:
    """Metadata of a single message that a dry run would delete."""

    uid: int
    internal_date: datetime
    flags: tuple[str, ...] = ()


@dataclass
class DryRunReport:
    """Result of a read-only cleanup run."""

    candidates: int
    previews: list[MessagePreview] = field(default_factory=list)
    ranges: list[UidRange] = field(default_factory=list)


@dataclass
class CommitReport:
    """Result of a cleanup run that marked and expunged messages."""

    deleted: int
    ranges: list[UidRange] = field(default_factory=list)


CleanupOutcome = Union[DryRunReport, CommitReport]
