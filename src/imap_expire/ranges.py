"""Compression of sorted UID sequences into contiguous ranges."""

from __future__ import annotations

from collections.abc import Iterable

from .models import UidRange


def compress_ranges(uids: Iterable[int]) -> list[UidRange]:
    """Collapse ascending UIDs into the fewest inclusive ranges.

    ``uids`` must already be sorted ascending; unsorted input gives an
    undefined result.  A value equal to the previous one is folded into the
    current run, so duplicates never split or widen a range.

    Examples:
      [1, 2, 3]             -> [1:3]
      [1, 2, 3, 5, 7, 8, 9] -> [1:3, 5, 7:9]
      []                    -> []
    """
    ranges: list[UidRange] = []
    start: int | None = None
    previous: int | None = None

    for uid in uids:
        if previous is not None and uid in (previous, previous + 1):
            previous = uid
            continue
        if start is not None:
            ranges.append(UidRange(start, previous))
        start = previous = uid

    if start is not None:
        ranges.append(UidRange(start, previous))
    return ranges

