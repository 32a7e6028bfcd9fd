from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from .rows import OP_MATCH, DiffRow

if TYPE_CHECKING:
    from .control import ControlRow

logger = logging.getLogger(__name__)


@dataclass
class Hunk:
    id: int
    first: int
    last: int
    is_start: bool = False
    is_end: bool = False
    prev: int | None = None
    next: int | None = None
    control: ControlRow | None = None

    @property
    def span(self) -> int:
        return self.last - self.first

    @property
    def size(self) -> int:
        return self.last - self.first + 1


@dataclass
class HunkList:
    """Arena of live hunks keyed by id, linked in document order."""

    hunks: dict[int, Hunk] = field(default_factory=dict)
    head: int | None = None
    tail: int | None = None
    next_id: int = 0

    def __len__(self) -> int:
        return len(self.hunks)

    def __contains__(self, hunk_id: object) -> bool:
        return hunk_id in self.hunks

    def __iter__(self) -> Iterator[Hunk]:
        current = self.head
        while current is not None:
            hunk = self.hunks[current]
            yield hunk
            current = hunk.next

    def get(self, hunk_id: int) -> Hunk:
        try:
            return self.hunks[hunk_id]
        except KeyError as error:
            raise LookupError(f"Hunk not found: {hunk_id}") from error

    def prev_of(self, hunk: Hunk) -> Hunk | None:
        return None if hunk.prev is None else self.hunks[hunk.prev]

    def next_of(self, hunk: Hunk) -> Hunk | None:
        return None if hunk.next is None else self.hunks[hunk.next]

    def append(self, first: int, last: int, *, is_start: bool, is_end: bool) -> Hunk:
        hunk = Hunk(id=self.next_id, first=first, last=last, is_start=is_start, is_end=is_end, prev=self.tail)
        self.next_id += 1
        if self.tail is not None:
            self.hunks[self.tail].next = hunk.id
        else:
            self.head = hunk.id
        self.tail = hunk.id
        self.hunks[hunk.id] = hunk
        return hunk

    def remove(self, hunk: Hunk) -> None:
        if hunk.prev is not None:
            self.hunks[hunk.prev].next = hunk.next
        else:
            self.head = hunk.next
        if hunk.next is not None:
            self.hunks[hunk.next].prev = hunk.prev
        else:
            self.tail = hunk.prev
        hunk.control = None
        del self.hunks[hunk.id]


def partition_hunks(rows: list[DiffRow]) -> HunkList:
    """Split rows into maximal runs of match rows.

    Edit rows and structural rows (hunk separators) both end a run. A run is
    a start hunk when no edit row precedes it and an end hunk when no edit row
    follows it.
    """
    runs: list[tuple[int, int, bool]] = []
    first: int | None = None
    is_start = True
    last_edit = -1
    for index, row in enumerate(rows):
        if row.op == OP_MATCH:
            if first is None:
                first = index
            continue
        if first is not None:
            # index > 0 because a run is open
            runs.append((first, index - 1, is_start))
            first = None
        if row.is_edit:
            is_start = False
            last_edit = index
    if first is not None:
        runs.append((first, len(rows) - 1, is_start))

    hunks = HunkList()
    for run_first, run_last, run_start in runs:
        hunks.append(run_first, run_last, is_start=run_start, is_end=run_first > last_edit)
    logger.debug("Partitioned %d rows into %d hunks", len(rows), len(hunks))
    return hunks
