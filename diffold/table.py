from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

from .blocks import annotate_blocks
from .control import ACTION_UNFOLD, ACTION_UNFOLD_DOWN, ACTION_UNFOLD_UP, ControlRow, build_control_row, compute_hunk_header
from .hunks import Hunk, HunkList, partition_hunks
from .policy import FoldPolicy
from .rows import DiffRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayItem:
    """One rendered line: either a diff row or the control row of a hunk."""

    row: DiffRow | None = None
    control: ControlRow | None = None

    @property
    def is_control(self) -> bool:
        return self.control is not None


class DiffTable:
    """Folding state for one diff table.

    Construction annotates the rows, partitions them into hunks and folds every
    hunk worth folding. Afterwards only ``unfold_down``/``unfold_up`` mutate the
    state; each call shrinks or dissolves one hunk.
    """

    def __init__(self, rows: list[DiffRow], policy: FoldPolicy | None = None) -> None:
        self.rows = rows
        self.policy = policy or FoldPolicy()
        annotate_blocks(self.rows)
        self.hunks: HunkList = partition_hunks(self.rows)

        folded = 0
        for hunk in list(self.hunks):
            prev_id = hunk.prev
            if not self.policy.should_fold(hunk):
                logger.debug("Dropping hunk %d (rows %d-%d)", hunk.id, hunk.first, hunk.last)
                self.hunks.remove(hunk)
            else:
                self.policy.trim(hunk)
                self._hide(hunk)
                self._rebuild_control(hunk)
                folded += 1
            self._notify(prev_id)
        logger.info("Folded %d hunks, %d of %d rows hidden", folded, self.hidden_count(), len(self.rows))

    def _hide(self, hunk: Hunk) -> None:
        for index in range(hunk.first, hunk.last + 1):
            self.rows[index].visible = False

    def _rebuild_control(self, hunk: Hunk) -> None:
        hunk.control = build_control_row(self.rows, self.hunks, hunk, self.policy)

    def _notify(self, hunk_id: int | None) -> None:
        if hunk_id is None or hunk_id not in self.hunks:
            return
        self.refresh_header(self.hunks.get(hunk_id))

    def _dissolve(self, hunk: Hunk) -> None:
        logger.debug("Dissolving hunk %d", hunk.id)
        self.hunks.remove(hunk)

    def refresh_header(self, hunk: Hunk) -> None:
        if hunk.control is None:
            self._rebuild_control(hunk)
            return
        hunk.control = hunk.control.with_header(compute_hunk_header(self.rows, self.hunks, hunk))

    def rebuild_control(self, hunk_id: int) -> ControlRow:
        hunk = self.hunks.get(hunk_id)
        control = build_control_row(self.rows, self.hunks, hunk, self.policy)
        hunk.control = control
        return control

    def unfold_down(self, hunk_id: int) -> bool:
        """Reveal up to ``max_unfold_chunk`` rows from the top of a hunk.

        Returns True when the hunk survives, False when it was dissolved.
        """
        hunk = self.hunks.get(hunk_id)
        prev_id = hunk.prev
        cursor = hunk.first
        for _ in range(self.policy.max_unfold_chunk):
            self.rows[cursor].visible = True
            if cursor == hunk.last:
                break
            cursor += 1
        survived = cursor != hunk.last
        if survived:
            hunk.first = cursor
            self._rebuild_control(hunk)
        else:
            self.rows[cursor].visible = True
            self._dissolve(hunk)
        self._notify(prev_id)
        return survived

    def unfold_up(self, hunk_id: int) -> bool:
        """Reveal up to ``max_unfold_chunk`` rows from the bottom of a hunk."""
        hunk = self.hunks.get(hunk_id)
        prev_id = hunk.prev
        cursor = hunk.last
        for _ in range(self.policy.max_unfold_chunk):
            self.rows[cursor].visible = True
            if cursor == hunk.first:
                break
            cursor -= 1
        survived = cursor != hunk.first
        if survived:
            hunk.last = cursor
            self._rebuild_control(hunk)
        else:
            self.rows[cursor].visible = True
            self._dissolve(hunk)
        self._notify(prev_id)
        return survived

    def unfold(self, hunk_id: int, action: str) -> bool:
        if action in {ACTION_UNFOLD, ACTION_UNFOLD_DOWN}:
            return self.unfold_down(hunk_id)
        if action == ACTION_UNFOLD_UP:
            return self.unfold_up(hunk_id)
        raise ValueError(f"Unknown unfold action: {action}")

    def unfold_all(self) -> int:
        dissolved = 0
        while self.hunks.head is not None:
            while self.unfold_down(self.hunks.head):
                pass
            dissolved += 1
        return dissolved

    def hidden_count(self) -> int:
        return sum(1 for row in self.rows if not row.visible)

    def display_items(self) -> Iterator[DisplayItem]:
        controls = {hunk.first: hunk.control for hunk in self.hunks if hunk.control is not None}
        for position, row in enumerate(self.rows):
            control = controls.get(position)
            if control is not None:
                yield DisplayItem(control=control)
            if row.visible:
                yield DisplayItem(row=row)

    def to_dict(self) -> dict[str, Any]:
        hunks: list[dict[str, Any]] = []
        for hunk in self.hunks:
            control = hunk.control
            hunks.append(
                {
                    "id": hunk.id,
                    "first": hunk.first,
                    "last": hunk.last,
                    "isStart": hunk.is_start,
                    "isEnd": hunk.is_end,
                    "hidden": hunk.size,
                    "buttons": [
                        {"action": button.action, "colSpan": button.col_span}
                        for button in (control.buttons if control else ())
                    ],
                    "header": control.header if control else None,
                }
            )
        return {
            "policy": {
                "maxContext": self.policy.max_context,
                "maxUnfoldChunk": self.policy.max_unfold_chunk,
            },
            "rows": len(self.rows),
            "hiddenRows": self.hidden_count(),
            "hunks": hunks,
            "visibleRows": [position for position, row in enumerate(self.rows) if row.visible],
        }
