from __future__ import annotations

from dataclasses import dataclass

from .hunks import Hunk, HunkList
from .policy import FoldPolicy
from .rows import DiffRow

ACTION_UNFOLD = "unfold"
ACTION_UNFOLD_DOWN = "unfold-down"
ACTION_UNFOLD_UP = "unfold-up"
BUTTON_COLUMNS = 2


@dataclass(frozen=True)
class FoldButton:
    action: str
    col_span: int

    @property
    def direction(self) -> str:
        return "up" if self.action == ACTION_UNFOLD_UP else "down"


@dataclass(frozen=True)
class ControlRow:
    hunk_id: int
    buttons: tuple[FoldButton, ...]
    header: str | None
    hidden_count: int

    def with_header(self, header: str | None) -> ControlRow:
        return ControlRow(self.hunk_id, self.buttons, header, self.hidden_count)


def fold_buttons(hunk: Hunk, policy: FoldPolicy) -> tuple[FoldButton, ...]:
    if not hunk.is_start and not hunk.is_end and hunk.span <= policy.max_unfold_chunk:
        return (FoldButton(ACTION_UNFOLD, BUTTON_COLUMNS),)
    if hunk.is_start and not hunk.is_end:
        return (FoldButton(ACTION_UNFOLD_UP, BUTTON_COLUMNS),)
    if not hunk.is_start and hunk.is_end:
        return (FoldButton(ACTION_UNFOLD_DOWN, BUTTON_COLUMNS),)
    return (FoldButton(ACTION_UNFOLD_DOWN, 1), FoldButton(ACTION_UNFOLD_UP, 1))


def find_leader(rows: list[DiffRow], hunk: Hunk) -> str:
    # Stops at the first block end, even if a block start sits further up.
    for index in range(hunk.last, -1, -1):
        row = rows[index]
        if row.block_start:
            return row.text or ""
        if row.block_end:
            break
    return ""


def compute_hunk_header(rows: list[DiffRow], hunks: HunkList, hunk: Hunk) -> str | None:
    """Describe the rows shown between this hunk and the next one.

    Returns ``None`` when either side contributes no line number, which
    happens for the trailing hunk of a table.
    """
    next_hunk = hunks.next_of(hunk)
    end = next_hunk.first if next_hunk is not None else len(rows)
    x_lineno: int | None = None
    y_lineno: int | None = None
    x_lines = 0
    y_lines = 0
    for row in rows[hunk.last + 1 : end]:
        if not row.visible:
            continue
        if row.x_lineno is not None and row.x_lineno > 0:
            if x_lineno is None:
                x_lineno = row.x_lineno
            x_lines += 1
        if row.y_lineno is not None and row.y_lineno > 0:
            if y_lineno is None:
                y_lineno = row.y_lineno
            y_lines += 1
    if x_lineno is None or y_lineno is None:
        return None
    return f"@@ -{x_lineno},{x_lines} +{y_lineno},{y_lines} @@ {find_leader(rows, hunk)}"


def build_control_row(rows: list[DiffRow], hunks: HunkList, hunk: Hunk, policy: FoldPolicy) -> ControlRow:
    return ControlRow(
        hunk_id=hunk.id,
        buttons=fold_buttons(hunk, policy),
        header=compute_hunk_header(rows, hunks, hunk),
        hidden_count=hunk.size,
    )
