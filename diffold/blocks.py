from __future__ import annotations

import math

from .rows import DiffRow

BLANK_SCORE = math.inf
TAB_WIDTH = 4


def score_indent(text: str) -> float:
    """Return the leading-whitespace weight of a line, or BLANK_SCORE for blank lines."""
    score = 0
    for char in text:
        if char == " ":
            score += 1
        elif char == "\t":
            score += TAB_WIDTH
        elif char in "\r\n":
            continue
        else:
            return score
    return BLANK_SCORE


def annotate_blocks(rows: list[DiffRow]) -> None:
    """Tag rows that open or close a top-level block.

    A row is a block start when the next code row is indented deeper while the
    row itself sits at column zero, and a block end when it sits at column zero
    and is followed by a blank line. The tags feed the hunk-header leader.
    """
    prev_score: float = 0
    for index, row in enumerate(rows):
        if row.text is None:
            continue
        score = score_indent(row.text)
        if index > 0:
            if score == BLANK_SCORE and prev_score == 0:
                rows[index - 1].block_end = True
            elif score > prev_score and prev_score == 0:
                rows[index - 1].block_start = True
        prev_score = score
