from __future__ import annotations

from dataclasses import dataclass

from .hunks import Hunk

DEFAULT_MAX_CONTEXT = 3
DEFAULT_MAX_UNFOLD_CHUNK = 20


@dataclass(frozen=True)
class FoldPolicy:
    max_context: int = DEFAULT_MAX_CONTEXT
    max_unfold_chunk: int = DEFAULT_MAX_UNFOLD_CHUNK

    def __post_init__(self) -> None:
        if self.max_context < 0:
            raise ValueError(f"max_context must be >= 0, got {self.max_context}")
        if self.max_unfold_chunk < 1:
            raise ValueError(f"max_unfold_chunk must be >= 1, got {self.max_unfold_chunk}")

    def required_context(self, hunk: Hunk) -> int:
        total = 0
        if not hunk.is_start:
            total += self.max_context
        if not hunk.is_end:
            total += self.max_context
        return total

    def should_fold(self, hunk: Hunk) -> bool:
        # Folding must hide more rows than the context kept plus the control row.
        return hunk.span >= self.required_context(hunk) + 1

    def trim(self, hunk: Hunk) -> None:
        """Shrink the hunk to its hidden range, keeping context next to edits.

        Hunks touching the start or end of the table keep no context on that
        side, so every leading or trailing match row is hidden.
        """
        if not hunk.is_start:
            hunk.first += self.max_context
        if not hunk.is_end:
            hunk.last -= self.max_context
