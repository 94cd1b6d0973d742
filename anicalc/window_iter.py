"""Iteration of L2 super-windows over a position-sorted minimizer index."""

from __future__ import annotations

from collections.abc import Sequence

from anicalc.types import MinimizerInfo


class SuperWindowIterator:
    """Tracks the half-open range ``[begin, end)`` of minimizers in a super-window.

    ``position`` is the window position where the current super-window begins.
    Callers must stay within the index; advancing past its end raises IndexError.
    """

    def __init__(
        self,
        index: Sequence[MinimizerInfo],
        begin: int,
        end: int,
        count_minimizer_windows: int,
    ) -> None:
        self.index = index
        self.begin = begin
        self.end = end
        self.count_minimizer_windows = count_minimizer_windows
        self.position = index[begin].wpos

    def advance(self) -> None:
        """Shift the super-window by the smallest step that changes its contents."""
        begin_pos = self.position
        last_pos = begin_pos + self.count_minimizer_windows - 1

        to_next_begin = self.index[self.begin + 1].wpos - begin_pos
        to_next_end = self.index[self.end].wpos - last_pos
        step = min(to_next_begin, to_next_end)

        self.position += step
        if step == to_next_begin:
            self.begin += 1
        if step == to_next_end:
            self.end += 1