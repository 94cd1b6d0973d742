"""Ordered map of query and reference minimizers for sliding Jaccard estimates."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from sortedcontainers import SortedDict

from anicalc.types import MinimizerInfo


@dataclass
class _Entry:
    wpos_q: Optional[int]
    wpos_r: Optional[int]

    @property
    def shared(self) -> bool:
        return self.wpos_q is not None and self.wpos_r is not None


class _Inserted(Enum):
    UNIQUE = auto()
    COUPLED = auto()
    REVISED = auto()


class _Removed(Enum):
    DELETED = auto()
    UPDATED = auto()
    UNCHANGED = auto()


class SlideMapper:
    """Tracks shared sketch elements between a query and a sliding reference window.

    The map holds the query sketch plus the reference minimizers of the current
    window.  ``shared_sketch_elements`` counts, among the ``sketch_size``
    smallest hashes in the map, those present in both query and reference.
    """

    def __init__(self, query_minimizers: Sequence[MinimizerInfo], sketch_size: int) -> None:
        if sketch_size < 1:
            raise ValueError("sketch size must be at least 1")
        if sketch_size > len(query_minimizers):
            raise ValueError("sketch size exceeds the number of query minimizers")
        self.sketch_size = sketch_size
        self._map: SortedDict = SortedDict()
        for m in query_minimizers[:sketch_size]:
            self._map[m.hash] = _Entry(m.wpos, None)
        self._pivot = self._map.keys()[sketch_size - 1]
        self.shared_sketch_elements = 0

    def __len__(self) -> int:
        return len(self._map)

    def items(self) -> list[tuple[int, Optional[int], Optional[int]]]:
        """Entries as (hash, query position, reference position), by ascending hash."""
        return [(h, e.wpos_q, e.wpos_r) for h, e in self._map.items()]

    @property
    def pivot(self) -> int:
        """Hash of the ``sketch_size``-th smallest entry."""
        return self._pivot

    def _shift_pivot(self, step: int) -> None:
        self._pivot = self._map.keys()[self._map.index(self._pivot) + step]

    def insert_ref(self, minimizer: MinimizerInfo) -> None:
        """Add a reference minimizer to the window."""
        entry = self._map.get(minimizer.hash)
        if entry is None:
            self._map[minimizer.hash] = _Entry(None, minimizer.wpos)
            status = _Inserted.UNIQUE
        else:
            status = _Inserted.COUPLED if entry.wpos_r is None else _Inserted.REVISED
            entry.wpos_r = minimizer.wpos

        if minimizer.hash <= self._pivot:
            if status is _Inserted.COUPLED:
                self.shared_sketch_elements += 1
            elif status is _Inserted.UNIQUE:
                if self._map[self._pivot].shared:
                    self.shared_sketch_elements -= 1
                self._shift_pivot(-1)

    def delete_ref(self, minimizer: MinimizerInfo) -> None:
        """Remove a reference minimizer from the window.

        Nothing changes if the hash is held at a different reference position.
        Raises KeyError if the hash is not in the map at all.
        """
        entry = self._map[minimizer.hash]
        if entry.wpos_r != minimizer.wpos:
            return

        if entry.wpos_q is not None:
            entry.wpos_r = None
            if minimizer.hash <= self._pivot:
                self.shared_sketch_elements -= 1
            return

        if minimizer.hash == self._pivot:
            self._shift_pivot(1)
            if self._map[self._pivot].shared:
                self.shared_sketch_elements += 1
            del self._map[minimizer.hash]
            return

        del self._map[minimizer.hash]
        if minimizer.hash <= self._pivot:
            self._shift_pivot(1)
            if self._map[self._pivot].shared:
                self.shared_sketch_elements += 1

    def insert_range(self, minimizers: Iterable[MinimizerInfo]) -> None:
        """Add several reference minimizers in order."""
        for m in minimizers:
            self.insert_ref(m)