from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp
from numpy.typing import NDArray


@dataclass(frozen=True, slots=True)
class LinearSystem:
    A: sp.csr_matrix  # system matrix for the new iterate
    b: NDArray[np.floating]  # right-hand side


@dataclass(frozen=True, slots=True)
class Iterate:
    time: float
    values: NDArray[np.floating]


class IterateHistory:
    """Most recent iterates of a backward run, newest first.

    ``history[0]`` is the latest iterate, ``history[1]`` the one before, and so
    on. Only ``depth`` iterates are kept.
    """

    __slots__ = ("_items",)

    def __init__(self, depth: int):
        if depth < 1:
            raise ValueError("depth must be >= 1")
        self._items: deque[Iterate] = deque(maxlen=int(depth))

    @property
    def depth(self) -> int:
        return int(self._items.maxlen or 0)

    def push(self, time: float, values: NDArray[np.floating]) -> None:
        self._items.appendleft(Iterate(time=float(time), values=values))

    def replace_latest(self, values: NDArray[np.floating]) -> None:
        """Swap the newest iterate's values (after an event transformed it)."""
        if not self._items:
            raise IndexError("history is empty")
        self._items[0] = Iterate(time=self._items[0].time, values=values)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, i: int) -> Iterate:
        return self._items[i]

    def __iter__(self) -> Iterator[Iterate]:
        return iter(self._items)
