# src/quant_pde/numerics/axis.py
from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import cast, overload

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import PreconditionError
from ..formatting import format_values

__all__ = ["Axis"]


def _frozen_copy(values: ArrayLike) -> NDArray[np.floating]:
    arr = np.array(values, dtype=float, copy=True).reshape(-1)
    arr.flags.writeable = False
    return cast(NDArray[np.floating], arr)


class Axis:
    """A strictly increasing set of ticks partitioning an interval.

    The ticks ``a = x_0 < x_1 < ... < x_{n-1} = b`` are stored in a private,
    write-protected numpy buffer owned by the axis. Axes never change after
    construction: :meth:`refine` returns a new axis.

    Parameters
    ----------
    ticks:
        The ticks, at least one. They must be strictly increasing. The check
        runs only while ``__debug__`` is true (it is skipped under
        ``python -O``, where a non-monotone axis is undefined behaviour).

    Raises
    ------
    PreconditionError
        If ``ticks`` is empty, or (debug runs only) not strictly increasing.
    """

    __slots__ = ("_ticks",)

    def __init__(self, ticks: Iterable[float] | ArrayLike):
        arr = _frozen_copy(list(ticks) if isinstance(ticks, Iterator) else ticks)
        if arr.size == 0:
            raise PreconditionError("An axis needs at least one tick")
        if __debug__ and arr.size > 1 and not np.all(arr[1:] > arr[:-1]):
            raise PreconditionError("Axis ticks must be strictly increasing")
        self._ticks = arr

    # ------------------------------------------------------------------
    # Alternative constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_buffer(cls, buffer: ArrayLike) -> Axis:
        """Copy a raw numeric buffer into a new axis without checking order."""
        arr = _frozen_copy(buffer)
        if arr.size == 0:
            raise PreconditionError("An axis needs at least one tick")
        axis = cls.__new__(cls)
        axis._ticks = arr
        return axis

    @classmethod
    def range(cls, start: float, step: float, stop: float) -> Axis:
        """Uniform ticks ``start, start + step, ..., stop`` (both ends included)."""
        if step <= 0.0:
            raise ValueError("step must be > 0")
        if stop < start:
            raise ValueError("Need start <= stop")
        n = int(round((stop - start) / step)) + 1
        ticks = start + step * np.arange(n, dtype=float)
        ticks[-1] = stop
        return cls.from_buffer(ticks)

    @classmethod
    def uniform(cls, lo: float, hi: float, n: int) -> Axis:
        if n < 2:
            raise ValueError("n must be >= 2")
        if not (lo < hi):
            raise ValueError("Need lo < hi")
        return cls.from_buffer(np.linspace(lo, hi, int(n), dtype=float))

    @classmethod
    def clustered(
        cls,
        lo: float,
        hi: float,
        n: int,
        *,
        center: float,
        strength: float = 2.0,
    ) -> Axis:
        """Ticks concentrated around ``center`` via a sinh map.

        Larger ``strength`` packs more ticks near ``center``; the end points
        ``lo`` and ``hi`` are always ticks.
        """
        if n < 3:
            raise ValueError("n must be >= 3")
        if not (lo < hi):
            raise ValueError("Need lo < hi")
        if not (lo <= center <= hi):
            raise ValueError("center must be within [lo, hi]")
        if strength <= 0.0:
            raise ValueError("strength must be > 0")

        u = np.linspace(-1.0, 1.0, int(n), dtype=float)
        raw = np.sinh(strength * u)
        raw = raw / np.max(np.abs(raw))

        x = np.empty_like(raw)
        neg = raw <= 0.0
        x[neg] = center + raw[neg] * (center - lo)
        x[~neg] = center + raw[~neg] * (hi - center)
        x[0] = lo
        x[-1] = hi

        # a center sitting on an end point can collapse the first cell
        return cls(np.unique(x))

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def ticks(self) -> NDArray[np.floating]:
        """Read-only view of the ticks."""
        return self._ticks

    @property
    def size(self) -> int:
        return int(self._ticks.shape[0])

    @property
    def lower(self) -> float:
        return float(self._ticks[0])

    @property
    def upper(self) -> float:
        return float(self._ticks[-1])

    def __len__(self) -> int:
        return self.size

    @overload
    def __getitem__(self, i: int) -> float: ...
    @overload
    def __getitem__(self, i: slice) -> NDArray[np.floating]: ...

    def __getitem__(self, i):
        out = self._ticks[i]
        return float(out) if np.ndim(out) == 0 else out

    def __call__(self, i: int) -> float:
        return float(self._ticks[i])

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self._ticks)

    def __array__(self, dtype=None, copy=None):
        return np.array(self._ticks, dtype=dtype, copy=True)

    # ------------------------------------------------------------------
    # Mesh operations
    # ------------------------------------------------------------------

    def refine(self) -> Axis:
        """Return a new axis with a tick placed between each pair of ticks.

        The refined axis has ``2n - 1`` ticks. The original ticks sit at the
        even positions, unchanged; position ``2i + 1`` holds the midpoint
        ``(x_i + x_{i+1}) / 2``.
        """
        x = self._ticks
        refined = np.empty(2 * x.size - 1, dtype=float)
        refined[0::2] = x
        refined[1::2] = (x[:-1] + x[1:]) / 2.0
        return Axis.from_buffer(refined)

    def locate(self, x: ArrayLike) -> NDArray[np.intp]:
        """Index ``j`` of the cell ``[x_j, x_{j+1}]`` containing each ``x``.

        Points left of the axis map to cell 0 and points right of it to the
        last cell. A single-tick axis has no cells; every point maps to 0.
        """
        xq = np.asarray(x, dtype=float)
        if self.size == 1:
            return np.zeros(xq.shape, dtype=np.intp)
        j = np.searchsorted(self._ticks, xq, side="right") - 1
        return cast(NDArray[np.intp], np.clip(j, 0, self.size - 2))

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Axis):
            return NotImplemented
        return bool(np.array_equal(self._ticks, other._ticks))

    def __hash__(self) -> int:
        return hash(self._ticks.tobytes())

    def __copy__(self) -> Axis:
        return Axis.from_buffer(self._ticks)

    def __deepcopy__(self, memo: dict) -> Axis:
        return Axis.from_buffer(self._ticks)

    def __str__(self) -> str:
        return format_values(self._ticks)

    def __repr__(self) -> str:
        return f"Axis({self._ticks.tolist()!r})"
