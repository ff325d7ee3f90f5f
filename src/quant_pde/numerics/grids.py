# src/quant_pde/numerics/grids.py
from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from functools import cached_property
from typing import TYPE_CHECKING, Any, cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import PreconditionError
from ..formatting import format_values
from .axis import Axis

if TYPE_CHECKING:
    from .interpolation import Extrapolation, Interpolant

__all__ = [
    "RefinementPolicy",
    "Grid",
    "GridFunction",
    "evaluate_on_nodes",
]


class RefinementPolicy(str, Enum):
    NONE = "none"
    NEW_TICK_BETWEEN_EACH_PAIR = "new_tick_between_each_pair"


def evaluate_on_nodes(
    fn: Callable[..., Any], coords: Sequence[NDArray[np.floating]]
) -> NDArray[np.floating]:
    """Evaluate ``fn(*coords)`` on flat coordinate arrays.

    A vectorized call is attempted first. Callables written for scalars
    (``max(...)``, ``if`` on the argument, ...) raise or return the wrong shape
    on arrays, in which case we fall back to one call per node.
    """
    n = int(coords[0].shape[0])
    try:
        y = np.asarray(fn(*coords), dtype=float)
        if y.shape == (n,):
            return cast(NDArray[np.floating], y.copy())
        if y.ndim == 0:
            return np.full(n, float(y), dtype=float)
    except (TypeError, ValueError):
        pass

    out = np.empty(n, dtype=float)
    for i in range(n):
        out[i] = float(fn(*(float(c[i]) for c in coords)))
    return out


class Grid:
    """Tensor product of one or more axes.

    Nodes are enumerated in row-major order: the last axis varies fastest.
    For a 2-D grid with axes ``x`` (length ``n0``) and ``y`` (length ``n1``) the
    node with multi-index ``(i, j)`` has flat index ``i * n1 + j`` and
    coordinate ``(x_i, y_j)``.

    Solution buffers paired with a grid are flat float arrays of length
    :attr:`size` ordered the same way.
    """

    def __init__(self, *axes: Axis | Sequence[Axis]):
        if len(axes) == 1 and not isinstance(axes[0], Axis):
            axes = tuple(axes[0])  # type: ignore[arg-type]
        if len(axes) == 0:
            raise PreconditionError("A grid needs at least one axis")
        for ax in axes:
            if not isinstance(ax, Axis):
                raise TypeError(f"Expected Axis, got {type(ax).__name__}")
            if ax.size == 0:
                raise PreconditionError("Grid axes must have at least one tick")
        self._axes: tuple[Axis, ...] = tuple(cast(Sequence[Axis], axes))

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def axes(self) -> tuple[Axis, ...]:
        return self._axes

    @property
    def ndim(self) -> int:
        return len(self._axes)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(ax.size for ax in self._axes)

    @property
    def size(self) -> int:
        """Total node count (product of the axis lengths)."""
        return int(np.prod(self.shape, dtype=np.int64))

    @property
    def strides(self) -> tuple[int, ...]:
        """Flat-index distance between neighbours along each axis."""
        out = []
        s = 1
        for n in reversed(self.shape):
            out.append(s)
            s *= n
        return tuple(reversed(out))

    def __len__(self) -> int:
        return self.size

    # ------------------------------------------------------------------
    # Node enumeration
    # ------------------------------------------------------------------

    def ravel(self, multi_index: Sequence[int]) -> int:
        return int(np.ravel_multi_index(tuple(int(i) for i in multi_index), self.shape))

    def unravel(self, index: int) -> tuple[int, ...]:
        return tuple(int(i) for i in np.unravel_index(int(index), self.shape))

    def coordinate(self, index: int) -> tuple[float, ...]:
        mi = self.unravel(index)
        return tuple(ax(i) for ax, i in zip(self._axes, mi, strict=True))

    @cached_property
    def _multi_indices(self) -> NDArray[np.intp]:
        mi = np.stack(np.unravel_index(np.arange(self.size), self.shape), axis=1)
        mi.flags.writeable = False
        return cast(NDArray[np.intp], mi)

    @cached_property
    def _nodes(self) -> NDArray[np.floating]:
        mi = self._multi_indices
        cols = [ax.ticks[mi[:, d]] for d, ax in enumerate(self._axes)]
        nodes = np.stack(cols, axis=1)
        nodes.flags.writeable = False
        return cast(NDArray[np.floating], nodes)

    def multi_indices(self) -> NDArray[np.intp]:
        """``(size, ndim)`` integer array of node multi-indices."""
        return self._multi_indices

    def nodes(self) -> NDArray[np.floating]:
        """``(size, ndim)`` array of node coordinates, in node order."""
        return self._nodes

    def coordinates(self) -> tuple[NDArray[np.floating], ...]:
        """One flat coordinate array per dimension."""
        return tuple(self._nodes[:, d] for d in range(self.ndim))

    # ------------------------------------------------------------------
    # Refinement
    # ------------------------------------------------------------------

    def refine(
        self,
        policy: RefinementPolicy | str = RefinementPolicy.NEW_TICK_BETWEEN_EACH_PAIR,
        *,
        axes: Iterable[int] | None = None,
    ) -> Grid:
        """Return a refined copy of this grid.

        Parameters
        ----------
        policy:
            How each selected axis is refined.
        axes:
            Dimensions to refine (default: all of them).
        """
        pol = RefinementPolicy(policy)
        selected = set(range(self.ndim)) if axes is None else {int(d) for d in axes}
        for d in selected:
            if not (0 <= d < self.ndim):
                raise ValueError(f"axis {d} out of range for a {self.ndim}-D grid")

        new_axes = []
        for d, ax in enumerate(self._axes):
            if pol == RefinementPolicy.NEW_TICK_BETWEEN_EACH_PAIR and d in selected:
                new_axes.append(ax.refine())
            else:
                new_axes.append(ax)
        return Grid(*new_axes)

    # ------------------------------------------------------------------
    # Values on the grid
    # ------------------------------------------------------------------

    def image(self, source: Callable[..., Any] | ArrayLike) -> NDArray[np.floating]:
        """Flat vector of values at every node.

        ``source`` is either a callable ``f(x_0, ..., x_{d-1})`` (for example a
        payoff or an :class:`~quant_pde.numerics.interpolation.Interpolant`)
        sampled at each node, or an existing buffer which is validated and
        copied.
        """
        if callable(source):
            return evaluate_on_nodes(source, self.coordinates())

        arr = np.array(source, dtype=float, copy=True).reshape(-1)
        if arr.shape != (self.size,):
            raise PreconditionError(
                f"Buffer has {arr.size} values but the grid has {self.size} nodes"
            )
        return cast(NDArray[np.floating], arr)

    def accessor(self, values: ArrayLike) -> GridFunction:
        return GridFunction(self, values)

    def interpolant(
        self, values: ArrayLike, extrapolation: Extrapolation | str = "clamp"
    ) -> Interpolant:
        from .interpolation import Interpolant

        return Interpolant(self, values, extrapolation=extrapolation)

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._axes == other._axes

    def __hash__(self) -> int:
        return hash(self._axes)

    def __str__(self) -> str:
        return " x ".join(str(ax) for ax in self._axes)

    def __repr__(self) -> str:
        return f"Grid(shape={self.shape})"


class GridFunction:
    """Read-only pairing of a grid with a value buffer.

    Calling it with a multi-index returns the stored value; ``str()`` prints
    the values (nested per dimension) in the parenthesised list format.
    """

    __slots__ = ("grid", "_values")

    def __init__(self, grid: Grid, values: ArrayLike):
        arr = np.asarray(values, dtype=float).reshape(-1)
        if arr.shape != (grid.size,):
            raise PreconditionError(
                f"Buffer has {arr.size} values but the grid has {grid.size} nodes"
            )
        view = arr.view()
        view.flags.writeable = False
        self.grid = grid
        self._values = view

    @property
    def values(self) -> NDArray[np.floating]:
        return self._values

    def reshaped(self) -> NDArray[np.floating]:
        return self._values.reshape(self.grid.shape)

    def __call__(self, *multi_index: int) -> float:
        return float(self._values[self.grid.ravel(multi_index)])

    def __len__(self) -> int:
        return int(self._values.shape[0])

    def __str__(self) -> str:
        return format_values(self.reshaped())

    def __repr__(self) -> str:
        return f"GridFunction(shape={self.grid.shape})"
