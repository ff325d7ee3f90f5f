from __future__ import annotations

from enum import Enum
from itertools import product
from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import PreconditionError
from .grids import Grid

__all__ = ["Extrapolation", "Interpolant"]


class Extrapolation(str, Enum):
    """What an interpolant returns outside the grid's bounding box.

    CLAMP
        Coordinates are clamped to ``[x_0, x_{n-1}]`` per dimension, so the
        boundary values are held constant. This is the default: for option
        values it never invents slopes the grid did not resolve.
    LINEAR
        The boundary cell's multilinear form is continued outside the box.
    """

    CLAMP = "clamp"
    LINEAR = "linear"


class Interpolant:
    """Multilinear interpolant of node values on a tensor-product grid.

    The interpolant *borrows* ``grid`` and ``values``: nothing is copied, so
    both must outlive it and ``values`` must not be resized while it is in
    use. Interpolants are cheap and are typically rebuilt every time a
    solution snapshot is queried (e.g. inside an event transform).

    Evaluation locates the bracketing cell along each axis by binary search
    and blends the ``2**ndim`` corner values with multilinear weights. At a
    node the weights are exactly 0 and 1, so node values are reproduced
    bit-for-bit.
    """

    __slots__ = ("grid", "values", "extrapolation", "_nd")

    def __init__(
        self,
        grid: Grid,
        values: ArrayLike,
        *,
        extrapolation: Extrapolation | str = Extrapolation.CLAMP,
    ):
        vals = np.asarray(values, dtype=float)
        if __debug__ and vals.size != grid.size:
            raise PreconditionError(
                f"Interpolant needs {grid.size} values, got {vals.size}"
            )
        self.grid = grid
        self.values = vals
        self.extrapolation = Extrapolation(extrapolation)
        self._nd = vals.reshape(grid.shape)

    def _weights(
        self, d: int, x: NDArray[np.floating]
    ) -> tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.floating]]:
        """Lower/upper corner indices and upper weight along axis ``d``."""
        axis = self.grid.axes[d]
        if axis.size == 1:
            zeros = np.zeros(x.shape, dtype=np.intp)
            return zeros, zeros, np.zeros(x.shape, dtype=float)

        ticks = axis.ticks
        lo = axis.locate(x)
        hi = lo + 1
        x0 = ticks[lo]
        x1 = ticks[hi]
        t = (x - x0) / (x1 - x0)
        if self.extrapolation == Extrapolation.CLAMP:
            t = np.clip(t, 0.0, 1.0)
        return lo, hi, t

    def __call__(self, *coords: ArrayLike) -> float | NDArray[np.floating]:
        if len(coords) != self.grid.ndim:
            raise ValueError(
                f"Expected {self.grid.ndim} coordinate(s), got {len(coords)}"
            )

        pts = np.broadcast_arrays(*(np.asarray(c, dtype=float) for c in coords))
        out_shape = pts[0].shape
        flat = [p.reshape(-1) for p in pts]

        per_axis = [self._weights(d, x) for d, x in enumerate(flat)]

        result = np.zeros(flat[0].shape, dtype=float)
        for corner in product((0, 1), repeat=self.grid.ndim):
            w = np.ones(flat[0].shape, dtype=float)
            idx = []
            for (lo, hi, t), c in zip(per_axis, corner, strict=True):
                if c:
                    w = w * t
                    idx.append(hi)
                else:
                    w = w * (1.0 - t)
                    idx.append(lo)
            # skip vanishing corners so inf/nan neighbours cannot leak in
            nz = w != 0.0
            if np.any(nz):
                result[nz] += w[nz] * self._nd[tuple(i[nz] for i in idx)]

        if len(out_shape) == 0:
            return float(result[0])
        return cast(NDArray[np.floating], result.reshape(out_shape))

    def __repr__(self) -> str:
        return (
            f"Interpolant(shape={self.grid.shape}, "
            f"extrapolation={self.extrapolation.value!r})"
        )
