from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import numpy as np
from numpy.typing import NDArray

from ..grids import Grid, evaluate_on_nodes
from ..interpolation import Extrapolation, Interpolant

__all__ = ["EventTransform", "Event"]

# (interpolant of the current iterate, x_0, ..., x_{d-1}) -> new value
type EventTransform = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class Event:
    """Instantaneous transformation of the solution at a fixed time.

    At :attr:`time` every node ``x`` of :attr:`grid` receives the value
    ``transform(V, *x)``, where ``V`` interpolates the iterate just before the
    event. Early exercise, for instance, is
    ``lambda V, S: max(V(S), K - S)``.

    Transforms may be written for scalars or be NumPy-vectorized; a
    vectorized call is tried first.
    """

    time: float
    transform: EventTransform
    grid: Grid

    def apply(
        self,
        solution_grid: Grid,
        values: NDArray[np.floating],
        *,
        extrapolation: Extrapolation | str = Extrapolation.CLAMP,
    ) -> NDArray[np.floating]:
        """Return the transformed iterate on ``solution_grid``.

        ``values`` is not modified. When the event's grid differs from the
        solution grid, the transformed values are interpolated back onto the
        solution grid's nodes.
        """
        V = Interpolant(solution_grid, values, extrapolation=extrapolation)

        def _fn(*x):
            return self.transform(V, *x)

        out = evaluate_on_nodes(_fn, self.grid.coordinates())
        if self.grid == solution_grid:
            return out

        back = Interpolant(self.grid, out, extrapolation=extrapolation)
        return cast(NDArray[np.floating], np.asarray(back(*solution_grid.coordinates())))
