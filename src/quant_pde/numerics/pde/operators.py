from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, cast, runtime_checkable

import numpy as np
import scipy.sparse as sp
from numpy.typing import NDArray

from ...typing import Coefficient
from ..fd.stencils import AdvectionScheme, axis_stencil
from ..grids import Grid

__all__ = [
    "DiscreteOperator",
    "LinearOperator",
    "ZeroOperator",
    "ConvectionDiffusion",
    "OperatorSum",
    "evaluate_coefficient",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscreteOperator:
    """Discrete spatial operator ``L u + f`` at one time.

    The PDE is written in time-to-go form ``u_tau = L u + f`` (equivalently
    ``V_t + L V + f = 0`` in calendar time), so for a well-posed problem the
    interior rows of ``L`` have non-positive diagonal and non-negative
    off-diagonal entries.
    """

    matrix: sp.csr_matrix  # (size, size)
    forcing: NDArray[np.floating]  # (size,)

    @property
    def size(self) -> int:
        return int(self.matrix.shape[0])


@runtime_checkable
class LinearOperator(Protocol):
    """Anything that can discretize the spatial part of a linear PDE."""

    @property
    def grid(self) -> Grid:  # pragma: no cover
        ...

    def discretize(
        self, t: float, iterate: NDArray[np.floating] | None = None
    ) -> DiscreteOperator:  # pragma: no cover
        ...


def evaluate_coefficient(coef: Coefficient, grid: Grid, t: float) -> NDArray[np.floating]:
    """Evaluate a coefficient at every node of ``grid`` at time ``t``.

    ``coef`` is a constant or a callable ``fn(x, t)`` where ``x`` holds the
    node coordinates: shape ``(size,)`` on 1-D grids and ``(size, ndim)``
    otherwise. We attempt a vectorized call first and fall back to one call
    per node for scalar-only callables.
    """
    n = grid.size
    if not callable(coef):
        return np.full(n, float(coef), dtype=float)

    nodes = grid.nodes()
    x = nodes[:, 0] if grid.ndim == 1 else nodes

    try:
        arr = np.asarray(coef(x, t), dtype=float)
        if arr.shape == (n,):
            return cast(NDArray[np.floating], arr.copy())
        if arr.ndim == 0:
            return np.full(n, float(arr), dtype=float)
    except (TypeError, ValueError):
        pass

    out = np.empty(n, dtype=float)
    for i in range(n):
        xi = float(x[i]) if grid.ndim == 1 else nodes[i]
        out[i] = float(coef(xi, float(t)))
    return out


class ZeroOperator:
    """``L = 0``, ``f = 0``: every time scheme reduces to the identity."""

    def __init__(self, grid: Grid):
        self._grid = grid
        n = grid.size
        self._op = DiscreteOperator(
            matrix=sp.csr_matrix((n, n), dtype=float),
            forcing=np.zeros(n, dtype=float),
        )

    @property
    def grid(self) -> Grid:
        return self._grid

    def discretize(
        self, t: float, iterate: NDArray[np.floating] | None = None
    ) -> DiscreteOperator:
        return self._op


def _per_axis(coef: Coefficient | Sequence[Coefficient], ndim: int, name: str):
    if isinstance(coef, (list, tuple)):
        if len(coef) != ndim:
            raise ValueError(f"{name} needs {ndim} coefficient(s), got {len(coef)}")
        return tuple(coef)
    return (coef,) * ndim


class ConvectionDiffusion:
    """Linear convection-diffusion-reaction operator on a tensor-product grid.

    Operator form:

        L u = sum_d a_d(x,t) u_{x_d x_d} + sum_d b_d(x,t) u_{x_d} + c(x,t) u

    with an optional source ``f(x,t)``.

    Parameters
    ----------
    grid:
        The grid the operator acts on.
    diffusion, convection:
        ``a_d`` and ``b_d``. One coefficient per dimension (a sequence), or a
        single coefficient used for every dimension.
    reaction:
        ``c``.
    forcing:
        ``f`` (optional).
    advection:
        Stencil used for the first-derivative terms.
    constant_in_time:
        When true the matrix is assembled once and reused for every ``t``.

    Notes
    -----
    Stencil weights come from the actual tick spacings. Each row only couples
    a node to its neighbours along each axis. At the first and last tick of
    every axis the solution is assumed linear (``u_xx = 0``) and the first
    derivative is taken one-sided, into the domain.
    """

    def __init__(
        self,
        grid: Grid,
        *,
        diffusion: Coefficient | Sequence[Coefficient],
        convection: Coefficient | Sequence[Coefficient] = 0.0,
        reaction: Coefficient = 0.0,
        forcing: Coefficient | None = None,
        advection: AdvectionScheme | str = AdvectionScheme.AUTO,
        constant_in_time: bool = False,
    ):
        self._grid = grid
        self.diffusion = _per_axis(diffusion, grid.ndim, "diffusion")
        self.convection = _per_axis(convection, grid.ndim, "convection")
        self.reaction = reaction
        self.forcing = forcing
        self.advection = AdvectionScheme(advection)
        self.constant_in_time = bool(constant_in_time)
        self._cached: DiscreteOperator | None = None

    @property
    def grid(self) -> Grid:
        return self._grid

    def _assemble(self, t: float) -> DiscreteOperator:
        grid = self._grid
        n = grid.size
        nodes = np.arange(n)

        rows = [nodes]
        cols = [nodes]
        vals = [evaluate_coefficient(self.reaction, grid, t)]

        mi = grid.multi_indices()
        for d in range(grid.ndim):
            if grid.axes[d].size == 1:
                continue
            st = axis_stencil(
                grid,
                d,
                diffusion=evaluate_coefficient(self.diffusion[d], grid, t),
                convection=evaluate_coefficient(self.convection[d], grid, t),
                scheme=self.advection,
            )
            has_lower = mi[:, d] > 0
            has_upper = mi[:, d] < grid.axes[d].size - 1

            rows += [nodes, nodes[has_lower], nodes[has_upper]]
            cols += [nodes, nodes[has_lower] - st.stride, nodes[has_upper] + st.stride]
            vals += [st.diag, st.lower[has_lower], st.upper[has_upper]]

        matrix = sp.csr_matrix(
            (np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols))),
            shape=(n, n),
        )
        matrix.sum_duplicates()

        if self.forcing is None:
            f = np.zeros(n, dtype=float)
        else:
            f = evaluate_coefficient(self.forcing, grid, t)

        return DiscreteOperator(matrix=matrix, forcing=f)

    def discretize(
        self, t: float, iterate: NDArray[np.floating] | None = None
    ) -> DiscreteOperator:
        if self.constant_in_time:
            if self._cached is None:
                self._cached = self._assemble(float(t))
                logger.debug(
                    "Assembled time-independent operator: %d nodes, %d nonzeros",
                    self._grid.size,
                    self._cached.matrix.nnz,
                )
            return self._cached
        return self._assemble(float(t))


class OperatorSum:
    """``L = L_1 + ... + L_k`` and ``f = f_1 + ... + f_k`` on one grid."""

    def __init__(self, operators: Sequence[LinearOperator]):
        ops = tuple(operators)
        if not ops:
            raise ValueError("Need at least one operator")
        grid = ops[0].grid
        if any(op.grid != grid for op in ops[1:]):
            raise ValueError("All operators must act on the same grid")
        self._grid = grid
        self.operators = ops

    @property
    def grid(self) -> Grid:
        return self._grid

    def discretize(
        self, t: float, iterate: NDArray[np.floating] | None = None
    ) -> DiscreteOperator:
        parts = [op.discretize(t, iterate) for op in self.operators]
        matrix = parts[0].matrix.copy()
        forcing = parts[0].forcing.copy()
        for p in parts[1:]:
            matrix = matrix + p.matrix
            forcing = forcing + p.forcing
        return DiscreteOperator(matrix=sp.csr_matrix(matrix), forcing=forcing)
