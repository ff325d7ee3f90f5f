# src/quant_pde/numerics/linear_solvers.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, cast, runtime_checkable

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla
from numpy.typing import NDArray

from ..config import LinearSolverConfig, Preconditioner
from ..exceptions import ConvergenceError

__all__ = [
    "LinearSolveResult",
    "LinearSolver",
    "BiCGSTABSolver",
    "SparseLUSolver",
    "relative_residual",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LinearSolveResult:
    x: NDArray[np.floating]
    converged: bool
    iterations: int
    residual: float  # ||b - A x|| / ||b||
    method: str


@runtime_checkable
class LinearSolver(Protocol):
    """Solves ``A x = b`` regardless of how ``A`` and ``b`` were assembled."""

    def solve(
        self,
        A: sp.spmatrix | sp.sparray,
        b: NDArray[np.floating],
        *,
        x0: NDArray[np.floating] | None = None,
    ) -> LinearSolveResult:  # pragma: no cover
        ...


def _check_system(A, b) -> NDArray[np.floating]:
    b = np.asarray(b, dtype=float)
    if b.ndim != 1 or b.shape[0] == 0:
        raise ValueError("b must be a non-empty 1D array")
    if A.shape != (b.shape[0], b.shape[0]):
        raise ValueError(f"A must have shape {(b.shape[0], b.shape[0])} got {A.shape}")
    return cast(NDArray[np.floating], b)


def relative_residual(A, x: NDArray[np.floating], b: NDArray[np.floating]) -> float:
    bnorm = float(np.linalg.norm(b))
    rnorm = float(np.linalg.norm(b - A @ x))
    if bnorm == 0.0:
        return rnorm
    return rnorm / bnorm


class BiCGSTABSolver:
    """Stabilized biconjugate gradient solver (``scipy.sparse.linalg.bicgstab``).

    Suitable for the non-symmetric systems produced by convection terms.
    Convergence means ``||b - A x|| <= max(rtol * ||b||, atol)``.

    Non-convergence (iteration cap reached or breakdown) is reported as
    ``converged=False`` and, unless ``raise_on_failure`` is false, raised as
    :class:`~quant_pde.exceptions.ConvergenceError` with the result attached.
    """

    def __init__(
        self,
        config: LinearSolverConfig | None = None,
        *,
        rtol: float | None = None,
        atol: float | None = None,
        max_iter: int | None = None,
        preconditioner: Preconditioner | None = None,
        raise_on_failure: bool = True,
    ):
        cfg = config if config is not None else LinearSolverConfig()
        self.config = LinearSolverConfig(
            rtol=cfg.rtol if rtol is None else float(rtol),
            atol=cfg.atol if atol is None else float(atol),
            max_iter=cfg.max_iter if max_iter is None else int(max_iter),
            preconditioner=cfg.preconditioner if preconditioner is None else preconditioner,
        )
        self.raise_on_failure = bool(raise_on_failure)

    @property
    def name(self) -> str:
        return "bicgstab"

    def _preconditioner(self, A) -> spla.LinearOperator | None:
        kind = self.config.preconditioner
        n = A.shape[0]
        if kind == "none":
            return None
        if kind == "jacobi":
            d = np.asarray(A.diagonal(), dtype=float)
            inv = np.where(d != 0.0, 1.0 / np.where(d != 0.0, d, 1.0), 1.0)
            return spla.LinearOperator((n, n), matvec=lambda v: inv * v, dtype=float)
        # ilu
        ilu = spla.spilu(sp.csc_matrix(A))
        return spla.LinearOperator((n, n), matvec=ilu.solve, dtype=float)

    def solve(
        self,
        A: sp.spmatrix | sp.sparray,
        b: NDArray[np.floating],
        *,
        x0: NDArray[np.floating] | None = None,
    ) -> LinearSolveResult:
        b = _check_system(A, b)
        cfg = self.config

        iterations = 0

        def _count(_xk) -> None:
            nonlocal iterations
            iterations += 1

        x, info = spla.bicgstab(
            A,
            b,
            x0=None if x0 is None else np.asarray(x0, dtype=float),
            rtol=cfg.rtol,
            atol=cfg.atol,
            maxiter=cfg.max_iter,
            M=self._preconditioner(A),
            callback=_count,
        )
        x = np.asarray(x, dtype=float)

        residual = relative_residual(A, x, b)
        converged = info == 0 and bool(np.all(np.isfinite(x)))
        result = LinearSolveResult(
            x=x,
            converged=converged,
            iterations=iterations,
            residual=residual,
            method=self.name,
        )

        if not converged:
            logger.warning(
                "BiCGSTAB did not converge (info=%d, iterations=%d, residual=%.3e)",
                info,
                iterations,
                residual,
            )
            if self.raise_on_failure:
                raise ConvergenceError(
                    f"BiCGSTAB failed to converge after {iterations} iterations "
                    f"(relative residual {residual:.3e}, rtol {cfg.rtol:g})",
                    result,
                )
        return result


class SparseLUSolver:
    """Direct sparse LU solve (``scipy.sparse.linalg.spsolve``).

    Always reports one iteration. A singular matrix raises
    :class:`~quant_pde.exceptions.ConvergenceError`.
    """

    @property
    def name(self) -> str:
        return "splu"

    def solve(
        self,
        A: sp.spmatrix | sp.sparray,
        b: NDArray[np.floating],
        *,
        x0: NDArray[np.floating] | None = None,
    ) -> LinearSolveResult:
        b = _check_system(A, b)
        x = np.asarray(spla.spsolve(sp.csc_matrix(A), b), dtype=float).reshape(-1)
        residual = relative_residual(A, x, b) if np.all(np.isfinite(x)) else np.inf
        result = LinearSolveResult(
            x=x,
            converged=bool(np.isfinite(residual)),
            iterations=1,
            residual=float(residual),
            method=self.name,
        )
        if not result.converged:
            raise ConvergenceError("Sparse LU solve failed (singular matrix)", result)
        return result
