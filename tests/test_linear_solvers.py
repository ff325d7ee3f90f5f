import numpy as np
import pytest
import scipy.sparse as sp

from quant_pde.config import LinearSolverConfig
from quant_pde.exceptions import ConvergenceError
from quant_pde.numerics import BiCGSTABSolver, LinearSolver, SparseLUSolver
from quant_pde.numerics.linear_solvers import relative_residual


def _nonsymmetric_system(rng: np.random.Generator, n: int = 60):
    """Diagonally dominant, non-symmetric tridiagonal system."""
    lower = rng.uniform(0.1, 1.0, size=n - 1)
    upper = rng.uniform(0.1, 2.0, size=n - 1)
    diag = 1.0 + np.r_[upper, 0.0] + np.r_[0.0, lower]
    A = sp.diags([lower, diag, upper], [-1, 0, 1], format="csr")
    x_true = rng.normal(size=n)
    return A, A @ x_true, x_true


@pytest.mark.parametrize("preconditioner", ["jacobi", "ilu", "none"])
def test_bicgstab_solves_nonsymmetric_system(rng, preconditioner) -> None:
    A, b, x_true = _nonsymmetric_system(rng(1))
    solver = BiCGSTABSolver(preconditioner=preconditioner)
    res = solver.solve(A, b)

    assert res.converged
    assert res.method == "bicgstab"
    assert res.residual <= 1e-9
    np.testing.assert_allclose(res.x, x_true, rtol=1e-7, atol=1e-8)


def test_warm_start_at_solution_needs_no_iterations(rng) -> None:
    A, b, x_true = _nonsymmetric_system(rng(2))
    res = BiCGSTABSolver().solve(A, b, x0=x_true)
    assert res.converged
    assert res.iterations <= 1


def test_non_convergence_raises_with_result(rng) -> None:
    g = rng(3)
    n = 80
    A = sp.csr_matrix(np.eye(n) + 0.5 * g.normal(size=(n, n)))
    b = g.normal(size=n)

    solver = BiCGSTABSolver(rtol=1e-14, max_iter=1, preconditioner="none")
    with pytest.raises(ConvergenceError) as info:
        solver.solve(A, b)
    assert info.value.result is not None
    assert not info.value.result.converged
    assert info.value.result.residual > 1e-14


def test_non_convergence_can_be_reported_instead(rng) -> None:
    g = rng(3)
    n = 80
    A = sp.csr_matrix(np.eye(n) + 0.5 * g.normal(size=(n, n)))
    b = g.normal(size=n)

    solver = BiCGSTABSolver(
        LinearSolverConfig(rtol=1e-14, max_iter=1, preconditioner="none"),
        raise_on_failure=False,
    )
    res = solver.solve(A, b)
    assert not res.converged
    assert res.residual == pytest.approx(relative_residual(A, res.x, b))


def test_shape_mismatch_rejected() -> None:
    with pytest.raises(ValueError, match="shape"):
        BiCGSTABSolver().solve(sp.identity(3, format="csr"), np.ones(4))


def test_sparse_lu_solver(rng) -> None:
    A, b, x_true = _nonsymmetric_system(rng(4))
    res = SparseLUSolver().solve(A, b)
    assert res.converged
    assert res.iterations == 1
    np.testing.assert_allclose(res.x, x_true, rtol=1e-10, atol=1e-12)


def test_solvers_satisfy_protocol() -> None:
    assert isinstance(BiCGSTABSolver(), LinearSolver)
    assert isinstance(SparseLUSolver(), LinearSolver)


@pytest.mark.parametrize(
    "kwargs",
    [{"rtol": 0.0}, {"atol": -1.0}, {"max_iter": 0}, {"preconditioner": "amg"}],
)
def test_config_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        LinearSolverConfig(**kwargs)
