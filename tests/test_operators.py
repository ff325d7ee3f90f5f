import numpy as np
import pytest

from quant_pde.models.black_scholes import BlackScholes, bs_pde_coeffs
from quant_pde.numerics import Axis, Grid
from quant_pde.numerics.pde import ConvectionDiffusion, OperatorSum, ZeroOperator
from quant_pde.numerics.pde.operators import evaluate_coefficient


def test_zero_operator(unit_grid: Grid) -> None:
    op = ZeroOperator(unit_grid).discretize(0.3)
    assert op.size == unit_grid.size
    assert op.matrix.nnz == 0
    np.testing.assert_array_equal(op.forcing, 0.0)


def test_evaluate_coefficient_constant_vector_and_scalar(unit_grid: Grid) -> None:
    x = unit_grid.axes[0].ticks
    np.testing.assert_array_equal(evaluate_coefficient(2.0, unit_grid, 0.0), 2.0)
    np.testing.assert_allclose(
        evaluate_coefficient(lambda s, t: s * t, unit_grid, 2.0), 2.0 * x
    )
    np.testing.assert_allclose(
        evaluate_coefficient(lambda s, t: max(s, 0.5), unit_grid, 0.0),
        np.maximum(x, 0.5),
    )


def test_diffusion_matrix_is_exact_on_quadratics() -> None:
    grid = Grid(Axis([0.0, 0.3, 0.5, 1.2, 2.0, 2.1]))
    x = grid.axes[0].ticks
    op = ConvectionDiffusion(grid, diffusion=1.0, convection=0.5, reaction=-0.1)
    L = op.discretize(0.0).matrix

    u = 3.0 * x**2 - x + 2.0
    Lu = L @ u
    expected = 6.0 + 0.5 * (6.0 * x - 1.0) - 0.1 * u
    np.testing.assert_allclose(Lu[1:-1], expected[1:-1], atol=1e-10)


def test_well_posed_operator_is_an_m_matrix() -> None:
    grid = Grid(Axis.clustered(0.0, 300.0, 61, center=100.0))
    L = BlackScholes(grid, rate=0.04, volatility=0.2).discretize(0.0).matrix.toarray()

    # interior rows; the last row carries the one-sided boundary drift
    off = (L - np.diag(np.diag(L)))[1:-1]
    assert np.all(off >= 0.0)
    assert np.all(np.diag(L)[1:-1] <= 0.0)
    # each row couples a node only to its neighbours
    assert np.count_nonzero(np.triu(L, 2)) == 0
    assert np.count_nonzero(np.tril(L, -2)) == 0


def test_black_scholes_rows() -> None:
    grid = Grid(Axis([0.0, 50.0, 100.0, 150.0]))
    L = BlackScholes(grid, rate=0.05, volatility=0.2).discretize(0.0).matrix.toarray()

    # S = 0: V_tau = -r V
    np.testing.assert_allclose(L[0], [-0.05, 0.0, 0.0, 0.0])
    # rows sum to -r: constants decay at the risk free rate
    np.testing.assert_allclose(L.sum(axis=1), -0.05, atol=1e-12)


def test_linear_functions_grow_like_forward_at_upper_boundary() -> None:
    grid = Grid(Axis([0.0, 50.0, 100.0, 150.0]))
    r, q = 0.05, 0.02
    L = BlackScholes(grid, rate=r, volatility=0.3, dividend=q).discretize(0.0).matrix
    S = grid.axes[0].ticks

    # L S = (r - q) S - r S = -q S, exactly, boundaries included
    np.testing.assert_allclose(L @ S, -q * S, atol=1e-10)


def test_constant_operators_are_assembled_once() -> None:
    grid = Grid(Axis.uniform(0.0, 200.0, 21))
    op = BlackScholes(grid, rate=0.04, volatility=0.2)
    assert op.discretize(0.0) is op.discretize(0.7)

    td = BlackScholes(grid, rate=lambda t: 0.04 + 0.01 * t, volatility=0.2)
    L0 = td.discretize(0.0).matrix.toarray()
    L1 = td.discretize(1.0).matrix.toarray()
    assert L0[0, 0] == pytest.approx(-0.04)
    assert L1[0, 0] == pytest.approx(-0.05)


def test_bs_pde_coeffs_values() -> None:
    c = bs_pde_coeffs(sigma=0.2, r=0.05, q=0.01)
    S = np.array([0.0, 100.0])
    np.testing.assert_allclose(c.a(S, 0.0), [0.0, 200.0])
    np.testing.assert_allclose(c.b(S, 0.0), [0.0, 4.0])
    np.testing.assert_allclose(c.c(S, 0.0), [-0.05, -0.05])


def test_black_scholes_rejects_negative_spots() -> None:
    with pytest.raises(ValueError, match="negative"):
        BlackScholes(Grid(Axis([-1.0, 0.0, 1.0])), rate=0.0, volatility=0.2)


def test_operator_sum_adds_matrices_and_forcing(unit_grid: Grid) -> None:
    a = ConvectionDiffusion(unit_grid, diffusion=1.0, forcing=1.0)
    b = ConvectionDiffusion(unit_grid, diffusion=0.0, reaction=-2.0, forcing=0.5)
    total = OperatorSum([a, b]).discretize(0.0)

    expected = a.discretize(0.0).matrix + b.discretize(0.0).matrix
    np.testing.assert_allclose(total.matrix.toarray(), expected.toarray())
    np.testing.assert_allclose(total.forcing, 1.5)


def test_operator_sum_requires_common_grid(unit_grid: Grid) -> None:
    other = Grid(Axis.uniform(0.0, 1.0, 5))
    with pytest.raises(ValueError, match="same grid"):
        OperatorSum([ZeroOperator(unit_grid), ZeroOperator(other)])
    with pytest.raises(ValueError):
        OperatorSum([])


def test_two_dimensional_operator_stencil() -> None:
    grid = Grid(Axis.uniform(0.0, 2.0, 3), Axis.uniform(0.0, 2.0, 3))
    L = ConvectionDiffusion(grid, diffusion=[1.0, 2.0]).discretize(0.0).matrix.toarray()
    centre = grid.ravel((1, 1))
    row = L[centre]
    assert row[centre] == pytest.approx(-2.0 - 4.0)
    assert row[grid.ravel((0, 1))] == pytest.approx(1.0)
    assert row[grid.ravel((2, 1))] == pytest.approx(1.0)
    assert row[grid.ravel((1, 0))] == pytest.approx(2.0)
    assert row[grid.ravel((1, 2))] == pytest.approx(2.0)
