# tests/test_fd_stencils.py

import numpy as np
import pytest

from quant_pde.numerics import Axis, Grid
from quant_pde.numerics.fd import stencils as st


def _make_strictly_increasing_grid(rng: np.random.Generator, n: int) -> np.ndarray:
    """Make a strictly increasing 1D grid with mildly irregular spacing."""
    if n < 3:
        raise ValueError("n must be >= 3")
    steps = rng.uniform(0.05, 0.35, size=n - 1)
    x = np.concatenate(([0.0], np.cumsum(steps)))
    return x.astype(float)


def test_central_coeffs_exact_for_quadratic_1st_derivative() -> None:
    """Central 3-pt nonuniform first-derivative coefficients should be exact for quadratics."""
    rng = np.random.default_rng(123)
    x = _make_strictly_increasing_grid(rng, n=25)
    hm = x[1:-1] - x[:-2]
    hp = x[2:] - x[1:-1]

    a, b, c = rng.normal(size=3)
    y = a * x**2 + b * x + c

    dl, dd, du = st.d1_central_nonuniform_coeffs(hm, hp)
    approx = dl * y[:-2] + dd * y[1:-1] + du * y[2:]
    expected = 2.0 * a * x[1:-1] + b

    np.testing.assert_allclose(approx, expected, rtol=0.0, atol=1e-12)


def test_central_coeffs_exact_for_quadratic_2nd_derivative() -> None:
    """Central 3-pt nonuniform second-derivative coefficients should be exact for quadratics."""
    rng = np.random.default_rng(456)
    x = _make_strictly_increasing_grid(rng, n=17)
    hm = x[1:-1] - x[:-2]
    hp = x[2:] - x[1:-1]

    a, b, c = rng.normal(size=3)
    y = a * x**2 + b * x + c

    dl, dd, du = st.d2_central_nonuniform_coeffs(hm, hp)
    approx = dl * y[:-2] + dd * y[1:-1] + du * y[2:]
    expected = np.full_like(approx, 2.0 * a)

    np.testing.assert_allclose(approx, expected, rtol=0.0, atol=1e-12)


def _apply(stencil: st.AxisStencil, u: np.ndarray) -> np.ndarray:
    out = stencil.diag * u
    out[1:] += stencil.lower[1:] * u[:-1]
    out[:-1] += stencil.upper[:-1] * u[1:]
    return out


@pytest.mark.parametrize("scheme", list(st.AdvectionScheme))
def test_rows_annihilate_constants(scheme: st.AdvectionScheme) -> None:
    grid = Grid(Axis([0.0, 0.5, 1.5, 2.0, 4.0]))
    n = grid.size
    stencil = st.axis_stencil(
        grid,
        0,
        diffusion=np.full(n, 0.7),
        convection=np.linspace(-1.0, 1.0, n),
        scheme=scheme,
    )
    np.testing.assert_allclose(_apply(stencil, np.ones(n)), 0.0, atol=1e-12)


def test_boundary_rows_are_one_sided_first_differences() -> None:
    grid = Grid(Axis([0.0, 1.0, 3.0, 6.0]))
    n = grid.size
    b = np.array([2.0, 0.0, 0.0, -3.0])
    stencil = st.axis_stencil(grid, 0, diffusion=np.ones(n), convection=b)

    # first tick: b * (u_1 - u_0) / h, no diffusion
    assert stencil.diag[0] == pytest.approx(-2.0)
    assert stencil.upper[0] == pytest.approx(2.0)
    assert stencil.lower[0] == 0.0
    # last tick: b * (u_3 - u_2) / h
    assert stencil.lower[-1] == pytest.approx(3.0 / 3.0)
    assert stencil.diag[-1] == pytest.approx(-3.0 / 3.0)
    assert stencil.upper[-1] == 0.0


def test_auto_scheme_keeps_off_diagonals_nonnegative(rng) -> None:
    g = rng(5)
    x = np.cumsum(g.uniform(0.5, 3.0, size=30))
    grid = Grid(Axis(x))
    a = 0.02 * x**2  # weak diffusion, strong drift: central would oscillate
    b = 0.5 * x * np.sign(g.normal(size=x.size))

    stencil = st.axis_stencil(grid, 0, diffusion=a, convection=b, scheme="auto")
    assert np.all(stencil.lower[1:-1] >= 0.0)
    assert np.all(stencil.upper[1:-1] >= 0.0)


def test_upwind_direction_follows_sign_of_drift() -> None:
    grid = Grid(Axis([0.0, 1.0, 2.0]))
    zero = np.zeros(3)

    up = st.axis_stencil(grid, 0, diffusion=zero, convection=np.full(3, 1.0), scheme="upwind")
    assert up.upper[1] == pytest.approx(1.0)
    assert up.lower[1] == 0.0

    down = st.axis_stencil(
        grid, 0, diffusion=zero, convection=np.full(3, -1.0), scheme="upwind"
    )
    assert down.lower[1] == pytest.approx(1.0)
    assert down.upper[1] == 0.0


def test_stencil_along_second_axis_uses_stride() -> None:
    grid = Grid(Axis([0.0, 1.0]), Axis([0.0, 1.0, 2.0]))
    stencil = st.axis_stencil(
        grid, 1, diffusion=np.ones(grid.size), convection=np.zeros(grid.size)
    )
    assert stencil.stride == 1
    # middle tick of the second axis, first tick of the first
    assert stencil.lower[1] == pytest.approx(1.0)
    assert stencil.diag[1] == pytest.approx(-2.0)
    assert stencil.upper[1] == pytest.approx(1.0)
    assert st.axis_stencil(
        grid, 0, diffusion=np.ones(grid.size), convection=np.zeros(grid.size)
    ).stride == 3
