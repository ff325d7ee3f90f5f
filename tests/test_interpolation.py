import numpy as np
import pytest

from quant_pde.exceptions import PreconditionError
from quant_pde.numerics import Axis, Extrapolation, Grid, Interpolant


def test_exact_at_nodes_1d(rng) -> None:
    g = rng(3)
    x = np.cumsum(g.uniform(0.2, 1.5, size=15))
    grid = Grid(Axis(x))
    v = g.normal(size=15)

    V = Interpolant(grid, v)
    np.testing.assert_array_equal(V(x), v)
    assert V(float(x[4])) == v[4]
    assert isinstance(V(float(x[4])), float)


def test_exact_at_nodes_2d(rng) -> None:
    g = rng(4)
    grid = Grid(Axis([0.0, 1.0, 2.5, 4.0]), Axis([-1.0, 0.0, 3.0]))
    v = g.normal(size=grid.size)
    V = grid.interpolant(v)
    np.testing.assert_array_equal(V(*grid.coordinates()), v)


def test_linear_functions_reproduced() -> None:
    grid = Grid(Axis([0.0, 1.0, 3.0]), Axis([0.0, 2.0]))
    v = grid.image(lambda x, y: 2.0 * x - 3.0 * y + 1.0)
    V = Interpolant(grid, v)

    xq = np.array([0.5, 2.0, 2.7])
    yq = np.array([1.0, 0.3, 1.9])
    np.testing.assert_allclose(V(xq, yq), 2.0 * xq - 3.0 * yq + 1.0, rtol=0, atol=1e-12)


def test_monotone_no_overshoot_1d(rng) -> None:
    g = rng(11)
    x = np.cumsum(g.uniform(0.1, 1.0, size=20))
    v = g.normal(size=20)
    V = Interpolant(Grid(Axis(x)), v)

    xq = np.linspace(x[0], x[-1], 500)
    y = V(xq)
    j = Axis(x).locate(xq)
    lo = np.minimum(v[j], v[j + 1])
    hi = np.maximum(v[j], v[j + 1])
    assert np.all(y >= lo - 1e-12)
    assert np.all(y <= hi + 1e-12)


def test_clamp_extrapolation_holds_boundary_values() -> None:
    V = Interpolant(Grid(Axis([0.0, 1.0, 2.0])), [1.0, 2.0, 4.0])
    assert V(-3.0) == 1.0
    assert V(10.0) == 4.0


def test_linear_extrapolation_continues_boundary_cell() -> None:
    V = Interpolant(
        Grid(Axis([0.0, 1.0, 2.0])),
        [1.0, 2.0, 4.0],
        extrapolation=Extrapolation.LINEAR,
    )
    assert V(-1.0) == pytest.approx(0.0)
    assert V(3.0) == pytest.approx(6.0)


def test_output_shape_follows_input() -> None:
    V = Interpolant(Grid(Axis([0.0, 1.0])), [0.0, 1.0])
    out = V(np.full((2, 3), 0.25))
    assert out.shape == (2, 3)
    np.testing.assert_allclose(out, 0.25)


def test_wrong_coordinate_count() -> None:
    V = Interpolant(Grid(Axis([0.0, 1.0])), [0.0, 1.0])
    with pytest.raises(ValueError, match="1 coordinate"):
        V(0.5, 0.5)


@pytest.mark.skipif(not __debug__, reason="length is only checked in debug runs")
def test_value_length_checked() -> None:
    with pytest.raises(PreconditionError):
        Interpolant(Grid(Axis([0.0, 1.0])), [0.0, 1.0, 2.0])


def test_borrows_values() -> None:
    v = np.array([0.0, 1.0])
    V = Interpolant(Grid(Axis([0.0, 1.0])), v)
    v[1] = 3.0
    assert V(1.0) == 3.0
