import numpy as np
import pytest

from quant_pde.instruments import (
    ExerciseTransform,
    VanillaPayoff,
    call_payoff,
    exercise_transform,
    make_payoff,
    put_payoff,
)
from quant_pde.numerics import Axis, Grid, Interpolant
from quant_pde.types import OptionType


def test_put_and_call_payoffs() -> None:
    S = np.array([50.0, 100.0, 150.0])
    np.testing.assert_array_equal(put_payoff(100.0)(S), [50.0, 0.0, 0.0])
    np.testing.assert_array_equal(call_payoff(100.0)(S), [0.0, 0.0, 50.0])


def test_scalar_input_returns_float() -> None:
    out = put_payoff(100.0)(90.0)
    assert isinstance(out, float)
    assert out == 10.0


def test_make_payoff_accepts_strings() -> None:
    assert make_payoff("put", K=90.0) == VanillaPayoff(kind=OptionType.PUT, strike=90.0)
    with pytest.raises(ValueError):
        make_payoff("straddle", K=90.0)


def test_exercise_transform_takes_the_larger_value() -> None:
    grid = Grid(Axis([0.0, 50.0, 100.0, 150.0]))
    V = Interpolant(grid, [90.0, 40.0, 5.0, 1.0])
    ex = exercise_transform(put_payoff(100.0))

    assert isinstance(ex, ExerciseTransform)
    np.testing.assert_array_equal(ex(V, grid.axes[0].ticks), [100.0, 50.0, 5.0, 1.0])
    assert ex(V, 50.0) == 50.0
