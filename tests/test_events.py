import dataclasses

import numpy as np
import pytest

from quant_pde.numerics import Axis, Grid
from quant_pde.numerics.pde import Event


def test_apply_does_not_modify_values(unit_grid: Grid) -> None:
    u = np.linspace(1.0, 0.0, unit_grid.size)
    before = u.copy()
    out = Event(0.5, lambda V, x: np.maximum(V(x), 0.5), unit_grid).apply(unit_grid, u)

    np.testing.assert_array_equal(u, before)
    np.testing.assert_allclose(out, np.maximum(before, 0.5))


def test_scalar_transforms_fall_back_to_node_loop(unit_grid: Grid) -> None:
    u = unit_grid.image(lambda x: x)
    event = Event(0.5, lambda V, x: max(V(x), 0.3), unit_grid)
    out = event.apply(unit_grid, u)
    np.testing.assert_allclose(out, np.maximum(unit_grid.axes[0].ticks, 0.3))


def test_two_dimensional_event() -> None:
    grid = Grid(Axis([0.0, 1.0]), Axis([0.0, 1.0, 2.0]))
    u = np.zeros(grid.size)
    out = Event(0.0, lambda V, x, y: V(x, y) + x * y, grid).apply(grid, u)
    np.testing.assert_allclose(out, grid.nodes()[:, 0] * grid.nodes()[:, 1])


def test_events_are_frozen(unit_grid: Grid) -> None:
    event = Event(0.5, lambda V, x: V(x), unit_grid)
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.time = 0.1  # type: ignore[misc]
