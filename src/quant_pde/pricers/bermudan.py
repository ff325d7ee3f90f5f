from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..config import IterationConfig
from ..instruments.payoffs import exercise_transform, make_payoff
from ..models.black_scholes import BlackScholes
from ..numerics.axis import Axis
from ..numerics.grids import Grid, RefinementPolicy
from ..numerics.linear_solvers import BiCGSTABSolver, LinearSolver
from ..numerics.pde import PDESolution, ReverseConstantStepper, ReverseEventIteration
from ..numerics.pde.methods import TimeScheme
from ..types import PricingInputs

logger = logging.getLogger(__name__)

# Non-uniform spot ticks, dense around the usual strike of 100.
DEFAULT_PUT_TICKS: tuple[float, ...] = (
    0.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0,
    75.0, 80.0,
    84.0, 88.0, 92.0,
    94.0, 96.0, 98.0, 100.0, 102.0, 104.0, 106.0, 108.0, 110.0,
    114.0, 118.0,
    123.0,
    130.0, 140.0, 150.0,
    175.0,
    225.0,
    300.0,
    750.0,
    2000.0,
    10000.0,
)  # fmt: skip


def default_put_axis() -> Axis:
    return Axis(DEFAULT_PUT_TICKS)


def exercise_times(expiry: float, exercises: int) -> list[float]:
    """Premature exercise dates ``T / e * m`` for ``m = 0, ..., e - 1``."""
    if exercises < 0:
        raise ValueError("the number of premature exercises must be nonnegative")
    return [expiry / exercises * m for m in range(exercises)]


@dataclass(frozen=True, slots=True)
class BermudanResult:
    price: float
    solution: PDESolution
    grid: Grid

    def surface(self, spots) -> np.ndarray:
        """Option values at ``spots`` (interpolated, clamped outside the grid)."""
        return np.asarray(self.solution(np.asarray(spots, dtype=float)), dtype=float)


def bermudan_price_pde(
    p: PricingInputs,
    *,
    exercises: int | None = None,
    steps: int = 25,
    refinement: int = 0,
    axis: Axis | None = None,
    method: str | TimeScheme = "bdf2",
    solver: LinearSolver | None = None,
    config: IterationConfig | None = None,
    scale_steps: bool = False,
) -> BermudanResult:
    """Price a Bermudan (or, with no premature exercise, European) option.

    The spot axis (``default_put_axis()`` unless given) is refined
    ``refinement`` times by inserting a tick between each pair. The payoff is
    the initial condition at expiry; at every exercise date the value becomes
    ``max(continuation, payoff)``. The Black-Scholes PDE is stepped back to
    ``p.t`` with ``steps`` equal steps of the chosen time scheme.
    The volatility enters only through ``sigma**2``, so its sign is irrelevant.

    Parameters
    ----------
    exercises:
        Number of premature exercise dates. Defaults to ``p.spec.exercises``.
    scale_steps:
        Double the number of time steps for every refinement level, so that
        time and space errors shrink together in convergence studies.
    """
    e = p.spec.exercises if exercises is None else int(exercises)
    if e < 0:
        raise ValueError("the number of premature exercises must be nonnegative")
    if steps <= 0:
        raise ValueError("the number of steps must be positive")
    if refinement < 0:
        raise ValueError("the maximum level of refinement must be nonnegative")

    grid = Grid(default_put_axis() if axis is None else axis)
    for _ in range(refinement):
        grid = grid.refine(RefinementPolicy.NEW_TICK_BETWEEN_EACH_PAIR)

    n_steps = steps * 2**refinement if scale_steps else steps
    t0 = float(p.t)
    T = float(p.T)
    tau = p.tau

    payoff = make_payoff(p.spec.kind, K=p.K)
    iteration = ReverseEventIteration(t0, T, ReverseConstantStepper(n_steps), config)
    transform = exercise_transform(payoff)
    for time in exercise_times(tau, e):
        # exercise dates are measured from the valuation time
        iteration.add(t0 + time, transform, grid)

    op = BlackScholes(grid, p.r, p.sigma, p.q)
    sol = iteration.solve(
        grid,
        payoff,
        op,
        method=method,
        solver=solver if solver is not None else BiCGSTABSolver(),
    )

    price = float(sol(p.S))
    logger.info(
        "Bermudan %s: e=%d R=%d N=%d nodes=%d price=%.8g",
        p.spec.kind.value,
        e,
        refinement,
        n_steps,
        grid.size,
        price,
    )
    return BermudanResult(price=price, solution=sol, grid=grid)
