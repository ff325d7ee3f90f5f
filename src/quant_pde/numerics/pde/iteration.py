"""Backward-time iteration engine.

A run starts from the initial condition (the payoff) at ``expiry`` and marches
back to ``initial_time``. Each step

1. asks the step factory's stepper for the next (earlier) time,
2. asks the time scheme for the linear system ``A u_new = b``,
3. solves it with the linear solver, warm-started from the current iterate,
4. applies every event scheduled in ``[t_new, t_prev)``, in order.

Events scheduled exactly at ``expiry`` transform the initial condition before
the first step; events at ``initial_time`` are applied after the last one.
Several events in the same step are applied in descending time order, ties
in registration order. If their composition must not depend on that order,
the transforms have to commute (e.g. all of them take a max).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, cast

import numpy as np
from numpy.typing import NDArray

from ...config import IterationConfig
from ...exceptions import ConvergenceError, PreconditionError, StepFailedError
from ..grids import Grid
from ..interpolation import Extrapolation, Interpolant
from ..linear_solvers import BiCGSTABSolver, LinearSolver
from .events import Event, EventTransform
from .methods import TimeScheme, resolve_method
from .operators import LinearOperator, OperatorSum
from .stepping import StepFactory
from .types import IterateHistory

__all__ = [
    "IterationState",
    "PDESolution",
    "ReverseEventIteration",
]

logger = logging.getLogger(__name__)


class IterationState(str, Enum):
    INITIALIZED = "initialized"
    STEPPING = "stepping"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class PDESolution:
    grid: Grid
    values: NDArray[np.floating]  # (size,) iterate at initial_time
    times: NDArray[np.floating]  # visited times, expiry first
    method: str
    solver_iterations: NDArray[np.integer]  # one entry per step
    events_applied: int
    snapshots: NDArray[np.floating] | None = None  # (len(times), size) if stored

    @property
    def steps(self) -> int:
        return int(self.times.shape[0]) - 1

    def interpolant(
        self, extrapolation: Extrapolation | str = Extrapolation.CLAMP
    ) -> Interpolant:
        return Interpolant(self.grid, self.values, extrapolation=extrapolation)

    def __call__(self, *x: Any) -> float | NDArray[np.floating]:
        return self.interpolant()(*x)


class ReverseEventIteration:
    """Drives solve + event cycles backward from ``expiry`` to ``initial_time``.

    Parameters
    ----------
    initial_time, expiry:
        The run covers ``[initial_time, expiry]``, starting at ``expiry``.
    factory:
        Step factory; a fresh stepper is made for every run.
    config:
        Engine settings (event alignment, snapshot storage, step cap).
    """

    def __init__(
        self,
        initial_time: float,
        expiry: float,
        factory: StepFactory,
        config: IterationConfig | None = None,
    ):
        if not (initial_time < expiry):
            raise ValueError("Need initial_time < expiry")
        self.initial_time = float(initial_time)
        self.expiry = float(expiry)
        self.factory = factory
        self.config = config if config is not None else IterationConfig()
        self._events: list[Event] = []
        self._state = IterationState.INITIALIZED
        self._tol = 1e-12 * max(1.0, self.expiry - self.initial_time)

    @property
    def state(self) -> IterationState:
        return self._state

    @property
    def events(self) -> tuple[Event, ...]:
        """Registered events in application order."""
        return tuple(sorted(self._events, key=lambda e: -e.time))

    def add(self, time: float, transform: EventTransform, grid: Grid) -> Event:
        """Schedule ``transform`` at ``time`` on ``grid``."""
        if self._state == IterationState.STEPPING:
            raise RuntimeError("Cannot add events while the iteration is running")
        t = float(time)
        if not (self.initial_time - self._tol <= t <= self.expiry + self._tol):
            raise ValueError(
                f"Event time {t:g} outside [{self.initial_time:g}, {self.expiry:g}]"
            )
        if not callable(transform):
            raise TypeError("transform must be callable")
        event = Event(time=t, transform=transform, grid=grid)
        self._events.append(event)
        return event

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _apply_due(
        self,
        pending: list[Event],
        threshold: float,
        grid: Grid,
        u: NDArray[np.floating],
    ) -> tuple[NDArray[np.floating], int]:
        n = 0
        while pending and pending[0].time >= threshold - self._tol:
            event = pending.pop(0)
            u = event.apply(grid, u)
            n += 1
            logger.debug("Applied event at t=%.6g", event.time)
        return u, n

    def solve(
        self,
        grid: Grid,
        initial_condition: Callable[..., Any] | NDArray[np.floating],
        operator: LinearOperator | Sequence[LinearOperator],
        method: str | TimeScheme | None = "bdf2",
        solver: LinearSolver | None = None,
    ) -> PDESolution:
        """Run the backward iteration and return the surface at ``initial_time``.

        Raises
        ------
        StepFailedError
            If the linear solve of a step does not converge. The run is
            aborted; nothing partial is returned.
        """
        if self._state == IterationState.STEPPING:
            raise RuntimeError("Iteration is already running")

        op: LinearOperator
        if isinstance(operator, LinearOperator):
            op = operator
        else:
            op = OperatorSum(tuple(operator))
        if op.grid != grid:
            raise PreconditionError("Operator and solution grid differ")
        for event in self._events:
            if event.grid.ndim != grid.ndim:
                raise PreconditionError(
                    f"Event at t={event.time:g} lives on a {event.grid.ndim}-D grid, "
                    f"the solution on a {grid.ndim}-D grid"
                )

        scheme = resolve_method(method)
        lin = solver if solver is not None else BiCGSTABSolver()
        stepper = self.factory.make(self.initial_time, self.expiry)
        cfg = self.config

        self._state = IterationState.STEPPING
        try:
            u = grid.image(initial_condition)
            if not np.all(np.isfinite(u)):
                raise ValueError("initial condition produced non-finite values")

            t = self.expiry
            pending = list(self.events)
            u, n_events = self._apply_due(pending, t, grid, u)

            history = IterateHistory(max(scheme.order, 2))
            history.push(t, u)

            times = [t]
            iterations: list[int] = []
            snapshots = [u.copy()] if cfg.store == "all" else None

            step = 0
            while t > self.initial_time + self._tol:
                if step >= cfg.max_steps:
                    raise RuntimeError(f"Exceeded max_steps={cfg.max_steps}")

                t_new = float(stepper.next_time(t, history))
                if not (self.initial_time - self._tol <= t_new < t):
                    raise RuntimeError(
                        f"Stepper proposed t={t_new:g} from t={t:g}; "
                        f"expected a time in [{self.initial_time:g}, {t:g})"
                    )
                if cfg.align_events and pending:
                    t_evt = pending[0].time
                    if t_new + self._tol < t_evt < t - self._tol:
                        t_new = t_evt

                system = scheme.assemble(op, t_new=t_new, history=history)
                try:
                    res = lin.solve(system.A, system.b, x0=u)
                except ConvergenceError as exc:
                    raise StepFailedError(
                        f"Step {step + 1} ({t:g} -> {t_new:g}) failed: {exc}",
                        step=step + 1,
                        time=t_new,
                        result=exc.result,
                    ) from exc
                if not res.converged:
                    raise StepFailedError(
                        f"Step {step + 1} ({t:g} -> {t_new:g}) failed: "
                        f"relative residual {res.residual:.3e}",
                        step=step + 1,
                        time=t_new,
                        result=res,
                    )

                step += 1
                u = res.x
                history.push(t_new, u)
                logger.debug(
                    "step %d: t=%.6g dt=%.4g iterations=%d residual=%.2e",
                    step,
                    t_new,
                    t - t_new,
                    res.iterations,
                    res.residual,
                )
                t = t_new

                u, n = self._apply_due(pending, t, grid, u)
                if n:
                    n_events += n
                    history.replace_latest(u)

                times.append(t)
                iterations.append(int(res.iterations))
                if snapshots is not None:
                    snapshots.append(u.copy())
        except BaseException:
            self._state = IterationState.INITIALIZED
            raise

        self._state = IterationState.DONE
        logger.info(
            "Backward run done: %d steps (%s), %d events, %d nodes",
            step,
            scheme.name,
            n_events,
            grid.size,
        )

        return PDESolution(
            grid=grid,
            values=u,
            times=np.asarray(times, dtype=float),
            method=scheme.name,
            solver_iterations=np.asarray(iterations, dtype=int),
            events_applied=n_events,
            snapshots=None if snapshots is None else cast(NDArray[np.floating], np.stack(snapshots)),
        )
