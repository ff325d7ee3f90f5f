"""Step-size control for backward runs.

A *factory* is configured once (e.g. "25 equal steps") and may be shared by
many runs; :meth:`StepFactory.make` gives each run its own :class:`Stepper`,
which proposes the next (earlier) time from the current one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, cast, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from .types import IterateHistory

__all__ = [
    "Stepper",
    "StepFactory",
    "ReverseConstantStepper",
    "ReverseVariableStepper",
    "DtController",
]


@runtime_checkable
class Stepper(Protocol):
    def next_time(self, t: float, history: IterateHistory) -> float:  # pragma: no cover
        """Return the time of the next iterate, ``initial_time <= t_new < t``."""
        ...


@runtime_checkable
class StepFactory(Protocol):
    def make(self, initial_time: float, expiry: float) -> Stepper:  # pragma: no cover
        ...


def _check_interval(initial_time: float, expiry: float) -> None:
    if not (initial_time < expiry):
        raise ValueError("Need initial_time < expiry")


def _snap_tol(initial_time: float, expiry: float) -> float:
    return 1e-12 * max(1.0, abs(expiry - initial_time))


class _ConstantSchedule:
    def __init__(self, initial_time: float, expiry: float, steps: int):
        self._asc = cast(
            NDArray[np.floating],
            np.linspace(initial_time, expiry, steps + 1, dtype=float),
        )
        self._asc[0] = initial_time
        self._asc[-1] = expiry
        self._tol = _snap_tol(initial_time, expiry)

    @property
    def times(self) -> NDArray[np.floating]:
        """Scheduled times, expiry first."""
        return self._asc[::-1].copy()

    def next_time(self, t: float, history: IterateHistory) -> float:
        j = int(np.searchsorted(self._asc, t - self._tol, side="left")) - 1
        if j < 0:
            raise ValueError(f"No scheduled time before t={t:g}")
        return float(self._asc[j])


@dataclass(frozen=True, slots=True)
class ReverseConstantStepper:
    """``steps`` equal steps of size ``(expiry - initial_time) / steps``.

    The last step lands exactly on ``initial_time``. If the engine inserts an
    intermediate time (event alignment), the next step goes back to the next
    time of this schedule.
    """

    steps: int

    def __post_init__(self) -> None:
        if self.steps <= 0:
            raise ValueError("the number of steps must be positive")

    def make(self, initial_time: float, expiry: float) -> _ConstantSchedule:
        _check_interval(initial_time, expiry)
        return _ConstantSchedule(float(initial_time), float(expiry), int(self.steps))


@dataclass(slots=True, frozen=True)
class DtController:
    """Limits applied to step-size updates.

    Attributes:
        dt_min: Minimum allowed dt.
        dt_max: Maximum allowed dt.
        safety: Safety factor applied to dt updates.
        fac_min: Minimum multiplicative change factor.
        fac_max: Maximum multiplicative change factor.
    """

    dt_min: float = 0.0
    dt_max: float = float("inf")
    safety: float = 1.0
    fac_min: float = 0.2
    fac_max: float = 5.0

    def __post_init__(self) -> None:
        if self.dt_min < 0.0 or self.dt_max <= 0.0 or self.dt_min > self.dt_max:
            raise ValueError("Need 0 <= dt_min <= dt_max and dt_max > 0")
        if self.safety <= 0.0:
            raise ValueError("safety must be > 0")
        if not (0.0 < self.fac_min <= 1.0 <= self.fac_max):
            raise ValueError("Need 0 < fac_min <= 1 <= fac_max")


class _VariableSchedule:
    def __init__(
        self,
        initial_time: float,
        expiry: float,
        stepper: ReverseVariableStepper,
    ):
        self._t0 = initial_time
        self._cfg = stepper
        self._tol = _snap_tol(initial_time, expiry)

    def _proposed_dt(self, history: IterateHistory) -> float:
        cfg = self._cfg
        ctl = cfg.controller
        if len(history) < 2:
            return float(cfg.initial_step)

        new = history[0].values
        old = history[1].values
        dt_last = float(history[1].time - history[0].time)

        denom = np.maximum(cfg.scale, np.maximum(np.abs(new), np.abs(old)))
        change = float(np.max(np.abs(new - old) / denom))
        if change == 0.0:
            fac = ctl.fac_max
        else:
            fac = float(np.clip(ctl.safety * cfg.target / change, ctl.fac_min, ctl.fac_max))
        return float(np.clip(dt_last * fac, ctl.dt_min, ctl.dt_max))

    def next_time(self, t: float, history: IterateHistory) -> float:
        if t <= self._t0 + self._tol:
            raise ValueError(f"No time left before t={t:g}")
        dt = self._proposed_dt(history)
        t_new = t - dt
        if t_new <= self._t0 + self._tol:
            return self._t0
        return float(t_new)


@dataclass(frozen=True, slots=True)
class ReverseVariableStepper:
    """Adaptive steps driven by the relative change of the solution.

    After each step the next step size is

        dt_new = dt * clip(safety * target / max_i |u_i - u'_i| / D_i,
                           fac_min, fac_max)

    with ``D_i = max(scale, |u_i|, |u'_i|)``, then clipped to
    ``[dt_min, dt_max]`` and to the initial time. Large changes (near expiry
    for non-smooth payoffs, right after an exercise event) shrink the step;
    smooth stretches let it grow.
    """

    initial_step: float
    target: float = 0.1
    scale: float = 1.0
    controller: DtController = field(default_factory=DtController)

    def __post_init__(self) -> None:
        if self.initial_step <= 0.0:
            raise ValueError("initial_step must be > 0")
        if self.target <= 0.0:
            raise ValueError("target must be > 0")
        if self.scale <= 0.0:
            raise ValueError("scale must be > 0")

    def make(self, initial_time: float, expiry: float) -> _VariableSchedule:
        _check_interval(initial_time, expiry)
        return _VariableSchedule(float(initial_time), float(expiry), self)
