from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .numerics.linear_solvers import LinearSolveResult


class QuantPDEError(Exception):
    """Base class for errors raised by the finite-difference engine."""


class PreconditionError(QuantPDEError, ValueError):
    """Raised when a structural precondition is violated.

    Examples are an axis whose ticks are not strictly increasing, a grid built
    from zero axes, or a value buffer whose length does not match the node
    count of the grid it is paired with.

    Notes
    -----
    Checks that are expensive relative to the operation they guard (the
    monotonicity scan over an axis, buffer-length checks on interpolants) only
    run while ``__debug__`` is true. Under ``python -O`` they are skipped and
    violating them is undefined behaviour: callers must never rely on
    validation in optimised runs.
    """


class ConvergenceError(QuantPDEError):
    """Raised when an iterative linear solve does not reach its tolerance.

    The offending :class:`~quant_pde.numerics.linear_solvers.LinearSolveResult`
    is attached as :attr:`result` so callers can inspect the residual and the
    iteration count.
    """

    def __init__(self, message: str, result: LinearSolveResult | None = None):
        super().__init__(message)
        self.result = result


class StepFailedError(ConvergenceError):
    """Raised by the iteration engine when the solve of one time step fails.

    The run is aborted: later steps depend on the unconverged iterate, so no
    partial solution is returned.
    """

    def __init__(
        self,
        message: str,
        *,
        step: int,
        time: float,
        result: LinearSolveResult | None = None,
    ):
        super().__init__(message, result)
        self.step = step
        self.time = time
