from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Preconditioner = Literal["jacobi", "ilu", "none"]
StoreMode = Literal["final", "all"]


@dataclass(frozen=True, slots=True)
class LinearSolverConfig:
    rtol: float = 1e-10
    atol: float = 0.0
    max_iter: int = 1000
    preconditioner: Preconditioner = "jacobi"

    def __post_init__(self) -> None:
        if self.rtol <= 0:
            raise ValueError("rtol must be > 0")
        if self.atol < 0:
            raise ValueError("atol must be >= 0")
        if self.max_iter <= 0:
            raise ValueError("max_iter must be > 0")
        if self.preconditioner not in ("jacobi", "ilu", "none"):
            raise ValueError(f"Unknown preconditioner: {self.preconditioner!r}")


@dataclass(frozen=True, slots=True)
class IterationConfig:
    """Settings of the backward-time iteration engine.

    align_events:
        Shorten the step that would jump over an event so that the event
        time becomes a step boundary. When false an event is applied after
        the step during which it falls.
    store:
        ``"final"`` keeps only the last iterate; ``"all"`` keeps a snapshot
        after every step (post-event).
    max_steps:
        Hard cap on the number of steps of one run.
    """

    align_events: bool = False
    store: StoreMode = "final"
    max_steps: int = 1_000_000

    def __post_init__(self) -> None:
        if self.store not in ("final", "all"):
            raise ValueError("store must be 'final' or 'all'")
        if self.max_steps <= 0:
            raise ValueError("max_steps must be > 0")


@dataclass(frozen=True, slots=True)
class BermudanConfig:
    """Inputs of the Bermudan put command line tool (defaults match it)."""

    dividend: float = 0.0
    exercises: int = 10
    strike: float = 100.0
    steps: int = 25
    rate: float = 0.04
    refinement: int = 0
    expiry: float = 1.0
    volatility: float = 0.2

    def __post_init__(self) -> None:
        if self.exercises < 0:
            raise ValueError("the number of premature exercises must be nonnegative")
        if self.steps <= 0:
            raise ValueError("the number of steps must be positive")
        if self.refinement < 0:
            raise ValueError("the maximum level of refinement must be nonnegative")
        if self.expiry <= 0.0:
            raise ValueError("expiry time must be positive")
