"""Vanilla (call/put) payoffs and early-exercise transforms."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import overload

import numpy as np

from ..types import OptionType
from ..typing import FloatArray


@dataclass(frozen=True, slots=True)
class VanillaPayoff:
    """Callable, vectorized call/put payoff of the spot ``S``."""

    kind: OptionType
    strike: float

    @overload
    def __call__(self, S: float) -> float: ...
    @overload
    def __call__(self, S: FloatArray) -> FloatArray: ...

    def __call__(self, S: float | FloatArray) -> float | FloatArray:
        if self.kind == OptionType.CALL:
            out = np.maximum(np.asarray(S, dtype=float) - self.strike, 0.0)
        elif self.kind == OptionType.PUT:
            out = np.maximum(self.strike - np.asarray(S, dtype=float), 0.0)
        else:
            raise ValueError(f"Unsupported option kind: {self.kind}")

        if np.ndim(out) == 0:
            return float(out)
        return out


def call_payoff(K: float) -> VanillaPayoff:
    return VanillaPayoff(kind=OptionType.CALL, strike=float(K))


def put_payoff(K: float) -> VanillaPayoff:
    return VanillaPayoff(kind=OptionType.PUT, strike=float(K))


def make_payoff(kind: OptionType | str, *, K: float) -> VanillaPayoff:
    return VanillaPayoff(kind=OptionType(kind), strike=float(K))


@dataclass(frozen=True, slots=True)
class ExerciseTransform:
    """Event transform ``(V, S) -> max(V(S), payoff(S))``.

    ``V`` is the interpolated continuation value just before the exercise
    date. Both the interpolant and the payoff are vectorized, so the
    transform is evaluated on all nodes at once.
    """

    payoff: Callable[..., float | FloatArray]

    def __call__(self, V: Callable[..., float | FloatArray], *x: float | FloatArray):
        out = np.maximum(V(*x), self.payoff(*x))
        if np.ndim(out) == 0:
            return float(out)
        return out


def exercise_transform(payoff: Callable[..., float | FloatArray]) -> ExerciseTransform:
    return ExerciseTransform(payoff=payoff)


__all__ = [
    "VanillaPayoff",
    "ExerciseTransform",
    "call_payoff",
    "put_payoff",
    "make_payoff",
    "exercise_transform",
]
