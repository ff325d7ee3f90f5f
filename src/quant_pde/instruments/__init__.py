"""quant_pde.instruments

Payoffs and the event transforms derived from them ("what is being priced").

Pricers combine these with a PDE model: the payoff is the initial condition of
the backward run and, for early-exercise contracts, the exercise transform is
scheduled as an event on every exercise date.
"""

from .payoffs import (
    ExerciseTransform,
    VanillaPayoff,
    call_payoff,
    exercise_transform,
    make_payoff,
    put_payoff,
)

__all__ = [
    "VanillaPayoff",
    "ExerciseTransform",
    "call_payoff",
    "put_payoff",
    "make_payoff",
    "exercise_transform",
]
