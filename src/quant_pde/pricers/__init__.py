"""quant_pde.pricers

Pricing pipelines that wire a payoff, a PDE model and the backward
iteration engine together.
"""

from .bermudan import (
    DEFAULT_PUT_TICKS,
    BermudanResult,
    bermudan_price_pde,
    default_put_axis,
    exercise_times,
)

__all__ = [
    "DEFAULT_PUT_TICKS",
    "BermudanResult",
    "bermudan_price_pde",
    "default_put_axis",
    "exercise_times",
]
