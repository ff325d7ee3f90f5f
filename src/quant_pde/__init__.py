"""
quant_pde

Finite-difference engine for pricing options with early exercise.

The everyday API is exposed at the top level, so you can write, for example:

    from quant_pde import Axis, Grid, bermudan_price_pde
"""

from .config import BermudanConfig, IterationConfig, LinearSolverConfig
from .exceptions import (
    ConvergenceError,
    PreconditionError,
    QuantPDEError,
    StepFailedError,
)
from .instruments import call_payoff, exercise_transform, put_payoff
from .models.bs import bs_price
from .numerics import (
    Axis,
    BiCGSTABSolver,
    Extrapolation,
    Grid,
    Interpolant,
    RefinementPolicy,
)
from .numerics.pde import (
    BDF2,
    ImplicitEuler,
    PDESolution,
    ReverseConstantStepper,
    ReverseEventIteration,
    ReverseVariableStepper,
)
from .pricers import BermudanResult, bermudan_price_pde, default_put_axis
from .types import MarketData, OptionSpec, OptionType, PricingInputs

__all__ = [
    # Types
    "OptionType",
    "OptionSpec",
    "MarketData",
    "PricingInputs",
    # Config / errors
    "LinearSolverConfig",
    "IterationConfig",
    "BermudanConfig",
    "QuantPDEError",
    "PreconditionError",
    "ConvergenceError",
    "StepFailedError",
    # Discretization
    "Axis",
    "Grid",
    "RefinementPolicy",
    "Interpolant",
    "Extrapolation",
    # Engine
    "BiCGSTABSolver",
    "ImplicitEuler",
    "BDF2",
    "ReverseConstantStepper",
    "ReverseVariableStepper",
    "ReverseEventIteration",
    "PDESolution",
    # Payoffs / pricers
    "put_payoff",
    "call_payoff",
    "exercise_transform",
    "bs_price",
    "bermudan_price_pde",
    "default_put_axis",
    "BermudanResult",
]
