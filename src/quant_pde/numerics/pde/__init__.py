"""Backward-time finite-difference engine for linear parabolic PDEs.

This subpackage composes the pieces of a "linear system tree":

    LinearOperator  ->  TimeScheme  ->  ReverseEventIteration
    (space)             (time)          (loop, linear solves, events)

Supported PDE form (tensor-product grids of any dimension):

    u_tau = sum_d a_d u_{x_d x_d} + sum_d b_d u_{x_d} + c u + f

with linear behaviour assumed at the grid boundary.
"""

from .events import Event, EventTransform
from .iteration import IterationState, PDESolution, ReverseEventIteration
from .methods import (
    BDF2,
    ImplicitEuler,
    ThetaScheme,
    TimeScheme,
    available_methods,
    register_method,
    resolve_method,
)
from .operators import (
    ConvectionDiffusion,
    DiscreteOperator,
    LinearOperator,
    OperatorSum,
    ZeroOperator,
)
from .stepping import (
    DtController,
    ReverseConstantStepper,
    ReverseVariableStepper,
    StepFactory,
    Stepper,
)
from .types import IterateHistory, LinearSystem

__all__ = [
    # Operators
    "LinearOperator",
    "DiscreteOperator",
    "ZeroOperator",
    "ConvectionDiffusion",
    "OperatorSum",
    # Time schemes / registry
    "TimeScheme",
    "ImplicitEuler",
    "BDF2",
    "ThetaScheme",
    "register_method",
    "available_methods",
    "resolve_method",
    # Stepping
    "Stepper",
    "StepFactory",
    "ReverseConstantStepper",
    "ReverseVariableStepper",
    "DtController",
    # Events / engine
    "Event",
    "EventTransform",
    "IterationState",
    "PDESolution",
    "ReverseEventIteration",
    # Low-level containers
    "IterateHistory",
    "LinearSystem",
]
