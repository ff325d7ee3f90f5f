# src/quant_pde/numerics/__init__.py
"""
Numerical building blocks (advanced API).

Top-level package `quant_pde` exposes the everyday API.
This subpackage exposes the discretization primitives.
"""

from .axis import Axis
from .grids import Grid, GridFunction, RefinementPolicy
from .interpolation import Extrapolation, Interpolant
from .linear_solvers import (
    BiCGSTABSolver,
    LinearSolver,
    LinearSolveResult,
    SparseLUSolver,
)

__all__ = [
    # Discretization
    "Axis",
    "Grid",
    "GridFunction",
    "RefinementPolicy",
    # Interpolation
    "Extrapolation",
    "Interpolant",
    # Linear solvers
    "LinearSolver",
    "LinearSolveResult",
    "BiCGSTABSolver",
    "SparseLUSolver",
]
