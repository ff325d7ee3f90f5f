"""Finite-difference weights on non-uniform tensor-product grids."""

from .stencils import (
    AdvectionScheme,
    AxisStencil,
    axis_stencil,
    d1_central_nonuniform_coeffs,
    d2_central_nonuniform_coeffs,
)

__all__ = [
    "AdvectionScheme",
    "AxisStencil",
    "axis_stencil",
    "d1_central_nonuniform_coeffs",
    "d2_central_nonuniform_coeffs",
]
