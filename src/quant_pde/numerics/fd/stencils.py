"""
numerics/fd/stencils.py
Responsibility: finite-difference weights on non-uniform axes, and the
assembly of those weights into sparse rows acting along one axis of a
tensor-product grid.

The 1-D coefficient functions return ``(dl, dd, du)`` triples such that

    y'(x_i)  ~ dl*y_{i-1} + dd*y_i + du*y_{i+1}

for spacings ``hm = x_i - x_{i-1}`` and ``hp = x_{i+1} - x_i``. They are
vectorized over ``hm``/``hp``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from ..grids import Grid

__all__ = [
    "AdvectionScheme",
    "AxisStencil",
    "d1_central_nonuniform_coeffs",
    "d2_central_nonuniform_coeffs",
    "d1_backward_coeffs",
    "d1_forward_coeffs",
    "axis_spacings",
    "axis_stencil",
]


class AdvectionScheme(str, Enum):
    """Discretization choice for the first-derivative term b u_x."""

    CENTRAL = "central"  # 2nd order (on nonuniform: quadratic interpolation)
    UPWIND = "upwind"  # 1st order, positive coefficients
    AUTO = "auto"  # central where it keeps coefficients positive, else upwind


def d1_central_nonuniform_coeffs(hm, hp):
    """Central 3-point first-derivative coefficients on a nonuniform grid.

    Second-order accurate for smooth functions (exact for quadratics).
    """
    denom = hm * hp * (hm + hp)
    dl = -hp * hp / denom
    dd = (hp * hp - hm * hm) / denom
    du = hm * hm / denom
    return dl, dd, du


def d2_central_nonuniform_coeffs(hm, hp):
    """Central 3-point second-derivative coefficients on a nonuniform grid.

    Exact for quadratics; first-order on strongly non-uniform spacings and
    second-order on smoothly varying ones.
    """
    dl = 2.0 / (hm * (hm + hp))
    dd = -2.0 / (hm * hp)
    du = 2.0 / (hp * (hm + hp))
    return dl, dd, du


def d1_backward_coeffs(hm):  # (u_i - u_{i-1})/hm
    z = np.zeros_like(np.asarray(hm, dtype=float))
    return -1.0 / hm, 1.0 / hm, z


def d1_forward_coeffs(hp):  # (u_{i+1} - u_i)/hp
    z = np.zeros_like(np.asarray(hp, dtype=float))
    return z, -1.0 / hp, 1.0 / hp


@dataclass(frozen=True, slots=True)
class AxisStencil:
    """Per-node three-point weights along one axis of a grid.

    ``lower``/``diag``/``upper`` multiply the values at the previous node, the
    node itself and the next node along ``axis``. Entries for neighbours that
    do not exist (``lower`` at the first tick, ``upper`` at the last) are zero.
    """

    axis: int
    stride: int
    lower: NDArray[np.floating]
    diag: NDArray[np.floating]
    upper: NDArray[np.floating]


def axis_spacings(
    grid: Grid, axis: int
) -> tuple[NDArray[np.intp], NDArray[np.floating], NDArray[np.floating]]:
    """Per-node tick index and left/right spacings along ``axis``.

    Spacings that do not exist (``hm`` at the first tick, ``hp`` at the last)
    are returned as ``nan``.
    """
    ticks = grid.axes[axis].ticks
    n = ticks.shape[0]
    idx = grid.multi_indices()[:, axis]

    h = np.diff(ticks)
    hm_ax = np.full(n, np.nan)
    hp_ax = np.full(n, np.nan)
    hm_ax[1:] = h
    hp_ax[:-1] = h
    return idx, hm_ax[idx], hp_ax[idx]


def axis_stencil(
    grid: Grid,
    axis: int,
    *,
    diffusion: NDArray[np.floating],
    convection: NDArray[np.floating],
    scheme: AdvectionScheme | str = AdvectionScheme.AUTO,
) -> AxisStencil:
    """Weights of ``a u_xx + b u_x`` along ``axis`` at every node.

    Interior ticks use three-point non-uniform stencils. The first and last
    tick of the axis assume the solution is linear there (``u_xx = 0``) and
    use a two-point first difference pointing into the domain.
    """
    scheme = AdvectionScheme(scheme)
    a = np.asarray(diffusion, dtype=float)
    b = np.asarray(convection, dtype=float)
    n_ax = grid.axes[axis].size
    stride = grid.strides[axis]

    lower = np.zeros(grid.size, dtype=float)
    diag = np.zeros(grid.size, dtype=float)
    upper = np.zeros(grid.size, dtype=float)

    if n_ax == 1:
        return AxisStencil(axis=axis, stride=stride, lower=lower, diag=diag, upper=upper)

    idx, hm, hp = axis_spacings(grid, axis)
    first = idx == 0
    last = idx == n_ax - 1
    inner = ~(first | last)

    # --- boundary ticks: linearity, one-sided first derivative
    fl, fd, fu = d1_forward_coeffs(hp[first])
    diag[first] = b[first] * fd
    upper[first] = b[first] * fu
    bl, bd, bu = d1_backward_coeffs(hm[last])
    lower[last] = b[last] * bl
    diag[last] = b[last] * bd

    if not np.any(inner):
        return AxisStencil(axis=axis, stride=stride, lower=lower, diag=diag, upper=upper)

    hm_i = hm[inner]
    hp_i = hp[inner]
    a_i = a[inner]
    b_i = b[inner]

    d2l, d2d, d2u = d2_central_nonuniform_coeffs(hm_i, hp_i)
    cl, cd, cu = d1_central_nonuniform_coeffs(hm_i, hp_i)

    # upwind: forward difference where b >= 0, backward where b < 0
    pos = b_i >= 0.0
    ul = np.where(pos, 0.0, -1.0 / hm_i)
    ud = np.where(pos, -1.0 / hp_i, 1.0 / hm_i)
    uu = np.where(pos, 1.0 / hp_i, 0.0)

    if scheme == AdvectionScheme.CENTRAL:
        use_central = np.ones_like(pos)
    elif scheme == AdvectionScheme.UPWIND:
        use_central = np.zeros_like(pos)
    else:
        use_central = (a_i * d2l + b_i * cl >= 0.0) & (a_i * d2u + b_i * cu >= 0.0)

    d1l = np.where(use_central, cl, ul)
    d1d = np.where(use_central, cd, ud)
    d1u = np.where(use_central, cu, uu)

    lower[inner] = a_i * d2l + b_i * d1l
    diag[inner] = a_i * d2d + b_i * d1d
    upper[inner] = a_i * d2u + b_i * d1u

    return AxisStencil(axis=axis, stride=stride, lower=lower, diag=diag, upper=upper)
