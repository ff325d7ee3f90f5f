# quant_pde/models/black_scholes/pde.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ...numerics.fd.stencils import AdvectionScheme
from ...numerics.grids import Grid
from ...numerics.pde.operators import ConvectionDiffusion, DiscreteOperator
from ...typing import ArrayLike, CoeffFn

type Array = np.ndarray
type TimeParam = float | Callable[[float], float]


@dataclass(frozen=True, slots=True)
class BSPDECoeffs:
    """
    Coefficients of the Black-Scholes operator in S coordinates:

        V_tau = a(S,t) * V_SS + b(S,t) * V_S + c(S,t) * V

    with
        a = 0.5 * sigma(t)^2 * S^2
        b = (r(t) - q(t)) * S
        c = -r(t)

    Each function broadcasts to the shape of its first argument.
    """

    a: CoeffFn
    b: CoeffFn
    c: CoeffFn


def _at(param: TimeParam, t: float) -> float:
    return float(param(t)) if callable(param) else float(param)


def bs_pde_coeffs(*, sigma: TimeParam, r: TimeParam, q: TimeParam) -> BSPDECoeffs:
    def a(x: ArrayLike, t: float) -> Array:
        S = np.asarray(x, dtype=float)
        sig = _at(sigma, t)
        return 0.5 * sig * sig * (S * S)

    def b(x: ArrayLike, t: float) -> Array:
        S = np.asarray(x, dtype=float)
        return (_at(r, t) - _at(q, t)) * S

    def c(x: ArrayLike, t: float) -> Array:
        S = np.asarray(x, dtype=float)
        return -_at(r, t) + 0.0 * S

    return BSPDECoeffs(a=a, b=b, c=c)


class BlackScholes:
    """Black-Scholes operator on a grid whose axis ``axis`` is the spot ``S``.

    Rates, volatility and dividend yield are constants or functions of
    (calendar) time. At ``S = 0`` diffusion and drift vanish, leaving
    ``V_tau = -r V``; at the largest ``S`` the value is assumed linear in ``S``.

    Parameters
    ----------
    grid:
        Spatial grid. Other axes (if any) see no diffusion or drift.
    rate, volatility, dividend:
        ``r``, ``sigma``, ``q``.
    advection:
        First-derivative stencil. The default switches to upwinding wherever
        central differences would produce negative coefficients.
    """

    def __init__(
        self,
        grid: Grid,
        rate: TimeParam,
        volatility: TimeParam,
        dividend: TimeParam = 0.0,
        *,
        axis: int = 0,
        advection: AdvectionScheme | str = AdvectionScheme.AUTO,
    ):
        if not (0 <= axis < grid.ndim):
            raise ValueError(f"axis {axis} out of range for a {grid.ndim}-D grid")
        if grid.axes[axis].lower < 0.0:
            raise ValueError("The spot axis must not contain negative prices")

        self.rate = rate
        self.volatility = volatility
        self.dividend = dividend
        self.axis = int(axis)

        coeffs = bs_pde_coeffs(sigma=volatility, r=rate, q=dividend)

        def _on_axis(fn: CoeffFn) -> CoeffFn:
            if grid.ndim == 1:
                return fn
            return lambda x, t: fn(np.asarray(x)[..., self.axis], t)

        diffusion: list[float | CoeffFn] = [0.0] * grid.ndim
        convection: list[float | CoeffFn] = [0.0] * grid.ndim
        diffusion[self.axis] = _on_axis(coeffs.a)
        convection[self.axis] = _on_axis(coeffs.b)

        self._op = ConvectionDiffusion(
            grid,
            diffusion=diffusion,
            convection=convection,
            reaction=_on_axis(coeffs.c),
            advection=advection,
            constant_in_time=not any(
                callable(p) for p in (rate, volatility, dividend)
            ),
        )

    @property
    def grid(self) -> Grid:
        return self._op.grid

    def discretize(
        self, t: float, iterate: NDArray[np.floating] | None = None
    ) -> DiscreteOperator:
        return self._op.discretize(t, iterate)
