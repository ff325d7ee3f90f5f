"""Pytest helpers for the quant_pde library."""

from __future__ import annotations

import numpy as np
import pytest

from quant_pde.numerics import Axis, Grid
from quant_pde.types import MarketData, OptionSpec, OptionType, PricingInputs


@pytest.fixture
def base_params() -> dict:
    """Parameters of the canonical Bermudan put example."""
    return {
        "S": 100.0,
        "K": 100.0,
        "r": 0.04,
        "q": 0.0,
        "sigma": 0.2,
        "T": 1.0,
        "t": 0.0,
    }


@pytest.fixture
def make_inputs():
    """Factory fixture for constructing the library's PricingInputs."""

    def _make(
        *,
        S: float,
        K: float,
        r: float,
        sigma: float,
        T: float,
        q: float = 0.0,
        t: float = 0.0,
        kind: OptionType = OptionType.PUT,
        exercises: int = 0,
    ) -> PricingInputs:
        spec = OptionSpec(kind=kind, strike=K, expiry=T, exercises=exercises)
        market = MarketData(spot=S, rate=r, dividend_yield=q)
        return PricingInputs(spec=spec, market=market, sigma=sigma, t=t)

    return _make


@pytest.fixture
def rng():
    """Seeded RNG factory."""

    def _rng(seed: int) -> np.random.Generator:
        return np.random.default_rng(seed)

    return _rng


@pytest.fixture
def unit_grid() -> Grid:
    """Uniform 1-D grid on [0, 1] with 11 ticks."""
    return Grid(Axis.uniform(0.0, 1.0, 11))
