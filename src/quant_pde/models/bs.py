"""Closed-form Black-Scholes prices, used as reference values."""

from __future__ import annotations

import math

from scipy.stats import norm

from ..types import OptionType, PricingInputs


def bs_price(p: PricingInputs) -> float:
    """European price of ``p.spec`` (any early exercise rights are ignored).

    Uses the continuous dividend yield ``p.q``; ``omega`` is ``+1`` for a call
    and ``-1`` for a put, so both share ``omega * (S e^{-q tau} N(omega d1)
    - K e^{-r tau} N(omega d2))``.
    """
    if p.spec.kind == OptionType.CALL:
        omega = 1.0
    elif p.spec.kind == OptionType.PUT:
        omega = -1.0
    else:
        raise ValueError(f"Unsupported option kind: {p.spec.kind}")

    tau = p.tau
    if p.S <= 0.0 or p.K <= 0.0:
        raise ValueError("spot and strike must be positive")
    vol = abs(p.sigma) * math.sqrt(tau)
    if vol == 0.0:
        raise ValueError("sigma must be nonzero")

    d1 = (math.log(p.S / p.K) + (p.r - p.q) * tau) / vol + 0.5 * vol
    d2 = d1 - vol
    forward_leg = p.S * math.exp(-p.q * tau) * norm.cdf(omega * d1)
    strike_leg = p.K * math.exp(-p.r * tau) * norm.cdf(omega * d2)
    return float(omega * (forward_leg - strike_leg))
