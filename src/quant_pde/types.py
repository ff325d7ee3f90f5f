from dataclasses import dataclass
from enum import Enum


class OptionType(str, Enum):
    """Option contract type.

    Attributes
    ----------
    CALL : str
        Call option ("call").
    PUT : str
        Put option ("put").
    """

    CALL = "call"
    PUT = "put"


@dataclass(frozen=True, slots=True)
class MarketData:
    """Market observables needed for option pricing.

    Parameters
    ----------
    spot : float
        Current spot price of the underlying, typically denoted :math:`S`.
    rate : float
        Continuously-compounded risk-free interest rate, typically denoted :math:`r`
        (annualized).
    dividend_yield : float, default 0.0
        Continuously-compounded dividend yield, typically denoted :math:`q`
        (annualized).
    """

    spot: float
    rate: float
    dividend_yield: float = 0.0


@dataclass(frozen=True, slots=True)
class OptionSpec:
    """Specification of a vanilla option with optional early exercise.

    Parameters
    ----------
    kind : OptionType
        Option type (call or put).
    strike : float
        Strike price of the option, typically denoted :math:`K`.
    expiry : float
        Option expiry time in the same time units as `t` in :class:`PricingInputs`
        (commonly years).
    exercises : int, default 0
        Number of premature exercise dates, spread evenly over the life of the
        option at ``T / e * m`` for ``m = 0, ..., e - 1``. ``0`` is a European
        option; exercise at expiry is always allowed through the payoff.

    Raises
    ------
    ValueError
        If ``exercises`` is negative.
    """

    kind: OptionType
    strike: float
    expiry: float
    exercises: int = 0

    def __post_init__(self) -> None:
        if self.exercises < 0:
            raise ValueError("the number of premature exercises must be nonnegative")

    @property
    def is_european(self) -> bool:
        return self.exercises == 0


@dataclass(frozen=True, slots=True)
class PricingInputs:
    """Inputs for an option pricing routine.

    Bundles an option specification, market data and the Black-Scholes
    volatility into a single immutable object, with aliases for the usual
    symbols (:math:`S, K, r, q, T`).

    Parameters
    ----------
    spec : OptionSpec
        Option contract specification.
    market : MarketData
        Market observables (spot, rates, yields).
    sigma : float
        Volatility (annualized).
    t : float, default 0.0
        Current valuation time in the same units as `spec.expiry`.

    Raises
    ------
    ValueError
        If ``T - t <= 0`` when accessing :attr:`tau`.
    """

    spec: OptionSpec
    market: MarketData
    sigma: float
    t: float = 0.0

    @property
    def S(self) -> float:
        return self.market.spot

    @property
    def K(self) -> float:
        return self.spec.strike

    @property
    def r(self) -> float:
        return self.market.rate

    @property
    def q(self) -> float:
        return self.market.dividend_yield

    @property
    def T(self) -> float:
        return self.spec.expiry

    @property
    def tau(self) -> float:
        tau = self.T - self.t
        if tau <= 0.0:
            raise ValueError("Need expiry > t")
        return tau
