"""``bermudan-put``: price a Bermudan put under Black-Scholes.

Exercise dates are spread evenly through ``[0, T)``; the option value is
printed on the spot grid ``0, 10, ..., 200``. Help (``-h``) goes to stdout,
as argparse prints it; errors go to stderr with exit status 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import NoReturn

from .config import BermudanConfig
from .exceptions import QuantPDEError
from .numerics.axis import Axis
from .numerics.grids import Grid
from .types import MarketData, OptionSpec, OptionType, PricingInputs

logger = logging.getLogger(__name__)

_DEFAULTS = BermudanConfig()


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog="bermudan-put",
        description="Prices a Bermudan put under the Black-Scholes model, with "
        "premature exercises spread evenly throughout the life of the option.",
    )
    ap.add_argument(
        "-d", type=float, default=_DEFAULTS.dividend, metavar="REAL",
        help="sets the dividend rate (default is %(default)s)",
    )
    ap.add_argument(
        "-e", type=int, default=_DEFAULTS.exercises, metavar="NONNEGATIVE_INTEGER",
        help="sets the number of premature exercises, spread evenly throughout "
        "the interval (default is %(default)s)",
    )
    ap.add_argument(
        "-K", type=float, default=_DEFAULTS.strike, metavar="REAL",
        help="sets the strike price (default is %(default)s)",
    )
    ap.add_argument(
        "-N", type=int, default=_DEFAULTS.steps, metavar="POSITIVE_INTEGER",
        help="sets the number of steps to take in time (default is %(default)s)",
    )
    ap.add_argument(
        "-r", type=float, default=_DEFAULTS.rate, metavar="REAL",
        help="sets the interest rate (default is %(default)s)",
    )
    ap.add_argument(
        "-R", type=int, default=_DEFAULTS.refinement, metavar="NONNEGATIVE_INTEGER",
        help="controls the coarseness of the grid, with 0 being coarsest "
        "(default is %(default)s)",
    )
    ap.add_argument(
        "-T", type=float, default=_DEFAULTS.expiry, metavar="POSITIVE_REAL",
        help="sets the expiry time (default is %(default)s)",
    )
    ap.add_argument(
        "-v", type=float, default=_DEFAULTS.volatility, metavar="REAL",
        help="sets the volatility (default is %(default)s)",
    )
    ap.add_argument(
        "-S", "--spot", type=float, default=None, metavar="REAL",
        help="print the price at this spot instead of the value grid",
    )
    ap.add_argument(
        "--table", action="store_true",
        help="print a convergence table for refinement levels 0..R",
    )
    ap.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity (default is %(default)s)",
    )
    return ap


def _inputs(cfg: BermudanConfig, spot: float) -> PricingInputs:
    return PricingInputs(
        spec=OptionSpec(
            kind=OptionType.PUT,
            strike=cfg.strike,
            expiry=cfg.expiry,
            exercises=cfg.exercises,
        ),
        market=MarketData(spot=spot, rate=cfg.rate, dividend_yield=cfg.dividend),
        sigma=cfg.volatility,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = BermudanConfig(
            dividend=args.d,
            exercises=args.e,
            strike=args.K,
            steps=args.N,
            rate=args.r,
            refinement=args.R,
            expiry=args.T,
            volatility=args.v,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    # imported here so that `-h` and argument errors stay fast
    from .diagnostics.convergence import convergence_table
    from .pricers.bermudan import bermudan_price_pde

    spot = cfg.strike if args.spot is None else args.spot
    p = _inputs(cfg, spot)
    logger.debug("Running with %s", cfg)

    try:
        if args.table:
            df = convergence_table(
                p, steps=cfg.steps, max_refinement=cfg.refinement
            )
            print(df.to_string(index=False))
            return 0

        res = bermudan_price_pde(p, steps=cfg.steps, refinement=cfg.refinement)
    except (QuantPDEError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.spot is not None:
        print(f"{res.price:.10g}")
        return 0

    print_grid = Grid(Axis.range(0.0, 10.0, 200.0))
    values = print_grid.image(res.solution.interpolant())
    print(print_grid.accessor(values))
    return 0
