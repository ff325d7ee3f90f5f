from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass, is_dataclass
from time import perf_counter
from typing import Any

import numpy as np
import pandas as pd

from ..numerics.axis import Axis
from ..pricers.bermudan import bermudan_price_pde
from ..types import PricingInputs


@dataclass(frozen=True, slots=True)
class ConvergenceRow:
    refinement: int
    nodes: int
    steps: int
    price: float
    change: float  # |price - previous price|
    ratio: float  # previous change / change
    abs_err: float
    rel_err: float
    runtime_ms: float


def to_frame(items: Sequence[object]) -> pd.DataFrame:
    """Coerce a sequence of dicts or dataclasses into a DataFrame."""

    rows: list[dict[str, Any]] = []
    for it in items:
        if isinstance(it, dict):
            rows.append(dict(it))
        elif is_dataclass(it) and not isinstance(it, type):
            rows.append(asdict(it))
        else:
            raise TypeError(f"Unsupported item type: {type(it)}")
    return pd.DataFrame(rows)


def convergence_table(
    p: PricingInputs,
    *,
    exercises: int | None = None,
    steps: int = 25,
    max_refinement: int = 4,
    reference: float | None = None,
    axis: Axis | None = None,
    method: str = "bdf2",
) -> pd.DataFrame:
    """Price ``p`` on successively refined grids.

    Level ``R`` uses the grid refined ``R`` times and ``steps * 2**R`` time
    steps. ``change`` is the difference to the previous level and ``ratio``
    the quotient of successive changes (about 4 for a second order method).
    Error columns are NaN unless a ``reference`` price is given.
    """
    if max_refinement < 0:
        raise ValueError("the maximum level of refinement must be nonnegative")

    rows: list[ConvergenceRow] = []
    prev_price = np.nan
    prev_change = np.nan
    for R in range(max_refinement + 1):
        t0 = perf_counter()
        res = bermudan_price_pde(
            p,
            exercises=exercises,
            steps=steps,
            refinement=R,
            axis=axis,
            method=method,
            scale_steps=True,
        )
        runtime_ms = 1e3 * (perf_counter() - t0)

        change = abs(res.price - prev_price)
        ratio = prev_change / change if change > 0.0 else np.nan
        if reference is None:
            abs_err = rel_err = np.nan
        else:
            abs_err = abs(res.price - reference)
            rel_err = abs_err / max(abs(reference), 1e-300)

        rows.append(
            ConvergenceRow(
                refinement=R,
                nodes=res.grid.size,
                steps=res.solution.steps,
                price=res.price,
                change=float(change),
                ratio=float(ratio),
                abs_err=float(abs_err),
                rel_err=float(rel_err),
                runtime_ms=runtime_ms,
            )
        )
        prev_price, prev_change = res.price, change

    return to_frame(rows)
