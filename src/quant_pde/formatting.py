"""Plain-text formatting of axes, grid functions and solution vectors.

Values are printed the way the diagnostics of the ``bermudan-put`` tool
print them: a parenthesised, space separated list using ``%g`` formatting.
Multi-dimensional arrays nest one pair of parentheses per dimension.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np


def format_scalar(value: float) -> str:
    return f"{float(value):g}"


def format_values(values: Iterable[float] | np.ndarray) -> str:
    """Format ``values`` as ``(v0 v1 ... vn)``.

    >>> format_values([0.0, 0.5, 1.0])
    '(0 0.5 1)'
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        return format_scalar(float(arr))
    if arr.ndim == 1:
        return "(" + " ".join(format_scalar(v) for v in arr) + ")"
    return "(" + " ".join(format_values(row) for row in arr) + ")"
