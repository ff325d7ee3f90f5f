from __future__ import annotations

from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

# typing only
type FloatArray = NDArray[np.floating]
type ArrayLike = float | np.ndarray | np.floating

# (x, t) -> coefficient, where x holds node coordinates
type CoeffFn = Callable[[NDArray[np.floating], float], ArrayLike]
type Coefficient = float | CoeffFn
