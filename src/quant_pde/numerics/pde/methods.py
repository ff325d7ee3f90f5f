"""Time discretizations and a small registry.

This module provides two things:

1) A lightweight *scheme interface* (:class:`TimeScheme`) so the iteration
   engine can ask any time discretization for the linear system of one step
   in a uniform way.
2) A string-to-scheme *registry* so users can do ``method="bdf2"`` (or
   register their own schemes) without touching the engine.

All schemes march *backward* in calendar time. With ``u_tau = L u + f`` and a
step from ``t_prev`` to ``t_new < t_prev`` the step size is
``h = t_prev - t_new > 0``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import scipy.sparse as sp

from .operators import LinearOperator
from .types import IterateHistory, LinearSystem

__all__ = [
    "TimeScheme",
    "ImplicitEuler",
    "BDF2",
    "ThetaScheme",
    "register_method",
    "available_methods",
    "resolve_method",
]


@runtime_checkable
class TimeScheme(Protocol):
    """Assembles ``A x = b`` for one backward step.

    ``order`` is the number of past iterates the scheme reads; the engine
    keeps at least that many in the history it passes to :meth:`assemble`.
    """

    @property
    def name(self) -> str:  # pragma: no cover
        ...

    @property
    def order(self) -> int:  # pragma: no cover
        ...

    def assemble(
        self,
        operator: LinearOperator,
        *,
        t_new: float,
        history: IterateHistory,
    ) -> LinearSystem:  # pragma: no cover
        ...


def _step_size(t_new: float, history: IterateHistory) -> float:
    if len(history) == 0:
        raise ValueError("Need at least one past iterate")
    h = float(history[0].time - t_new)
    if h <= 0.0:
        raise ValueError("Require t_new < t_prev (time marches backward)")
    return h


@dataclass(frozen=True, slots=True)
class ImplicitEuler:
    """One-step implicit (BDF1) scheme: ``(I - h L) u_new = u_prev + h f``."""

    @property
    def name(self) -> str:
        return "implicit"

    @property
    def order(self) -> int:
        return 1

    def assemble(
        self,
        operator: LinearOperator,
        *,
        t_new: float,
        history: IterateHistory,
    ) -> LinearSystem:
        h = _step_size(t_new, history)
        prev = history[0].values
        op = operator.discretize(float(t_new), prev)

        n = op.size
        A = sp.identity(n, format="csr") - h * op.matrix
        b = prev + h * op.forcing
        return LinearSystem(A=sp.csr_matrix(A), b=b)


@dataclass(frozen=True, slots=True)
class BDF2:
    """Two-step backward differentiation formula on variable step sizes.

    With ``h1 = t_prev - t_new``, ``h0 = t_prevprev - t_prev`` and
    ``w = h1 / h0``:

        ((1 + 2w)/(1 + w) I - h1 L) u_new
            = (1 + w) u_prev - w^2/(1 + w) u_prevprev + h1 f

    For equal steps (``w = 1``) this is the classical
    ``3/2 u_new - 2 u_prev + 1/2 u_prevprev = h L u_new``.

    With fewer than two past iterates (the first step of a run) the scheme
    falls back to :class:`ImplicitEuler`.
    """

    @property
    def name(self) -> str:
        return "bdf2"

    @property
    def order(self) -> int:
        return 2

    def assemble(
        self,
        operator: LinearOperator,
        *,
        t_new: float,
        history: IterateHistory,
    ) -> LinearSystem:
        if len(history) < 2:
            return ImplicitEuler().assemble(operator, t_new=t_new, history=history)

        h1 = _step_size(t_new, history)
        h0 = float(history[1].time - history[0].time)
        if h0 <= 0.0:
            raise ValueError("History times must be strictly decreasing")
        w = h1 / h0

        prev = history[0].values
        prevprev = history[1].values
        op = operator.discretize(float(t_new), prev)

        n = op.size
        c_new = (1.0 + 2.0 * w) / (1.0 + w)
        c_prev = 1.0 + w
        c_prevprev = w * w / (1.0 + w)

        A = c_new * sp.identity(n, format="csr") - h1 * op.matrix
        b = c_prev * prev - c_prevprev * prevprev + h1 * op.forcing
        return LinearSystem(A=sp.csr_matrix(A), b=b)


@dataclass(frozen=True, slots=True)
class ThetaScheme:
    """Theta-scheme (covers explicit/CN/implicit).

    Common choices:
    - theta=0.5: Crank-Nicolson
    - theta=1.0: implicit Euler
    """

    theta: float

    def __post_init__(self) -> None:
        if not (0.0 <= self.theta <= 1.0):
            raise ValueError("theta must be in [0, 1]")

    @property
    def name(self) -> str:
        if self.theta == 0.5:
            return "cn"
        if self.theta == 1.0:
            return "implicit-theta"
        if self.theta == 0.0:
            return "explicit"
        return f"theta={self.theta:g}"

    @property
    def order(self) -> int:
        return 1

    def assemble(
        self,
        operator: LinearOperator,
        *,
        t_new: float,
        history: IterateHistory,
    ) -> LinearSystem:
        theta = float(self.theta)
        h = _step_size(t_new, history)
        prev = history[0]
        op_new = operator.discretize(float(t_new), prev.values)
        op_prev = operator.discretize(prev.time, prev.values)

        eye = sp.identity(op_new.size, format="csr")
        A = eye - theta * h * op_new.matrix
        B = eye + (1.0 - theta) * h * op_prev.matrix
        b = B @ prev.values + h * (theta * op_new.forcing + (1.0 - theta) * op_prev.forcing)
        return LinearSystem(A=sp.csr_matrix(A), b=b)


# -----------------------------
# Registry
# -----------------------------

MethodFactory = Callable[[], TimeScheme]
_METHOD_REGISTRY: dict[str, MethodFactory] = {}


def register_method(
    name: str,
    factory: MethodFactory,
    *,
    overwrite: bool = False,
    aliases: tuple[str, ...] = (),
) -> None:
    """Register a scheme factory under one or more names.

    Parameters
    ----------
    name:
        Primary key users pass as ``method=...``.
    factory:
        Callable returning a new scheme instance.
    overwrite:
        If False (default), raise if ``name`` or any alias already exists.
    aliases:
        Additional strings that resolve to the same factory.
    """

    keys = (name, *aliases)
    for k in keys:
        kk = str(k).lower().strip()
        if not kk:
            raise ValueError("Method name/alias cannot be empty")
        if (not overwrite) and (kk in _METHOD_REGISTRY):
            raise KeyError(f"Method '{kk}' is already registered")
        _METHOD_REGISTRY[kk] = factory


def available_methods() -> list[str]:
    """Return the currently registered method keys (sorted)."""

    return sorted(_METHOD_REGISTRY.keys())


def resolve_method(method: str | TimeScheme | None) -> TimeScheme:
    """Resolve a user's scheme choice into a concrete :class:`TimeScheme`.

    A scheme instance is returned as is, a string is looked up in the
    registry, and ``None`` means ``"bdf2"``.
    """

    if method is None:
        method = "bdf2"

    if isinstance(method, TimeScheme):
        return method

    key = str(method).lower().strip()
    try:
        factory = _METHOD_REGISTRY[key]
    except KeyError as e:
        raise ValueError(
            f"Unknown method '{method}'. Available: {', '.join(available_methods())}"
        ) from e
    return factory()


def _register_builtin_methods() -> None:
    register_method(
        "bdf2",
        BDF2,
        overwrite=True,
        aliases=("bdf-2", "bdf_two", "two-step"),
    )
    register_method(
        "implicit",
        ImplicitEuler,
        overwrite=True,
        aliases=("backward-euler", "backward", "be", "bdf1", "implicit-euler"),
    )
    register_method(
        "cn",
        lambda: ThetaScheme(theta=0.5),
        overwrite=True,
        aliases=("crank-nicolson", "crank_nicolson", "crank"),
    )


_register_builtin_methods()
