"""Convergence studies of the PDE pricers, reported as pandas tables."""

from .convergence import ConvergenceRow, convergence_table, to_frame

__all__ = ["ConvergenceRow", "convergence_table", "to_frame"]
