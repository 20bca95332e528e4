"""Tango grid model, constraint-propagation solver, and puzzle parsing."""

from .model import Mark, ConstraintKind, Constraint, Grid
from .solver_core import TangoSolver, propagate
from .parser import parse_puzzle

__all__ = [
    "Mark",
    "ConstraintKind",
    "Constraint",
    "Grid",
    "TangoSolver",
    "propagate",
    "parse_puzzle",
]
