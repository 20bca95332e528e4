"""Top-level Tango solve interface.

Expose `solve_puzzle(puzzle)` that accepts either a prepared TangoSolver or a raw
puzzle dictionary compatible with `src.tango.parser.parse_puzzle`.
"""

from typing import Any, Optional

from src.tango.model import Grid
from src.tango.parser import parse_puzzle
from src.tango.solver_core import MAX_ITERATIONS, TangoSolver
from src.utils.trace import Tracer


def solve_puzzle(
    puzzle: Any,
    tracer: Optional[Tracer] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> Grid:
    """
    Propagate a puzzle to its fixed point and return the (possibly partial) grid.
    Accepts:
      - TangoSolver instances (used directly, keeping their own tracer)
      - Raw puzzle dictionaries (parsed via `parse_puzzle`)
    """
    if isinstance(puzzle, TangoSolver):
        solver = puzzle
    elif isinstance(puzzle, dict):
        solver = parse_puzzle(puzzle, tracer=tracer, max_iterations=max_iterations)
    else:
        raise TypeError("solve_puzzle expects a TangoSolver instance or puzzle dictionary")

    return solver.solve()


__all__ = ["solve_puzzle"]
