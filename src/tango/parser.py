"""Puzzle parser: convert puzzle dictionaries into seeded Tango solvers.

Input format (as saved by the puzzle downloader):
    {"size": 6,
     "constraints": [{"type": "=" | "×", "cells": [[r, c], [r, c]]}, ...],
     "initial": [{"pos": [r, c], "value": "S" | "M"}, ...]}
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .model import Constraint, Mark, Position
from .solver_core import MAX_ITERATIONS, TangoSolver
from src.utils.trace import Tracer


def parse_mark(raw: Any) -> Optional[Mark]:
    if raw is None:
        return None
    text = str(raw).strip().upper()
    if text in ("", "_", "NULL", "NONE"):
        return None
    try:
        return Mark(text)
    except ValueError:
        raise ValueError(f"Unknown mark {raw!r}; expected 'S' or 'M'") from None


def parse_size(puzzle: Dict[str, Any]) -> int:
    raw = puzzle.get("size")
    try:
        size = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Puzzle size must be an integer, got {raw!r}") from None
    if size < 2 or size % 2:
        raise ValueError(f"Puzzle size must be an even integer >= 2, got {size}")
    return size


def parse_constraints(raw: Optional[Iterable[Dict[str, Any]]]) -> List[Constraint]:
    constraints: List[Constraint] = []
    for item in raw or []:
        try:
            constraints.append(Constraint.from_dict(item))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed constraint {item!r}: {e}") from e
    return constraints


def parse_initial(raw: Optional[Iterable[Dict[str, Any]]]) -> List[Tuple[Position, Mark]]:
    initial: List[Tuple[Position, Mark]] = []
    for item in raw or []:
        try:
            r, c = item["pos"]
            mark = parse_mark(item["value"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed initial cell {item!r}: {e}") from e
        if mark is None:
            continue
        initial.append(((int(r), int(c)), mark))
    return initial


def parse_solution(raw: Any) -> Optional[List[List[Optional[Mark]]]]:
    """Accept {"grid": [[...]]} or a bare list of rows."""
    if raw is None:
        return None
    rows = raw.get("grid") if isinstance(raw, dict) else raw
    if rows is None:
        return None
    return [[parse_mark(cell) for cell in row] for row in rows]


def parse_puzzle(
    puzzle: Dict[str, Any],
    tracer: Optional[Tracer] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> TangoSolver:
    size = parse_size(puzzle)
    constraints = parse_constraints(puzzle.get("constraints"))
    initial = parse_initial(puzzle.get("initial"))

    for (r, c), _ in initial:
        if not (0 <= r < size and 0 <= c < size):
            raise ValueError(f"Initial cell ({r}, {c}) is outside a {size}x{size} grid")

    solver = TangoSolver(size, constraints, tracer=tracer, max_iterations=max_iterations)
    rejected = solver.seed(initial)
    if rejected:
        print(f"Warning: puzzle {puzzle.get('id', '?')} has conflicting initial cells {rejected}")
    return solver
