"""Whole-grid audits: rule violations and comparison against a known solution."""

from typing import List, Optional, Sequence

from .model import Constraint, Grid, Mark

Solution = Sequence[Sequence[Optional[Mark]]]


def find_violations(grid: Grid, constraints: Sequence[Constraint] = ()) -> List[str]:
    """Describe every triple run, balance excess and broken constraint among filled cells."""
    problems: List[str] = []
    size = grid.size
    cells = grid.cells

    for r in range(size):
        for c in range(size - 2):
            mark = cells[r][c]
            if mark is not None and cells[r][c + 1] is mark and cells[r][c + 2] is mark:
                problems.append(f"Row {r}: three {mark.value} starting at column {c}")
    for c in range(size):
        for r in range(size - 2):
            mark = cells[r][c]
            if mark is not None and cells[r + 1][c] is mark and cells[r + 2][c] is mark:
                problems.append(f"Column {c}: three {mark.value} starting at row {r}")

    for mark in (Mark.SUN, Mark.MOON):
        for r in range(size):
            if grid.row_counts[r][mark] > grid.target:
                problems.append(f"Row {r}: {grid.row_counts[r][mark]} {mark.value} (max {grid.target})")
        for c in range(size):
            if grid.col_counts[c][mark] > grid.target:
                problems.append(f"Column {c}: {grid.col_counts[c][mark]} {mark.value} (max {grid.target})")

    for constraint in constraints:
        mark_a = grid.get(*constraint.cell_a)
        mark_b = grid.get(*constraint.cell_b)
        if not constraint.is_satisfied_by(mark_a, mark_b):
            problems.append(f"Constraint {constraint} broken: {mark_a.value} vs {mark_b.value}")
    return problems


def agrees_with_solution(grid: Grid, solution: Solution) -> bool:
    """True if every filled cell holds the solution's mark."""
    for r, line in enumerate(grid.cells):
        for c, mark in enumerate(line):
            if mark is not None and mark is not solution[r][c]:
                return False
    return True


def matches_solution(grid: Grid, solution: Solution) -> bool:
    return grid.is_complete() and agrees_with_solution(grid, solution)
