"""Constraint-propagation solver for Tango grids: six local rules run to a fixed point."""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from .model import Constraint, ConstraintKind, Grid, Mark, Position
from src.utils.trace import Tracer

MAX_ITERATIONS = 100

Rule = Callable[[Grid, Sequence[Constraint], Tracer], bool]


@dataclass
class PropagationResult:
    iterations: int
    converged: bool


def _place(grid: Grid, row: int, col: int, mark: Mark, tracer: Tracer, rule: str) -> bool:
    if grid.try_set(row, col, mark):
        tracer.log_set(row, col, mark.value, rule=rule)
        return True
    tracer.log_reject(row, col, mark.value, rule=rule)
    return False


def _propagate_constraints(
    grid: Grid, constraints: Sequence[Constraint], tracer: Tracer, kind: ConstraintKind, rule: str
) -> bool:
    changed = False
    for constraint in constraints:
        if constraint.kind is not kind:
            continue
        (r1, c1), (r2, c2) = constraint.cell_a, constraint.cell_b
        mark_a = grid.get(r1, c1)
        mark_b = grid.get(r2, c2)
        if mark_a is not None and mark_b is None:
            changed |= _place(grid, r2, c2, constraint.expected(mark_a), tracer, rule)
        elif mark_b is not None and mark_a is None:
            changed |= _place(grid, r1, c1, constraint.expected(mark_b), tracer, rule)
    return changed


def process_equality_constraints(grid: Grid, constraints: Sequence[Constraint], tracer: Tracer) -> bool:
    """Copy a filled cell's mark onto the empty side of every '=' constraint."""
    return _propagate_constraints(grid, constraints, tracer, ConstraintKind.EQUAL, "equality")


def process_opposite_constraints(grid: Grid, constraints: Sequence[Constraint], tracer: Tracer) -> bool:
    """Put the other mark on the empty side of every '×' constraint."""
    return _propagate_constraints(grid, constraints, tracer, ConstraintKind.OPPOSITE, "opposite")


def process_forced_by_pairs(grid: Grid, constraints: Sequence[Constraint], tracer: Tracer) -> bool:
    """Two equal neighbours force the opposite mark on both flanking cells."""
    changed = False
    size = grid.size
    cells = grid.cells

    for r in range(size):
        for c in range(size - 1):
            mark = cells[r][c]
            if mark is None or cells[r][c + 1] is not mark:
                continue
            if c > 0 and cells[r][c - 1] is None:
                changed |= _place(grid, r, c - 1, mark.opposite, tracer, "pairs")
            if c < size - 2 and cells[r][c + 2] is None:
                changed |= _place(grid, r, c + 2, mark.opposite, tracer, "pairs")

    for c in range(size):
        for r in range(size - 1):
            mark = cells[r][c]
            if mark is None or cells[r + 1][c] is not mark:
                continue
            if r > 0 and cells[r - 1][c] is None:
                changed |= _place(grid, r - 1, c, mark.opposite, tracer, "pairs")
            if r < size - 2 and cells[r + 2][c] is None:
                changed |= _place(grid, r + 2, c, mark.opposite, tracer, "pairs")
    return changed


def prevent_three_in_a_row(grid: Grid, constraints: Sequence[Constraint], tracer: Tracer) -> bool:
    """
    An empty cell where one mark would complete a triple gets the other mark.
    When both marks would complete a triple the cell is left empty: the input is
    contradictory and `try_set` refuses either placement.
    """
    changed = False
    for r, c in _empty_cells(grid):
        for mark in (Mark.SUN, Mark.MOON):
            if grid.creates_triple_run(r, c, mark) and _place(grid, r, c, mark.opposite, tracer, "triples"):
                changed = True
                break
    return changed


def fill_forced_by_balance(grid: Grid, constraints: Sequence[Constraint], tracer: Tracer) -> bool:
    """A row or column holding N/2 of one mark takes the other mark everywhere else."""
    changed = False
    size = grid.size

    for r in range(size):
        for mark in (Mark.SUN, Mark.MOON):
            if grid.row_counts[r][mark] != grid.target:
                continue
            for c in range(size):
                if grid.cells[r][c] is None and _place(grid, r, c, mark.opposite, tracer, "balance"):
                    changed = True

    for c in range(size):
        for mark in (Mark.SUN, Mark.MOON):
            if grid.col_counts[c][mark] != grid.target:
                continue
            for r in range(size):
                if grid.cells[r][c] is None and _place(grid, r, c, mark.opposite, tracer, "balance"):
                    changed = True
    return changed


def check_single_possibility(grid: Grid, constraints: Sequence[Constraint], tracer: Tracer) -> bool:
    """Fill empty cells where exactly one mark passes the legality checks."""
    changed = False
    for r, c in _empty_cells(grid):
        can_sun = grid.can_place(r, c, Mark.SUN)
        can_moon = grid.can_place(r, c, Mark.MOON)
        if can_sun and not can_moon:
            changed |= _place(grid, r, c, Mark.SUN, tracer, "single")
        elif can_moon and not can_sun:
            changed |= _place(grid, r, c, Mark.MOON, tracer, "single")
    return changed


# Order matters: it decides which rule claims a cell first within an iteration.
SEED_RULES: Tuple[Rule, ...] = (
    process_equality_constraints,
    process_opposite_constraints,
    process_forced_by_pairs,
)

RULES: Tuple[Rule, ...] = SEED_RULES + (
    prevent_three_in_a_row,
    fill_forced_by_balance,
    check_single_possibility,
)


def _empty_cells(grid: Grid) -> Iterable[Position]:
    # Lazy: cells filled earlier in the same scan are skipped.
    for r in range(grid.size):
        for c in range(grid.size):
            if grid.cells[r][c] is None:
                yield r, c


def apply_initial_values(grid: Grid, constraints: Sequence[Constraint], tracer: Tracer) -> bool:
    """Run the constraint and pair rules until the seed values stop implying anything."""
    any_change = False
    changed = True
    while changed:
        changed = False
        for rule in SEED_RULES:
            changed |= rule(grid, constraints, tracer)
        any_change |= changed
    return any_change


def propagate(
    grid: Grid,
    constraints: Sequence[Constraint],
    tracer: Optional[Tracer] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> PropagationResult:
    """
    Mutate `grid` in place until no rule produces a change or `max_iterations`
    outer iterations have run. Reaching the cap is reported, not raised.
    """
    tracer = tracer or Tracer(enabled=False)
    apply_initial_values(grid, constraints, tracer)

    iterations = 0
    changed = True
    while changed:
        if iterations >= max_iterations:
            tracer.log_iteration_cap(iteration=iterations, filled_cells=grid.filled_count())
            tracer.log_solved(filled_cells=grid.filled_count(), complete=grid.is_complete())
            return PropagationResult(iterations=iterations, converged=False)

        iterations += 1
        changed = False
        for rule in RULES:
            rule_changed = rule(grid, constraints, tracer)
            tracer.log_rule(rule.__name__, iteration=iterations, changed=rule_changed)
            changed |= rule_changed
        grid_text = grid.to_text() if tracer.enabled and tracer.record_grids else None
        tracer.log_iteration(iterations, grid.filled_count(), grid_text)

    tracer.log_solved(filled_cells=grid.filled_count(), complete=grid.is_complete())
    return PropagationResult(iterations=iterations, converged=True)


class TangoSolver:
    """
    One puzzle attempt: a grid, its immutable constraint set, and the injected tracer.

    The UI-facing moves (`try_set`, `clear`, `cycle`) and `solve` all act on the
    same grid; callers must not interleave them from several threads.
    """

    def __init__(
        self,
        size: int,
        constraints: Iterable[Constraint] = (),
        tracer: Optional[Tracer] = None,
        max_iterations: int = MAX_ITERATIONS,
    ):
        self.size = size
        self.grid = Grid(size)
        self.constraints: Tuple[Constraint, ...] = tuple(constraints)
        for constraint in self.constraints:
            for r, c in (constraint.cell_a, constraint.cell_b):
                if not self.grid.in_bounds(r, c):
                    raise ValueError(f"Constraint {constraint} points outside a {size}x{size} grid")
        self.tracer = tracer or Tracer(enabled=False)
        self.max_iterations = max_iterations
        self.initial: List[Tuple[Position, Mark]] = []
        self.locked: Set[Position] = set()
        self.iterations = 0
        self.hit_iteration_cap = False

    def seed(self, initial: Iterable[Tuple[Position, Mark]]) -> List[Position]:
        """Place the puzzle's given cells and lock them. Returns the positions that were refused."""
        rejected: List[Position] = []
        for (r, c), mark in initial:
            if self.try_set(r, c, mark):
                self.initial.append(((r, c), mark))
                self.locked.add((r, c))
            else:
                rejected.append((r, c))
        return rejected

    def try_set(self, row: int, col: int, mark: Mark) -> bool:
        if self.grid.try_set(row, col, mark):
            self.tracer.log_set(row, col, mark.value)
            return True
        self.tracer.log_reject(row, col, mark.value)
        return False

    def clear(self, row: int, col: int) -> bool:
        if (row, col) in self.locked:
            return False
        previous = self.grid.get(row, col)
        if not self.grid.clear(row, col):
            return False
        self.tracer.log_clear(row, col, previous.value)
        return True

    def cycle(self, row: int, col: int) -> Optional[Mark]:
        """Advance a cell empty -> Sun -> Moon -> empty, skipping marks that are illegal there."""
        if (row, col) in self.locked:
            return self.grid.get(row, col)
        current = self.grid.get(row, col)
        if current is not None:
            self.clear(row, col)
        if current is None and self.try_set(row, col, Mark.SUN):
            return Mark.SUN
        if current is not Mark.MOON and self.try_set(row, col, Mark.MOON):
            return Mark.MOON
        return None

    def reset(self) -> None:
        """Drop every non-initial placement by rebuilding the grid from the locked cells."""
        self.grid = Grid(self.size)
        for (r, c), mark in self.initial:
            self.grid.try_set(r, c, mark)
        self.iterations = 0
        self.hit_iteration_cap = False

    def solve(self) -> Grid:
        result = propagate(self.grid, self.constraints, self.tracer, self.max_iterations)
        self.iterations = result.iterations
        self.hit_iteration_cap = not result.converged
        return self.grid
