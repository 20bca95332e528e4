"""Tango core data structures: marks, constraints, and the grid state."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Position = Tuple[int, int]


class Mark(str, Enum):
    SUN = "S"
    MOON = "M"

    @property
    def opposite(self) -> "Mark":
        return Mark.MOON if self is Mark.SUN else Mark.SUN


class ConstraintKind(str, Enum):
    EQUAL = "="
    OPPOSITE = "×"

    @classmethod
    def parse(cls, symbol: str) -> "ConstraintKind":
        symbol = str(symbol).strip()
        if symbol in ("x", "X"):
            return cls.OPPOSITE
        return cls(symbol)


@dataclass(frozen=True)
class Constraint:
    """
    A binary relation between two cells: both hold the same mark (EQUAL) or
    different marks (OPPOSITE). The cells are usually edge-adjacent but the
    engine does not rely on it.
    """

    kind: ConstraintKind
    cell_a: Position
    cell_b: Position

    def __post_init__(self) -> None:
        if self.cell_a == self.cell_b:
            raise ValueError(f"Constraint must tie two distinct cells, got {self.cell_a} twice")

    @classmethod
    def equal(cls, cell_a: Position, cell_b: Position) -> "Constraint":
        return cls(ConstraintKind.EQUAL, tuple(cell_a), tuple(cell_b))

    @classmethod
    def opposite(cls, cell_a: Position, cell_b: Position) -> "Constraint":
        return cls(ConstraintKind.OPPOSITE, tuple(cell_a), tuple(cell_b))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Constraint":
        kind = ConstraintKind.parse(raw["type"])
        (r1, c1), (r2, c2) = raw["cells"]
        return cls(kind, (int(r1), int(c1)), (int(r2), int(c2)))

    def expected(self, mark: Mark) -> Mark:
        """Mark the other cell must hold when one side holds `mark`."""
        return mark if self.kind is ConstraintKind.EQUAL else mark.opposite

    def is_satisfied_by(self, mark_a: Optional[Mark], mark_b: Optional[Mark]) -> bool:
        if mark_a is None or mark_b is None:
            return True
        return self.expected(mark_a) is mark_b

    def __str__(self) -> str:
        return f"{self.cell_a} {self.kind.value} {self.cell_b}"


class Grid:
    """
    N x N board of Sun/Moon marks with running per-row and per-column counts.

    Every mutation goes through `try_set` or `clear` so the counts always match
    the cells. Placements that would create three identical marks in a row or
    push a row/column past N/2 of one mark are refused up front.
    """

    def __init__(self, size: int):
        if not isinstance(size, int) or size < 2 or size % 2:
            raise ValueError(f"Grid size must be an even integer >= 2, got {size!r}")
        self.size = size
        self.target = size // 2
        self.cells: List[List[Optional[Mark]]] = [[None] * size for _ in range(size)]
        self.row_counts: List[Dict[Mark, int]] = [{Mark.SUN: 0, Mark.MOON: 0} for _ in range(size)]
        self.col_counts: List[Dict[Mark, int]] = [{Mark.SUN: 0, Mark.MOON: 0} for _ in range(size)]

    def _check_bounds(self, row: int, col: int) -> None:
        if not (0 <= row < self.size and 0 <= col < self.size):
            raise IndexError(f"Cell ({row}, {col}) is outside a {self.size}x{self.size} grid")

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def get(self, row: int, col: int) -> Optional[Mark]:
        self._check_bounds(row, col)
        return self.cells[row][col]

    def is_empty(self, row: int, col: int) -> bool:
        return self.get(row, col) is None

    def creates_triple_run(self, row: int, col: int, mark: Mark) -> bool:
        """True if `mark` at (row, col) would complete three identical marks in a line."""
        self._check_bounds(row, col)
        line = self.cells[row]
        for start in range(col - 2, col + 1):
            if start < 0 or start + 2 >= self.size:
                continue
            if all(line[i] is mark or i == col for i in range(start, start + 3)):
                return True
        for start in range(row - 2, row + 1):
            if start < 0 or start + 2 >= self.size:
                continue
            if all(self.cells[i][col] is mark or i == row for i in range(start, start + 3)):
                return True
        return False

    def exceeds_balance(self, row: int, col: int, mark: Mark) -> bool:
        """True if the row or column already holds N/2 of `mark`."""
        self._check_bounds(row, col)
        return (
            self.row_counts[row][mark] >= self.target
            or self.col_counts[col][mark] >= self.target
        )

    def can_place(self, row: int, col: int, mark: Mark) -> bool:
        return not self.creates_triple_run(row, col, mark) and not self.exceeds_balance(row, col, mark)

    def try_set(self, row: int, col: int, mark: Mark) -> bool:
        if not self.is_empty(row, col):
            return False
        if not self.can_place(row, col, mark):
            return False
        self.cells[row][col] = mark
        self.row_counts[row][mark] += 1
        self.col_counts[col][mark] += 1
        return True

    def clear(self, row: int, col: int) -> bool:
        mark = self.get(row, col)
        if mark is None:
            return False
        self.cells[row][col] = None
        self.row_counts[row][mark] -= 1
        self.col_counts[col][mark] -= 1
        return True

    def filled_count(self) -> int:
        return sum(1 for line in self.cells for cell in line if cell is not None)

    def is_complete(self) -> bool:
        return self.filled_count() == self.size * self.size

    def rows(self) -> List[List[Optional[str]]]:
        return [[cell.value if cell else None for cell in line] for line in self.cells]

    def to_text(self) -> str:
        return "\n".join(
            " ".join(cell.value if cell else "_" for cell in line) for line in self.cells
        )

    def __repr__(self) -> str:
        return f"Grid(size={self.size}, filled={self.filled_count()})"
