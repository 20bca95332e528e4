"""Unit tests for the Tango grid state and legality checks."""

import pytest

from src.tango.model import Constraint, ConstraintKind, Grid, Mark

S, M = Mark.SUN, Mark.MOON


def test_grid_initializes_empty_with_zero_counts():
    grid = Grid(4)
    assert grid.size == 4
    assert grid.target == 2
    assert grid.rows() == [[None] * 4 for _ in range(4)]
    assert grid.row_counts[0] == {S: 0, M: 0}
    assert grid.col_counts[3] == {S: 0, M: 0}


@pytest.mark.parametrize("size", [0, 1, 3, 5, "6"])
def test_grid_rejects_odd_or_tiny_sizes(size):
    with pytest.raises(ValueError):
        Grid(size)


def test_try_set_updates_grid_and_counts():
    grid = Grid(4)
    assert grid.try_set(0, 0, S)
    assert grid.get(0, 0) is S
    assert grid.row_counts[0][S] == 1
    assert grid.col_counts[0][S] == 1
    assert grid.row_counts[0][M] == 0


def test_try_set_refuses_occupied_cell():
    grid = Grid(4)
    grid.try_set(0, 0, S)
    assert not grid.try_set(0, 0, M)
    assert grid.get(0, 0) is S
    assert grid.row_counts[0] == {S: 1, M: 0}


def test_prevents_three_in_a_row_horizontally():
    grid = Grid(6)
    assert grid.try_set(0, 0, S)
    assert grid.try_set(0, 1, S)
    assert not grid.try_set(0, 2, S)
    assert grid.is_empty(0, 2)


def test_prevents_three_in_a_row_vertically():
    grid = Grid(6)
    grid.try_set(0, 0, S)
    grid.try_set(1, 0, S)
    assert not grid.try_set(2, 0, S)


def test_prevents_filling_the_middle_of_a_triple():
    grid = Grid(6)
    grid.try_set(2, 1, M)
    grid.try_set(2, 3, M)
    assert grid.creates_triple_run(2, 2, M)
    assert not grid.creates_triple_run(2, 2, S)
    assert not grid.try_set(2, 2, M)
    assert grid.try_set(2, 2, S)


def test_triple_check_ignores_runs_broken_by_gaps():
    grid = Grid(6)
    grid.try_set(0, 0, S)
    grid.try_set(0, 3, S)
    assert not grid.creates_triple_run(0, 1, S)
    assert not grid.creates_triple_run(0, 5, S)


def test_balance_blocks_a_third_mark_in_a_size_four_row():
    grid = Grid(4)
    grid.try_set(0, 0, S)
    grid.try_set(0, 1, S)
    # (0, 3) is not part of a triple, only the N/2 cap applies.
    assert not grid.creates_triple_run(0, 3, S)
    assert grid.exceeds_balance(0, 3, S)
    assert not grid.try_set(0, 3, S)
    assert grid.try_set(0, 3, M)


def test_balance_applies_to_columns():
    grid = Grid(4)
    grid.try_set(0, 2, M)
    grid.try_set(3, 2, M)
    assert grid.exceeds_balance(1, 2, M)
    assert not grid.exceeds_balance(1, 2, S)


def test_size_four_scenario_third_sun_fails():
    grid = Grid(4)
    assert grid.try_set(0, 0, S)
    assert grid.try_set(0, 1, S)
    # Refused twice over: it would be a triple and a third S in a row of four.
    assert grid.creates_triple_run(0, 2, S)
    assert grid.exceeds_balance(0, 2, S)
    assert not grid.try_set(0, 2, S)
    assert grid.is_empty(0, 2)
    assert grid.row_counts[0] == {S: 2, M: 0}


def test_clear_is_symmetric_with_try_set():
    grid = Grid(4)
    grid.try_set(1, 2, M)
    assert grid.clear(1, 2)
    assert grid.is_empty(1, 2)
    assert grid.row_counts[1] == {S: 0, M: 0}
    assert grid.col_counts[2] == {S: 0, M: 0}
    assert not grid.clear(1, 2)


def test_clear_frees_room_under_the_balance_cap():
    grid = Grid(4)
    grid.try_set(0, 0, S)
    grid.try_set(0, 1, S)
    assert not grid.try_set(0, 3, S)
    grid.clear(0, 1)
    assert grid.try_set(0, 3, S)


def test_out_of_bounds_access_raises():
    grid = Grid(4)
    with pytest.raises(IndexError):
        grid.try_set(4, 0, S)
    with pytest.raises(IndexError):
        grid.get(0, -1)


def test_to_text_marks_empty_cells():
    grid = Grid(2)
    grid.try_set(0, 0, S)
    grid.try_set(1, 1, S)
    assert grid.to_text() == "S _\n_ S"
    assert grid.filled_count() == 2
    assert not grid.is_complete()


def test_mark_opposite():
    assert S.opposite is M
    assert M.opposite is S


def test_constraint_kind_accepts_ascii_alias():
    assert ConstraintKind.parse("×") is ConstraintKind.OPPOSITE
    assert ConstraintKind.parse("x") is ConstraintKind.OPPOSITE
    assert ConstraintKind.parse("=") is ConstraintKind.EQUAL
    with pytest.raises(ValueError):
        ConstraintKind.parse("<")


def test_constraint_from_dict_and_expected_marks():
    eq = Constraint.from_dict({"type": "=", "cells": [[0, 0], [0, 1]]})
    op = Constraint.from_dict({"type": "×", "cells": [[1, 1], [2, 1]]})
    assert eq == Constraint.equal((0, 0), (0, 1))
    assert eq.expected(S) is S
    assert op.expected(S) is M
    assert op.is_satisfied_by(S, M)
    assert not op.is_satisfied_by(M, M)
    assert eq.is_satisfied_by(S, None)


def test_constraint_requires_distinct_cells():
    with pytest.raises(ValueError):
        Constraint.equal((1, 1), (1, 1))
