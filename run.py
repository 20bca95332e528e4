"""CLI entrypoint: load Tango puzzle(s), run the solver, and report results."""

import argparse
import csv
import json
import os
from pathlib import Path

from solver import solve_puzzle
from src.tango.checks import agrees_with_solution, find_violations
from src.tango.loader import load_puzzle_dir, load_puzzles
from src.tango.model import Grid
from src.tango.parser import parse_constraints, parse_solution
from src.tango.solver_core import MAX_ITERATIONS
from src.utils.trace import get_tracer, reset_tracer

GAMES_DIR_ENV = "TANGO_GAMES_DIR"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the Tango propagation solver on puzzle files")
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        default=None,
        help=f"Path to a puzzle file or directory of puzzles (defaults to ${GAMES_DIR_ENV})",
    )
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write results CSV")
    parser.add_argument("--trace-dir", type=Path, default=None, help="Optional directory for per-puzzle trace CSVs")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=MAX_ITERATIONS,
        help="Safety cap on outer propagation iterations.",
    )
    parser.add_argument(
        "--include-status",
        action="store_true",
        help="Include a 'status' field (solved/partial/mismatch) in grid_solution.",
    )
    args = parser.parse_args(argv)
    if args.input is None:
        env_dir = os.environ.get(GAMES_DIR_ENV)
        if not env_dir:
            parser.error(f"no input given and ${GAMES_DIR_ENV} is not set")
        args.input = Path(env_dir)
    return args


def puzzle_status(grid: Grid, puzzle: dict | None = None) -> str:
    puzzle = puzzle or {}
    solution = parse_solution(puzzle.get("solution"))
    if solution is not None and not agrees_with_solution(grid, solution):
        return "mismatch"
    if find_violations(grid, parse_constraints(puzzle.get("constraints"))):
        return "mismatch"
    if grid.is_complete():
        return "solved"
    return "partial"


def format_solution(
    grid: Grid | None,
    puzzle: dict | None = None,
    *,
    include_status: bool = False,
) -> dict:
    if grid is None:
        empty = {"size": 0, "rows": []}
        if include_status:
            return {"status": "unsolved", **empty}
        return empty

    rows = [[cell or "_" for cell in row] for row in grid.rows()]
    formatted = {"size": grid.size, "rows": rows}
    if include_status:
        return {"status": puzzle_status(grid, puzzle), **formatted}
    return formatted


def write_results_csv(results, output_path: Path):
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["id", "grid_solution", "steps"])

        for r in results:
            writer.writerow([
                r["id"],
                json.dumps(r["grid_solution"], ensure_ascii=False, separators=(",", ":")),
                r["steps"]
            ])


def main(argv=None):
    args = parse_args(argv)
    puzzles = []
    results = []

    if args.input.is_file():
        puzzles = load_puzzles(str(args.input))
    elif args.input.is_dir():
        puzzles = load_puzzle_dir(str(args.input))
    else:
        raise ValueError(f"Input path {args.input} is neither file nor directory")

    for puzzle in puzzles:
        reset_tracer()
        tracer = get_tracer()
        puzzle_id = puzzle.get("id", "unknown")

        try:
            grid = solve_puzzle(puzzle, tracer=tracer, max_iterations=args.max_iterations)
            summary = tracer.summary()
            if summary["iteration_cap_hit"]:
                print(f"Puzzle {puzzle_id}: max iterations reached, returning partial grid")

            results.append({
                "id": puzzle_id,
                "grid_solution": format_solution(grid, puzzle, include_status=args.include_status),
                "steps": summary["num_sets"]
            })
        except Exception as e:
            print(f"ERROR: Failed to solve puzzle {puzzle_id}: {e}")
            results.append({
                "id": puzzle_id,
                "grid_solution": format_solution(None, include_status=args.include_status),
                "steps": -1
            })

        if args.trace_dir:
            tracer.to_csv(args.trace_dir / f"{puzzle_id}.trace.csv")

    if args.output:
        write_results_csv(results, args.output)
    else:
        print(results)
    return results


if __name__ == "__main__":
    main()
