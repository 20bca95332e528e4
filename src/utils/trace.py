"""Tracing module: logs Tango solver steps and writes to CSV."""

import csv
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class TraceStep:
    """A single step in the solving process."""

    timestamp: float
    step_number: int
    action_type: str  # 'set', 'reject', 'clear', 'rule', 'iteration', 'iteration_cap', 'solved'
    row: Optional[int] = None
    col: Optional[int] = None
    value: Optional[str] = None
    rule: Optional[str] = None
    iteration: Optional[int] = None
    filled_cells: Optional[int] = None
    grid_state: Optional[str] = None  # Text snapshot of the board (optional, can be large)
    reason: Optional[str] = None


class Tracer:
    """Records solver steps for logging and analysis."""

    def __init__(self, enabled: bool = True, record_grids: bool = False):
        self.enabled = enabled
        self.record_grids = record_grids
        self.steps: List[TraceStep] = []
        self.start_time = datetime.now().timestamp()
        self.step_counter = 0

    def _get_timestamp(self) -> float:
        """Get elapsed time in seconds since tracer creation."""
        return datetime.now().timestamp() - self.start_time

    def _record(self, action_type: str, **fields: Any) -> None:
        self.step_counter += 1
        self.steps.append(TraceStep(
            timestamp=self._get_timestamp(),
            step_number=self.step_counter,
            action_type=action_type,
            **fields,
        ))

    def log_set(self, row: int, col: int, value: Any, rule: Optional[str] = None):
        """Log an accepted placement; `rule` is None for caller moves."""
        if not self.enabled:
            return
        self._record('set', row=row, col=col, value=str(value), rule=rule)

    def log_reject(self, row: int, col: int, value: Any, rule: Optional[str] = None, reason: str = "Illegal move"):
        """Log a placement refused by the legality checks."""
        if not self.enabled:
            return
        self._record('reject', row=row, col=col, value=str(value), rule=rule, reason=reason)

    def log_clear(self, row: int, col: int, previous: Any):
        """Log a cell returned to empty."""
        if not self.enabled:
            return
        self._record('clear', row=row, col=col, value=str(previous))

    def log_rule(self, rule: str, iteration: int, changed: bool):
        """Log one application of a deduction rule."""
        if not self.enabled:
            return
        self._record('rule', rule=rule, iteration=iteration, reason="changed" if changed else "no change")

    def log_iteration(self, iteration: int, filled_cells: int, grid_text: Optional[str] = None):
        """Log the end of a propagation iteration."""
        if not self.enabled:
            return
        self._record(
            'iteration',
            iteration=iteration,
            filled_cells=filled_cells,
            grid_state=grid_text if self.record_grids else None,
        )

    def log_iteration_cap(self, iteration: int, filled_cells: int):
        """Log that propagation stopped at the iteration cap without converging."""
        if not self.enabled:
            return
        self._record(
            'iteration_cap',
            iteration=iteration,
            filled_cells=filled_cells,
            reason="Max iterations reached",
        )

    def log_solved(self, filled_cells: int, complete: bool):
        """Log the end of a solve."""
        if not self.enabled:
            return
        self._record(
            'solved',
            filled_cells=filled_cells,
            reason="complete" if complete else "stalled",
        )

    def to_csv(self, filepath: Path, include_large_states: bool = False) -> None:
        """Write trace to CSV file."""
        if not self.steps:
            print("No trace steps to write")
            return

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        # Select fields to write
        fieldnames = [
            'timestamp', 'step_number', 'action_type', 'row', 'col', 'value',
            'rule', 'iteration', 'filled_cells', 'reason'
        ]
        if include_large_states:
            fieldnames.append('grid_state')

        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()

            for step in self.steps:
                row = asdict(step)
                if not include_large_states:
                    row.pop('grid_state', None)
                writer.writerow(row)

        print(f"Trace written to {filepath} ({len(self.steps)} steps)")

    def summary(self) -> Dict[str, Any]:
        """Get a summary of the trace."""
        action_counts = {}
        for step in self.steps:
            action_counts[step.action_type] = action_counts.get(step.action_type, 0) + 1

        sets_by_rule: Dict[str, int] = {}
        for step in self.steps:
            if step.action_type == 'set':
                key = step.rule or 'move'
                sets_by_rule[key] = sets_by_rule.get(key, 0) + 1

        return {
            'total_steps': len(self.steps),
            'elapsed_time_seconds': self._get_timestamp(),
            'action_counts': action_counts,
            'sets_by_rule': sets_by_rule,
            'num_sets': action_counts.get('set', 0),
            'num_rejections': action_counts.get('reject', 0),
            'num_iterations': action_counts.get('iteration', 0),
            'iteration_cap_hit': action_counts.get('iteration_cap', 0) > 0,
        }


# Global tracer instance
_global_tracer: Optional[Tracer] = None


def get_tracer() -> Tracer:
    """Get or create the global tracer."""
    global _global_tracer
    if _global_tracer is None:
        _global_tracer = Tracer(enabled=True)
    return _global_tracer


def reset_tracer() -> None:
    """Reset the global tracer."""
    global _global_tracer
    _global_tracer = None


def enable_tracing(enabled: bool = True) -> None:
    """Enable or disable tracing."""
    get_tracer().enabled = enabled
