from __future__ import annotations

import re
from dataclasses import dataclass

from .session import Mode, StormSession

_RANK_SPLIT_RE = re.compile(r"(\d+)(.+)")


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Post-run statistics shown next to the review board."""

    score: int
    puzzles_attempted: int
    puzzles_failed: int
    moves: int
    accuracy: float
    max_combo: int
    total_time_s: float
    time_per_move_s: float | None
    highest_solved_rank: str

    def highest_solved_parts(self) -> tuple[str, str]:
        """Split ``"5k"`` into ``("5", "k")`` for display; unparsed ranks go first."""

        m = _RANK_SPLIT_RE.match(self.highest_solved_rank)
        if m is None:
            return self.highest_solved_rank, ""
        return m.group(1), m.group(2)


def run_summary(session: StormSession) -> RunSummary:
    """Build a RunSummary from a finished session."""

    if session.mode is not Mode.REVIEWING:
        raise ValueError("run summary is only available once the run has finished")

    tracker = session.tracker
    moves = tracker.num_right + tracker.num_wrong
    accuracy = 1.0 if moves == 0 else tracker.num_right / moves
    total = float(session.total_time_s or 0.0)

    history = session.puzzle_history
    puzzles = session.puzzles
    highest = "-"
    for i in range(len(history) - 1, -1, -1):
        if history[i].passed:
            highest = puzzles[i].solver_rank or "-"
            break

    return RunSummary(
        score=int(tracker.score),
        puzzles_attempted=len(history),
        puzzles_failed=sum(1 for e in history if not e.passed),
        moves=int(moves),
        accuracy=float(accuracy),
        max_combo=int(tracker.max_combo),
        total_time_s=total,
        time_per_move_s=None if moves == 0 else total / moves,
        highest_solved_rank=highest,
    )
