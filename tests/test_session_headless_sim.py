from __future__ import annotations

from dataclasses import dataclass

import pytest

from tsumego_storm.results import RunSummary, run_summary
from tsumego_storm.session import Mode, MoveVerdict, PuzzleHistoryEntry, StormConfig, build_storm_session
from tsumego_storm.sgf import parse


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


ARCHIVE = """
(;SZ[9]AW[cc]PL[W]BR[1d]WR[1d]GC[dan life and death];W[gg])
(;SZ[9]AB[cc]PL[B]BR[10k]WR[10k]GC[kyu capture];B[dd])
(;SZ[9]AB[cc]PL[B]BR[5k+]WR[5k]GC[kyu ladder];B[dd];W[ee];B[ff])
(;SZ[9]BR[5k]GC[落子题]AB[aa];B[ii])
"""


def test_headless_scripted_run_produces_expected_summary() -> None:
    clock = FakeClock()
    session = build_storm_session(
        archive=parse(ARCHIVE),
        clock=clock,
        seed=2024,
        config=StormConfig(puzzles_per_rank=2),
    )
    assert [p.title for p in session.puzzles] == [
        "kyu capture",
        "kyu capture",
        "kyu ladder",
        "kyu ladder",
        "dan life and death",
        "dan life and death",
    ]

    with pytest.raises(ValueError):
        run_summary(session)

    # Clicking a setup stone does not arm the clock.
    assert session.attempt_move((2, 2)) is MoveVerdict.REJECTED
    assert not session.session_clock.started

    clock.advance(1.0)
    assert session.attempt_move((3, 3)) is MoveVerdict.SOLVED
    clock.advance(2.0)
    assert session.attempt_move((3, 3)) is MoveVerdict.SOLVED

    clock.advance(1.0)
    assert session.attempt_move((3, 3)) is MoveVerdict.CORRECT
    clock.advance(2.0)
    assert session.attempt_move((5, 5)) is MoveVerdict.SOLVED
    assert session.tracker.combo == 4

    clock.advance(1.0)
    assert session.attempt_move((0, 0)) is MoveVerdict.FAILED
    assert session.tracker.combo == 0

    clock.advance(2.0)
    assert session.attempt_move((6, 6)) is MoveVerdict.SOLVED
    clock.advance(1.0)
    assert session.attempt_move((6, 6)) is MoveVerdict.SOLVED

    assert session.mode is Mode.REVIEWING
    assert session.puzzle_history == (
        PuzzleHistoryEntry(0.0, True),
        PuzzleHistoryEntry(2.0, True),
        PuzzleHistoryEntry(3.0, True),
        PuzzleHistoryEntry(1.0, False),
        PuzzleHistoryEntry(2.0, True),
        PuzzleHistoryEntry(1.0, True),
    )
    assert session.snapshot().time_remaining_s == pytest.approx(161.0)

    summary = run_summary(session)
    assert summary == RunSummary(
        score=5,
        puzzles_attempted=6,
        puzzles_failed=1,
        moves=7,
        accuracy=pytest.approx(6 / 7),
        max_combo=4,
        total_time_s=pytest.approx(9.0),
        time_per_move_s=pytest.approx(9.0 / 7),
        highest_solved_rank="1d",
    )
    assert summary.highest_solved_parts() == ("1", "d")


def test_same_seed_selects_the_same_run() -> None:
    archive = parse(
        "(;BR[3k]WR[a];B[aa])(;BR[3k]WR[b];B[aa])(;BR[3k]WR[c];B[aa])(;BR[2d]WR[d];B[aa])"
    )
    runs = []
    for _ in range(2):
        session = build_storm_session(archive=archive, clock=FakeClock(), seed=99)
        runs.append([p.solver_rank for p in session.puzzles])
    assert runs[0] == runs[1]
    assert len(runs[0]) == 10
    assert runs[0][5:] == ["d"] * 5
