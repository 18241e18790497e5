from __future__ import annotations

import pytest

from tsumego_storm.scoring import ComboProgress, ComboTracker


def test_bonus_fires_exactly_at_thresholds_then_every_ten() -> None:
    tracker = ComboTracker()
    bonuses = {}
    for _ in range(60):
        bonus = tracker.on_correct_move()
        if bonus is not None:
            bonuses[tracker.combo] = bonus
    assert bonuses == {5: 3, 12: 5, 20: 7, 30: 10, 40: 10, 50: 10, 60: 10}


def test_first_threshold_fires_once_not_on_6_to_11() -> None:
    tracker = ComboTracker()
    fired = [tracker.on_correct_move() for _ in range(11)]
    assert fired[4] == 3
    assert fired[5:] == [None] * 6


def test_wrong_move_resets_combo_but_not_max() -> None:
    tracker = ComboTracker()
    history = []
    for step in "RRRWRRRRRWR":
        if step == "R":
            tracker.on_correct_move()
        else:
            tracker.on_wrong_move()
            assert tracker.combo == 0
        history.append(tracker.max_combo)

    assert history == sorted(history)
    assert tracker.max_combo == 5
    assert tracker.num_right == 9
    assert tracker.num_wrong == 2


def test_combo_restarts_thresholds_after_reset() -> None:
    tracker = ComboTracker()
    for _ in range(5):
        tracker.on_correct_move()
    tracker.on_wrong_move()
    fired = [tracker.on_correct_move() for _ in range(5)]
    assert fired == [None, None, None, None, 3]


def test_break_combo_does_not_count_a_wrong_move() -> None:
    tracker = ComboTracker()
    tracker.on_correct_move()
    tracker.break_combo()
    assert tracker.combo == 0
    assert tracker.num_wrong == 0


def test_score_counts_passed_puzzles() -> None:
    tracker = ComboTracker()
    tracker.on_puzzle_passed()
    tracker.on_puzzle_passed()
    assert tracker.score == 2


@pytest.mark.parametrize(
    ("combo", "expected", "reached"),
    [
        (0, ComboProgress(0, 5, 0), 0),
        (4, ComboProgress(4, 5, 0), 0),
        (7, ComboProgress(2, 7, 1), 1),
        (20, ComboProgress(0, 10, 3), 3),
        (33, ComboProgress(3, 10, None), 4),
    ],
)
def test_progress_bar_bands(combo: int, expected: ComboProgress, reached: int) -> None:
    tracker = ComboTracker()
    for _ in range(combo):
        tracker.on_correct_move()
    assert tracker.progress() == expected
    assert tracker.levels_reached() == reached


def test_custom_levels_are_validated() -> None:
    with pytest.raises(ValueError):
        ComboTracker(levels=(5, 3), bonus_s=(1, 2))
    with pytest.raises(ValueError):
        ComboTracker(levels=(5,), bonus_s=(1, 2))
