from __future__ import annotations

import pytest

from tsumego_storm.board import GoRules
from tsumego_storm.coords import Vertex
from tsumego_storm.errors import BoardError
from tsumego_storm.game_tree import Side


def test_setup_and_occupancy() -> None:
    rules = GoRules()
    board = rules.place_setup(rules.new_board(9), Side.BLACK, [Vertex(2, 3)])
    assert rules.is_occupied(board, Vertex(2, 3))
    assert not rules.is_occupied(board, Vertex(3, 2))
    assert board.get((2, 3)) == 1
    assert board.stone_count() == 1


def test_move_returns_new_board_and_keeps_old_one() -> None:
    rules = GoRules()
    before = rules.new_board(9)
    outcome = rules.apply_move(before, Side.WHITE, Vertex(4, 4))
    assert outcome.board.get((4, 4)) == -1
    assert before.get((4, 4)) == 0
    assert outcome.captured is False


def test_corner_capture_is_reported() -> None:
    rules = GoRules()
    board = rules.place_setup(rules.new_board(9), Side.BLACK, [Vertex(0, 0)])
    board = rules.place_setup(board, Side.WHITE, [Vertex(1, 0)])

    outcome = rules.apply_move(board, Side.WHITE, Vertex(0, 1))
    assert outcome.captured is True
    assert outcome.board.get((0, 0)) == 0


def test_suicide_removes_own_stone() -> None:
    rules = GoRules()
    board = rules.place_setup(rules.new_board(9), Side.WHITE, [Vertex(1, 0), Vertex(0, 1)])
    outcome = rules.apply_move(board, Side.BLACK, Vertex(0, 0))
    assert outcome.captured is False
    assert outcome.board.get((0, 0)) == 0


def test_refuses_occupied_and_off_board_points() -> None:
    rules = GoRules()
    board = rules.place_setup(rules.new_board(9), Side.BLACK, [Vertex(0, 0)])
    with pytest.raises(BoardError):
        rules.apply_move(board, Side.WHITE, Vertex(0, 0))
    with pytest.raises(BoardError):
        rules.apply_move(board, Side.WHITE, Vertex(9, 0))
    assert not rules.in_bounds(board, Vertex(-1, 0))
