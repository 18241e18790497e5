"""Board positions and the minimal Go rules the trainer needs.

The session only talks to a :class:`BoardEngine`; :class:`GoRules` adapts
sgfmill's board for the app and the tests.  Boards are immutable: every
placement returns a new :class:`BoardState`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from sgfmill import boards

from .coords import Vertex
from .errors import BoardError
from .game_tree import Side


@dataclass(frozen=True, slots=True)
class BoardState:
    size: int
    grid: tuple[int, ...]  # row-major signs: 1 black, -1 white, 0 empty

    def in_bounds(self, vertex: tuple[int, int]) -> bool:
        x, y = vertex
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, vertex: tuple[int, int]) -> int:
        x, y = vertex
        return self.grid[y * self.size + x]

    def rows(self) -> list[tuple[int, ...]]:
        return [self.grid[r * self.size : (r + 1) * self.size] for r in range(self.size)]

    def stone_count(self) -> int:
        return sum(1 for s in self.grid if s != 0)


@dataclass(frozen=True, slots=True)
class MoveOutcome:
    board: BoardState
    captured: bool


class BoardEngine(Protocol):
    def new_board(self, size: int) -> BoardState: ...

    def place_setup(self, board: BoardState, side: Side, vertices: Iterable[Vertex]) -> BoardState: ...

    def apply_move(self, board: BoardState, side: Side, vertex: Vertex) -> MoveOutcome: ...

    def is_occupied(self, board: BoardState, vertex: Vertex) -> bool: ...

    def in_bounds(self, board: BoardState, vertex: Vertex) -> bool: ...


class GoRules:
    """Stone placement on top of ``sgfmill.boards.Board``.

    Captures follow sgfmill: a suicide removes the own group, ko is not
    checked.  Vertex ``(x, y)`` maps to sgfmill point ``(y, x)``.
    """

    def new_board(self, size: int) -> BoardState:
        if size < 2:
            raise ValueError("board size must be >= 2")
        return BoardState(size=size, grid=(0,) * (size * size))

    def place_setup(self, board: BoardState, side: Side, vertices: Iterable[Vertex]) -> BoardState:
        points = []
        for v in vertices:
            if not board.in_bounds(v):
                raise BoardError(f"setup stone {tuple(v)!r} is off the board")
            points.append((v[1], v[0]))
        engine = _to_engine(board)
        # Setup stones never capture, even without liberties.
        if side is Side.BLACK:
            engine.apply_setup(points, [], [])
        else:
            engine.apply_setup([], points, [])
        return _to_state(engine, board.size)

    def in_bounds(self, board: BoardState, vertex: Vertex) -> bool:
        return board.in_bounds(vertex)

    def is_occupied(self, board: BoardState, vertex: Vertex) -> bool:
        return board.in_bounds(vertex) and board.get(vertex) != 0

    def apply_move(self, board: BoardState, side: Side, vertex: Vertex) -> MoveOutcome:
        if not board.in_bounds(vertex):
            raise BoardError(f"move {tuple(vertex)!r} is off the board")
        if board.get(vertex) != 0:
            raise BoardError(f"point {tuple(vertex)!r} is occupied")

        engine = _to_engine(board)
        opponent = _COLOURS[side.opponent]
        before = _count(engine, opponent)
        try:
            engine.play(vertex[1], vertex[0], _COLOURS[side])
        except ValueError as exc:
            raise BoardError(f"move {tuple(vertex)!r} refused: {exc}") from exc
        return MoveOutcome(board=_to_state(engine, board.size), captured=_count(engine, opponent) < before)


_COLOURS = {Side.BLACK: "b", Side.WHITE: "w"}


def _to_engine(board: BoardState) -> boards.Board:
    engine = boards.Board(board.size)
    black, white = [], []
    for y, row in enumerate(board.rows()):
        for x, sign in enumerate(row):
            if sign > 0:
                black.append((y, x))
            elif sign < 0:
                white.append((y, x))
    engine.apply_setup(black, white, [])
    return engine


def _to_state(engine: boards.Board, size: int) -> BoardState:
    grid = [0] * (size * size)
    for colour, (row, col) in engine.list_occupied_points():
        grid[row * size + col] = 1 if colour == "b" else -1
    return BoardState(size=size, grid=tuple(grid))


def _count(engine: boards.Board, colour: str) -> int:
    return sum(1 for c, _ in engine.list_occupied_points() if c == colour)
