"""SGF point encoding.

SGF writes a point as two lowercase letters, column first: ``"dc"`` is
x=3, y=2.  Only boards up to 26x26 are representable.
"""

from __future__ import annotations

from typing import NamedTuple

from .errors import FormatError

_BASE = ord("a")
_LETTERS = "abcdefghijklmnopqrstuvwxyz"
MAX_BOARD_SIZE = len(_LETTERS)


class Vertex(NamedTuple):
    x: int
    y: int


def decode(code: str) -> Vertex:
    if not isinstance(code, str) or len(code) != 2:
        raise FormatError(f"point must be two letters, got {code!r}")
    x = ord(code[0]) - _BASE
    y = ord(code[1]) - _BASE
    if not (0 <= x < MAX_BOARD_SIZE and 0 <= y < MAX_BOARD_SIZE):
        raise FormatError(f"point {code!r} is outside a..z")
    return Vertex(x, y)


def encode(vertex: tuple[int, int]) -> str:
    x, y = vertex
    if not (0 <= x < MAX_BOARD_SIZE and 0 <= y < MAX_BOARD_SIZE):
        raise FormatError(f"vertex {tuple(vertex)!r} cannot be encoded")
    return _LETTERS[x] + _LETTERS[y]
