"""Puzzle solution trees.

A puzzle is stored as an arena of nodes indexed by integer id.  Nodes keep
the ids of their children (main line first) and the id of their parent.
Nodes are never removed, so ids stay valid for the lifetime of the puzzle.
A run plays on copies of the archived puzzles, so leaves appended while
exploring never reach the archive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from .coords import Vertex, decode, encode
from .errors import FormatError

logger = logging.getLogger(__name__)

DEFAULT_BOARD_SIZE = 19

# SGF property keys used by the trainer.
KEY_BLACK = "B"
KEY_WHITE = "W"
KEY_SETUP_BLACK = "AB"
KEY_SETUP_WHITE = "AW"
KEY_PLAYER = "PL"
KEY_SIZE = "SZ"
KEY_COMMENT = "C"
KEY_GAME_COMMENT = "GC"
KEY_BLACK_RANK = "BR"
KEY_WHITE_RANK = "WR"
KEY_CIRCLE = "CR"
KEY_CROSS = "MA"
KEY_SQUARE = "SQ"
KEY_TRIANGLE = "TR"
KEY_LABEL = "LB"
KEY_TESUJI = "TE"
KEY_BAD_MOVE = "BM"
KEY_INTERESTING = "IT"
KEY_DOUBTFUL = "DO"


class Side(StrEnum):
    BLACK = "B"
    WHITE = "W"

    @property
    def opponent(self) -> "Side":
        return Side.WHITE if self is Side.BLACK else Side.BLACK

    @property
    def sign(self) -> int:
        return 1 if self is Side.BLACK else -1


@dataclass(slots=True)
class GameTreeNode:
    id: int
    parent_id: int | None
    children: list[int] = field(default_factory=list)
    data: dict[str, list[str]] = field(default_factory=dict)

    def first(self, key: str) -> str | None:
        values = self.data.get(key)
        if not values:
            return None
        return values[0]

    def has(self, key: str) -> bool:
        return key in self.data

    def move(self) -> tuple[Side, Vertex] | None:
        """Return the stone placed by this node, or None.

        Raises FormatError when the node carries a move key whose point
        cannot be decoded.  An empty value (an SGF pass) counts as no move.
        """

        for side in (Side.BLACK, Side.WHITE):
            if side.value in self.data:
                code = self.first(side.value)
                if not code:
                    return None
                return side, decode(code)
        return None


class Puzzle:
    """Arena holding one puzzle's solution tree; node 0 is the root."""

    def __init__(self) -> None:
        self._nodes: list[GameTreeNode] = []

    @classmethod
    def single(cls, data: dict[str, list[str]] | None = None) -> "Puzzle":
        puzzle = cls()
        puzzle.new_node(parent_id=None, data=data)
        return puzzle

    def copy(self) -> "Puzzle":
        """Independent copy; nodes added to it never reach this puzzle."""

        clone = Puzzle()
        clone._nodes = [
            GameTreeNode(
                id=n.id,
                parent_id=n.parent_id,
                children=list(n.children),
                data={k: list(v) for k, v in n.data.items()},
            )
            for n in self._nodes
        ]
        return clone

    def new_node(self, *, parent_id: int | None, data: dict[str, list[str]] | None = None) -> GameTreeNode:
        node = GameTreeNode(id=len(self._nodes), parent_id=parent_id, data=dict(data or {}))
        if parent_id is not None:
            self.node(parent_id).children.append(node.id)
        self._nodes.append(node)
        return node

    def add_child(self, parent_id: int, data: dict[str, list[str]] | None = None) -> GameTreeNode:
        return self.new_node(parent_id=parent_id, data=data)

    def add_move(self, parent_id: int, side: Side, vertex: Vertex) -> GameTreeNode:
        return self.add_child(parent_id, {side.value: [encode(vertex)]})

    def node(self, node_id: int) -> GameTreeNode:
        return self._nodes[node_id]

    def children(self, node_id: int) -> list[GameTreeNode]:
        return [self._nodes[c] for c in self._nodes[node_id].children]

    def nodes(self) -> list[GameTreeNode]:
        return list(self._nodes)

    @property
    def root(self) -> GameTreeNode:
        return self._nodes[0]

    @property
    def max_id(self) -> int:
        return len(self._nodes) - 1

    def __len__(self) -> int:
        return len(self._nodes)

    # Root metadata.

    @property
    def board_size(self) -> int:
        raw = self.root.first(KEY_SIZE)
        if raw is None:
            return DEFAULT_BOARD_SIZE
        try:
            # Rectangular boards ("19:13") are not supported; use the width.
            size = int(raw.split(":")[0])
        except ValueError:
            logger.warning("ignoring malformed board size %r", raw)
            return DEFAULT_BOARD_SIZE
        if not (1 < size <= 26):
            logger.warning("ignoring unsupported board size %d", size)
            return DEFAULT_BOARD_SIZE
        return size

    @property
    def side_to_move(self) -> Side:
        raw = (self.root.first(KEY_PLAYER) or "").strip().upper()
        return Side.WHITE if raw == "W" else Side.BLACK

    def setup_stones(self, side: Side) -> list[Vertex]:
        key = KEY_SETUP_BLACK if side is Side.BLACK else KEY_SETUP_WHITE
        stones: list[Vertex] = []
        for code in self.root.data.get(key, []):
            try:
                stones.append(decode(code))
            except FormatError as exc:
                logger.warning("skipping setup stone: %s", exc)
        return stones

    @property
    def rank(self) -> str | None:
        return self.root.first(KEY_BLACK_RANK)

    @property
    def solver_rank(self) -> str | None:
        return self.root.first(KEY_WHITE_RANK)

    @property
    def category(self) -> str:
        return self.root.first(KEY_GAME_COMMENT) or ""

    @property
    def title(self) -> str:
        return self.category.split("\n")[0].strip()

    def comment_for(self, node_id: int) -> str:
        comment = self.node(node_id).first(KEY_COMMENT)
        if comment:
            return comment
        return self.category
