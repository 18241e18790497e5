from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from .coords import Vertex, decode
from .errors import FormatError
from .game_tree import (
    KEY_BAD_MOVE,
    KEY_BLACK,
    KEY_CIRCLE,
    KEY_CROSS,
    KEY_DOUBTFUL,
    KEY_INTERESTING,
    KEY_LABEL,
    KEY_SETUP_BLACK,
    KEY_SETUP_WHITE,
    KEY_SQUARE,
    KEY_TESUJI,
    KEY_TRIANGLE,
    KEY_WHITE,
    GameTreeNode,
    Puzzle,
    Side,
)

logger = logging.getLogger(__name__)

# Keys whose values are plain points.
_POINT_KEYS = (
    KEY_BLACK,
    KEY_WHITE,
    KEY_SETUP_BLACK,
    KEY_SETUP_WHITE,
    KEY_CIRCLE,
    KEY_CROSS,
    KEY_SQUARE,
    KEY_TRIANGLE,
)


class MarkerKind(StrEnum):
    CIRCLE = "circle"
    CROSS = "cross"
    SQUARE = "square"
    TRIANGLE = "triangle"
    LABEL = "label"


class MoveQuality(StrEnum):
    GOOD = "good"
    BAD = "bad"
    INTERESTING = "interesting"
    DOUBTFUL = "doubtful"


@dataclass(frozen=True, slots=True)
class Marker:
    kind: MarkerKind
    label: str = ""


@dataclass(frozen=True, slots=True)
class Variation:
    """A child move drawn as a ghost stone during review."""

    node_id: int
    vertex: Vertex
    side: Side
    quality: MoveQuality | None


Rect = tuple[int, int, int, int]

_MARKER_KEYS = (
    (KEY_CIRCLE, MarkerKind.CIRCLE),
    (KEY_CROSS, MarkerKind.CROSS),
    (KEY_SQUARE, MarkerKind.SQUARE),
    (KEY_TRIANGLE, MarkerKind.TRIANGLE),
)

_QUALITY_KEYS = (
    (KEY_TESUJI, MoveQuality.GOOD),
    (KEY_BAD_MOVE, MoveQuality.BAD),
    (KEY_INTERESTING, MoveQuality.INTERESTING),
    (KEY_DOUBTFUL, MoveQuality.DOUBTFUL),
)


def _label_point(entry: str) -> str:
    point, sep, _ = entry.partition(":")
    if not sep:
        raise FormatError(f"label {entry!r} has no ':' separator")
    return point


def _referenced_points(node: GameTreeNode) -> list[Vertex]:
    points: list[Vertex] = []
    for key in _POINT_KEYS:
        for code in node.data.get(key, []):
            if not code:
                # Empty move value is a pass.
                continue
            try:
                points.append(decode(code))
            except FormatError as exc:
                logger.warning("node %d: skipping %s point: %s", node.id, key, exc)
    for entry in node.data.get(KEY_LABEL, []):
        try:
            points.append(decode(_label_point(entry)))
        except FormatError as exc:
            logger.warning("node %d: skipping label: %s", node.id, exc)
    return points


def bounding_box(puzzle: Puzzle) -> Rect:
    """Smallest rectangle holding every point the puzzle refers to.

    Returns ``(min_x, min_y, max_x, max_y)``, inclusive.  A puzzle that
    refers to no point gets the whole board.
    """

    size = puzzle.board_size
    min_x = min_y = size - 1
    max_x = max_y = 0
    seen = False

    for node in puzzle.nodes():
        for x, y in _referenced_points(node):
            if not (0 <= x < size and 0 <= y < size):
                continue
            seen = True
            min_x = min(min_x, x)
            min_y = min(min_y, y)
            max_x = max(max_x, x)
            max_y = max(max_y, y)

    if not seen:
        return 0, 0, size - 1, size - 1
    return min_x, min_y, max_x, max_y


def display_crop(puzzle: Puzzle, *, padding: int = 1) -> Rect:
    size = puzzle.board_size
    min_x, min_y, max_x, max_y = bounding_box(puzzle)
    return (
        max(0, min_x - padding),
        max(0, min_y - padding),
        min(size - 1, max_x + padding),
        min(size - 1, max_y + padding),
    )


def markers_for_node(node: GameTreeNode) -> dict[Vertex, Marker]:
    markers: dict[Vertex, Marker] = {}
    for key, kind in _MARKER_KEYS:
        for code in node.data.get(key, []):
            try:
                markers[decode(code)] = Marker(kind)
            except FormatError as exc:
                logger.warning("node %d: skipping %s marker: %s", node.id, key, exc)
    for entry in node.data.get(KEY_LABEL, []):
        try:
            point = _label_point(entry)
            markers[decode(point)] = Marker(MarkerKind.LABEL, entry.partition(":")[2])
        except FormatError as exc:
            logger.warning("node %d: skipping label: %s", node.id, exc)
    return markers


def move_quality(node: GameTreeNode) -> MoveQuality | None:
    for key, quality in _QUALITY_KEYS:
        if node.has(key):
            return quality
    return None


def variations_for_node(puzzle: Puzzle, node_id: int) -> list[Variation]:
    size = puzzle.board_size
    out: list[Variation] = []
    for child in puzzle.children(node_id):
        try:
            move = child.move()
        except FormatError as exc:
            logger.warning("node %d: skipping variation: %s", child.id, exc)
            continue
        if move is None:
            continue
        side, vertex = move
        if not (0 <= vertex.x < size and 0 <= vertex.y < size):
            continue
        out.append(Variation(node_id=child.id, vertex=vertex, side=side, quality=move_quality(child)))
    return out
