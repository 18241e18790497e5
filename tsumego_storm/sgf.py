"""Reader for SGF collections.

Tokenising and tree structure come from ``sgfmill.sgf_grammar``; each
top-level game tree of the collection becomes one :class:`Puzzle`.  Property
values are unescaped and decoded here but otherwise left raw; interpreting
them is left to the rest of the package.
"""

from __future__ import annotations

import codecs
import logging
from pathlib import Path

from sgfmill import sgf_grammar

from .errors import FormatError
from .game_tree import Puzzle

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"


def _charset(tree: sgf_grammar.Coarse_game_tree) -> str:
    root = tree.sequence[0] if tree.sequence else {}
    raw = root.get("CA")
    if not raw:
        return DEFAULT_CHARSET
    name = raw[0].decode("ascii", errors="replace").strip()
    try:
        return codecs.lookup(name).name
    except LookupError:
        logger.warning("unknown charset %r, reading as %s", name, DEFAULT_CHARSET)
        return DEFAULT_CHARSET


def _properties(raw: dict, charset: str) -> dict[str, list[str]]:
    data: dict[str, list[str]] = {}
    for ident, values in raw.items():
        if isinstance(ident, bytes):
            ident = ident.decode("ascii")
        # Old FF[3] files spell keys like "AddBlack"; only capitals count.
        key = "".join(c for c in ident if c.isupper())
        if not key:
            logger.warning("skipping property %r with no identifier", ident)
            continue
        decoded = [sgf_grammar.text_value(v).decode(charset, errors="replace") for v in values]
        data.setdefault(key, []).extend(decoded)
    return data


def _add_tree(puzzle: Puzzle, tree: sgf_grammar.Coarse_game_tree, parent_id: int | None, charset: str) -> None:
    for props in tree.sequence:
        parent_id = puzzle.new_node(parent_id=parent_id, data=_properties(props, charset)).id
    for child in tree.children:
        _add_tree(puzzle, child, parent_id, charset)


def parse_bytes(data: bytes, *, charset: str | None = None) -> list[Puzzle]:
    """Parse SGF bytes into puzzles.  Raises FormatError.

    Values are decoded with ``charset`` when given, else with the CA
    property of each game (UTF-8 when absent).
    """

    try:
        trees = sgf_grammar.parse_sgf_collection(data)
    except ValueError as exc:
        raise FormatError(f"unreadable SGF: {exc}") from exc

    puzzles: list[Puzzle] = []
    for tree in trees:
        puzzle = Puzzle()
        _add_tree(puzzle, tree, None, charset or _charset(tree))
        puzzles.append(puzzle)
    return puzzles


def parse(text: str) -> list[Puzzle]:
    return parse_bytes(text.encode(DEFAULT_CHARSET), charset=DEFAULT_CHARSET)


def load_puzzles(path: Path) -> list[Puzzle]:
    puzzles = parse_bytes(Path(path).read_bytes())
    logger.info("loaded %d puzzles from %s", len(puzzles), path)
    return puzzles
