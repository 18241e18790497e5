"""Stratified puzzle selection.

A run draws the same number of puzzles from every rank, weakest rank
first.  Draws are uniform with replacement, so a puzzle can repeat within a
run.
"""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Iterable, Sequence

from .errors import InsufficientPuzzlesError
from .game_tree import Puzzle

logger = logging.getLogger(__name__)

# Placement puzzles ("drop a stone anywhere") are not move-based.
EXCLUDED_CATEGORY = "落子题"

_RANK_RE = re.compile(r"^\s*(\d+)\s*([kKdD])")


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def choice(self, seq: Sequence[Puzzle]) -> Puzzle:
        return self._rng.choice(seq)


def normalize_rank(rank: str) -> str:
    rank = rank.strip()
    if rank.endswith("+"):
        rank = rank[:-1]
    return rank


def rank_sort_key(rank: str) -> tuple[int, int, str]:
    """Kyu ranks (weakest first), then dan ranks, then anything else."""

    m = _RANK_RE.match(rank)
    if m is None:
        return (2, 0, rank)
    number = int(m.group(1))
    if m.group(2) in "kK":
        return (0, -number, rank)
    return (1, number, rank)


def group_by_rank(forest: Iterable[Puzzle]) -> dict[str, list[Puzzle]]:
    pools: dict[str, list[Puzzle]] = {}
    for puzzle in forest:
        raw = puzzle.rank
        if not raw or not raw.strip():
            logger.warning("skipping puzzle without a rank (%s)", puzzle.title or "untitled")
            continue
        pools.setdefault(normalize_rank(raw), []).append(puzzle)
    return pools


class PuzzleSelector:
    def __init__(self, *, rng: SeededRng) -> None:
        self._rng = rng

    def select(
        self,
        forest: Iterable[Puzzle],
        *,
        quota_per_rank: int = 5,
        excluded_category: str = EXCLUDED_CATEGORY,
    ) -> list[Puzzle]:
        if quota_per_rank < 1:
            raise ValueError("quota_per_rank must be >= 1")

        pools = group_by_rank(forest)
        if not pools:
            raise InsufficientPuzzlesError("*", "the puzzle archive has no ranked puzzles")

        selected: list[Puzzle] = []
        for rank in sorted(pools, key=rank_sort_key):
            eligible = [p for p in pools[rank] if not (excluded_category and excluded_category in p.category)]
            if not eligible:
                raise InsufficientPuzzlesError(rank)
            selected.extend(self._rng.choice(eligible) for _ in range(quota_per_rank))

        logger.info("selected %d puzzles across %d ranks", len(selected), len(pools))
        return selected
