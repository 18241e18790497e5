from __future__ import annotations


class FormatError(ValueError):
    """Malformed coordinate, annotation or SGF data."""


class InsufficientPuzzlesError(RuntimeError):
    """A rank has no eligible puzzles left after filtering."""

    def __init__(self, rank: str, message: str | None = None) -> None:
        self.rank = rank
        super().__init__(message or f"no eligible puzzles for rank {rank!r}")


class InvalidTransitionError(RuntimeError):
    """A mutating call was made in a mode that does not allow it."""


class BoardError(ValueError):
    """The board engine refused a move (off-board or occupied point)."""
