from __future__ import annotations

import sys
from pathlib import Path

from .app import run


def main(argv: list[str] | None = None) -> int:
    """Start the trainer; an optional first argument names the SGF puzzle file."""
    args = sys.argv[1:] if argv is None else argv
    return run(puzzles_path=Path(args[0]) if args else None)


if __name__ == "__main__":
    raise SystemExit(main())
