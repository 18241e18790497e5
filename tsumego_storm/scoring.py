from __future__ import annotations

from dataclasses import dataclass

COMBO_LEVELS: tuple[int, ...] = (5, 12, 20, 30)
COMBO_BONUS_S: tuple[int, ...] = (3, 5, 7, 10)

# Past the last level, a bonus is paid every this many correct moves.
COMBO_REPEAT_EVERY = 10


@dataclass(frozen=True, slots=True)
class ComboProgress:
    """Fill of the combo bar: ``value`` out of ``maximum`` towards ``level``.

    ``level`` is the index of the next threshold, or None once every
    threshold has been passed.
    """

    value: int
    maximum: int
    level: int | None


class ComboTracker:
    """Streak and run counters.

    The combo counts correct moves, not solved puzzles; a single wrong move
    (or a time-out) resets it.
    """

    def __init__(
        self,
        *,
        levels: tuple[int, ...] = COMBO_LEVELS,
        bonus_s: tuple[int, ...] = COMBO_BONUS_S,
    ) -> None:
        if not levels or len(levels) != len(bonus_s):
            raise ValueError("levels and bonus_s must be non-empty and the same length")
        if any(b <= a for a, b in zip(levels, levels[1:])) or levels[0] < 1:
            raise ValueError("levels must be positive and strictly ascending")
        self._levels = tuple(int(v) for v in levels)
        self._bonus_s = tuple(int(v) for v in bonus_s)

        self.combo = 0
        self.max_combo = 0
        self.score = 0
        self.num_right = 0
        self.num_wrong = 0

    def on_correct_move(self) -> int | None:
        """Count a correct move; return the bonus seconds earned, if any."""

        self.combo += 1
        self.max_combo = max(self.max_combo, self.combo)
        self.num_right += 1

        if self.combo in self._levels:
            return self._bonus_s[self._levels.index(self.combo)]
        if self.combo > self._levels[-1] and self.combo % COMBO_REPEAT_EVERY == 0:
            return self._bonus_s[-1]
        return None

    def on_wrong_move(self) -> None:
        self.combo = 0
        self.num_wrong += 1

    def break_combo(self) -> None:
        self.combo = 0

    def on_puzzle_passed(self) -> None:
        self.score += 1

    def levels_reached(self) -> int:
        return sum(1 for level in self._levels if self.combo >= level)

    def progress(self) -> ComboProgress:
        for i, level in enumerate(self._levels):
            if level > self.combo:
                floor = 0 if i == 0 else self._levels[i - 1]
                return ComboProgress(value=self.combo - floor, maximum=level - floor, level=i)
        return ComboProgress(value=self.combo % COMBO_REPEAT_EVERY, maximum=COMBO_REPEAT_EVERY, level=None)
