from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """Time source injected into the session; tests pass a fake one."""

    def now(self) -> float: ...


class RealClock:
    """Seconds from time.monotonic(), for the pygame app."""

    def now(self) -> float:
        return time.monotonic()


@dataclass(frozen=True, slots=True)
class BonusDisplay:
    value: float
    expires_at: float


class SessionClock:
    """Countdown whose deadline can be moved by bonuses and maluses.

    Bonuses shift the deadline, not the elapsed time: remaining time is
    ``duration + bonus - elapsed``.  The clock stays at full time until
    :meth:`start` arms it.
    """

    def __init__(self, *, duration_s: float, bonus_display_s: float = 1.0) -> None:
        if duration_s <= 0:
            raise ValueError("duration_s must be > 0")
        if bonus_display_s < 0:
            raise ValueError("bonus_display_s must be >= 0")
        self._duration_s = float(duration_s)
        self._bonus_display_s = float(bonus_display_s)
        self._started_at: float | None = None
        self._bonus_s = 0.0
        self._remaining_s = self._duration_s
        self._last_tick: float | None = None
        self._displayed: BonusDisplay | None = None

    @property
    def duration_s(self) -> float:
        return self._duration_s

    @property
    def started(self) -> bool:
        return self._started_at is not None

    @property
    def started_at(self) -> float | None:
        return self._started_at

    @property
    def bonus_s(self) -> float:
        return self._bonus_s

    @property
    def remaining_s(self) -> float:
        return self._remaining_s

    @property
    def displayed_bonus(self) -> BonusDisplay | None:
        return self._displayed

    @property
    def expired(self) -> bool:
        return self._started_at is not None and self._remaining_s <= 0.0

    def start(self, now: float) -> None:
        if self._started_at is not None:
            return
        self._started_at = float(now)

    def elapsed(self, now: float) -> float:
        if self._started_at is None:
            return 0.0
        return max(0.0, now - self._started_at)

    def tick(self, now: float) -> float:
        if self._last_tick is not None and now < self._last_tick:
            raise ValueError("tick time must not go backwards")
        self._last_tick = float(now)

        if self._displayed is not None and now >= self._displayed.expires_at:
            self._displayed = None

        budget = self._duration_s + self._bonus_s
        self._remaining_s = max(0.0, budget - self.elapsed(now))
        return self._remaining_s

    def apply_bonus(self, delta_s: float, now: float) -> BonusDisplay:
        self._bonus_s += float(delta_s)
        # A newer display replaces the old one, expiry included.
        self._displayed = BonusDisplay(value=float(delta_s), expires_at=float(now) + self._bonus_display_s)
        return self._displayed
