from __future__ import annotations

import pytest

from tsumego_storm.session_clock import BonusDisplay, SessionClock


def test_clock_holds_full_time_until_started() -> None:
    clock = SessionClock(duration_s=180.0)
    assert clock.tick(500.0) == pytest.approx(180.0)
    assert not clock.started
    assert not clock.expired
    assert clock.elapsed(500.0) == 0.0


def test_remaining_counts_down_from_start() -> None:
    clock = SessionClock(duration_s=180.0)
    clock.start(10.0)
    clock.start(50.0)  # idempotent
    assert clock.started_at == 10.0
    assert clock.tick(70.0) == pytest.approx(120.0)
    assert clock.elapsed(70.0) == pytest.approx(60.0)


def test_bonus_moves_deadline_and_display_clears_after_window() -> None:
    clock = SessionClock(duration_s=180.0, bonus_display_s=1.0)
    clock.start(0.0)
    clock.tick(60.0)

    shown = clock.apply_bonus(5, 60.0)
    assert shown == BonusDisplay(value=5.0, expires_at=61.0)
    assert clock.bonus_s == 5.0

    assert clock.tick(60.5) == pytest.approx(124.5)
    assert clock.displayed_bonus == shown

    clock.tick(61.0)
    assert clock.displayed_bonus is None
    assert clock.bonus_s == 5.0


def test_newer_bonus_display_wins() -> None:
    clock = SessionClock(duration_s=180.0, bonus_display_s=1.0)
    clock.start(0.0)
    clock.apply_bonus(3, 10.0)
    clock.apply_bonus(-10, 10.5)

    clock.tick(11.0)
    assert clock.displayed_bonus == BonusDisplay(value=-10.0, expires_at=11.5)
    clock.tick(11.5)
    assert clock.displayed_bonus is None
    assert clock.bonus_s == -7.0


def test_malus_brings_expiry_forward() -> None:
    clock = SessionClock(duration_s=180.0)
    clock.start(0.0)
    clock.apply_bonus(-10, 0.0)
    assert clock.tick(169.0) == pytest.approx(1.0)
    assert not clock.expired
    assert clock.tick(170.0) == 0.0
    assert clock.expired
    assert clock.tick(400.0) == 0.0


def test_tick_rejects_time_going_backwards() -> None:
    clock = SessionClock(duration_s=30.0)
    clock.tick(5.0)
    with pytest.raises(ValueError):
        clock.tick(4.0)


def test_invalid_durations() -> None:
    with pytest.raises(ValueError):
        SessionClock(duration_s=0.0)
    with pytest.raises(ValueError):
        SessionClock(duration_s=10.0, bonus_display_s=-1.0)
