"""Smoke tests for the pygame UI.

The main loop is run for a handful of frames with the SDL dummy drivers.
Rendering correctness is not checked; the tests only make sure the
pygame integration does not raise in a headless environment.
"""

from __future__ import annotations

import os
from pathlib import Path

# Use the dummy drivers before importing pygame or the application
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

PUZZLES = "(;SZ[9]AB[cc]PL[B]BR[3k]WR[3k]GC[capture the stone];B[dd];W[ee];B[ff])\n"


def test_app_runs_headless(tmp_path: Path) -> None:
    from tsumego_storm.app import run

    path = tmp_path / "puzzles.sgf"
    path.write_text(PUZZLES, encoding="utf-8")
    assert run(max_frames=3, puzzles_path=path, seed=1) == 0


def test_app_shows_message_when_archive_is_missing(tmp_path: Path) -> None:
    from tsumego_storm.app import run

    assert run(max_frames=3, puzzles_path=tmp_path / "missing.sgf", seed=1) == 0


def test_app_handles_clicks_and_review_keys(tmp_path: Path) -> None:
    import pygame

    from tsumego_storm.app import WINDOW_SIZE, run

    path = tmp_path / "puzzles.sgf"
    path.write_text(PUZZLES, encoding="utf-8")
    centre = (WINDOW_SIZE[0] // 3, WINDOW_SIZE[1] // 2)

    def inject(frame: int) -> None:
        if frame in (2, 3, 4):
            pygame.event.post(pygame.event.Event(pygame.MOUSEBUTTONDOWN, {"pos": centre, "button": 1}))
        elif frame == 5:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_LEFT, "unicode": ""}))
        elif frame == 6:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_RIGHT, "unicode": ""}))
        elif frame == 7:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_RETURN, "unicode": ""}))
        elif frame == 8:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_ESCAPE, "unicode": ""}))

    assert run(max_frames=20, event_injector=inject, puzzles_path=path, seed=1) == 0


def test_hover_draws_a_preview_stone_on_empty_points() -> None:
    import pygame

    from tsumego_storm.app import WINDOW_SIZE, App, StormScreen
    from tsumego_storm.coords import Vertex
    from tsumego_storm.session import StormConfig, build_storm_session
    from tsumego_storm.sgf import parse

    class _Clock:
        def now(self) -> float:
            return 0.0

    pygame.init()
    try:
        surface = pygame.Surface(WINDOW_SIZE)
        app = App(surface=surface, font=pygame.font.Font(None, 36))
        session = build_storm_session(
            archive=parse(PUZZLES), clock=_Clock(), seed=1, config=StormConfig(puzzles_per_rank=1)
        )
        screen = StormScreen(app, session=session)
        app.show(screen)
        app.render()

        layout = screen._layout
        assert layout is not None
        cx, cy = layout.to_pixel(Vertex(4, 4))
        sample_at = (cx + layout.cell // 6, cy + layout.cell // 6)
        plain = surface.get_at(sample_at)

        app.handle_event(pygame.event.Event(pygame.MOUSEMOTION, {"pos": (cx, cy), "rel": (0, 0), "buttons": (0, 0, 0)}))
        app.render()
        assert surface.get_at(sample_at) != plain
    finally:
        pygame.quit()
