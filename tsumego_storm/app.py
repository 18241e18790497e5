"""Pygame UI shell for Tsumego Storm.

Deterministic timing/scoring/RNG/state lives in tsumego_storm/* (core
modules); this file only draws snapshots and forwards input.

Controls:
- click a point to play; hovering shows the stone about to be played;
- during review: Left/Right (or Backspace/Space) step through the tree,
  click a puzzle in the history list to open it, Enter/R plays again;
- Esc quits.
"""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import pygame

from .annotations import MarkerKind, MoveQuality
from .board import BoardState
from .coords import Vertex
from .errors import FormatError, InsufficientPuzzlesError
from .game_tree import Puzzle
from .results import run_summary
from .session import Mode, SessionSnapshot, StormSession, build_storm_session
from .session_clock import RealClock
from .sgf import load_puzzles

logger = logging.getLogger(__name__)

PUZZLES_PATH_ENV = "TSUMEGO_STORM_PUZZLES"
LOG_LEVEL_ENV = "TSUMEGO_STORM_LOG_LEVEL"
DEFAULT_PUZZLES_FILE = "puzzles.sgf"

WINDOW_SIZE = (1100, 720)
TARGET_FPS = 60

BG = (24, 26, 32)
WOOD = (220, 179, 92)
LINE = (40, 30, 20)
TEXT = (235, 235, 245)
MUTED = (170, 174, 190)
GOOD = (96, 200, 120)
BAD = (224, 92, 92)
PANEL = (36, 40, 52)

_QUALITY_COLOURS = {
    MoveQuality.GOOD: GOOD,
    MoveQuality.BAD: BAD,
    MoveQuality.INTERESTING: (110, 160, 230),
    MoveQuality.DOUBTFUL: (230, 190, 90),
}


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    """Window owner: one screen at a time, no stack."""

    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screen: Screen | None = None
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    def show(self, screen: Screen) -> None:
        self._screen = screen

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
        elif self._screen is not None:
            self._screen.handle_event(event)

    def render(self) -> None:
        if self._screen is not None:
            self._screen.render(self._surface)


class MessageScreen:
    def __init__(self, app: App, title: str, lines: list[str]) -> None:
        self._app = app
        self._title = title
        self._lines = lines

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_RETURN):
            self._app.quit()

    def render(self, surface: pygame.Surface) -> None:
        surface.fill(BG)
        surface.blit(self._app.font.render(self._title, True, TEXT), (40, 40))
        small = pygame.font.Font(None, 26)
        y = 100
        for line in self._lines + ["", "Press Esc to quit."]:
            surface.blit(small.render(line, True, MUTED), (40, y))
            y += 30


@dataclass(frozen=True, slots=True)
class _BoardLayout:
    crop: tuple[int, int, int, int]
    origin: tuple[int, int]
    cell: int

    def to_pixel(self, v: tuple[int, int]) -> tuple[int, int]:
        min_x, min_y, _, _ = self.crop
        ox, oy = self.origin
        return ox + (v[0] - min_x) * self.cell + self.cell // 2, oy + (v[1] - min_y) * self.cell + self.cell // 2

    def to_vertex(self, pos: tuple[int, int]) -> Vertex | None:
        min_x, min_y, max_x, max_y = self.crop
        ox, oy = self.origin
        if pos[0] < ox or pos[1] < oy:
            return None
        x = min_x + (pos[0] - ox) // self.cell
        y = min_y + (pos[1] - oy) // self.cell
        if x > max_x or y > max_y:
            return None
        return Vertex(x, y)


def _layout_for(area: pygame.Rect, crop: tuple[int, int, int, int]) -> _BoardLayout:
    cols = crop[2] - crop[0] + 1
    rows = crop[3] - crop[1] + 1
    cell = max(8, min(area.w // cols, area.h // rows))
    ox = area.x + (area.w - cell * cols) // 2
    oy = area.y + (area.h - cell * rows) // 2
    return _BoardLayout(crop=crop, origin=(ox, oy), cell=cell)


class StormScreen:
    def __init__(self, app: App, *, session: StormSession) -> None:
        self._app = app
        self._session = session
        self._layout: _BoardLayout | None = None
        self._hover: Vertex | None = None
        self._history_hitboxes: list[tuple[pygame.Rect, int]] = []

        self._small_font = pygame.font.Font(None, 24)
        self._mid_font = pygame.font.Font(None, 36)
        self._big_font = pygame.font.Font(None, 72)

    def handle_event(self, event: pygame.event.Event) -> None:
        review = self._session.mode is Mode.REVIEWING

        if event.type == pygame.MOUSEMOTION:
            self._hover = None if self._layout is None else self._layout.to_vertex(event.pos)
            return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if review:
                for rect, index in self._history_hitboxes:
                    if rect.collidepoint(event.pos):
                        self._session.load_puzzle(index)
                        return
            if self._layout is None:
                return
            vertex = self._layout.to_vertex(event.pos)
            if vertex is not None:
                verdict = self._session.attempt_move(vertex)
                logger.debug("click %s -> %s", vertex, verdict.value)
            return

        if event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_ESCAPE:
            self._app.quit()
            return
        if not review:
            return
        if event.key in (pygame.K_LEFT, pygame.K_BACKSPACE):
            self._session.back()
        elif event.key in (pygame.K_RIGHT, pygame.K_SPACE):
            self._session.forward()
        elif event.key in (pygame.K_RETURN, pygame.K_r):
            self._session.start_run()

    def render(self, surface: pygame.Surface) -> None:
        self._session.tick()
        snap = self._session.snapshot()

        w, h = surface.get_size()
        surface.fill(BG)

        board_w = int(w * 0.62)
        board_area = pygame.Rect(16, 56, board_w - 32, h - 72)
        if snap.title:
            surface.blit(self._mid_font.render(snap.title, True, TEXT), (16, 16))
        if snap.board is not None:
            self._layout = _layout_for(board_area, snap.crop)
            self._draw_board(surface, snap, snap.board, self._layout)

        panel = pygame.Rect(board_w, 16, w - board_w - 16, h - 32)
        pygame.draw.rect(surface, PANEL, panel)
        if snap.mode is Mode.SOLVING:
            self._draw_dashboard(surface, panel, snap)
        else:
            self._draw_review(surface, panel, snap)

    def _draw_board(self, surface: pygame.Surface, snap: SessionSnapshot, board: BoardState, layout: _BoardLayout) -> None:
        min_x, min_y, max_x, max_y = layout.crop
        cell = layout.cell
        ox, oy = layout.origin
        cols = max_x - min_x + 1
        rows = max_y - min_y + 1
        pygame.draw.rect(surface, WOOD, pygame.Rect(ox, oy, cols * cell, rows * cell))

        last = board.size - 1
        for x in range(min_x, max_x + 1):
            top = layout.to_pixel((x, min_y))[1] if min_y == 0 else oy
            bottom = layout.to_pixel((x, max_y))[1] if max_y == last else oy + rows * cell
            px = layout.to_pixel((x, min_y))[0]
            pygame.draw.line(surface, LINE, (px, top), (px, bottom), 2 if x in (0, last) else 1)
        for y in range(min_y, max_y + 1):
            left = layout.to_pixel((min_x, y))[0] if min_x == 0 else ox
            right = layout.to_pixel((max_x, y))[0] if max_x == last else ox + cols * cell
            py = layout.to_pixel((min_x, y))[1]
            pygame.draw.line(surface, LINE, (left, py), (right, py), 2 if y in (0, last) else 1)

        radius = max(3, cell // 2 - 1)
        for y in range(min_y, max_y + 1):
            for x in range(min_x, max_x + 1):
                sign = board.get((x, y))
                if sign == 0:
                    continue
                centre = layout.to_pixel((x, y))
                fill = (20, 20, 20) if sign > 0 else (240, 240, 240)
                pygame.draw.circle(surface, fill, centre, radius)
                pygame.draw.circle(surface, LINE, centre, radius, 1)

        if self._hover is not None and board.in_bounds(self._hover) and board.get(self._hover) == 0:
            self._draw_hover(surface, layout.to_pixel(self._hover), radius, snap.side_to_move.sign)

        for variation in snap.variations:
            centre = layout.to_pixel(variation.vertex)
            if variation.quality is not None:
                colour = _QUALITY_COLOURS[variation.quality]
            else:
                colour = (20, 20, 20) if variation.side.sign > 0 else (240, 240, 240)
            pygame.draw.circle(surface, colour, centre, max(3, radius // 2))

        for vertex, marker in snap.markers.items():
            if not board.in_bounds(vertex):
                continue
            centre = layout.to_pixel(vertex)
            ink = (240, 240, 240) if board.get(vertex) > 0 else (20, 20, 20)
            r = max(3, cell // 4)
            if marker.kind is MarkerKind.CIRCLE:
                pygame.draw.circle(surface, ink, centre, r, 2)
            elif marker.kind is MarkerKind.CROSS:
                pygame.draw.line(surface, ink, (centre[0] - r, centre[1] - r), (centre[0] + r, centre[1] + r), 2)
                pygame.draw.line(surface, ink, (centre[0] - r, centre[1] + r), (centre[0] + r, centre[1] - r), 2)
            elif marker.kind is MarkerKind.SQUARE:
                pygame.draw.rect(surface, ink, pygame.Rect(centre[0] - r, centre[1] - r, r * 2, r * 2), 2)
            elif marker.kind is MarkerKind.TRIANGLE:
                pts = [(centre[0], centre[1] - r), (centre[0] - r, centre[1] + r), (centre[0] + r, centre[1] + r)]
                pygame.draw.polygon(surface, ink, pts, 2)
            else:
                text = self._small_font.render(marker.label, True, ink)
                surface.blit(text, text.get_rect(center=centre))

        if snap.last_move is not None and board.in_bounds(snap.last_move):
            pygame.draw.circle(surface, BAD, layout.to_pixel(snap.last_move), max(2, cell // 8))

    def _draw_hover(self, surface: pygame.Surface, centre: tuple[int, int], radius: int, sign: int) -> None:
        ghost = pygame.Surface((radius * 2 + 2, radius * 2 + 2), pygame.SRCALPHA)
        colour = (20, 20, 20, 110) if sign > 0 else (240, 240, 240, 140)
        pygame.draw.circle(ghost, colour, (radius + 1, radius + 1), radius)
        surface.blit(ghost, (centre[0] - radius - 1, centre[1] - radius - 1))

    def _draw_dashboard(self, surface: pygame.Surface, panel: pygame.Rect, snap: SessionSnapshot) -> None:
        x = panel.x + 16
        surface.blit(self._big_font.render(str(snap.score), True, TEXT), (x, panel.y + 12))

        remaining = int(snap.time_remaining_s)
        clock_text = f"{remaining // 60}:{remaining % 60:02d}"
        clock_colour = TEXT
        if snap.displayed_bonus is not None:
            value = snap.displayed_bonus.value
            clock_colour = GOOD if value > 0 else BAD
            clock_text += f"  {value:+.0f}"
        surface.blit(self._big_font.render(clock_text, True, clock_colour), (x, panel.y + 80))

        progress = snap.combo_progress
        bar = pygame.Rect(x, panel.y + 170, panel.w - 32, 18)
        pygame.draw.rect(surface, (60, 64, 80), bar)
        if progress.maximum > 0:
            fill = bar.copy()
            fill.w = int(bar.w * progress.value / progress.maximum)
            pygame.draw.rect(surface, GOOD, fill)
        combo = self._mid_font.render(f"{snap.combo} COMBO", True, TEXT)
        surface.blit(combo, (x, panel.y + 196))

        turn = "Black" if snap.side_to_move.sign > 0 else "White"
        surface.blit(self._small_font.render(f"{turn} to play", True, MUTED), (x, panel.y + 240))
        self._draw_comment(surface, snap.comment, x, panel.y + 270, panel.w - 32)

    def _draw_review(self, surface: pygame.Surface, panel: pygame.Rect, snap: SessionSnapshot) -> None:
        x = panel.x + 16
        summary = run_summary(self._session)
        lines = [
            f"Score: {summary.score}",
            f"Moves: {summary.moves}",
            f"Accuracy: {summary.accuracy * 100:.1f}%",
            f"Combo: {summary.max_combo}",
            f"Time: {round(summary.total_time_s)}s",
            "Time per move: -" if summary.time_per_move_s is None else f"Time per move: {summary.time_per_move_s:.2f}s",
            f"Highest solved: {summary.highest_solved_rank}",
        ]
        y = panel.y + 12
        for line in lines:
            surface.blit(self._small_font.render(line, True, TEXT), (x, y))
            y += 24

        y += 8
        hint = "Left/Right: step  |  Enter: play again"
        surface.blit(self._small_font.render(hint, True, MUTED), (x, y))
        y += 30

        self._history_hitboxes = []
        puzzles = self._session.puzzles
        cols = 5
        box_w = (panel.w - 32) // cols
        for i, entry in enumerate(snap.puzzle_history):
            rect = pygame.Rect(x + (i % cols) * box_w, y + (i // cols) * 44, box_w - 6, 38)
            colour = GOOD if entry.passed else BAD
            border = 3 if i == snap.puzzle_index else 1
            pygame.draw.rect(surface, colour, rect, border)
            surface.blit(self._small_font.render(f"{entry.elapsed_s:.2f}s", True, colour), (rect.x + 4, rect.y + 2))
            rank = _rank_label(puzzles[i])
            surface.blit(self._small_font.render(rank, True, MUTED), (rect.x + 4, rect.y + 20))
            self._history_hitboxes.append((rect, i))

        rows = (len(snap.puzzle_history) + cols - 1) // cols
        self._draw_comment(surface, snap.comment, x, y + rows * 44 + 10, panel.w - 32)

    def _draw_comment(self, surface: pygame.Surface, text: str, x: int, y: int, width: int) -> None:
        for line in _wrap(self._small_font, text, width):
            surface.blit(self._small_font.render(line, True, MUTED), (x, y))
            y += 22


def _rank_label(puzzle: Puzzle) -> str:
    return puzzle.solver_rank or "?"


def _wrap(font: pygame.font.Font, text: str, width: int) -> list[str]:
    out: list[str] = []
    for paragraph in text.split("\n"):
        line = ""
        for word in paragraph.split(" "):
            candidate = word if not line else f"{line} {word}"
            if font.size(candidate)[0] <= width or not line:
                line = candidate
            else:
                out.append(line)
                line = word
        out.append(line)
    return out


def _configure_logging() -> None:
    level = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format="%(levelname)s %(name)s: %(message)s")


def _puzzles_path(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    return Path(os.environ.get(PUZZLES_PATH_ENV, DEFAULT_PUZZLES_FILE))


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    puzzles_path: Path | None = None,
    seed: int | None = None,
) -> int:
    _configure_logging()
    pygame.init()

    pygame.display.set_caption("Tsumego Storm")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)

    path = _puzzles_path(puzzles_path)
    try:
        archive = load_puzzles(path)
        session = build_storm_session(
            archive=archive,
            clock=RealClock(),
            seed=_new_seed() if seed is None else seed,
        )
    except (OSError, FormatError, InsufficientPuzzlesError) as exc:
        logger.error("cannot start a run: %s", exc)
        app.show(MessageScreen(app, "Cannot start", [str(path), str(exc)]))
    else:
        app.show(StormScreen(app, session=session))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
