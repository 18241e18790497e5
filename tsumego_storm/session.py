"""Puzzle session engine: the timed run and its post-run review.

A run walks an ordered list of puzzles.  Each click is matched against the
children of the current node of the active puzzle's solution tree:

- a match plays the move, then the main-line reply (if any) without input;
- reaching a leaf solves the puzzle, a miss fails it, and either way the
  next puzzle loads;
- when the list runs out or the clock expires the session switches to
  review, where the same trees can be walked back and forth and new lines
  explored without touching the score.

The engine is deterministic: time comes from the injected ``Clock`` and the
puzzle draw from a seeded RNG.  It never renders and never blocks.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, StrEnum

from .annotations import Marker, Rect, Variation, display_crop, markers_for_node, variations_for_node
from .board import BoardEngine, BoardState, GoRules, MoveOutcome
from .coords import Vertex
from .errors import BoardError, FormatError, InvalidTransitionError
from .game_tree import KEY_BAD_MOVE, KEY_PLAYER, GameTreeNode, Puzzle, Side
from .scoring import COMBO_BONUS_S, COMBO_LEVELS, ComboProgress, ComboTracker
from .selector import EXCLUDED_CATEGORY, PuzzleSelector, SeededRng
from .session_clock import BonusDisplay, Clock, SessionClock

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    SOLVING = "solving"
    REVIEWING = "reviewing"


class MoveVerdict(StrEnum):
    REJECTED = "rejected"  # occupied/off-board point, or no puzzle loaded
    CORRECT = "correct"  # accepted, puzzle continues
    SOLVED = "solved"
    FAILED = "failed"
    EXPLORED = "explored"  # review-mode move


@dataclass(frozen=True, slots=True)
class StormConfig:
    duration_s: float = 180.0
    combo_levels: tuple[int, ...] = COMBO_LEVELS
    combo_bonus_s: tuple[int, ...] = COMBO_BONUS_S
    wrong_move_malus_s: float = 10.0
    bonus_display_s: float = 1.0
    puzzles_per_rank: int = 5
    excluded_category: str = EXCLUDED_CATEGORY

    def __post_init__(self) -> None:
        if self.duration_s <= 0:
            raise ValueError("duration_s must be > 0")
        if self.wrong_move_malus_s < 0:
            raise ValueError("wrong_move_malus_s must be >= 0")
        if self.puzzles_per_rank < 1:
            raise ValueError("puzzles_per_rank must be >= 1")
        if len(self.combo_levels) != len(self.combo_bonus_s):
            raise ValueError("combo_levels and combo_bonus_s must be the same length")


@dataclass(frozen=True, slots=True)
class HistoryFrame:
    board: BoardState
    node_id: int
    side_to_move: Side


@dataclass(frozen=True, slots=True)
class PuzzleHistoryEntry:
    elapsed_s: float
    passed: bool


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """View model for the UI (pure data)."""

    mode: Mode
    puzzle_index: int
    puzzle_count: int
    board: BoardState | None
    node_id: int
    side_to_move: Side
    crop: Rect
    markers: dict[Vertex, Marker]
    variations: tuple[Variation, ...]
    title: str
    comment: str
    time_remaining_s: float
    displayed_bonus: BonusDisplay | None
    combo: int
    max_combo: int
    combo_progress: ComboProgress
    score: int
    num_right: int
    num_wrong: int
    history_depth: int
    puzzle_history: tuple[PuzzleHistoryEntry, ...]
    last_move: Vertex | None
    last_move_captured: bool
    total_time_s: float | None
    warnings: tuple[str, ...]


class StormSession:
    def __init__(
        self,
        *,
        archive: Sequence[Puzzle],
        clock: Clock,
        rules: BoardEngine,
        seed: int,
        config: StormConfig | None = None,
    ) -> None:
        self._archive = archive
        self._clock = clock
        self._rules = rules
        self._seed = int(seed)
        self._cfg = config or StormConfig()
        self._selector = PuzzleSelector(rng=SeededRng(self._seed))

        self._mode = Mode.SOLVING
        self._puzzles: list[Puzzle] = []
        self._index = -1
        self._board: BoardState | None = None
        self._node_id = 0
        self._side = Side.BLACK
        self._crop: Rect = (0, 0, 0, 0)
        self._history: list[HistoryFrame] = []
        self._puzzle_history: list[PuzzleHistoryEntry] = []
        self._puzzle_started_at: float | None = None
        self._total_time_s: float | None = None
        self._last_move: Vertex | None = None
        self._last_capture = False
        self._warnings: list[str] = []
        self._session_clock = self._new_clock()
        self._tracker = self._new_tracker()

        self.start_run()

    # Read-only state.

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> StormConfig:
        return self._cfg

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def puzzles(self) -> list[Puzzle]:
        return list(self._puzzles)

    @property
    def puzzle_index(self) -> int:
        return self._index

    @property
    def current_puzzle(self) -> Puzzle | None:
        if 0 <= self._index < len(self._puzzles):
            return self._puzzles[self._index]
        return None

    @property
    def board(self) -> BoardState | None:
        return self._board

    @property
    def node_id(self) -> int:
        return self._node_id

    @property
    def side_to_move(self) -> Side:
        return self._side

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def puzzle_history(self) -> tuple[PuzzleHistoryEntry, ...]:
        return tuple(self._puzzle_history)

    @property
    def session_clock(self) -> SessionClock:
        return self._session_clock

    @property
    def tracker(self) -> ComboTracker:
        return self._tracker

    @property
    def total_time_s(self) -> float | None:
        return self._total_time_s

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(self._warnings)

    # Run lifecycle.

    def start_run(self) -> None:
        """Select a fresh puzzle list and start over in solving mode.

        Selection happens first, so an InsufficientPuzzlesError leaves the
        previous state untouched.
        """

        puzzles = self._selector.select(
            self._archive,
            quota_per_rank=self._cfg.puzzles_per_rank,
            excluded_category=self._cfg.excluded_category,
        )

        self._mode = Mode.SOLVING
        # Each draw gets its own tree; review may append nodes to it.
        self._puzzles = [p.copy() for p in puzzles]
        self._index = -1
        self._history = []
        self._puzzle_history = []
        self._total_time_s = None
        self._warnings = []
        self._session_clock = self._new_clock()
        self._tracker = self._new_tracker()
        logger.info("run started with %d puzzles (seed=%d)", len(puzzles), self._seed)
        self._advance(self._clock.now())

    def tick(self) -> None:
        """Refresh the countdown; call once per frame.  Ignored during review."""

        if self._mode is not Mode.SOLVING:
            return
        self._tick(self._clock.now())

    def attempt_move(self, vertex: tuple[int, int]) -> MoveVerdict:
        puzzle = self.current_puzzle
        board = self._board
        if puzzle is None or board is None:
            return MoveVerdict.REJECTED
        v = Vertex(*vertex)
        if not self._rules.in_bounds(board, v) or self._rules.is_occupied(board, v):
            return MoveVerdict.REJECTED

        if self._mode is Mode.REVIEWING:
            return self._explore(puzzle, v)

        now = self._clock.now()
        if not self._session_clock.started:
            self._session_clock.start(now)
            self._puzzle_started_at = now
        self._tick(now)
        if self._mode is not Mode.SOLVING:
            # The clock ran out before this click landed.
            return MoveVerdict.REJECTED

        child = self._match_child(puzzle, v, allow_bad=False)
        if child is None:
            logger.debug("puzzle %d: wrong move %s", self._index, v)
            self._tracker.on_wrong_move()
            self._fail_puzzle(now, malus=self._cfg.wrong_move_malus_s)
            return MoveVerdict.FAILED

        try:
            self._play(self._side, v, child.id)
        except BoardError as exc:
            self._warn(f"puzzle {self._index}: board refused {v}: {exc}")
            self._tracker.break_combo()
            self._fail_puzzle(now, malus=0.0)
            return MoveVerdict.FAILED

        bonus = self._tracker.on_correct_move()
        if bonus:
            self._session_clock.apply_bonus(bonus, now)

        if not self._auto_reply(puzzle, now):
            return MoveVerdict.FAILED

        if not puzzle.node(self._node_id).children:
            logger.debug("puzzle %d solved", self._index)
            self._tracker.on_puzzle_passed()
            self._record(now, passed=True)
            self._advance(now)
            return MoveVerdict.SOLVED
        return MoveVerdict.CORRECT

    # Review navigation.

    def back(self) -> bool:
        self._require_review("back")
        if not self._history:
            return False
        frame = self._history.pop()
        self._board = frame.board
        self._node_id = frame.node_id
        self._side = frame.side_to_move
        self._last_move = None
        self._last_capture = False
        return True

    def forward(self) -> bool:
        """Follow the main line one move.  Returns False when nothing happened."""

        self._require_review("forward")
        puzzle = self.current_puzzle
        if puzzle is None or self._board is None:
            return False
        children = puzzle.children(self._node_id)
        if not children:
            return False
        nxt = children[0]
        move = self._node_move(nxt)
        if move is None:
            self._history.append(HistoryFrame(self._board, self._node_id, self._side))
            self._node_id = nxt.id
            return True
        side, vertex = move
        try:
            self._play(side, vertex, nxt.id)
        except BoardError as exc:
            self._warn(f"node {nxt.id}: board refused {vertex}: {exc}")
            return False
        return True

    def load_puzzle(self, index: int) -> None:
        """Jump to a puzzle of the finished run (from the history list)."""

        self._require_review("load_puzzle")
        if not (0 <= index < len(self._puzzles)):
            raise IndexError(f"puzzle index {index} out of range")
        self._load(index, self._clock.now())

    def snapshot(self) -> SessionSnapshot:
        puzzle = self.current_puzzle
        if puzzle is None:
            node: GameTreeNode | None = None
            title = comment = ""
            variations: tuple[Variation, ...] = ()
        else:
            node = puzzle.node(self._node_id)
            title = puzzle.title
            comment = puzzle.comment_for(self._node_id)
            variations = ()
            if self._mode is Mode.REVIEWING:
                variations = tuple(variations_for_node(puzzle, self._node_id))

        return SessionSnapshot(
            mode=self._mode,
            puzzle_index=self._index,
            puzzle_count=len(self._puzzles),
            board=self._board,
            node_id=self._node_id,
            side_to_move=self._side,
            crop=self._crop,
            markers={} if node is None else markers_for_node(node),
            variations=variations,
            title=title,
            comment=comment,
            time_remaining_s=self._session_clock.remaining_s,
            displayed_bonus=self._session_clock.displayed_bonus,
            combo=self._tracker.combo,
            max_combo=self._tracker.max_combo,
            combo_progress=self._tracker.progress(),
            score=self._tracker.score,
            num_right=self._tracker.num_right,
            num_wrong=self._tracker.num_wrong,
            history_depth=len(self._history),
            puzzle_history=tuple(self._puzzle_history),
            last_move=self._last_move,
            last_move_captured=self._last_capture,
            total_time_s=self._total_time_s,
            warnings=tuple(self._warnings),
        )

    # Internals.

    def _new_clock(self) -> SessionClock:
        return SessionClock(duration_s=self._cfg.duration_s, bonus_display_s=self._cfg.bonus_display_s)

    def _new_tracker(self) -> ComboTracker:
        return ComboTracker(levels=self._cfg.combo_levels, bonus_s=self._cfg.combo_bonus_s)

    def _require_review(self, action: str) -> None:
        if self._mode is not Mode.REVIEWING:
            raise InvalidTransitionError(f"{action}() is only available in review mode")

    def _warn(self, message: str) -> None:
        if message in self._warnings:
            return
        self._warnings.append(message)
        logger.warning(message)

    def _node_move(self, node: GameTreeNode) -> tuple[Side, Vertex] | None:
        try:
            move = node.move()
        except FormatError as exc:
            self._warn(f"node {node.id}: bad move data: {exc}")
            return None
        if move is None:
            self._warn(f"node {node.id}: no move data")
        return move

    def _match_child(self, puzzle: Puzzle, vertex: Vertex, *, allow_bad: bool) -> GameTreeNode | None:
        for child in puzzle.children(self._node_id):
            if not allow_bad and child.has(KEY_BAD_MOVE):
                continue
            move = self._node_move(child)
            if move is not None and move == (self._side, vertex):
                return child
        return None

    def _play(self, side: Side, vertex: Vertex, node_id: int) -> None:
        assert self._board is not None
        self._commit(self._rules.apply_move(self._board, side, vertex), side, vertex, node_id)

    def _commit(self, outcome: MoveOutcome, side: Side, vertex: Vertex, node_id: int) -> None:
        assert self._board is not None
        self._history.append(HistoryFrame(self._board, self._node_id, self._side))
        self._board = outcome.board
        self._node_id = node_id
        self._side = side.opponent
        self._last_move = vertex
        self._last_capture = outcome.captured

    def _auto_reply(self, puzzle: Puzzle, now: float) -> bool:
        """Play the main-line answer to the solver's move.  False if the puzzle failed."""

        replies = puzzle.children(self._node_id)
        if not replies:
            return True
        reply = replies[0]
        move = self._node_move(reply)
        if move is None:
            # Step over the empty node so the solver keeps the move.
            assert self._board is not None
            self._history.append(HistoryFrame(self._board, self._node_id, self._side))
            self._node_id = reply.id
            self._side = self._side.opponent
            return True
        side, vertex = move
        try:
            self._play(side, vertex, reply.id)
        except BoardError as exc:
            self._warn(f"node {reply.id}: board refused reply {vertex}: {exc}")
            self._tracker.break_combo()
            self._fail_puzzle(now, malus=0.0)
            return False
        return True

    def _explore(self, puzzle: Puzzle, vertex: Vertex) -> MoveVerdict:
        assert self._board is not None
        child = self._match_child(puzzle, vertex, allow_bad=True)
        try:
            outcome = self._rules.apply_move(self._board, self._side, vertex)
        except BoardError as exc:
            self._warn(f"review: board refused {vertex}: {exc}")
            return MoveVerdict.REJECTED
        if child is None:
            child = puzzle.add_move(self._node_id, self._side, vertex)
            logger.debug("puzzle %d: new variation node %d at %s", self._index, child.id, vertex)
        self._commit(outcome, self._side, vertex, child.id)
        return MoveVerdict.EXPLORED

    def _tick(self, now: float) -> None:
        self._session_clock.tick(now)
        if self._session_clock.expired:
            logger.info("time expired on puzzle %d", self._index)
            self._record(now, passed=False)
            self._tracker.break_combo()
            self._end_run(now)

    def _record(self, now: float, *, passed: bool) -> None:
        if self._index < len(self._puzzle_history):
            return
        started = self._puzzle_started_at if self._puzzle_started_at is not None else now
        self._puzzle_history.append(PuzzleHistoryEntry(elapsed_s=max(0.0, now - started), passed=passed))

    def _fail_puzzle(self, now: float, *, malus: float) -> None:
        self._record(now, passed=False)
        if malus:
            self._session_clock.apply_bonus(-malus, now)
        self._advance(now)

    def _advance(self, now: float) -> None:
        index = self._index + 1
        if index >= len(self._puzzles):
            self._end_run(now)
            return
        self._load(index, now)

    def _end_run(self, now: float) -> None:
        self._mode = Mode.REVIEWING
        self._total_time_s = self._session_clock.elapsed(now)
        logger.info(
            "run finished: score=%d/%d, max combo=%d, %.1fs",
            self._tracker.score,
            len(self._puzzles),
            self._tracker.max_combo,
            self._total_time_s,
        )

    def _load(self, index: int, now: float) -> None:
        puzzle = self._puzzles[index]
        size = puzzle.board_size
        board = self._rules.new_board(size)
        for side in (Side.WHITE, Side.BLACK):
            stones = []
            for v in puzzle.setup_stones(side):
                if self._rules.in_bounds(board, v):
                    stones.append(v)
                else:
                    self._warn(f"puzzle {index}: setup stone {tuple(v)} is off the board")
            board = self._rules.place_setup(board, side, stones)

        self._index = index
        self._board = board
        self._node_id = puzzle.root.id
        self._side = self._initial_side(puzzle, index)
        self._crop = display_crop(puzzle)
        self._history = []
        self._last_move = None
        self._last_capture = False
        self._puzzle_started_at = now

    def _initial_side(self, puzzle: Puzzle, index: int) -> Side:
        if puzzle.root.first(KEY_PLAYER):
            return puzzle.side_to_move
        for child in puzzle.children(puzzle.root.id):
            try:
                move = child.move()
            except FormatError:
                continue
            if move is not None:
                return move[0]
        self._warn(f"puzzle {index}: no side to move, assuming black")
        return Side.BLACK


def build_storm_session(
    *,
    archive: Sequence[Puzzle],
    clock: Clock,
    seed: int,
    config: StormConfig | None = None,
) -> StormSession:
    return StormSession(archive=archive, clock=clock, rules=GoRules(), seed=seed, config=config)
