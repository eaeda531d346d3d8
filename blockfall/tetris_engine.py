"""
Main game engine for Blockfall.
Owns the board, the piece bag and the session state; advances gravity and dispatches commands.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Tuple
import numpy as np

from .bag import PieceBag
from .board import Board
from .config import GameConfig, default_config
from .controls import (BACK_KEY, PAUSE_KEY, RESTART_KEY, Command, CommandThrottle,
                       command_for_key, normalize_key)
from .movement import ghost_piece, hard_drop, try_move, try_rotate
from .pieces import Piece, PieceDefinition, build_piece_definitions

logger = logging.getLogger(__name__)

PREVIEW_COUNT = 3


class GamePhase(Enum):
    TITLE = "title"
    CONTROLS = "controls"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass
class SessionState:
    """Mutable per-game state, owned by a single engine."""
    score: int = 0
    level: int = 1
    lines_cleared: int = 0
    fall_interval: float = 1000.0  # ms per row of gravity
    gravity_elapsed: float = 0.0  # ms accumulated since the last gravity step
    current_piece: Optional[Piece] = None
    next_piece: Optional[Piece] = None
    hold_piece: Optional[Piece] = None
    can_hold: bool = True
    phase: GamePhase = GamePhase.TITLE


@dataclass(frozen=True)
class GameState:
    """Read-only snapshot handed to renderers and other collaborators."""
    board: np.ndarray
    current_piece: Optional[Piece]
    next_piece: Optional[Piece]
    hold_piece: Optional[Piece]
    ghost_piece: Optional[Piece]
    score: int
    level: int
    lines_cleared: int
    fall_interval: float
    phase: GamePhase
    can_hold: bool
    upcoming: Tuple[PieceDefinition, ...] = ()  # Kinds queued after the next piece


def _clone(piece: Optional[Piece]) -> Optional[Piece]:
    return piece.clone() if piece is not None else None


def _perf_clock_ms() -> float:
    return time.perf_counter() * 1000.0


class TetrisEngine:
    """Single-threaded game engine. Call it from one place only, once per frame."""

    def __init__(self, config: Optional[GameConfig] = None, seed: Optional[int] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.config = config or default_config()
        self.settings = self.config.game_settings
        self.board = Board(self.settings.grid_width, self.settings.grid_height)
        self.rng = np.random.default_rng(seed)
        self.clock = clock or _perf_clock_ms

        self.definitions: Tuple[PieceDefinition, ...] = ()
        self.bag: Optional[PieceBag] = None
        self.state = SessionState(fall_interval=self.settings.initial_fall_speed)
        self.throttle = CommandThrottle(
            move_delay=self.settings.move_delay,
            rotate_delay=self.settings.rotate_delay,
            soft_drop_delay=self.settings.soft_drop_delay,
        )

        # Callbacks for the audio and render layers
        self.on_piece_locked: Optional[Callable[[Piece, int], None]] = None
        self.on_piece_moved: Optional[Callable[[Piece, Command], None]] = None
        self.on_line_cleared: Optional[Callable[[int], None]] = None
        self.on_level_up: Optional[Callable[[int], None]] = None
        self.on_game_over: Optional[Callable[[int], None]] = None
        self.on_phase_changed: Optional[Callable[[GamePhase, GamePhase], None]] = None

    # Read access used by collaborators and tests

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def level(self) -> int:
        return self.state.level

    @property
    def lines_cleared(self) -> int:
        return self.state.lines_cleared

    @property
    def current_piece(self) -> Optional[Piece]:
        return self.state.current_piece

    # Game lifecycle

    def _set_phase(self, phase: GamePhase):
        old = self.state.phase
        if old is phase:
            return
        self.state.phase = phase
        logger.info("Phase %s -> %s", old.value, phase.value)
        if self.on_phase_changed:
            self.on_phase_changed(old, phase)

    def start_game(self):
        """Build the piece definitions, reset everything and start playing."""
        self.definitions = build_piece_definitions(self.config.tetrominoes)
        self._set_phase(GamePhase.PLAYING)
        self.reset_game()

    def reset_game(self):
        """Fresh board, bag and session; the first piece is spawned immediately."""
        if not self.definitions:
            self.definitions = build_piece_definitions(self.config.tetrominoes)
        self.board.reset()
        self.bag = PieceBag(self.definitions, self.board.width, rng=self.rng)
        self.state = SessionState(fall_interval=self.settings.initial_fall_speed,
                                  phase=self.state.phase)
        self.throttle.reset()
        self._spawn_next()

    def _spawn_next(self) -> bool:
        """Promote the next piece to current and draw a new next piece.

        Returns False (and ends the game) if the new piece collides where it spawns.
        """
        state = self.state
        if state.next_piece is None:
            state.next_piece = self.bag.draw()
        state.current_piece = self.bag.spawn(state.next_piece)
        state.next_piece = self.bag.draw()
        state.can_hold = True

        if self.board.collides(state.current_piece):
            self._game_over()
            return False
        return True

    def _game_over(self):
        self._set_phase(GamePhase.GAME_OVER)
        logger.info("Game over: score=%d level=%d lines=%d",
                    self.state.score, self.state.level, self.state.lines_cleared)
        if self.on_game_over:
            self.on_game_over(self.state.score)

    # Gravity

    def update(self, delta_ms: float):
        """Advance the gravity timer; one row of gravity at most per call."""
        state = self.state
        if state.phase is not GamePhase.PLAYING or state.current_piece is None:
            return

        state.gravity_elapsed += delta_ms
        if state.gravity_elapsed < state.fall_interval:
            return

        state.gravity_elapsed = 0.0
        if not try_move(self.board, state.current_piece, 0, 1):
            self._lock_current()

    def tick(self, delta_ms: float, commands: Iterable[Command] = (),
             now_ms: Optional[float] = None) -> GameState:
        """One frame: apply the frame's commands, then gravity. Returns the new snapshot."""
        for command in commands:
            self.dispatch(command, now_ms)
        self.update(delta_ms)
        return self.get_game_state()

    def _lock_current(self):
        state = self.state
        piece = state.current_piece
        self.board.lock(piece)

        lines = self.board.clear_full_lines()
        if lines:
            state.score += lines * self.settings.score_per_line * state.level
            state.lines_cleared += lines
            if self.on_line_cleared:
                self.on_line_cleared(lines)
            self._check_level_up()

        state.gravity_elapsed = 0.0
        if self.on_piece_locked:
            self.on_piece_locked(piece, lines)

        self._spawn_next()

    def _check_level_up(self):
        state = self.state
        while state.lines_cleared >= state.level * self.settings.level_up_line_count:
            state.level += 1
            state.fall_interval *= self.settings.level_up_speed_multiplier
            logger.info("Level up! Level: %d, Fall interval: %.2fms", state.level, state.fall_interval)
            if self.on_level_up:
                self.on_level_up(state.level)

    # Commands

    def dispatch(self, command: Command, now_ms: Optional[float] = None) -> bool:
        """Apply a command. Returns False if it was ignored, throttled or blocked."""
        if command is Command.PAUSE:
            return self.toggle_pause()

        if self.state.phase is not GamePhase.PLAYING or self.state.current_piece is None:
            return False

        now = self.clock() if now_ms is None else now_ms
        if not self.throttle.accept(command, now):
            return False

        if command is Command.MOVE_LEFT:
            applied = try_move(self.board, self.state.current_piece, -1, 0)
        elif command is Command.MOVE_RIGHT:
            applied = try_move(self.board, self.state.current_piece, 1, 0)
        elif command is Command.ROTATE:
            applied = try_rotate(self.board, self.state.current_piece, self.settings.kick_offsets)
        elif command is Command.SOFT_DROP:
            applied = self.soft_drop()
        elif command is Command.HARD_DROP:
            return self.hard_drop() is not None
        elif command is Command.HOLD:
            applied = self.swap_hold()
        else:
            return False

        if applied and self.on_piece_moved:
            self.on_piece_moved(self.state.current_piece, command)
        return applied

    def soft_drop(self) -> bool:
        """Move down one row, score it and restart the gravity timer."""
        state = self.state
        if state.phase is not GamePhase.PLAYING or state.current_piece is None:
            return False
        if not try_move(self.board, state.current_piece, 0, 1):
            return False
        state.score += self.settings.score_per_soft_drop_block
        state.gravity_elapsed = 0.0
        return True

    def hard_drop(self) -> Optional[int]:
        """Drop and lock the current piece. Returns the rows dropped."""
        state = self.state
        if state.phase is not GamePhase.PLAYING or state.current_piece is None:
            return None
        rows = hard_drop(self.board, state.current_piece)
        state.score += rows * self.settings.score_per_hard_drop_block
        self._lock_current()
        return rows

    def swap_hold(self) -> bool:
        """Exchange the current piece with the hold slot, once per piece."""
        state = self.state
        if state.phase is not GamePhase.PLAYING or state.current_piece is None or not state.can_hold:
            return False

        outgoing = state.current_piece.clone()
        outgoing.reset()  # Rotation 0 at the display origin

        if state.hold_piece is None:
            self._spawn_next()
        else:
            state.current_piece = self.bag.spawn(state.hold_piece.clone())
            if self.board.collides(state.current_piece):
                self._game_over()

        state.hold_piece = outgoing
        state.can_hold = False
        return True

    def toggle_pause(self) -> bool:
        if self.state.phase is GamePhase.PLAYING:
            self._set_phase(GamePhase.PAUSED)
            return True
        if self.state.phase is GamePhase.PAUSED:
            self._set_phase(GamePhase.PLAYING)
            return True
        return False

    def handle_key(self, key: str, now_ms: Optional[float] = None) -> bool:
        """Route a named key press: screen transitions outside play, commands during play."""
        key = normalize_key(key)
        phase = self.state.phase

        if phase is GamePhase.TITLE:
            self._set_phase(GamePhase.CONTROLS)
            return True
        if phase is GamePhase.CONTROLS:
            if key == BACK_KEY:
                self._set_phase(GamePhase.TITLE)
            else:
                self.start_game()
            return True
        if phase is GamePhase.GAME_OVER:
            if key == RESTART_KEY:
                self._set_phase(GamePhase.TITLE)
                return True
            return False
        if phase is GamePhase.PAUSED:
            return key == PAUSE_KEY and self.toggle_pause()

        command = command_for_key(key)
        if command is None:
            return False
        return self.dispatch(command, now_ms)

    # Snapshots

    def get_ghost_piece(self) -> Optional[Piece]:
        if self.state.current_piece is None:
            return None
        return ghost_piece(self.board, self.state.current_piece)

    def get_game_state(self) -> GameState:
        """Snapshot of everything a renderer needs."""
        state = self.state
        ghost = None
        if state.phase in (GamePhase.PLAYING, GamePhase.PAUSED):
            ghost = self.get_ghost_piece()
        return GameState(
            board=self.board.get_board_state(),
            current_piece=_clone(state.current_piece),
            next_piece=_clone(state.next_piece),
            hold_piece=_clone(state.hold_piece),
            ghost_piece=ghost,
            score=state.score,
            level=state.level,
            lines_cleared=state.lines_cleared,
            fall_interval=state.fall_interval,
            phase=state.phase,
            can_hold=state.can_hold,
            upcoming=tuple(self.bag.peek(PREVIEW_COUNT)) if self.bag is not None else (),
        )

    def __repr__(self):
        return (f"TetrisEngine(phase={self.state.phase.value}, score={self.state.score}, "
                f"level={self.state.level}, lines={self.state.lines_cleared})")
