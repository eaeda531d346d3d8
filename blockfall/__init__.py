"""
Blockfall: a configurable falling-block puzzle engine.
Contains the board, pieces, bag randomizer, movement rules and the game engine.
"""

from .tetris_engine import TetrisEngine, GamePhase, GameState, SessionState
from .board import Board
from .bag import PieceBag
from .pieces import Piece, PieceDefinition, build_piece_definitions
from .movement import KICK_OFFSETS, try_move, try_rotate, hard_drop, ghost_piece
from .controls import Command, CommandThrottle, command_for_key
from .config import GameConfig, GameSettings, TetrominoConfig, load_config, parse_config, default_config
from .exceptions import BlockfallError, ConfigError, InvalidPieceDefinition

__version__ = "0.1.0"

__all__ = [
    'TetrisEngine', 'GamePhase', 'GameState', 'SessionState',
    'Board', 'PieceBag', 'Piece', 'PieceDefinition', 'build_piece_definitions',
    'KICK_OFFSETS', 'try_move', 'try_rotate', 'hard_drop', 'ghost_piece',
    'Command', 'CommandThrottle', 'command_for_key',
    'GameConfig', 'GameSettings', 'TetrominoConfig', 'load_config', 'parse_config', 'default_config',
    'BlockfallError', 'ConfigError', 'InvalidPieceDefinition',
]
