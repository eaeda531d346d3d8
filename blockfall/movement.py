"""
Movement and rotation resolver for Blockfall.
Each function validates a transformation against the board and commits it
to the piece only when it fits. The board is never modified here.
"""

import logging
from typing import Sequence, Tuple

from .board import Board
from .config import DEFAULT_KICK_OFFSETS
from .pieces import Piece

logger = logging.getLogger(__name__)

# Fixed, orientation-independent kick table. Not SRS.
KICK_OFFSETS: Tuple[Tuple[int, int], ...] = DEFAULT_KICK_OFFSETS


def try_move(board: Board, piece: Piece, dx: int, dy: int) -> bool:
    """Move the piece by (dx, dy) if the new position is free."""
    if board.collides(piece, dx, dy):
        return False
    piece.x += dx
    piece.y += dy
    return True


def try_rotate(board: Board, piece: Piece,
               kick_offsets: Sequence[Tuple[int, int]] = KICK_OFFSETS) -> bool:
    """Rotate one step, trying each kick offset from the original position in order.

    On failure rotation, x and y are restored exactly.
    """
    original_rotation = piece.rotation
    original_x, original_y = piece.x, piece.y

    piece.rotate(1)

    for kick_x, kick_y in kick_offsets:
        piece.x = original_x + kick_x
        piece.y = original_y + kick_y
        if not board.collides(piece):
            return True

    piece.rotation = original_rotation
    piece.x, piece.y = original_x, original_y
    logger.debug("Rotation rejected for %r", piece)
    return False


def hard_drop(board: Board, piece: Piece) -> int:
    """Drop the piece as far as it goes. Returns the number of rows dropped."""
    rows = 0
    while try_move(board, piece, 0, 1):
        rows += 1
    return rows


def ghost_piece(board: Board, piece: Piece) -> Piece:
    """Where the piece would land on a hard drop. The original is left untouched."""
    ghost = piece.clone()
    hard_drop(board, ghost)
    return ghost
