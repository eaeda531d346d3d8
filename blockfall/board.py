"""
Board state management for Blockfall.
Handles the locked-cell grid, collision testing, piece locking and line clearing.
"""

import logging
from typing import Optional
import numpy as np

from .pieces import CELL_DTYPE, Piece

logger = logging.getLogger(__name__)


class Board:
    """Fixed-size grid of locked cells. 0 is empty, anything else is a piece kind id."""

    def __init__(self, width: int = 10, height: int = 20):
        self.width = width
        self.height = height
        self.grid = np.zeros((self.height, self.width), dtype=CELL_DTYPE)

    def reset(self):
        """Empty every cell. The buffer itself is reused."""
        self.grid.fill(0)

    def collides(self, piece: Piece, dx: int = 0, dy: int = 0) -> bool:
        """Check if the piece, shifted by (dx, dy), hits a wall, the floor or a locked cell.

        Cells above the top edge (y < 0) are allowed so pieces can spawn partially
        off-board; they are still checked against the side walls.
        """
        for x, y in piece.get_occupied_cells(dx, dy):
            if x < 0 or x >= self.width or y >= self.height:
                return True
            if y < 0:
                continue
            if self.grid[y, x] != 0:
                return True
        return False

    def is_valid_position(self, piece: Piece, dx: int = 0, dy: int = 0) -> bool:
        return not self.collides(piece, dx, dy)

    def lock(self, piece: Piece):
        """Write the piece's kind id into every cell it occupies on the board."""
        for x, y in piece.get_occupied_cells():
            if 0 <= y < self.height and 0 <= x < self.width:
                self.grid[y, x] = piece.kind
        logger.debug("Locked %r", piece)

    def clear_full_lines(self) -> int:
        """Remove full rows and shift everything above them down.

        Surviving rows are compacted towards the bottom of the existing buffer
        and the vacated rows at the top are zero-filled. Returns the number of
        rows removed.
        """
        full = np.all(self.grid != 0, axis=1)
        cleared = int(np.count_nonzero(full))
        if cleared == 0:
            return 0

        survivors = self.grid[~full]  # Boolean indexing copies, keeps top-to-bottom order
        self.grid[cleared:] = survivors
        self.grid[:cleared] = 0

        logger.debug("Cleared %d line(s) at rows %s", cleared, np.flatnonzero(full).tolist())
        return cleared

    def get_board_state(self) -> np.ndarray:
        """Read-only copy of the grid for renderers."""
        snapshot = self.grid.copy()
        snapshot.setflags(write=False)
        return snapshot

    def is_empty(self) -> bool:
        return not np.any(self.grid)

    def to_string(self, piece: Optional[Piece] = None) -> str:
        """Text rendering of the board, with an optional piece drawn on top."""
        result = []
        for y in range(self.height):
            row = ""
            for x in range(self.width):
                if self.grid[y, x]:
                    row += "█"
                else:
                    row += "·"
            result.append(row)

        if piece is not None:
            for x, y in piece.get_occupied_cells():
                if 0 <= x < self.width and 0 <= y < self.height:
                    result[y] = result[y][:x] + "○" + result[y][x + 1:]

        return "\n".join(result)

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        return f"Board(width={self.width}, height={self.height}, filled={int(np.count_nonzero(self.grid))})"
