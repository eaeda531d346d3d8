"""
Tests for movement, rotation with wall kicks, hard drop and the ghost piece.
"""

import unittest
import numpy as np
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blockfall.board import Board
from blockfall.config import default_config
from blockfall.movement import KICK_OFFSETS, ghost_piece, hard_drop, try_move, try_rotate
from blockfall.pieces import Piece, build_piece_definitions


DEFINITIONS = {d.name: d for d in build_piece_definitions(default_config().tetrominoes)}


def make_piece(name: str, x: int = 0, y: int = 0, rotation: int = 0) -> Piece:
    return Piece(DEFINITIONS[name], rotation=rotation, x=x, y=y)


class TestMove(unittest.TestCase):

    def setUp(self):
        self.board = Board(10, 20)

    def test_move_in_open_space(self):
        piece = make_piece('T', x=3, y=5)
        self.assertTrue(try_move(self.board, piece, 1, 0))
        self.assertTrue(try_move(self.board, piece, 0, 1))
        self.assertEqual((piece.x, piece.y), (4, 6))

    def test_blocked_move_leaves_piece(self):
        piece = make_piece('O', x=0, y=18)
        self.assertFalse(try_move(self.board, piece, -1, 0))
        self.assertFalse(try_move(self.board, piece, 0, 1))
        self.assertEqual((piece.x, piece.y), (0, 18))

    def test_move_never_touches_board(self):
        self.board.grid[19, :] = 1
        before = self.board.grid.copy()
        try_move(self.board, make_piece('O', x=4, y=17), 0, 1)
        np.testing.assert_array_equal(self.board.grid, before)


class TestRotate(unittest.TestCase):

    def setUp(self):
        self.board = Board(10, 20)

    def test_kick_table(self):
        self.assertEqual(KICK_OFFSETS, ((0, 0), (-1, 0), (1, 0), (0, -1), (-2, 0), (2, 0)))

    def test_plain_rotation(self):
        piece = make_piece('T', x=4, y=5)
        self.assertTrue(try_rotate(self.board, piece))
        self.assertEqual((piece.rotation, piece.x, piece.y), (1, 4, 5))

    def test_full_turn_returns_to_start(self):
        for name, definition in DEFINITIONS.items():
            piece = make_piece(name, x=4, y=8)
            cells = sorted(piece.get_occupied_cells())
            for _ in range(definition.rotation_count):
                self.assertTrue(try_rotate(self.board, piece))
            self.assertEqual((piece.rotation, piece.x, piece.y), (0, 4, 8))
            self.assertEqual(sorted(piece.get_occupied_cells()), cells)

    def test_kick_left_off_right_wall(self):
        # Vertical T hugging the right wall needs one column to the left
        piece = make_piece('T', x=8, y=5, rotation=3)
        self.assertFalse(self.board.collides(piece))
        self.assertTrue(try_rotate(self.board, piece))
        self.assertEqual((piece.rotation, piece.x, piece.y), (0, 7, 5))

    def test_kick_two_right_off_left_wall(self):
        # Vertical I at the left wall only fits flat after the last kick
        piece = make_piece('I', x=-2, y=5, rotation=1)
        self.assertFalse(self.board.collides(piece))
        self.assertTrue(try_rotate(self.board, piece))
        self.assertEqual((piece.rotation, piece.x, piece.y), (2, 0, 5))

    def test_kick_up(self):
        self.board.grid[2, 4:7] = 1
        piece = make_piece('T', x=4, y=0)
        self.assertFalse(self.board.collides(piece))
        self.assertTrue(try_rotate(self.board, piece))
        self.assertEqual((piece.rotation, piece.x, piece.y), (1, 4, -1))

    def test_failed_rotation_restores_piece(self):
        piece = make_piece('T', x=4, y=5)
        self.board.grid[:] = 1
        for x, y in piece.get_occupied_cells():
            self.board.grid[y, x] = 0

        self.assertFalse(try_rotate(self.board, piece))
        self.assertEqual((piece.rotation, piece.x, piece.y), (0, 4, 5))

    def test_custom_kick_offsets(self):
        piece = make_piece('T', x=8, y=5, rotation=3)
        self.assertFalse(try_rotate(self.board, piece, kick_offsets=((0, 0),)))
        self.assertEqual((piece.rotation, piece.x), (3, 8))


class TestDrops(unittest.TestCase):

    def setUp(self):
        self.board = Board(10, 20)

    def test_hard_drop_distance(self):
        piece = make_piece('O', x=4, y=0)
        self.assertEqual(hard_drop(self.board, piece), 18)
        self.assertEqual(piece.y, 18)
        self.assertTrue(self.board.is_empty())

    def test_hard_drop_onto_stack(self):
        self.board.grid[15, 4] = 2
        piece = make_piece('O', x=4, y=0)
        self.assertEqual(hard_drop(self.board, piece), 13)
        self.assertEqual(hard_drop(self.board, piece), 0)

    def test_ghost_piece(self):
        piece = make_piece('I', x=3, y=-1)
        ghost = ghost_piece(self.board, piece)

        self.assertIsNot(ghost, piece)
        self.assertEqual((piece.x, piece.y), (3, -1))
        self.assertEqual((ghost.x, ghost.y, ghost.rotation), (3, 18, 0))
        self.assertTrue(self.board.collides(ghost, 0, 1))


if __name__ == '__main__':
    unittest.main()
