"""
Tests for piece definitions and piece instances.
"""

import unittest
import numpy as np
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blockfall.config import TetrominoConfig, default_config
from blockfall.exceptions import ConfigError, InvalidPieceDefinition
from blockfall.pieces import Piece, PieceDefinition, MAX_KIND_ID, build_piece_definitions


def tetromino(id=1, name='X', shapes=(((1, 1),),), dx=0, dy=0) -> TetrominoConfig:
    return TetrominoConfig(id=id, name=name, shapes=shapes, spawn_offset_x=dx, spawn_offset_y=dy)


class TestPieceDefinition(unittest.TestCase):
    """Test building definitions from configuration."""

    def test_default_registry(self):
        definitions = build_piece_definitions(default_config().tetrominoes)
        self.assertEqual(len(definitions), 7)
        self.assertEqual([d.kind for d in definitions], [1, 2, 3, 4, 5, 6, 7])
        names = [d.name for d in definitions]
        self.assertEqual(sorted(names), ['I', 'J', 'L', 'O', 'S', 'T', 'Z'])
        for definition in definitions:
            for matrix in definition.rotations:
                self.assertEqual(int(np.count_nonzero(matrix)), 4)

    def test_from_config(self):
        config = tetromino(id=3, name='T', shapes=(((0, 1, 0), (1, 1, 1)), ((1, 0), (1, 1), (1, 0))), dx=-1, dy=2)
        definition = PieceDefinition.from_config(config)

        self.assertEqual(definition.kind, 3)
        self.assertEqual(definition.name, 'T')
        self.assertEqual(definition.rotation_count, 2)
        self.assertEqual(definition.spawn_offset, (-1, 2))
        self.assertEqual(definition.rotations[1].shape, (3, 2))

    def test_matrices_are_read_only(self):
        definition = PieceDefinition.from_config(tetromino())
        with self.assertRaises(ValueError):
            definition.rotations[0][0, 0] = 0

    def test_zero_rotation_states(self):
        with self.assertRaises(InvalidPieceDefinition):
            PieceDefinition.from_config(tetromino(shapes=()))

    def test_invalid_id(self):
        with self.assertRaises(InvalidPieceDefinition):
            PieceDefinition.from_config(tetromino(id=0))

    def test_id_must_fit_board_cells(self):
        self.assertEqual(PieceDefinition.from_config(tetromino(id=MAX_KIND_ID)).kind, 127)
        for kind in (MAX_KIND_ID + 1, 200):
            with self.assertRaises(InvalidPieceDefinition, msg=kind):
                PieceDefinition.from_config(tetromino(id=kind))

    def test_empty_rotation_state(self):
        with self.assertRaises(InvalidPieceDefinition):
            PieceDefinition.from_config(tetromino(shapes=(((1, 1),), ((0, 0),))))

    def test_ragged_rotation_state(self):
        with self.assertRaises(InvalidPieceDefinition):
            PieceDefinition.from_config(tetromino(shapes=(((1, 1), (1,)),)))

    def test_any_nonzero_value_fills_a_cell(self):
        definition = PieceDefinition.from_config(tetromino(shapes=(((0, 5), (300, 0)),)))
        piece = Piece(definition, x=2, y=3)
        self.assertEqual(sorted(piece.get_occupied_cells()), [(2, 4), (3, 3)])

    def test_duplicate_ids(self):
        with self.assertRaises(InvalidPieceDefinition):
            build_piece_definitions([tetromino(id=1, name='A'), tetromino(id=1, name='B')])

    def test_errors_are_config_errors(self):
        self.assertTrue(issubclass(InvalidPieceDefinition, ConfigError))


class TestPiece(unittest.TestCase):
    """Test live piece instances."""

    def setUp(self):
        self.definitions = {d.name: d for d in build_piece_definitions(default_config().tetrominoes)}

    def test_piece_creation(self):
        piece = Piece(self.definitions['T'], x=3, y=1)
        self.assertEqual(piece.kind, self.definitions['T'].kind)
        self.assertEqual(piece.name, 'T')
        self.assertEqual(piece.rotation, 0)
        self.assertIs(piece.shape, self.definitions['T'].rotations[0])

    def test_rotation_wraps(self):
        piece = Piece(self.definitions['T'])
        for expected in [1, 2, 3, 0, 1]:
            piece.rotate()
            self.assertEqual(piece.rotation, expected)
        piece.rotate(-1)
        self.assertEqual(piece.rotation, 0)

    def test_single_state_piece(self):
        piece = Piece(self.definitions['O'])
        piece.rotate()
        self.assertEqual(piece.rotation, 0)

    def test_occupied_cells(self):
        piece = Piece(self.definitions['O'], x=3, y=5)
        self.assertEqual(sorted(piece.get_occupied_cells()), [(3, 5), (3, 6), (4, 5), (4, 6)])
        self.assertEqual(sorted(piece.get_occupied_cells(1, -1)), [(4, 4), (4, 5), (5, 4), (5, 5)])

    def test_clone_is_independent(self):
        piece = Piece(self.definitions['L'], rotation=2, x=4, y=7)
        copy = piece.clone()

        self.assertEqual(copy, piece)
        self.assertIs(copy.definition, piece.definition)

        copy.rotate()
        copy.x += 1
        self.assertEqual((piece.rotation, piece.x, piece.y), (2, 4, 7))

    def test_reset(self):
        piece = Piece(self.definitions['J'], rotation=3, x=6, y=9)
        piece.reset()
        self.assertEqual((piece.rotation, piece.x, piece.y), (0, 0, 0))


if __name__ == '__main__':
    unittest.main()
