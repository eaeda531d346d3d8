"""
Piece definitions and live piece instances for Blockfall.
Definitions are built once from configuration and shared by every piece of that kind.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple
import numpy as np

from .config import TetrominoConfig
from .exceptions import InvalidPieceDefinition

# Board cells store the kind id, so every id must fit this dtype
CELL_DTYPE = np.int8
MAX_KIND_ID = int(np.iinfo(CELL_DTYPE).max)


@dataclass(frozen=True, eq=False)
class PieceDefinition:
    """Immutable shape data for one piece kind."""
    kind: int  # Board cell value once locked
    name: str
    rotations: Tuple[np.ndarray, ...]  # One read-only matrix per rotation state
    spawn_offset: Tuple[int, int]  # (dx, dy) relative to the board's horizontal center
    texture_name: Optional[str] = None

    def __post_init__(self):
        if not self.rotations:
            raise InvalidPieceDefinition(f"Piece '{self.name}' has no rotation states")
        if not 1 <= self.kind <= MAX_KIND_ID:
            raise InvalidPieceDefinition(
                f"Piece '{self.name}' has id {self.kind}; ids must be between 1 and {MAX_KIND_ID}"
            )

    @classmethod
    def from_config(cls, config: TetrominoConfig) -> 'PieceDefinition':
        rotations = []
        for matrix in config.shapes:
            try:
                array = np.array(matrix, dtype=bool)  # Any nonzero entry is a filled cell
            except ValueError as e:
                raise InvalidPieceDefinition(f"Piece '{config.name}' has a ragged rotation state: {e}") from e
            if array.ndim != 2:
                raise InvalidPieceDefinition(f"Piece '{config.name}' has a rotation state that is not a 2-D matrix")
            if not array.any():
                raise InvalidPieceDefinition(f"Piece '{config.name}' has a rotation state with no filled cells")
            array.setflags(write=False)
            rotations.append(array)
        return cls(
            kind=config.id,
            name=config.name,
            rotations=tuple(rotations),
            spawn_offset=(config.spawn_offset_x, config.spawn_offset_y),
            texture_name=config.texture_name,
        )

    @property
    def rotation_count(self) -> int:
        return len(self.rotations)

    def __repr__(self):
        return f"PieceDefinition({self.name}, id={self.kind}, rotations={self.rotation_count})"


@dataclass
class Piece:
    """A live piece: a definition plus rotation and board position (top-left of the matrix)."""
    definition: PieceDefinition
    rotation: int = 0
    x: int = 0
    y: int = 0

    @property
    def kind(self) -> int:
        return self.definition.kind

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def shape(self) -> np.ndarray:
        """Matrix of the current rotation state."""
        return self.definition.rotations[self.rotation]

    def rotate(self, direction: int = 1):
        """Advance the rotation index, wrapping around the available states."""
        self.rotation = (self.rotation + direction) % self.definition.rotation_count

    def get_occupied_cells(self, dx: int = 0, dy: int = 0) -> List[Tuple[int, int]]:
        """Board coordinates (x, y) of every filled cell, optionally offset."""
        rows, cols = np.nonzero(self.shape)
        return [(self.x + int(c) + dx, self.y + int(r) + dy) for r, c in zip(rows, cols)]

    def clone(self) -> 'Piece':
        # The definition is shared, only the position and rotation are copied
        return replace(self)

    def reset(self, x: int = 0, y: int = 0):
        self.rotation = 0
        self.x = x
        self.y = y

    def __repr__(self):
        return f"Piece({self.name}, x={self.x}, y={self.y}, r={self.rotation})"


def build_piece_definitions(tetrominoes: Iterable[TetrominoConfig]) -> Tuple[PieceDefinition, ...]:
    """Build the definition registry, in configuration order."""
    definitions = tuple(PieceDefinition.from_config(t) for t in tetrominoes)
    if not definitions:
        raise InvalidPieceDefinition("At least one piece kind is required")

    seen: Dict[int, str] = {}
    for definition in definitions:
        if definition.kind in seen:
            raise InvalidPieceDefinition(
                f"Pieces '{seen[definition.kind]}' and '{definition.name}' share id {definition.kind}"
            )
        seen[definition.kind] = definition.name
    return definitions

