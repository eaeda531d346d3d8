"""
Bag randomizer for Blockfall.
Every piece kind appears exactly once per shuffled bag, so no kind repeats
before all the others have been drawn.
"""

import logging
from typing import List, Optional, Sequence
import numpy as np

from .pieces import Piece, PieceDefinition

logger = logging.getLogger(__name__)


class PieceBag:
    """Queue of upcoming pieces, refilled one shuffled bag at a time."""

    def __init__(self, definitions: Sequence[PieceDefinition], board_width: int,
                 rng: Optional[np.random.Generator] = None):
        self.definitions = tuple(definitions)
        self.board_width = board_width
        self.rng = rng if rng is not None else np.random.default_rng()
        self.queue: List[Piece] = []

    @property
    def kind_count(self) -> int:
        return len(self.definitions)

    def reset(self):
        self.queue = []

    def refill(self):
        """Append one Fisher-Yates shuffled copy of every definition to the queue."""
        bag = [Piece(d) for d in self.definitions]
        for i in range(len(bag) - 1, 0, -1):
            j = int(self.rng.integers(0, i + 1))
            bag[i], bag[j] = bag[j], bag[i]
        self.queue.extend(bag)
        logger.debug("Refilled bag: %s", [p.name for p in bag])

    def spawn(self, piece: Piece) -> Piece:
        """Move a piece to its spawn position with rotation 0."""
        dx, dy = piece.definition.spawn_offset
        piece.reset(self.board_width // 2 + dx, dy)
        return piece

    def draw(self) -> Piece:
        """Pop the next piece, positioned at spawn."""
        if len(self.queue) < self.kind_count:
            self.refill()
        return self.spawn(self.queue.pop(0).clone())

    def peek(self, count: int = 1) -> List[PieceDefinition]:
        """Definitions of the upcoming pieces without consuming them."""
        while len(self.queue) < count:
            self.refill()
        return [p.definition for p in self.queue[:count]]

    def __len__(self):
        return len(self.queue)
