"""
Input commands, key bindings and repeat throttling for Blockfall.
"""

from enum import Enum
from typing import Dict, Optional


class Command(Enum):
    """Discrete commands accepted while playing."""
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    SOFT_DROP = "soft_drop"
    HARD_DROP = "hard_drop"
    ROTATE = "rotate"
    HOLD = "hold"
    PAUSE = "pause"


# Key names follow the DOM KeyboardEvent.key values, compared lower-cased
KEY_BINDINGS: Dict[str, Command] = {
    "arrowleft": Command.MOVE_LEFT,
    "arrowright": Command.MOVE_RIGHT,
    "arrowdown": Command.SOFT_DROP,
    "arrowup": Command.ROTATE,
    " ": Command.HARD_DROP,
    "space": Command.HARD_DROP,
    "c": Command.HOLD,
    "shift": Command.HOLD,
    "p": Command.PAUSE,
}

PAUSE_KEY = "p"
RESTART_KEY = "r"
BACK_KEY = "escape"


def normalize_key(key: str) -> str:
    # A bare space must survive, so only strip longer names
    return key if key == " " else key.strip().lower()


def command_for_key(key: str, bindings: Optional[Dict[str, Command]] = None) -> Optional[Command]:
    """Command bound to a key name, or None if the key is unbound."""
    bindings = KEY_BINDINGS if bindings is None else bindings
    return bindings.get(normalize_key(key))


class CommandThrottle:
    """Rate limit for held keys.

    Horizontal moves share one timer; rotation and soft drop have their own.
    A command is accepted once strictly more than its delay has passed since
    the last accepted command of the same class. Other commands always pass.
    """

    def __init__(self, move_delay: float = 100.0, rotate_delay: float = 150.0,
                 soft_drop_delay: float = 50.0):
        self.delays: Dict[str, float] = {
            "move": move_delay,
            "rotate": rotate_delay,
            "soft_drop": soft_drop_delay,
        }
        self._last: Dict[str, float] = {}

    @staticmethod
    def command_class(command: Command) -> Optional[str]:
        if command in (Command.MOVE_LEFT, Command.MOVE_RIGHT):
            return "move"
        if command is Command.ROTATE:
            return "rotate"
        if command is Command.SOFT_DROP:
            return "soft_drop"
        return None

    def accept(self, command: Command, now_ms: float) -> bool:
        """Record and accept the command, or reject it if it arrives too soon."""
        cls = self.command_class(command)
        if cls is None:
            return True
        last = self._last.get(cls)
        if last is not None and now_ms - last <= self.delays[cls]:
            return False
        self._last[cls] = now_ms
        return True

    def reset(self):
        self._last.clear()
