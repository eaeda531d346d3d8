# Blockfall - falling-block puzzle engine
# exceptions.py - Custom exceptions for the game engine

class BlockfallError(Exception):
    """Base class for all engine errors."""
    pass

class ConfigError(BlockfallError):
    """Raised when the game configuration is missing, unreadable or malformed."""
    pass

class InvalidPieceDefinition(ConfigError):
    """Raised when a configured piece kind cannot be built (e.g. no rotation states)."""
    pass
