"""
Configuration loading for Blockfall.
Parses the JSON game document (settings, piece geometry, texts, assets) into frozen dataclasses.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "data" / "default_config.json"

# Offsets tried in order when a rotation collides: none, left, right, up, 2 left, 2 right
DEFAULT_KICK_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (0, 0), (-1, 0), (1, 0), (0, -1), (-2, 0), (2, 0)
)

# JSON key -> (attribute, type, default). A default of None means the key is required.
_SETTINGS_FIELDS = {
    "gridWidth": ("grid_width", int, None),
    "gridHeight": ("grid_height", int, None),
    "blockSize": ("block_size", int, 30),
    "initialFallSpeed": ("initial_fall_speed", float, None),
    "levelUpLineCount": ("level_up_line_count", int, None),
    "levelUpSpeedMultiplier": ("level_up_speed_multiplier", float, None),
    "scorePerLine": ("score_per_line", int, None),
    "scorePerHardDropBlock": ("score_per_hard_drop_block", int, None),
    "scorePerSoftDropBlock": ("score_per_soft_drop_block", int, None),
    "moveDelay": ("move_delay", float, 100.0),
    "rotateDelay": ("rotate_delay", float, 150.0),
    "softDropDelay": ("soft_drop_delay", float, 50.0),
}


@dataclass(frozen=True)
class GameSettings:
    """Timing, scoring and grid settings from the `gameSettings` block."""
    grid_width: int = 10
    grid_height: int = 20
    block_size: int = 30  # Pixel size, only meaningful to renderers
    initial_fall_speed: float = 1000.0  # ms per grid cell
    level_up_line_count: int = 10
    level_up_speed_multiplier: float = 0.9  # < 1 makes pieces fall faster
    score_per_line: int = 100
    score_per_hard_drop_block: int = 2
    score_per_soft_drop_block: int = 1
    move_delay: float = 100.0  # ms between accepted horizontal moves
    rotate_delay: float = 150.0
    soft_drop_delay: float = 50.0
    kick_offsets: Tuple[Tuple[int, int], ...] = DEFAULT_KICK_OFFSETS
    extra: Dict[str, Any] = field(default_factory=dict)  # Presentation-only keys, kept verbatim


@dataclass(frozen=True)
class TetrominoConfig:
    """One entry of the `tetrominoes` array."""
    id: int  # Doubles as the board cell value once locked
    name: str
    shapes: Tuple[Tuple[Tuple[int, ...], ...], ...]
    spawn_offset_x: int
    spawn_offset_y: int
    texture_name: Optional[str] = None


@dataclass(frozen=True)
class GameConfig:
    """The whole configuration document."""
    game_settings: GameSettings
    tetrominoes: Tuple[TetrominoConfig, ...]
    texts: Dict[str, str] = field(default_factory=dict)
    assets: Dict[str, Any] = field(default_factory=dict)

    def text(self, key: str, default: str = "") -> str:
        return self.texts.get(key, default)


def _require(mapping: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in mapping:
        raise ConfigError(f"Missing required key '{key}' in {where}")
    return mapping[key]


def _coerce(value: Any, kind: type, key: str, where: str):
    # bool is an int subclass; reject it so `true` never becomes a grid size
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Key '{key}' in {where} must be a number, got {value!r}")
    if kind is int:
        if float(value) != int(value):
            raise ConfigError(f"Key '{key}' in {where} must be an integer, got {value!r}")
        return int(value)
    return float(value)


def _parse_kick_offsets(raw: Any) -> Tuple[Tuple[int, int], ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError("'kickOffsets' must be a non-empty list of [dx, dy] pairs")
    offsets = []
    for pair in raw:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ConfigError(f"Invalid kick offset {pair!r}; expected [dx, dy]")
        offsets.append((_coerce(pair[0], int, "kickOffsets", "gameSettings"),
                        _coerce(pair[1], int, "kickOffsets", "gameSettings")))
    return tuple(offsets)


def parse_settings(raw: Mapping[str, Any]) -> GameSettings:
    """Parse the `gameSettings` block."""
    if not isinstance(raw, Mapping):
        raise ConfigError("'gameSettings' must be an object")

    values: Dict[str, Any] = {}
    for key, (attr, kind, default) in _SETTINGS_FIELDS.items():
        if key in raw:
            values[attr] = _coerce(raw[key], kind, key, "gameSettings")
        elif default is None:
            _require(raw, key, "gameSettings")
        else:
            values[attr] = default

    if "kickOffsets" in raw:
        values["kick_offsets"] = _parse_kick_offsets(raw["kickOffsets"])

    if values["grid_width"] <= 0 or values["grid_height"] <= 0:
        raise ConfigError("Grid dimensions must be positive")
    if values["level_up_line_count"] <= 0:
        raise ConfigError("'levelUpLineCount' must be positive")
    if values["initial_fall_speed"] <= 0:
        raise ConfigError("'initialFallSpeed' must be positive")

    known = set(_SETTINGS_FIELDS) | {"kickOffsets"}
    values["extra"] = {k: v for k, v in raw.items() if k not in known}
    return GameSettings(**values)


def parse_tetromino(raw: Mapping[str, Any], index: int) -> TetrominoConfig:
    """Parse one `tetrominoes` entry. Shape matrices are taken as given."""
    where = f"tetrominoes[{index}]"
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{where} must be an object")

    shapes = _require(raw, "shapes", where)
    if not isinstance(shapes, list):
        raise ConfigError(f"'shapes' in {where} must be a list of matrices")
    try:
        shapes = tuple(tuple(tuple(int(cell) for cell in row) for row in matrix) for matrix in shapes)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'shapes' in {where} is not a list of integer matrices: {e}") from e

    return TetrominoConfig(
        id=_coerce(_require(raw, "id", where), int, "id", where),
        name=str(raw.get("name", f"piece{index}")),
        shapes=shapes,
        spawn_offset_x=_coerce(_require(raw, "spawnOffsetX", where), int, "spawnOffsetX", where),
        spawn_offset_y=_coerce(_require(raw, "spawnOffsetY", where), int, "spawnOffsetY", where),
        texture_name=raw.get("textureName"),
    )


def parse_config(data: Mapping[str, Any]) -> GameConfig:
    """Build a GameConfig from an already decoded JSON document."""
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration root must be an object")

    settings = parse_settings(_require(data, "gameSettings", "configuration"))

    raw_pieces = _require(data, "tetrominoes", "configuration")
    if not isinstance(raw_pieces, list) or not raw_pieces:
        raise ConfigError("'tetrominoes' must be a non-empty list")
    tetrominoes: List[TetrominoConfig] = [parse_tetromino(p, i) for i, p in enumerate(raw_pieces)]

    return GameConfig(
        game_settings=settings,
        tetrominoes=tuple(tetrominoes),
        texts=dict(data.get("texts", {})),
        assets=dict(data.get("assets", {})),
    )


def load_config(path: Union[str, Path]) -> GameConfig:
    """Read and parse a configuration file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Configuration file {path} is not valid JSON: {e}") from e

    config = parse_config(data)
    logger.debug("Loaded configuration from %s (%d piece kinds)", path, len(config.tetrominoes))
    return config


def default_config() -> GameConfig:
    """The configuration shipped with the package."""
    return load_config(DEFAULT_CONFIG_PATH)
