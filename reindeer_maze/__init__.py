"""Shared procedurally generated maze explored by many teams over a text protocol."""

from .config import MazeConfig, load_config_from_env
from .core import (
    Compass,
    Direction,
    Grid,
    PlayerHandle,
    PlayerSnapshot,
    SensingView,
    WorldState,
    generate_maze,
    make_rng,
    measure_free,
    parse_direction,
    read_compass,
)
from .errors import DirectionParseError, MazeConfigurationError, MazeError, WorldClosedError

__version__ = "0.1.0"

__all__ = [
    "Compass",
    "Direction",
    "DirectionParseError",
    "Grid",
    "MazeConfig",
    "MazeConfigurationError",
    "MazeError",
    "PlayerHandle",
    "PlayerSnapshot",
    "SensingView",
    "WorldClosedError",
    "WorldState",
    "generate_maze",
    "load_config_from_env",
    "make_rng",
    "measure_free",
    "parse_direction",
    "read_compass",
]
