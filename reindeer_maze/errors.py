"""Exception hierarchy shared by the maze core and its collaborators."""

from __future__ import annotations


class MazeError(Exception):
    """Base class for every error raised by the reindeer maze package."""


class MazeConfigurationError(MazeError, ValueError):
    """Raised when maze dimensions, start cell or goal are unusable."""


class DirectionParseError(MazeError, ValueError):
    """Raised when movement text does not name one of the four directions."""


class WorldClosedError(MazeError, RuntimeError):
    """Raised when an operation is submitted to a world that was closed."""


__all__ = [
    "DirectionParseError",
    "MazeConfigurationError",
    "MazeError",
    "WorldClosedError",
]
