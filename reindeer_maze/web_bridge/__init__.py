"""Web bridge helpers that expose the maze and its players over HTTP."""

from .server import MazeWebServer

__all__ = ["MazeWebServer"]
