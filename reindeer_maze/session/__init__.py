"""TCP line protocol sessions for maze players."""

from .server import BAD_COMMAND_MESSAGE, WELCOME_MESSAGE, MazeSessionServer

__all__ = ["BAD_COMMAND_MESSAGE", "MazeSessionServer", "WELCOME_MESSAGE"]
