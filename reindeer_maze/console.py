"""Operator console that prints the maze and player list on demand."""

from __future__ import annotations

import logging
import sys
from typing import Callable, Dict, Iterable, Optional, TextIO

from .core.rendering import render_line_art, render_plain
from .core.world import WorldState

LOGGER = logging.getLogger(__name__)

HELP_TEXT = "Commands: maze, players, show, help\n"


class MazeConsole:
    """Interpret one-word debug commands read from a text stream."""

    def __init__(self, world: WorldState, output: Optional[TextIO] = None) -> None:
        self._world = world
        self._output = output if output is not None else sys.stderr
        self._commands: Dict[str, Callable[[], str]] = {
            "maze": self._maze,
            "players": self._players,
            "show": self._show,
            "help": lambda: HELP_TEXT,
        }

    def handle_command(self, text: str) -> bool:
        """Run one command; returns ``False`` when it was not recognised."""

        command = self._commands.get(text.strip().lower())
        if command is None:
            if text.strip():
                LOGGER.debug("Unknown console command %r", text.strip())
                self._write(HELP_TEXT)
            return False
        self._write(command())
        return True

    def run(self, stream: Iterable[str]) -> None:
        """Process commands until the stream is exhausted."""

        for line in stream:
            self.handle_command(line)
        LOGGER.debug("Console input closed")

    def _maze(self) -> str:
        return render_plain(self._world.grid, self._world.goal)

    def _players(self) -> str:
        lines = ["Players:"]
        lines.extend(f"  {player.name} @ {player.x}, {player.y}" for player in self._world.list_players())
        return "\n".join(lines) + "\n"

    def _show(self) -> str:
        positions = [player.position for player in self._world.list_players()]
        return render_line_art(self._world.grid, self._world.goal, positions)

    def _write(self, text: str) -> None:
        self._output.write(text)
        self._output.flush()


__all__ = ["HELP_TEXT", "MazeConsole"]
