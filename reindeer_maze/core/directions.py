"""Cardinal directions and the grid stepping rules attached to them."""

from __future__ import annotations

from enum import Enum
from typing import Tuple

from ..errors import DirectionParseError


class Direction(Enum):
    """Closed set of the four movement directions understood by the maze."""

    N = "N"
    E = "E"
    S = "S"
    W = "W"

    @property
    def delta(self) -> Tuple[int, int]:
        """Return the ``(dx, dy)`` offset for a single step."""

        return _DELTAS[self]

    def step(self, x: int, y: int) -> Tuple[int, int]:
        """Return the cell reached by moving one unit from ``(x, y)``."""

        # //1.- North grows the y axis so the rendered maze prints top row first.
        dx, dy = _DELTAS[self]
        return x + dx, y + dy

    def __str__(self) -> str:
        return self.value


_DELTAS = {
    Direction.N: (0, 1),
    Direction.E: (1, 0),
    Direction.S: (0, -1),
    Direction.W: (-1, 0),
}

# Order in which neighbours are visited during generation.
NEIGHBOUR_ORDER: Tuple[Direction, ...] = (Direction.W, Direction.E, Direction.S, Direction.N)


def parse_direction(text: str) -> Direction:
    """Convert protocol text such as ``"n"`` or ``"E"`` into a :class:`Direction`."""

    # //1.- Accept either case and ignore surrounding whitespace left over from line framing.
    token = text.strip().upper() if isinstance(text, str) else ""
    try:
        return Direction(token)
    except ValueError:
        # //2.- Reject everything else before it can reach the world state.
        raise DirectionParseError(f"invalid direction {text!r}") from None


__all__ = ["Direction", "NEIGHBOUR_ORDER", "parse_direction"]
