"""Compass readings derived from the immutable maze layout."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .directions import Direction
from .generation import Grid


@dataclass(frozen=True, eq=False)
class SensingView:
    """Read-only pairing of the grid and goal used to compute readings without locks."""

    grid: Grid
    goal: Tuple[int, int]

    @property
    def goal_x(self) -> int:
        return self.goal[0]

    @property
    def goal_y(self) -> int:
        return self.goal[1]


@dataclass(frozen=True)
class Compass:
    """Free distances in the four directions plus the hint toward the goal."""

    north: int
    east: int
    south: int
    west: int
    goal_direction: Optional[Direction] = None
    on_goal: bool = False

    @property
    def hint(self) -> str:
        """Single character goal marker: a direction, ``X`` on goal or ``?``."""

        if self.on_goal:
            return "X"
        if self.goal_direction is None:
            return "?"
        return self.goal_direction.value

    def encode(self) -> str:
        """Render the reading in the wire format sent to clients."""

        return f"N{self.north} E{self.east} S{self.south} W{self.west} P{self.hint}"

    def __str__(self) -> str:
        return self.encode()


def measure_free(view: SensingView, position: Tuple[int, int], direction: Direction) -> int:
    """Count consecutive open cells from ``position`` before a wall or the edge."""

    grid = view.grid
    x, y = position
    count = 0
    while True:
        x, y = direction.step(x, y)
        if not grid.is_open(x, y):
            return count
        count += 1


def _confirmed(view: SensingView, position: Tuple[int, int], candidate: Direction, distance: int) -> Optional[Direction]:
    # A hint is only given when nothing blocks the straight line to the goal.
    if measure_free(view, position, candidate) >= distance:
        return candidate
    return None


def goal_hint(view: SensingView, position: Tuple[int, int]) -> Tuple[Optional[Direction], bool]:
    """Return ``(direction, on_goal)`` for a player standing at ``position``."""

    x, y = position
    gx, gy = view.goal
    if (x, y) == (gx, gy):
        return None, True
    if x == gx:
        candidate = Direction.N if gy > y else Direction.S
        return _confirmed(view, position, candidate, abs(gy - y)), False
    if y == gy:
        candidate = Direction.E if gx > x else Direction.W
        return _confirmed(view, position, candidate, abs(gx - x)), False
    # Diagonal or L-shaped routes are never hinted.
    return None, False


def read_compass(view: SensingView, position: Tuple[int, int]) -> Compass:
    """Compute the full :class:`Compass` reading for ``position``."""

    direction, on_goal = goal_hint(view, position)
    return Compass(
        north=measure_free(view, position, Direction.N),
        east=measure_free(view, position, Direction.E),
        south=measure_free(view, position, Direction.S),
        west=measure_free(view, position, Direction.W),
        goal_direction=direction,
        on_goal=on_goal,
    )


__all__ = ["Compass", "SensingView", "goal_hint", "measure_free", "read_compass"]
