"""Randomised frontier expansion that carves a connected maze out of a wall grid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..errors import MazeConfigurationError
from .directions import NEIGHBOUR_ORDER, Direction


# ----------------------------- RNG Utilities ----------------------------- #

def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Create a numpy Generator without touching the global RNG state.

    ``None`` draws fresh entropy from the operating system; call this once per
    process and share the result.
    """
    if seed is None:
        return np.random.default_rng()
    # Accept wide Python int; fold into uint64 for numpy
    return np.random.default_rng(np.uint64(seed & ((1 << 64) - 1)))


# ----------------------------- Grid -------------------------------------- #

@dataclass(frozen=True, eq=False)
class Grid:
    """Immutable wall layout indexed as ``walls[x, y]``."""

    width: int
    height: int
    walls: np.ndarray

    @classmethod
    def from_walls(cls, walls: np.ndarray) -> "Grid":
        """Wrap a ``(width, height)`` boolean array, copying and freezing it."""

        # //1.- Copy so later writes by the caller cannot leak into the grid.
        frozen = np.array(walls, dtype=bool, copy=True)
        if frozen.ndim != 2 or frozen.shape[0] < 1 or frozen.shape[1] < 1:
            raise MazeConfigurationError(f"wall array must be a non-empty 2D array, got shape {frozen.shape}")
        # //2.- Lock the buffer so concurrent readers never need synchronisation.
        frozen.flags.writeable = False
        return cls(width=int(frozen.shape[0]), height=int(frozen.shape[1]), walls=frozen)

    @classmethod
    def open_field(cls, width: int, height: int) -> "Grid":
        """Return a grid of the given size with no walls at all."""

        _check_dimensions(width, height)
        return cls.from_walls(np.zeros((width, height), dtype=bool))

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_wall(self, x: int, y: int) -> bool:
        return bool(self.walls[x, y])

    def is_open(self, x: int, y: int) -> bool:
        """True when ``(x, y)`` lies inside the grid and is not a wall."""

        return self.in_bounds(x, y) and not self.walls[x, y]

    def wall_cells(self) -> List[Tuple[int, int]]:
        """List wall coordinates ordered by column, then row."""

        return [(int(x), int(y)) for x, y in np.argwhere(self.walls)]

    def open_cells(self) -> Iterator[Tuple[int, int]]:
        for x, y in np.argwhere(~self.walls):
            yield int(x), int(y)

    @property
    def open_count(self) -> int:
        return int(self.walls.size - np.count_nonzero(self.walls))


# ----------------------------- Generation -------------------------------- #

def _check_dimensions(width: int, height: int) -> None:
    if int(width) < 1 or int(height) < 1:
        raise MazeConfigurationError(f"maze dimensions must be positive, got {width}x{height}")


def generate_maze(
    width: int,
    height: int,
    start_x: int,
    start_y: int,
    rng: Optional[np.random.Generator] = None,
) -> Grid:
    """
    Carve a maze whose open cells form one component containing the start cell.

    Frontier entries are ``(x, y, direction)`` where ``direction`` is the step
    that led from an open cell to the candidate wall. A candidate is opened
    together with the cell beyond it when both are still walls. Candidates
    whose far cell falls outside the grid are opened on their own, which
    leaves the border more porous than a strict spanning tree.
    """
    _check_dimensions(width, height)
    if not (0 <= start_x < width and 0 <= start_y < height):
        raise MazeConfigurationError(
            f"start cell ({start_x}, {start_y}) lies outside a {width}x{height} maze"
        )
    generator = rng if rng is not None else make_rng()

    walls = np.ones((width, height), dtype=bool)
    walls[start_x, start_y] = False

    def in_bounds(x: int, y: int) -> bool:
        return 0 <= x < width and 0 <= y < height

    frontier: List[Tuple[int, int, Direction]] = []
    for direction in NEIGHBOUR_ORDER:
        nx, ny = direction.step(start_x, start_y)
        if in_bounds(nx, ny):
            frontier.append((nx, ny, direction))

    while frontier:
        index = int(generator.integers(len(frontier)))
        cx, cy, direction = frontier.pop(index)
        fx, fy = direction.step(cx, cy)

        if not in_bounds(fx, fy):
            walls[cx, cy] = False
        elif walls[cx, cy] and walls[fx, fy]:
            walls[cx, cy] = False
            walls[fx, fy] = False
            for onward in NEIGHBOUR_ORDER:
                nx, ny = onward.step(fx, fy)
                if in_bounds(nx, ny) and walls[nx, ny]:
                    frontier.append((nx, ny, onward))

    return Grid.from_walls(walls)


__all__ = ["Grid", "generate_maze", "make_rng"]
