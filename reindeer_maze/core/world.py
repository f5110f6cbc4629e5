"""Shared maze world that serialises every player operation on one worker thread."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from queue import Queue
from typing import Callable, Dict, List, NewType, Optional, Tuple, TypeVar

import numpy as np

from ..errors import MazeConfigurationError, WorldClosedError
from .directions import Direction
from .generation import Grid, generate_maze, make_rng
from .sensors import Compass, SensingView, read_compass

LOGGER = logging.getLogger(__name__)

PlayerHandle = NewType("PlayerHandle", int)

_T = TypeVar("_T")


@dataclass(frozen=True)
class PlayerSnapshot:
    """Immutable copy of one player's identity and position."""

    handle: PlayerHandle
    name: str
    x: int
    y: int

    @property
    def position(self) -> Tuple[int, int]:
        return self.x, self.y


@dataclass
class _PlayerRecord:
    name: str
    x: int
    y: int


@dataclass
class _Command:
    """Unit of work executed by the world worker on behalf of a blocked caller."""

    action: Callable[[], object]
    done: threading.Event = field(default_factory=threading.Event)
    result: object = None
    error: Optional[BaseException] = None


class WorldState:
    """Single authority over player membership and positions.

    Grid and goal are immutable and read freely. Everything touching the
    player table is queued to a dedicated worker thread and applied one
    command at a time, so each public operation is atomic with respect to
    every other one. Callers block until their command has been applied.
    """

    def __init__(
        self,
        grid: Grid,
        goal: Optional[Tuple[int, int]] = None,
        *,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        # //1.- Default the goal to the centre cell, which generation always opens.
        resolved_goal = goal if goal is not None else (grid.width // 2, grid.height // 2)
        gx, gy = int(resolved_goal[0]), int(resolved_goal[1])
        if not grid.is_open(gx, gy):
            raise MazeConfigurationError(f"goal ({gx}, {gy}) must be an open cell inside the maze")
        self._view = SensingView(grid=grid, goal=(gx, gy))
        # //2.- The generator is only touched by the worker once the world is running.
        self._rng = rng if rng is not None else make_rng()
        self._players: Dict[PlayerHandle, _PlayerRecord] = {}
        self._handles = itertools.count(1)
        # //3.- Commands are applied strictly in arrival order by a single consumer.
        self._queue: "Queue[Optional[_Command]]" = Queue()
        self._closed = False
        self._submit_lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name="world-state", daemon=True)
        self._thread.start()

    @classmethod
    def generate(
        cls,
        width: int,
        height: int,
        *,
        rng: Optional[np.random.Generator] = None,
    ) -> "WorldState":
        """Generate a fresh maze carved outward from its centre, which becomes the goal."""

        generator = rng if rng is not None else make_rng()
        goal = (int(width) // 2, int(height) // 2)
        grid = generate_maze(width, height, goal[0], goal[1], rng=generator)
        LOGGER.debug("Generated %dx%d maze with %d open cells", grid.width, grid.height, grid.open_count)
        return cls(grid, goal, rng=generator)

    # ------------------------------------------------------------------ #
    # Immutable state
    # ------------------------------------------------------------------ #

    @property
    def grid(self) -> Grid:
        return self._view.grid

    @property
    def goal(self) -> Tuple[int, int]:
        return self._view.goal

    def snapshot_for_sensing(self) -> SensingView:
        """Expose the grid and goal; both never change so no queueing is needed."""

        return self._view

    # ------------------------------------------------------------------ #
    # Serialised operations
    # ------------------------------------------------------------------ #

    def add_player(self, name: str) -> PlayerHandle:
        """Register ``name`` on a uniformly random open cell and return its handle."""

        def apply() -> PlayerHandle:
            x, y = self._random_open_cell()
            handle = PlayerHandle(next(self._handles))
            self._players[handle] = _PlayerRecord(name=name, x=x, y=y)
            return handle

        return self._submit(apply)

    def remove_player(self, handle: PlayerHandle) -> bool:
        """Forget the player; returns ``False`` when the handle is already gone."""

        return self._submit(lambda: self._players.pop(handle, None) is not None)

    def move_player(self, handle: PlayerHandle, direction: Direction) -> bool:
        """Step the player one cell; walls, edges and unknown handles leave state untouched."""

        def apply() -> bool:
            record = self._players.get(handle)
            if record is None:
                return False
            # //1.- Validate and update within the same command so no other operation sees a gap.
            x, y = direction.step(record.x, record.y)
            if not self._view.grid.is_open(x, y):
                return False
            record.x, record.y = x, y
            return True

        return self._submit(apply)

    def list_players(self) -> Tuple[PlayerSnapshot, ...]:
        """Copy every registered player in one step, ordered by handle."""

        def apply() -> Tuple[PlayerSnapshot, ...]:
            return tuple(self._snapshot(handle, record) for handle, record in sorted(self._players.items()))

        return self._submit(apply)

    def locate(self, handle: PlayerHandle) -> Optional[PlayerSnapshot]:
        """Return a copy of one player, or ``None`` when the handle is unknown."""

        def apply() -> Optional[PlayerSnapshot]:
            record = self._players.get(handle)
            return None if record is None else self._snapshot(handle, record)

        return self._submit(apply)

    def compass(self, handle: PlayerHandle) -> Optional[Compass]:
        """Read the compass at the player's current position."""

        snapshot = self.locate(handle)
        if snapshot is None:
            return None
        return read_compass(self._view, snapshot.position)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop the worker after it drains the commands already queued."""

        with self._submit_lock:
            if self._closed:
                return
            self._closed = True
            # //1.- Push a sentinel so the worker exits once earlier commands finish.
            self._queue.put(None)
        self._thread.join()

    def __enter__(self) -> "WorldState":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _submit(self, action: Callable[[], _T]) -> _T:
        command = _Command(action=action)
        # //1.- Enqueue under the lock so no command lands behind the shutdown sentinel.
        with self._submit_lock:
            if self._closed:
                raise WorldClosedError("world state has been closed")
            self._queue.put(command)
        # //2.- Block until the worker has applied the command and published its result.
        command.done.wait()
        if command.error is not None:
            raise command.error
        return command.result  # type: ignore[return-value]

    def _run(self) -> None:
        while True:
            command = self._queue.get()
            if command is None:
                return
            try:
                command.result = command.action()
            except Exception as exc:  # noqa: BLE001
                # //1.- Hand the failure back to the caller instead of killing the worker.
                command.error = exc
            finally:
                command.done.set()

    def _random_open_cell(self) -> Tuple[int, int]:
        grid = self._view.grid
        while True:
            x = int(self._rng.integers(grid.width))
            y = int(self._rng.integers(grid.height))
            if not grid.is_wall(x, y):
                return x, y

    @staticmethod
    def _snapshot(handle: PlayerHandle, record: _PlayerRecord) -> PlayerSnapshot:
        return PlayerSnapshot(handle=handle, name=record.name, x=record.x, y=record.y)


def maze_payload(world: WorldState) -> Dict[str, object]:
    """Describe the maze for external renderers."""

    grid = world.grid
    gx, gy = world.goal
    return {
        "width": grid.width,
        "height": grid.height,
        "presentX": gx,
        "presentY": gy,
        "walls": [[x, y] for x, y in grid.wall_cells()],
    }


def players_payload(players: Tuple[PlayerSnapshot, ...]) -> List[Dict[str, object]]:
    """Export players as ``{"name", "x", "y"}`` mappings."""

    return [{"name": player.name, "x": player.x, "y": player.y} for player in players]


__all__ = [
    "PlayerHandle",
    "PlayerSnapshot",
    "WorldState",
    "maze_payload",
    "players_payload",
]
