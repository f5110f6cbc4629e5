"""Maze generation, shared world state and compass sensing."""

from .directions import Direction, parse_direction
from .generation import Grid, generate_maze, make_rng
from .rendering import render_line_art, render_plain
from .sensors import Compass, SensingView, goal_hint, measure_free, read_compass
from .world import PlayerHandle, PlayerSnapshot, WorldState, maze_payload, players_payload

__all__ = [
    "Compass",
    "Direction",
    "Grid",
    "PlayerHandle",
    "PlayerSnapshot",
    "SensingView",
    "WorldState",
    "generate_maze",
    "goal_hint",
    "make_rng",
    "maze_payload",
    "measure_free",
    "parse_direction",
    "players_payload",
    "read_compass",
    "render_line_art",
    "render_plain",
]
