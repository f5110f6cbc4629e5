"""Text renderings of the maze for the operator console."""

from __future__ import annotations

from typing import Iterable, List, Set, Tuple

from .generation import Grid

# DEC special graphics: switch in with ESC ( 0, back to ASCII with ESC ( B.
LINE_ART_ON = "\033(0"
LINE_ART_OFF = "\033(B"

# Two-character wall glyph keyed by the sides (n, e, s, w) that touch another wall or the edge.
_WALL_GLYPHS = {
    "": "~~",
    "nesw": "nn",
    "n": "mj",
    "s": "lk",
    "ns": "xx",
    "e": "qq",
    "w": "qq",
    "ew": "qq",
    "ne": "mv",
    "es": "lw",
    "sw": "wk",
    "nw": "vj",
    "nes": "tn",
    "esw": "ww",
    "nsw": "nu",
    "new": "vv",
}


def render_plain(grid: Grid, goal: Tuple[int, int]) -> str:
    """Draw the maze with block characters, northernmost row first."""

    lines: List[str] = []
    for y in range(grid.height - 1, -1, -1):
        row = []
        for x in range(grid.width):
            if (x, y) == goal:
                row.append("PP")
            elif grid.is_wall(x, y):
                row.append("██")
            else:
                row.append("  ")
        lines.append("".join(row))
    return "\n".join(lines) + "\n"


def _wall_sides(grid: Grid, x: int, y: int) -> str:
    sides = ""
    if y == grid.height - 1 or grid.is_wall(x, y + 1):
        sides += "n"
    if x == grid.width - 1 or grid.is_wall(x + 1, y):
        sides += "e"
    if y == 0 or grid.is_wall(x, y - 1):
        sides += "s"
    if x == 0 or grid.is_wall(x - 1, y):
        sides += "w"
    return sides


def render_line_art(grid: Grid, goal: Tuple[int, int], players: Iterable[Tuple[int, int]] = ()) -> str:
    """Draw connected wall lines plus player and goal markers for a VT100 terminal."""

    occupied: Set[Tuple[int, int]] = {(int(x), int(y)) for x, y in players}
    lines: List[str] = []
    for y in range(grid.height - 1, -1, -1):
        row = []
        for x in range(grid.width):
            if (x, y) in occupied:
                row.append("aa")
            elif grid.is_wall(x, y):
                row.append(_WALL_GLYPHS[_wall_sides(grid, x, y)])
            elif (x, y) == goal:
                row.append("``")
            else:
                row.append("  ")
        lines.append("".join(row))
    return LINE_ART_ON + "\n".join(lines) + "\n" + LINE_ART_OFF


__all__ = ["LINE_ART_OFF", "LINE_ART_ON", "render_line_art", "render_plain"]
